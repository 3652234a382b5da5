import pytest
from pydantic import BaseModel, Field
from sqlalchemy import Integer, String
from sqlalchemy.exc import NoResultFound
from sqlalchemy.orm import Mapped, mapped_column

import pydantic

from crudbase.db.errors import EmptyError, NoRowsDeletedError, NoRowsUpdatedError, UnknownFieldError
from crudbase.db.modelbase import pluggable


class ItemSchema(BaseModel):
    title: str = Field(min_length=2)
    stock: int = Field(default=0, ge=0)


@pytest.fixture
async def item_model(runtime):
    """A model on the raw model base: native results and runtime signals, no factory."""
    runtime.plugin(pluggable)

    class Item(runtime.Model):
        __tablename__ = "items"
        __validation__ = ItemSchema

        id: Mapped[int] = mapped_column(Integer, primary_key=True)
        title: Mapped[str] = mapped_column(String(40), nullable=False)
        stock: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    await runtime.create_all()
    return Item


@pytest.mark.asyncio
class TestModelBaseSignals:

    async def test_create_returns_native_instance(self, item_model):
        item = await item_model.create({"title": "lamp", "stock": "3"})

        assert isinstance(item, item_model)
        # validated values replace the raw ones
        assert item.stock == 3
        assert item.to_dict() == {"id": item.id, "title": "lamp", "stock": 3}

    async def test_find_one_missing_raises_no_result_found(self, item_model):
        with pytest.raises(NoResultFound):
            await item_model.find_one({"title": "ghost"})

    async def test_find_all_empty_require_raises_empty_error(self, item_model):
        assert await item_model.find_all() == []
        with pytest.raises(EmptyError):
            await item_model.find_all(None, {"require": True})

    async def test_update_missing_raises_no_rows_updated(self, item_model):
        with pytest.raises(NoRowsUpdatedError):
            await item_model.update({"stock": 1}, {"id": 404})

    async def test_destroy_missing_raises_no_rows_deleted(self, item_model):
        with pytest.raises(NoRowsDeletedError):
            await item_model.destroy({"id": 404})

    async def test_unknown_fields_raise_unknown_field_error(self, item_model):
        with pytest.raises(UnknownFieldError) as exc_info:
            await item_model.create({"title": "lamp", "colour": "red"})
        assert exc_info.value.fields == ["colour"]

    async def test_validation_failure_raises_pydantic_error(self, item_model):
        with pytest.raises(pydantic.ValidationError):
            await item_model.create({"title": "x"})


@pytest.mark.asyncio
class TestModelBaseBehaviour:

    async def test_update_reloads_instance(self, item_model):
        item = await item_model.create({"title": "lamp"})
        updated = await item_model.update({"stock": 9}, {"id": item.id})

        assert updated.id == item.id
        assert updated.stock == 9
        assert updated.title == "lamp"

    async def test_destroy_returns_last_known_instance(self, item_model):
        item = await item_model.create({"title": "lamp", "stock": 2})
        deleted = await item_model.destroy({"id": item.id})

        assert deleted.to_dict() == {"id": item.id, "title": "lamp", "stock": 2}
        assert await item_model.find_one({"id": item.id}, {"require": False}) is None

    async def test_upsert_both_branches(self, item_model):
        """
        Behavior:
                - upsert() inserts {**select, **update} when nothing matches,
                  then patches the same row on the next call.
        """
        created = await item_model.upsert({"title": "desk"}, {"stock": 1})
        updated = await item_model.upsert({"title": "desk"}, {"stock": 5})

        assert created.id == updated.id
        assert updated.stock == 5
        assert len(await item_model.find_all()) == 1

    async def test_to_dict_omits_unloaded_columns(self, item_model):
        item = await item_model.create({"title": "lamp", "stock": 4})
        partial = await item_model.find_by_id(item.id, {"columns": ["title"]})

        assert partial.to_dict() == {"id": item.id, "title": "lamp"}

    async def test_repr_includes_identity(self, item_model):
        item = await item_model.create({"title": "lamp"})
        assert repr(item) == f"<Item(id={item.id})>"
