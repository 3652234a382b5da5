"""Fixtures for model tests."""

import pytest
from pydantic import Field
from sqlalchemy import Boolean, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from crudbase.db.base import TimestampMixin
from crudbase.db.runtime import Runtime
from crudbase.models.factory import create_model

# NOTE: All fixtures in this file depend on the `runtime` fixture defined in conftest.py,
# a fresh runtime (and database) per test.

WIDGET_VALIDATIONS = {
    "name": (str, Field(min_length=1, max_length=50)),
    "quantity": (int, Field(default=0, ge=0)),
}


@pytest.fixture
def widget_base(runtime: Runtime):
    """
    Abstract model base produced by `create_model` with a validation schema.

    Concrete models subclass it with a table; see `widget_model`.
    """
    return create_model(runtime, validations=WIDGET_VALIDATIONS)


@pytest.fixture
def plain_base(runtime: Runtime):
    """Abstract model base without validations; only database constraints apply."""
    return create_model(runtime)


@pytest.fixture
async def widget_model(runtime: Runtime, widget_base):
    """
    A concrete, validated model with a unique `name`, a defaulted `quantity`,
    an optional `note` and timestamps. Its table exists when the fixture returns.
    """

    class Widget(widget_base, TimestampMixin):
        __tablename__ = "widgets"

        id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
        name: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
        quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
        note: Mapped[str | None] = mapped_column(String(200), nullable=True)

    await runtime.create_all()
    return Widget


@pytest.fixture
async def gadget_model(runtime: Runtime, plain_base):
    """A concrete model without validations (NOT NULL `label`, no timestamps)."""

    class Gadget(plain_base):
        __tablename__ = "gadgets"

        id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
        label: Mapped[str] = mapped_column(String(30), nullable=False)
        active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    await runtime.create_all()
    return Gadget


@pytest.fixture
def widget_payload(faker) -> dict:
    """
    A valid widget payload. Kept synchronous because it does not touch the DB.
    """
    return {"name": faker.unique.word(), "quantity": faker.random_int(min=1, max=100)}


@pytest.fixture
def create_widget(widget_model, faker):
    """
    Factory helper that tests call to persist widgets with optional overrides.

    Usage:
        widget = await create_widget(quantity=3)
    """

    async def _create(**overrides):
        data = {"name": faker.unique.word(), "quantity": faker.random_int(min=1, max=100)}
        data.update(overrides)
        return await widget_model.create(data)

    return _create


@pytest.fixture
async def created_widget(create_widget, widget_payload) -> dict:
    """A single persisted widget, as plain data."""
    return await create_widget(**widget_payload)


@pytest.fixture
async def multiple_widgets(create_widget) -> list[dict]:
    """Three persisted widgets with quantities 10, 20 and 30, in insertion order."""
    return [await create_widget(quantity=qty) for qty in (10, 20, 30)]
