"""
The model factory.

`create_model()` turns a data-mapper runtime into a ready-to-subclass model base
whose CRUD operations all behave the same way:

1. delegate to the runtime's model base (`crudbase.db.modelbase`),
2. translate runtime / database errors into `crudbase.exceptions`,
3. return plain dicts instead of ORM instances unless `to_plain=False`.

Example:

    runtime = Runtime.from_url("sqlite+aiosqlite:///./app.db")
    Base = create_model(runtime, validations={"name": (str, Field(min_length=1))})

    class Widget(Base):
        __tablename__ = "widgets"
        id: Mapped[int] = mapped_column(primary_key=True)
        name: Mapped[str] = mapped_column(String(50), unique=True)

    await Widget.create({"name": "bolt"})            # {"id": 1, "name": "bolt"}
    await Widget.find_by_id(1, to_plain=False)       # <Widget(id=1)>
    await Widget.find_by_id(2)                       # raises NotFoundError

Every operation is a classmethod, so concrete models can override one and call
`super()` to keep the shared behaviour.
"""
import logging
from typing import Any, Mapping

import pydantic

from crudbase.db.errors import CompositePrimaryKeyError
from crudbase.db.modelbase import pluggable
from crudbase.db.options import Options
from crudbase.exceptions.base import IllegalArgumentError
from crudbase.exceptions.mapper import normalize_errors
from crudbase.validators.schema import build_schema

logger = logging.getLogger(__name__)

OptionsArg = Options | Mapping[str, Any] | None


def _convert(result: Any, to_plain: bool) -> Any:
    # None / [] pass through either way
    if not to_plain or result is None:
        return result
    if isinstance(result, list):
        return [entity.to_dict() for entity in result]
    return result.to_dict()


def create_model(runtime, options: OptionsArg = None, validations: Any = None) -> type:
    """
    Build an abstract model base bound to `runtime`.

    Args:
        runtime: An initialised `crudbase.db.Runtime`. The model-base plugin is
            installed on it if it is not installed yet.
        options: Default options merged under the options of every call.
        validations: A pydantic model class, or a mapping of field name to
            `(annotation, default | Field(...))`, validated on create and update.

    Returns:
        An abstract declarative class; subclass it with a `__tablename__` and columns.

    Raises:
        IllegalArgumentError: If `runtime` is missing, or `options` / `validations`
            cannot be understood.
    """
    if runtime is None:
        raise IllegalArgumentError("Must pass an initialized data-mapper runtime")

    runtime.plugin(pluggable)

    try:
        schema = build_schema(validations)
        default_options = Options.coerce(options)
    except (TypeError, pydantic.ValidationError) as exc:
        raise IllegalArgumentError(f"Invalid model configuration: {exc}") from exc

    class ModelDefinition(runtime.Model):
        __abstract__ = True

        __validation__ = schema
        __default_options__ = default_options

        def __init_subclass__(cls, **kw: Any) -> None:
            try:
                super().__init_subclass__(**kw)
            except CompositePrimaryKeyError as exc:
                raise IllegalArgumentError(str(exc)) from exc

        @classmethod
        async def find_one(cls, criteria: Any, options: OptionsArg = None, *, to_plain: bool = True):
            """Return the first row matching `criteria`; NotFoundError unless `require=False`."""
            async with normalize_errors(runtime, cls.__name__, "find_one"):
                result = await super().find_one(criteria, options)
            return _convert(result, to_plain)

        @classmethod
        async def create(cls, data: Mapping[str, Any], options: OptionsArg = None, *, to_plain: bool = True):
            async with normalize_errors(runtime, cls.__name__, "create"):
                result = await super().create(data, options)
            return _convert(result, to_plain)

        @classmethod
        async def destroy(cls, options: OptionsArg, *, to_plain: bool = True):
            """Delete the row `options.id`; NoRowsDeletedError when there is none."""
            async with normalize_errors(runtime, cls.__name__, "destroy", deletes=True):
                result = await super().destroy(options)
            return _convert(result, to_plain)

        @classmethod
        async def find_all(cls, criteria: Any = None, options: OptionsArg = None, *, to_plain: bool = True):
            async with normalize_errors(runtime, cls.__name__, "find_all"):
                result = await super().find_all(criteria, options)
            return _convert(result, to_plain)

        @classmethod
        async def find_where(cls, criteria: Any, options: OptionsArg = None, *, to_plain: bool = True):
            """Alias of `find_all()`."""
            return await cls.find_all(criteria, options, to_plain=to_plain)

        @classmethod
        async def find_by_id(cls, id: Any, options: OptionsArg = None, *, to_plain: bool = True):
            async with normalize_errors(runtime, cls.__name__, "find_by_id"):
                result = await super().find_by_id(id, options)
            return _convert(result, to_plain)

        @classmethod
        async def find_or_create(cls, data: Mapping[str, Any], options: OptionsArg = None, *, to_plain: bool = True):
            async with normalize_errors(runtime, cls.__name__, "find_or_create"):
                result = await super().find_or_create(data, options)
            return _convert(result, to_plain)

        @classmethod
        async def update(cls, data: Mapping[str, Any], options: OptionsArg, *, to_plain: bool = True):
            """Patch the row `options.id`; NoRowsUpdatedError when there is none."""
            async with normalize_errors(runtime, cls.__name__, "update", updates=True):
                result = await super().update(data, options)
            return _convert(result, to_plain)

        @classmethod
        async def upsert(
            cls,
            select_data: Mapping[str, Any],
            update_data: Mapping[str, Any],
            options: OptionsArg = None,
            *,
            to_plain: bool = True,
        ):
            async with normalize_errors(runtime, cls.__name__, "upsert", updates=True):
                result = await super().upsert(select_data, update_data, options)
            return _convert(result, to_plain)

    logger.debug(
        "model_factory.created",
        extra={"validated_fields": sorted(schema.model_fields) if schema else [],
               "default_options": sorted(default_options.model_fields_set)},
    )
    return ModelDefinition
