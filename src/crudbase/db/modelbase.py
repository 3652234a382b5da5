"""
The model-base plugin.

`runtime.plugin(pluggable)` installs `runtime.Model`, an abstract declarative class
that gives every concrete model a shared set of async CRUD classmethods:

    class Widget(runtime.Model):
        __tablename__ = "widgets"
        id: Mapped[int] = mapped_column(primary_key=True)
        name: Mapped[str] = mapped_column(String(50), unique=True)

    widget = await Widget.create({"name": "bolt"})
    same = await Widget.find_by_id(widget.id)

These methods return native ORM instances and raise the runtime's own signals
(`NoResultFound`, `EmptyError`, `NoRowsDeletedError`, `NoRowsUpdatedError`,
`UnknownFieldError`). Converting them into plain data and application errors is
the job of `crudbase.models.factory`.

Each public operation runs in `runtime.transaction(options.session)`: its own
committed transaction, or the caller's session when one is passed. The session
only ever gets `flush()`ed here; committing belongs to whoever owns it.
"""
import time
import logging
from typing import Any, Mapping

from sqlalchemy import delete as sa_delete, inspect as sa_inspect, update as sa_update
from sqlalchemy.exc import ArgumentError, NoResultFound
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import func

from crudbase.validators.model_validators import find_unknown_model_kwargs
from crudbase.validators.schema import validate_payload
from .errors import CompositePrimaryKeyError, EmptyError, NoRowsDeletedError, NoRowsUpdatedError, UnknownFieldError
from .options import Options
from .query import build_select, primary_key_name

logger = logging.getLogger(__name__)


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


def pluggable(runtime, *, name: str = "Model") -> None:
    """
    Install the model base on `runtime` as `runtime.Model`.

    Args:
        runtime: The `Runtime` to extend.
        name: Class name given to the model base.
    """

    class Model(runtime.Base):
        __abstract__ = True

        # pydantic schema applied on create / update; None disables validation
        __validation__ = None
        # options merged under every per-call options bag
        __default_options__ = Options()

        def __init_subclass__(cls, **kw: Any) -> None:
            super().__init_subclass__(**kw)
            mapper = None if cls.__dict__.get("__abstract__", False) else getattr(cls, "__mapper__", None)
            if mapper is not None and len(mapper.primary_key) > 1:
                # operations address rows by a single `options.id`
                cls.metadata.remove(cls.__table__)
                raise CompositePrimaryKeyError(
                    f"{cls.__name__} has a composite primary key "
                    f"({', '.join(column.key for column in mapper.primary_key)}); "
                    "models need a single primary key column"
                )

        # =============================================================================================================
        # Helpers
        # =============================================================================================================

        @classmethod
        def _options(cls, options: Options | Mapping[str, Any] | None) -> Options:
            return Options.coerce(options, cls.__default_options__)

        @classmethod
        def _check_fields(cls, data: Mapping[str, Any], operation: str) -> None:
            unknown = find_unknown_model_kwargs(cls, dict(data))
            if unknown:
                logger.info(
                    f"model.{operation}.invalid_fields",
                    extra={"model": cls.__name__, "operation": operation, "invalid_fields": sorted(unknown)},
                )
                raise UnknownFieldError(
                    f"Unknown field(s) for {cls.__name__}: {', '.join(unknown)}", fields=unknown
                )

        @classmethod
        async def _fetch_one(cls, session: AsyncSession, criteria: Any, opts: Options, require: bool):
            result = await session.execute(build_select(cls, criteria, opts.merge(limit=1)))
            entity = result.scalars().first()
            if entity is None and require:
                raise NoResultFound(f"{cls.__name__} not found")
            return entity

        @classmethod
        def _lookup_values(cls, data: Mapping[str, Any], operation: str) -> dict[str, Any]:
            # match against values as they are stored, i.e. after schema coercion
            cls._check_fields(data, operation)
            return validate_payload(cls.__validation__, data, partial=True)

        @classmethod
        async def _insert(cls, session: AsyncSession, data: Mapping[str, Any]):
            cls._check_fields(data, "create")
            values = validate_payload(cls.__validation__, data)

            entity = cls(**values)
            session.add(entity)
            await session.flush()
            # pick up server defaults (ids, timestamps)
            await session.refresh(entity)
            return entity

        @classmethod
        async def _patch(cls, session: AsyncSession, entity_id: Any, data: Mapping[str, Any]):
            cls._check_fields(data, "update")
            values = validate_payload(cls.__validation__, data, partial=True)

            pk = primary_key_name(cls)
            if hasattr(cls, "updated_at") and "updated_at" not in values:
                values["updated_at"] = func.now()

            stmt = (
                sa_update(cls)
                .where(getattr(cls, pk) == entity_id)
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            result = await session.execute(stmt)

            if result.rowcount == 0:
                logger.info(
                    "model.update.no_rows",
                    extra={"model": cls.__name__, "operation": "update", "id": entity_id},
                )
                raise NoRowsUpdatedError(f"No {cls.__name__} rows updated for {pk}={entity_id!r}")

            return await session.get(cls, entity_id, populate_existing=True)

        # =============================================================================================================
        # Read operations
        # =============================================================================================================

        @classmethod
        async def find_all(cls, criteria: Any = None, options: Options | Mapping[str, Any] | None = None) -> list:
            """
            Return every row matching `criteria`, ordered and paginated per `options`.

            Returns [] when nothing matches, unless `require=True`, in which case
            `EmptyError` is raised.
            """
            opts = cls._options(options)
            async with runtime.transaction(opts.session) as session:
                result = await session.execute(build_select(cls, criteria, opts))
                entities = list(result.scalars().all())

            logger.debug(f"Retrieved {len(entities)} {cls.__name__} entities")
            if not entities and opts.required(False):
                raise EmptyError(f"No {cls.__name__} rows found")
            return entities

        @classmethod
        async def find_one(cls, criteria: Any, options: Options | Mapping[str, Any] | None = None):
            """
            Return the first row matching `criteria`.

            Raises `NoResultFound` when nothing matches, unless `require=False`
            (then None is returned).
            """
            opts = cls._options(options)
            async with runtime.transaction(opts.session) as session:
                return await cls._fetch_one(session, criteria, opts, opts.required(True))

        @classmethod
        async def find_by_id(cls, id: Any, options: Options | Mapping[str, Any] | None = None):
            """Primary-key lookup; same `require` semantics as `find_one()`."""
            opts = cls._options(options)
            async with runtime.transaction(opts.session) as session:
                return await cls._fetch_one(session, {primary_key_name(cls): id}, opts, opts.required(True))

        # =============================================================================================================
        # Write operations
        # =============================================================================================================

        @classmethod
        async def create(cls, data: Mapping[str, Any], options: Options | Mapping[str, Any] | None = None):
            """
            Validate `data`, insert it, and return the new instance with server
            defaults loaded.
            """
            logger.debug(
                "model.create.start",
                extra={"model": cls.__name__, "operation": "create", "provided_keys": sorted(data.keys())},
            )
            opts = cls._options(options)
            start = time.perf_counter()

            async with runtime.transaction(opts.session) as session:
                entity = await cls._insert(session, data)

            logger.info(
                "model.create.success",
                extra={
                    "model": cls.__name__,
                    "operation": "create",
                    "id": sa_inspect(entity).identity,
                    "duration_ms": _elapsed_ms(start),
                },
            )
            return entity

        @classmethod
        async def update(cls, data: Mapping[str, Any], options: Options | Mapping[str, Any]):
            """
            Patch the row identified by `options.id` with `data`.

            Only the supplied keys are validated and written. An empty `data` is a
            no-op that returns the current row.

            Raises:
                ArgumentError: If `options.id` is missing.
                NoRowsUpdatedError: If no row has that id.
            """
            opts = cls._options(options)
            if opts.id is None:
                raise ArgumentError(f"{cls.__name__}.update() requires options.id")

            if not data:
                logger.warning(f"No data provided for updating {cls.__name__}")
                async with runtime.transaction(opts.session) as session:
                    entity = await cls._fetch_one(session, {primary_key_name(cls): opts.id}, opts, False)
                if entity is None:
                    raise NoRowsUpdatedError(f"No {cls.__name__} rows updated for id={opts.id!r}")
                return entity

            logger.debug(
                "model.update.start",
                extra={"model": cls.__name__, "operation": "update", "id": opts.id,
                       "provided_keys": sorted(data.keys())},
            )
            start = time.perf_counter()

            async with runtime.transaction(opts.session) as session:
                entity = await cls._patch(session, opts.id, data)

            logger.info(
                "model.update.success",
                extra={"model": cls.__name__, "operation": "update", "id": opts.id,
                       "duration_ms": _elapsed_ms(start)},
            )
            return entity

        @classmethod
        async def destroy(cls, options: Options | Mapping[str, Any]):
            """
            Delete the row identified by `options.id` and return it as last loaded.

            When no row was deleted, raises `NoRowsDeletedError`, or returns None
            if `require=False`.
            """
            opts = cls._options(options)
            if opts.id is None:
                raise ArgumentError(f"{cls.__name__}.destroy() requires options.id")

            pk = primary_key_name(cls)
            async with runtime.transaction(opts.session) as session:
                entity = await session.get(cls, opts.id)
                result = await session.execute(
                    sa_delete(cls)
                    .where(getattr(cls, pk) == opts.id)
                    .execution_options(synchronize_session=False)
                )

                if result.rowcount == 0:
                    if opts.required(True):
                        raise NoRowsDeletedError(f"No {cls.__name__} rows deleted for {pk}={opts.id!r}")
                    logger.debug(f"{cls.__name__} with {pk}={opts.id!r} not found for deletion")
                    return None

                # the row is gone; keep the last-known copy out of the identity map
                if entity is not None:
                    session.expunge(entity)

            logger.info("model.destroy.success", extra={"model": cls.__name__, "operation": "destroy", "id": opts.id})
            return entity

        @classmethod
        async def find_or_create(cls, data: Mapping[str, Any], options: Options | Mapping[str, Any] | None = None):
            """
            Return the row matching `data`, inserting `{**options.defaults, **data}`
            when there is none. Both steps share one transaction.
            """
            opts = cls._options(options)
            async with runtime.transaction(opts.session) as session:
                lookup = cls._lookup_values(data, "find_or_create")
                entity = await cls._fetch_one(session, lookup, opts, False)
                if entity is not None:
                    logger.debug(f"find_or_create matched an existing {cls.__name__}")
                    return entity
                return await cls._insert(session, {**(opts.defaults or {}), **lookup})

        @classmethod
        async def upsert(
            cls,
            select_data: Mapping[str, Any],
            update_data: Mapping[str, Any],
            options: Options | Mapping[str, Any] | None = None,
        ):
            """
            Patch the row matching `select_data` with `update_data`, or insert
            `{**select_data, **update_data}` when there is none. Both steps share
            one transaction.
            """
            opts = cls._options(options)
            async with runtime.transaction(opts.session) as session:
                lookup = cls._lookup_values(select_data, "upsert")
                existing = await cls._fetch_one(session, lookup, opts, False)
                if existing is None:
                    logger.debug(f"upsert inserting a new {cls.__name__}")
                    return await cls._insert(session, {**lookup, **update_data})

                entity_id = sa_inspect(existing).identity[0]
                if not update_data:
                    return existing
                logger.debug(f"upsert updating {cls.__name__} {entity_id!r}")
                return await cls._patch(session, entity_id, update_data)

        # =============================================================================================================
        # Serialisation
        # =============================================================================================================

        def to_dict(self) -> dict[str, Any]:
            """Return the loaded column attributes as a plain dict (deferred columns are omitted)."""
            state = sa_inspect(self)
            loaded = state.dict
            return {
                attr.key: loaded[attr.key]
                for attr in state.mapper.column_attrs
                if attr.key in loaded
            }

        def __repr__(self) -> str:
            identity = sa_inspect(self).identity
            return f"<{type(self).__name__}(id={identity[0] if identity else None!r})>"

    Model.__name__ = Model.__qualname__ = name
    runtime.Model = Model
    logger.debug("modelbase.installed", extra={"runtime": repr(runtime)})
