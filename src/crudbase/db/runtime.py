"""
The data-mapper runtime handle.

A `Runtime` bundles everything model definitions need from SQLAlchemy:

- the `AsyncEngine` (connection pool, dialect),
- an `async_sessionmaker` producing sessions with `expire_on_commit=False`, so
  returned instances stay readable after their transaction ends,
- a private declarative base for table definitions,
- a plugin registry (`plugin()`) for extensions such as the model base,
- the named signal classes the runtime raises (`NotFoundError`, `EmptyError`,
  `NoRowsDeletedError`, `NoRowsUpdatedError`).

Create one per database at application start-up and share it process-wide.
"""
import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any, AsyncIterator, Callable

from sqlalchemy.exc import NoResultFound
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from . import errors
from .base import make_declarative_base

if TYPE_CHECKING:
    from crudbase.config.settings import Settings

logger = logging.getLogger(__name__)

Plugin = Callable[..., None]


class Runtime:
    """
    Handle to an initialised data-mapper runtime.

    Attributes:
        engine: The AsyncEngine every session is bound to.
        sessionmaker: Factory for AsyncSession objects.
        Base: The runtime's declarative base.
        Model: The model base installed by the `pluggable` plugin (None until then).
    """

    # Signals raised by runtime operations; the model factory catches these by name.
    NotFoundError = NoResultFound
    EmptyError = errors.EmptyError
    NoRowsDeletedError = errors.NoRowsDeletedError
    NoRowsUpdatedError = errors.NoRowsUpdatedError

    def __init__(self, engine: AsyncEngine, *, base: type[DeclarativeBase] | None = None):
        self.engine = engine
        self.sessionmaker = async_sessionmaker(
            bind=engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        self.Base = base if base is not None else make_declarative_base()
        self.Model = None
        self._plugins: dict[str, Plugin] = {}

    # =================================================================================================================
    # Construction
    # =================================================================================================================

    @classmethod
    def from_url(cls, url: str, **engine_kwargs: Any) -> "Runtime":
        """
        Create a runtime for `url` (e.g. "postgresql+asyncpg://..." or "sqlite+aiosqlite:///./app.db").
        Extra keyword arguments are passed to `create_async_engine`.
        """
        engine_kwargs.setdefault("pool_pre_ping", True)
        return cls(create_async_engine(url, **engine_kwargs))

    @classmethod
    def from_settings(cls, settings: "Settings") -> "Runtime":
        """Create a runtime from the application Settings."""
        return cls.from_url(
            settings.DATABASE_URL,
            echo=settings.SQLALCHEMY_ECHO,
            pool_pre_ping=settings.DB_POOL_PRE_PING,
        )

    # =================================================================================================================
    # Plugins
    # =================================================================================================================

    def plugin(self, plugin: Plugin, **params: Any) -> "Runtime":
        """
        Install `plugin` on this runtime. Installing the same plugin twice is a no-op.

        A plugin is a callable `plugin(runtime, **params)`; it is registered under its
        `__qualname__`.
        """
        key = getattr(plugin, "__qualname__", repr(plugin))
        if key in self._plugins:
            logger.debug("runtime.plugin.already_installed", extra={"plugin": key})
            return self

        plugin(self, **params)
        self._plugins[key] = plugin
        logger.debug("runtime.plugin.installed", extra={"plugin": key})
        return self

    def has_plugin(self, plugin: Plugin) -> bool:
        return getattr(plugin, "__qualname__", repr(plugin)) in self._plugins

    # =================================================================================================================
    # Sessions / transactions
    # =================================================================================================================

    @asynccontextmanager
    async def transaction(self, session: AsyncSession | None = None) -> AsyncIterator[AsyncSession]:
        """
        Yield a session to run one operation in.

        - With a caller-supplied `session` (a transaction handle) the session is used
          as-is: no commit, no rollback, no close. The caller owns the transaction.
        - Otherwise a new session is opened and a transaction begun; it commits when
          the block succeeds and rolls back when it raises.
        """
        if session is not None:
            yield session
            return

        async with self.sessionmaker() as new_session:
            async with new_session.begin():
                yield new_session

    # =================================================================================================================
    # Schema helpers / lifecycle
    # =================================================================================================================

    async def create_all(self) -> None:
        """Create every table registered on this runtime's declarative base."""
        async with self.engine.begin() as conn:
            await conn.run_sync(self.Base.metadata.create_all)

    async def drop_all(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(self.Base.metadata.drop_all)

    async def dispose(self) -> None:
        """Close every pooled connection. Call at application shutdown."""
        await self.engine.dispose()

    def __repr__(self) -> str:
        return f"<Runtime(url={self.engine.url!r}, plugins={sorted(self._plugins)!r})>"
