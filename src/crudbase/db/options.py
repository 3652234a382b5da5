"""
The options bag accepted by every model operation.

Callers may pass an `Options` instance, a plain mapping, or None. Unknown keys are
rejected so typos surface instead of being silently ignored.
"""
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession


class Options(BaseModel):
    """
    Query / persistence options.

    Attributes:
        session: Transaction handle. When given, the operation runs inside it and
            never commits; otherwise the runtime opens and commits its own transaction.
        id: Primary key of the target row for `update()` and `destroy()`.
        require: Raise instead of returning None / [] when nothing matches.
            None means "the operation's default" (True for single-row reads and
            destroy, False for collection reads).
        columns: Restrict the loaded columns. The primary key is always loaded.
        order_by: Column name to order by; prefix with "-" for descending.
        limit: Maximum number of rows for collection reads.
        offset: Number of rows to skip for collection reads.
        defaults: Extra attributes applied only when `find_or_create()` inserts.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, extra="forbid", frozen=True)

    session: AsyncSession | None = None
    id: Any = None
    require: bool | None = None
    columns: tuple[str, ...] | None = None
    order_by: str | None = None
    limit: int | None = Field(default=None, ge=0)
    offset: int | None = Field(default=None, ge=0)
    defaults: dict[str, Any] | None = None

    @classmethod
    def coerce(cls, options: "Options | Mapping[str, Any] | None", base: "Options | None" = None) -> "Options":
        """
        Build an Options instance from whatever the caller passed.

        Keys explicitly set by the caller win over `base` (the model's default options).
        Raises `pydantic.ValidationError` for unknown keys or invalid values.
        """
        if options is None:
            return base if base is not None else cls()

        if isinstance(options, Options):
            overrides = {name: getattr(options, name) for name in options.model_fields_set}
        else:
            overrides = dict(options)

        if base is None:
            return cls.model_validate(overrides)
        merged = {name: getattr(base, name) for name in base.model_fields_set}
        merged.update(overrides)
        return cls.model_validate(merged)

    def merge(self, **overrides: Any) -> "Options":
        """Return a copy with `overrides` applied (validated)."""
        data = {name: getattr(self, name) for name in self.model_fields_set}
        data.update(overrides)
        return Options.model_validate(data)

    def required(self, default: bool) -> bool:
        """Resolve `require` against the calling operation's default."""
        return default if self.require is None else self.require
