"""
Signals raised by the data-mapper runtime.

These are runtime-level errors, the counterpart of SQLAlchemy's own
`NoResultFound`. The model factory translates them into the application errors
in `crudbase.exceptions`; nothing outside this package should need to catch them.
"""
from typing import Iterable

from sqlalchemy.exc import ArgumentError, SQLAlchemyError


class EmptyError(SQLAlchemyError):
    """A collection fetch with `require=True` matched no rows."""


class NoRowsDeletedError(SQLAlchemyError):
    """A DELETE targeted a row that does not exist."""


class NoRowsUpdatedError(SQLAlchemyError):
    """An UPDATE affected zero rows."""


class UnknownFieldError(SQLAlchemyError):
    """A payload, filter, or option referenced columns the model does not map."""

    def __init__(self, message: str, *, fields: Iterable[str] | None = None):
        super().__init__(message)
        self.fields = list(fields) if fields else []


class CompositePrimaryKeyError(ArgumentError):
    """A model maps more than one primary key column."""


__all__ = ["CompositePrimaryKeyError", "EmptyError", "NoRowsDeletedError", "NoRowsUpdatedError", "UnknownFieldError"]
