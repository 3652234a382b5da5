"""
Translate data-mapper and database errors into application errors.

Two layers work together here:

1. `to_app_error(exc)` is the generic translation step. It looks at database-level
   error shapes (integrity violations, connection failures, bad values, schema
   validation failures) and returns the matching `ModelError`. Anything it does
   not recognise is returned untouched, so callers can re-raise the original.

2. `normalize_errors(...)` is the async context manager every model operation runs
   inside. It first catches the runtime's own signals (not found, empty result,
   no rows deleted / updated) and re-raises them as the uniform application errors,
   then falls back to `to_app_error` for everything else.

| Runtime / DB level                       | Application level                     |
| ---------------------------------------- | ------------------------------------- |
| `NoResultFound`, `EmptyError`            | `NotFoundError`                       |
| `NoRowsDeletedError` (destroy)           | `NoRowsDeletedError`                  |
| `NoRowsUpdatedError` (update, upsert)    | `NoRowsUpdatedError`                  |
| `IntegrityError` (unique)                | `DuplicateError`                      |
| `IntegrityError` (other)                 | `ModelError` with fields / constraint |
| `pydantic.ValidationError`               | `ValidationError`                     |
| `UnknownFieldError`                      | `InvalidFieldError`                   |
| `DataError`                              | `ModelError("invalid_input")`         |
| `OperationalError`, `InterfaceError`     | `DatabaseUnavailableError`            |
| anything else                            | re-raised unchanged                   |
"""
import re
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

import pydantic
from sqlalchemy.exc import DataError, IntegrityError, InterfaceError, OperationalError

from crudbase.db.errors import UnknownFieldError
from .integrity_classifier import (
    classify_integrity_error,
    UniqueConstraintError,
    NotNullConstraintError,
    ForeignKeyConstraintError,
    CheckConstraintError,
)
from .base import (
    DatabaseUnavailableError,
    DuplicateError,
    InvalidFieldError,
    ModelError,
    NoRowsDeletedError,
    NoRowsUpdatedError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

# -----------------------
# Column extraction helpers
# -----------------------

def _extract_columns_postgres(msg: str) -> list[str] | None:
    """
    Try to extract involved column names from common Postgres messages:
      - 'null value in column "name" violates not-null constraint'
      - 'DETAIL:  Key (email, name)=(a@b.com, u) already exists.'
    """
    if not msg:
        return None

    m = re.search(r'null value in column "(?P<col>[^"]+)"', msg, flags=re.IGNORECASE)
    if m:
        return [m.group("col")]

    m = re.search(r'key \((?P<cols>[^)]+)\)=', msg, flags=re.IGNORECASE)
    if m:
        return [c.strip().strip('"') for c in m.group("cols").split(",")]

    return None


def _extract_columns_sqlite(msg: str) -> list[str] | None:
    # SQLite: 'UNIQUE constraint failed: widgets.name' / 'NOT NULL constraint failed: widgets.name'
    m = re.search(r'(?:UNIQUE|NOT NULL) constraint failed: (?P<cols>.+)$', msg, flags=re.IGNORECASE | re.MULTILINE)
    if m:
        return [c.split('.')[-1].strip() for c in re.split(r',\s*', m.group("cols"))]
    return None


def _extract_columns_mysql(msg: str) -> list[str] | None:
    # MySQL: "Duplicate entry 'foo' for key 'widgets.uq_widgets_name'"
    m = re.search(r"Duplicate entry .* for key '?(?P<key>[^']+)'?", msg, flags=re.IGNORECASE)
    if m:
        return [m.group("key").split('.')[-1]]
    return None


def extract_columns_from_integrity(exc: IntegrityError) -> list[str] | None:
    """
    Best-effort extraction of column names from the DB message (Postgres, SQLite, MySQL).
    """
    orig = exc.orig
    msg = str(orig) if orig is not None else str(exc)

    for extractor in (_extract_columns_postgres, _extract_columns_sqlite, _extract_columns_mysql):
        cols = extractor(msg)
        if cols:
            return cols
    return None


# -----------------------
# Mappers
# -----------------------

def map_integrity_error(exc: IntegrityError, model_name: str | None = None) -> ModelError:
    """
    Map a SQLAlchemy IntegrityError to an app-level exception.
    Populates `.fields` and `.constraint` where possible.
    """
    exc_cls, constraint_name = classify_integrity_error(exc)
    columns = extract_columns_from_integrity(exc)

    model_part = f"{model_name}" if model_name else "Record"

    if exc_cls is UniqueConstraintError:
        # duplicates are expected client-level scenarios
        logger.info(
            "mapper.duplicate_detected",
            extra={"model": model_part, "fields": columns, "constraint": constraint_name},
        )
        if columns:
            return DuplicateError(f"{model_part} already exists for field(s): {', '.join(columns)}",
                                  fields=columns, constraint=constraint_name)
        if constraint_name:
            return DuplicateError(f"{model_part} already exists (constraint: {constraint_name})",
                                  constraint=constraint_name)
        return DuplicateError(f"{model_part} already exists (unique constraint)")

    if exc_cls is NotNullConstraintError:
        logger.info(
            "mapper.not_null_violation",
            extra={"model": model_part, "fields": columns, "constraint": constraint_name},
        )
        if columns:
            return ModelError(f"Missing required field(s): {', '.join(columns)} for {model_part}",
                              fields=columns, constraint=constraint_name, error_code="invalid_input")
        return ModelError(f"Missing required field for {model_part}",
                          constraint=constraint_name, error_code="invalid_input")

    if exc_cls is ForeignKeyConstraintError:
        logger.info(
            "mapper.foreign_key_violation",
            extra={"model": model_part, "fields": columns, "constraint": constraint_name},
        )
        if columns:
            return ModelError(f"{model_part} referenced entity not found for field(s): {', '.join(columns)}",
                              fields=columns, constraint=constraint_name)
        return ModelError(f"{model_part} foreign key constraint violated", constraint=constraint_name)

    raw = str(exc.orig) if exc.orig is not None else str(exc)

    if exc_cls is CheckConstraintError:
        # raw DB text stays at DEBUG
        logger.debug(
            "mapper.check_constraint_failure",
            extra={"model": model_part, "raw": raw, "constraint": constraint_name},
        )
        return ModelError(f"{model_part} business rule violated (check constraint).", constraint=constraint_name)

    logger.warning(
        "mapper.unknown_integrity_error",
        extra={"model": model_part, "constraint": constraint_name},
    )
    logger.debug("mapper.unknown_integrity_raw", extra={"model": model_part, "raw": raw})
    return ModelError(f"{model_part} database integrity error.", constraint=constraint_name)


def map_validation_error(exc: pydantic.ValidationError, model_name: str | None = None) -> ValidationError:
    """Turn a pydantic ValidationError into a ValidationError listing the failing fields."""
    fields = []
    for error in exc.errors():
        loc = ".".join(str(part) for part in error.get("loc", ()))
        if loc and loc not in fields:
            fields.append(loc)

    model_part = model_name or "Record"
    logger.info("mapper.validation_failed", extra={"model": model_part, "fields": fields})
    return ValidationError(f"Invalid {model_part} data for field(s): {', '.join(fields)}", fields=fields)


def to_app_error(exc: BaseException, model_name: str | None = None) -> BaseException:
    """
    Generic translation of database-level errors into the application taxonomy.

    Returns the mapped error, or `exc` itself when the error is not recognised
    (callers check `mapped is exc` to decide whether to chain).
    """
    if isinstance(exc, ModelError):
        return exc

    if isinstance(exc, IntegrityError):
        return map_integrity_error(exc, model_name)

    if isinstance(exc, pydantic.ValidationError):
        return map_validation_error(exc, model_name)

    if isinstance(exc, UnknownFieldError):
        logger.info("mapper.invalid_fields", extra={"model": model_name, "invalid_fields": exc.fields})
        return InvalidFieldError(str(exc), fields=exc.fields)

    if isinstance(exc, DataError):
        logger.debug("mapper.data_error_raw", extra={"model": model_name, "raw": str(exc.orig)})
        return ModelError(f"Invalid value for {model_name or 'record'}", error_code="invalid_input")

    if isinstance(exc, (OperationalError, InterfaceError)):
        logger.error("mapper.database_unavailable", extra={"model": model_name, "error_type": type(exc.orig).__name__})
        return DatabaseUnavailableError(f"Database unavailable while operating on {model_name or 'database'}")

    return exc


# -----------------------
# Async context manager to DRY error handling in model operations
# -----------------------
@asynccontextmanager
async def normalize_errors(
    runtime: Any,
    model_name: str,
    operation: str,
    *,
    deletes: bool = False,
    updates: bool = False,
) -> AsyncIterator[None]:
    """
    Usage:
        async with normalize_errors(runtime, cls.__name__, "update", updates=True):
            model = await super().update(data, options)

    Runtime signals are re-raised as application errors; other errors go through
    `to_app_error()`. Unrecognised errors propagate as the original object.
    """
    not_found_signals = (runtime.NotFoundError, runtime.EmptyError)
    deleted_signals = (runtime.NoRowsDeletedError,) if deletes else ()
    updated_signals = (runtime.NoRowsUpdatedError,) if updates else ()

    try:
        yield
    except not_found_signals as exc:
        logger.info("model.not_found", extra={"model": model_name, "operation": operation})
        raise NotFoundError(f"{model_name} not found") from exc
    except deleted_signals as exc:
        logger.info("model.no_rows_deleted", extra={"model": model_name, "operation": operation})
        raise NoRowsDeletedError(f"No {model_name} rows deleted") from exc
    except updated_signals as exc:
        logger.info("model.no_rows_updated", extra={"model": model_name, "operation": operation})
        raise NoRowsUpdatedError(f"No {model_name} rows updated") from exc
    except ModelError:
        raise
    except Exception as exc:
        mapped = to_app_error(exc, model_name)
        if mapped is exc:
            logger.exception("Unmapped error for %s.%s", model_name, operation,
                             extra={"model": model_name, "operation": operation})
            raise
        raise mapped from exc
