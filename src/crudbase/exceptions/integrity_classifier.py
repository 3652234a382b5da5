"""
Classify SQLAlchemy IntegrityErrors into constraint kinds.

`classify_integrity_error()` answers "which constraint failed, and what is it
called?". The kinds are marker classes, not exceptions from the application
taxonomy: nothing raises them. `crudbase.exceptions.mapper` turns each kind
into the `ModelError` callers see.

Postgres drivers report a SQLSTATE (`pgcode` on psycopg, `sqlstate` on asyncpg),
which is authoritative. Other backends only give us message text.
"""
import logging
from enum import Enum
from typing import Type

from sqlalchemy.exc import IntegrityError

logger = logging.getLogger(__name__)

# =================================================================================================================
# Constraint kinds
# =================================================================================================================


class ConstraintViolation:
    """Marker base for the kind of constraint an IntegrityError violated."""


class UniqueConstraintError(ConstraintViolation):
    """Duplicate value for a unique column set."""


class NotNullConstraintError(ConstraintViolation):
    """A required column was left NULL."""


class ForeignKeyConstraintError(ConstraintViolation):
    """A reference points at a missing row."""


class CheckConstraintError(ConstraintViolation):
    """A CHECK expression evaluated false."""


class UnknownIntegrityError(ConstraintViolation):
    """Anything the classifier cannot place."""


# =================================================================================================================
# Postgres SQLSTATE codes
# =================================================================================================================

# https://www.postgresql.org/docs/current/errcodes-appendix.html
class PostgresErrorCodes(str, Enum):
    UNIQUE_VIOLATION = "23505"
    NOT_NULL_VIOLATION = "23502"
    FOREIGN_KEY_VIOLATION = "23503"
    CHECK_VIOLATION = "23514"


# drivers report plain strings, so key by `.value`
KIND_BY_SQLSTATE: dict[str, Type[ConstraintViolation]] = {
    PostgresErrorCodes.UNIQUE_VIOLATION.value: UniqueConstraintError,
    PostgresErrorCodes.NOT_NULL_VIOLATION.value: NotNullConstraintError,
    PostgresErrorCodes.FOREIGN_KEY_VIOLATION.value: ForeignKeyConstraintError,
    PostgresErrorCodes.CHECK_VIOLATION.value: CheckConstraintError,
}

# Checked in order against the lower-cased driver message.
KIND_BY_MESSAGE: tuple[tuple[Type[ConstraintViolation], tuple[str, ...]], ...] = (
    (UniqueConstraintError, ("unique constraint", "unique failed", "unique violation", "duplicate")),
    (NotNullConstraintError, ("not null constraint", "not null", "null value in column")),
    (ForeignKeyConstraintError, ("foreign key constraint", "foreign key", "is not present in table")),
    (CheckConstraintError, ("check constraint", "check failed")),
)


# =================================================================================================================
# Classifiers
# =================================================================================================================

def _constraint_name(orig) -> str | None:
    diag = getattr(orig, "diag", None)
    name = getattr(diag, "constraint_name", None)
    if name is None:
        # asyncpg: SQLAlchemy's adapted error wraps the driver error as __cause__
        name = getattr(getattr(orig, "__cause__", None), "constraint_name", None)
    return name


def _from_sqlstate(orig) -> tuple[Type[ConstraintViolation] | None, str | None]:
    sqlstate = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if not sqlstate:
        return None, None

    constraint_name = _constraint_name(orig)
    kind = KIND_BY_SQLSTATE.get(str(sqlstate))
    if kind is None:
        logger.warning(
            "integrity.unknown_sqlstate",
            extra={"sqlstate": sqlstate, "constraint": constraint_name},
        )
        logger.debug("integrity.unknown_sqlstate_raw", extra={"raw": repr(orig)})
        return UnknownIntegrityError, constraint_name

    logger.debug("integrity.classified", extra={"sqlstate": sqlstate, "kind": kind.__name__,
                                                "constraint": constraint_name})
    return kind, constraint_name


def _from_message(msg: str) -> Type[ConstraintViolation]:
    lowered = (msg or "").lower()
    for kind, needles in KIND_BY_MESSAGE:
        if any(needle in lowered for needle in needles):
            return kind

    logger.warning("integrity.unknown_message", extra={"message_snippet": (msg or "")[:200]})
    logger.debug("integrity.unknown_message_raw", extra={"raw": msg})
    return UnknownIntegrityError


def classify_integrity_error(exc: IntegrityError) -> tuple[Type[ConstraintViolation], str | None]:
    """
    Return `(kind, constraint_name)` for `exc`.

    The SQLSTATE wins when the driver reports one; otherwise the message text is
    matched and the constraint name is unknown (None).
    """
    orig = exc.orig
    kind, constraint_name = _from_sqlstate(orig)
    if kind is not None:
        return kind, constraint_name
    return _from_message(str(orig) if orig is not None else str(exc)), None
