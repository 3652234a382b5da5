"""
Logging filters

Correlation ID filter and helpers.

A correlation id ties together every log line produced while handling one unit of
work (a request, a job, a CLI command). The id lives in a `contextvars.ContextVar`,
so it follows asyncio tasks across `await` boundaries and concurrent operations do
not see each other's ids.

    with correlation_scope() as cid:
        await Widget.create({"name": "bolt"})   # every record carries `cid`

`CorrelationIdFilter` guarantees each `LogRecord` has a `correlation_id`
attribute (the real id or the sentinel "-"), so formatters referencing
`%(correlation_id)s` never KeyError.

`RedactFilter` masks record attributes whose names look sensitive before any
handler formats them.
"""

import logging
import uuid
import contextvars
from contextlib import contextmanager
from logging import LogRecord
from typing import Iterator

_correlation_id_ctx: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "correlation_id", default=None
)


def set_correlation_id(correlation_id: str | None):
    """
    Set the correlation id in the current context and return the token to allow reset.
    """
    return _correlation_id_ctx.set(correlation_id)


def reset_correlation_id(token) -> None:
    _correlation_id_ctx.reset(token)


def get_correlation_id() -> str | None:
    """Return the current context's correlation id, or None if none has been set."""
    return _correlation_id_ctx.get()


@contextmanager
def correlation_scope(correlation_id: str | None = None) -> Iterator[str]:
    """
    Bind a correlation id (a fresh UUID4 when not given) for the duration of the block.
    The previous value is restored on exit.
    """
    cid = correlation_id or str(uuid.uuid4())
    token = set_correlation_id(cid)
    try:
        yield cid
    finally:
        reset_correlation_id(token)


class CorrelationIdFilter(logging.Filter):
    """
    Guarantee every LogRecord has a `correlation_id` attribute.

    Precedence: an explicit `extra={"correlation_id": ...}`, then the contextvar,
    then the sentinel "-". Always returns True; it only annotates.
    """

    def filter(self, record: LogRecord) -> bool:
        record.correlation_id = (
            getattr(record, "correlation_id", None) or get_correlation_id() or "-"
        )
        return True


class RedactFilter(logging.Filter):
    SENSITIVE = {"password", "secret", "token", "access_token", "refresh_token", "ssn", "authorization"}
    MASK = "***REDACTED***"

    def filter(self, record: LogRecord) -> bool:
        for key in list(record.__dict__.keys()):
            if key.lower() in self.SENSITIVE:
                record.__dict__[key] = self.MASK
        return True
