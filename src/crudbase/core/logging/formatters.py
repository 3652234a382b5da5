"""
Custom logging formatters.

  - JsonFormatter: structured JSON lines for log collectors. Includes service, env,
    version and correlation id, plus whatever the call site passed in `extra`.
    Event-style messages ("model.create.success") keep their fields queryable.

  - ColorFormatter: compact ANSI-coloured lines for a developer terminal.

builder.py picks one per handler from `Settings.LOG_FORMAT`.
"""

import json
import logging
from typing import Any
from logging import LogRecord

from .utils import get_project_version

PROJECT_VERSION = get_project_version()

# attributes every LogRecord has; anything else on a record came from `extra`
_RESERVED_ATTRS = frozenset(vars(LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime"}


class JsonFormatter(logging.Formatter):
    """
    Structured JSON formatter.

    Construction:
      - env: environment name (e.g. "development" | "production"); optional.
      - service: logical service name included in every line.
      - datefmt: optional date format passed to logging.Formatter (used by formatTime).

    Non-serialisable extras are converted with `str()`, so formatting never raises.
    """

    def __init__(self, *, env: str | None = None, service: str = "crudbase", datefmt: str | None = None):
        super().__init__(datefmt=datefmt)
        self.env = env
        self.service = service

    def format(self, record: LogRecord) -> str:
        log_record: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "pathname": record.pathname,
            "lineno": record.lineno,
            "correlation_id": getattr(record, "correlation_id", "-"),
            "service": self.service,
            "env": self.env,
            "version": PROJECT_VERSION,
        }

        if record.exc_info:
            log_record["exc_info"] = self.formatException(record.exc_info)
        if record.stack_info:
            log_record["stack_info"] = self.formatStack(record.stack_info)

        for key, value in record.__dict__.items():
            if key in log_record or key in _RESERVED_ATTRS or key.startswith("_"):
                continue
            try:
                json.dumps(value)
                log_record[key] = value
            except (TypeError, ValueError):
                log_record[key] = str(value)

        return json.dumps(log_record, ensure_ascii=False, default=str)


class ColorFormatter(logging.Formatter):
    """
    Development-friendly coloured formatter:

        TIMESTAMP | LEVEL | LOGGER | CORRELATION_ID | MESSAGE

    Only the level name is coloured. Tracebacks are appended on the next line.
    """

    COLOR_CODES = {
        "DEBUG": "\033[1;36;47m",   # bold cyan on white
        "INFO": "\033[32m",         # green
        "WARNING": "\033[33m",      # yellow
        "ERROR": "\033[31m",        # red
        "CRITICAL": "\033[1;41m",   # bold on red
        "RESET": "\033[0m",
    }

    def __init__(self, fmt: str | None = None, datefmt: str | None = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)

    def format(self, record: LogRecord) -> str:
        color = self.COLOR_CODES.get(record.levelname, "")
        reset = self.COLOR_CODES["RESET"]
        timestamp = self.formatTime(record, self.datefmt)

        base = (
            f"{timestamp} | {color}{record.levelname:<10}{reset} | "
            f"{record.name:<30} | "
            f"{getattr(record, 'correlation_id', '-'):<10} | "
            f"{record.getMessage()}"
        )

        if record.exc_info:
            base = base + "\n" + self.formatException(record.exc_info)

        return base
