"""
Logging builder: create and apply a dictConfig logging configuration from Settings.

    from crudbase.config import get_settings
    from crudbase.core.logging import setup_logging

    setup_logging(get_settings())

`make_dict_config(settings)` is a pure function (easy to test); `setup_logging`
creates the log directory when needed and applies the mapping.

Handler selection:

| LOG_TO_STDOUT | LOG_DIR set | Active handlers                 |
| ------------- | ----------- | ------------------------------- |
| true          | any         | console + error_console         |
| false         | no          | console + error_console         |
| false         | yes         | console + file + error_file     |
"""

from pathlib import Path
import logging
import logging.config

from crudbase.config.settings import Settings

from .formatters import JsonFormatter, ColorFormatter
from .filters import CorrelationIdFilter, RedactFilter
from .handlers import (
    get_console_handler,
    get_file_handler,
    get_error_file_handler,
    get_error_console_handler,
)
from .utils import get_project_name

STANDARD_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(correlation_id)s | %(message)s"


def _writes_files(settings: Settings) -> bool:
    return (not settings.LOG_TO_STDOUT) and bool(settings.LOG_DIR)


def make_dict_config(settings: Settings) -> dict:
    """
    Build the dictConfig mapping for `settings`.

    The mapping includes:
      - formatters: "standard" (colour in text mode) and "json"
      - filters: "correlation_id", "redact"
      - handlers: console, then file/error_file or error_console
      - loggers: root, crudbase, sqlalchemy.engine
    """
    formatters = {
        "standard": {
            "()": ColorFormatter if settings.LOG_FORMAT == "text" else logging.Formatter,
            "format": STANDARD_FORMAT,
        },
        "json": {
            "()": JsonFormatter,
            "env": settings.ENV,
            "service": get_project_name(),
        },
    }

    filters = {
        "correlation_id": {"()": CorrelationIdFilter},
        "redact": {"()": RedactFilter},
    }

    handlers: dict[str, dict] = {"console": get_console_handler(settings)}

    if _writes_files(settings):
        handlers["file"] = get_file_handler(settings)
        handlers["error_file"] = get_error_file_handler(settings)
    else:
        handlers["error_console"] = get_error_console_handler(settings)

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": formatters,
        "filters": filters,
        "handlers": handlers,
        "loggers": {
            "": {
                "handlers": list(handlers.keys()),
                "level": settings.LOG_LEVEL,
                "propagate": True,
            },
            "crudbase": {
                "level": settings.LOG_LEVEL,
                "propagate": True,
            },
            # SQL echo may contain row values; keep it opt-in
            "sqlalchemy.engine": {
                "level": "DEBUG" if settings.ENABLE_SQL_LOGGING else "WARNING",
                "handlers": ["console"],
                "propagate": False,
            },
        },
    }


def setup_logging(settings: Settings) -> None:
    """
    Apply the logging configuration for `settings`.

    Creates LOG_DIR first when file handlers are enabled, and attaches a
    CorrelationIdFilter to the root logger so `%(correlation_id)s` is always set.
    """
    if _writes_files(settings):
        Path(settings.LOG_DIR).mkdir(parents=True, exist_ok=True)

    logging.config.dictConfig(make_dict_config(settings))
    logging.getLogger().addFilter(CorrelationIdFilter())
