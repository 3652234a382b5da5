
# crudbase/
# │
# ├── exceptions/
# │   ├── __init__.py
# │   ├── base.py                    # App-level errors (e.g. NotFoundError, DuplicateError)
# │   ├── integrity_classifier.py    # SQL-level / DB-specific constraint labels
# │   └── mapper.py                  # Map runtime and DB errors to app-level errors

from .base import (
    DatabaseUnavailableError,
    DuplicateError,
    IllegalArgumentError,
    InvalidFieldError,
    ModelError,
    NoRowsDeletedError,
    NoRowsUpdatedError,
    NotFoundError,
    ValidationError,
)
from .mapper import normalize_errors, to_app_error

__all__ = [
    "ModelError",
    "IllegalArgumentError",
    "NotFoundError",
    "NoRowsDeletedError",
    "NoRowsUpdatedError",
    "DuplicateError",
    "InvalidFieldError",
    "ValidationError",
    "DatabaseUnavailableError",
    "normalize_errors",
    "to_app_error",
]
