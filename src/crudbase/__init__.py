"""
crudbase: uniform async CRUD models over SQLAlchemy.

    from crudbase import Runtime, create_model

    runtime = Runtime.from_url("sqlite+aiosqlite:///./app.db")
    Base = create_model(runtime)
"""
from .db import Options, Runtime, TimestampMixin
from .exceptions import (
    DatabaseUnavailableError,
    DuplicateError,
    IllegalArgumentError,
    InvalidFieldError,
    ModelError,
    NoRowsDeletedError,
    NoRowsUpdatedError,
    NotFoundError,
    ValidationError,
    to_app_error,
)
from .models import create_model

__all__ = [
    "Runtime",
    "Options",
    "TimestampMixin",
    "create_model",
    "to_app_error",
    "ModelError",
    "IllegalArgumentError",
    "NotFoundError",
    "NoRowsDeletedError",
    "NoRowsUpdatedError",
    "DuplicateError",
    "InvalidFieldError",
    "ValidationError",
    "DatabaseUnavailableError",
]
