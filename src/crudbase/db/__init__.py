from .base import NAMING_CONVENTION, TimestampMixin, make_declarative_base
from .errors import CompositePrimaryKeyError, EmptyError, NoRowsDeletedError, NoRowsUpdatedError, UnknownFieldError
from .modelbase import pluggable
from .options import Options
from .runtime import Runtime

__all__ = [
    "NAMING_CONVENTION",
    "TimestampMixin",
    "make_declarative_base",
    "CompositePrimaryKeyError",
    "EmptyError",
    "NoRowsDeletedError",
    "NoRowsUpdatedError",
    "UnknownFieldError",
    "pluggable",
    "Options",
    "Runtime",
]
