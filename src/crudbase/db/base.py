"""
Declarative bases for model definitions.

Every `Runtime` owns its own declarative base (and therefore its own `MetaData`),
so two runtimes in one process never share table definitions.
"""
from datetime import datetime

from sqlalchemy import DateTime, MetaData
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.sql import func


# Naming convention for constraints and indexes
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s"
}


def make_declarative_base(name: str = "Base") -> type[DeclarativeBase]:
    """Create a fresh DeclarativeBase subclass with its own MetaData."""
    return type(name, (DeclarativeBase,), {
        "__module__": __name__,
        "metadata": MetaData(naming_convention=NAMING_CONVENTION),
    })


class TimestampMixin:
    """
    Adds `created_at` / `updated_at` columns maintained by the database.

    `update()` also stamps `updated_at` explicitly, so the value moves even on
    backends where `onupdate` does not fire for bulk statements.
    """

    # Automatically set when the row is inserted
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )

    # Automatically updated whenever the row is modified
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False
    )
