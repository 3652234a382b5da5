"""
Core pytest configuration for the entire test suite.

This module provides only the database and logging setup shared by ALL tests.
Model fixtures live in tests/test_fixtures/model_fixtures.py and are imported
at the bottom so every test module can use them without importing.
"""

from __future__ import annotations

# -------------------------------
# Standard library imports
# -------------------------------
import os
import logging
from pathlib import Path
from urllib.parse import urlparse
from typing import AsyncGenerator

# -------------------------------
# Early logging tuning (IMPORTANT)
# -------------------------------
# Quiet noisy third-party loggers at import time, before crudbase or Faker get imported.
NOISY_LOGGERS = (
    "faker",
    "faker.factory",
    "sqlalchemy",
    "sqlalchemy.engine",
    "sqlalchemy.engine.Engine",
    "aiosqlite",
    "asyncio",
)
for _name in NOISY_LOGGERS:
    logging.getLogger(_name).setLevel(logging.WARNING)

# -------------------------------
# Third-party / project imports
# -------------------------------
import pytest

from crudbase.core.logging.builder import setup_logging
from crudbase.db.runtime import Runtime

from .test_fixtures.settings_fixtures import make_test_settings

logger = logging.getLogger(__name__)


@pytest.fixture(scope="session", autouse=True)
def configure_logging():
    """
    Install crudbase logging once for the whole session, so formatters and filters
    run on every record the tests produce (a broken formatter fails loudly here).
    """
    setup_logging(make_test_settings())
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    yield


# ------------------------------------------------------------------------------------------------
# Test database URL
# ------------------------------------------------------------------------------------------------


def safe_log_db_url(db_url: str) -> str:
    """Return the database URL without credentials, for logging."""
    parsed = urlparse(db_url)
    return f"{parsed.scheme}://{parsed.hostname or ''}:{parsed.port or ''}/{parsed.path.lstrip('/')}"


def get_test_database_url(tmp_path: Path) -> str:
    """
    Determine the test database URL.

    1. `TEST_DATABASE_URL` environment variable (CI override, e.g. a Postgres database)
    2. otherwise a throwaway SQLite file in the test's tmp_path, so every test
       starts from an empty database
    """
    if test_url := os.getenv("TEST_DATABASE_URL"):
        return test_url
    return f"sqlite+aiosqlite:///{tmp_path / 'test_database.db'}"


# ------------------------------------------------------------------------------------------------
# DATABASE FIXTURES
# ------------------------------------------------------------------------------------------------


@pytest.fixture
def database_url(tmp_path: Path) -> str:
    url = get_test_database_url(tmp_path)
    logger.debug(f"Using test DB: {safe_log_db_url(url)}")
    return url


@pytest.fixture
async def runtime(database_url: str) -> AsyncGenerator[Runtime, None]:
    """
    A fresh runtime per test, with its own declarative base.

    Teardown drops every table the test created (a no-op cost for SQLite files,
    required when TEST_DATABASE_URL points at a shared server) and disposes the pool.
    """
    rt = Runtime.from_url(database_url)
    try:
        yield rt
    finally:
        await rt.drop_all()
        await rt.dispose()


# Model fixtures
from .test_fixtures.model_fixtures import (  # noqa: E402,F401
    widget_base,
    plain_base,
    widget_model,
    gadget_model,
    widget_payload,
    create_widget,
    created_widget,
    multiple_widgets,
)
