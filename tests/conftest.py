"""Fixtures shared across the pristine test suite."""

from pristine.backend.sqlite import SQLiteBackend
from pristine.config import ConfigResolver

import pytest


@pytest.fixture()
def sqlite_handler(tmp_path):
    """Provide a connection handler connected to a fresh SQLite database."""
    descriptor = ConfigResolver({"test": "sqlite3://test.db"}, root=str(tmp_path)).resolve("test")
    backend = SQLiteBackend()
    backend.reset(descriptor)
    yield backend.handler
    backend.handler.disconnect()
