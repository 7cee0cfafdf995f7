"""
Pytest fixtures for primate_store tests.

Unit tests run against an in-memory stand-in for the psycopg pool.
Integration tests require DATABASE_URL and are skipped when it is not set.
"""

import os
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

import pytest
from dotenv import load_dotenv

from services.primate_store.db.connector import Database

# Load .env only locally; in CI it comes via workflow env
load_dotenv()


class FakeCursor:
    """Cursor returning canned rows."""

    def __init__(self):
        self.load()

    def load(self, rows: Optional[List[Dict[str, Any]]] = None, has_result: bool = True, rowcount: int = None):
        """Set the rows, result-set presence and row count of the next execution."""
        self._rows = rows or []
        self.description = [("column",)] if has_result else None
        self.rowcount = len(self._rows) if rowcount is None else rowcount

    async def fetchall(self):
        return list(self._rows)


class FakeConnection:
    """Connection recording every executed statement."""

    def __init__(self, cursor: FakeCursor = None, error: Exception = None):
        self.cursor = cursor or FakeCursor()
        self.error = error
        self.executed = []

    async def execute(self, query, params=None):
        self.executed.append((query, params))
        if self.error is not None:
            raise self.error
        return self.cursor


class FakePool:
    """Minimal AsyncConnectionPool lookalike."""

    name = "fake-pool"
    min_size = 1
    max_size = 5

    def __init__(self, connection: FakeConnection = None):
        self.conn = connection or FakeConnection()
        self.checkouts = 0
        self.opened = False
        self.closed = False
        self.open_error = None

    @asynccontextmanager
    async def connection(self):
        self.checkouts += 1
        yield self.conn

    async def open(self, wait: bool = False, timeout: float = 30.0):
        if self.open_error is not None:
            raise self.open_error
        self.opened = True

    async def close(self):
        self.closed = True


@pytest.fixture
def fake_pool() -> FakePool:
    return FakePool()


@pytest.fixture
def db(fake_pool: FakePool) -> Database:
    """Database wired to the fake pool."""
    return Database(fake_pool)


def get_database_url() -> str | None:
    """Get database URL from environment."""
    return os.environ.get("DATABASE_URL")


@pytest.fixture(scope="module")
def database_url() -> str:
    """
    Get database URL, skip if not set.

    This fixture ensures integration tests only run when
    a real PostgreSQL database is available.
    """
    url = get_database_url()
    if not url:
        pytest.skip("requires PostgreSQL integration DB (set DATABASE_URL)")
    return url
