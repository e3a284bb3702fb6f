"""Shared fixtures: settings without an environment and an in-memory stand-in for the pool."""
from contextlib import asynccontextmanager

import pytest

from fogcontroller.core.config import Settings


class FakeCursor:
    """Records statements and replays queued `fetchone`/`fetchall` results in order."""

    def __init__(self, fetchone=None, fetchall=None, rowcount=1):
        self.executed = []
        self._fetchone = list(fetchone or [])
        self._fetchall = list(fetchall or [])
        self.rowcount = rowcount

    async def execute(self, sql, params=None):
        self.executed.append((" ".join(sql.split()), params))

    async def fetchone(self):
        return self._fetchone.pop(0) if self._fetchone else None

    async def fetchall(self):
        return self._fetchall.pop(0) if self._fetchall else []

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    def statements(self, prefix):
        return [sql for sql, _ in self.executed if sql.startswith(prefix)]


class FakeConnection:
    def __init__(self, cursor):
        self._cursor = cursor
        self.commits = 0

    def cursor(self):
        return self._cursor

    async def commit(self):
        self.commits += 1


@pytest.fixture
def settings():
    return Settings(
        POSTGRES_USER="fog",
        POSTGRES_PASSWORD="secret",
        POSTGRES_DB="fogcontroller",
        POSTGRES_HOST="localhost",
    )


@pytest.fixture
def fake_db(monkeypatch):
    """
    Replace `get_pool_connection` in a service module with a fake connection.

    Usage: `cur, conn = fake_db(service_module, fetchone=[...])`.
    """

    def install(module, fetchone=None, fetchall=None, rowcount=1):
        cursor = FakeCursor(fetchone=fetchone, fetchall=fetchall, rowcount=rowcount)
        conn = FakeConnection(cursor)

        @asynccontextmanager
        async def _get_pool_connection():
            yield conn

        monkeypatch.setattr(module, "get_pool_connection", _get_pool_connection)
        return cursor, conn

    return install


@pytest.fixture
def make_cursor():
    return FakeCursor
