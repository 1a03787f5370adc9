"""Pytest configuration and fixtures."""

import asyncio
from contextlib import asynccontextmanager

import pytest

from kg_age.config import Settings
from kg_age.db import GraphPool


def pytest_addoption(parser):
    """Add custom command line options."""
    parser.addoption(
        "--run-db",
        action="store_true",
        default=False,
        help="Run tests that require database connection",
    )


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "db: mark test as requiring database connection")


def pytest_collection_modifyitems(config, items):
    """Skip db tests unless --run-db is provided."""
    if config.getoption("--run-db"):
        # --run-db given: do not skip db tests
        return

    skip_db = pytest.mark.skip(reason="Need --run-db option to run database tests")
    for item in items:
        if "db" in item.keywords:
            item.add_marker(skip_db)


# ---------------------------------------------------------------------------
# In-memory stand-ins for psycopg connections and psycopg_pool
# ---------------------------------------------------------------------------


class FakeCursor:
    """Async cursor recording statements on its connection."""

    def __init__(self, conn):
        self.conn = conn
        self.description = None
        self._rows = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False

    async def execute(self, query, params=None):
        self.conn.executed.append((query, params))
        rows = self.conn.handler(query, params) if self.conn.handler else None
        self._rows = list(rows) if rows is not None else []
        self.description = [("column",)] if rows is not None else None
        return self

    async def fetchall(self):
        return self._rows

    async def fetchone(self):
        return self._rows[0] if self._rows else None


class FakeConnection:
    """
    Async connection double.

    ``handler(query, params)`` returns the result rows (list of dicts), None
    for statements without a result set, or raises.
    """

    def __init__(self, handler=None):
        self.handler = handler
        self.executed = []
        self.transactions = 0
        self.closed = False

    def cursor(self, row_factory=None):
        return FakeCursor(self)

    async def execute(self, query, params=None):
        return await FakeCursor(self).execute(query, params)

    @asynccontextmanager
    async def transaction(self):
        self.transactions += 1
        yield

    async def close(self):
        self.closed = True

    @property
    def statements(self):
        return [query for query, _ in self.executed]


class FakePsycopgPool:
    """Stand-in for psycopg_pool.AsyncConnectionPool."""

    name = "kg_age"

    def __init__(self, conn, conninfo=None, **kwargs):
        self.conn = conn
        self.conninfo = conninfo
        self.kwargs = kwargs
        self.opened = False
        self.closed = False
        self.open_error = None
        self.getconn_error = None
        self.checked_out = 0
        self.returned = 0
        self.checks = 0
        self.stats = {"pool_size": 1, "pool_available": 1, "requests_waiting": 0}

    async def open(self, wait=False, timeout=30.0):
        if self.open_error is not None:
            raise self.open_error
        self.opened = True

    async def close(self, timeout=5.0):
        self.closed = True

    async def getconn(self, timeout=None):
        if self.getconn_error is not None:
            raise self.getconn_error
        self.checked_out += 1
        return self.conn

    async def putconn(self, conn):
        self.returned += 1

    async def check(self):
        self.checks += 1

    def get_stats(self):
        return dict(self.stats)


@pytest.fixture
def test_settings():
    """Settings with defaults only (no environment, no .env file)."""
    return Settings(_env_file=None, open_retries=1)


@pytest.fixture
def fake_conn():
    return FakeConnection()


@pytest.fixture
def inner_pool(fake_conn):
    return FakePsycopgPool(fake_conn)


@pytest.fixture
def graph_pool(test_settings, inner_pool):
    """An open GraphPool backed by the fake psycopg pool."""

    def factory(conninfo, **kwargs):
        inner_pool.conninfo = conninfo
        inner_pool.kwargs = kwargs
        return inner_pool

    pool = GraphPool(test_settings, pool_factory=factory)
    asyncio.run(pool.open())
    return pool
