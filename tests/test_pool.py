"""Tests for the connection pool wrapper."""

import asyncio

import pytest
from psycopg_pool import PoolClosed, PoolTimeout

from kg_age.db import GraphPool
from kg_age.db.schema import LOAD_AGE_SQL, SEARCH_PATH_SQL
from kg_age.errors import GraphConnectionError, PoolClosedError, PoolTimeoutError

from conftest import FakeConnection, FakePsycopgPool


def test_pool_configuration(graph_pool, inner_pool, test_settings):
    """Test that settings reach psycopg_pool."""
    kwargs = inner_pool.kwargs
    assert kwargs["max_size"] == test_settings.pool_max_size
    assert kwargs["timeout"] == test_settings.pool_connect_timeout
    assert kwargs["max_idle"] == test_settings.pool_idle_timeout
    assert kwargs["kwargs"]["autocommit"] is True
    assert kwargs["open"] is False
    assert f"dbname={test_settings.db}" in inner_pool.conninfo
    assert inner_pool.opened


def test_acquire_and_release(graph_pool, inner_pool, fake_conn):
    async def scenario():
        conn = await graph_pool.acquire()
        assert conn is fake_conn
        await graph_pool.release(conn)

    asyncio.run(scenario())
    assert inner_pool.checked_out == 1
    assert inner_pool.returned == 1


def test_connection_context_releases_on_error(graph_pool, inner_pool):
    async def scenario():
        async with graph_pool.connection():
            raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        asyncio.run(scenario())
    assert inner_pool.returned == 1


def test_timeout(graph_pool, inner_pool):
    """Test that pool exhaustion surfaces as a TimeoutError."""
    inner_pool.getconn_error = PoolTimeout("couldn't get a connection after 2.00 sec")
    with pytest.raises(PoolTimeoutError) as exc_info:
        asyncio.run(graph_pool.acquire())
    assert isinstance(exc_info.value, TimeoutError)
    assert "2.0s" in str(exc_info.value)


def test_inner_pool_closed(graph_pool, inner_pool):
    inner_pool.getconn_error = PoolClosed("the pool 'kg_age' is already closed")
    with pytest.raises(PoolClosedError):
        asyncio.run(graph_pool.acquire())


def test_shutdown_rejects_acquire(graph_pool, inner_pool):
    asyncio.run(graph_pool.shutdown())
    assert inner_pool.closed
    with pytest.raises(PoolClosedError):
        asyncio.run(graph_pool.acquire())
    # second shutdown is a no-op
    asyncio.run(graph_pool.shutdown())
    with pytest.raises(PoolClosedError):
        asyncio.run(graph_pool.open())


def test_acquire_before_open(test_settings):
    pool = GraphPool(test_settings)
    with pytest.raises(PoolClosedError):
        asyncio.run(pool.acquire())


def test_session_applies_setup(graph_pool, fake_conn):
    async def scenario():
        async with graph_pool.session() as conn:
            return conn

    assert asyncio.run(scenario()) is fake_conn
    assert fake_conn.statements == [LOAD_AGE_SQL, SEARCH_PATH_SQL]


def test_open_gives_up_after_retries(test_settings):
    """Test that opening retries and then fails with a connection error."""
    settings = test_settings.model_copy(update={"open_retries": 2})
    built = []

    def factory(conninfo, **kwargs):
        inner = FakePsycopgPool(FakeConnection(), conninfo, **kwargs)
        inner.open_error = PoolTimeout("pool initialization incomplete after 2.0 sec")
        built.append(inner)
        return inner

    pool = GraphPool(settings, pool_factory=factory)
    with pytest.raises(GraphConnectionError):
        asyncio.run(pool.open())
    assert len(built) == 2
    assert all(inner.closed for inner in built)


def test_open_is_idempotent(graph_pool, inner_pool):
    asyncio.run(graph_pool.open())
    assert inner_pool.opened


class TestHealth:
    def test_healthy(self, graph_pool, inner_pool):
        status = asyncio.run(graph_pool.health())
        assert status.healthy
        assert status.size == 1
        assert status.max_size == graph_pool.max_size
        assert inner_pool.checks == 1

    def test_reconnect_failure_marks_unhealthy(self, graph_pool, inner_pool):
        inner_pool.stats["pool_size"] = 0
        graph_pool._on_reconnect_failed(inner_pool)
        status = asyncio.run(graph_pool.health())
        assert not status.healthy
        assert status.last_failure is not None

    def test_recovers(self, graph_pool, inner_pool):
        graph_pool._on_reconnect_failed(inner_pool)
        status = asyncio.run(graph_pool.health())
        assert status.healthy

    def test_closed(self, graph_pool):
        asyncio.run(graph_pool.shutdown())
        status = asyncio.run(graph_pool.health())
        assert status.closed
        assert not status.healthy
