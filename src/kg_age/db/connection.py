"""
PostgreSQL connection pool management.

Uses psycopg 3 with psycopg_pool's AsyncConnectionPool.
https://www.psycopg.org/psycopg3/docs/advanced/pool.html

One GraphPool is built per process and handed to every graph operation.
Connections run in autocommit mode, so each statement is its own implicit
transaction unless the caller opens one on a held connection.
"""

import logging
import time
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any

import psycopg
from psycopg import AsyncConnection
from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool, PoolClosed, PoolTimeout
from tenacity import (
    AsyncRetrying,
    RetryError,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from kg_age.config import Settings
from kg_age.errors import GraphConnectionError, PoolClosedError, PoolTimeoutError

logger = logging.getLogger(__name__)


@dataclass
class PoolHealth:
    """Snapshot of pool health."""

    healthy: bool
    closed: bool
    size: int
    idle: int
    waiting: int
    max_size: int
    last_failure: float | None = None


class GraphPool:
    """
    Bounded pool of PostgreSQL connections.

    Usage:
        pool = GraphPool(settings)
        await pool.open()
        async with pool.connection() as conn:
            await conn.execute("SELECT 1")
        await pool.shutdown()
    """

    def __init__(
        self,
        settings: Settings,
        pool_factory: Callable[..., Any] = AsyncConnectionPool,
    ):
        self.settings = settings
        self._pool_factory = pool_factory
        self._pool: Any = None
        self._closed = False
        self._last_failure: float | None = None

    @property
    def max_size(self) -> int:
        return self.settings.pool_max_size

    @property
    def connect_timeout(self) -> float:
        return self.settings.pool_connect_timeout

    def _build_pool(self) -> Any:
        s = self.settings
        return self._pool_factory(
            s.conninfo(),
            min_size=min(s.pool_min_size, s.pool_max_size),
            max_size=s.pool_max_size,
            timeout=s.pool_connect_timeout,
            max_idle=s.pool_idle_timeout,
            reconnect_timeout=s.pool_reconnect_timeout,
            reconnect_failed=self._on_reconnect_failed,
            check=AsyncConnectionPool.check_connection,
            kwargs={"autocommit": True, "row_factory": dict_row},
            name="kg_age",
            open=False,
        )

    def _on_reconnect_failed(self, pool: Any) -> None:
        """Called by psycopg_pool once reconnecting has failed for reconnect_timeout."""
        self._last_failure = time.monotonic()
        logger.error(
            "Pool %r could not reconnect to %s:%s for %.0fs; marking unhealthy",
            pool.name,
            self.settings.host,
            self.settings.port,
            self.settings.pool_reconnect_timeout,
        )

    async def open(self) -> None:
        """
        Open the pool and wait until the first connection is ready.

        Retries with exponential backoff while the server is unreachable.

        Raises:
            GraphConnectionError: If the pool could not be opened
            PoolClosedError: If the pool was already shut down
        """
        if self._closed:
            raise PoolClosedError("Connection pool has been shut down")
        if self._pool is not None:
            return

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.settings.open_retries),
            wait=wait_exponential(multiplier=1, min=1, max=10),
            retry=retry_if_exception_type((PoolTimeout, psycopg.OperationalError)),
            before_sleep=before_sleep_log(logger, logging.WARNING),
        )
        try:
            async for attempt in retrying:
                with attempt:
                    pool = self._build_pool()
                    try:
                        await pool.open(wait=True, timeout=self.connect_timeout)
                    except BaseException:
                        await pool.close()
                        raise
        except RetryError as e:
            cause = e.last_attempt.exception()
            logger.error(
                "Could not connect to PostgreSQL at %s:%s: %s",
                self.settings.host,
                self.settings.port,
                cause,
            )
            raise GraphConnectionError(
                f"Cannot connect to PostgreSQL at {self.settings.host}:{self.settings.port}"
            ) from cause

        self._pool = pool
        self._last_failure = None
        logger.info(
            "Connection pool open (%s:%s/%s, max %d)",
            self.settings.host,
            self.settings.port,
            self.settings.db,
            self.max_size,
        )

    def _require_pool(self) -> Any:
        if self._closed:
            raise PoolClosedError("Connection pool has been shut down")
        if self._pool is None:
            raise PoolClosedError("Connection pool is not open")
        return self._pool

    async def acquire(self) -> AsyncConnection:
        """
        Take a connection from the pool.

        Waits while every connection is busy and the pool is at max size.

        Raises:
            PoolTimeoutError: If no connection frees up within the connect timeout
            PoolClosedError: If the pool has been shut down
        """
        pool = self._require_pool()
        try:
            return await pool.getconn(timeout=self.connect_timeout)
        except PoolTimeout as e:
            logger.error("Timed out after %.1fs waiting for a connection", self.connect_timeout)
            raise PoolTimeoutError(
                f"No connection available within {self.connect_timeout:.1f}s "
                f"(pool max size {self.max_size})"
            ) from e
        except PoolClosed as e:
            raise PoolClosedError("Connection pool has been shut down") from e

    async def release(self, conn: AsyncConnection) -> None:
        """Return a connection to the pool."""
        if self._pool is None:
            await conn.close()
            return
        await self._pool.putconn(conn)

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[AsyncConnection]:
        """Acquire a connection for the duration of the block."""
        conn = await self.acquire()
        try:
            yield conn
        finally:
            await self.release(conn)

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncConnection]:
        """
        Acquire a connection with AGE session setup already applied.

        Hand the connection to execute_graph_query for batch work; wrap the
        calls in ``conn.transaction()`` to make them atomic.
        """
        from kg_age.db.schema import setup_session

        async with self.connection() as conn:
            await setup_session(conn)
            yield conn

    async def shutdown(self) -> None:
        """Drain and close every connection. Later acquisitions fail."""
        if self._closed:
            return
        self._closed = True
        if self._pool is not None:
            logger.info("Closing database pool...")
            await self._pool.close()
            logger.info("Database connection closed.")

    async def health(self) -> PoolHealth:
        """
        Check pool health.

        Runs the pool's connection check (broken idle connections are
        discarded and replaced) and reports pool statistics.
        """
        if self._closed or self._pool is None:
            return PoolHealth(
                healthy=False,
                closed=True,
                size=0,
                idle=0,
                waiting=0,
                max_size=self.max_size,
                last_failure=self._last_failure,
            )

        await self._pool.check()
        stats = self._pool.get_stats()
        size = stats.get("pool_size", 0)
        if size > 0:
            # recovered since the last reconnect failure
            self._last_failure = None
        return PoolHealth(
            healthy=self._last_failure is None,
            closed=False,
            size=size,
            idle=stats.get("pool_available", 0),
            waiting=stats.get("requests_waiting", 0),
            max_size=self.max_size,
            last_failure=self._last_failure,
        )

    async def __aenter__(self) -> "GraphPool":
        await self.open()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.shutdown()
