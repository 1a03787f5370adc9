"""
Process runtime for commands that need a pool.

Opens the pool, runs one coroutine against it and always drains the pool
afterwards. SIGINT/SIGTERM cancel the running command; the pool is closed
and the process exits cleanly.
"""

import asyncio
import contextlib
import logging
import signal
from collections.abc import Awaitable, Callable
from typing import TypeVar

from kg_age.config import Settings
from kg_age.db.connection import GraphPool

logger = logging.getLogger(__name__)

T = TypeVar("T")

SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class Interrupted(Exception):
    """The command was stopped by SIGINT/SIGTERM."""

    def __init__(self, signum: int):
        super().__init__(f"Interrupted by {signal.Signals(signum).name}")
        self.signum = signum


async def run_with_pool(
    main: Callable[[GraphPool], Awaitable[T]],
    settings: Settings,
    pool: GraphPool | None = None,
) -> T:
    """
    Run ``main(pool)`` with an open pool.

    Raises:
        Interrupted: If a shutdown signal arrived while main was running
    """
    pool = pool or GraphPool(settings)
    loop = asyncio.get_running_loop()
    task = asyncio.current_task()
    received: list[int] = []

    def _on_signal(signum: int) -> None:
        logger.info("Received %s, shutting down", signal.Signals(signum).name)
        received.append(signum)
        task.cancel()

    installed = []
    for signum in SHUTDOWN_SIGNALS:
        # Not available on Windows event loops
        with contextlib.suppress(NotImplementedError, RuntimeError):
            loop.add_signal_handler(signum, _on_signal, signum)
            installed.append(signum)

    try:
        await pool.open()
        return await main(pool)
    except asyncio.CancelledError:
        if received:
            raise Interrupted(received[0]) from None
        raise
    finally:
        for signum in installed:
            loop.remove_signal_handler(signum)
        await pool.shutdown()


def run(main: Callable[[GraphPool], Awaitable[T]], settings: Settings) -> T:
    """Synchronous entry point around run_with_pool."""
    return asyncio.run(run_with_pool(main, settings))
