"""
Logging setup.

All modules log through ``logging.getLogger(__name__)``; this configures the
root handler once, rendering with rich.
"""

import logging

from rich.console import Console
from rich.logging import RichHandler


def setup_logging(level: str = "INFO", console: Console | None = None) -> None:
    """
    Route log records to a RichHandler on stderr.

    Args:
        level: Log level name ("DEBUG", "INFO", "WARNING", "ERROR"; any case)
        console: Console to render on (defaults to a stderr console)
    """
    level = level.upper()
    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[handler],
        force=True,
    )
    # psycopg_pool is chatty at INFO about every connection it opens
    logging.getLogger("psycopg.pool").setLevel(max(logging.getLevelName(level), logging.WARNING))
