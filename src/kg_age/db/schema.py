"""
AGE extension setup.

Installs the extension once per database and prepares each session
(connection) for graph statements.
"""

import logging

import psycopg
from psycopg import AsyncConnection

from kg_age.db.connection import GraphPool
from kg_age.errors import InitializationError, redact

logger = logging.getLogger(__name__)

CREATE_EXTENSION_SQL = "CREATE EXTENSION IF NOT EXISTS age"
LOAD_AGE_SQL = "LOAD 'age'"
SEARCH_PATH_SQL = 'SET search_path = ag_catalog, "$user", public'

# Session state is per connection, so this runs on every acquired connection
SESSION_SETUP = (LOAD_AGE_SQL, SEARCH_PATH_SQL)


async def setup_session(conn: AsyncConnection) -> None:
    """Load AGE into the session and put ag_catalog on the search path."""
    for statement in SESSION_SETUP:
        await conn.execute(statement)


async def initialize_age(pool: GraphPool) -> None:
    """
    Ensure the AGE extension is installed and loadable.

    Must succeed before any graph operation is attempted.

    Raises:
        InitializationError: If any setup statement fails
    """
    async with pool.connection() as conn:
        try:
            await conn.execute(CREATE_EXTENSION_SQL)
            await setup_session(conn)
        except psycopg.Error as e:
            message = redact(e.diag.message_primary or str(e))
            logger.error("Error initializing AGE: %s", message)
            raise InitializationError(
                f"Could not initialize AGE: {message}", sqlstate=e.sqlstate
            ) from e

    logger.info("Apache AGE extension initialized successfully")
