"""
Graph namespace lifecycle: create, drop, list.

Graph names are validated as identifiers and passed to AGE's catalog
functions as bound parameters.
"""

import logging

import psycopg
from psycopg.errors import DuplicateSchema

from kg_age.db.connection import GraphPool
from kg_age.db.schema import setup_session
from kg_age.errors import GraphNotFoundError, translate_error
from kg_age.graph.rows import validate_identifier

logger = logging.getLogger(__name__)

GRAPH_EXISTS_SQL = "SELECT 1 FROM ag_catalog.ag_graph WHERE name = %s"
LIST_GRAPHS_SQL = "SELECT name FROM ag_catalog.ag_graph"
CREATE_GRAPH_SQL = "SELECT ag_catalog.create_graph(%s)"
DROP_GRAPH_SQL = "SELECT ag_catalog.drop_graph(%s, %s)"


async def create_graph(pool: GraphPool, graph_name: str) -> bool:
    """
    Create a new graph unless it already exists.

    Args:
        pool: Connection pool
        graph_name: Name of the graph to create

    Returns:
        True if the graph was created, False if it already existed
    """
    validate_identifier(graph_name, "graph name")
    async with pool.connection() as conn:
        try:
            await setup_session(conn)
            cur = await conn.execute(GRAPH_EXISTS_SQL, (graph_name,))
            if await cur.fetchone() is not None:
                logger.info("Graph '%s' already exists", graph_name)
                return False

            await conn.execute(CREATE_GRAPH_SQL, (graph_name,))
        except DuplicateSchema:
            # Lost a race with a concurrent create of the same graph
            logger.info("Graph '%s' already exists", graph_name)
            return False
        except psycopg.Error as e:
            error = translate_error(e, f"Error creating graph '{graph_name}'")
            logger.error("%s", error.message)
            raise error from e

    logger.info("Graph '%s' created successfully", graph_name)
    return True


async def drop_graph(
    pool: GraphPool,
    graph_name: str,
    cascade: bool = True,
    missing_ok: bool = False,
) -> bool:
    """
    Drop a graph.

    Args:
        pool: Connection pool
        graph_name: Name of the graph to drop
        cascade: Also drop the graph's labels and all their data (default: True)
        missing_ok: Return False instead of raising if the graph does not exist

    Returns:
        True if the graph was dropped

    Raises:
        GraphNotFoundError: If the graph does not exist and missing_ok is False
    """
    validate_identifier(graph_name, "graph name")
    async with pool.connection() as conn:
        try:
            await setup_session(conn)
            await conn.execute(DROP_GRAPH_SQL, (graph_name, cascade))
        except psycopg.Error as e:
            error = translate_error(e, f"Error dropping graph '{graph_name}'")
            if missing_ok and isinstance(error, GraphNotFoundError):
                logger.info("Graph '%s' does not exist, nothing to drop", graph_name)
                return False
            logger.error("%s", error.message)
            raise error from e

    logger.info("Graph '%s' dropped successfully", graph_name)
    return True


async def list_graphs(pool: GraphPool) -> list[str]:
    """
    Get all graphs in the database.

    Returns:
        Graph names, in catalog order
    """
    async with pool.connection() as conn:
        try:
            await setup_session(conn)
            cur = await conn.execute(LIST_GRAPHS_SQL)
            rows = await cur.fetchall()
        except psycopg.Error as e:
            error = translate_error(e, "Error listing graphs")
            logger.error("%s", error.message)
            raise error from e

    return [_name(row) for row in rows]


async def graph_exists(pool: GraphPool, graph_name: str) -> bool:
    """Check whether a graph with this name exists."""
    validate_identifier(graph_name, "graph name")
    async with pool.connection() as conn:
        try:
            await setup_session(conn)
            cur = await conn.execute(GRAPH_EXISTS_SQL, (graph_name,))
            return await cur.fetchone() is not None
        except psycopg.Error as e:
            error = translate_error(e, f"Error checking graph '{graph_name}'")
            logger.error("%s", error.message)
            raise error from e


def _name(row) -> str:
    # Pool connections return dicts; plain connections return tuples
    return str(row["name"] if isinstance(row, dict) else row[0])
