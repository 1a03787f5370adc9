"""
Cypher execution through AGE's cypher() SQL function.

A Cypher query is wrapped as

    SELECT * FROM cypher('<graph>', $cypher$ <query> $cypher$ [, %s]) AS (<columns>);

AGE only accepts a constant for the graph name and query text, so both are
inlined: the graph name after identifier validation, the query as a
dollar-quoted literal whose tag never occurs inside the query.
"""

import json
import logging
from collections.abc import Mapping
from typing import Any

import psycopg
from psycopg import AsyncConnection
from psycopg.rows import dict_row

from kg_age.db.connection import GraphPool
from kg_age.db.schema import setup_session
from kg_age.errors import GraphError, GraphSyntaxError, translate_error
from kg_age.graph.rows import RowSchema, validate_identifier

logger = logging.getLogger(__name__)

DOLLAR_TAG = "cypher"


def dollar_quote(body: str, tag: str = DOLLAR_TAG) -> str:
    """
    Quote ``body`` as a PostgreSQL dollar-quoted string.

    Picks the first of $cypher$, $cypher_1$, $cypher_2$, ... that does not
    occur in the body, so the body cannot close the literal early.
    """
    candidate = tag
    n = 0
    while f"${candidate}$" in body:
        n += 1
        candidate = f"{tag}_{n}"
    delimiter = f"${candidate}$"
    return f"{delimiter}\n{body}\n{delimiter}"


def build_cypher_statement(
    graph_name: str,
    query: str,
    columns: Any = None,
    params: Mapping[str, Any] | None = None,
) -> tuple[str, tuple[Any, ...] | None]:
    """
    Build the SQL statement that runs ``query`` on ``graph_name``.

    Args:
        graph_name: Graph to query (validated identifier)
        query: Cypher text
        columns: Result column declaration (see RowSchema.coerce)
        params: Cypher parameters ($name placeholders), bound as one agtype map

    Returns:
        (sql, args) ready for cursor.execute; args is None when nothing is bound
    """
    validate_identifier(graph_name, "graph name")
    schema = RowSchema.coerce(columns)
    if not isinstance(query, str) or not query.strip():
        raise GraphSyntaxError("Cypher query must be a non-empty string")

    args: tuple[Any, ...] | None = None
    param_sql = ""
    body = query.strip()
    if params is not None:
        args = (json.dumps(dict(params), default=str),)
        param_sql = ", %s"
        # psycopg treats % as a placeholder marker once arguments are bound
        body = body.replace("%", "%%")

    sql = (
        f"SELECT * FROM cypher('{graph_name}', {dollar_quote(body)}{param_sql}) "
        f"AS ({schema.column_definitions()});"
    )
    return sql, args


async def _run(
    conn: AsyncConnection,
    sql: str,
    args: tuple[Any, ...] | None,
    schema: RowSchema,
) -> list[Any]:
    async with conn.cursor(row_factory=dict_row) as cur:
        await cur.execute(sql, args)
        raw_rows = await cur.fetchall() if cur.description else []
    return [schema.decode(row) for row in raw_rows]


async def execute_graph_query(
    target: GraphPool | AsyncConnection,
    graph_name: str,
    query: str,
    columns: Any = None,
    params: Mapping[str, Any] | None = None,
) -> list[Any]:
    """
    Execute a Cypher query on a graph.

    Args:
        target: GraphPool (a connection is acquired and AGE session setup run)
            or a caller-held connection (session setup assumed done; the
            connection is left open for further statements)
        graph_name: Name of the graph to query
        query: Cypher query to execute
        columns: Expected result columns. One of: None (single "result"
            column), a signature string like "name agtype, age agtype",
            (name, type) pairs, a pydantic model class, or a RowSchema
        params: Values for $name placeholders in the Cypher text

    Returns:
        Decoded rows: model instances for typed columns, dicts otherwise

    Raises:
        InvalidIdentifierError: Bad graph or column name
        GraphNotFoundError: Graph does not exist
        GraphSyntaxError: Cypher did not parse
        RowDecodeError: Rows do not match the declared columns
        QueryError: Any other database error
    """
    schema = RowSchema.coerce(columns)
    sql, args = build_cypher_statement(graph_name, query, schema, params)

    try:
        if isinstance(target, GraphPool):
            async with target.connection() as conn:
                await setup_session(conn)
                rows = await _run(conn, sql, args, schema)
        else:
            rows = await _run(target, sql, args, schema)
    except psycopg.Error as e:
        error = translate_error(e, f"Cypher query on graph '{graph_name}'")
        logger.error("Error executing Cypher query: %s", error.message)
        raise error from e
    except GraphError as e:
        logger.error("Error executing Cypher query on graph '%s': %s", graph_name, e)
        raise

    logger.debug("Cypher query on '%s' returned %d rows", graph_name, len(rows))
    return rows
