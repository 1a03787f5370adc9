"""
Error taxonomy for kg_age.

Database errors are translated at the operation boundary into the classes
below. Messages are built from the server's primary diagnostic only, so the
generated SQL and the Cypher text never leak into user-facing output. The
original psycopg exception stays available as ``__cause__``.
"""

import re

import psycopg

# Server messages quote the offending token ("syntax error at or near ...")
_NEAR_FRAGMENT = re.compile(r'\s+at or near\s+".*"', re.DOTALL)
_END_OF_INPUT = re.compile(r"\s+at end of input", re.DOTALL)


class GraphError(Exception):
    """Base class for all kg_age errors."""

    def __init__(self, message: str, sqlstate: str | None = None):
        super().__init__(message)
        self.message = message
        self.sqlstate = sqlstate


class PoolTimeoutError(GraphError, TimeoutError):
    """No connection became available within the connect timeout."""


class PoolClosedError(GraphError):
    """The pool has been shut down."""


class GraphConnectionError(GraphError, ConnectionError):
    """The database server could not be reached or the connection broke."""


class InitializationError(GraphError):
    """The AGE extension could not be installed or loaded."""


class GraphNotFoundError(GraphError, LookupError):
    """The graph (or a label inside it) does not exist."""


class GraphSyntaxError(GraphError):
    """The Cypher text or the generated statement did not parse."""


class InvalidIdentifierError(GraphError, ValueError):
    """A graph or column name is not a plain identifier."""


class QueryError(GraphError):
    """Any other failure while executing a graph statement."""


class QueryTimeoutError(QueryError, TimeoutError):
    """The statement was cancelled by the server."""


class RowDecodeError(QueryError):
    """A result row did not match the declared column schema."""


class AgtypeDecodeError(RowDecodeError):
    """An agtype value could not be parsed."""


# SQLSTATE -> error class. Class 08 (connection exceptions) is matched by prefix.
_SQLSTATE_ERRORS: dict[str, type[GraphError]] = {
    "3F000": GraphNotFoundError,  # invalid_schema_name: AGE's "graph does not exist"
    "42704": GraphNotFoundError,  # undefined_object
    "42P01": GraphNotFoundError,  # undefined_table: missing label tables
    "42601": GraphSyntaxError,  # syntax_error
    "57014": QueryTimeoutError,  # query_canceled
}


def redact(message: str) -> str:
    """Strip statement fragments from a server error message."""
    message = message.strip().splitlines()[0] if message.strip() else message
    message = _NEAR_FRAGMENT.sub("", message)
    return _END_OF_INPUT.sub("", message)


def translate_error(exc: psycopg.Error, context: str | None = None) -> GraphError:
    """
    Map a psycopg error onto the kg_age taxonomy.

    Args:
        exc: Error raised by psycopg
        context: Short description of the failed operation (e.g. "create graph 'g'")

    Returns:
        GraphError subclass instance; the caller raises it ``from exc``
    """
    sqlstate = getattr(exc, "sqlstate", None)
    primary = exc.diag.message_primary or str(exc) or type(exc).__name__
    message = redact(primary)
    if context:
        message = f"{context}: {message}"

    if sqlstate and sqlstate in _SQLSTATE_ERRORS:
        error_cls = _SQLSTATE_ERRORS[sqlstate]
    elif (sqlstate and sqlstate.startswith("08")) or (
        sqlstate is None and isinstance(exc, psycopg.OperationalError)
    ):
        error_cls = GraphConnectionError
    else:
        error_cls = QueryError
    return error_cls(message, sqlstate=sqlstate)
