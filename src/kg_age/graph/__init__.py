"""
Graph operations on PostgreSQL + Apache AGE.

Provides:
- Graph namespace lifecycle (create, drop, list)
- Cypher execution through the cypher() SQL wrapper
- agtype decoding (vertices, edges, paths)
- Typed result rows
"""

from kg_age.graph.agtype import Edge, Path, Vertex
from kg_age.graph.lifecycle import create_graph, drop_graph, graph_exists, list_graphs
from kg_age.graph.query import build_cypher_statement, execute_graph_query
from kg_age.graph.rows import RowSchema, validate_identifier

__all__ = [
    "create_graph",
    "drop_graph",
    "graph_exists",
    "list_graphs",
    "execute_graph_query",
    "build_cypher_statement",
    "RowSchema",
    "validate_identifier",
    "Vertex",
    "Edge",
    "Path",
]
