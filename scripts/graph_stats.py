"""Quick graph statistics: node and edge counts per label.

Usage:
    uv run python scripts/graph_stats.py [graph_name ...]
"""

import sys

from rich.console import Console
from rich.table import Table

from kg_age.config import settings
from kg_age.errors import GraphError
from kg_age.graph import execute_graph_query, list_graphs
from kg_age.log import setup_logging
from kg_age.runtime import Interrupted, run

console = Console()

LABEL_COUNTS = """
MATCH (n)
RETURN label(n) AS label, count(n) AS count
"""

EDGE_COUNTS = """
MATCH ()-[r]->()
RETURN type(r) AS label, count(r) AS count
"""


async def collect(pool, graphs: list[str]) -> dict[str, tuple[list, list]]:
    graphs = graphs or await list_graphs(pool)
    stats = {}
    for graph in graphs:
        nodes = await execute_graph_query(pool, graph, LABEL_COUNTS, "label agtype, count agtype")
        edges = await execute_graph_query(pool, graph, EDGE_COUNTS, "label agtype, count agtype")
        stats[graph] = (nodes, edges)
    return stats


def main() -> int:
    setup_logging(settings.log_level)
    try:
        stats = run(lambda pool: collect(pool, sys.argv[1:]), settings)
    except Interrupted:
        return 0
    except GraphError as e:
        console.print(f"[bold red]Error:[/] {e}")
        return 1

    for graph, (nodes, edges) in stats.items():
        table = Table(title=f"Graph '{graph}'")
        table.add_column("Kind", style="cyan")
        table.add_column("Label", style="cyan")
        table.add_column("Count", justify="right", style="green")
        for row in nodes:
            table.add_row("node", row["label"], f"{row['count']:,}")
        for row in edges:
            table.add_row("edge", row["label"], f"{row['count']:,}")
        console.print(table)
    return 0


if __name__ == "__main__":
    sys.exit(main())
