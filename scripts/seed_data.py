"""Seed the memory_graph with demonstration Person data.

Usage:
    uv run python scripts/seed_data.py [graph_name]
"""

import sys

from rich.console import Console

from kg_age.config import settings
from kg_age.log import setup_logging
from kg_age.runtime import Interrupted, run
from kg_age.seed import DEFAULT_GRAPH, seed_graph

console = Console()


def main() -> int:
    graph_name = sys.argv[1] if len(sys.argv) > 1 else DEFAULT_GRAPH
    setup_logging(settings.log_level)
    try:
        run(lambda pool: seed_graph(pool, graph_name, console=console), settings)
    except Interrupted:
        return 0
    except Exception as e:
        console.print(f"[bold red]Error seeding data:[/] {e}")
        return 1
    finally:
        console.print("Database connection closed.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
