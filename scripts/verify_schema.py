"""Verify the AGE catalog: extension version, graphs and their labels."""

import sys

import psycopg
from rich.console import Console

from kg_age.config import settings
from kg_age.db import setup_session
from kg_age.errors import GraphError, translate_error
from kg_age.log import setup_logging
from kg_age.runtime import Interrupted, run

console = Console()

SQL = """
SELECT g.name AS graph, l.name AS label, l.kind
FROM ag_catalog.ag_label l
JOIN ag_catalog.ag_graph g ON l.graph = g.graphid
ORDER BY g.name, l.kind, l.name
"""


async def fetch(pool):
    async with pool.connection() as conn:
        try:
            await setup_session(conn)
            version = await (
                await conn.execute("SELECT extversion FROM pg_extension WHERE extname = 'age'")
            ).fetchone()
            labels = await (await conn.execute(SQL)).fetchall()
        except psycopg.Error as e:
            raise translate_error(e, "Error reading the AGE catalog") from e
    return version, labels


def main() -> int:
    setup_logging(settings.log_level)
    try:
        version, rows = run(fetch, settings)
    except Interrupted:
        return 0
    except GraphError as e:
        console.print(f"[bold red]Error:[/] {e}")
        return 1

    console.print(f"AGE extension: {version['extversion'] if version else 'not installed'}")
    console.print("Graph labels:")
    for r in rows:
        ltype = "NODE" if r["kind"] == "v" else "EDGE"
        console.print(f"  {ltype:5} {r['graph']}.{r['label']}")

    console.print(f"\nTotal: {len(rows)} labels")
    return 0


if __name__ == "__main__":
    sys.exit(main())
