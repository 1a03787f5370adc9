"""
Command-line interface for kg_age.

Commands:
- init-db: Install/load the AGE extension
- create-graph / drop-graph / list-graphs: Graph namespace lifecycle
- query: Run a Cypher query and print the rows
- seed: Populate a graph with demonstration data
- health: Report connection pool health
"""

from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Annotated, Any, TypeVar

import typer
from rich.console import Console
from rich.table import Table

from kg_age.config import settings
from kg_age.db import GraphPool, initialize_age
from kg_age.errors import GraphError
from kg_age.graph import create_graph, drop_graph, execute_graph_query, list_graphs
from kg_age.log import setup_logging
from kg_age.runtime import Interrupted, run
from kg_age.seed import DEFAULT_GRAPH, seed_graph

T = TypeVar("T")


class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


app = typer.Typer(
    name="kg-age",
    help="Apache AGE graph administration CLI",
    no_args_is_help=True,
)
console = Console()


@app.callback()
def configure(
    log_level: Annotated[
        LogLevel | None,
        typer.Option("--log-level", "-l", case_sensitive=False, help="Override KG_AGE_LOG_LEVEL"),
    ] = None,
):
    """Configure logging for every command."""
    setup_logging(log_level.value if log_level else settings.log_level)


def _run(main: Callable[[GraphPool], Awaitable[T]]) -> T:
    """Run a pool coroutine, mapping failures to exit codes."""
    try:
        return run(main, settings)
    except Interrupted:
        raise typer.Exit(code=0)
    except GraphError as e:
        console.print(f"[bold red]Error:[/] {e}")
        raise typer.Exit(code=1)


@app.command()
def init_db():
    """Install and load the Apache AGE extension."""
    console.print("[bold blue]Initializing Apache AGE extension...[/]")
    _run(initialize_age)
    console.print("[bold green]Done. AGE initialized[/]")


@app.command("create-graph")
def create_graph_cmd(
    name: str = typer.Argument(..., help="Graph name"),
):
    """Create a graph (no-op if it already exists)."""
    created = _run(lambda pool: create_graph(pool, name))
    if created:
        console.print(f"[green]Graph '{name}' created[/]")
    else:
        console.print(f"[yellow]Graph '{name}' already exists[/]")


@app.command("drop-graph")
def drop_graph_cmd(
    name: str = typer.Argument(..., help="Graph name"),
    cascade: bool = typer.Option(
        True, "--cascade/--no-cascade", help="Also drop the graph's labels and data"
    ),
    missing_ok: bool = typer.Option(
        False, "--missing-ok", help="Do not fail if the graph does not exist"
    ),
):
    """Drop a graph and (by default) all of its data."""
    dropped = _run(lambda pool: drop_graph(pool, name, cascade=cascade, missing_ok=missing_ok))
    if dropped:
        console.print(f"[green]Graph '{name}' dropped[/]")
    else:
        console.print(f"[yellow]Graph '{name}' does not exist[/]")


@app.command("list-graphs")
def list_graphs_cmd():
    """List all graphs in the database."""
    names = _run(list_graphs)
    if not names:
        console.print("[yellow]No graphs found[/]")
        return
    for name in names:
        console.print(f"  {name}")


@app.command()
def query(
    graph: str = typer.Argument(..., help="Graph to query"),
    cypher: str = typer.Argument(..., help="Cypher query text"),
    columns: str = typer.Option(
        "result agtype", "--columns", "-c", help='Result columns, e.g. "name agtype, age agtype"'
    ),
):
    """Run a Cypher query and print the result rows."""
    rows: list[dict[str, Any]] = _run(lambda pool: execute_graph_query(pool, graph, cypher, columns))
    if not rows:
        console.print("[yellow]No rows[/]")
        return

    table = Table(title=f"{graph}: {len(rows)} row(s)")
    for column in rows[0]:
        table.add_column(column, style="cyan")
    for row in rows:
        table.add_row(*(str(value) for value in row.values()))
    console.print(table)


@app.command()
def seed(
    graph: str = typer.Option(DEFAULT_GRAPH, "--graph", "-g", help="Graph to seed"),
    reset: bool = typer.Option(False, "--reset", help="Drop the graph before seeding"),
):
    """Populate a graph with demonstration Person data."""
    try:
        run(lambda pool: seed_graph(pool, graph, reset=reset, console=console), settings)
    except Interrupted:
        raise typer.Exit(code=0)
    except Exception as e:
        console.print(f"[bold red]Error seeding data:[/] {e}")
        raise typer.Exit(code=1)
    finally:
        console.print("Database connection closed.")


@app.command()
def health():
    """Report connection pool health."""
    status = _run(lambda pool: pool.health())
    table = Table(title="Connection Pool")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right", style="green")
    table.add_row("Healthy", "yes" if status.healthy else "[red]no[/]")
    table.add_row("Connections", f"{status.size}/{status.max_size}")
    table.add_row("Idle", str(status.idle))
    table.add_row("Waiting", str(status.waiting))
    console.print(table)
    if not status.healthy:
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
