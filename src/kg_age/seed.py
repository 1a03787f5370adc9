"""
Seed a graph with demonstration data.

Steps:
1. Initialize the AGE extension
2. Create the graph
3. Create Person nodes
4. Create KNOWS relationships
5. Verify by reading the persons back
"""

import logging

from pydantic import BaseModel
from rich.console import Console

from kg_age.db import GraphPool, initialize_age
from kg_age.graph import create_graph, drop_graph, execute_graph_query

logger = logging.getLogger(__name__)

DEFAULT_GRAPH = "memory_graph"

CREATE_PERSONS = """
CREATE (:Person {name: 'Alice', age: 30, occupation: 'Engineer'}),
       (:Person {name: 'Bob', age: 28, occupation: 'Designer'}),
       (:Person {name: 'Charlie', age: 32, occupation: 'Manager'})
"""

CREATE_KNOWS = [
    """
    MATCH (a:Person {name: 'Alice'}), (b:Person {name: 'Bob'})
    CREATE (a)-[:KNOWS {since: 2020}]->(b)
    """,
    """
    MATCH (b:Person {name: 'Bob'}), (c:Person {name: 'Charlie'})
    CREATE (b)-[:KNOWS {since: 2019}]->(c)
    """,
]

LIST_PERSONS = """
MATCH (p:Person)
RETURN p.name AS name, p.age AS age, p.occupation AS occupation
ORDER BY p.name
"""


class Person(BaseModel):
    """Row shape of the verification query."""

    name: str
    age: int
    occupation: str


async def seed_graph(
    pool: GraphPool,
    graph_name: str = DEFAULT_GRAPH,
    reset: bool = False,
    console: Console | None = None,
) -> list[Person]:
    """
    Populate ``graph_name`` with Person nodes and KNOWS relationships.

    Args:
        pool: Open connection pool
        graph_name: Graph to seed
        reset: Drop the graph first so re-running does not duplicate nodes
        console: Console for progress output

    Returns:
        The persons read back from the graph, ordered by name
    """
    console = console or Console()
    console.print("[bold]=== Starting Data Seeding ===[/]\n")

    console.print("1. Initializing Apache AGE extension...")
    await initialize_age(pool)
    console.print("   [green]✓[/] AGE initialized\n")

    if reset:
        console.print(f"   Dropping existing graph: {graph_name}...")
        await drop_graph(pool, graph_name, cascade=True, missing_ok=True)

    console.print(f"2. Creating graph: {graph_name}...")
    await create_graph(pool, graph_name)
    console.print("   [green]✓[/] Graph created\n")

    console.print("3. Creating nodes (Person entities)...")
    await execute_graph_query(pool, graph_name, CREATE_PERSONS)
    console.print("   [green]✓[/] Nodes created\n")

    console.print("4. Creating relationships (KNOWS)...")
    async with pool.session() as conn:
        async with conn.transaction():
            for statement in CREATE_KNOWS:
                await execute_graph_query(conn, graph_name, statement)
    console.print("   [green]✓[/] Relationships created\n")

    console.print("5. Verifying seeded data...")
    persons = await execute_graph_query(pool, graph_name, LIST_PERSONS, Person)
    console.print(f"   [green]✓[/] {len(persons)} persons created:")
    for person in persons:
        console.print(f"      - {person.name}: {person.age} years old, {person.occupation}")
    console.print()

    console.print("[bold green]=== Data Seeding Completed Successfully! ===[/]\n")
    logger.info("Seeded graph '%s' with %d persons", graph_name, len(persons))
    return persons
