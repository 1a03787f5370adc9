"""
Database utilities for PostgreSQL + Apache AGE.

Provides the connection pool and AGE extension/session setup.
"""

from kg_age.db.connection import GraphPool, PoolHealth
from kg_age.db.schema import initialize_age, setup_session

__all__ = ["GraphPool", "PoolHealth", "initialize_age", "setup_session"]
