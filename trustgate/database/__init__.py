"""
Persistence for baselines, location clusters and decay history.

In-memory backends for tests and single-process use; SQLAlchemy backends for
SQLite (default) or any SQLAlchemy URL.
"""

from trustgate.database.sql_store import (
    SqlBaselineStore,
    SqlClusterStore,
    create_store_engine,
)
from trustgate.database.stores import (
    BaselineStore,
    InMemoryBaselineStore,
    InMemoryClusterStore,
    LocationClusterStore,
)

__all__ = [
    "BaselineStore",
    "InMemoryBaselineStore",
    "InMemoryClusterStore",
    "LocationClusterStore",
    "SqlBaselineStore",
    "SqlClusterStore",
    "create_store_engine",
]
