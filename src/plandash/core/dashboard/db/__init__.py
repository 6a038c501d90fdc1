"""
Database layer for the planning dashboard.

Provides the SQLite schema, connection helpers and the ProjectStore.
"""

from plandash.core.dashboard.db.connection import (
    configure_connection,
    dict_factory,
    open_connection,
    parse_store_url,
)
from plandash.core.dashboard.db.schema import SCHEMA_VERSION, create_schema, needs_migration
from plandash.core.dashboard.db.store import ProjectStore

__all__ = [
    "ProjectStore",
    "SCHEMA_VERSION",
    "configure_connection",
    "create_schema",
    "dict_factory",
    "needs_migration",
    "open_connection",
    "parse_store_url",
]
