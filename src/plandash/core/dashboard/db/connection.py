"""
Opening the SQLite store and running queries against it.

Connection strings use a small URL form (see parse_store_url). File
databases are opened in WAL mode so API reads do not wait on a sync in
progress; every connection returns rows as dicts and gets the schema on
first open.

Usage:
    conn = open_connection("sqlite:///.plandash/dashboard.db")
    rows = execute_query(conn, "SELECT data FROM projects WHERE status = ?", ("active",))
"""

import sqlite3
from pathlib import Path
from typing import Any

from plandash.core.dashboard.db.schema import create_schema, needs_migration

MEMORY_DATABASE = ":memory:"
SQLITE_SCHEME = "sqlite://"


def dict_factory(cursor: sqlite3.Cursor, row: tuple[Any, ...]) -> dict[str, Any]:
    """Row factory mapping column names to values."""
    fields = [column[0] for column in cursor.description]
    return dict(zip(fields, row))


def parse_store_url(url: str) -> str:
    """
    Convert a store connection string into a SQLite database path.

    Accepted forms:
    - ``sqlite:///relative/path.db``
    - ``sqlite:////absolute/path.db``
    - ``sqlite://:memory:`` or ``:memory:``
    - a bare file path

    Args:
        url: Connection string

    Returns:
        Database path (or ``:memory:``)

    Raises:
        ValueError: If the URL uses a scheme other than sqlite

    Example:
        >>> parse_store_url("sqlite:///.plandash/dashboard.db")
        '.plandash/dashboard.db'
        >>> parse_store_url("sqlite:////var/lib/plandash.db")
        '/var/lib/plandash.db'
    """
    url = url.strip()
    if not url:
        raise ValueError("Store URL is empty")

    if url.startswith(SQLITE_SCHEME):
        path = url[len(SQLITE_SCHEME):]
        if path.startswith("/"):
            path = path[1:]
        return path or MEMORY_DATABASE

    if "://" in url:
        scheme = url.split("://", 1)[0]
        raise ValueError(f"Unsupported store URL scheme: {scheme}")

    return url


def configure_connection(conn: sqlite3.Connection, *, wal: bool = True) -> None:
    """
    Apply journaling and the dict row factory to a new connection.

    WAL is skipped for in-memory databases, which do not support it.
    """
    if wal:
        conn.execute("PRAGMA journal_mode=WAL")

    conn.row_factory = dict_factory


def open_connection(url: str, *, timeout: float = 10.0) -> sqlite3.Connection:
    """
    Open and configure a connection to the store, applying the schema.

    The connection may be shared across threads; callers serialize access.

    Args:
        url: Store connection string (see parse_store_url)
        timeout: Seconds to wait on a locked database

    Returns:
        Configured SQLite connection
    """
    path = parse_store_url(url)
    in_memory = path == MEMORY_DATABASE

    if not in_memory:
        Path(path).parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(path, timeout=timeout, check_same_thread=False)
    configure_connection(conn, wal=not in_memory)

    if needs_migration(conn):
        create_schema(conn)

    return conn


def execute_query(
    conn: sqlite3.Connection,
    query: str,
    params: tuple[Any, ...] | dict[str, Any] | None = None,
) -> list[dict[str, Any]]:
    """Run a query and fetch every row."""
    rows: list[dict[str, Any]] = conn.execute(query, params or ()).fetchall()
    return rows


def execute_one(
    conn: sqlite3.Connection,
    query: str,
    params: tuple[Any, ...] | dict[str, Any] | None = None,
) -> dict[str, Any] | None:
    """Run a query and fetch the first row, or None."""
    row: dict[str, Any] | None = conn.execute(query, params or ()).fetchone()
    return row
