"""
SQLite schema for the planning dashboard store.

The store is used as a document store: every record is kept whole as a
JSON document in the ``data`` column, and the fields the API filters or
sorts on are copied into indexed columns next to it.

Schema Design:
- projects: one row per project, keyed by slug
- tasks: one row per task, keyed by (project, id), so ids may repeat
  across projects
- outputs: one row per output, keyed by its globally unique id
- sync_state: single row recording the last published sync
- schema_info: version tracking
"""

import sqlite3

SCHEMA_VERSION = 1

SCHEMA_DDL = """
CREATE TABLE IF NOT EXISTS schema_info (
    version INTEGER PRIMARY KEY,
    applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    description TEXT
);

CREATE TABLE IF NOT EXISTS projects (
    slug TEXT PRIMARY KEY,
    status TEXT,
    priority TEXT,
    stakeholder TEXT,
    planner TEXT,
    last_updated TEXT,
    data JSON NOT NULL,
    stored_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

-- Composite key: the same task id may exist in different projects
CREATE TABLE IF NOT EXISTS tasks (
    project TEXT NOT NULL,
    id TEXT NOT NULL,
    status TEXT,
    owner TEXT,
    priority TEXT,
    updated TEXT,
    data JSON NOT NULL,
    stored_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,

    PRIMARY KEY (project, id)
);

CREATE TABLE IF NOT EXISTS outputs (
    id TEXT PRIMARY KEY,
    project TEXT,
    task TEXT,
    last_modified TEXT,
    data JSON NOT NULL,
    stored_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS sync_state (
    id INTEGER PRIMARY KEY CHECK (id = 1),
    last_sync TEXT,
    synced_at REAL
);

CREATE INDEX IF NOT EXISTS idx_projects_status ON projects(status);
CREATE INDEX IF NOT EXISTS idx_projects_priority ON projects(priority);
CREATE INDEX IF NOT EXISTS idx_projects_last_updated ON projects(last_updated);

CREATE INDEX IF NOT EXISTS idx_tasks_status ON tasks(status);
CREATE INDEX IF NOT EXISTS idx_tasks_owner ON tasks(owner);
CREATE INDEX IF NOT EXISTS idx_tasks_updated ON tasks(updated);

CREATE INDEX IF NOT EXISTS idx_outputs_project ON outputs(project);
CREATE INDEX IF NOT EXISTS idx_outputs_task ON outputs(task);
CREATE INDEX IF NOT EXISTS idx_outputs_last_modified ON outputs(last_modified);
"""


def create_schema(conn: sqlite3.Connection) -> None:
    """
    Apply the DDL and stamp the schema version.

    Every statement is ``IF NOT EXISTS``, so re-running it on an existing
    store changes nothing.
    """
    conn.executescript(SCHEMA_DDL)
    conn.execute(
        "INSERT OR REPLACE INTO schema_info (version, description) VALUES (?, ?)",
        (SCHEMA_VERSION, "Projects, tasks, outputs and sync state"),
    )
    conn.commit()


def get_schema_version(conn: sqlite3.Connection) -> int | None:
    """Highest applied schema version, or None on a fresh database."""
    try:
        row = conn.execute("SELECT MAX(version) AS version FROM schema_info").fetchone()
    except sqlite3.OperationalError:
        return None

    if row is None:
        return None
    # Rows are tuples until dict_factory is installed
    version = row["version"] if isinstance(row, dict) else row[0]
    return int(version) if version is not None else None


def needs_migration(conn: sqlite3.Connection) -> bool:
    """
    Check whether the store predates the current schema.

    Example:
        >>> conn = sqlite3.connect(":memory:")
        >>> needs_migration(conn)
        True
        >>> create_schema(conn)
        >>> needs_migration(conn)
        False
    """
    version = get_schema_version(conn)
    return version is None or version < SCHEMA_VERSION
