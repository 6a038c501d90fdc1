"""
Durable store for parsed planning records.

ProjectStore keeps projects, tasks and outputs in SQLite. Each record is
stored whole as a JSON document; the fields used for filtering and sorting
are duplicated into indexed columns.

One connection is opened lazily on first use and shared by every caller.
All statements run under a lock, and every batch write is its own
transaction, so a batch for one record kind is applied completely or not
at all. ``sync_all()`` writes the three kinds concurrently and is therefore
not atomic across kinds.

Example:
    >>> store = ProjectStore("sqlite://:memory:")
    >>> store.sync_all(scanner.scan())
    >>> store.get_projects({"status": "active"})
    [Project(slug='project-alpha', ...)]
    >>> store.close()
"""

import json
import logging
import sqlite3
import threading
import time
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeVar

from plandash.core.dashboard.db.connection import execute_one, execute_query, open_connection
from plandash.core.dashboard.exceptions import (
    PartialSyncError,
    StoreError,
    StoreUnavailableError,
)
from plandash.core.dashboard.models import (
    OUTPUT_FILTER_FIELDS,
    PROJECT_FILTER_FIELDS,
    TASK_FILTER_FIELDS,
    HealthStatus,
    Output,
    Project,
    RecordModel,
    SyncData,
    Task,
    validate_filters,
)

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=RecordModel)


@dataclass(frozen=True)
class RecordKind(Generic[R]):
    """
    Table layout for one record kind.

    Column names equal model attribute names, so rows are built with
    getattr() and filters map straight onto columns.
    """

    name: str
    table: str
    model: type[R]
    key: tuple[str, ...]
    columns: tuple[str, ...]
    filters: tuple[str, ...]
    sort_column: str

    def row(self, record: R) -> tuple[Any, ...]:
        values = []
        for column in self.columns:
            value = getattr(record, column)
            values.append(value.value if isinstance(value, Enum) else value)
        values.append(json.dumps(record.to_document()))
        return tuple(values)

    def upsert_sql(self) -> str:
        columns = (*self.columns, "data")
        placeholders = ", ".join("?" for _ in columns)
        updates = ", ".join(
            f"{column} = excluded.{column}" for column in columns if column not in self.key
        )
        return (
            f"INSERT INTO {self.table} ({', '.join(columns)}) VALUES ({placeholders}) "
            f"ON CONFLICT({', '.join(self.key)}) DO UPDATE SET "
            f"{updates}, stored_at = CURRENT_TIMESTAMP"
        )

    def order_by(self) -> str:
        tiebreak = ", ".join(f"{column} ASC" for column in self.key)
        return f"ORDER BY {self.sort_column} DESC, {tiebreak}"

    def load(self, row: dict[str, Any]) -> R:
        return self.model.model_validate(json.loads(row["data"]))


PROJECTS: RecordKind[Project] = RecordKind(
    name="projects",
    table="projects",
    model=Project,
    key=("slug",),
    columns=("slug", "status", "priority", "stakeholder", "planner", "last_updated"),
    filters=PROJECT_FILTER_FIELDS,
    sort_column="last_updated",
)

TASKS: RecordKind[Task] = RecordKind(
    name="tasks",
    table="tasks",
    model=Task,
    key=("project", "id"),
    columns=("project", "id", "status", "owner", "priority", "updated"),
    filters=TASK_FILTER_FIELDS,
    sort_column="updated",
)

OUTPUTS: RecordKind[Output] = RecordKind(
    name="outputs",
    table="outputs",
    model=Output,
    key=("id",),
    columns=("id", "project", "task", "last_modified"),
    filters=OUTPUT_FILTER_FIELDS,
    sort_column="last_modified",
)


class ProjectStore:
    """
    SQLite-backed store for projects, tasks and outputs.

    Args:
        url: Connection string (sqlite:///path.db, sqlite://:memory:, or a path)
        max_workers: Threads used by sync_all()
        clock: Epoch-seconds clock used to stamp syncs
    """

    def __init__(
        self,
        url: str,
        *,
        max_workers: int = 3,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.url = url
        self.max_workers = max_workers
        self.clock = clock
        self._conn: sqlite3.Connection | None = None
        self._lock = threading.RLock()

    # Connection lifecycle

    def connect(self) -> sqlite3.Connection:
        """
        Return the shared connection, opening it on first use.

        Raises:
            StoreUnavailableError: If the database cannot be opened
        """
        with self._lock:
            if self._conn is None:
                try:
                    self._conn = open_connection(self.url)
                except (sqlite3.Error, OSError, ValueError) as e:
                    logger.error(f"Failed to connect to store {self.url}: {e}")
                    raise StoreUnavailableError(f"Cannot open store {self.url}: {e}") from e
                logger.info(f"Connected to store {self.url}")
            return self._conn

    def close(self) -> None:
        """Close the shared connection. The next operation reconnects."""
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None
                logger.info("Store connection closed")

    def health_check(self) -> HealthStatus:
        """Ping the store without touching any records."""
        try:
            with self._lock:
                self.connect().execute("SELECT 1").fetchone()
        except (StoreError, sqlite3.Error) as e:
            return HealthStatus(connected=False, message=f"Store unreachable: {e}")
        return HealthStatus(connected=True, message="Store connection healthy")

    # Generic operations

    def _upsert(self, kind: RecordKind[R], record: R) -> None:
        self._write_batch(kind, [record])

    def _write_batch(self, kind: RecordKind[R], records: Sequence[R]) -> int:
        if not records:
            return 0

        rows = [kind.row(record) for record in records]
        with self._lock:
            conn = self.connect()
            try:
                with conn:
                    conn.executemany(kind.upsert_sql(), rows)
            except sqlite3.Error as e:
                logger.error(f"Failed to store {len(rows)} {kind.name}: {e}")
                raise StoreError(f"Failed to store {kind.name}: {e}") from e

        logger.debug(f"Stored {len(rows)} {kind.name}")
        return len(rows)

    def _select(
        self,
        kind: RecordKind[R],
        where: dict[str, str],
        *,
        limit: int | None = None,
    ) -> list[R]:
        query = f"SELECT data FROM {kind.table}"
        if where:
            query += " WHERE " + " AND ".join(f"{column} = ?" for column in where)
        query += " " + kind.order_by()
        if limit is not None:
            query += f" LIMIT {int(limit)}"

        with self._lock:
            conn = self.connect()
            try:
                rows = execute_query(conn, query, tuple(where.values()))
            except sqlite3.Error as e:
                raise StoreError(f"Failed to query {kind.name}: {e}") from e

        return [kind.load(row) for row in rows]

    def _query(self, kind: RecordKind[R], filters: dict[str, Any] | None) -> list[R]:
        return self._select(kind, validate_filters(filters, kind.filters))

    def _get(self, kind: RecordKind[R], where: dict[str, str]) -> R | None:
        records = self._select(kind, where, limit=1)
        return records[0] if records else None

    def _delete(self, kind: RecordKind[R], where: dict[str, str]) -> bool:
        conditions = " AND ".join(f"{column} = ?" for column in where)
        with self._lock:
            conn = self.connect()
            try:
                with conn:
                    cursor = conn.execute(
                        f"DELETE FROM {kind.table} WHERE {conditions}",
                        tuple(where.values()),
                    )
            except sqlite3.Error as e:
                raise StoreError(f"Failed to delete from {kind.name}: {e}") from e
        return cursor.rowcount > 0

    # Projects

    def store_project(self, project: Project) -> None:
        self._upsert(PROJECTS, project)

    def get_project(self, slug: str) -> Project | None:
        return self._get(PROJECTS, {"slug": slug})

    def get_projects(self, filters: dict[str, Any] | None = None) -> list[Project]:
        """
        List projects, most recently updated first.

        Args:
            filters: Exact-match filters on status, priority, stakeholder, planner

        Returns:
            Matching projects

        Raises:
            ValueError: If a filter field is not allowed
        """
        return self._query(PROJECTS, filters)

    def delete_project(self, slug: str) -> bool:
        return self._delete(PROJECTS, {"slug": slug})

    def store_projects(self, projects: Sequence[Project]) -> int:
        return self._write_batch(PROJECTS, projects)

    # Tasks

    def store_task(self, task: Task) -> None:
        self._upsert(TASKS, task)

    def get_task(self, task_id: str, project: str | None = None) -> Task | None:
        """
        Look up a task by id.

        Task ids are only unique within a project; without ``project`` the
        most recently updated match is returned.
        """
        where = {"id": task_id}
        if project is not None:
            where["project"] = project
        return self._get(TASKS, where)

    def get_tasks(self, filters: dict[str, Any] | None = None) -> list[Task]:
        return self._query(TASKS, filters)

    def delete_task(self, task_id: str, project: str | None = None) -> bool:
        where = {"id": task_id}
        if project is not None:
            where["project"] = project
        return self._delete(TASKS, where)

    def store_tasks(self, tasks: Sequence[Task]) -> int:
        return self._write_batch(TASKS, tasks)

    # Outputs

    def store_output(self, output: Output) -> None:
        self._upsert(OUTPUTS, output)

    def get_output(self, output_id: str) -> Output | None:
        return self._get(OUTPUTS, {"id": output_id})

    def get_outputs(self, filters: dict[str, Any] | None = None) -> list[Output]:
        return self._query(OUTPUTS, filters)

    def delete_output(self, output_id: str) -> bool:
        return self._delete(OUTPUTS, {"id": output_id})

    def store_outputs(self, outputs: Sequence[Output]) -> int:
        return self._write_batch(OUTPUTS, outputs)

    # Full sync

    def sync_all(self, data: SyncData) -> dict[str, int]:
        """
        Store every record of a sync.

        The three record kinds are written concurrently, each in its own
        transaction. Records already in the store but absent from ``data``
        are left in place.

        Args:
            data: Complete sync bundle

        Returns:
            Count of stored records per kind

        Raises:
            StoreUnavailableError: If the store cannot be reached
            PartialSyncError: If one or more kinds failed to store
        """
        self.connect()

        batches: dict[str, Callable[[], int]] = {
            "projects": lambda: self.store_projects(data.projects),
            "tasks": lambda: self.store_tasks(data.tasks),
            "outputs": lambda: self.store_outputs(data.outputs),
        }

        committed: dict[str, int] = {}
        failed: dict[str, str] = {}
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = {executor.submit(batch): kind for kind, batch in batches.items()}
            for future in as_completed(futures):
                kind = futures[future]
                try:
                    committed[kind] = future.result()
                except StoreError as e:
                    failed[kind] = str(e)

        if failed:
            committed_kinds = [kind for kind in batches if kind in committed]
            raise PartialSyncError(committed_kinds, failed)

        self._record_sync(data.last_sync)
        logger.info(
            f"Synced {committed['projects']} projects, {committed['tasks']} tasks, "
            f"{committed['outputs']} outputs"
        )
        return {kind: committed[kind] for kind in batches}

    def _record_sync(self, last_sync: str) -> None:
        with self._lock:
            conn = self.connect()
            try:
                with conn:
                    conn.execute(
                        """
                        INSERT INTO sync_state (id, last_sync, synced_at)
                        VALUES (1, ?, ?)
                        ON CONFLICT(id) DO UPDATE SET
                            last_sync = excluded.last_sync,
                            synced_at = excluded.synced_at
                        """,
                        (last_sync, self.clock()),
                    )
            except sqlite3.Error as e:
                raise StoreError(f"Failed to record sync: {e}") from e

    def last_sync_info(self) -> dict[str, Any] | None:
        """
        Get the last completed sync.

        Returns:
            Dict with ``last_sync`` (ISO string) and ``synced_at`` (epoch
            seconds), or None if nothing was ever synced
        """
        with self._lock:
            conn = self.connect()
            try:
                return execute_one(conn, "SELECT last_sync, synced_at FROM sync_state WHERE id = 1")
            except sqlite3.Error as e:
                raise StoreError(f"Failed to read sync state: {e}") from e

    # Statistics

    def get_all_stats(self) -> dict[str, int]:
        """Count records of each kind."""
        stats: dict[str, int] = {}
        with self._lock:
            conn = self.connect()
            try:
                for kind in (PROJECTS, TASKS, OUTPUTS):
                    row = execute_one(conn, f"SELECT COUNT(*) AS count FROM {kind.table}")
                    stats[kind.name] = row["count"] if row else 0
            except sqlite3.Error as e:
                raise StoreError(f"Failed to count records: {e}") from e
        return stats

    def get_project_stats(self) -> dict[str, Any]:
        """
        Aggregate project counts by status and by priority.

        Returns:
            Dict with ``total``, ``by_status`` and ``by_priority``
        """
        with self._lock:
            conn = self.connect()
            try:
                by_status = execute_query(
                    conn,
                    "SELECT status, COUNT(*) AS count FROM projects GROUP BY status ORDER BY status",
                )
                by_priority = execute_query(
                    conn,
                    "SELECT priority, COUNT(*) AS count FROM projects "
                    "GROUP BY priority ORDER BY priority",
                )
            except sqlite3.Error as e:
                raise StoreError(f"Failed to aggregate projects: {e}") from e

        return {
            "total": sum(row["count"] for row in by_status),
            "by_status": {row["status"]: row["count"] for row in by_status},
            "by_priority": {row["priority"]: row["count"] for row in by_priority},
        }
