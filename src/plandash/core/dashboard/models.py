"""
Pydantic models for planning dashboard records and sync results.

These models provide type-safe data structures for:
- Project/Task/Output: Records parsed from the planning directory
- SyncData/CacheData: Snapshots published by the sync layer
- SyncResult/HealthStatus: Results reported to the CLI and API

Records serialize with camelCase field names (``successMetrics``,
``lastUpdated``...) because that is the shape the web UI and the push
webhook exchange. Python code uses the snake_case attribute names.
"""

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from plandash.core.dashboard.exceptions import InvalidPayloadError

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    """Default clock used by parsers and caches."""
    return datetime.now(timezone.utc)


def isoformat(value: datetime) -> str:
    """Format a datetime the way records store timestamps."""
    return value.isoformat().replace("+00:00", "Z")


class Priority(str, Enum):
    """Priority levels.

    P0 = Critical (highest priority)
    P1 = High
    P2 = Medium (default)
    P3 = Low
    P4 = Backlog (lowest priority)
    """

    P0 = "P0"
    P1 = "P1"
    P2 = "P2"
    P3 = "P3"
    P4 = "P4"

    @classmethod
    def parse(cls, value: str | None, default: "Priority | None" = None) -> "Priority":
        """
        Parse a free-form priority value.

        Accepts ``P1``/``p1``/``1`` and word forms (critical, high, medium,
        low, backlog). Unrecognized values fall back to ``default``.

        Args:
            value: Raw value from a document, or None when absent
            default: Fallback priority (P2 when not given)

        Returns:
            Priority enum value
        """
        fallback = default or cls.P2
        if value is None:
            return fallback

        raw = value.strip().lower()
        if raw in PRIORITY_WORDS:
            return PRIORITY_WORDS[raw]

        candidate = raw.upper() if raw.startswith("p") else f"P{raw}"
        try:
            return cls(candidate)
        except ValueError:
            logger.warning(f"Unknown priority '{value}', using {fallback.value}")
            return fallback


PRIORITY_WORDS: dict[str, Priority] = {
    "critical": Priority.P0,
    "high": Priority.P1,
    "medium": Priority.P2,
    "low": Priority.P3,
    "backlog": Priority.P4,
}


class TaskStatus(str, Enum):
    """Task workflow states."""

    TODO = "todo"
    IN_PROGRESS = "in_progress"
    REVIEW = "review"
    DONE = "done"
    BLOCKED = "blocked"

    @classmethod
    def parse(cls, value: str | None) -> "TaskStatus":
        """Parse a status value, falling back to TODO when unrecognized."""
        if value is None:
            return cls.TODO

        raw = "_".join(value.strip().lower().replace("-", " ").split())
        raw = TASK_STATUS_ALIASES.get(raw, raw)
        try:
            return cls(raw)
        except ValueError:
            logger.warning(f"Unknown task status '{value}', using {cls.TODO.value}")
            return cls.TODO


TASK_STATUS_ALIASES: dict[str, str] = {
    "open": "todo",
    "to_do": "todo",
    "pending": "todo",
    "in_review": "review",
    "complete": "done",
    "completed": "done",
    "closed": "done",
}


class ProjectStatus(str, Enum):
    """Project lifecycle states."""

    ACTIVE = "active"
    PLANNING = "planning"
    PAUSED = "paused"
    BLOCKED = "blocked"
    DONE = "done"
    ARCHIVED = "archived"

    @classmethod
    def parse(cls, value: str | None) -> "ProjectStatus":
        """Parse a status value, falling back to ACTIVE when unrecognized."""
        if value is None:
            return cls.ACTIVE

        raw = value.strip().lower()
        if raw in ("complete", "completed"):
            return cls.DONE
        try:
            return cls(raw)
        except ValueError:
            logger.warning(f"Unknown project status '{value}', using {cls.ACTIVE.value}")
            return cls.ACTIVE


class RecordModel(BaseModel):
    """Base for records exchanged with the UI (camelCase on the wire)."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=False,
    )

    def to_document(self) -> dict[str, Any]:
        """Serialize to the JSON document shape stored and served."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Project(RecordModel):
    """One project directory, parsed from its overview file.

    Example:
        >>> project = Project(
        ...     slug="project-alpha",
        ...     title="Alpha Launch",
        ...     objective="Ship alpha",
        ...     last_updated="2025-01-01T00:00:00Z",
        ...     path="/planning/project-alpha/00-OVERVIEW.md",
        ... )
        >>> project.status
        <ProjectStatus.ACTIVE: 'active'>
    """

    slug: str = Field(..., description="Directory-derived unique identifier")
    title: str = Field(..., description="Display title")
    objective: str = Field(..., description="Objective from the Snapshot section")
    success_metrics: list[str] = Field(default_factory=list, description="Success metrics")
    status: ProjectStatus = Field(default=ProjectStatus.ACTIVE)
    priority: Priority = Field(default=Priority.P2)
    stakeholder: str | None = None
    planner: str | None = None
    target_date: str | None = None
    last_updated: str = Field(..., description="ISO timestamp of the last update")
    path: str = Field(..., description="Source overview file")


class TaskOutput(RecordModel):
    """Denormalized summary of an output attached to a task."""

    title: str
    path: str | None = None
    description: str | None = None


class Task(RecordModel):
    """One task file, scoped to its project.

    ``(project, id)`` is unique; two projects may reuse the same id.
    """

    id: str = Field(..., description="Task id, e.g. T-003")
    project: str = Field(..., description="Owning project slug")
    title: str
    owner: str = "Unassigned"
    status: TaskStatus = TaskStatus.TODO
    priority: Priority = Priority.P2
    depends_on: str | None = None
    created: str
    updated: str
    goal: str | None = None
    acceptance_criteria: list[str] = Field(default_factory=list)
    outputs: list[TaskOutput] | None = None
    path: str


class Output(RecordModel):
    """One artifact file produced by a task."""

    id: str = Field(..., description="Globally unique output id")
    project: str
    task: str | None = None
    title: str
    output_type: str | None = None
    content: str | None = None
    path: str
    last_modified: str


class SyncData(RecordModel):
    """A fully parsed, mutually consistent bundle of records.

    Also the body accepted by the push webhook.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    projects: list[Project] = Field(default_factory=list)
    tasks: list[Task] = Field(default_factory=list)
    outputs: list[Output] = Field(default_factory=list)
    last_sync: str = Field(default_factory=lambda: isoformat(utc_now()))

    @classmethod
    def from_payload(cls, payload: Any) -> "SyncData":
        """
        Validate a push payload.

        All three record arrays are required; ``lastSync`` is optional.

        Args:
            payload: Decoded JSON body

        Returns:
            Validated SyncData

        Raises:
            InvalidPayloadError: If the payload is not an object, an array is
                missing, or a record fails validation
        """
        if not isinstance(payload, dict):
            raise InvalidPayloadError("Invalid sync data. Expected a JSON object")

        missing = [key for key in ("projects", "tasks", "outputs") if payload.get(key) is None]
        if missing:
            raise InvalidPayloadError(
                f"Invalid sync data. Missing required fields: {', '.join(missing)}"
            )

        try:
            return cls.model_validate(payload)
        except ValidationError as e:
            raise InvalidPayloadError(f"Invalid sync data: {e.error_count()} invalid field(s)") from e

    @property
    def counts(self) -> dict[str, int]:
        """Number of records of each kind."""
        return {
            "projects": len(self.projects),
            "tasks": len(self.tasks),
            "outputs": len(self.outputs),
        }


class CacheData(SyncData):
    """A SyncData snapshot stamped with its capture time (epoch seconds)."""

    timestamp: float = Field(..., description="Capture time in epoch seconds")


class HealthStatus(BaseModel):
    """Backend liveness report."""

    connected: bool
    message: str


class SyncResult(BaseModel):
    """Result of a sync trigger.

    Example:
        >>> result = SyncResult(success=True, action="synced", projects=3, tasks=12)
        >>> result.total
        15
    """

    success: bool = Field(..., description="Whether the sync completed successfully")
    action: str = Field(..., description="synced, refreshed, fresh, pushed or failed")
    projects: int = Field(default=0, ge=0)
    tasks: int = Field(default=0, ge=0)
    outputs: int = Field(default=0, ge=0)
    last_sync: str | None = None
    cache_age: int | None = Field(default=None, description="Age of fresh data in seconds")
    errors: list[str] = Field(default_factory=list)
    duration_seconds: float = Field(default=0.0, ge=0.0)

    @property
    def total(self) -> int:
        """Total records published."""
        return self.projects + self.tasks + self.outputs

    @property
    def stats(self) -> dict[str, int]:
        return {"projects": self.projects, "tasks": self.tasks, "outputs": self.outputs}


# Whitelisted exact-match filter fields per record kind, keyed by
# attribute name.
PROJECT_FILTER_FIELDS = ("status", "priority", "stakeholder", "planner")
TASK_FILTER_FIELDS = ("project", "status", "owner", "priority", "id")
OUTPUT_FILTER_FIELDS = ("project", "task")


def validate_filters(filters: dict[str, Any] | None, allowed: tuple[str, ...]) -> dict[str, str]:
    """
    Drop empty filter values and reject fields outside the whitelist.

    Args:
        filters: Requested filters (None values are ignored)
        allowed: Whitelisted field names

    Returns:
        Filters with string values

    Raises:
        ValueError: If a filter names a field that is not whitelisted
    """
    clean: dict[str, str] = {}
    for key, value in (filters or {}).items():
        if value is None or value == "":
            continue
        if key not in allowed:
            raise ValueError(f"Invalid filter field: {key}. Must be one of: {', '.join(allowed)}")
        clean[key] = value.value if isinstance(value, Enum) else str(value)
    return clean
