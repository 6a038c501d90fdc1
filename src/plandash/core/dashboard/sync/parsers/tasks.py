"""
Task parser for the dashboard sync layer.

Converts task files (project-*/tasks/T-*.md) into Task records.
Handles:
- Strict identity: the first heading must read ``# T-<digits>: <title>``
- Deriving the owning project from the directory layout
- Extracting the Goal section and the Acceptance Criteria checklist
- Reading owner/status/priority/dependencies/timestamps from ``## Meta``

A file whose heading does not match is malformed: it cannot be given an
identity, so it is skipped with a warning instead of failing the scan.
"""

import logging
import re
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

from plandash.core.dashboard.models import (
    Priority,
    Task,
    TaskStatus,
    isoformat,
    utc_now,
)
from plandash.core.dashboard.sync.parsers.meta import parse_meta_section
from plandash.core.dashboard.sync.parsers.rules import (
    FieldRule,
    MalformedDocumentError,
    extract_fields,
    parse_checklist,
    read_document,
)

logger = logging.getLogger(__name__)

DEFAULT_TASK_PREFIX = "T"
DEFAULT_OWNER = "Unassigned"


def build_task_rules(task_prefix: str = DEFAULT_TASK_PREFIX) -> tuple[FieldRule, ...]:
    """
    Build the extraction rules for task files.

    Args:
        task_prefix: Task id prefix (``T`` for ``T-003``)

    Returns:
        Rule table for TaskParser
    """
    heading = re.compile(rf"^# ({re.escape(task_prefix)}-\d+):[ \t]*(.+)$", re.MULTILINE)
    return (
        FieldRule("id", heading, group=1, required=True),
        FieldRule("title", heading, group=2, required=True),
        FieldRule("goal", re.compile(r"\A(.*)\Z", re.DOTALL), section="Goal"),
        FieldRule(
            "acceptance_criteria",
            re.compile(r"\A(.*)\Z", re.DOTALL),
            section="Acceptance Criteria",
            fallback=list,
            transform=parse_checklist,
        ),
    )


def normalize_task_id(task_id: str, task_prefix: str = DEFAULT_TASK_PREFIX) -> str:
    """
    Normalize a task id to its prefixed form.

    Example:
        >>> normalize_task_id("003")
        'T-003'
        >>> normalize_task_id("T-003")
        'T-003'
    """
    if not task_id:
        return task_id
    prefix = f"{task_prefix}-"
    return task_id if task_id.startswith(prefix) else f"{prefix}{task_id}"


class TaskParser:
    """
    Parser for converting task files into Task records.

    Example:
        >>> parser = TaskParser()
        >>> task = parser.parse(Path("planning/project-alpha/tasks/T-003-fix-login.md"))
        >>> if task:
        ...     print(f"{task.project}/{task.id}: {task.title} [{task.status.value}]")
    """

    def __init__(
        self,
        task_prefix: str = DEFAULT_TASK_PREFIX,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.task_prefix = task_prefix
        self.clock = clock
        self.rules = build_task_rules(task_prefix)

    def parse(self, task_path: Path) -> Task | None:
        """
        Parse a single task file.

        Args:
            task_path: Path to the task markdown file

        Returns:
            Task, or None if the file is missing or malformed
        """
        task_path = Path(task_path)
        content = read_document(task_path)
        if content is None:
            return None

        try:
            fields = extract_fields(content, self.rules)
        except MalformedDocumentError:
            logger.warning(f"Invalid task file format: {task_path}")
            return None

        # project-*/tasks/<file>
        project = task_path.parent.parent.name
        meta = parse_meta_section(content)
        now = isoformat(self.clock())

        return Task(
            id=fields["id"],
            project=project,
            title=fields["title"],
            owner=meta.get("owner") or DEFAULT_OWNER,
            status=TaskStatus.parse(meta.get("status")),
            priority=Priority.parse(meta.get("priority")),
            depends_on=meta.get("dependsOn"),
            created=meta.get("created") or now,
            updated=meta.get("updated") or now,
            goal=fields["goal"],
            acceptance_criteria=fields["acceptance_criteria"],
            path=str(task_path),
        )
