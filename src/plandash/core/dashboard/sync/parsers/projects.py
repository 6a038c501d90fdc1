"""
Project parser for the dashboard sync layer.

Converts a project directory's overview file into a Project record.
Handles:
- Locating the overview file (00-OVERVIEW.md) inside project-* directories
- Extracting title, objective and success metrics from free-form markdown
- Reading status/priority/owners from the ``## Meta`` section
- Falling back to sensible defaults when sections are missing

Expected layout:

    # Project: Alpha Launch

    ## Snapshot
    - Objective: Ship the alpha to 50 design partners
    - Success metrics:
      - 50 active users
      - NPS above 40

    ## Meta
    - Status: active
    - Priority: P1
    - Target Date: 2025-03-01
"""

import logging
import re
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path

from plandash.core.dashboard.models import (
    Priority,
    Project,
    ProjectStatus,
    isoformat,
    utc_now,
)
from plandash.core.dashboard.sync.parsers.meta import parse_meta_section
from plandash.core.dashboard.sync.parsers.rules import (
    FieldRule,
    MalformedDocumentError,
    extract_fields,
    parse_bullets,
    read_document,
)

logger = logging.getLogger(__name__)

DEFAULT_OVERVIEW_FILENAME = "00-OVERVIEW.md"
DEFAULT_PROJECT_PREFIX = "project-"
NO_OBJECTIVE = "No objective defined"

PROJECT_RULES: tuple[FieldRule, ...] = (
    FieldRule("title", re.compile(r"^# [^\n]*?:[ \t]*(.+)$", re.MULTILINE)),
    FieldRule(
        "objective",
        re.compile(r"^\s*-\s*Objective:[ \t]*(.+)$", re.MULTILINE | re.IGNORECASE),
        section="Snapshot",
        fallback=NO_OBJECTIVE,
    ),
    FieldRule(
        "success_metrics",
        # Everything after the marker up to the next top-level bullet or heading
        re.compile(
            r"^-\s*Success metrics:?[ \t]*(.*?)(?=^-\s|^#|\Z)",
            re.MULTILINE | re.DOTALL | re.IGNORECASE,
        ),
        fallback=list,
        transform=parse_bullets,
    ),
)


class ProjectParser:
    """
    Parser for converting project overview files into Project records.

    Example:
        >>> parser = ProjectParser()
        >>> project = parser.parse(Path("planning/project-alpha"))
        >>> if project:
        ...     print(f"{project.slug}: {project.title} [{project.status.value}]")
    """

    def __init__(
        self,
        overview_filename: str = DEFAULT_OVERVIEW_FILENAME,
        project_prefix: str = DEFAULT_PROJECT_PREFIX,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """
        Initialize the ProjectParser.

        Args:
            overview_filename: Name of the overview file in each project directory
            project_prefix: Directory prefix stripped when humanizing slugs
            clock: Source of "now" for defaulted timestamps
        """
        self.overview_filename = overview_filename
        self.project_prefix = project_prefix
        self.clock = clock

    def humanize_slug(self, slug: str) -> str:
        """Turn ``project-alpha-launch`` into ``alpha launch``."""
        name = slug[len(self.project_prefix):] if slug.startswith(self.project_prefix) else slug
        return re.sub(r"[-_]+", " ", name).strip()

    def _modified_at(self, path: Path) -> str:
        try:
            mtime = path.stat().st_mtime
        except OSError:
            return isoformat(self.clock())
        return isoformat(datetime.fromtimestamp(mtime, tz=timezone.utc))

    def parse(self, project_dir: Path) -> Project | None:
        """
        Parse a project directory's overview file.

        Args:
            project_dir: The project-* directory

        Returns:
            Project, or None if the overview file is missing or unreadable
        """
        project_dir = Path(project_dir)
        overview_path = project_dir / self.overview_filename

        if not overview_path.is_file():
            logger.warning(f"No overview file found: {overview_path}")
            return None

        content = read_document(overview_path)
        if content is None:
            return None

        slug = project_dir.name
        try:
            fields = extract_fields(content, PROJECT_RULES)
        except MalformedDocumentError as e:
            logger.warning(f"Invalid overview file {overview_path}: {e}")
            return None

        meta = parse_meta_section(content)

        return Project(
            slug=slug,
            title=fields["title"] or self.humanize_slug(slug),
            objective=fields["objective"],
            success_metrics=fields["success_metrics"],
            status=ProjectStatus.parse(meta.get("status")),
            priority=Priority.parse(meta.get("priority")),
            stakeholder=meta.get("stakeholder"),
            planner=meta.get("planner"),
            target_date=meta.get("targetDate"),
            last_updated=meta.get("lastUpdated") or self._modified_at(overview_path),
            path=str(overview_path),
        )
