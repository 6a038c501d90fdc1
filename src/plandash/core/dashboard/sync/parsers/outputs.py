"""
Output parser for the dashboard sync layer.

Converts artifact files under a project's ``outputs/`` directory into
Output records. Both layouts are supported:

    project-alpha/outputs/OUT-001-report.md        (flat)
    project-alpha/outputs/T-003/OUT-001-report.md  (per task)

Output files start with an identifying heading and a metadata preamble,
followed by a blank line and the body:

    # OUT-001: Login bug root cause
    - Output Type: report
    - Task ID: T-003
    - Last Modified: 2025-01-04

    Body text...
"""

import logging
import re
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

from plandash.core.dashboard.models import Output, isoformat, utc_now
from plandash.core.dashboard.sync.parsers.rules import (
    FieldRule,
    MalformedDocumentError,
    extract_fields,
    read_document,
)

logger = logging.getLogger(__name__)

OUTPUTS_DIRNAME = "outputs"
TRUNCATION_MARKER = "\n\n[truncated]"

_HEADING = re.compile(r"^# (.+?):[ \t]*(.+)$", re.MULTILINE)

OUTPUT_RULES: tuple[FieldRule, ...] = (
    FieldRule("id", _HEADING, group=1, required=True),
    FieldRule("title", _HEADING, group=2, required=True),
    FieldRule(
        "output_type",
        re.compile(r"^\s*-\s*Output Type:[ \t]*(.+)$", re.MULTILINE | re.IGNORECASE),
        fallback="unknown",
    ),
    FieldRule("task", re.compile(r"^\s*-\s*Task ID:[ \t]*(.+)$", re.MULTILINE | re.IGNORECASE)),
    FieldRule(
        "last_modified",
        re.compile(r"^\s*-\s*Last Modified:[ \t]*(.+)$", re.MULTILINE | re.IGNORECASE),
    ),
    # Body after the metadata preamble
    FieldRule("content", re.compile(r"\n[ \t]*\n(.*)\Z", re.DOTALL)),
)


class OutputParser:
    """
    Parser for converting output files into Output records.

    Example:
        >>> parser = OutputParser(content_limit=2000)
        >>> output = parser.parse(Path("planning/project-alpha/outputs/T-003/report.md"))
    """

    def __init__(
        self,
        task_prefix: str = "T",
        content_limit: int | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """
        Initialize the OutputParser.

        Args:
            task_prefix: Prefix of task ids, used to recognize per-task directories
            content_limit: Truncate bodies longer than this many characters
            clock: Source of "now" for defaulted timestamps
        """
        self.task_dir_re = re.compile(rf"^{re.escape(task_prefix)}-\d+$")
        self.content_limit = content_limit
        self.clock = clock

    def _project_for(self, output_path: Path) -> str:
        """Name of the directory that contains the ``outputs`` directory."""
        for parent in output_path.parents:
            if parent.name == OUTPUTS_DIRNAME:
                return parent.parent.name
        return output_path.parent.parent.name

    def _task_dir_for(self, output_path: Path) -> str | None:
        parent = output_path.parent.name
        return parent if self.task_dir_re.match(parent) else None

    def _truncate(self, content: str | None) -> str | None:
        if content is None or self.content_limit is None:
            return content
        if len(content) <= self.content_limit:
            return content
        return content[: self.content_limit].rstrip() + TRUNCATION_MARKER

    def parse(self, output_path: Path) -> Output | None:
        """
        Parse a single output file.

        Args:
            output_path: Path to the output markdown file

        Returns:
            Output, or None if the file is missing or has no identifying heading
        """
        output_path = Path(output_path)
        content = read_document(output_path)
        if content is None:
            return None

        try:
            fields = extract_fields(content, OUTPUT_RULES)
        except MalformedDocumentError:
            logger.warning(f"Invalid output file format: {output_path}")
            return None

        return Output(
            id=fields["id"],
            project=self._project_for(output_path),
            task=fields["task"] or self._task_dir_for(output_path),
            title=fields["title"],
            output_type=fields["output_type"],
            content=self._truncate(fields["content"]),
            path=str(output_path),
            last_modified=fields["last_modified"] or isoformat(self.clock()),
        )
