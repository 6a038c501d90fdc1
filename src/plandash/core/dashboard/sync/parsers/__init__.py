"""
Parsers for converting planning documents into records.

Each parser handles one document kind:
- ProjectParser: project-*/00-OVERVIEW.md -> Project
- TaskParser: project-*/tasks/T-*.md -> Task
- OutputParser: project-*/outputs/**/*.md -> Output

Parsers follow a common pattern:
1. Read the source file (missing/unreadable -> None, logged)
2. Apply a table of FieldRules to the text
3. Read the ``## Meta`` section for metadata with defaults
4. Return a typed record, or None when the identifying heading is missing
"""

from plandash.core.dashboard.sync.parsers.meta import normalize_key, parse_meta_section
from plandash.core.dashboard.sync.parsers.outputs import OutputParser
from plandash.core.dashboard.sync.parsers.projects import ProjectParser
from plandash.core.dashboard.sync.parsers.tasks import TaskParser, normalize_task_id

__all__ = [
    "OutputParser",
    "ProjectParser",
    "TaskParser",
    "normalize_key",
    "normalize_task_id",
    "parse_meta_section",
]
