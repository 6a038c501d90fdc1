"""
Directory scanner for the planning directory.

Walks the on-disk layout and feeds files to the document parsers:

    planning/
      project-alpha/
        00-OVERVIEW.md
        tasks/
          T-001-setup.md
          T-002-login.md
        outputs/
          OUT-001-notes.md          (flat layout)
          T-002/
            OUT-002-report.md       (per-task layout)

A missing root is not an error: deployments without file system access
simply scan nothing. Missing tasks/ or outputs/ directories are skipped,
and malformed documents are dropped by the parsers. An I/O failure while
listing a directory that does exist aborts the scan with ScanError, so a
half-read tree is never published.
"""

import logging
from collections import defaultdict
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

from plandash.core.dashboard.exceptions import ScanError
from plandash.core.dashboard.models import (
    Output,
    Project,
    SyncData,
    Task,
    TaskOutput,
    isoformat,
    utc_now,
)
from plandash.core.dashboard.sync.parsers import OutputParser, ProjectParser, TaskParser
from plandash.core.dashboard.sync.parsers.projects import (
    DEFAULT_OVERVIEW_FILENAME,
    DEFAULT_PROJECT_PREFIX,
)
from plandash.core.dashboard.sync.parsers.tasks import DEFAULT_TASK_PREFIX

logger = logging.getLogger(__name__)

TASKS_DIRNAME = "tasks"
OUTPUTS_DIRNAME = "outputs"


class DirectoryScanner:
    """
    Scans a planning directory into a SyncData snapshot.

    Example:
        >>> scanner = DirectoryScanner(Path("./planning"))
        >>> data = scanner.scan()
        >>> print(f"{len(data.projects)} projects, {len(data.tasks)} tasks")
    """

    def __init__(
        self,
        root: Path | str,
        *,
        project_prefix: str = DEFAULT_PROJECT_PREFIX,
        overview_filename: str = DEFAULT_OVERVIEW_FILENAME,
        task_prefix: str = DEFAULT_TASK_PREFIX,
        output_content_limit: int | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """
        Initialize the DirectoryScanner.

        Args:
            root: Planning directory containing project-* directories
            project_prefix: Prefix identifying project directories
            overview_filename: Overview file name inside each project
            task_prefix: Task id prefix (task files are named ``<prefix>-*.md``)
            output_content_limit: Truncate output bodies to this many characters
            clock: Source of "now" for defaulted timestamps and lastSync
        """
        self.root = Path(root)
        self.project_prefix = project_prefix
        self.task_prefix = task_prefix
        self.clock = clock

        self.project_parser = ProjectParser(
            overview_filename=overview_filename,
            project_prefix=project_prefix,
            clock=clock,
        )
        self.task_parser = TaskParser(task_prefix=task_prefix, clock=clock)
        self.output_parser = OutputParser(
            task_prefix=task_prefix,
            content_limit=output_content_limit,
            clock=clock,
        )

    def _list_dir(self, directory: Path) -> list[Path]:
        try:
            return sorted(directory.iterdir())
        except OSError as e:
            raise ScanError(f"Failed to list {directory}: {e}") from e

    def project_dirs(self) -> list[Path]:
        """
        List project directories under the root.

        Returns:
            Directories whose name starts with the project prefix, or an
            empty list if the root does not exist
        """
        if not self.root.is_dir():
            logger.warning(f"Planning directory not found: {self.root}")
            return []

        return [
            entry
            for entry in self._list_dir(self.root)
            if entry.is_dir() and entry.name.startswith(self.project_prefix)
        ]

    def task_files(self, project_dir: Path) -> list[Path]:
        """List task files (``tasks/<prefix>-*.md``) of a project."""
        tasks_dir = project_dir / TASKS_DIRNAME
        if not tasks_dir.is_dir():
            logger.debug(f"No tasks directory: {tasks_dir}")
            return []

        return [
            entry
            for entry in self._list_dir(tasks_dir)
            if entry.is_file()
            and entry.name.startswith(f"{self.task_prefix}-")
            and entry.suffix == ".md"
        ]

    def output_files(self, project_dir: Path) -> list[Path]:
        """
        List output files of a project.

        Supports flat files directly under ``outputs/`` as well as
        per-task subdirectories (``outputs/T-003/*.md``).
        """
        outputs_dir = project_dir / OUTPUTS_DIRNAME
        if not outputs_dir.is_dir():
            logger.debug(f"No outputs directory: {outputs_dir}")
            return []

        files: list[Path] = []
        for entry in self._list_dir(outputs_dir):
            if entry.is_file() and entry.suffix == ".md":
                files.append(entry)
            elif entry.is_dir():
                files.extend(
                    child
                    for child in self._list_dir(entry)
                    if child.is_file() and child.suffix == ".md"
                )
        return files

    def _attach_outputs(self, tasks: list[Task], outputs: list[Output]) -> list[Task]:
        """Attach summaries of each task's outputs to the task record."""
        by_task: dict[tuple[str, str], list[TaskOutput]] = defaultdict(list)
        for output in outputs:
            if output.task:
                by_task[(output.project, output.task)].append(
                    TaskOutput(title=output.title, path=output.path, description=output.output_type)
                )

        return [
            task.model_copy(update={"outputs": by_task[(task.project, task.id)]})
            if (task.project, task.id) in by_task
            else task
            for task in tasks
        ]

    def scan(self) -> SyncData:
        """
        Scan the whole planning directory.

        Returns:
            SyncData with projects, tasks and outputs in traversal order

        Raises:
            ScanError: If a directory that exists cannot be listed
        """
        projects: list[Project] = []
        tasks: list[Task] = []
        outputs: list[Output] = []

        logger.info(f"Scanning planning directory: {self.root}")

        for project_dir in self.project_dirs():
            project = self.project_parser.parse(project_dir)
            if project:
                projects.append(project)

            for task_file in self.task_files(project_dir):
                task = self.task_parser.parse(task_file)
                if task:
                    tasks.append(task)

            for output_file in self.output_files(project_dir):
                output = self.output_parser.parse(output_file)
                if output:
                    outputs.append(output)

        tasks = self._attach_outputs(tasks, outputs)

        logger.info(
            f"Scanned {len(projects)} projects, {len(tasks)} tasks, {len(outputs)} outputs"
        )
        return SyncData(
            projects=projects,
            tasks=tasks,
            outputs=outputs,
            last_sync=isoformat(self.clock()),
        )
