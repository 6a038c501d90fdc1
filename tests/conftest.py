"""
Pytest configuration and shared fixtures.

Provides a sample planning directory, fixed clocks, a temporary SQLite
store and record factories used across the test suite.
"""

from datetime import datetime, timezone
from pathlib import Path

import pytest

from plandash.core.dashboard.db.store import ProjectStore
from plandash.core.dashboard.models import (
    Output,
    Priority,
    Project,
    ProjectStatus,
    SyncData,
    Task,
    TaskStatus,
)
from plandash.core.dashboard.sync.scanner import DirectoryScanner

FIXED_NOW = datetime(2025, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Mutable epoch-seconds clock."""

    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# ==============================================================================
# Planning Directory Fixtures
# ==============================================================================

ALPHA_OVERVIEW = """\
# Project: Alpha Launch

## Snapshot
- Objective: Ship the alpha to design partners
- Success metrics:
  - 50 active users
  - NPS above 40
- Risks: schedule

## Meta
- Status: active
- Priority: P1
- Stakeholder: Dana
- Planner: Lee
- Target Date: 2025-03-01
- Last Updated: 2025-01-10T00:00:00Z
"""

BETA_OVERVIEW = """\
# Project: Beta Research

## Meta
- Status: planning
- Priority: low
- Stakeholder: Sam
- Last Updated: 2025-01-12T00:00:00Z
"""

ALPHA_T001 = """\
# T-001: Set up repository

## Goal
Create the repository and CI pipeline.

## Acceptance Criteria
- [x] Repository exists
- [ ] CI runs on every push

## Meta
- Owner: Ana
- Status: done
- Priority: P2
- Created: 2025-01-01T00:00:00Z
- Updated: 2025-01-05T00:00:00Z
"""

ALPHA_T002 = """\
# T-002: Build login

## Goal
Users can log in with email.

## Meta
- Owner: Ana
- Status: in progress
- Priority: high
- Depends On: T-001
- Created: 2025-01-02T00:00:00Z
- Updated: 2025-01-08T00:00:00Z
"""

BETA_T001 = """\
# T-001: Interview customers

## Meta
- Owner: Bo
- Status: todo
- Depends On: -
- Created: 2025-01-03T00:00:00Z
- Updated: 2025-01-09T00:00:00Z
"""

ALPHA_OUT001 = """\
# OUT-001: Setup notes
- Output Type: notes
- Task ID: T-001
- Last Modified: 2025-01-06T00:00:00Z

The repository lives at git.example.com/alpha.
"""

ALPHA_OUT002 = """\
# OUT-002: Login design: first draft
- Output Type: design
- Last Modified: 2025-01-07T00:00:00Z

Email and password, then magic links.
"""


def write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text)
    return path


@pytest.fixture
def planning_dir(tmp_path: Path) -> Path:
    """
    Provide a planning directory with two projects.

    Creates:
    - project-alpha: overview, T-001, T-002, a malformed task file, a
      non-task file, a flat output and a per-task output
    - project-beta: overview and a T-001 reusing alpha's task id
    - README.md and archive/ that are not projects
    """
    root = tmp_path / "planning"

    alpha = root / "project-alpha"
    write(alpha / "00-OVERVIEW.md", ALPHA_OVERVIEW)
    write(alpha / "tasks" / "T-001-setup.md", ALPHA_T001)
    write(alpha / "tasks" / "T-002-login.md", ALPHA_T002)
    write(alpha / "tasks" / "T-009-broken.md", "# Broken task without an id\n")
    write(alpha / "tasks" / "notes.md", "# Scratch notes\n")
    write(alpha / "outputs" / "OUT-001-setup-notes.md", ALPHA_OUT001)
    write(alpha / "outputs" / "T-002" / "OUT-002-login-design.md", ALPHA_OUT002)

    beta = root / "project-beta"
    write(beta / "00-OVERVIEW.md", BETA_OVERVIEW)
    write(beta / "tasks" / "T-001-interviews.md", BETA_T001)

    write(root / "README.md", "# Planning\n")
    (root / "archive").mkdir()

    return root


@pytest.fixture
def fixed_now():
    """Clock returning a fixed datetime."""
    return lambda: FIXED_NOW


@pytest.fixture
def clock() -> FakeClock:
    """Mutable epoch-seconds clock for caches and the store."""
    return FakeClock()


@pytest.fixture
def scanner(planning_dir: Path, fixed_now) -> DirectoryScanner:
    return DirectoryScanner(planning_dir, clock=fixed_now)


@pytest.fixture
def sample_data(scanner: DirectoryScanner) -> SyncData:
    """SyncData scanned from the sample planning directory."""
    return scanner.scan()


@pytest.fixture
def store_url(tmp_path: Path) -> str:
    return f"sqlite:///{tmp_path / 'store' / 'dashboard.db'}"


@pytest.fixture
def store(store_url: str, clock: FakeClock):
    """Provide a ProjectStore on a temporary database file."""
    project_store = ProjectStore(store_url, clock=clock)
    yield project_store
    project_store.close()


# ==============================================================================
# Record Factories
# ==============================================================================


def _make_project(slug: str = "project-alpha", **overrides) -> Project:
    fields = {
        "slug": slug,
        "title": slug.replace("project-", "").title(),
        "objective": "Ship it",
        "status": ProjectStatus.ACTIVE,
        "priority": Priority.P2,
        "last_updated": "2025-01-01T00:00:00Z",
        "path": f"/planning/{slug}/00-OVERVIEW.md",
    }
    fields.update(overrides)
    return Project(**fields)


def _make_task(task_id: str = "T-001", project: str = "project-alpha", **overrides) -> Task:
    fields = {
        "id": task_id,
        "project": project,
        "title": f"Task {task_id}",
        "status": TaskStatus.TODO,
        "priority": Priority.P2,
        "created": "2025-01-01T00:00:00Z",
        "updated": "2025-01-01T00:00:00Z",
        "path": f"/planning/{project}/tasks/{task_id}.md",
    }
    fields.update(overrides)
    return Task(**fields)


def _make_output(output_id: str = "OUT-001", project: str = "project-alpha", **overrides) -> Output:
    fields = {
        "id": output_id,
        "project": project,
        "task": "T-001",
        "title": f"Output {output_id}",
        "output_type": "notes",
        "content": "Body",
        "path": f"/planning/{project}/outputs/{output_id}.md",
        "last_modified": "2025-01-01T00:00:00Z",
    }
    fields.update(overrides)
    return Output(**fields)


@pytest.fixture
def make_project():
    """Factory for Project records with sensible defaults."""
    return _make_project


@pytest.fixture
def make_task():
    """Factory for Task records with sensible defaults."""
    return _make_task


@pytest.fixture
def make_output():
    """Factory for Output records with sensible defaults."""
    return _make_output
