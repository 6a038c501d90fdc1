"""
Task API routes.

- GET /api/tasks - List tasks, most recently updated first
"""

import logging

from fastapi import APIRouter, Depends, Query

from plandash.core.dashboard.api.deps import get_context
from plandash.core.dashboard.context import DashboardContext
from plandash.core.dashboard.models import Task
from plandash.core.dashboard.sync.parsers import normalize_task_id

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/tasks", response_model=list[Task], response_model_exclude_none=True)
def list_tasks(
    project: str | None = Query(None, description="Owning project slug"),
    status: str | None = Query(None),
    owner: str | None = Query(None),
    priority: str | None = Query(None),
    id: str | None = Query(None, description="Task id; '003' and 'T-003' are equivalent"),
    context: DashboardContext = Depends(get_context),
) -> list[Task]:
    """List tasks matching all given filters."""
    task_id = normalize_task_id(id, context.config.scan.task_prefix) if id else None
    tasks = context.backend.list_tasks(
        {
            "project": project,
            "status": status,
            "owner": owner,
            "priority": priority,
            "id": task_id,
        }
    )
    logger.debug(f"Returning {len(tasks)} tasks (project={project}, status={status}, id={task_id})")
    return tasks
