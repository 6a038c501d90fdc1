"""
Output API routes.

- GET /api/outputs - List outputs, most recently modified first
"""

from fastapi import APIRouter, Depends, Query

from plandash.core.dashboard.api.deps import get_context
from plandash.core.dashboard.context import DashboardContext
from plandash.core.dashboard.models import Output
from plandash.core.dashboard.sync.parsers import normalize_task_id

router = APIRouter()


@router.get("/outputs", response_model=list[Output], response_model_exclude_none=True)
def list_outputs(
    project: str | None = Query(None, description="Owning project slug"),
    task: str | None = Query(None, description="Producing task id ('003' or 'T-003')"),
    context: DashboardContext = Depends(get_context),
) -> list[Output]:
    """List outputs matching all given filters."""
    task_id = normalize_task_id(task, context.config.scan.task_prefix) if task else None
    return context.backend.list_outputs({"project": project, "task": task_id})
