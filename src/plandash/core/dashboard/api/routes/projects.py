"""
Project API routes.

- GET /api/projects - List projects, most recently updated first
- GET /api/projects/{slug} - One project
"""

from fastapi import APIRouter, Depends, HTTPException, Query

from plandash.core.dashboard.api.deps import get_context
from plandash.core.dashboard.context import DashboardContext
from plandash.core.dashboard.models import Project

router = APIRouter()


@router.get("/projects", response_model=list[Project], response_model_exclude_none=True)
def list_projects(
    status: str | None = Query(None, description="Exact project status"),
    priority: str | None = Query(None, description="Exact priority (P0-P4)"),
    stakeholder: str | None = Query(None),
    planner: str | None = Query(None),
    context: DashboardContext = Depends(get_context),
) -> list[Project]:
    """
    List projects matching all given filters.

    Example response:
        [
          {
            "slug": "project-alpha",
            "title": "Alpha Launch",
            "status": "active",
            "priority": "P1",
            "lastUpdated": "2025-01-15T09:00:00Z",
            ...
          }
        ]
    """
    filters = {
        "status": status,
        "priority": priority,
        "stakeholder": stakeholder,
        "planner": planner,
    }
    return context.backend.list_projects(filters)


@router.get("/projects/{slug}", response_model=Project, response_model_exclude_none=True)
def get_project(slug: str, context: DashboardContext = Depends(get_context)) -> Project:
    """
    Get one project by slug.

    Raises:
        HTTPException: 404 if no project has this slug
    """
    project = context.backend.get_project(slug)
    if project is None:
        raise HTTPException(status_code=404, detail=f"Project not found: {slug}")
    return project
