"""Request dependencies shared by the API routes."""

from fastapi import Request

from plandash.core.dashboard.context import DashboardContext


def get_context(request: Request) -> DashboardContext:
    """Return the DashboardContext the app was created with."""
    context: DashboardContext = request.app.state.context
    return context
