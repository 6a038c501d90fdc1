"""
HTTP API for the planning dashboard.

Serves projects, tasks and outputs and exposes the sync triggers.
"""

from plandash.core.dashboard.api.app import create_app

__all__ = ["create_app"]
