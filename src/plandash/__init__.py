"""
plandash - Planning Dashboard

Syncs a directory of markdown planning documents (projects, tasks and
outputs) into a store or cache and serves them over an HTTP API.
"""

__version__ = "0.3.0"

# Re-export core models for convenience
from plandash.core.config.models import PlandashConfig
from plandash.core.dashboard.models import Output, Project, Task

__all__ = ["PlandashConfig", "Output", "Project", "Task", "__version__"]
