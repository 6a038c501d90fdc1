"""Environment loading from .env files.

Secrets such as CRON_SECRET and connection strings are usually kept in
.env files rather than in .plandash.json. Layers, highest first:

  os.environ (pre-existing) > project .env / .env.local > user .env

A value already exported in the shell is never replaced.
"""

import logging
import os
from collections.abc import Iterable
from pathlib import Path

from dotenv import dotenv_values

from .loader import get_xdg_config_home

logger = logging.getLogger(__name__)


def _read_env(path: Path) -> dict[str, str]:
    if not path.exists():
        return {}
    return {
        str(key): str(value)
        for key, value in dotenv_values(path).items()
        if key is not None and value is not None
    }


def load_layered_env(
    *,
    project_dir: Path | None = None,
    user_env_paths: Iterable[Path] | None = None,
    project_env_paths: Iterable[Path] | None = None,
) -> list[str]:
    """Load environment variables from user and project .env files.

    Args:
        project_dir: Base directory for project env paths (defaults to cwd)
        user_env_paths: Explicit user env file paths
        project_env_paths: Explicit project env file paths

    Returns:
        Names of the variables that were set
    """
    if project_dir is None:
        project_dir = Path.cwd()

    if user_env_paths is None:
        user_env_paths = [get_xdg_config_home() / "plandash" / ".env"]

    if project_env_paths is None:
        project_env_paths = [project_dir / ".env", project_dir / ".env.local"]

    # Project files may replace values that came from the user file, but
    # never a value that was in the environment before we started.
    loaded: set[str] = set()
    for path in user_env_paths:
        for key, value in _read_env(Path(path)).items():
            if key not in os.environ:
                os.environ[key] = value
                loaded.add(key)

    for path in project_env_paths:
        for key, value in _read_env(Path(path)).items():
            if key not in os.environ or key in loaded:
                os.environ[key] = value
                loaded.add(key)

    if loaded:
        logger.debug(f"Loaded {len(loaded)} variable(s) from .env files")
    return sorted(loaded)
