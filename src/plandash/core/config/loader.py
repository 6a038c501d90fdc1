"""
Layered configuration for plandash.

Sources are merged in this order, later ones winning:

    built-in defaults
    $XDG_CONFIG_HOME/plandash/config.json    (per user)
    .plandash.json                           (per project)
    environment variables

Missing files are skipped; unreadable ones are logged and skipped.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any

from .models import PlandashConfig

logger = logging.getLogger(__name__)

PROJECT_CONFIG_FILENAME = ".plandash.json"


def get_xdg_config_home() -> Path:
    """Return $XDG_CONFIG_HOME, or ~/.config when it is unset."""
    if xdg_home := os.environ.get("XDG_CONFIG_HOME"):
        return Path(xdg_home)
    return Path.home() / ".config"


def get_user_config_path() -> Path:
    return get_xdg_config_home() / "plandash" / "config.json"


def get_project_config_path(cwd: Path | None = None) -> Path:
    """
    Locate the project config file.

    Args:
        cwd: Project directory (current directory when omitted)
    """
    return (cwd or Path.cwd()) / PROJECT_CONFIG_FILENAME


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Merge ``override`` into a copy of ``base``.

    Nested sections merge key by key; any other value in ``override``
    replaces the one in ``base``. Neither input is modified.

    Example:
        >>> deep_merge({"cache": {"ttl_seconds": 300, "key": "k"}}, {"cache": {"ttl_seconds": 60}})
        {'cache': {'ttl_seconds': 60, 'key': 'k'}}
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = deep_merge({}, value) if isinstance(value, dict) else value

    return result


def load_json_file(path: Path) -> dict[str, Any] | None:
    """
    Read one config layer.

    Returns:
        The JSON object, or None if the file is missing, unparsable, or
        holds something other than an object
    """
    if not path.exists():
        return None

    try:
        data = json.loads(path.read_text())
    except (json.JSONDecodeError, OSError) as e:
        logger.warning(f"Failed to parse config at {path}: {e}")
        return None

    if isinstance(data, dict):
        return data
    logger.warning(f"Ignoring config at {path}: expected a JSON object")
    return None


def _set(config: dict[str, Any], section: str | None, key: str, value: Any) -> None:
    target = config if section is None else config.setdefault(section, {})
    target[key] = value


# (env var, config section or None for top level, key)
ENV_OVERRIDES: tuple[tuple[str, str | None, str], ...] = (
    ("PLANNING_DIR", "scan", "root"),
    ("PLANDASH_STORE_URL", "store", "url"),
    ("PLANDASH_CACHE_URL", "cache", "url"),
    ("PLANDASH_MODE", None, "mode"),
    ("PLANDASH_WEBHOOK_URL", "webhook", "url"),
    ("CRON_SECRET", None, "cron_secret"),
)


def apply_env_overrides(config_dict: dict[str, Any]) -> dict[str, Any]:
    """
    Overlay environment variables on a merged config dict.

    Handles every variable in ENV_OVERRIDES plus PLANDASH_CACHE_TTL, which
    must be an integer >= 1; other TTL values are logged and ignored.
    Empty variables count as unset.

    Args:
        config_dict: Merged file layers (not modified)

    Returns:
        A new dict with the overrides applied
    """
    result = deep_merge({}, config_dict)

    for env_var, section, key in ENV_OVERRIDES:
        if value := os.environ.get(env_var):
            _set(result, section, key, value)

    if ttl_str := os.environ.get("PLANDASH_CACHE_TTL"):
        try:
            ttl = int(ttl_str)
        except ValueError:
            logger.warning(f"Invalid PLANDASH_CACHE_TTL value '{ttl_str}', ignoring")
        else:
            if ttl < 1:
                logger.warning(f"PLANDASH_CACHE_TTL must be >= 1, got {ttl}, ignoring")
            else:
                _set(result, "cache", "ttl_seconds", ttl)

    return result


def get_default_config() -> dict[str, Any]:
    """Built-in bottom layer. Anything not listed takes the model defaults."""
    return {
        "mode": "store",
        "scan": {"root": "./planning"},
        "store": {"url": "sqlite:///.plandash/dashboard.db"},
        "cache": {"ttl_seconds": 300},
    }


def load_config(project_dir: Path | None = None) -> PlandashConfig:
    """
    Build the effective configuration.

    Nothing is cached: each call re-reads the files and the environment.

    Args:
        project_dir: Where to look for .plandash.json (current directory
            when omitted)

    Returns:
        Validated PlandashConfig

    Raises:
        ValidationError: If the merged values are invalid (e.g. a TTL of 0
            in a config file)

    Example:
        >>> load_config().scan.root
        './planning'
    """
    merged = get_default_config()

    for path in (get_user_config_path(), get_project_config_path(project_dir)):
        if layer := load_json_file(path):
            merged = deep_merge(merged, layer)

    return PlandashConfig(**apply_env_overrides(merged))
