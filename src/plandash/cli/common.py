"""Helpers shared by CLI commands."""

import logging
from pathlib import Path

import typer
from pydantic import ValidationError
from rich.console import Console

from plandash.core.config import PlandashConfig, load_config
from plandash.core.dashboard.context import DashboardContext

console = Console()
logger = logging.getLogger(__name__)


def is_debug(ctx: typer.Context) -> bool:
    return bool(ctx.obj.get("debug", False)) if ctx.obj else False


def get_config(planning_dir: Path | None = None) -> PlandashConfig:
    """
    Load configuration for the current directory.

    Args:
        planning_dir: Overrides the configured scan root

    Raises:
        typer.Exit: If the configuration is invalid
    """
    try:
        config = load_config(Path.cwd())
    except ValidationError as e:
        console.print(f"[red]Error:[/red] Invalid configuration: {e}")
        raise typer.Exit(1)

    if planning_dir is not None:
        config.scan.root = str(planning_dir)
    return config


def get_context(planning_dir: Path | None = None) -> DashboardContext:
    """Build a DashboardContext from configuration. Callers close it."""
    return DashboardContext.from_config(get_config(planning_dir), Path.cwd())
