"""
plandash CLI - Serve command.

Run the dashboard HTTP API.
"""

import logging
from pathlib import Path

import typer
import uvicorn

from plandash.cli.common import console, get_context, is_debug
from plandash.core.dashboard.api import create_app

logger = logging.getLogger(__name__)


def serve(
    ctx: typer.Context,
    host: str | None = typer.Option(None, "--host", help="Interface to bind (default from config)"),
    port: int | None = typer.Option(None, "--port", "-p", help="Port to run the server on"),
    no_sync: bool = typer.Option(False, "--no-sync", help="Skip the initial sync"),
    planning_dir: Path | None = typer.Option(
        None,
        "--planning-dir",
        "-d",
        help="Planning directory to scan (overrides config and PLANNING_DIR)",
    ),
) -> None:
    """
    Start the dashboard API server.

    Runs a manual sync first so the API has data to serve, then blocks
    until interrupted.

    Examples:
        plandash serve                 # 127.0.0.1:8080
        plandash serve --port 3000
        plandash serve --no-sync
    """
    debug = is_debug(ctx)
    context = get_context(planning_dir)
    server = context.config.server
    bind_host = host or server.host
    bind_port = port or server.port

    if not no_sync:
        console.print("[cyan]Syncing planning data...[/cyan]")
        result = context.orchestrator.manual_sync()
        if result.success:
            console.print(
                f"[green]✓[/green] Sync complete: {result.projects} projects, "
                f"{result.tasks} tasks, {result.outputs} outputs"
            )
        else:
            console.print("[red]Sync failed:[/red]")
            for error in result.errors:
                console.print(f"  • {error}")
            console.print("\n[yellow]Starting server without fresh data...[/yellow]")

    url = f"http://{bind_host}:{bind_port}"
    console.print("\n[bold cyan]Starting dashboard server...[/bold cyan]")
    console.print(f"[dim]API: {url}/api/projects[/dim]")
    console.print(f"[dim]Docs: {url}/docs[/dim]")
    console.print("\n[dim]Press Ctrl+C to stop[/dim]\n")

    # The app closes the context on shutdown
    uvicorn.run(
        create_app(context),
        host=bind_host,
        port=bind_port,
        log_level="info" if debug else "warning",
    )
    console.print("\n[yellow]Dashboard stopped[/yellow]")
