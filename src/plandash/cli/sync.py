"""
plandash CLI - Sync commands.

Run the sync triggers from the command line:
- sync: scan and publish to the configured backend
- push: scan and POST the result to a remote dashboard
- status: backend health, record counts and freshness
"""

import logging
import traceback
from pathlib import Path

import typer
from rich.table import Table

from plandash.cli.common import console, get_config, get_context, is_debug
from plandash.core.dashboard.context import build_scanner
from plandash.core.dashboard.exceptions import DashboardError
from plandash.core.dashboard.sync import PushError, WebhookClient

logger = logging.getLogger(__name__)

PLANNING_DIR_OPTION = typer.Option(
    None,
    "--planning-dir",
    "-d",
    help="Planning directory to scan (overrides config and PLANNING_DIR)",
)


def sync(
    ctx: typer.Context,
    planning_dir: Path | None = PLANNING_DIR_OPTION,
) -> None:
    """
    Scan the planning directory and publish it.

    Writes to the durable store or refreshes the cache, depending on the
    configured mode.

    Examples:
        plandash sync
        plandash sync --planning-dir ~/work/planning
    """
    debug = is_debug(ctx)

    with get_context(planning_dir) as context:
        if debug:
            console.print(f"[dim]Planning directory: {context.scanner.root}[/dim]")
            console.print(f"[dim]Backend: {context.backend.name}[/dim]")

        console.print("[cyan]Syncing planning data...[/cyan]")
        result = context.orchestrator.manual_sync()

    if not result.success:
        console.print("\n[bold red]✗ Sync failed[/bold red]")
        for error in result.errors:
            console.print(f"  • {error}")
        raise typer.Exit(1)

    console.print("\n[bold green]✓ Sync successful[/bold green]")
    console.print(f"  Projects: {result.projects}")
    console.print(f"  Tasks: {result.tasks}")
    console.print(f"  Outputs: {result.outputs}")
    console.print(f"  Duration: {result.duration_seconds:.2f}s")


def push(
    ctx: typer.Context,
    url: str | None = typer.Option(
        None,
        "--url",
        "-u",
        help="Webhook URL (overrides config and PLANDASH_WEBHOOK_URL)",
    ),
    planning_dir: Path | None = PLANNING_DIR_OPTION,
) -> None:
    """
    Scan locally and push the result to a remote dashboard.

    Use this when the dashboard runs on a host without access to the
    planning directory.

    Examples:
        plandash push --url https://dashboard.example.com/api/webhook/sync
    """
    config = get_config(planning_dir)
    target = url or config.webhook.url
    if not target:
        console.print(
            "[red]Error:[/red] No webhook URL. Pass --url or set PLANDASH_WEBHOOK_URL."
        )
        raise typer.Exit(1)

    scanner = build_scanner(config, Path.cwd())
    try:
        data = scanner.scan()
        console.print(f"[cyan]Pushing to {target}...[/cyan]")
        response = WebhookClient(target, timeout=config.webhook.timeout).push(data)
    except (PushError, DashboardError) as e:
        console.print(f"[red]Error:[/red] {e}")
        if is_debug(ctx):
            console.print(traceback.format_exc())
        raise typer.Exit(1)

    stats = response.get("stats", data.counts)
    console.print("\n[bold green]✓ Push successful[/bold green]")
    console.print(f"  Projects: {stats.get('projects', 0)}")
    console.print(f"  Tasks: {stats.get('tasks', 0)}")
    console.print(f"  Outputs: {stats.get('outputs', 0)}")


def status(
    ctx: typer.Context,
    planning_dir: Path | None = PLANNING_DIR_OPTION,
) -> None:
    """
    Show backend health, record counts and data age.

    Exits with status 1 when the backend is unreachable.
    """
    with get_context(planning_dir) as context:
        health = context.backend.health()
        if not health.connected:
            console.print(f"[red]✗ {context.backend.name} unreachable:[/red] {health.message}")
            raise typer.Exit(1)

        try:
            counts = context.backend.counts()
            age = context.backend.age()
            fresh = context.backend.is_fresh()
        except DashboardError as e:
            console.print(f"[red]Error:[/red] {e}")
            raise typer.Exit(1)

    console.print(f"[green]✓[/green] {health.message}")

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Kind")
    table.add_column("Count", justify="right")
    for kind, count in counts.items():
        table.add_row(kind, str(count))
    console.print(table)

    if age < 0:
        console.print("[yellow]Nothing synced yet[/yellow]")
    else:
        state = "[green]fresh[/green]" if fresh else "[yellow]stale[/yellow]"
        console.print(f"Last sync: {age}s ago ({state})")
