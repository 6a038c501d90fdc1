"""
plandash CLI - Main application entry point.

This module sets up the Typer app and registers all subcommands.
"""

import logging

import typer
from rich.console import Console

from plandash import __version__
from plandash.cli import serve, sync
from plandash.core.config.env import load_layered_env

app = typer.Typer(
    name="plandash",
    help="Sync a planning directory into a dashboard and serve it",
    no_args_is_help=True,
    context_settings={"help_option_names": ["--help", "-h"]},
)

console = Console()


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"plandash version {__version__}")
        raise typer.Exit(0)


@app.callback()
def main(
    ctx: typer.Context,
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug output with detailed logging",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    """
    plandash - Planning Dashboard.

    Parses a planning directory of markdown documents (project overviews,
    task files and outputs) and publishes it to a SQLite store or a cache
    served by an HTTP API.

    Common Workflows:
        plandash sync                # Scan and publish locally
        plandash serve               # Run the API (syncs first)
        plandash push --url URL      # Scan here, publish to a remote dashboard
        plandash status              # Backend health and counts
    """
    # Precedence: OS env > project .env > user .env
    load_layered_env()

    if debug:
        logging.basicConfig(level=logging.DEBUG)
        console.print("[dim]Debug mode enabled[/dim]")

    ctx.obj = {"debug": debug}


app.command(name="sync")(sync.sync)
app.command(name="push")(sync.push)
app.command(name="status")(sync.status)
app.command(name="serve")(serve.serve)


def cli_main() -> None:
    """Main CLI entry point."""
    app()


__all__ = ["app", "cli_main"]
