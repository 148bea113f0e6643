"""
CLI for dirbuf.

Provides the command-line interface: one-shot listing and batch editing
commands, and an interactive shell.
"""

import asyncio
import os
from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv
from rich.console import Console

from dirbuf.cli.parser import CommandParseError, parse_selection
from dirbuf.cli.terminal_host import TerminalDocumentHost, run_batch_editor
from dirbuf.cli.ui import render_listing, render_messages
from dirbuf.core.config import DirbufConfig, configure_logging, load_config
from dirbuf.core.models import OperationType
from dirbuf.core.selection import LineSelection
from dirbuf.services import ActionResult, ServicesContainer, create_services

# Initialize Rich Console
console = Console()

app = typer.Typer(
    name="dirbuf",
    help="dirbuf - Edit directories as text",
    add_completion=False,
)


def _absolute(path: Path) -> Path:
    return Path(os.path.abspath(path.expanduser()))


def get_services(ctx: typer.Context, host: TerminalDocumentHost) -> ServicesContainer:
    """Create the services for a command from the loaded configuration."""
    config: Optional[DirbufConfig] = ctx.obj
    return create_services(host, config=config)


@app.callback()
def main(
    ctx: typer.Context,
    config_path: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Configuration file (YAML or JSON)"
    ),
):
    """Load .env, configuration and logging before any command."""
    load_dotenv()
    config = load_config(config_path)
    configure_logging(config.logging)
    ctx.obj = config


@app.command()
def ls(
    ctx: typer.Context,
    path: Path = typer.Argument(Path("."), help="Directory to list"),
):
    """List a directory the way the shell renders it."""
    host = TerminalDocumentHost(console)
    services = get_services(ctx, host)
    try:
        result = asyncio.run(services.controller.open_directory(_absolute(path)))
    finally:
        services.close()

    if not result.success:
        render_messages(result.messages, console)
        raise typer.Exit(1)
    render_listing(result.data, console)


async def _run_edit(
    services: ServicesContainer,
    host: TerminalDocumentHost,
    path: Path,
    operation_type: OperationType,
    lines: Optional[str],
) -> ActionResult:
    controller = services.controller
    opened = await controller.open_directory(path)
    if not opened.success:
        return opened
    listing = opened.data

    if operation_type is OperationType.CREATE:
        started = await controller.create_batch(listing.path)
    else:
        if lines is None:
            selection = LineSelection.span(1, len(listing.entries))
        else:
            selection = parse_selection(lines, cursor_line=1)
        started = await controller.edit_entries(
            listing.path, selection, operation_type, batch=True
        )
    if not started.success:
        return started
    render_messages(started.messages, console)

    while True:
        saved = await run_batch_editor(controller, host)
        if saved is None or saved.success or services.batch.session is None:
            return saved or started
        render_messages(saved.messages, console)
        if not typer.confirm("Edit the names again?", default=True):
            services.batch.cancel()
            return ActionResult.failed("Batch cancelled.")


@app.command()
def edit(
    ctx: typer.Context,
    path: Path = typer.Argument(Path("."), help="Directory to act on"),
    mode: str = typer.Option(
        "rename", "--mode", "-m", help="Batch mode: create, rename, copy or symlink"
    ),
    lines: Optional[str] = typer.Option(
        None, "--lines", "-l", help="Listing lines to act on, e.g. 3 or 2-5 (default: all)"
    ),
):
    """Create, rename, copy or link entries by editing a name list in $EDITOR."""
    try:
        operation_type = OperationType(mode.lower())
    except ValueError:
        console.print(f"[bold red]Error:[/bold red] Unknown mode: {mode}")
        raise typer.Exit(1)

    host = TerminalDocumentHost(console)
    services = get_services(ctx, host)
    try:
        result = asyncio.run(_run_edit(services, host, _absolute(path), operation_type, lines))
    except CommandParseError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)
    finally:
        services.close()

    render_messages(result.messages, console)
    if not result.success:
        raise typer.Exit(1)


@app.command()
def shell(
    ctx: typer.Context,
    path: Optional[Path] = typer.Argument(None, help="Directory to start in"),
):
    """Start the interactive shell."""
    try:
        from dirbuf.cli.repl import REPLController

        host = TerminalDocumentHost(console)
        services = get_services(ctx, host)
        start = _absolute(path) if path is not None else Path.cwd()
        repl = REPLController(services=services, host=host, console=console, start_directory=start)
        repl.run()

    except KeyboardInterrupt:
        console.print("\n[cyan]Goodbye![/cyan]")


if __name__ == "__main__":
    app()
