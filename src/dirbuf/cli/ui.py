"""
UI components module for the dirbuf shell.

Renders directory listings and user messages with Rich. Line ``i + 1`` of
a rendered listing is always entry ``i``; line 0 is the header.
"""

from collections.abc import Iterable
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from dirbuf import __version__
from dirbuf.core.models import DirectoryListing, FileEntry
from dirbuf.services.action_types import MessageLevel, UserMessage

if TYPE_CHECKING:
    from dirbuf.cli.router import CommandInfo


VERSION = __version__

MESSAGE_STYLES = {
    MessageLevel.INFO: ("Info:", "blue"),
    MessageLevel.WARNING: ("Warning:", "yellow"),
    MessageLevel.ERROR: ("Error:", "red"),
}


def tildify(path: Path, home: Optional[Path] = None) -> str:
    """Abbreviate the home directory to '~'."""
    home = home if home is not None else Path.home()
    try:
        relative = path.relative_to(home)
    except ValueError:
        return str(path)
    return "~" if relative == Path(".") else f"~/{relative.as_posix()}"


def human_size(size: int) -> str:
    """Size with a binary unit suffix (512B, 1.5K, 20M)."""
    if size < 1024:
        return f"{size}B"
    value = float(size)
    for unit in ("K", "M", "G"):
        value /= 1024
        if value < 1024:
            return f"{value:.1f}{unit}" if value < 10 else f"{int(value)}{unit}"
    return f"{int(value / 1024)}T"


def symlink_marker(entry: FileEntry) -> str:
    """'L' for a resolvable link, 'l' for a broken one, ' ' otherwise."""
    if not entry.is_symlink:
        return " "
    return "L" if entry.stat is not None else "l"


def format_entry_line(entry: FileEntry, marked: bool) -> str:
    """One listing line: mark, link marker, size, modification time and name."""
    mark = "*" if marked else " "
    if entry.stat is None:
        size, mtime = "?".rjust(6), "?".rjust(11)
    else:
        size = "" if entry.is_dir else human_size(entry.stat.size)
        size = size.rjust(6)
        mtime = datetime.fromtimestamp(entry.stat.modified_time).strftime("%m-%d %H:%M")
    return f"{mark}{symlink_marker(entry)} {size} {mtime} {entry.display_name}"


def format_header(listing: DirectoryListing, home: Optional[Path] = None) -> str:
    header = tildify(listing.path, home)
    return header + ":" if header.endswith("/") else header + "/:"


def format_listing_lines(listing: DirectoryListing, home: Optional[Path] = None) -> list[str]:
    """All lines of a rendered listing, header first."""
    marked = set(listing.marked_indices)
    lines = [format_header(listing, home)]
    lines.extend(
        format_entry_line(entry, index in marked) for index, entry in enumerate(listing.entries)
    )
    return lines


def render_listing(
    listing: DirectoryListing,
    console: Console,
    cursor_line: Optional[int] = None,
) -> None:
    """
    Render a directory listing with line numbers.

    Args:
        listing: Listing to render
        console: Rich Console instance for output.
        cursor_line: Line to highlight, if any
    """
    lines = format_listing_lines(listing)
    width = len(str(len(lines) - 1))
    marked = set(listing.marked_indices)

    for number, line in enumerate(lines):
        text = Text()
        pointer = ">" if number == cursor_line else " "
        text.append(f"{pointer}{number:>{width}} ", style="dim")
        if number == 0:
            text.append(line, style="bold cyan")
        else:
            entry = listing.entries[number - 1]
            if number - 1 in marked:
                style = "bold yellow"
            elif entry.is_dir:
                style = "bold blue"
            elif entry.is_symlink:
                style = "cyan" if entry.stat is not None else "red"
            else:
                style = "white"
            text.append(line, style=style)
        console.print(text, highlight=False)


def render_messages(messages: Iterable[UserMessage], console: Console) -> None:
    """Render the messages of an action result."""
    for message in messages:
        label, style = MESSAGE_STYLES[message.level]
        text = Text()
        text.append(f"{label} ", style=f"bold {style}")
        text.append(message.text)
        console.print(text, highlight=False)


def render_welcome_banner(console: Console) -> None:
    """Render the shell's welcome panel."""
    content = Text()
    content.append("dirbuf", style="bold white")
    content.append(f" v{VERSION}\n\n", style="dim")
    content.append("Type ", style="white")
    content.append("help", style="bold green")
    content.append(" for available commands, ", style="white")
    content.append("exit", style="bold yellow")
    content.append(" to quit.", style="white")
    console.print(Panel(content, border_style="cyan", padding=(0, 2)))


def get_prompt_style(directory: Path) -> list[tuple[str, str]]:
    """Prompt fragments for prompt_toolkit."""
    return [
        ("class:prompt", "dirbuf"),
        ("class:prompt.separator", ":"),
        ("class:prompt.directory", tildify(directory)),
        ("class:prompt-arrow", "> "),
    ]


def render_help(commands: list["CommandInfo"], console: Console) -> None:
    """
    Render help information as a styled table.

    Args:
        commands: List of CommandInfo objects to display.
        console: Rich Console instance for output.
    """
    table = Table(
        title="Available Commands",
        title_style="bold cyan",
        border_style="blue",
        show_header=True,
        header_style="bold white",
    )
    table.add_column("Command", style="green", no_wrap=True)
    table.add_column("Description", style="white")
    table.add_column("Usage", style="dim cyan")

    for cmd in sorted(commands, key=lambda c: c.name):
        name = cmd.name
        if cmd.aliases:
            name += f" ({', '.join(cmd.aliases)})"
        table.add_row(name, cmd.description, cmd.usage)

    console.print(table)
    console.print()


def render_error(message: str, console: Console) -> None:
    """
    Render an error message in a visually distinct red panel.

    Args:
        message: Error message to display.
        console: Rich Console instance for output.
    """
    error_text = Text()
    error_text.append("Error: ", style="bold red")
    error_text.append(message, style="red")
    console.print(
        Panel(
            error_text,
            border_style="red",
            title="[bold red]Error[/bold red]",
            expand=False,
        )
    )
