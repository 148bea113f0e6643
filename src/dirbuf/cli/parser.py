"""
Command parser module for the dirbuf shell.

Turns a line typed at the shell prompt into a structured command, and line
arguments such as ``3`` or ``2-5`` into line selections of the rendered
listing.
"""

import re
import shlex
from dataclasses import dataclass, field
from typing import Any, Optional

from dirbuf.core.selection import LineSelection

LINE_RANGE = re.compile(r"^\d+(-\d+)?$")


@dataclass
class ParsedCommand:
    """
    Represents a parsed command from user input.

    Attributes:
        name: The command name (first token, lowercased).
        args: Positional arguments following the command.
        kwargs: Keyword arguments in the form --key=value.
    """

    name: str
    args: list[str] = field(default_factory=list)
    kwargs: dict[str, Any] = field(default_factory=dict)


class CommandParseError(Exception):
    """Raised when command parsing fails."""

    pass


def parse_command(input_str: str) -> ParsedCommand:
    """
    Parse user input into a structured command.

    Tokens are split with shlex so that quoted file names keep their
    spaces. Only ``--key=value`` and ``--flag`` tokens are keyword
    arguments; a bare ``a=b`` is a positional argument because it is a
    valid file name.

    Args:
        input_str: Raw user input string.

    Returns:
        ParsedCommand with extracted name, args, and kwargs.

    Raises:
        CommandParseError: If the input cannot be parsed (e.g., unclosed quotes).

    Examples:
        >>> parse_command("rename 2 'new name.txt'")
        ParsedCommand(name='rename', args=['2', 'new name.txt'], kwargs={})

        >>> parse_command("delete 2-4 --permanent")
        ParsedCommand(name='delete', args=['2-4'], kwargs={'permanent': 'true'})
    """
    stripped = input_str.strip()
    if not stripped:
        return ParsedCommand(name="")

    try:
        tokens = shlex.split(stripped)
    except ValueError as e:
        raise CommandParseError(f"Failed to parse command: {e}") from e

    if not tokens:
        return ParsedCommand(name="")

    name = tokens[0].lower()
    args: list[str] = []
    kwargs: dict[str, Any] = {}

    for token in tokens[1:]:
        if token.startswith("--") and len(token) > 2:
            key, sep, value = token[2:].partition("=")
            if key:
                # A bare --flag is a boolean switch
                kwargs[key] = value if sep else "true"
                continue
        args.append(token)

    return ParsedCommand(name=name, args=args, kwargs=kwargs)


def is_line_range(token: str) -> bool:
    """Whether token is a line number or a range of lines."""
    return LINE_RANGE.match(token) is not None


def parse_line_range(arg: str) -> tuple[int, int]:
    """
    Parse a line argument.

    Args:
        arg: A single line ("3") or an inclusive range ("2-5")

    Returns:
        Tuple of (first line, last line)

    Raises:
        CommandParseError: If arg is not a line or a range of lines
    """
    first, sep, last = arg.partition("-")
    try:
        start = int(first)
        end = int(last) if sep else start
    except ValueError as e:
        raise CommandParseError(f"Invalid line number: {arg}") from e

    if start < 0 or end < 0:
        raise CommandParseError(f"Invalid line number: {arg}")
    if end < start:
        start, end = end, start
    return start, end


def parse_selection(arg: Optional[str], cursor_line: int) -> LineSelection:
    """
    Build the selection a command applies to.

    Args:
        arg: Line argument, or None to use the cursor line
        cursor_line: Current cursor line

    Returns:
        LineSelection over the requested lines
    """
    if arg is None:
        return LineSelection.at(cursor_line)
    start, end = parse_line_range(arg)
    if start == end:
        return LineSelection.at(start)
    return LineSelection.span(start, end)


def parse_bool_flag(value: Optional[str]) -> Optional[bool]:
    """Interpret a --flag=value keyword; None when the flag is absent."""
    if value is None:
        return None
    lowered = str(value).lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off"):
        return False
    raise CommandParseError(f"Invalid boolean value: {value}")
