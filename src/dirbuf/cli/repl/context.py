"""
REPL context management module.

Tracks the directory shown by the shell and the line the cursor is on.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path


@dataclass
class REPLContext:
    """
    Shell session state.

    Attributes:
        directory: Directory currently shown
        cursor_line: Line of the rendered listing the cursor is on (1 = first entry)
    """

    directory: Path = field(default_factory=Path.cwd)
    cursor_line: int = 1

    def set_directory(self, path: Path) -> None:
        """Show another directory, with the cursor on its first entry."""
        self.directory = path
        self.cursor_line = 1

    def resolve(self, argument: str) -> Path:
        """Absolute, normalized path for a path argument."""
        path = Path(argument).expanduser()
        if not path.is_absolute():
            path = self.directory / path
        return Path(os.path.normpath(path))

    def move_cursor(self, line: int, line_count: int) -> None:
        """Place the cursor on line, kept within the listing."""
        self.cursor_line = max(0, min(line, line_count - 1))

