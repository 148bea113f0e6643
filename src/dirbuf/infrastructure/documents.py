"""
Document and view interfaces.

dirbuf never renders or edits text itself. The host environment (an editor,
or the terminal shell in dirbuf.cli) implements these protocols and forwards
its save and close events to the services.
"""

from collections.abc import Sequence
from enum import Enum
from pathlib import Path
from typing import Optional, Protocol


class SaveReason(Enum):
    """Why a document is being saved."""

    MANUAL = "manual"
    AFTER_DELAY = "after_delay"
    FOCUS_OUT = "focus_out"


class TextDocumentInterface(Protocol):
    """Protocol for a line-oriented text document."""

    @property
    def path(self) -> Path:
        """File backing the document, its identity."""
        ...

    def line_count(self) -> int:
        """
        Number of lines.

        A trailing newline yields a final empty line, so an empty document
        has one line.
        """
        ...

    def line_text(self, index: int) -> str:
        """Text of a 0-based line without its line terminator."""
        ...


class DocumentHostInterface(Protocol):
    """Protocol for the environment hosting views and editable documents."""

    def open_editable(
        self,
        path: Path,
        original_path: Optional[Path],
        title: str,
    ) -> TextDocumentInterface:
        """
        Open an editable document backed by a file.

        Args:
            path: File holding the editable text
            original_path: Read-only reference shown beside it, if any
            title: Title for the editor tab

        Returns:
            The opened document
        """
        ...

    def close_document(self, document: TextDocumentInterface) -> None:
        """Close an open document programmatically."""
        ...

    def notify_content_changed(self, directory: Path) -> None:
        """The rendered view of a directory is outdated."""
        ...

    def open_file(self, path: Path) -> None:
        """Show a file of a listing to the user."""
        ...

    async def ask_choice(
        self,
        message: str,
        detail: str,
        choices: Sequence[str],
    ) -> Optional[str]:
        """
        Ask the user to pick one of several choices.

        Returns:
            The chosen label, or None when the user dismissed the prompt
        """
        ...


class FileTextDocument:
    """
    TextDocumentInterface reading its lines from a file on disk.

    The file is re-read on every query so edits made by an external editor
    are visible immediately.
    """

    def __init__(self, path: Path):
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def _lines(self) -> list[str]:
        try:
            text = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            text = ""
        return text.replace("\r\n", "\n").split("\n")

    def line_count(self) -> int:
        return len(self._lines())

    def line_text(self, index: int) -> str:
        return self._lines()[index]

    def lines(self) -> list[str]:
        """All lines of the document."""
        return self._lines()

    def __eq__(self, other: object) -> bool:
        return isinstance(other, FileTextDocument) and other._path == self._path

    def __hash__(self) -> int:
        return hash(self._path)

    def __repr__(self) -> str:
        return f"FileTextDocument({str(self._path)!r})"
