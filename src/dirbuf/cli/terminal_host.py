"""
Terminal document host.

Implements DocumentHostInterface for a terminal: name lists are edited in
$EDITOR (closing the editor counts as a manual save), prompts use
rich.prompt, and views are simply re-rendered when they change.
"""

import asyncio
import logging
from collections.abc import Callable, Sequence
from functools import partial
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.prompt import Prompt

from dirbuf.infrastructure.documents import FileTextDocument, SaveReason, TextDocumentInterface
from dirbuf.services.action_types import ActionResult
from dirbuf.services.controller import FilerController

logger = logging.getLogger(__name__)

CANCEL_CHOICE = "0"


def launch_editor(path: Path) -> None:
    """Edit a file in place with the user's editor."""
    typer.edit(filename=str(path))


class TerminalDocumentHost:
    """
    DocumentHostInterface for the terminal shell.

    Attributes:
        open_documents: Editable documents currently open, with their titles
        changed: Directories whose views became outdated since the last render
    """

    def __init__(
        self,
        console: Optional[Console] = None,
        editor: Optional[Callable[[Path], None]] = None,
    ):
        self.console = console or Console()
        self._editor = editor or launch_editor
        self.open_documents: dict[Path, tuple[FileTextDocument, str]] = {}
        self.changed: set[Path] = set()

    def open_editable(
        self,
        path: Path,
        original_path: Optional[Path],
        title: str,
    ) -> TextDocumentInterface:
        document = FileTextDocument(path)
        self.open_documents[path] = (document, title)
        self.console.print(f"[bold cyan]{title}[/bold cyan] [dim]{path}[/dim]")
        if original_path is not None:
            logger.debug(f"Original names kept in {original_path}")
        return document

    def close_document(self, document: TextDocumentInterface) -> None:
        if self.open_documents.pop(document.path, None) is not None:
            logger.debug(f"Closed {document.path}")

    def notify_content_changed(self, directory: Path) -> None:
        self.changed.add(directory)

    def consume_changed(self, directory: Path) -> bool:
        """Whether directory changed since the last call, clearing the flag."""
        if directory in self.changed:
            self.changed.discard(directory)
            return True
        return False

    def edit(self, document: TextDocumentInterface) -> None:
        """Open a document in the editor and wait for it to close."""
        self._editor(document.path)

    def open_file(self, path: Path) -> None:
        """Open a file of a listing in the editor."""
        self._editor(path)

    async def ask_choice(
        self,
        message: str,
        detail: str,
        choices: Sequence[str],
    ) -> Optional[str]:
        self.console.print(f"[bold yellow]{message}[/bold yellow]")
        if detail:
            self.console.print(detail, highlight=False)
        for number, label in enumerate(choices, start=1):
            self.console.print(f"  [green]{number}[/green] {label}")
        self.console.print(f"  [green]{CANCEL_CHOICE}[/green] Cancel")

        loop = asyncio.get_running_loop()
        answer = await loop.run_in_executor(
            None,
            partial(
                Prompt.ask,
                "Choice",
                console=self.console,
                choices=[CANCEL_CHOICE] + [str(number) for number in range(1, len(choices) + 1)],
                default=CANCEL_CHOICE,
                show_choices=False,
            ),
        )
        if answer == CANCEL_CHOICE:
            return None
        return choices[int(answer) - 1]


async def run_batch_editor(
    controller: FilerController,
    host: TerminalDocumentHost,
) -> Optional[ActionResult]:
    """
    Edit the open batch document and forward the save to the controller.

    Closing the editor is a manual save. A batch that fails validation stays
    open so that it can be edited again or cancelled.

    Returns:
        Result of the save, None when no batch is open
    """
    session = controller.batch.session
    if session is None:
        return None
    host.edit(session.document)
    result = await controller.handle_will_save(session.document, SaveReason.MANUAL)
    await controller.handle_saved(session.document)
    return result
