"""
Fake implementations for testing.

Provides recording and in-memory implementations of infrastructure
interfaces for use in unit and integration tests without a real editor.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from dirbuf.core.models import FileStat
from dirbuf.infrastructure.documents import FileTextDocument, TextDocumentInterface
from dirbuf.infrastructure.filesystem import (
    DirectoryChild,
    FileSystemInterface,
    LocalFileSystem,
)

MUTATING_CALLS = frozenset(
    {"create_directory", "write_new_file", "rename", "copy", "delete", "symlink"}
)


class RecordingFileSystem(FileSystemInterface):
    """
    FileSystemInterface that records every call before delegating.

    Wraps LocalFileSystem by default. Individual paths can be made to fail
    stat calls to exercise partial listing failures.
    """

    def __init__(self, inner: FileSystemInterface | None = None):
        self._inner = inner or LocalFileSystem()
        self.calls: list[tuple[str, tuple[Any, ...]]] = []
        self.failing_stats: set[Path] = set()

    @property
    def mutations(self) -> list[tuple[str, tuple[Any, ...]]]:
        """Recorded calls that change the filesystem."""
        return [call for call in self.calls if call[0] in MUTATING_CALLS]

    def reset(self) -> None:
        self.calls.clear()

    async def list_directory(self, path: Path) -> list[DirectoryChild]:
        self.calls.append(("list_directory", (path,)))
        return await self._inner.list_directory(path)

    async def stat(self, path: Path) -> FileStat:
        self.calls.append(("stat", (path,)))
        if path in self.failing_stats:
            raise PermissionError(13, "Permission denied", str(path))
        return await self._inner.stat(path)

    async def create_directory(self, path: Path) -> None:
        self.calls.append(("create_directory", (path,)))
        await self._inner.create_directory(path)

    async def write_new_file(self, path: Path) -> None:
        self.calls.append(("write_new_file", (path,)))
        await self._inner.write_new_file(path)

    async def rename(self, source: Path, target: Path, overwrite: bool = False) -> None:
        self.calls.append(("rename", (source, target, overwrite)))
        await self._inner.rename(source, target, overwrite=overwrite)

    async def copy(
        self,
        source: Path,
        target: Path,
        overwrite: bool = False,
        merge: bool = False,
    ) -> None:
        self.calls.append(("copy", (source, target, overwrite, merge)))
        await self._inner.copy(source, target, overwrite=overwrite, merge=merge)

    async def delete(self, path: Path, recursive: bool = False, use_trash: bool = False) -> None:
        self.calls.append(("delete", (path, recursive, use_trash)))
        await self._inner.delete(path, recursive=recursive, use_trash=use_trash)

    async def symlink(self, target: Path, link_path: Path) -> None:
        self.calls.append(("symlink", (target, link_path)))
        await self._inner.symlink(target, link_path)

    async def realpath(self, path: Path) -> Path:
        self.calls.append(("realpath", (path,)))
        return await self._inner.realpath(path)


@dataclass
class ChoicePrompt:
    """A prompt shown through InMemoryDocumentHost.ask_choice."""

    message: str
    detail: str
    choices: list[str]


@dataclass
class InMemoryDocumentHost:
    """
    DocumentHostInterface that records what it is asked to do.

    Attributes:
        answers: Scripted answers for ask_choice, consumed in order;
            None (or an exhausted list) dismisses the prompt
        opened: Documents opened, with their titles
        closed: Documents closed programmatically
        changed: Directories whose views were notified as outdated
        files: Files opened from a listing
        prompts: Prompts shown
    """

    answers: list[Optional[str]] = field(default_factory=list)
    opened: list[tuple[TextDocumentInterface, Optional[Path], str]] = field(default_factory=list)
    closed: list[TextDocumentInterface] = field(default_factory=list)
    changed: list[Path] = field(default_factory=list)
    files: list[Path] = field(default_factory=list)
    prompts: list[ChoicePrompt] = field(default_factory=list)

    def open_editable(
        self,
        path: Path,
        original_path: Optional[Path],
        title: str,
    ) -> TextDocumentInterface:
        document = FileTextDocument(path)
        self.opened.append((document, original_path, title))
        return document

    def close_document(self, document: TextDocumentInterface) -> None:
        self.closed.append(document)

    def notify_content_changed(self, directory: Path) -> None:
        self.changed.append(directory)

    def open_file(self, path: Path) -> None:
        self.files.append(path)

    async def ask_choice(
        self,
        message: str,
        detail: str,
        choices: Sequence[str],
    ) -> Optional[str]:
        self.prompts.append(ChoicePrompt(message, detail, list(choices)))
        if not self.answers:
            return None
        return self.answers.pop(0)
