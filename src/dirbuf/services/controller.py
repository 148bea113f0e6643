"""
Filer controller.

Entry points the host calls in response to user actions. Every entry point
returns an ActionResult; expected failures become messages instead of
exceptions.
"""

import logging
from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dirbuf.core.config import FilerConfig
from dirbuf.core.errors import CacheMissError, DirbufError, error_message
from dirbuf.core.models import DirectoryListing, FileEntry, OperationType
from dirbuf.core.name_validator import validate_name
from dirbuf.core.platform import PlatformCapabilities, detect_platform
from dirbuf.core.selection import (
    LineSelection,
    MarkMode,
    apply_marks,
    existing_names,
    focused_entry,
    selected_entries,
)
from dirbuf.infrastructure.documents import (
    DocumentHostInterface,
    SaveReason,
    TextDocumentInterface,
)
from dirbuf.infrastructure.filesystem import FileSystemInterface
from dirbuf.services.action_types import ActionResult, MessageLevel, error, info
from dirbuf.services.batch_service import BatchEngine
from dirbuf.services.clipboard_service import PENDING_VERBS, ClipboardEngine
from dirbuf.services.directory_cache import DirectoryCache
from dirbuf.services.file_operations import FileOperationExecutor, gather_results, report_results

logger = logging.getLogger(__name__)

DELETE_MESSAGE = "Delete this file?"
DELETE_CHOICE = "Delete"
NO_SELECTION_MESSAGE = "No file is selected."
NEW_NAME_REQUIRED_MESSAGE = "A new name is required."


@dataclass
class NavigationContext:
    """
    Open directory views.

    A directory may be shown by several views; its cache entry lives while
    at least one of them is open.
    """

    views: Counter = field(default_factory=Counter)

    def register(self, path: Path) -> None:
        self.views[path] += 1

    def release(self, path: Path) -> bool:
        """
        Close one view of path.

        Returns:
            True if that was the last view of path
        """
        if self.views[path] > 1:
            self.views[path] -= 1
            return False
        return self.views.pop(path, 0) > 0

    def is_open(self, path: Path) -> bool:
        return self.views[path] > 0

    @property
    def open_paths(self) -> list[Path]:
        return [path for path, count in self.views.items() if count > 0]


def _failure(e: DirbufError) -> ActionResult:
    level = MessageLevel.WARNING if isinstance(e, CacheMissError) else MessageLevel.ERROR
    return ActionResult.failed(str(e), level)


def _join_paths(paths: Iterable[Path]) -> str:
    return ", ".join(str(path) for path in paths)


class FilerController:
    """
    Per-action entry points of the filer.

    Owns the navigation state and routes actions to the directory cache,
    the batch engine and the clipboard engine.
    """

    def __init__(
        self,
        filesystem: FileSystemInterface,
        cache: DirectoryCache,
        executor: FileOperationExecutor,
        batch: BatchEngine,
        clipboard: ClipboardEngine,
        host: DocumentHostInterface,
        config: Optional[FilerConfig] = None,
        platform: Optional[PlatformCapabilities] = None,
    ):
        self._filesystem = filesystem
        self._cache = cache
        self._executor = executor
        self._batch = batch
        self._clipboard = clipboard
        self._host = host
        self._config = config or FilerConfig()
        self._platform = platform or detect_platform()
        self.navigation = NavigationContext()

    @property
    def batch(self) -> BatchEngine:
        return self._batch

    @property
    def clipboard(self) -> ClipboardEngine:
        return self._clipboard

    async def open_directory(
        self,
        path: Path,
        resolve_symlinks: Optional[bool] = None,
    ) -> ActionResult:
        """
        Open a view of a directory.

        Args:
            path: Directory to open
            resolve_symlinks: Resolve the path first; configuration default if None

        Returns:
            ActionResult whose data is the DirectoryListing
        """
        if resolve_symlinks is None:
            resolve_symlinks = self._config.resolve_symlinks
        if resolve_symlinks:
            try:
                path = await self._filesystem.realpath(path)
            except OSError as e:
                return ActionResult.failed(f"Could not read {path}: {error_message(e)}")

        try:
            listing = await self._cache.read(path)
        except DirbufError as e:
            return ActionResult.failed(f"Could not read {path}: {e}")

        self.navigation.register(path)
        return ActionResult.ok(data=listing)

    async def refresh(self, path: Path, reset_marks: bool = False) -> ActionResult:
        """Re-read a directory, optionally dropping its marks."""
        self._cache.invalidate(path, clear_marks=reset_marks)
        try:
            listing = await self._cache.read(path)
        except DirbufError as e:
            return ActionResult.failed(f"Could not read {path}: {e}")
        return ActionResult.ok(data=listing)

    async def go_to_parent(self, path: Path) -> ActionResult:
        return await self.open_directory(path.parent)

    async def open_focused(
        self,
        path: Path,
        cursor_line: int,
        resolve_symlinks: Optional[bool] = None,
    ) -> ActionResult:
        """
        Open the entry under the cursor.

        A directory is opened as a view; a file is handed to the host.

        Args:
            path: Directory of the view
            cursor_line: Line of the cursor in the rendered listing
            resolve_symlinks: Resolve the entry first; configuration default if None

        Returns:
            ActionResult whose data is the DirectoryListing of an opened
            directory, or the path of an opened file
        """
        try:
            listing = self._cache.require(path)
        except CacheMissError as e:
            return _failure(e)

        entry = focused_entry(listing, cursor_line)
        if entry is None:
            return ActionResult.failed(NO_SELECTION_MESSAGE, MessageLevel.WARNING)

        if resolve_symlinks is None:
            resolve_symlinks = self._config.resolve_symlinks
        if entry.is_dir:
            return await self.open_directory(entry.path, resolve_symlinks)

        target = entry.path
        if resolve_symlinks:
            try:
                target = await self._filesystem.realpath(target)
            except OSError as e:
                return ActionResult.failed(f"Could not resolve {target}: {error_message(e)}")
        self._host.open_file(target)
        return ActionResult.ok(data=target)

    async def close_views(self, closed_paths: Iterable[Path]) -> ActionResult:
        """
        Forget views and documents the host closed.

        Each closed directory path releases one view; the cache entry is
        evicted with the last view of the directory. A batch session ends
        when its document is closed or when no view of its directory is left.

        Args:
            closed_paths: Paths of the closed views and documents

        Returns:
            ActionResult whose data is the list of evicted directories
        """
        closed = list(closed_paths)
        evicted = []
        for path in closed:
            if self.navigation.release(path) and self._cache.evict(path):
                evicted.append(path)

        session = self._batch.session
        if session is not None and (
            session.document.path in closed or not self.navigation.is_open(session.directory)
        ):
            self._batch.handle_closed(session.document)

        return ActionResult.ok(data=evicted)

    async def mark(self, path: Path, selection: LineSelection, mode: MarkMode) -> ActionResult:
        """
        Mark, unmark or toggle entries.

        Returns:
            ActionResult whose data is the MarkUpdate
        """
        try:
            listing = self._cache.require(path)
        except CacheMissError as e:
            return _failure(e)

        update = apply_marks(listing, selection, mode)
        if update.changed:
            self._cache.invalidate(path, clear_marks=False)
        return ActionResult.ok(data=update)

    async def create(self, path: Path, name: str, is_dir: bool = False) -> ActionResult:
        """Create a single file or directory in path."""
        try:
            listing = self._cache.require(path)
        except CacheMissError as e:
            return _failure(e)

        validation = validate_name(name, existing_names(listing), self._platform)
        if not validation.valid:
            return ActionResult.failed(validation.error_message)

        target = path / name
        if is_dir:
            result = await self._executor.create_directory(target)
        else:
            result = await self._executor.create_file(target)
        self._cache.invalidate(path, clear_marks=True)

        if not result.ok:
            logger.error(result.message)
            return ActionResult.failed(result.message)
        return ActionResult.ok(data=target)

    async def create_batch(self, path: Path) -> ActionResult:
        """Open a name list for creating several files and directories."""
        try:
            listing = self._cache.require(path)
            return self._batch.start(OperationType.CREATE, listing)
        except DirbufError as e:
            return _failure(e)

    async def edit_entries(
        self,
        path: Path,
        selection: LineSelection,
        operation_type: OperationType,
        new_name: Optional[str] = None,
        batch: bool = False,
    ) -> ActionResult:
        """
        Rename, copy or symlink the selected entries.

        Several entries (or batch=True) open a batch session; a single entry
        is otherwise handled directly and needs new_name.
        """
        try:
            listing = self._cache.require(path)
        except CacheMissError as e:
            return _failure(e)

        entries = selected_entries(listing, selection)
        if not entries:
            return ActionResult.failed(NO_SELECTION_MESSAGE, MessageLevel.WARNING)
        if batch or len(entries) > 1:
            try:
                return self._batch.start(operation_type, listing, entries)
            except DirbufError as e:
                return _failure(e)

        if new_name is None:
            return ActionResult.failed(NEW_NAME_REQUIRED_MESSAGE, MessageLevel.WARNING)
        return await self._edit_single(listing, entries[0], operation_type, new_name)

    async def _edit_single(
        self,
        listing: DirectoryListing,
        entry: FileEntry,
        operation_type: OperationType,
        new_name: str,
    ) -> ActionResult:
        name = new_name[:-1] if new_name.endswith("/") else new_name
        exclude = [entry] if operation_type is OperationType.RENAME else []
        validation = validate_name(name, existing_names(listing, exclude), self._platform)
        if not validation.valid:
            return ActionResult.failed(validation.error_message)

        target = listing.path / name
        if operation_type is OperationType.RENAME and target == entry.path:
            return ActionResult.ok(data=target)

        if operation_type is OperationType.RENAME:
            result = await self._executor.rename(entry.path, target)
        elif operation_type is OperationType.COPY:
            result = await self._executor.copy(entry.path, target)
        elif operation_type is OperationType.SYMLINK:
            result = await self._executor.symlink(entry.path, target)
        else:
            raise ValueError(f"Cannot edit entries with {operation_type.value}")
        self._cache.invalidate(listing.path, clear_marks=True)

        if not result.ok:
            logger.error(result.message)
            return ActionResult.failed(result.message)
        return ActionResult.ok(data=target)

    async def delete(
        self,
        path: Path,
        selection: LineSelection,
        use_trash: Optional[bool] = None,
    ) -> ActionResult:
        """Delete the selected entries after confirmation."""
        try:
            listing = self._cache.require(path)
        except CacheMissError as e:
            return _failure(e)

        entries = selected_entries(listing, selection)
        if not entries:
            return ActionResult.failed(NO_SELECTION_MESSAGE, MessageLevel.WARNING)

        detail = "\n".join(str(entry.path) for entry in entries)
        choice = await self._host.ask_choice(DELETE_MESSAGE, detail, [DELETE_CHOICE])
        if choice != DELETE_CHOICE:
            logger.debug(f"Delete of {len(entries)} entries dismissed")
            return ActionResult(success=False)

        if use_trash is None:
            use_trash = self._config.use_trash
        results = await gather_results(
            self._executor.delete(entry.path, recursive=True, use_trash=use_trash)
            for entry in entries
        )
        first_error = report_results(results)
        self._cache.invalidate(path, clear_marks=True)

        deleted = [entry.path for entry, result in zip(entries, results) if result.ok]
        result = ActionResult(success=first_error is None, data=deleted)
        if deleted:
            result.messages.append(info(f"{_join_paths(deleted)} has been deleted."))
        if first_error is not None:
            result.messages.append(error(first_error))
        return result

    async def set_pending(
        self,
        path: Path,
        selection: LineSelection,
        operation_type: OperationType,
    ) -> ActionResult:
        """Cut, copy or target the selected entries for a later paste."""
        try:
            listing = self._cache.require(path)
        except CacheMissError as e:
            return _failure(e)

        entries = selected_entries(listing, selection)
        if not entries:
            return ActionResult.failed(NO_SELECTION_MESSAGE, MessageLevel.WARNING)

        pending = self._clipboard.set(operation_type, path, entries)
        self._cache.invalidate(path, clear_marks=True)
        verb = PENDING_VERBS[operation_type]
        paths = _join_paths(entry.path for entry in entries)
        return ActionResult.ok(info(f"{paths} has been {verb}."), data=pending)

    async def paste(self, path: Path) -> ActionResult:
        """Paste the pending operation into path."""
        try:
            self._cache.require(path)
        except CacheMissError as e:
            return _failure(e)
        return await self._clipboard.paste(path)

    async def handle_will_save(
        self,
        document: TextDocumentInterface,
        reason: SaveReason,
    ) -> ActionResult:
        """Forward a save of an editable document to the batch engine."""
        result = await self._batch.handle_will_save(document, reason)
        return result if result is not None else ActionResult.ok()

    async def handle_saved(self, document: TextDocumentInterface) -> ActionResult:
        ended = self._batch.handle_saved(document)
        return ActionResult.ok(data=ended)

    async def handle_closed(self, document: TextDocumentInterface) -> ActionResult:
        ended = self._batch.handle_closed(document)
        return ActionResult.ok(data=ended)
