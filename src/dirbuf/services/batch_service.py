"""
Batch operation engine.

Drives a multi-file create/rename/copy/symlink through an editable name
list: the list is written to a temporary file and opened in the host, and
saving it manually validates the edits and runs the resulting operations.

States: IDLE -> OPEN -> VALIDATING -> EXECUTING -> COMPLETED -> IDLE, with
OPEN -> IDLE when the document is closed unsaved.
"""

import logging
from collections.abc import Awaitable, Sequence
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from dirbuf.core.errors import (
    DirbufError,
    DuplicateTargetNamesError,
    InvalidNameError,
    LineCountMismatchError,
    SessionBusyError,
)
from dirbuf.core.models import DirectoryListing, FileEntry, OperationType
from dirbuf.core.name_validator import validate_name
from dirbuf.core.platform import PlatformCapabilities, detect_platform
from dirbuf.core.selection import existing_names
from dirbuf.infrastructure.batch_workspace import BatchWorkspace
from dirbuf.infrastructure.documents import (
    DocumentHostInterface,
    SaveReason,
    TextDocumentInterface,
)
from dirbuf.services.action_types import ActionResult, error, info
from dirbuf.services.directory_cache import DirectoryCache
from dirbuf.services.file_operations import (
    FileOperationExecutor,
    OperationResult,
    gather_results,
    report_results,
)

logger = logging.getLogger(__name__)

SESSION_BUSY_MESSAGE = "Batch already exists. Please save or cancel it first."
LINE_COUNT_MESSAGE = "The line count does not match the file selection!"
DUPLICATE_NAMES_MESSAGE = "Duplicated file names."

BATCH_TITLES = {
    OperationType.CREATE: "New Names",
    OperationType.RENAME: "Old Names ↔ New Names",
    OperationType.COPY: "Source Names ↔ Dest Names",
    OperationType.SYMLINK: "Target Names ↔ Path Names",
}

CREATE_HINT = (
    'Input file names. For folder names, add "/" (e.g. "foldername/"). '
    "Save the tab manually to execute. Close the tab to cancel."
)
EDIT_HINT = "Edit file names. Save this tab manually to execute. Close this tab to cancel."
SYMLINK_HINT = "Edit path names. Save this tab manually to execute. Close this tab to cancel."


class BatchState(Enum):
    """Lifecycle state of the batch engine."""

    IDLE = "idle"
    OPEN = "open"
    VALIDATING = "validating"
    EXECUTING = "executing"
    COMPLETED = "completed"


@dataclass
class BatchSession:
    """
    One batch operation in progress.

    Attributes:
        operation_type: What the name list drives
        directory: Directory the selection was taken from
        source_entries: Selected entries in listing order, empty for CREATE
        existing_names: Names the new names must not collide with
        document: The editable name-list document
        original_path: Immutable original names list, None for CREATE
        state: Current state
    """

    operation_type: OperationType
    directory: Path
    source_entries: tuple[FileEntry, ...]
    existing_names: frozenset[str]
    document: TextDocumentInterface
    original_path: Optional[Path] = None
    state: BatchState = BatchState.OPEN

    @property
    def completed(self) -> bool:
        return self.state is BatchState.COMPLETED

    def owns(self, document: TextDocumentInterface) -> bool:
        return document.path == self.document.path


@dataclass(frozen=True)
class PlannedOperation:
    """
    One filesystem operation derived from a line of the name list.

    Attributes:
        operation_type: Operation to run
        target: Path created by the operation
        source: Entry the line corresponds to, None for CREATE
        is_dir: The target is a directory
    """

    operation_type: OperationType
    target: Path
    source: Optional[FileEntry] = None
    is_dir: bool = False

    @property
    def is_noop(self) -> bool:
        """A rename that keeps the name."""
        return (
            self.operation_type is OperationType.RENAME
            and self.source is not None
            and self.source.path == self.target
        )


def _split_name(line: str) -> tuple[str, bool]:
    """Strip the directory marker from a name-list line."""
    if line.endswith("/"):
        return line[:-1], True
    return line, False


class BatchEngine:
    """
    State machine for name-list driven batch operations.

    At most one session exists at a time; starting another while one is
    open is rejected.
    """

    def __init__(
        self,
        executor: FileOperationExecutor,
        cache: DirectoryCache,
        host: DocumentHostInterface,
        workspace: BatchWorkspace,
        platform: Optional[PlatformCapabilities] = None,
    ):
        self._executor = executor
        self._cache = cache
        self._host = host
        self._workspace = workspace
        self._platform = platform or detect_platform()
        self._session: Optional[BatchSession] = None

    @property
    def session(self) -> Optional[BatchSession]:
        return self._session

    @property
    def state(self) -> BatchState:
        return self._session.state if self._session else BatchState.IDLE

    def start(
        self,
        operation_type: OperationType,
        listing: DirectoryListing,
        entries: Sequence[FileEntry] = (),
    ) -> ActionResult:
        """
        Open a new batch session.

        Args:
            operation_type: CREATE, RENAME, COPY or SYMLINK
            listing: Listing of the directory acted upon
            entries: Selected entries (ignored for CREATE)

        Returns:
            ActionResult carrying the session and the usage hint

        Raises:
            SessionBusyError: If a session is already open
        """
        if self._session is not None:
            raise SessionBusyError(SESSION_BUSY_MESSAGE, path=self._session.directory)

        is_create = operation_type is OperationType.CREATE
        sources = () if is_create else tuple(entries)
        exclude = sources if operation_type is OperationType.RENAME else ()
        names = frozenset(existing_names(listing, exclude=exclude))

        editable, original = self._workspace.write_names(
            [entry.display_name for entry in sources],
            with_original=not is_create,
        )
        document = self._host.open_editable(editable, original, BATCH_TITLES[operation_type])

        self._session = BatchSession(
            operation_type=operation_type,
            directory=listing.path,
            source_entries=sources,
            existing_names=names,
            document=document,
            original_path=original,
        )
        logger.info(
            f"Started {operation_type.value} batch in {listing.path} "
            f"with {len(sources)} entries"
        )

        self._cache.invalidate(listing.path, clear_marks=True)

        if is_create:
            hint = CREATE_HINT
        elif operation_type is OperationType.SYMLINK:
            hint = SYMLINK_HINT
        else:
            hint = EDIT_HINT
        return ActionResult.ok(info(hint), data=self._session)

    def plan(self, session: BatchSession) -> list[PlannedOperation]:
        """
        Validate the edited name list and derive its operations.

        Raises:
            LineCountMismatchError: Lines do not correspond 1:1 to the selection
            InvalidNameError: A line holds an invalid name
            DuplicateTargetNamesError: Two lines name the same target
        """
        document = session.document
        line_count = document.line_count()
        if line_count > 0 and not document.line_text(line_count - 1).strip():
            line_count -= 1

        is_create = session.operation_type is OperationType.CREATE
        if not is_create and line_count != len(session.source_entries):
            raise LineCountMismatchError(LINE_COUNT_MESSAGE, path=session.directory)

        planned: list[PlannedOperation] = []
        seen: set[str] = set()
        duplicated = False
        for index in range(line_count):
            name, marked_dir = _split_name(document.line_text(index))
            result = validate_name(name, session.existing_names, self._platform)
            if not result.valid:
                raise InvalidNameError(
                    f"Invalid value at line {index + 1}: {result.error_message}",
                    line=index + 1,
                )

            normalized = self._platform.normalize_name(name)
            duplicated = duplicated or normalized in seen
            seen.add(normalized)

            if is_create:
                planned.append(
                    PlannedOperation(
                        operation_type=session.operation_type,
                        target=session.directory / name,
                        is_dir=marked_dir,
                    )
                )
            else:
                source = session.source_entries[index]
                planned.append(
                    PlannedOperation(
                        operation_type=session.operation_type,
                        target=session.directory / name,
                        source=source,
                        is_dir=source.is_dir,
                    )
                )

        if duplicated:
            raise DuplicateTargetNamesError(DUPLICATE_NAMES_MESSAGE, path=session.directory)
        return planned

    async def handle_will_save(
        self,
        document: TextDocumentInterface,
        reason: SaveReason,
    ) -> Optional[ActionResult]:
        """
        React to the editable document being saved.

        Only a manual save of the session's document in the OPEN state runs
        the batch; everything else is ignored and returns None.
        """
        session = self._session
        if session is None or not session.owns(document):
            return None
        if reason is not SaveReason.MANUAL:
            logger.debug(f"Ignoring {reason.value} save of {document.path}")
            return None
        if session.state is not BatchState.OPEN:
            return None

        session.state = BatchState.VALIDATING
        try:
            planned = self.plan(session)
        except DirbufError as e:
            session.state = BatchState.OPEN
            logger.info(f"Batch validation failed: {e}")
            return ActionResult.failed(str(e))

        session.state = BatchState.EXECUTING
        runnable = [operation for operation in planned if not operation.is_noop]
        logger.info(f"Executing {len(runnable)} {session.operation_type.value} operations")
        results = await gather_results(self._execute(operation) for operation in runnable)
        first_error = report_results(results)

        session.state = BatchState.COMPLETED
        self._cache.invalidate(session.directory, clear_marks=True)

        result = ActionResult(success=first_error is None, data=results)
        if first_error is not None:
            result.messages.append(error(first_error))
        return result

    def _execute(self, operation: PlannedOperation) -> Awaitable[OperationResult]:
        operation_type = operation.operation_type
        if operation_type is OperationType.CREATE:
            if operation.is_dir:
                return self._executor.create_directory(operation.target)
            return self._executor.create_file(operation.target)
        if operation_type is OperationType.RENAME:
            return self._executor.rename(operation.source.path, operation.target)
        if operation_type is OperationType.COPY:
            return self._executor.copy(operation.source.path, operation.target)
        return self._executor.symlink(operation.source.path, operation.target)

    def handle_saved(self, document: TextDocumentInterface) -> bool:
        """
        Close the document of a completed session.

        Returns:
            True if the session ended
        """
        session = self._session
        if session is None or not session.owns(document) or not session.completed:
            return False
        self._host.close_document(session.document)
        self._end_session("completed")
        return True

    def handle_closed(self, document: TextDocumentInterface) -> bool:
        """
        The host closed a document.

        Closing the session's document ends the session; before completion
        this cancels the batch without any filesystem effect.

        Returns:
            True if the session ended
        """
        session = self._session
        if session is None or not session.owns(document):
            return False
        self._end_session("completed" if session.completed else "cancelled")
        return True

    def cancel(self) -> bool:
        """Discard the current session, if any."""
        if self._session is None:
            return False
        self._end_session("cancelled")
        return True

    def _end_session(self, outcome: str) -> None:
        session = self._session
        self._session = None
        if session is not None:
            logger.info(f"Batch {session.operation_type.value} in {session.directory} {outcome}")

