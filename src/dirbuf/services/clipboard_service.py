"""
Clipboard engine.

Holds one pending move/copy/symlink captured from a directory and pastes it
into another directory, asking the user how to resolve name conflicts.
"""

import logging
from collections.abc import Sequence
from enum import Enum
from pathlib import Path
from typing import Optional

from dirbuf.core.models import FileEntry, OperationType, PendingOperation
from dirbuf.core.platform import PlatformCapabilities, detect_platform
from dirbuf.infrastructure.documents import DocumentHostInterface
from dirbuf.services.action_types import ActionResult, MessageLevel, error
from dirbuf.services.directory_cache import DirectoryCache
from dirbuf.services.file_operations import (
    FileOperationExecutor,
    OperationResult,
    gather_results,
    report_results,
)

logger = logging.getLogger(__name__)

CONFLICT_MESSAGE = "File already exists. Overwrite?"
SAME_PARENT_MESSAGE = "Same parent."
NO_PENDING_MESSAGE = "There is no pending operation."

PENDING_VERBS = {
    OperationType.RENAME: "cut",
    OperationType.COPY: "copied",
    OperationType.SYMLINK: "targeted",
}


class ConflictChoice(Enum):
    """Answers to the conflict prompt."""

    OVERWRITE = "Overwrite"
    MERGE = "Overwrite (Merge Folders)"
    SKIP = "Skip"


class ClipboardEngine:
    """
    One pending cross-directory operation and its paste.

    A new capture always replaces the previous one. A paste attempt clears
    the pending operation once it has run, whatever the outcome.
    """

    def __init__(
        self,
        executor: FileOperationExecutor,
        cache: DirectoryCache,
        host: DocumentHostInterface,
        platform: Optional[PlatformCapabilities] = None,
    ):
        self._executor = executor
        self._cache = cache
        self._host = host
        self._platform = platform or detect_platform()
        self._pending: Optional[PendingOperation] = None

    @property
    def pending(self) -> Optional[PendingOperation]:
        return self._pending

    def set(
        self,
        operation_type: OperationType,
        source_dir: Path,
        entries: Sequence[FileEntry],
    ) -> PendingOperation:
        """
        Capture entries for a later paste.

        Raises:
            ValueError: If operation_type cannot be pasted
        """
        if operation_type not in PENDING_VERBS:
            raise ValueError(f"Cannot paste a {operation_type.value} operation")
        self._pending = PendingOperation(
            operation_type=operation_type,
            source_dir=source_dir,
            source_entries=tuple(entries),
        )
        logger.info(
            f"Pending {operation_type.value} of {len(entries)} entries from {source_dir}"
        )
        return self._pending

    def clear(self) -> None:
        self._pending = None

    async def paste(self, target_dir: Path) -> ActionResult:
        """
        Run the pending operation into target_dir.

        Every entry is attempted concurrently without overwriting. Conflicts
        of a move or copy are resolved through a single prompt; the choice
        applies to all of them.

        Args:
            target_dir: Destination directory

        Returns:
            ActionResult with the first error, if any
        """
        pending = self._pending
        if pending is None:
            return ActionResult.failed(NO_PENDING_MESSAGE, MessageLevel.WARNING)
        if self._platform.same_path(target_dir, pending.source_dir):
            return ActionResult.failed(SAME_PARENT_MESSAGE, MessageLevel.WARNING)

        operation_type = pending.operation_type
        targets = [
            target_dir / entry.path.relative_to(pending.source_dir)
            for entry in pending.source_entries
        ]
        results = await gather_results(
            self._attempt(operation_type, entry, target)
            for entry, target in zip(pending.source_entries, targets)
        )

        resolvable = operation_type is not OperationType.SYMLINK
        conflicts = [
            (entry, target)
            for entry, target, result in zip(pending.source_entries, targets, results)
            if result.already_exists and resolvable
        ]
        first_error = report_results(
            [result for result in results if not (result.already_exists and resolvable)]
        )

        if conflicts:
            choice = await self._ask_conflict_choice(operation_type, conflicts)
            if choice in (ConflictChoice.OVERWRITE, ConflictChoice.MERGE):
                merge = choice is ConflictChoice.MERGE
                logger.info(f"Overwriting {len(conflicts)} conflicting entries (merge={merge})")
                retried = await gather_results(
                    self._attempt(
                        operation_type,
                        entry,
                        target,
                        overwrite=True,
                        merge=merge and entry.is_dir,
                    )
                    for entry, target in conflicts
                )
                retry_error = report_results(retried)
                if first_error is None:
                    first_error = retry_error
            else:
                logger.info(f"Skipped {len(conflicts)} conflicting entries")

        self._pending = None
        self._cache.invalidate(target_dir, clear_marks=True)
        if operation_type is OperationType.RENAME:
            self._cache.invalidate(pending.source_dir, clear_marks=True)

        result = ActionResult(success=first_error is None)
        if first_error is not None:
            result.messages.append(error(first_error))
        return result

    async def _ask_conflict_choice(
        self,
        operation_type: OperationType,
        conflicts: list[tuple[FileEntry, Path]],
    ) -> Optional[ConflictChoice]:
        choices = [ConflictChoice.OVERWRITE]
        if (
            operation_type is OperationType.COPY
            and self._executor.supports_merge_copy
            and any(entry.is_dir for entry, _ in conflicts)
        ):
            choices.append(ConflictChoice.MERGE)
        choices.append(ConflictChoice.SKIP)

        detail = "\n".join(str(target) for _, target in conflicts)
        answer = await self._host.ask_choice(
            CONFLICT_MESSAGE, detail, [choice.value for choice in choices]
        )
        for choice in choices:
            if choice.value == answer:
                return choice
        return None

    async def _attempt(
        self,
        operation_type: OperationType,
        entry: FileEntry,
        target: Path,
        overwrite: bool = False,
        merge: bool = False,
    ) -> OperationResult:
        if operation_type is OperationType.RENAME:
            return await self._executor.rename(entry.path, target, overwrite=overwrite)
        if operation_type is OperationType.COPY:
            return await self._executor.copy(entry.path, target, overwrite=overwrite, merge=merge)
        return await self._executor.symlink(entry.path, target)
