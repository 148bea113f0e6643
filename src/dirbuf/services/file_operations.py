"""
File operation executor.

Wraps individual filesystem mutations so that every call yields an
OperationResult instead of raising. Batches of operations run concurrently
with asyncio.gather and keep their results aligned with their inputs.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dirbuf.core.errors import ErrorKind, classify_error, error_message
from dirbuf.core.platform import PlatformCapabilities, detect_platform
from dirbuf.infrastructure.filesystem import FileSystemInterface

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OperationResult:
    """
    Outcome of one filesystem mutation.

    Attributes:
        error: Exception raised by the filesystem, None on success
        kind: Classification of the error
        message: Formatted message naming the paths involved
    """

    error: Optional[BaseException] = None
    kind: Optional[ErrorKind] = None
    message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def already_exists(self) -> bool:
        return self.kind is ErrorKind.ALREADY_EXISTS


SUCCESS = OperationResult()


async def _resolve(
    operation: Awaitable[None],
    format_message: Callable[[str], str],
) -> OperationResult:
    try:
        await operation
    except Exception as e:
        return OperationResult(
            error=e,
            kind=classify_error(e),
            message=format_message(error_message(e)),
        )
    return SUCCESS


async def gather_results(operations: Iterable[Awaitable[OperationResult]]) -> list[OperationResult]:
    """Run operations concurrently; result i belongs to operation i."""
    return list(await asyncio.gather(*operations))


def report_results(results: Sequence[OperationResult]) -> Optional[str]:
    """
    Log every failed result.

    Returns:
        Message of the first failure, the only one shown to the user
    """
    first: Optional[str] = None
    for result in results:
        if result.ok:
            continue
        logger.error(result.message)
        if first is None:
            first = result.message
    return first


class FileOperationExecutor:
    """
    Uniform wrapper around filesystem mutations.

    The executor performs exactly the requested mutation; it never touches
    the directory cache.
    """

    def __init__(
        self,
        filesystem: FileSystemInterface,
        platform: Optional[PlatformCapabilities] = None,
    ):
        self._filesystem = filesystem
        self._platform = platform or detect_platform()

    @property
    def supports_merge_copy(self) -> bool:
        return self._platform.supports_merge_copy

    async def create_directory(self, path: Path) -> OperationResult:
        return await _resolve(
            self._filesystem.create_directory(path),
            lambda reason: f"Could not create {path}: {reason}",
        )

    async def create_file(self, path: Path) -> OperationResult:
        return await _resolve(
            self._filesystem.write_new_file(path),
            lambda reason: f"Could not create {path}: {reason}",
        )

    async def rename(self, source: Path, target: Path, overwrite: bool = False) -> OperationResult:
        return await _resolve(
            self._filesystem.rename(source, target, overwrite=overwrite),
            lambda reason: f"Could not rename {source} to {target}: {reason}",
        )

    async def copy(
        self,
        source: Path,
        target: Path,
        overwrite: bool = False,
        merge: bool = False,
    ) -> OperationResult:
        """
        Copy source to target.

        Raises:
            ValueError: If merge is requested on a platform without merge copy
        """
        if merge and not self._platform.supports_merge_copy:
            raise ValueError(f"Merge copy is not supported on {self._platform.name}")
        return await _resolve(
            self._filesystem.copy(source, target, overwrite=overwrite, merge=merge),
            lambda reason: f"Could not copy {source} to {target}: {reason}",
        )

    async def delete(
        self,
        path: Path,
        recursive: bool = False,
        use_trash: bool = False,
    ) -> OperationResult:
        return await _resolve(
            self._filesystem.delete(path, recursive=recursive, use_trash=use_trash),
            lambda reason: f"Could not delete {path}: {reason}",
        )

    async def symlink(self, target: Path, link_path: Path) -> OperationResult:
        return await _resolve(
            self._filesystem.symlink(target, link_path),
            lambda reason: (
                f"Could not create symbolic link {link_path} pointing to {target}: {reason}"
            ),
        )
