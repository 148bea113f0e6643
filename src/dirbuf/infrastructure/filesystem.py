"""
Filesystem infrastructure component.

Provides the filesystem primitives dirbuf builds on behind an async
interface. Implementations raise plain OSError subclasses; a destination
that already exists is always reported as FileExistsError so that callers
can offer conflict resolution.
"""

import asyncio
import errno
import logging
import os
import shutil
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from functools import partial
from pathlib import Path
from typing import Any, TypeVar

from send2trash import send2trash

from dirbuf.core.models import EntryKind, FileStat

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class DirectoryChild:
    """
    One item reported by a directory listing.

    Attributes:
        name: Base name of the child
        is_dir: The child is a directory (following symlinks)
        is_symlink: The child itself is a symbolic link
    """

    name: str
    is_dir: bool
    is_symlink: bool


class FileSystemInterface(ABC):
    """
    Abstract interface for filesystem access.

    All methods are coroutines so that independent calls can run
    concurrently with asyncio.gather.
    """

    @abstractmethod
    async def list_directory(self, path: Path) -> list[DirectoryChild]:
        """List the children of a directory."""
        pass

    @abstractmethod
    async def stat(self, path: Path) -> FileStat:
        """Stat a path, following symlinks."""
        pass

    @abstractmethod
    async def create_directory(self, path: Path) -> None:
        """Create a directory; fails if it exists."""
        pass

    @abstractmethod
    async def write_new_file(self, path: Path) -> None:
        """Create an empty file; fails if it exists."""
        pass

    @abstractmethod
    async def rename(self, source: Path, target: Path, overwrite: bool = False) -> None:
        """Move source to target."""
        pass

    @abstractmethod
    async def copy(
        self,
        source: Path,
        target: Path,
        overwrite: bool = False,
        merge: bool = False,
    ) -> None:
        """
        Copy source to target.

        Args:
            source: File or directory to copy
            target: Destination path
            overwrite: Replace an existing destination
            merge: Combine directory trees instead of replacing the destination
        """
        pass

    @abstractmethod
    async def delete(self, path: Path, recursive: bool = False, use_trash: bool = False) -> None:
        """Delete a path, optionally moving it to the trash."""
        pass

    @abstractmethod
    async def symlink(self, target: Path, link_path: Path) -> None:
        """Create link_path pointing to target."""
        pass

    @abstractmethod
    async def realpath(self, path: Path) -> Path:
        """Resolve symlinks in path."""
        pass


def _exists(path: Path) -> bool:
    return os.path.lexists(path)


def _raise_exists(path: Path) -> None:
    raise FileExistsError(errno.EEXIST, os.strerror(errno.EEXIST), str(path))


def _remove(path: Path) -> None:
    """Remove a file, link or directory tree."""
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    else:
        path.unlink()


def _copy_no_clobber(source: str, target: str) -> str:
    """copytree copy_function that refuses to replace files."""
    if os.path.lexists(target):
        _raise_exists(Path(target))
    return shutil.copy2(source, target, follow_symlinks=False)


class LocalFileSystem(FileSystemInterface):
    """
    FileSystemInterface backed by os and shutil.

    Blocking calls run in the default executor so that a batch of
    operations proceeds concurrently.
    """

    async def _run(self, func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(func, *args, **kwargs))

    async def list_directory(self, path: Path) -> list[DirectoryChild]:
        return await self._run(self._list_directory_sync, path)

    @staticmethod
    def _list_directory_sync(path: Path) -> list[DirectoryChild]:
        children = []
        with os.scandir(path) as iterator:
            for item in iterator:
                try:
                    is_dir = item.is_dir()
                except OSError:
                    is_dir = False
                children.append(
                    DirectoryChild(name=item.name, is_dir=is_dir, is_symlink=item.is_symlink())
                )
        return children

    async def stat(self, path: Path) -> FileStat:
        return await self._run(self._stat_sync, path)

    @staticmethod
    def _stat_sync(path: Path) -> FileStat:
        result = path.stat()
        if path.is_dir():
            kind = EntryKind.DIRECTORY
        elif path.is_file():
            kind = EntryKind.FILE
        else:
            kind = EntryKind.OTHER
        return FileStat(size=result.st_size, modified_time=result.st_mtime, kind=kind)

    async def create_directory(self, path: Path) -> None:
        await self._run(os.makedirs, path)

    async def write_new_file(self, path: Path) -> None:
        await self._run(self._write_new_file_sync, path)

    @staticmethod
    def _write_new_file_sync(path: Path) -> None:
        with open(path, "x", encoding="utf-8"):
            pass

    async def rename(self, source: Path, target: Path, overwrite: bool = False) -> None:
        await self._run(self._rename_sync, source, target, overwrite)

    @staticmethod
    def _rename_sync(source: Path, target: Path, overwrite: bool) -> None:
        if _exists(target):
            if not overwrite:
                _raise_exists(target)
            _remove(target)
        shutil.move(str(source), str(target))

    async def copy(
        self,
        source: Path,
        target: Path,
        overwrite: bool = False,
        merge: bool = False,
    ) -> None:
        await self._run(self._copy_sync, source, target, overwrite, merge)

    @staticmethod
    def _copy_sync(source: Path, target: Path, overwrite: bool, merge: bool) -> None:
        source_is_tree = source.is_dir() and not source.is_symlink()

        if merge and source_is_tree:
            copy_function = shutil.copy2 if overwrite else _copy_no_clobber
            shutil.copytree(
                source,
                target,
                symlinks=True,
                dirs_exist_ok=True,
                copy_function=copy_function,
            )
            return

        if _exists(target):
            if not overwrite:
                _raise_exists(target)
            _remove(target)

        if source_is_tree:
            shutil.copytree(source, target, symlinks=True)
        else:
            shutil.copy2(source, target, follow_symlinks=False)

    async def delete(self, path: Path, recursive: bool = False, use_trash: bool = False) -> None:
        await self._run(self._delete_sync, path, recursive, use_trash)

    @staticmethod
    def _delete_sync(path: Path, recursive: bool, use_trash: bool) -> None:
        if use_trash:
            send2trash(str(path))
        elif path.is_dir() and not path.is_symlink():
            if recursive:
                shutil.rmtree(path)
            else:
                path.rmdir()
        else:
            path.unlink()

    async def symlink(self, target: Path, link_path: Path) -> None:
        await self._run(
            os.symlink, target, link_path, target_is_directory=os.path.isdir(target)
        )

    async def realpath(self, path: Path) -> Path:
        return await self._run(path.resolve, strict=True)
