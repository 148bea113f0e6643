"""
Directory cache.

Keeps one listing per directory path. Listings are served from the cache
until they are invalidated; a re-read keeps the marks of entries that still
exist.
"""

import asyncio
import logging
from collections.abc import Callable
from pathlib import Path
from typing import Optional

from dirbuf.core.errors import CacheMissError, error_from_os_error, error_message
from dirbuf.core.models import DirectoryListing, FileEntry, FileStat
from dirbuf.core.path_compare import sort_entries
from dirbuf.infrastructure.filesystem import DirectoryChild, FileSystemInterface

logger = logging.getLogger(__name__)

CACHE_MISS_MESSAGE = "The cache has been deleted. Please refresh the filer."


class DirectoryCache:
    """
    Cached directory listings keyed by path.

    Attributes:
        on_content_changed: Called with a directory path whenever its
            rendered view becomes outdated
    """

    def __init__(
        self,
        filesystem: FileSystemInterface,
        on_content_changed: Optional[Callable[[Path], None]] = None,
    ):
        self._filesystem = filesystem
        self._listings: dict[Path, DirectoryListing] = {}
        self.on_content_changed = on_content_changed

    def __contains__(self, path: Path) -> bool:
        return path in self._listings

    @property
    def cached_paths(self) -> list[Path]:
        return list(self._listings)

    def get(self, path: Path) -> Optional[DirectoryListing]:
        """Cached listing for path, without any I/O."""
        return self._listings.get(path)

    def require(self, path: Path) -> DirectoryListing:
        """
        Cached listing for path.

        Raises:
            CacheMissError: If the directory is not cached
        """
        listing = self._listings.get(path)
        if listing is None:
            raise CacheMissError(CACHE_MISS_MESSAGE, path=path)
        return listing

    async def read(self, path: Path) -> DirectoryListing:
        """
        Read a directory, serving the cached listing while it is fresh.

        Child stats run concurrently; a child whose stat fails is kept
        without stats. Marks of the previous listing are carried over to
        the entries at the same locations.

        Args:
            path: Directory to read

        Returns:
            The current listing

        Raises:
            DirbufError: If the directory itself cannot be listed
        """
        cached = self._listings.get(path)
        if cached is not None and not cached.stale:
            return cached

        try:
            children = await self._filesystem.list_directory(path)
        except OSError as e:
            logger.error(f"Could not read {path}: {error_message(e)}")
            raise error_from_os_error(e, path) from e

        entries = await asyncio.gather(*(self._make_entry(path, child) for child in children))
        listing = DirectoryListing(path=path, entries=sort_entries(entries))
        if cached is not None:
            listing.marked_indices = _remap_marks(cached, listing.entries)

        self._listings[path] = listing
        logger.debug(f"Read {path}: {len(listing.entries)} entries")
        return listing

    async def _make_entry(self, directory: Path, child: DirectoryChild) -> FileEntry:
        entry_path = directory / child.name
        stat: Optional[FileStat]
        try:
            stat = await self._filesystem.stat(entry_path)
        except OSError as e:
            logger.warning(f"Could not get stats for {entry_path}: {error_message(e)}")
            stat = None
        return FileEntry(
            path=entry_path,
            is_dir=child.is_dir,
            is_symlink=child.is_symlink,
            stat=stat,
        )

    def invalidate(self, path: Path, clear_marks: bool = False) -> None:
        """
        Mark a cached listing stale and notify the view.

        Args:
            path: Directory whose view is outdated
            clear_marks: Also drop all marks of the listing
        """
        listing = self._listings.get(path)
        if listing is not None:
            listing.stale = True
            if clear_marks:
                listing.marked_indices = []
        self._notify(path)

    def evict(self, path: Path) -> bool:
        """
        Forget a directory entirely.

        Returns:
            True if the directory was cached
        """
        if self._listings.pop(path, None) is None:
            return False
        logger.debug(f"Evicted {path}")
        return True

    def _notify(self, path: Path) -> None:
        if self.on_content_changed is not None:
            self.on_content_changed(path)


def _remap_marks(previous: DirectoryListing, entries: list[FileEntry]) -> list[int]:
    """Indices in entries of the entries that were marked in previous."""
    index_by_path = {entry.path: index for index, entry in enumerate(entries)}
    remapped = set()
    for old_index in previous.marked_indices:
        new_index = index_by_path.get(previous.entries[old_index].path)
        if new_index is not None:
            remapped.add(new_index)
    return sorted(remapped)
