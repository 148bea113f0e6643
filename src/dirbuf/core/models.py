"""
Data models shared across dirbuf layers.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional


class EntryKind(Enum):
    """Type of a filesystem entry as reported by stat."""

    FILE = "file"
    DIRECTORY = "directory"
    OTHER = "other"


class OperationType(Enum):
    """File operations that can be driven through a name list or the clipboard."""

    CREATE = "create"
    RENAME = "rename"
    COPY = "copy"
    SYMLINK = "symlink"


@dataclass(frozen=True)
class FileStat:
    """
    Result of a successful stat call.

    Attributes:
        size: Size in bytes
        modified_time: Modification timestamp (Unix epoch)
        kind: Type of the entry the path resolves to
    """

    size: int
    modified_time: float
    kind: EntryKind


@dataclass(frozen=True)
class FileEntry:
    """
    One child of a directory listing.

    Entries are immutable; a refresh supersedes them with new instances.

    Attributes:
        path: Absolute path of the entry, its identity
        is_dir: True if the listing reported a directory
        is_symlink: True if the listing reported a symbolic link
        stat: Stat result, None when stat failed
    """

    path: Path
    is_dir: bool = False
    is_symlink: bool = False
    stat: Optional[FileStat] = None

    @property
    def name(self) -> str:
        """Base name of the entry."""
        return self.path.name

    @property
    def display_name(self) -> str:
        """Name as written in a name list (directories end with '/')."""
        return self.name + "/" if self.is_dir else self.name


@dataclass
class DirectoryListing:
    """
    Cached listing of one directory.

    Attributes:
        path: The directory's path
        entries: Children ordered by path_compare
        marked_indices: Ascending, duplicate-free indices into entries
        stale: When True the next read re-scans the directory
    """

    path: Path
    entries: list[FileEntry] = field(default_factory=list)
    marked_indices: list[int] = field(default_factory=list)
    stale: bool = False

    @property
    def line_count(self) -> int:
        """Lines of the rendered document: one header plus one per entry."""
        return len(self.entries) + 1

    def marked_entries(self) -> list[FileEntry]:
        """Entries currently marked, in listing order."""
        return [self.entries[index] for index in self.marked_indices]

    def set_marks(self, indices) -> None:
        """Replace the marks, keeping them sorted, unique and in range."""
        count = len(self.entries)
        self.marked_indices = sorted({index for index in indices if 0 <= index < count})


@dataclass(frozen=True)
class PendingOperation:
    """
    A deferred move/copy/symlink waiting for a paste.

    Attributes:
        operation_type: RENAME (move), COPY or SYMLINK
        source_dir: Directory the entries were captured from
        source_entries: Snapshot of the entries at capture time
    """

    operation_type: OperationType
    source_dir: Path
    source_entries: tuple[FileEntry, ...]
