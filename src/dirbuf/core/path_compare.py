"""
Deterministic ordering of directory entries.

Directories sort before everything else; within a category entries are
ordered by their full path string using ordinal comparison, whatever the
platform's case sensitivity.
"""

from collections.abc import Iterable

from dirbuf.core.models import FileEntry


def entry_sort_key(entry: FileEntry) -> tuple[int, str]:
    """Sort key equivalent to compare_entries."""
    return (0 if entry.is_dir else 1, entry.path.as_posix())


def compare_entries(a: FileEntry, b: FileEntry) -> int:
    """
    Compare two entries.

    Returns:
        -1 if a sorts first, 1 if b sorts first, 0 if they share a location
    """
    key_a = entry_sort_key(a)
    key_b = entry_sort_key(b)
    if key_a < key_b:
        return -1
    if key_a > key_b:
        return 1
    return 0


def sort_entries(entries: Iterable[FileEntry]) -> list[FileEntry]:
    """Return entries ordered directories-first, then by path."""
    return sorted(entries, key=entry_sort_key)
