"""
Selection engine.

Maps the line-oriented view of a directory listing onto entry indices and
updates the set of marked (asterisked) entries.

The rendered document has a header on line 0 and entry ``i`` on line
``i + 1``. Lines here are 0-based document lines.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from dirbuf.core.models import DirectoryListing, FileEntry


class MarkMode(Enum):
    """How a mark command changes the marks of its range."""

    ON = "on"
    OFF = "off"
    TOGGLE = "toggle"
    TOGGLE_ALL = "toggle-all"


@dataclass(frozen=True)
class LineSelection:
    """
    Selection reported by the view.

    Attributes:
        start_line: First selected document line
        end_line: Last selected document line
        cursor_line: Line holding the cursor
    """

    start_line: int
    end_line: int
    cursor_line: int

    @classmethod
    def at(cls, line: int) -> "LineSelection":
        """Empty selection with the cursor on a single line."""
        return cls(start_line=line, end_line=line, cursor_line=line)

    @classmethod
    def span(cls, start_line: int, end_line: int) -> "LineSelection":
        """Selection covering start_line..end_line with the cursor at the end."""
        return cls(start_line=start_line, end_line=end_line, cursor_line=end_line)


@dataclass(frozen=True)
class MarkUpdate:
    """
    Outcome of a mark command.

    Attributes:
        start: First entry index of the operative range
        end: Index one past the last entry of the range
        marked: Whether the range became marked, None for an empty range
        advance_cursor: The view should move its cursor down one line
    """

    start: int
    end: int
    marked: Optional[bool]
    advance_cursor: bool = False

    @property
    def changed(self) -> bool:
        return self.marked is not None


def focused_index(listing: DirectoryListing, cursor_line: int) -> Optional[int]:
    """Index of the entry under the cursor, None on the header or past the end."""
    if 1 <= cursor_line <= len(listing.entries):
        return cursor_line - 1
    return None


def focused_entry(listing: DirectoryListing, cursor_line: int) -> Optional[FileEntry]:
    """Entry under the cursor, if any."""
    index = focused_index(listing, cursor_line)
    return listing.entries[index] if index is not None else None


def line_range(listing: DirectoryListing, selection: LineSelection) -> range:
    """Entry indices covered by the selected lines."""
    count = len(listing.entries)
    start = max(selection.start_line - 1, 0)
    end = min(max(selection.end_line, 0), count)
    return range(min(start, end), end)


def mark_range(entry_count: int, selection: LineSelection, mode: MarkMode) -> tuple[range, bool]:
    """
    Compute the operative entry range of a mark command.

    Returns:
        Tuple of (entry index range, whether the view should advance its cursor)
    """
    start = max(selection.start_line - 1, 0)
    end = selection.end_line
    advance_cursor = False

    if mode is MarkMode.TOGGLE_ALL:
        start, end = 0, entry_count
    elif end <= 0:
        # Cursor on the header: the command applies to the whole listing
        end = entry_count
    elif end < entry_count:
        advance_cursor = True

    end = min(end, entry_count)
    return range(min(start, end), end), advance_cursor


def apply_marks(
    listing: DirectoryListing,
    selection: LineSelection,
    mode: MarkMode,
) -> MarkUpdate:
    """
    Mark, unmark or toggle the entries of a selection.

    For TOGGLE and TOGGLE_ALL the range becomes marked unless every entry in
    it is already marked, in which case it becomes unmarked. An empty range
    changes nothing.

    Args:
        listing: Cached listing to update in place
        selection: Selection reported by the view
        mode: Mark command

    Returns:
        MarkUpdate describing what happened
    """
    target, advance_cursor = mark_range(len(listing.entries), selection, mode)
    if len(target) == 0:
        return MarkUpdate(target.start, target.stop, None, advance_cursor)

    if mode is MarkMode.ON:
        should_mark = True
    elif mode is MarkMode.OFF:
        should_mark = False
    else:
        marked_inside = sum(1 for index in listing.marked_indices if index in target)
        should_mark = marked_inside != len(target)

    marks = set(listing.marked_indices)
    if should_mark:
        marks.update(target)
    else:
        marks.difference_update(target)
    listing.set_marks(marks)

    return MarkUpdate(target.start, target.stop, should_mark, advance_cursor)


def selected_entries(listing: DirectoryListing, selection: LineSelection) -> list[FileEntry]:
    """
    Entries an action applies to.

    The marked entries when there are any, otherwise the entries under the
    selected lines.
    """
    if listing.marked_indices:
        return listing.marked_entries()
    return [listing.entries[index] for index in line_range(listing, selection)]


def existing_names(
    listing: DirectoryListing,
    exclude: Iterable[FileEntry] = (),
) -> set[str]:
    """Names present in the listing, minus those of the excluded entries."""
    excluded = {entry.path for entry in exclude}
    return {entry.name for entry in listing.entries if entry.path not in excluded}
