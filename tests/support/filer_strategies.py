"""
Hypothesis strategies for directory listings.
"""

from pathlib import Path

from hypothesis import strategies as st

from dirbuf.core.models import DirectoryListing
from dirbuf.core.path_compare import sort_entries
from dirbuf.core.selection import LineSelection
from tests.support.filer_test_utils import make_entry

BASE_DIR = Path("/data/work")

# Names mixing case, digits and punctuation so that ordinal order matters
entry_name = st.from_regex(r"[A-Za-z0-9_][A-Za-z0-9_.\- ]{0,10}", fullmatch=True).filter(
    lambda name: name not in (".", "..") and name == name.strip()
)


@st.composite
def entries_strategy(draw, min_size: int = 0, max_size: int = 12, base: Path = BASE_DIR):
    """Unsorted entries with unique names, some of them directories."""
    names = draw(st.lists(entry_name, min_size=min_size, max_size=max_size, unique=True))
    return [make_entry(base / name, is_dir=draw(st.booleans())) for name in names]


@st.composite
def listing_strategy(draw, min_size: int = 0, max_size: int = 12):
    """Sorted listing with an arbitrary set of marks."""
    entries = sort_entries(draw(entries_strategy(min_size=min_size, max_size=max_size)))
    listing = DirectoryListing(path=BASE_DIR, entries=entries)
    if entries:
        marks = draw(st.sets(st.integers(min_value=0, max_value=len(entries) - 1)))
        listing.set_marks(marks)
    return listing


@st.composite
def selection_strategy(draw, line_count: int):
    """Selection of document lines, header included, possibly past the end."""
    first = draw(st.integers(min_value=0, max_value=line_count + 1))
    last = draw(st.integers(min_value=first, max_value=line_count + 1))
    if first == last:
        return LineSelection.at(first)
    return LineSelection.span(first, last)
