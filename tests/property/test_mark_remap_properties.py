"""
Property-based tests for keeping marks across directory re-reads.
"""

from hypothesis import given, settings
from hypothesis import strategies as st

from dirbuf.services.directory_cache import DirectoryCache
from tests.support.filer_strategies import BASE_DIR, entry_name
from tests.support.filer_test_utils import StaticFileSystem, run_async

name_sets = st.sets(entry_name, max_size=10)


@given(data=st.data(), before=name_sets, after=name_sets)
@settings(max_examples=100)
def test_marks_follow_entries_that_survive_a_refresh(data, before: set, after: set):
    """After a re-read exactly the marked entries that still exist are marked."""
    filesystem = StaticFileSystem()
    filesystem.set_children(BASE_DIR, sorted(before))
    cache = DirectoryCache(filesystem)

    listing = run_async(cache.read(BASE_DIR))
    if listing.entries:
        listing.set_marks(
            data.draw(st.sets(st.integers(min_value=0, max_value=len(listing.entries) - 1)))
        )
    marked_paths = {entry.path for entry in listing.marked_entries()}

    filesystem.set_children(BASE_DIR, sorted(after))
    cache.invalidate(BASE_DIR)
    refreshed = run_async(cache.read(BASE_DIR))

    expected = {path for path in marked_paths if path.name in after}
    assert {entry.path for entry in refreshed.marked_entries()} == expected
    assert refreshed.marked_indices == sorted(set(refreshed.marked_indices))


@given(names=name_sets)
@settings(max_examples=100)
def test_clearing_invalidation_drops_every_mark(names: set):
    """An invalidation that clears marks leaves none after the re-read."""
    filesystem = StaticFileSystem()
    filesystem.set_children(BASE_DIR, sorted(names))
    cache = DirectoryCache(filesystem)

    listing = run_async(cache.read(BASE_DIR))
    listing.set_marks(range(len(listing.entries)))

    cache.invalidate(BASE_DIR, clear_marks=True)
    refreshed = run_async(cache.read(BASE_DIR))

    assert refreshed.marked_indices == []
