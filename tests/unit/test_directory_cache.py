"""
Unit tests for DirectoryCache.

Uses real temporary directories through a RecordingFileSystem so that
I/O performed by the cache can be asserted.
"""

import logging
import os

import pytest

from dirbuf.core.errors import CacheMissError, NotFoundError
from dirbuf.infrastructure.fakes import RecordingFileSystem
from dirbuf.services.directory_cache import CACHE_MISS_MESSAGE, DirectoryCache
from tests.support.filer_test_utils import make_tree


@pytest.fixture
def filesystem():
    return RecordingFileSystem()


@pytest.fixture
def changed():
    return []


@pytest.fixture
def cache(filesystem, changed):
    return DirectoryCache(filesystem, on_content_changed=changed.append)


class TestDirectoryCacheRead:
    """Reading and caching listings."""

    @pytest.mark.asyncio
    async def test_read_orders_directories_first(self, cache, tmp_path):
        make_tree(tmp_path, files=["b.txt", "A.txt"], dirs=["zeta", "Alpha"])

        listing = await cache.read(tmp_path)

        assert [entry.display_name for entry in listing.entries] == [
            "Alpha/",
            "zeta/",
            "A.txt",
            "b.txt",
        ]
        assert all(entry.stat is not None for entry in listing.entries)

    @pytest.mark.asyncio
    async def test_fresh_listing_is_served_without_io(self, cache, filesystem, tmp_path):
        make_tree(tmp_path, files=["a.txt"])
        first = await cache.read(tmp_path)
        filesystem.reset()

        second = await cache.read(tmp_path)

        assert second is first
        assert filesystem.calls == []

    @pytest.mark.asyncio
    async def test_stale_listing_is_reread(self, cache, tmp_path):
        make_tree(tmp_path, files=["a.txt"])
        await cache.read(tmp_path)
        (tmp_path / "b.txt").write_text("new", encoding="utf-8")

        cache.invalidate(tmp_path)
        listing = await cache.read(tmp_path)

        assert [entry.name for entry in listing.entries] == ["a.txt", "b.txt"]
        assert listing.stale is False

    @pytest.mark.asyncio
    async def test_marks_are_remapped_by_path(self, cache, tmp_path):
        """Marked A and C; after B appears and A disappears only C is marked."""
        make_tree(tmp_path, files=["A", "C"])
        listing = await cache.read(tmp_path)
        listing.set_marks([0, 1])

        (tmp_path / "B").write_text("", encoding="utf-8")
        (tmp_path / "A").unlink()
        cache.invalidate(tmp_path)
        refreshed = await cache.read(tmp_path)

        assert [entry.name for entry in refreshed.entries] == ["B", "C"]
        assert refreshed.marked_indices == [1]

    @pytest.mark.asyncio
    async def test_clear_marks_on_invalidate(self, cache, tmp_path):
        make_tree(tmp_path, files=["a", "b"])
        listing = await cache.read(tmp_path)
        listing.set_marks([0, 1])

        cache.invalidate(tmp_path, clear_marks=True)
        refreshed = await cache.read(tmp_path)

        assert refreshed.marked_indices == []

    @pytest.mark.asyncio
    async def test_failed_stat_keeps_entry_without_stats(self, cache, filesystem, tmp_path, caplog):
        make_tree(tmp_path, files=["ok.txt", "locked.txt"])
        filesystem.failing_stats.add(tmp_path / "locked.txt")

        with caplog.at_level(logging.WARNING):
            listing = await cache.read(tmp_path)

        by_name = {entry.name: entry for entry in listing.entries}
        assert by_name["locked.txt"].stat is None
        assert by_name["ok.txt"].stat is not None
        assert any("Could not get stats" in record.message for record in caplog.records)

    @pytest.mark.asyncio
    async def test_broken_symlink_is_listed(self, cache, tmp_path):
        make_tree(tmp_path)
        os.symlink(tmp_path / "missing", tmp_path / "dangling")

        listing = await cache.read(tmp_path)

        [entry] = listing.entries
        assert entry.is_symlink is True
        assert entry.is_dir is False
        assert entry.stat is None

    @pytest.mark.asyncio
    async def test_missing_directory_raises_not_found(self, cache, tmp_path):
        missing = tmp_path / "missing"

        with pytest.raises(NotFoundError):
            await cache.read(missing)

        assert missing not in cache

    @pytest.mark.asyncio
    async def test_file_is_not_a_directory(self, cache, tmp_path):
        make_tree(tmp_path, files=["plain.txt"])

        with pytest.raises(NotFoundError):
            await cache.read(tmp_path / "plain.txt")


class TestDirectoryCacheLifecycle:
    """Invalidation, notification and eviction."""

    def test_require_raises_cache_miss(self, cache, tmp_path):
        with pytest.raises(CacheMissError) as excinfo:
            cache.require(tmp_path)

        assert str(excinfo.value) == CACHE_MISS_MESSAGE

    def test_invalidate_notifies_uncached_directory(self, cache, changed, tmp_path):
        cache.invalidate(tmp_path)

        assert changed == [tmp_path]

    @pytest.mark.asyncio
    async def test_invalidate_keeps_marks_across_reread(self, cache, changed, tmp_path):
        make_tree(tmp_path, files=["b", "c"])
        listing = await cache.read(tmp_path)
        listing.set_marks([1])

        cache.invalidate(tmp_path, clear_marks=False)
        (tmp_path / "a").write_text("", encoding="utf-8")
        reread = await cache.read(tmp_path)

        assert changed == [tmp_path]
        assert listing.stale is True
        assert [entry.name for entry in reread.entries] == ["a", "b", "c"]
        assert [entry.name for entry in reread.marked_entries()] == ["c"]

    @pytest.mark.asyncio
    async def test_evict_forgets_directory(self, cache, tmp_path):
        first = make_tree(tmp_path / "first", files=["a"])
        second = make_tree(tmp_path / "second", files=["b"])
        await cache.read(first)
        await cache.read(second)

        assert cache.evict(first) is True
        assert cache.evict(first) is False
        assert first not in cache
        assert cache.cached_paths == [second]
