"""
Unit tests for the batch engine.

Each test opens a session over a real temporary directory, edits the name
list the way a user would and saves it through the engine.
"""

import os

import pytest

from dirbuf.core.errors import SessionBusyError
from dirbuf.core.models import OperationType
from dirbuf.infrastructure.documents import FileTextDocument, SaveReason
from dirbuf.services.batch_service import (
    BATCH_TITLES,
    CREATE_HINT,
    DUPLICATE_NAMES_MESSAGE,
    LINE_COUNT_MESSAGE,
    BatchState,
)
from tests.support.filer_test_utils import build_services, make_tree, write_document


@pytest.fixture
def root(tmp_path):
    return make_tree(tmp_path / "work", files=["a.txt", "b.txt", "c.txt"], dirs=["docs"])


@pytest.fixture
def env(tmp_path):
    return build_services(tmp_path)


async def _start(env, root, operation_type, names=()):
    services, _, _ = env
    listing = await services.cache.read(root)
    entries = [entry for entry in listing.entries if entry.name in names]
    result = services.batch.start(operation_type, listing, entries)
    return result.data


class TestBatchStart:
    @pytest.mark.asyncio
    async def test_start_writes_both_name_lists(self, env, root):
        services, host, _ = env

        session = await _start(env, root, OperationType.RENAME, ["docs", "a.txt"])

        document, original_path, title = host.opened[0]
        assert title == BATCH_TITLES[OperationType.RENAME]
        assert document.lines() == ["docs/", "a.txt"]
        assert original_path.read_text(encoding="utf-8") == "docs/\na.txt"
        assert session.state is BatchState.OPEN
        assert services.batch.state is BatchState.OPEN

    @pytest.mark.asyncio
    async def test_create_session_has_no_original(self, env, root):
        services, host, _ = env
        listing = await services.cache.read(root)

        result = services.batch.start(OperationType.CREATE, listing)

        assert result.messages[0].text == CREATE_HINT
        assert host.opened[0][1] is None
        assert host.opened[0][0].lines() == [""]

    @pytest.mark.asyncio
    async def test_start_clears_marks_and_notifies(self, env, root):
        services, host, _ = env
        listing = await services.cache.read(root)
        listing.set_marks([1, 2])

        services.batch.start(OperationType.COPY, listing, listing.marked_entries())

        assert listing.marked_indices == []
        assert root in host.changed

    @pytest.mark.asyncio
    async def test_second_session_is_rejected(self, env, root):
        await _start(env, root, OperationType.RENAME, ["a.txt"])
        services, _, _ = env
        listing = await services.cache.read(root)

        with pytest.raises(SessionBusyError):
            services.batch.start(OperationType.CREATE, listing)


class TestBatchValidation:
    @pytest.mark.asyncio
    async def test_line_count_mismatch_changes_nothing(self, env, root):
        services, _, filesystem = env
        session = await _start(env, root, OperationType.RENAME, ["a.txt", "b.txt", "c.txt"])
        write_document(session.document.path, ["x.txt", "y.txt"])
        filesystem.reset()

        result = await services.batch.handle_will_save(session.document, SaveReason.MANUAL)

        assert result.success is False
        assert result.first_error == LINE_COUNT_MESSAGE
        assert filesystem.mutations == []
        assert session.state is BatchState.OPEN

    @pytest.mark.asyncio
    async def test_duplicate_names_change_nothing(self, env, root):
        services, _, filesystem = env
        session = await _start(env, root, OperationType.RENAME, ["a.txt", "b.txt"])
        write_document(session.document.path, ["x.txt", "x.txt"])
        filesystem.reset()

        result = await services.batch.handle_will_save(session.document, SaveReason.MANUAL)

        assert result.first_error == DUPLICATE_NAMES_MESSAGE
        assert filesystem.mutations == []
        assert sorted(p.name for p in root.iterdir()) == ["a.txt", "b.txt", "c.txt", "docs"]

    @pytest.mark.asyncio
    async def test_invalid_name_reports_its_line(self, env, root):
        services, _, filesystem = env
        session = await _start(env, root, OperationType.RENAME, ["a.txt", "b.txt"])
        write_document(session.document.path, ["fine.txt", "bad/name"])
        filesystem.reset()

        result = await services.batch.handle_will_save(session.document, SaveReason.MANUAL)

        assert result.first_error == (
            "Invalid value at line 2: The name contains invalid characters."
        )
        assert filesystem.mutations == []

    @pytest.mark.asyncio
    async def test_collision_with_unselected_entry(self, env, root):
        services, _, _ = env
        session = await _start(env, root, OperationType.RENAME, ["a.txt"])
        write_document(session.document.path, ["c.txt"])

        result = await services.batch.handle_will_save(session.document, SaveReason.MANUAL)

        assert result.first_error == "Invalid value at line 1: c.txt already exists."

    @pytest.mark.asyncio
    async def test_failed_validation_can_be_fixed_and_saved_again(self, env, root):
        services, _, _ = env
        session = await _start(env, root, OperationType.RENAME, ["a.txt", "b.txt"])
        write_document(session.document.path, ["x.txt"])
        await services.batch.handle_will_save(session.document, SaveReason.MANUAL)

        write_document(session.document.path, ["x.txt", "y.txt"])
        result = await services.batch.handle_will_save(session.document, SaveReason.MANUAL)

        assert result.success is True
        assert sorted(p.name for p in root.iterdir()) == ["c.txt", "docs", "x.txt", "y.txt"]


class TestBatchExecution:
    @pytest.mark.asyncio
    async def test_create_files_and_folders(self, env, root):
        services, _, _ = env
        session = await _start(env, root, OperationType.CREATE)
        write_document(session.document.path, ["notes.txt", "archive/"])

        result = await services.batch.handle_will_save(session.document, SaveReason.MANUAL)

        assert result.success is True
        assert (root / "notes.txt").is_file()
        assert (root / "archive").is_dir()
        assert session.state is BatchState.COMPLETED

    @pytest.mark.asyncio
    async def test_rename_skips_unchanged_names(self, env, root):
        services, _, filesystem = env
        session = await _start(env, root, OperationType.RENAME, ["a.txt", "b.txt"])
        write_document(session.document.path, ["a.txt", "z.txt"])
        filesystem.reset()

        result = await services.batch.handle_will_save(session.document, SaveReason.MANUAL)

        assert result.success is True
        assert filesystem.mutations == [("rename", (root / "b.txt", root / "z.txt", False))]

    @pytest.mark.asyncio
    async def test_copy_keeps_sources(self, env, root):
        services, _, _ = env
        session = await _start(env, root, OperationType.COPY, ["docs", "a.txt"])
        write_document(session.document.path, ["docs-copy/", "a-copy.txt"])

        result = await services.batch.handle_will_save(session.document, SaveReason.MANUAL)

        assert result.success is True
        assert (root / "docs-copy").is_dir()
        assert (root / "a-copy.txt").read_text(encoding="utf-8") == "content of a.txt\n"
        assert (root / "a.txt").exists()

    @pytest.mark.asyncio
    async def test_symlink_links_point_to_sources(self, env, root):
        services, _, _ = env
        session = await _start(env, root, OperationType.SYMLINK, ["a.txt"])
        write_document(session.document.path, ["a-link"])

        result = await services.batch.handle_will_save(session.document, SaveReason.MANUAL)

        assert result.success is True
        assert os.readlink(root / "a-link") == str(root / "a.txt")

    @pytest.mark.asyncio
    async def test_partial_failure_reports_first_error(self, env, root):
        services, _, _ = env
        session = await _start(env, root, OperationType.COPY, ["a.txt", "b.txt"])
        write_document(session.document.path, ["a2.txt", "b2.txt"])
        (root / "b.txt").unlink()

        result = await services.batch.handle_will_save(session.document, SaveReason.MANUAL)

        assert result.success is False
        assert result.first_error.startswith(f"Could not copy {root / 'b.txt'} to ")
        assert [operation.ok for operation in result.data] == [True, False]
        assert (root / "a2.txt").exists()
        assert session.state is BatchState.COMPLETED


class TestBatchLifecycle:
    @pytest.mark.asyncio
    async def test_automatic_save_is_ignored(self, env, root):
        services, _, filesystem = env
        session = await _start(env, root, OperationType.CREATE)
        write_document(session.document.path, ["new.txt"])
        filesystem.reset()

        result = await services.batch.handle_will_save(session.document, SaveReason.AFTER_DELAY)

        assert result is None
        assert filesystem.mutations == []
        assert session.state is BatchState.OPEN

    @pytest.mark.asyncio
    async def test_unrelated_document_is_ignored(self, env, root, tmp_path):
        services, _, _ = env
        await _start(env, root, OperationType.CREATE)

        other = FileTextDocument(tmp_path / "notes.md")
        assert await services.batch.handle_will_save(other, SaveReason.MANUAL) is None
        assert services.batch.handle_closed(other) is False

    @pytest.mark.asyncio
    async def test_saved_completed_session_closes_document(self, env, root):
        services, host, _ = env
        session = await _start(env, root, OperationType.CREATE)
        write_document(session.document.path, ["new.txt"])
        await services.batch.handle_will_save(session.document, SaveReason.MANUAL)

        ended = services.batch.handle_saved(session.document)

        assert ended is True
        assert host.closed == [session.document]
        assert services.batch.session is None
        assert services.batch.state is BatchState.IDLE

    @pytest.mark.asyncio
    async def test_saved_open_session_stays_open(self, env, root):
        services, host, _ = env
        session = await _start(env, root, OperationType.CREATE)

        assert services.batch.handle_saved(session.document) is False
        assert host.closed == []

    @pytest.mark.asyncio
    async def test_closing_unsaved_document_cancels(self, env, root):
        services, _, filesystem = env
        session = await _start(env, root, OperationType.RENAME, ["a.txt"])
        write_document(session.document.path, ["renamed.txt"])
        filesystem.reset()

        assert services.batch.handle_closed(session.document) is True

        assert services.batch.session is None
        assert filesystem.mutations == []
        assert (root / "a.txt").exists()

    @pytest.mark.asyncio
    async def test_cancel(self, env, root):
        services, _, _ = env
        await _start(env, root, OperationType.CREATE)

        assert services.batch.cancel() is True
        assert services.batch.cancel() is False
