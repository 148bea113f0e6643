"""
Unit tests for the terminal document host and shell session state.
"""

import asyncio
import io
import threading
from pathlib import Path

import pytest
from rich.console import Console

from dirbuf.cli.repl.context import REPLContext
from dirbuf.cli.repl.event_loop import EventLoopManager
from dirbuf.cli.terminal_host import TerminalDocumentHost
from dirbuf.services.controller import NavigationContext


@pytest.fixture
def host():
    return TerminalDocumentHost(console=Console(file=io.StringIO(), width=120))


class TestTerminalDocumentHost:
    def test_open_and_close_documents(self, host, tmp_path):
        document = host.open_editable(tmp_path / "names", None, "New Names")

        assert host.open_documents[tmp_path / "names"] == (document, "New Names")
        assert "New Names" in host.console.file.getvalue()

        host.close_document(document)
        assert host.open_documents == {}

    def test_changed_flag_is_consumed_once(self, host, tmp_path):
        host.notify_content_changed(tmp_path)

        assert host.consume_changed(tmp_path) is True
        assert host.consume_changed(tmp_path) is False

    @pytest.mark.asyncio
    async def test_ask_choice_maps_numbers_to_labels(self, host, monkeypatch):
        asked = {}

        def fake_ask(prompt, **kwargs):
            asked.update(kwargs)
            return "2"

        monkeypatch.setattr("dirbuf.cli.terminal_host.Prompt.ask", fake_ask)

        answer = await host.ask_choice("Conflict", "/x/a", ["Overwrite", "Skip"])

        assert answer == "Skip"
        assert asked["choices"] == ["0", "1", "2"]
        assert asked["default"] == "0"

    @pytest.mark.asyncio
    async def test_ask_choice_prompts_off_the_event_loop_thread(self, host, monkeypatch):
        threads = []

        def fake_ask(prompt, **kwargs):
            threads.append(threading.get_ident())
            return "1"

        monkeypatch.setattr("dirbuf.cli.terminal_host.Prompt.ask", fake_ask)

        assert await host.ask_choice("Delete this file?", "", ["Delete"]) == "Delete"
        assert threads != [threading.get_ident()]

    @pytest.mark.asyncio
    async def test_ask_choice_cancel(self, host, monkeypatch):
        monkeypatch.setattr("dirbuf.cli.terminal_host.Prompt.ask", lambda *a, **kw: "0")

        assert await host.ask_choice("Delete this file?", "", ["Delete"]) is None

    def test_edit_runs_the_editor(self, tmp_path):
        edited = []
        host = TerminalDocumentHost(console=Console(file=io.StringIO()), editor=edited.append)
        document = host.open_editable(tmp_path / "names", None, "Old Names")

        host.edit(document)

        assert edited == [tmp_path / "names"]

    def test_open_file_runs_the_editor(self, tmp_path):
        edited = []
        host = TerminalDocumentHost(console=Console(file=io.StringIO()), editor=edited.append)

        host.open_file(tmp_path / "notes.txt")

        assert edited == [tmp_path / "notes.txt"]
        assert host.open_documents == {}


class TestSessionState:
    def test_resolve_relative_and_home_paths(self):
        context = REPLContext(directory=Path("/srv/data"))

        assert context.resolve("sub/../other") == Path("/srv/data/other")
        assert context.resolve("/etc") == Path("/etc")
        assert context.resolve("~") == Path.home()

    def test_cursor_is_clamped_to_the_listing(self):
        context = REPLContext(directory=Path("/srv"))

        context.move_cursor(10, line_count=4)
        assert context.cursor_line == 3
        context.move_cursor(-2, line_count=4)
        assert context.cursor_line == 0

        context.set_directory(Path("/srv/data"))
        assert context.cursor_line == 1

    def test_navigation_counts_views(self):
        navigation = NavigationContext()
        navigation.register(Path("/a"))
        navigation.register(Path("/a"))

        assert navigation.release(Path("/a")) is False
        assert navigation.is_open(Path("/a"))
        assert navigation.release(Path("/a")) is True
        assert navigation.open_paths == []
        assert navigation.release(Path("/b")) is False


class TestEventLoopManager:
    def test_runs_coroutines_and_recovers_closed_loop(self):
        manager = EventLoopManager()

        async def answer():
            await asyncio.sleep(0)
            return 42

        assert manager.run_async(answer()) == 42
        manager.loop.close()
        assert manager.run_async(answer()) == 42

        manager.close()
        assert manager.loop.is_closed()
