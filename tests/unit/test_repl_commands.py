"""
Unit tests for the shell command handlers.

Commands are routed exactly as the REPL routes them; the editor and the
choice prompt are scripted.
"""

import io
from dataclasses import dataclass, field

import pytest
from rich.console import Console

from dirbuf.cli.handlers import EDIT_AGAIN_HINT, NO_BATCH_MESSAGE, register_all_commands
from dirbuf.cli.parser import parse_command
from dirbuf.cli.repl.context import REPLContext
from dirbuf.cli.router import CommandRouter
from dirbuf.cli.terminal_host import TerminalDocumentHost
from dirbuf.core.config import DirbufConfig
from dirbuf.core.platform import POSIX
from dirbuf.services.batch_service import BatchState
from dirbuf.services.container import create_services
from dirbuf.services.controller import NO_SELECTION_MESSAGE
from tests.support.filer_test_utils import make_tree, run_async


@dataclass
class Shell:
    """Router wired to real services over a temporary directory."""

    router: CommandRouter
    context: REPLContext
    host: TerminalDocumentHost
    services: object
    scripts: list = field(default_factory=list)

    def run(self, line: str):
        return self.router.route(parse_command(line))


@pytest.fixture
def root(tmp_path):
    return make_tree(tmp_path / "work", files=["a.txt", "b.txt"], dirs=["sub"])


@pytest.fixture
def shell(tmp_path, root):
    scripts: list[list[str]] = []

    def fake_editor(path):
        path.write_text("\n".join(scripts.pop(0)) + "\n", encoding="utf-8")

    host = TerminalDocumentHost(console=Console(file=io.StringIO()), editor=fake_editor)
    config = DirbufConfig()
    config.filer.use_trash = False
    services = create_services(
        host, config=config, workspace_dir=tmp_path, platform=POSIX
    )
    context = REPLContext(directory=root)
    router = CommandRouter()
    register_all_commands(router, services, host, context, run_async)
    run_async(services.controller.open_directory(root))

    yield Shell(router, context, host, services, scripts)
    services.close()


class TestNavigationCommands:
    def test_cd_and_up(self, shell, root):
        result = shell.run("cd sub")

        assert result.success is True
        assert result.show_listing is True
        assert shell.context.directory == root / "sub"

        shell.run("up")
        assert shell.context.directory == root

    def test_cd_requires_a_path(self, shell):
        result = shell.run("cd")

        assert result.success is False
        assert result.message == "Usage: cd <path>"

    def test_cd_to_missing_directory(self, shell, root):
        result = shell.run("cd nowhere")

        assert result.success is False
        assert shell.context.directory == root

    def test_goto_is_clamped(self, shell):
        shell.run("goto 99")

        assert shell.context.cursor_line == 3

    def test_goto_takes_a_single_line(self, shell):
        result = shell.run("goto 2-5")

        assert result.success is False
        assert result.message == "Usage: goto <line>"

    def test_cd_releases_the_previous_view(self, shell, root):
        navigation = shell.services.controller.navigation

        shell.run("cd .")
        assert navigation.views[root] == 1
        assert root in shell.services.cache

        shell.run("cd sub")
        assert navigation.open_paths == [root / "sub"]
        assert root not in shell.services.cache

    def test_enter_opens_directory_under_cursor(self, shell, root):
        result = shell.run("enter")

        assert result.success is True
        assert result.show_listing is True
        assert shell.context.directory == root / "sub"
        assert shell.context.cursor_line == 1

    def test_open_file_runs_editor(self, shell, root):
        shell.scripts.append(["edited"])

        result = shell.run("open 2")

        assert result.success is True
        assert (root / "a.txt").read_text(encoding="utf-8") == "edited\n"
        assert shell.context.directory == root

    def test_enter_on_header_line(self, shell):
        shell.run("goto 0")

        result = shell.run("enter")

        assert result.success is False
        assert result.message == NO_SELECTION_MESSAGE

    def test_enter_takes_a_single_line(self, shell):
        result = shell.run("enter 1-2")

        assert result.success is False
        assert result.message == "Usage: enter [LINE]"

    def test_unknown_command(self, shell):
        result = shell.run("frobnicate")

        assert result.message == "Unknown command: 'frobnicate'. Type 'help' for available commands."


class TestMarkCommands:
    def test_mark_at_cursor_advances(self, shell):
        shell.run("mark")

        assert shell.context.cursor_line == 2
        assert shell.run("status").data["marked"] == 1

    def test_toggle_all_then_unmark_range(self, shell):
        shell.run("toggle-all")
        shell.run("unmark 1-2")

        listing = shell.services.cache.get(shell.context.directory)
        assert [entry.name for entry in listing.marked_entries()] == ["b.txt"]


class TestFileCommands:
    def test_touch_and_mkdir(self, shell, root):
        assert shell.run("touch new.txt").success
        assert shell.run("mkdir newdir").success
        assert shell.run("touch other/").success

        assert (root / "new.txt").is_file()
        assert (root / "newdir").is_dir()
        assert (root / "other").is_dir()

    def test_single_rename(self, shell, root):
        result = shell.run("rename 2 'new name.txt'")

        assert result.success is True
        assert (root / "new name.txt").exists()

    def test_batch_rename_in_editor(self, shell, root):
        shell.scripts.append(["x.txt", "y.txt"])

        result = shell.run("mv 2-3")

        assert result.success is True
        assert sorted(p.name for p in root.iterdir()) == ["sub", "x.txt", "y.txt"]
        assert shell.services.batch.session is None
        assert shell.host.open_documents == {}

    def test_failed_batch_can_be_cancelled(self, shell, root):
        shell.scripts.append(["one.txt"])

        failed = shell.run("rename 2-3")

        assert failed.success is False
        assert failed.messages[-1].text == EDIT_AGAIN_HINT
        assert shell.services.batch.state is BatchState.OPEN

        cancelled = shell.run("cancel")
        assert cancelled.message == "Batch cancelled."
        assert shell.services.batch.session is None
        assert sorted(p.name for p in root.iterdir()) == ["a.txt", "b.txt", "sub"]

    def test_edit_without_batch(self, shell):
        assert shell.run("edit").message == NO_BATCH_MESSAGE

    def test_new_creates_from_name_list(self, shell, root):
        shell.scripts.append(["notes.md", "drafts/"])

        result = shell.run("new")

        assert result.success is True
        assert (root / "notes.md").is_file()
        assert (root / "drafts").is_dir()

    def test_delete_after_choice(self, shell, root, monkeypatch):
        monkeypatch.setattr("dirbuf.cli.terminal_host.Prompt.ask", lambda *a, **kw: "1")

        result = shell.run("rm 3 --permanent")

        assert result.success is True
        assert not (root / "b.txt").exists()

    def test_cancelled_delete(self, shell, root, monkeypatch):
        monkeypatch.setattr("dirbuf.cli.terminal_host.Prompt.ask", lambda *a, **kw: "0")

        shell.run("delete 3")

        assert (root / "b.txt").exists()

    def test_yank_and_paste_into_subdirectory(self, shell, root):
        shell.run("yank 2")
        shell.run("cd sub")

        result = shell.run("paste")

        assert result.success is True
        assert (root / "sub" / "a.txt").exists()
        assert (root / "a.txt").exists()
        assert shell.run("status").data["pending"] is None
