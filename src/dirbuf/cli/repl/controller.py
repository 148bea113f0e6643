"""
REPL controller module for the dirbuf shell.

Provides the Read-Eval-Print Loop that integrates prompt_toolkit for input
handling, command parsing and routing, and Rich for rendering listings.
"""

import logging
from pathlib import Path
from typing import Optional

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import WordCompleter
from prompt_toolkit.history import FileHistory, InMemoryHistory
from prompt_toolkit.styles import Style
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from dirbuf.cli.handlers import register_all_commands
from dirbuf.cli.parser import CommandParseError, parse_command
from dirbuf.cli.repl.context import REPLContext
from dirbuf.cli.repl.event_loop import EventLoopManager
from dirbuf.cli.router import CommandResult, CommandRouter
from dirbuf.cli.terminal_host import TerminalDocumentHost
from dirbuf.cli.ui import (
    get_prompt_style,
    render_error,
    render_help,
    render_listing,
    render_messages,
    render_welcome_banner,
    tildify,
)
from dirbuf.core.errors import DirbufError
from dirbuf.services.container import ServicesContainer

logger = logging.getLogger(__name__)

PROMPT_STYLE = Style.from_dict({
    "prompt": "#00aa00 bold",
    "prompt.separator": "#888888",
    "prompt.directory": "#00aaaa",
    "prompt-arrow": "#ffffff",
})


class REPLController:
    """
    Interactive shell session controller.

    Attributes:
        services: Container with all initialized services.
        host: Terminal document host the services report to.
        console: Rich console for styled output.
        router: Command router for dispatching commands.
        context: Current directory and cursor.
    """

    def __init__(
        self,
        services: ServicesContainer,
        host: TerminalDocumentHost,
        console: Optional[Console] = None,
        history_file: Optional[str] = None,
        start_directory: Optional[Path] = None,
    ):
        self.services = services
        self.host = host
        self.console = console or Console()
        self.router = CommandRouter()
        self.context = REPLContext(directory=start_directory or Path.cwd())
        self._event_loop_manager = EventLoopManager()

        register_all_commands(
            self.router,
            services,
            host,
            self.context,
            self._event_loop_manager.run_async,
        )

        history_path = history_file or services.config.repl.history_file
        names = [cmd.name for cmd in self.router.get_available_commands()]
        self.session: PromptSession = PromptSession(
            history=self._create_history(history_path),
            completer=WordCompleter(names, sentence=True),
            style=PROMPT_STYLE,
            complete_while_typing=False,
        )

    def _create_history(self, history_path: str):
        """
        Create history storage, falling back to memory if the file cannot be used.
        """
        path = Path(history_path).expanduser()
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            return FileHistory(str(path))
        except OSError as e:
            self.console.print(
                f"[yellow]Warning: Could not create history file ({e}), "
                "using in-memory history[/yellow]"
            )
            return InMemoryHistory()

    def open_start_directory(self) -> bool:
        """Open the directory the shell starts in."""
        result = self._event_loop_manager.run_async(
            self.services.controller.open_directory(self.context.directory)
        )
        if not result.success:
            render_messages(result.messages, self.console)
            return False
        self.context.set_directory(result.data.path)
        self.host.consume_changed(self.context.directory)
        self._render_current_listing()
        return True

    def run(self) -> None:
        """
        Start the REPL main loop.

        Runs until an exit command is received or Ctrl+D is pressed.
        """
        render_welcome_banner(self.console)
        self.console.print()

        try:
            if not self.open_start_directory():
                return
            while True:
                try:
                    user_input = self.session.prompt(get_prompt_style(self.context.directory))
                    if not self.handle_input(user_input):
                        break
                except KeyboardInterrupt:
                    self.console.print("\n[yellow]Use 'exit' or 'quit' to leave.[/yellow]")
                    continue
                except EOFError:
                    self.console.print("\n[cyan]Goodbye![/cyan]")
                    break
        finally:
            self._event_loop_manager.close()
            self.services.close()

    def handle_input(self, user_input: str) -> bool:
        """
        Process user input and execute the command.

        Args:
            user_input: Raw input string from the user.

        Returns:
            True to continue the REPL, False to exit.
        """
        stripped = user_input.strip()
        if not stripped:
            return True

        try:
            command = parse_command(stripped)
        except CommandParseError as e:
            render_error(str(e), self.console)
            return True

        result = self.router.route(command)
        if result.should_exit:
            self.console.print("[cyan]Goodbye![/cyan]")
            return False

        self._render_result(command.name, result)
        return True

    def _render_result(self, command_name: str, result: CommandResult) -> None:
        if command_name in ("help", "?") and result.data:
            render_help(result.data, self.console)
        elif command_name == "status" and result.data:
            self._render_status(result.data)

        changed = self.host.consume_changed(self.context.directory)
        if result.show_listing or changed:
            self._render_current_listing()
        render_messages(result.messages, self.console)

    def _render_current_listing(self) -> None:
        try:
            listing = self._event_loop_manager.run_async(
                self.services.cache.read(self.context.directory)
            )
        except DirbufError as e:
            render_error(f"Could not read {self.context.directory}: {e}", self.console)
            return
        self.context.move_cursor(self.context.cursor_line, listing.line_count)
        render_listing(listing, self.console, cursor_line=self.context.cursor_line)

    def _render_status(self, data: dict) -> None:
        grid = Table.grid(padding=1)
        grid.add_column(style="bold")
        grid.add_column()

        grid.add_row("Directory:", tildify(data["directory"]))
        grid.add_row("Cursor:", str(data["cursor_line"]))
        if data["entries"] is not None:
            grid.add_row("Entries:", str(data["entries"]))
        grid.add_row("Marked:", str(data["marked"]))

        pending = data["pending"]
        if pending is not None:
            grid.add_row(
                "Pending:",
                f"{pending.operation_type.value} of {len(pending.source_entries)} "
                f"entries from {tildify(pending.source_dir)}",
            )
        else:
            grid.add_row("Pending:", "[dim]none[/dim]")

        session = data["batch"]
        if session is not None:
            grid.add_row(
                "Batch:",
                f"{session.operation_type.value} in {tildify(session.directory)} "
                f"({data['batch_state'].value})",
            )
        else:
            grid.add_row("Batch:", "[dim]none[/dim]")

        self.console.print(Panel(grid, title="Status", border_style="blue", expand=False))
