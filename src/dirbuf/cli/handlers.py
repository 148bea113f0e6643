"""
Command handlers for the dirbuf shell.

Provides handler functions for each shell command, bridging the
interactive interface with the FilerController. Handlers run the
controller's coroutines on the shell's event loop and translate
ActionResults into CommandResults.
"""

from collections.abc import Callable, Coroutine
from typing import TYPE_CHECKING, Any, Optional

from dirbuf.cli.parser import (
    CommandParseError,
    ParsedCommand,
    is_line_range,
    parse_bool_flag,
    parse_selection,
)
from dirbuf.cli.router import CommandHandler, CommandResult, CommandRouter
from dirbuf.cli.terminal_host import TerminalDocumentHost, run_batch_editor
from dirbuf.core.models import DirectoryListing, OperationType
from dirbuf.core.selection import LineSelection, MarkMode
from dirbuf.services.action_types import ActionResult, MessageLevel, UserMessage

if TYPE_CHECKING:
    from dirbuf.cli.repl.context import REPLContext
    from dirbuf.services.container import ServicesContainer
    from dirbuf.services.controller import FilerController

RunAsync = Callable[[Coroutine[Any, Any, Any]], Any]

EDIT_AGAIN_HINT = "Use 'edit' to fix the names or 'cancel' to discard the batch."
NO_BATCH_MESSAGE = "No batch in progress."


def create_help_handler(router: CommandRouter) -> CommandHandler:
    def handle_help(command: ParsedCommand) -> CommandResult:
        return CommandResult(success=True, data=router.get_available_commands())

    return handle_help


def handle_exit(command: ParsedCommand) -> CommandResult:
    """Handle exit/quit commands."""
    return CommandResult(success=True, should_exit=True)


class FilerCommands:
    """
    Handlers for the filer commands of the shell.

    Attributes:
        services: Services container with initialized services.
        host: Terminal document host
        context: Current directory and cursor
        run_async: Runs a coroutine on the shell's event loop
    """

    def __init__(
        self,
        services: "ServicesContainer",
        host: TerminalDocumentHost,
        context: "REPLContext",
        run_async: RunAsync,
    ):
        self.services = services
        self.host = host
        self.context = context
        self.run_async = run_async

    @property
    def controller(self) -> "FilerController":
        return self.services.controller

    def _selection(self, line_arg: Optional[str]) -> LineSelection:
        return parse_selection(line_arg, self.context.cursor_line)

    def _listing(self) -> Optional[DirectoryListing]:
        return self.services.cache.get(self.context.directory)

    def _change_directory(self, result: ActionResult) -> CommandResult:
        if not result.success:
            return CommandResult.from_action(result)
        listing: DirectoryListing = result.data
        self.run_async(self.controller.close_views([self.context.directory]))
        self.context.set_directory(listing.path)
        return CommandResult.from_action(result, show_listing=True)

    def _edit_batch(self, started: ActionResult) -> CommandResult:
        """Run the editor for a batch that was just opened."""
        if not started.success:
            return CommandResult.from_action(started)
        messages = list(started.messages)
        saved = self.run_async(run_batch_editor(self.controller, self.host))
        if saved is None:
            return CommandResult(success=True, messages=messages, show_listing=True)
        messages.extend(saved.messages)
        if self.services.batch.session is not None:
            messages.append(UserMessage(MessageLevel.INFO, EDIT_AGAIN_HINT))
        return CommandResult(success=saved.success, messages=messages, show_listing=True)

    # Navigation

    def handle_ls(self, command: ParsedCommand) -> CommandResult:
        return CommandResult(success=True, show_listing=True)

    def handle_cd(self, command: ParsedCommand) -> CommandResult:
        if not command.args:
            raise CommandParseError("Usage: cd <path>")
        path = self.context.resolve(command.args[0])
        return self._change_directory(self.run_async(self.controller.open_directory(path)))

    def handle_up(self, command: ParsedCommand) -> CommandResult:
        result = self.run_async(self.controller.go_to_parent(self.context.directory))
        return self._change_directory(result)

    def handle_refresh(self, command: ParsedCommand) -> CommandResult:
        reset = parse_bool_flag(command.kwargs.get("reset")) or False
        result = self.run_async(self.controller.refresh(self.context.directory, reset))
        return CommandResult.from_action(result, show_listing=result.success)

    def handle_goto(self, command: ParsedCommand) -> CommandResult:
        if not command.args or not command.args[0].isdigit():
            raise CommandParseError("Usage: goto <line>")
        listing = self._listing()
        line_count = listing.line_count if listing else 1
        self.context.move_cursor(int(command.args[0]), line_count)
        return CommandResult(success=True, show_listing=True)

    def handle_enter(self, command: ParsedCommand) -> CommandResult:
        cursor_line = self.context.cursor_line
        if command.args:
            if not command.args[0].isdigit():
                raise CommandParseError("Usage: enter [LINE]")
            cursor_line = int(command.args[0])
        result = self.run_async(
            self.controller.open_focused(self.context.directory, cursor_line)
        )
        if isinstance(result.data, DirectoryListing):
            return self._change_directory(result)
        return CommandResult.from_action(result)

    # Marks

    def _mark(self, command: ParsedCommand, mode: MarkMode) -> CommandResult:
        line_arg = command.args[0] if command.args else None
        result = self.run_async(
            self.controller.mark(self.context.directory, self._selection(line_arg), mode)
        )
        if result.success and line_arg is None and result.data.advance_cursor:
            listing = self._listing()
            if listing is not None:
                self.context.move_cursor(self.context.cursor_line + 1, listing.line_count)
        return CommandResult.from_action(result, show_listing=result.success)

    def handle_mark(self, command: ParsedCommand) -> CommandResult:
        return self._mark(command, MarkMode.ON)

    def handle_unmark(self, command: ParsedCommand) -> CommandResult:
        return self._mark(command, MarkMode.OFF)

    def handle_toggle(self, command: ParsedCommand) -> CommandResult:
        return self._mark(command, MarkMode.TOGGLE)

    def handle_toggle_all(self, command: ParsedCommand) -> CommandResult:
        return self._mark(ParsedCommand(name=command.name), MarkMode.TOGGLE_ALL)

    # Creation

    def _create(self, command: ParsedCommand, is_dir: bool) -> CommandResult:
        if not command.args:
            raise CommandParseError(f"Usage: {command.name} <name>")
        name = command.args[0]
        if name.endswith("/"):
            name, is_dir = name[:-1], True
        result = self.run_async(self.controller.create(self.context.directory, name, is_dir))
        return CommandResult.from_action(result, show_listing=result.success)

    def handle_touch(self, command: ParsedCommand) -> CommandResult:
        return self._create(command, is_dir=False)

    def handle_mkdir(self, command: ParsedCommand) -> CommandResult:
        return self._create(command, is_dir=True)

    def handle_new(self, command: ParsedCommand) -> CommandResult:
        started = self.run_async(self.controller.create_batch(self.context.directory))
        return self._edit_batch(started)

    # Rename, copy and link

    def _edit_entries(self, command: ParsedCommand, operation_type: OperationType) -> CommandResult:
        args = list(command.args)
        line_arg: Optional[str] = None
        new_name: Optional[str] = None
        if len(args) >= 2:
            line_arg, new_name = args[0], args[1]
        elif len(args) == 1:
            if is_line_range(args[0]):
                line_arg = args[0]
            else:
                new_name = args[0]

        result = self.run_async(
            self.controller.edit_entries(
                self.context.directory,
                self._selection(line_arg),
                operation_type,
                new_name=new_name,
                batch=new_name is None,
            )
        )
        if new_name is None:
            return self._edit_batch(result)
        return CommandResult.from_action(result, show_listing=result.success)

    def handle_rename(self, command: ParsedCommand) -> CommandResult:
        return self._edit_entries(command, OperationType.RENAME)

    def handle_copy(self, command: ParsedCommand) -> CommandResult:
        return self._edit_entries(command, OperationType.COPY)

    def handle_link(self, command: ParsedCommand) -> CommandResult:
        return self._edit_entries(command, OperationType.SYMLINK)

    def handle_edit(self, command: ParsedCommand) -> CommandResult:
        saved = self.run_async(run_batch_editor(self.controller, self.host))
        if saved is None:
            return CommandResult.error(NO_BATCH_MESSAGE)
        messages = list(saved.messages)
        if self.services.batch.session is not None:
            messages.append(UserMessage(MessageLevel.INFO, EDIT_AGAIN_HINT))
        return CommandResult(success=saved.success, messages=messages, show_listing=True)

    def handle_cancel(self, command: ParsedCommand) -> CommandResult:
        session = self.services.batch.session
        if session is None:
            return CommandResult.error(NO_BATCH_MESSAGE)
        self.host.close_document(session.document)
        self.run_async(self.controller.handle_closed(session.document))
        return CommandResult(
            success=True,
            messages=[UserMessage(MessageLevel.INFO, "Batch cancelled.")],
        )

    # Delete and clipboard

    def handle_delete(self, command: ParsedCommand) -> CommandResult:
        line_arg = command.args[0] if command.args else None
        permanent = parse_bool_flag(command.kwargs.get("permanent"))
        use_trash = False if permanent else None
        result = self.run_async(
            self.controller.delete(self.context.directory, self._selection(line_arg), use_trash)
        )
        return CommandResult.from_action(result, show_listing=bool(result.messages))

    def _set_pending(self, command: ParsedCommand, operation_type: OperationType) -> CommandResult:
        line_arg = command.args[0] if command.args else None
        result = self.run_async(
            self.controller.set_pending(
                self.context.directory, self._selection(line_arg), operation_type
            )
        )
        return CommandResult.from_action(result, show_listing=result.success)

    def handle_cut(self, command: ParsedCommand) -> CommandResult:
        return self._set_pending(command, OperationType.RENAME)

    def handle_yank(self, command: ParsedCommand) -> CommandResult:
        return self._set_pending(command, OperationType.COPY)

    def handle_target(self, command: ParsedCommand) -> CommandResult:
        return self._set_pending(command, OperationType.SYMLINK)

    def handle_paste(self, command: ParsedCommand) -> CommandResult:
        result = self.run_async(self.controller.paste(self.context.directory))
        return CommandResult.from_action(result, show_listing=True)

    def handle_status(self, command: ParsedCommand) -> CommandResult:
        listing = self._listing()
        pending = self.services.clipboard.pending
        session = self.services.batch.session
        return CommandResult(
            success=True,
            data={
                "directory": self.context.directory,
                "cursor_line": self.context.cursor_line,
                "entries": len(listing.entries) if listing else None,
                "marked": len(listing.marked_indices) if listing else 0,
                "pending": pending,
                "batch": session,
                "batch_state": self.services.batch.state,
            },
        )


def register_all_commands(
    router: CommandRouter,
    services: "ServicesContainer",
    host: TerminalDocumentHost,
    context: "REPLContext",
    run_async: RunAsync,
) -> FilerCommands:
    """
    Register all shell commands with the router.

    Args:
        router: The command router to register commands with.
        services: Services container with initialized services.
        host: Terminal document host
        context: REPL context holding the current directory and cursor
        run_async: Runs a coroutine on the shell's event loop

    Returns:
        The FilerCommands instance backing the handlers
    """
    commands = FilerCommands(services, host, context, run_async)
    lines = "[LINES]"

    router.register("help", create_help_handler(router), "Show available commands", "help", aliases=["?"])
    router.register("exit", handle_exit, "Exit the shell", "exit", aliases=["quit", "q"])

    router.register("ls", commands.handle_ls, "Show the current directory", "ls")
    router.register("cd", commands.handle_cd, "Open another directory", "cd <path>")
    router.register("up", commands.handle_up, "Open the parent directory", "up", aliases=[".."])
    router.register(
        "refresh",
        commands.handle_refresh,
        "Re-read the current directory",
        "refresh [--reset]",
    )
    router.register("goto", commands.handle_goto, "Move the cursor to a line", "goto <line>")
    router.register(
        "enter",
        commands.handle_enter,
        "Open the directory or file under the cursor",
        "enter [LINE]",
        aliases=["open"],
    )

    router.register("mark", commands.handle_mark, "Mark entries", f"mark {lines}")
    router.register("unmark", commands.handle_unmark, "Unmark entries", f"unmark {lines}")
    router.register("toggle", commands.handle_toggle, "Toggle marks", f"toggle {lines}", aliases=["t"])
    router.register("toggle-all", commands.handle_toggle_all, "Toggle all marks", "toggle-all")

    router.register("touch", commands.handle_touch, "Create a file", "touch <name>")
    router.register("mkdir", commands.handle_mkdir, "Create a directory", "mkdir <name>")
    router.register("new", commands.handle_new, "Create several files in the editor", "new")

    router.register(
        "rename",
        commands.handle_rename,
        "Rename entries (several open the editor)",
        f"rename {lines} [NEW_NAME]",
        aliases=["mv"],
    )
    router.register(
        "copy",
        commands.handle_copy,
        "Copy entries in place (several open the editor)",
        f"copy {lines} [NEW_NAME]",
        aliases=["cp"],
    )
    router.register(
        "link",
        commands.handle_link,
        "Create symbolic links to entries",
        f"link {lines} [LINK_NAME]",
        aliases=["ln"],
    )
    router.register("edit", commands.handle_edit, "Re-open the batch name list", "edit")
    router.register("cancel", commands.handle_cancel, "Discard the batch", "cancel")

    router.register(
        "delete",
        commands.handle_delete,
        "Delete entries (to the trash by default)",
        f"delete {lines} [--permanent]",
        aliases=["rm"],
    )
    router.register("cut", commands.handle_cut, "Cut entries for a paste", f"cut {lines}")
    router.register("yank", commands.handle_yank, "Copy entries for a paste", f"yank {lines}")
    router.register(
        "target", commands.handle_target, "Link to entries on paste", f"target {lines}"
    )
    router.register("paste", commands.handle_paste, "Paste into the current directory", "paste")
    router.register("status", commands.handle_status, "Show session status", "status")

    return commands
