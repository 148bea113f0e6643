"""
Command router module for the dirbuf shell.

Routes parsed commands to their handlers and keeps the metadata used to
render help.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Optional

from dirbuf.cli.parser import CommandParseError, ParsedCommand
from dirbuf.services.action_types import ActionResult, MessageLevel, UserMessage


@dataclass
class CommandInfo:
    """
    Information about a registered command.

    Attributes:
        name: Command name (lowercase).
        description: Brief description of what the command does.
        usage: Usage string showing syntax.
        aliases: Alternative names.
    """

    name: str
    description: str
    usage: str
    aliases: list[str] = field(default_factory=list)


@dataclass
class CommandResult:
    """
    Result of command execution.

    Attributes:
        success: Whether the command executed successfully.
        messages: Messages to display, in order.
        data: Optional data returned by the command.
        should_exit: Whether the REPL should exit after this command.
        show_listing: Whether the current listing should be rendered afterwards.
    """

    success: bool
    messages: list[UserMessage] = field(default_factory=list)
    data: Optional[Any] = None
    should_exit: bool = False
    show_listing: bool = False

    @classmethod
    def from_action(cls, result: ActionResult, show_listing: bool = False) -> "CommandResult":
        return cls(
            success=result.success,
            messages=list(result.messages),
            data=result.data,
            show_listing=show_listing,
        )

    @classmethod
    def error(cls, message: str) -> "CommandResult":
        return cls(success=False, messages=[UserMessage(MessageLevel.ERROR, message)])

    @property
    def message(self) -> Optional[str]:
        """Text of the first message, if any."""
        return self.messages[0].text if self.messages else None


# Type alias for command handlers
CommandHandler = Callable[[ParsedCommand], CommandResult]


class CommandRouter:
    """
    Routes commands to their handlers.

    Handlers are registered with their metadata for help display.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._command_info: dict[str, CommandInfo] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        description: str,
        usage: str,
        aliases: Optional[list[str]] = None,
    ) -> None:
        """
        Register a command handler.

        Args:
            name: Primary command name.
            handler: Function to handle the command.
            description: Brief description for help.
            usage: Usage string showing syntax.
            aliases: Alternative names for the command.
        """
        self._handlers[name] = handler
        self._command_info[name] = CommandInfo(
            name=name,
            description=description,
            usage=usage,
            aliases=list(aliases or []),
        )
        for alias in aliases or []:
            self._handlers[alias] = handler

    def route(self, command: ParsedCommand) -> CommandResult:
        """
        Route a command to its handler.

        Args:
            command: Parsed command to route.

        Returns:
            CommandResult from the handler, or error result if unknown.
        """
        if not command.name:
            return CommandResult(success=True)

        handler = self._handlers.get(command.name)
        if handler is None:
            return CommandResult.error(
                f"Unknown command: '{command.name}'. Type 'help' for available commands."
            )

        try:
            return handler(command)
        except CommandParseError as e:
            return CommandResult.error(str(e))
        except Exception as e:
            return CommandResult.error(f"Error executing '{command.name}': {e}")

    def get_available_commands(self) -> list[CommandInfo]:
        """All registered commands (no aliases)."""
        return list(self._command_info.values())

    def get_command_info(self, name: str) -> Optional[CommandInfo]:
        return self._command_info.get(name)

    def is_registered(self, name: str) -> bool:
        """Check if a command name is registered, aliases included."""
        return name in self._handlers
