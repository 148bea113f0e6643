"""
Result types returned by the filer's entry points.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class MessageLevel(Enum):
    """Severity of a user-facing message."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class UserMessage:
    """A message the host should display to the user."""

    level: MessageLevel
    text: str


@dataclass
class ActionResult:
    """
    Result of one user action.

    Attributes:
        success: Whether the action did what was asked
        messages: Messages to display, in order
        data: Optional payload (a listing, a mark update, ...)
    """

    success: bool
    messages: list[UserMessage] = field(default_factory=list)
    data: Optional[Any] = None

    @classmethod
    def ok(cls, *messages: UserMessage, data: Optional[Any] = None) -> "ActionResult":
        return cls(success=True, messages=list(messages), data=data)

    @classmethod
    def failed(cls, text: str, level: MessageLevel = MessageLevel.ERROR) -> "ActionResult":
        return cls(success=False, messages=[UserMessage(level, text)])

    def add(self, level: MessageLevel, text: str) -> "ActionResult":
        self.messages.append(UserMessage(level, text))
        return self

    @property
    def first_error(self) -> Optional[str]:
        for message in self.messages:
            if message.level is MessageLevel.ERROR:
                return message.text
        return None


def info(text: str) -> UserMessage:
    return UserMessage(MessageLevel.INFO, text)


def error(text: str) -> UserMessage:
    return UserMessage(MessageLevel.ERROR, text)
