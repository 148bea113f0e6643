"""
REPL module for the dirbuf interactive shell.

This package provides the shell's session context, event loop management
and the main controller.
"""

from dirbuf.cli.repl.context import REPLContext
from dirbuf.cli.repl.controller import REPLController
from dirbuf.cli.repl.event_loop import EventLoopManager

__all__ = [
    "EventLoopManager",
    "REPLContext",
    "REPLController",
]
