"""
Event loop management for the dirbuf shell.

The filer services are coroutines while the shell reads input
synchronously, so every command runs its coroutine on one loop that lives
as long as the shell session.
"""

import asyncio
import logging
from collections.abc import Coroutine
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class EventLoopManager:
    """
    Owns the event loop of a shell session.

    A loop that was closed underneath the manager is replaced on the next
    call instead of failing the command.
    """

    def __init__(self) -> None:
        self._loop: asyncio.AbstractEventLoop = self._new_loop()

    @staticmethod
    def _new_loop() -> asyncio.AbstractEventLoop:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        return loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        return self._loop

    def run_async(self, coro: Coroutine[Any, Any, T]) -> T:
        """
        Run a coroutine to completion on the session loop.

        Args:
            coro: The coroutine to execute.

        Returns:
            The result of the coroutine.
        """
        if self._loop.is_closed():
            logger.debug("Event loop was closed, creating a new one")
            self._loop = self._new_loop()
        return self._loop.run_until_complete(coro)

    def close(self) -> None:
        """Cancel leftover tasks and close the loop at shell exit."""
        if self._loop.is_closed():
            return
        pending = asyncio.all_tasks(self._loop)
        for task in pending:
            task.cancel()
        if pending:
            self._loop.run_until_complete(asyncio.gather(*pending, return_exceptions=True))
        self._loop.run_until_complete(self._loop.shutdown_default_executor())
        self._loop.close()
