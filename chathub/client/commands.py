"""Optimistic command log.

A command applies its tentative state immediately, records how to undo it,
then waits for the server. Acknowledgement commits the command; a failure
rolls the tentative state back and re-raises.
"""

from collections import deque
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

import structlog

logger = structlog.get_logger()


class CommandStatus(StrEnum):
    PENDING = "pending"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


@dataclass
class Command:
    """One optimistic mutation and its undo action."""

    name: str
    undo: Callable[[], None]
    status: CommandStatus = field(default=CommandStatus.PENDING)


class CommandLog:
    """Ordered record of the most recent ``history_size`` optimistic commands.

    Older entries fall off the front. An in-flight command that falls off
    still commits or rolls back; it is only no longer listed.
    """

    def __init__(self, history_size: int = 50) -> None:
        self._commands: deque[Command] = deque(maxlen=history_size)

    @property
    def commands(self) -> list[Command]:
        return list(self._commands)

    @property
    def pending(self) -> list[Command]:
        return [c for c in self._commands if c.status is CommandStatus.PENDING]

    async def execute(
        self,
        name: str,
        apply: Callable[[], None],
        undo: Callable[[], None],
        send: Callable[[], Awaitable[Any]],
    ) -> Any:
        """Apply, send, then commit or roll back."""
        apply()
        command = Command(name=name, undo=undo)
        self._commands.append(command)
        try:
            result = await send()
        except Exception:
            command.undo()
            command.status = CommandStatus.ROLLED_BACK
            logger.warning("Optimistic update rolled back", command=name)
            raise
        command.status = CommandStatus.COMMITTED
        return result
