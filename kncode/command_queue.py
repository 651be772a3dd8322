"""A bounded FIFO of control commands waiting to be applied to a run."""

from __future__ import annotations

import asyncio
import enum
from collections import deque
from dataclasses import dataclass
from typing import Optional

MAX_QUEUE_SIZE = 10_000


class CommandKind(enum.Enum):
    GRANT_PERMISSION = "grant_permission"
    DENY_PERMISSION = "deny_permission"
    CANCEL = "cancel"
    MESSAGE = "message"
    SET_MODE = "set_mode"


_REQUIRED = {
    CommandKind.GRANT_PERMISSION: ("request_id",),
    CommandKind.DENY_PERMISSION: ("request_id",),
    CommandKind.CANCEL: (),
    CommandKind.MESSAGE: ("content",),
    CommandKind.SET_MODE: ("mode",),
}


@dataclass(frozen=True)
class QueuedCommand:
    kind: CommandKind
    request_id: Optional[str] = None
    message: Optional[str] = None
    content: Optional[str] = None
    mode: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "kind", CommandKind(self.kind))
        missing = [name for name in _REQUIRED[self.kind] if getattr(self, name) is None]
        if missing:
            raise ValueError(f"{self.kind.value} command is missing {', '.join(missing)}")


class QueueFullError(RuntimeError):
    """Raised when the command queue already holds its maximum."""


class CommandQueue:
    def __init__(self) -> None:
        self._commands: deque = deque()
        self._ready = asyncio.Event()

    def push(self, command: QueuedCommand) -> None:
        if len(self._commands) >= MAX_QUEUE_SIZE:
            raise QueueFullError("Command queue is full")
        self._commands.append(command)
        self._ready.set()

    async def next(self) -> QueuedCommand:
        """Return the oldest command, waiting for one if the queue is empty."""
        while True:
            if self._commands:
                return self._commands.popleft()
            self._ready.clear()
            await self._ready.wait()

    def try_next(self) -> Optional[QueuedCommand]:
        return self._commands.popleft() if self._commands else None

    def has_pending(self) -> bool:
        return bool(self._commands)

    def clear(self) -> None:
        self._commands.clear()

    def has_cancel(self) -> bool:
        return any(cmd.kind is CommandKind.CANCEL for cmd in self._commands)

    def __len__(self) -> int:
        return len(self._commands)