"""Emitting headless events as JSON lines."""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import AsyncIterator, Iterable, Optional, TextIO

from kncode.events import SdkEvent

logger = logging.getLogger(__name__)

_CLOSED = object()


class JsonlEmitter:
    """Serialises events and hands the lines to a JsonlReceiver."""

    def __init__(self, queue: asyncio.Queue) -> None:
        self._queue = queue
        self._closed = False

    def _serialize(self, event: SdkEvent) -> Optional[str]:
        try:
            return event.to_json()
        except (TypeError, ValueError) as exc:
            logger.debug("Dropping event that cannot be serialised: %s", exc)
            return None

    def emit(self, event: SdkEvent) -> None:
        """Queue one event; events that cannot be serialised are dropped."""
        if self._closed:
            return
        line = self._serialize(event)
        if line is not None:
            self._queue.put_nowait(line)

    def emit_batch(self, events: Iterable[SdkEvent]) -> None:
        """Serialise every event first, then queue the lines in order."""
        if self._closed:
            return
        lines = [line for line in map(self._serialize, events) if line is not None]
        for line in lines:
            self._queue.put_nowait(line)

    def close(self) -> None:
        """Signal the receiver that no more lines will follow."""
        if not self._closed:
            self._closed = True
            self._queue.put_nowait(_CLOSED)

    def __enter__(self) -> "JsonlEmitter":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class JsonlReceiver:
    """Reads the lines an emitter queued, until the emitter is closed."""

    def __init__(self, queue: asyncio.Queue) -> None:
        self._queue = queue
        self._done = False

    async def _lines(self) -> AsyncIterator[str]:
        while not self._done:
            item = await self._queue.get()
            if item is _CLOSED:
                self._done = True
                return
            yield item

    async def drain_to(self, stream: TextIO) -> None:
        async for line in self._lines():
            stream.write(line + "\n")
            stream.flush()

    async def drain_to_stdout(self) -> None:
        await self.drain_to(sys.stdout)

    async def collect(self) -> list:
        return [line async for line in self._lines()]


def create_emitter() -> tuple:
    """Return a connected (JsonlEmitter, JsonlReceiver) pair."""
    queue: asyncio.Queue = asyncio.Queue()
    return JsonlEmitter(queue), JsonlReceiver(queue)


def write_event(event: SdkEvent, stream: Optional[TextIO] = None) -> None:
    """Write one event as a line and flush."""
    stream = stream if stream is not None else sys.stdout
    line = event.to_json()
    stream.write(line + "\n")
    stream.flush()


def write_batch(events: Iterable[SdkEvent], stream: Optional[TextIO] = None) -> None:
    """Write all events in one write; nothing is written if any fails to serialise."""
    stream = stream if stream is not None else sys.stdout
    buffer = "".join(event.to_json() + "\n" for event in events)
    stream.write(buffer)
    stream.flush()