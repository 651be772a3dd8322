"""Server-sent event framing for a stream of JSON lines."""

from __future__ import annotations

from typing import AsyncIterator, Union


def format_sse_event(line: str) -> str:
    """Frame a line as an SSE data event; each embedded newline starts a new data field."""
    if "\r" in line:
        raise ValueError("SSE data must not contain carriage returns")
    return "".join(f"data: {part}\n" for part in line.split("\n")) + "\n"


async def jsonl_stream(lines: Union[AsyncIterator[str], object]) -> AsyncIterator[str]:
    """Yield one SSE event per line from a sync or async iterable."""
    if hasattr(lines, "__aiter__"):
        async for line in lines:
            yield format_sse_event(line)
    else:
        for line in lines:
            yield format_sse_event(line)