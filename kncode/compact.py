"""Condensing long conversations into a summary plus recent messages."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from kncode.messages import (
    AssistantMessage,
    SystemMessage,
    TextBlock,
    ToolMessage,
    UserMessage,
)

logger = logging.getLogger(__name__)

_PREVIEW_LIMIT = 200
_KEEP_RECENT = 4


def _preview(text: str) -> str:
    if len(text) > _PREVIEW_LIMIT:
        return f"{text[:_PREVIEW_LIMIT]}..."
    return text


def _summarize(message) -> list:
    if isinstance(message, UserMessage):
        return [
            f"[User] {_preview(b.text)}" for b in message.content if isinstance(b, TextBlock)
        ]
    if isinstance(message, AssistantMessage):
        parts = [
            f"[Assistant] {_preview(b.text)}"
            for b in message.content
            if isinstance(b, TextBlock)
        ]
        if message.tool_calls:
            parts.append(f"[Assistant called {len(message.tool_calls)} tool(s)]")
        return parts
    if isinstance(message, ToolMessage):
        return [f"[Tool {message.tool_name} result] {_preview(message.output)}"]
    if isinstance(message, SystemMessage):
        return [f"[System] {message.content}"]
    return []


@dataclass
class Compactor:
    max_tokens: int = 180_000
    target_tokens: int = 80_000

    def needs_compaction(self, current_tokens: int) -> bool:
        return current_tokens > self.max_tokens

    def compact(self, messages: list) -> list:
        """Keep the leading system prompt, summarise the middle, keep the last four."""
        messages = list(messages)
        if len(messages) <= 2:
            return messages

        leading = 0
        for message in messages:
            if not isinstance(message, SystemMessage):
                break
            leading += 1
        compacted = messages[:leading]

        total = len(messages)
        keep_recent = min(_KEEP_RECENT, total - leading)
        condensed = messages[leading : total - keep_recent]

        summary_parts = [part for message in condensed for part in _summarize(message)]
        if summary_parts:
            summary = (
                f"Previous conversation summary ({len(condensed)} messages condensed):\n"
                + "\n".join(summary_parts)
            )
            compacted.append(SystemMessage(content=summary, subtype="compaction_summary"))

        compacted.extend(messages[total - keep_recent :])
        logger.info("Compacted %d messages down to %d", total, len(compacted))
        return compacted