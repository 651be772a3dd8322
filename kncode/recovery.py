"""Analysing interrupted sessions and building a recovery hand-off."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from kncode.messages import (
    AssistantMessage,
    SystemMessage,
    ToolMessage,
    UserMessage,
)
from kncode.store import SessionRecord

_MESSAGE_TYPES = {
    UserMessage: "user",
    AssistantMessage: "assistant",
    ToolMessage: "tool",
    SystemMessage: "system",
}


@dataclass
class PendingToolCall:
    id: str
    name: str
    input: Any
    has_result: bool = False


@dataclass
class RecoveryState:
    session_id: str
    last_activity: datetime
    turns_completed: int
    last_message_type: str
    pending_tool_calls: list = field(default_factory=list)
    recovery_summary: Optional[str] = None


def _summary(last_message_type: str, pending: list) -> Optional[str]:
    if pending:
        names = ", ".join(call.name for call in pending)
        return (
            f"Session was interrupted with {len(pending)} pending tool call(s): {names}. "
            "These will be re-executed on resume."
        )
    if last_message_type == "assistant":
        return "Session was interrupted after assistant response. Safe to resume."
    if last_message_type == "user":
        return "Session was interrupted after user message. Resuming processing."
    return None


class RecoveryManager:
    """Works out what an interrupted session was doing and how to resume it."""

    def __init__(self, session_dir) -> None:
        self.session_dir = Path(session_dir)

    def analyze(self, session: SessionRecord, messages) -> RecoveryState:
        """Find tool calls without results and summarise where the session stopped."""
        messages = list(messages)
        last_message_type = (
            _MESSAGE_TYPES.get(type(messages[-1]), "none") if messages else "none"
        )

        calls = []
        result_ids = set()
        for message in messages:
            if isinstance(message, AssistantMessage):
                calls.extend(
                    PendingToolCall(id=tc.id, name=tc.name, input=tc.input)
                    for tc in message.tool_calls
                )
            elif isinstance(message, ToolMessage):
                result_ids.add(message.tool_use_id)

        pending = [call for call in calls if call.id not in result_ids]

        return RecoveryState(
            session_id=session.id,
            last_activity=session.updated_at,
            turns_completed=session.turns_completed,
            last_message_type=last_message_type,
            pending_tool_calls=pending,
            recovery_summary=_summary(last_message_type, pending),
        )

    def build_handoff_message(self, state: RecoveryState) -> SystemMessage:
        """Build the system message added to the conversation when resuming."""
        content = (
            "CONVERSATION RECOVERY\n"
            f"Session {state.session_id} was interrupted after {state.turns_completed} turns.\n"
            f"Last message type: {state.last_message_type}\n"
            f"Pending tool calls: {len(state.pending_tool_calls)}\n"
            f"{state.recovery_summary if state.recovery_summary is not None else 'Unknown state.'}"
        )
        return SystemMessage(
            id=f"recovery_{state.session_id}",
            content=content,
            subtype="recovery",
        )