"""Conversation messages and content blocks, with their JSON wire form."""

from __future__ import annotations

import enum
import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional, Union

_TIMESTAMP_RE = re.compile(
    r"^(?P<base>\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2})(?:\.(?P<frac>\d+))?(?P<tz>.*)$"
)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


def _format_timestamp(value: datetime) -> str:
    """Render a timestamp as RFC 3339 in UTC with a trailing ``Z``."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def _parse_timestamp(text: str) -> datetime:
    """Parse an RFC 3339 timestamp, accepting ``Z`` and up to nanosecond precision."""
    if not isinstance(text, str):
        raise ValueError(f"timestamp must be a string, not {type(text).__name__}")
    match = _TIMESTAMP_RE.match(text.strip())
    if match is None:
        raise ValueError(f"invalid timestamp: {text!r}")
    frac = match.group("frac") or ""
    tz = match.group("tz")
    if tz in ("", "Z", "z"):
        tz = "+00:00"
    normalized = match.group("base")
    if frac:
        normalized += "." + (frac + "000000")[:6]
    normalized += tz
    parsed = datetime.fromisoformat(normalized)
    return parsed.astimezone(timezone.utc)


class MessageRole(enum.Enum):
    USER = "User"
    ASSISTANT = "Assistant"
    TOOL = "Tool"
    SYSTEM = "System"


@dataclass(frozen=True)
class TextBlock:
    text: str


@dataclass(frozen=True)
class ThinkingBlock:
    text: str


@dataclass(frozen=True)
class ToolUseBlock:
    id: str
    name: str
    input: Any


@dataclass(frozen=True)
class ToolResultBlock:
    id: str
    content: str
    is_error: bool = False


ContentBlock = Union[TextBlock, ThinkingBlock, ToolUseBlock, ToolResultBlock]


@dataclass
class ToolCall:
    id: str
    name: str
    input: Any

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "input": self.input}

    @classmethod
    def from_dict(cls, data: dict) -> "ToolCall":
        return cls(id=data["id"], name=data["name"], input=data["input"])


@dataclass(kw_only=True)
class UserMessage:
    content: list = field(default_factory=list)
    id: str = field(default_factory=_new_id)
    timestamp: datetime = field(default_factory=_now)


@dataclass(kw_only=True)
class AssistantMessage:
    content: list = field(default_factory=list)
    tool_calls: list = field(default_factory=list)
    model: str = ""
    stop_reason: Optional[str] = None
    id: str = field(default_factory=_new_id)
    timestamp: datetime = field(default_factory=_now)


@dataclass(kw_only=True)
class ToolMessage:
    tool_use_id: str
    tool_name: str
    input: Any = None
    output: str = ""
    duration_ms: Optional[int] = None
    is_error: bool = False
    id: str = field(default_factory=_new_id)
    timestamp: datetime = field(default_factory=_now)


@dataclass(kw_only=True)
class SystemMessage:
    content: str
    subtype: str
    id: str = field(default_factory=_new_id)
    timestamp: datetime = field(default_factory=_now)


Message = Union[UserMessage, AssistantMessage, ToolMessage, SystemMessage]

_ROLES = {
    UserMessage: MessageRole.USER,
    AssistantMessage: MessageRole.ASSISTANT,
    ToolMessage: MessageRole.TOOL,
    SystemMessage: MessageRole.SYSTEM,
}


def message_role(message: Message) -> MessageRole:
    """Return the role of a message."""
    try:
        return _ROLES[type(message)]
    except KeyError:
        raise TypeError(f"not a message: {message!r}") from None


def content_block_to_dict(block: ContentBlock) -> dict:
    """Encode a content block in its externally tagged form."""
    if isinstance(block, TextBlock):
        return {"Text": block.text}
    if isinstance(block, ThinkingBlock):
        return {"Thinking": {"text": block.text}}
    if isinstance(block, ToolUseBlock):
        return {"ToolUse": {"id": block.id, "name": block.name, "input": block.input}}
    if isinstance(block, ToolResultBlock):
        return {
            "ToolResult": {
                "id": block.id,
                "content": block.content,
                "is_error": block.is_error,
            }
        }
    raise TypeError(f"not a content block: {block!r}")


def _single_tag(data: Any, what: str) -> tuple:
    if not isinstance(data, dict) or len(data) != 1:
        raise ValueError(f"{what} must be an object with exactly one tag")
    return next(iter(data.items()))


def content_block_from_dict(data: Any) -> ContentBlock:
    """Decode a content block; raises ValueError on malformed input."""
    tag, body = _single_tag(data, "content block")
    try:
        match tag:
            case "Text":
                if not isinstance(body, str):
                    raise ValueError("Text block must hold a string")
                return TextBlock(body)
            case "Thinking":
                return ThinkingBlock(body["text"])
            case "ToolUse":
                return ToolUseBlock(id=body["id"], name=body["name"], input=body["input"])
            case "ToolResult":
                return ToolResultBlock(
                    id=body["id"], content=body["content"], is_error=bool(body["is_error"])
                )
    except (KeyError, TypeError) as exc:
        raise ValueError(f"malformed {tag} block: {exc}") from exc
    raise ValueError(f"unknown content block type: {tag!r}")


def message_to_dict(message: Message) -> dict:
    """Encode a message in its externally tagged form."""
    timestamp = _format_timestamp(message.timestamp)
    if isinstance(message, UserMessage):
        return {
            "User": {
                "id": message.id,
                "content": [content_block_to_dict(b) for b in message.content],
                "timestamp": timestamp,
            }
        }
    if isinstance(message, AssistantMessage):
        return {
            "Assistant": {
                "id": message.id,
                "content": [content_block_to_dict(b) for b in message.content],
                "tool_calls": [tc.to_dict() for tc in message.tool_calls],
                "model": message.model,
                "stop_reason": message.stop_reason,
                "timestamp": timestamp,
            }
        }
    if isinstance(message, ToolMessage):
        return {
            "Tool": {
                "id": message.id,
                "tool_use_id": message.tool_use_id,
                "tool_name": message.tool_name,
                "input": message.input,
                "output": message.output,
                "duration_ms": message.duration_ms,
                "timestamp": timestamp,
                "is_error": message.is_error,
            }
        }
    if isinstance(message, SystemMessage):
        return {
            "System": {
                "id": message.id,
                "content": message.content,
                "subtype": message.subtype,
                "timestamp": timestamp,
            }
        }
    raise TypeError(f"not a message: {message!r}")


def message_from_dict(data: Any) -> Message:
    """Decode a message; raises ValueError on malformed input."""
    tag, body = _single_tag(data, "message")
    try:
        match tag:
            case "User":
                return UserMessage(
                    id=body["id"],
                    content=[content_block_from_dict(b) for b in body["content"]],
                    timestamp=_parse_timestamp(body["timestamp"]),
                )
            case "Assistant":
                return AssistantMessage(
                    id=body["id"],
                    content=[content_block_from_dict(b) for b in body["content"]],
                    tool_calls=[ToolCall.from_dict(tc) for tc in body["tool_calls"]],
                    model=body["model"],
                    stop_reason=body.get("stop_reason"),
                    timestamp=_parse_timestamp(body["timestamp"]),
                )
            case "Tool":
                return ToolMessage(
                    id=body["id"],
                    tool_use_id=body["tool_use_id"],
                    tool_name=body["tool_name"],
                    input=body["input"],
                    output=body["output"],
                    duration_ms=body.get("duration_ms"),
                    timestamp=_parse_timestamp(body["timestamp"]),
                    is_error=bool(body["is_error"]),
                )
            case "System":
                return SystemMessage(
                    id=body["id"],
                    content=body["content"],
                    subtype=body["subtype"],
                    timestamp=_parse_timestamp(body["timestamp"]),
                )
    except (KeyError, TypeError) as exc:
        raise ValueError(f"malformed {tag} message: {exc}") from exc
    raise ValueError(f"unknown message type: {tag!r}")