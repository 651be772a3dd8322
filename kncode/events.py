"""Events emitted in headless mode, one JSON object per line."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from typing import Any, Optional

# Event type -> (fields always present, fields omitted when None), in wire order.
_SCHEMA: dict = {
    "system": (("subtype", "session_id", "model"), ()),
    "text": (("content",), ()),
    "tool_use": (("id", "name", "input"), ("error",)),
    "tool_result": (("id", "output"), ()),
    "step_finish": (("usage", "cost_usd"), ()),
    "permission_request": (("tool_name", "input", "message", "request_id"), ()),
    "session_state": (("state", "turns_completed", "cost_usd"), ()),
    "result": (("subtype", "session_id"), ("usage", "cost_usd", "summary", "error")),
    "error": (("message",), ("code",)),
}


@dataclass
class TokenUsage:
    input_tokens: int = 0
    output_tokens: int = 0
    cache_read_tokens: int = 0
    reasoning_tokens: int = 0

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Any) -> "TokenUsage":
        """Decode token usage; the cache and reasoning counts default to zero."""
        if not isinstance(data, dict):
            raise ValueError("token usage must be an object")
        try:
            return cls(
                input_tokens=int(data["input_tokens"]),
                output_tokens=int(data["output_tokens"]),
                cache_read_tokens=int(data.get("cache_read_tokens", 0)),
                reasoning_tokens=int(data.get("reasoning_tokens", 0)),
            )
        except KeyError as exc:
            raise ValueError(f"missing token usage field: {exc}") from exc
        except TypeError as exc:
            raise ValueError(f"malformed token usage: {exc}") from exc


def _encode(value: Any) -> Any:
    return value.to_dict() if isinstance(value, TokenUsage) else value


@dataclass
class SdkEvent:
    """One headless event: its type tag and the fields that go with it."""

    type: str
    fields: dict = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.type not in _SCHEMA:
            raise ValueError(f"unknown event type: {self.type!r}")
        required, _ = _SCHEMA[self.type]
        missing = [name for name in required if name not in self.fields]
        if missing:
            raise ValueError(f"{self.type} event is missing {', '.join(missing)}")

    def to_dict(self) -> dict:
        required, optional = _SCHEMA[self.type]
        out = {"type": self.type}
        for name in required:
            out[name] = _encode(self.fields[name])
        for name in optional:
            value = self.fields.get(name)
            if value is not None:
                out[name] = _encode(value)
        return out

    def to_json(self) -> str:
        """Compact single-line JSON; raises TypeError if a field cannot be encoded."""
        return json.dumps(self.to_dict(), separators=(",", ":"), ensure_ascii=False)

    @classmethod
    def from_dict(cls, data: Any) -> "SdkEvent":
        if not isinstance(data, dict):
            raise ValueError("event must be an object")
        tag = data.get("type")
        if tag not in _SCHEMA:
            raise ValueError(f"unknown event type: {tag!r}")
        required, optional = _SCHEMA[tag]
        missing = [name for name in required if name not in data]
        if missing:
            raise ValueError(f"{tag} event is missing {', '.join(missing)}")
        fields = {name: data[name] for name in required}
        fields.update({name: data.get(name) for name in optional})
        if fields.get("usage") is not None:
            fields["usage"] = TokenUsage.from_dict(fields["usage"])
        return cls(tag, fields)

    @classmethod
    def session_init(cls, session_id: str, model: str) -> "SdkEvent":
        return cls("system", {"subtype": "init", "session_id": session_id, "model": model})

    @classmethod
    def text(cls, content: str) -> "SdkEvent":
        return cls("text", {"content": content})

    @classmethod
    def tool_use(cls, id: str, name: str, input: Any) -> "SdkEvent":
        return cls("tool_use", {"id": id, "name": name, "input": input, "error": None})

    @classmethod
    def tool_use_error(cls, id: str, name: str, error: str) -> "SdkEvent":
        return cls("tool_use", {"id": id, "name": name, "input": {}, "error": error})

    @classmethod
    def tool_result(cls, id: str, output: Any) -> "SdkEvent":
        return cls("tool_result", {"id": id, "output": output})

    @classmethod
    def step_finish(cls, usage: TokenUsage, cost_usd: float) -> "SdkEvent":
        return cls("step_finish", {"usage": usage, "cost_usd": float(cost_usd)})

    @classmethod
    def permission_request(
        cls, tool_name: str, input: Any, message: str, request_id: str
    ) -> "SdkEvent":
        return cls(
            "permission_request",
            {
                "tool_name": tool_name,
                "input": input,
                "message": message,
                "request_id": request_id,
            },
        )

    @classmethod
    def session_state(cls, state: str, turns_completed: int, cost_usd: float) -> "SdkEvent":
        return cls(
            "session_state",
            {
                "state": state,
                "turns_completed": int(turns_completed),
                "cost_usd": float(cost_usd),
            },
        )

    @classmethod
    def result_success(
        cls, session_id: str, usage: TokenUsage, cost_usd: float, summary: str
    ) -> "SdkEvent":
        return cls(
            "result",
            {
                "subtype": "success",
                "session_id": session_id,
                "usage": usage,
                "cost_usd": float(cost_usd),
                "summary": summary,
                "error": None,
            },
        )

    @classmethod
    def result_error(cls, session_id: str, error: str) -> "SdkEvent":
        return cls(
            "result",
            {
                "subtype": "error",
                "session_id": session_id,
                "usage": None,
                "cost_usd": None,
                "summary": None,
                "error": error,
            },
        )

    @classmethod
    def error(cls, message: str, code: Optional[str] = None) -> "SdkEvent":
        return cls("error", {"message": message, "code": code})

    @classmethod
    def unknown_session(cls, session_id: str) -> "SdkEvent":
        """An error whose wording orchestrators recognise as a missing session."""
        return cls(
            "error",
            {"message": f"unknown session {session_id}", "code": "SESSION_NOT_FOUND"},
        )