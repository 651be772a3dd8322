"""The control protocol an orchestrator uses to steer a headless run."""

from __future__ import annotations

import asyncio
import enum
from dataclasses import dataclass
from typing import Any, Optional

_CHANNEL_CAPACITY = 100


class ControlRequestType(enum.Enum):
    PERMISSION_GRANT = "permission_grant"
    PERMISSION_DENY = "permission_deny"
    CANCEL = "cancel"
    MESSAGE = "message"
    SET_MODE = "set_mode"
    PING = "ping"


class ControlResponseType(enum.Enum):
    PERMISSION_RESOLVED = "permission_resolved"
    CANCELLED = "cancelled"
    MESSAGE_RECEIVED = "message_received"
    MODE_UPDATED = "mode_updated"
    PONG = "pong"
    ERROR = "error"


# Type -> (required fields, nullable fields that are always written).
_REQUEST_SCHEMA = {
    ControlRequestType.PERMISSION_GRANT: (("request_id",), ()),
    ControlRequestType.PERMISSION_DENY: (("request_id",), ("message",)),
    ControlRequestType.CANCEL: ((), ()),
    ControlRequestType.MESSAGE: (("content",), ()),
    ControlRequestType.SET_MODE: (("mode",), ()),
    ControlRequestType.PING: ((), ()),
}

_RESPONSE_SCHEMA = {
    ControlResponseType.PERMISSION_RESOLVED: (("request_id", "granted"), ()),
    ControlResponseType.CANCELLED: ((), ()),
    ControlResponseType.MESSAGE_RECEIVED: ((), ()),
    ControlResponseType.MODE_UPDATED: ((), ()),
    ControlResponseType.PONG: ((), ()),
    ControlResponseType.ERROR: (("message",), ()),
}


def _check(obj: Any, schema: dict, enum_cls: type) -> None:
    object.__setattr__(obj, "type", enum_cls(obj.type))
    required, _ = schema[obj.type]
    missing = [name for name in required if getattr(obj, name) is None]
    if missing:
        raise ValueError(f"{obj.type.value} is missing {', '.join(missing)}")


def _to_dict(obj: Any, schema: dict) -> dict:
    required, nullable = schema[obj.type]
    out = {"type": obj.type.value}
    out.update((name, getattr(obj, name)) for name in required + nullable)
    return out


def _from_dict(cls: type, data: Any, schema: dict, enum_cls: type) -> Any:
    if not isinstance(data, dict):
        raise ValueError("control message must be an object")
    try:
        kind = enum_cls(data.get("type"))
    except ValueError:
        raise ValueError(f"unknown control message type: {data.get('type')!r}") from None
    required, nullable = schema[kind]
    missing = [name for name in required if name not in data]
    if missing:
        raise ValueError(f"{kind.value} is missing {', '.join(missing)}")
    values = {name: data[name] for name in required}
    values.update((name, data.get(name)) for name in nullable)
    return cls(type=kind, **values)


@dataclass(frozen=True)
class SdkControlRequest:
    """A request from the orchestrator to the running agent."""

    type: ControlRequestType
    request_id: Optional[str] = None
    message: Optional[str] = None
    content: Optional[str] = None
    mode: Optional[str] = None

    def __post_init__(self) -> None:
        _check(self, _REQUEST_SCHEMA, ControlRequestType)

    def to_dict(self) -> dict:
        return _to_dict(self, _REQUEST_SCHEMA)

    @classmethod
    def from_dict(cls, data: Any) -> "SdkControlRequest":
        return _from_dict(cls, data, _REQUEST_SCHEMA, ControlRequestType)


@dataclass(frozen=True)
class SdkControlResponse:
    """A reply from the running agent to the orchestrator."""

    type: ControlResponseType
    request_id: Optional[str] = None
    granted: Optional[bool] = None
    message: Optional[str] = None

    def __post_init__(self) -> None:
        _check(self, _RESPONSE_SCHEMA, ControlResponseType)

    def to_dict(self) -> dict:
        return _to_dict(self, _RESPONSE_SCHEMA)

    @classmethod
    def from_dict(cls, data: Any) -> "SdkControlResponse":
        return _from_dict(cls, data, _RESPONSE_SCHEMA, ControlResponseType)


class ControlChannel:
    """The agent's end: receives requests, sends responses."""

    def __init__(
        self,
        requests: Optional[asyncio.Queue] = None,
        responses: Optional[asyncio.Queue] = None,
    ) -> None:
        self.requests = requests if requests is not None else asyncio.Queue(_CHANNEL_CAPACITY)
        self.responses = (
            responses if responses is not None else asyncio.Queue(_CHANNEL_CAPACITY)
        )

    async def send_response(self, response: SdkControlResponse) -> None:
        await self.responses.put(response)


class ControlSender:
    """The orchestrator's end: sends requests, receives responses."""

    def __init__(self, requests: asyncio.Queue, responses: asyncio.Queue) -> None:
        self.requests = requests
        self.responses = responses

    async def grant_permission(self, request_id: str) -> None:
        await self.requests.put(
            SdkControlRequest(ControlRequestType.PERMISSION_GRANT, request_id=request_id)
        )

    async def deny_permission(self, request_id: str, message: Optional[str] = None) -> None:
        await self.requests.put(
            SdkControlRequest(
                ControlRequestType.PERMISSION_DENY, request_id=request_id, message=message
            )
        )

    async def cancel(self) -> None:
        await self.requests.put(SdkControlRequest(ControlRequestType.CANCEL))

    async def send_message(self, content: str) -> None:
        await self.requests.put(SdkControlRequest(ControlRequestType.MESSAGE, content=content))


def create_control_channel() -> tuple:
    """Return a connected (ControlSender, ControlChannel) pair."""
    requests: asyncio.Queue = asyncio.Queue(_CHANNEL_CAPACITY)
    responses: asyncio.Queue = asyncio.Queue(_CHANNEL_CAPACITY)
    return ControlSender(requests, responses), ControlChannel(requests, responses)