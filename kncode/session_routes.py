"""Session endpoints: listing, inspecting, cancelling and reading transcripts.

Each handler returns an ``(HTTPStatus, body)`` pair ready to be sent as JSON.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from http import HTTPStatus

from kncode.messages import _format_timestamp, message_to_dict
from kncode.store import SessionNotFoundError, SessionStore

logger = logging.getLogger(__name__)

_MAX_ID_LENGTH = 128


def is_valid_session_id(session_id: str) -> bool:
    """Accept only short ids of letters, digits, '-' and '_' that cannot escape a directory."""
    return (
        bool(session_id)
        and len(session_id) <= _MAX_ID_LENGTH
        and all(c.isalnum() or c in "-_" for c in session_id)
        and ".." not in session_id
        and not session_id.startswith((".", "/"))
    )


@dataclass
class SessionInfo:
    session_id: str
    status: str
    model: str
    turns_completed: int

    def to_dict(self) -> dict:
        return {
            "session_id": self.session_id,
            "status": self.status,
            "model": self.model,
            "turns_completed": self.turns_completed,
        }


def list_sessions(store: SessionStore) -> list:
    """Return a SessionInfo for every readable session directory."""
    if not store.base_dir.exists():
        return []
    try:
        entries = sorted(store.base_dir.iterdir())
    except OSError as exc:
        logger.error("Failed to read session directory: %s", exc)
        return []

    sessions = []
    for entry in entries:
        if not entry.is_dir():
            continue
        try:
            record = store.load_session(entry.name)
        except (OSError, ValueError):
            continue
        if record is not None:
            sessions.append(
                SessionInfo(
                    session_id=record.id,
                    status=record.state,
                    model=record.model,
                    turns_completed=record.turns_completed,
                )
            )
    return sessions


def get_session(store: SessionStore, session_id: str) -> tuple:
    try:
        record = store.load_session(session_id)
    except (OSError, ValueError) as exc:
        return HTTPStatus.INTERNAL_SERVER_ERROR, {"error": f"Failed to load session: {exc}"}
    if record is None:
        return HTTPStatus.NOT_FOUND, {"error": f"Session not found: {session_id}"}
    return HTTPStatus.OK, {
        "session_id": record.id,
        "status": record.state,
        "model": record.model,
        "cwd": str(record.cwd),
        "turns_completed": record.turns_completed,
        "cost_usd": record.cost_usd,
        "created_at": _format_timestamp(record.created_at),
        "updated_at": _format_timestamp(record.updated_at),
    }


def cancel_session(store: SessionStore, session_id: str) -> tuple:
    if not is_valid_session_id(session_id):
        return HTTPStatus.BAD_REQUEST, {"error": "Invalid session_id format"}
    try:
        store.update_session_state(session_id, "cancelled")
    except SessionNotFoundError:
        return HTTPStatus.NOT_FOUND, {"error": f"Session not found: {session_id}"}
    except (OSError, ValueError) as exc:
        return HTTPStatus.INTERNAL_SERVER_ERROR, {"error": f"Failed to cancel session: {exc}"}
    return HTTPStatus.OK, {"status": "cancelled", "session_id": session_id}


def get_transcript(store: SessionStore, session_id: str) -> tuple:
    messages_path = store.session_dir(session_id) / "messages.jsonl"
    if not messages_path.exists():
        return HTTPStatus.NOT_FOUND, {"error": f"Session not found: {session_id}"}
    try:
        messages = store.load_messages(session_id)
    except (OSError, ValueError) as exc:
        return HTTPStatus.INTERNAL_SERVER_ERROR, {"error": f"Failed to load messages: {exc}"}
    return HTTPStatus.OK, {
        "session_id": session_id,
        "message_count": len(messages),
        "messages": [message_to_dict(m) for m in messages],
    }