"""On-disk session records and message transcripts."""

from __future__ import annotations

import json
import logging
import os
import threading
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, Optional

from kncode.messages import (
    _format_timestamp,
    _parse_timestamp,
    message_from_dict,
    message_to_dict,
)

logger = logging.getLogger(__name__)

MAX_MESSAGES_FILE_SIZE = 50 * 1024 * 1024
_MAX_LOCKS = 10_000


class SessionNotFoundError(LookupError):
    """Raised when a session has no record on disk."""


class TranscriptTooLargeError(RuntimeError):
    """Raised when a session's transcript has reached its size limit."""


@dataclass
class SessionRecord:
    id: str
    created_at: datetime
    updated_at: datetime
    cwd: Path
    model: str
    state: str = "active"
    turns_completed: int = 0
    cost_usd: float = 0.0

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "created_at": _format_timestamp(self.created_at),
            "updated_at": _format_timestamp(self.updated_at),
            "cwd": str(self.cwd),
            "model": self.model,
            "state": self.state,
            "turns_completed": self.turns_completed,
            "cost_usd": self.cost_usd,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SessionRecord":
        try:
            return cls(
                id=data["id"],
                created_at=_parse_timestamp(data["created_at"]),
                updated_at=_parse_timestamp(data["updated_at"]),
                cwd=Path(data["cwd"]),
                model=data["model"],
                state=data["state"],
                turns_completed=int(data["turns_completed"]),
                cost_usd=float(data["cost_usd"]),
            )
        except (KeyError, TypeError) as exc:
            raise ValueError(f"malformed session record: {exc}") from exc


def _write_record(directory: Path, record: SessionRecord) -> None:
    tmp_path = directory / "session.json.tmp"
    tmp_path.write_text(json.dumps(record.to_dict(), indent=2), encoding="utf-8")
    os.replace(tmp_path, directory / "session.json")


def _read_record(path: Path) -> SessionRecord:
    return SessionRecord.from_dict(json.loads(path.read_text(encoding="utf-8")))


class SessionStore:
    """Stores each session in its own directory under base_dir."""

    def __init__(self, base_dir) -> None:
        self.base_dir = Path(base_dir)
        self._locks: dict = {}
        self._locks_guard = threading.Lock()

    def _session_lock(self, session_id: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.setdefault(session_id, threading.Lock())
            if len(self._locks) > _MAX_LOCKS:
                stale = [
                    key
                    for key, held in self._locks.items()
                    if key != session_id and not held.locked()
                ][: len(self._locks) // 2]
                for key in stale:
                    del self._locks[key]
                logger.warning(
                    "Pruned stale session locks (remaining=%d, pruned=%d)",
                    len(self._locks),
                    len(stale),
                )
            return lock

    @contextmanager
    def _locked(self, session_id: str) -> Iterator[None]:
        with self._session_lock(session_id):
            yield

    def session_dir(self, session_id: str) -> Path:
        return self.base_dir / session_id

    def create_session(self, cwd, model: str) -> SessionRecord:
        session_id = str(uuid.uuid4())
        directory = self.session_dir(session_id)
        directory.mkdir(parents=True, exist_ok=True)
        now = datetime.now(timezone.utc)
        record = SessionRecord(
            id=session_id,
            created_at=now,
            updated_at=now,
            cwd=Path(cwd),
            model=model,
        )
        _write_record(directory, record)
        return record

    def load_session(self, session_id: str) -> Optional[SessionRecord]:
        path = self.session_dir(session_id) / "session.json"
        if not path.exists():
            return None
        return _read_record(path)

    def append_message(self, session_id: str, message) -> None:
        with self._locked(session_id):
            path = self.session_dir(session_id) / "messages.jsonl"
            if path.exists() and path.stat().st_size >= MAX_MESSAGES_FILE_SIZE:
                raise TranscriptTooLargeError(
                    f"Session transcript exceeded {MAX_MESSAGES_FILE_SIZE // 1024 // 1024} MB "
                    "limit. Use compaction or start a new session."
                )
            line = json.dumps(message_to_dict(message), separators=(",", ":"), ensure_ascii=False)
            with path.open("a", encoding="utf-8") as handle:
                handle.write(line + "\n")

    def load_messages(self, session_id: str) -> list:
        """Load the transcript, skipping lines that cannot be parsed."""
        with self._locked(session_id):
            path = self.session_dir(session_id) / "messages.jsonl"
            if not path.exists():
                return []
            content = path.read_text(encoding="utf-8")

        messages = []
        malformed = 0
        for line in content.splitlines():
            try:
                messages.append(message_from_dict(json.loads(line)))
            except ValueError as exc:
                malformed += 1
                logger.warning(
                    "Skipping malformed message line in session %s transcript: %s",
                    session_id,
                    exc,
                )
        if malformed:
            logger.warning(
                "Skipped %d malformed message lines in session %s; history may be incomplete",
                malformed,
                session_id,
            )
        return messages

    def update_session_state(self, session_id: str, state: str) -> None:
        with self._locked(session_id):
            directory = self.session_dir(session_id)
            path = directory / "session.json"
            if not path.exists():
                raise SessionNotFoundError(f"Session not found: {session_id}")
            record = _read_record(path)
            record.state = state
            record.updated_at = datetime.now(timezone.utc)
            _write_record(directory, record)

    def update_session_stats(
        self, session_id: str, turns_completed: int, cost_usd: float
    ) -> None:
        """Update turn count and cost; does nothing if the session does not exist."""
        with self._locked(session_id):
            directory = self.session_dir(session_id)
            path = directory / "session.json"
            if not path.exists():
                return
            record = _read_record(path)
            record.turns_completed = turns_completed
            record.cost_usd = cost_usd
            record.updated_at = datetime.now(timezone.utc)
            _write_record(directory, record)