"""Creating and resuming sessions under a data directory."""

from __future__ import annotations

from pathlib import Path

from kncode.store import SessionNotFoundError, SessionRecord, SessionStore


class SessionManager:
    """Keeps sessions in the ``sessions`` directory under data_dir."""

    def __init__(self, data_dir) -> None:
        self.store = SessionStore(Path(data_dir) / "sessions")

    def create_session(self, cwd, model: str) -> SessionRecord:
        return self.store.create_session(cwd, model)

    def resume_session(self, session_id: str) -> SessionRecord:
        """Load an existing session; raises SessionNotFoundError if there is none."""
        record = self.store.load_session(session_id)
        if record is None:
            raise SessionNotFoundError(f"Session not found: {session_id}")
        return record