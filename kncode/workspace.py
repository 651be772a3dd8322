"""Temporary workspaces and small file helpers for tests."""

from __future__ import annotations

import json
import tempfile
from pathlib import Path
from typing import Any, Optional


class Workspace:
    """A temporary directory removed on close or when the with-block ends."""

    def __init__(self) -> None:
        self._dir = tempfile.TemporaryDirectory()

    def path(self) -> Path:
        return Path(self._dir.name)

    def create_file(self, path: str, content: str) -> Path:
        """Write content to path inside the workspace, creating parent directories."""
        return try_create_file(self.path(), path, content)

    def close(self) -> None:
        self._dir.cleanup()

    def __enter__(self) -> "Workspace":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def mock_json_response(body: str) -> Optional[Any]:
    """Parse body as JSON, or return None if it is not valid JSON."""
    try:
        return json.loads(body)
    except ValueError:
        return None


def try_create_file(directory, path: str, content: str) -> Path:
    """Write content to directory/path, creating parents; raises OSError on failure."""
    full_path = Path(directory) / path
    full_path.parent.mkdir(parents=True, exist_ok=True)
    full_path.write_text(content, encoding="utf-8")
    return full_path