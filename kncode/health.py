"""The health endpoint: status, version and uptime."""

from __future__ import annotations

import time
from dataclasses import dataclass

VERSION = "0.1.0"

_start_time = 0


@dataclass(frozen=True)
class HealthResponse:
    status: str
    version: str
    uptime_seconds: int

    def to_dict(self) -> dict:
        return {
            "status": self.status,
            "version": self.version,
            "uptime_seconds": self.uptime_seconds,
        }


def _now_seconds() -> int:
    return int(time.time())


def init_start_time() -> None:
    """Record the current time as the moment the server started."""
    global _start_time
    _start_time = _now_seconds()


def health() -> HealthResponse:
    """Report that the server is up and how long it has been running."""
    uptime = max(0, _now_seconds() - _start_time)
    return HealthResponse(status="ok", version=VERSION, uptime_seconds=uptime)