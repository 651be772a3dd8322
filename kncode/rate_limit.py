"""Per-client token-bucket rate limiting."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable

CLIENT_TTL_SECS = 600.0


@dataclass
class _ClientInfo:
    tokens: float
    last_refill: float
    last_access: float


class RateLimiter:
    """Token bucket per client: refills requests_per_minute tokens a minute, capped at that many.

    A client seen for the first time starts with a single token. Clients idle for
    longer than ten minutes are forgotten.
    """

    def __init__(
        self,
        requests_per_minute: int = 60,
        max_concurrent: int = 10,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.requests_per_minute = requests_per_minute
        self.max_concurrent = max_concurrent
        self._clock = clock
        self._clients: dict = {}
        self._lock = threading.Lock()

    def _allow(self, info: _ClientInfo, now: float) -> bool:
        elapsed = max(0.0, now - info.last_refill)
        refill_rate = self.requests_per_minute / 60.0
        info.tokens = min(info.tokens + elapsed * refill_rate, float(self.requests_per_minute))
        info.last_refill = now
        info.last_access = now
        if info.tokens >= 1.0:
            info.tokens -= 1.0
            return True
        return False

    def check_rate_limit(self, client_id: str) -> bool:
        """Spend one token for client_id; return False if none is left."""
        with self._lock:
            now = self._clock()
            self._clients = {
                key: info
                for key, info in self._clients.items()
                if now - info.last_access < CLIENT_TTL_SECS
            }
            info = self._clients.get(client_id)
            if info is None:
                info = _ClientInfo(tokens=1.0, last_refill=now, last_access=now)
                self._clients[client_id] = info
            return self._allow(info, now)

    def __len__(self) -> int:
        return len(self._clients)