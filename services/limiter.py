"""
Per-address fixed-window request limiter.

One instance per process, owned by the Flask app (app.extensions), never a
module global. Counters are not shared across processes.
"""
from __future__ import annotations

import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict

from services.errors import RateLimited

logger = logging.getLogger(__name__)


@dataclass
class RateWindow:
    count: int
    reset_at: float


class AdmissionLimiter:
    """Allows `limit` requests per `window` seconds per network address."""

    def __init__(
        self,
        limit: int = 60,
        window: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if limit < 1 or window <= 0:
            raise ValueError("limit and window must be positive")
        self.limit = limit
        self.window = window
        self.clock = clock
        self._windows: Dict[str, RateWindow] = {}
        self._lock = threading.Lock()

    def _hit(self, address: str):
        now = self.clock()
        with self._lock:
            current = self._windows.get(address)
            if current is None or now >= current.reset_at:
                current = RateWindow(count=0, reset_at=now + self.window)
                self._windows[address] = current
            if current.count >= self.limit:
                return False, current.reset_at - now
            current.count += 1
            return True, 0.0

    def allow(self, address: str) -> bool:
        allowed, _ = self._hit(address or "unknown")
        return allowed

    def check(self, address: str) -> None:
        """Count a request; raises RateLimited when the address is over its limit."""
        address = address or "unknown"
        allowed, remaining = self._hit(address)
        if not allowed:
            retry_after = max(1, math.ceil(remaining))
            logger.warning("Rate limit exceeded", extra={"address": address, "retry_after": retry_after})
            raise RateLimited(retry_after=retry_after, context={"address": address})

    def prune(self) -> int:
        """Drop windows whose reset time has passed."""
        now = self.clock()
        with self._lock:
            stale = [addr for addr, w in self._windows.items() if now >= w.reset_at]
            for addr in stale:
                del self._windows[addr]
        return len(stale)

    def __len__(self) -> int:
        with self._lock:
            return len(self._windows)
