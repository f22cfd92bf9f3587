from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable


@dataclass
class _Window:
    count: int
    started_at: float


class FixedWindowRateLimiter:
    """Per-process fixed-window counter keyed by (client, route).

    Best effort only: each process keeps its own counters.
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
        prune_every: int = 500,
    ) -> None:
        self._max_requests = max_requests
        self._window = window_seconds
        self._clock = clock
        self._prune_every = prune_every
        self._windows: dict[tuple[str, str], _Window] = {}
        self._lock = threading.Lock()
        self._hits = 0

    def hit(self, client: str, route: str) -> bool:
        """Count one request. Returns False once the ceiling is exceeded."""
        now = self._clock()
        key = (client, route)
        with self._lock:
            self._hits += 1
            if self._hits % self._prune_every == 0:
                self._prune(now)
            window = self._windows.get(key)
            if window is None or now - window.started_at > self._window:
                window = _Window(count=0, started_at=now)
                self._windows[key] = window
            window.count += 1
            return window.count <= self._max_requests

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()

    def _prune(self, now: float) -> None:
        expired = [key for key, w in self._windows.items() if now - w.started_at > self._window]
        for key in expired:
            del self._windows[key]
