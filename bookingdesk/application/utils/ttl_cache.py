from __future__ import annotations

import logging
import time
from typing import Callable, Generic, TypeVar

T = TypeVar("T")


class TTLCache(Generic[T]):
    """Single-value cache refreshed from ``loader`` once ``ttl_seconds`` elapse.

    A failed refresh raises the loader's error instead of serving the stale
    value. Concurrent callers may refresh redundantly; loaders must be
    read-only.
    """

    def __init__(
        self,
        name: str,
        loader: Callable[[], T],
        ttl_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._name = name
        self._loader = loader
        self._ttl = ttl_seconds
        self._clock = clock
        self._value: T | None = None
        self._fetched_at: float | None = None
        self._logger = logging.getLogger(__name__)

    def is_fresh(self) -> bool:
        if self._fetched_at is None:
            return False
        return self._clock() < self._fetched_at + self._ttl

    def get(self) -> T:
        if self.is_fresh():
            return self._value  # type: ignore[return-value]
        started = self._clock()
        value = self._loader()
        self._value = value
        self._fetched_at = started
        self._logger.debug("Cache refreshed", extra={"cache": self._name})
        return value

    def invalidate(self) -> None:
        self._fetched_at = None
