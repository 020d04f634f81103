"""
In-memory prediction cache with a freshness window.

Entries are only checked on read: an expired entry is dropped when it is next looked up, never
swept in the background. The clock is injectable so tests can move time forward.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

V = TypeVar("V")


class PredictionCache(Generic[V]):
    def __init__(self, ttl_seconds: float = 3600.0, clock: Callable[[], float] = time.monotonic) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, tuple[V, float]] = {}

    def get(self, key: str) -> Optional[V]:
        entry = self._entries.get(key)
        if entry is None:
            return None

        value, stored_at = entry
        if self._clock() - stored_at < self.ttl_seconds:
            return value

        del self._entries[key]
        logger.debug("Cache entry %.8s… expired", key)
        return None

    def set(self, key: str, value: V) -> None:
        self._entries[key] = (value, self._clock())

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
