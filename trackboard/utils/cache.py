"""Time-boxed in-memory cache used for organization lookups."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Dict, Generic, Hashable, Tuple, TypeVar

T = TypeVar("T")

Clock = Callable[[], float]


def monotonic_ms() -> float:
    return time.monotonic() * 1000.0


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    data: T
    timestamp: float


class TTLCache(Generic[T]):
    """Keyed cache whose entries expire ``ttl_seconds`` after being written.

    The clock returns milliseconds and is injectable so tests can move time
    without sleeping. Entries are replaced as a whole, so data and timestamp
    are never observed out of step.
    """

    def __init__(self, ttl_seconds: float, *, clock: Clock = monotonic_ms) -> None:
        self._ttl_ms = ttl_seconds * 1000.0
        self._clock = clock
        self._entries: Dict[Hashable, CacheEntry[T]] = {}

    def get(self, key: Hashable) -> Tuple[T | None, bool]:
        entry = self._entries.get(key)
        if entry is None:
            return None, False
        if self._clock() - entry.timestamp >= self._ttl_ms:
            return None, False
        return entry.data, True

    def set(self, key: Hashable, value: T) -> None:
        self._entries[key] = CacheEntry(data=value, timestamp=self._clock())


__all__ = ["CacheEntry", "Clock", "TTLCache", "monotonic_ms"]
