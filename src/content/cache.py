"""
Time-boxed in-memory cache for generated content.

Entries are `(value, expires_at)` pairs measured against an injected clock,
so tests can advance time without sleeping. Keys come from request input,
so the cache is bounded: expired entries are purged on every write and the
oldest entry is evicted once `maxsize` is reached.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Hashable, Optional

Clock = Callable[[], float]

DEFAULT_MAXSIZE = 256


@dataclass(frozen=True)
class CacheEntry:
    value: Any
    expires_at: float


class TTLCache:
    def __init__(
        self,
        ttl_seconds: float = 30 * 60,
        clock: Clock = time.monotonic,
        maxsize: int = DEFAULT_MAXSIZE,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        if maxsize <= 0:
            raise ValueError("maxsize must be positive")
        self.ttl_seconds = ttl_seconds
        self.maxsize = maxsize
        self._clock = clock
        # Insertion-ordered; the first key is always the oldest write.
        self._entries: Dict[Hashable, CacheEntry] = {}

    def get(self, key: Hashable, default: Any = None) -> Any:
        entry = self._entries.get(key)
        if entry is None:
            return default
        if self._clock() >= entry.expires_at:
            del self._entries[key]
            return default
        return entry.value

    def set(self, key: Hashable, value: Any, ttl_seconds: Optional[float] = None) -> None:
        ttl = self.ttl_seconds if ttl_seconds is None else ttl_seconds
        now = self._clock()
        self._purge(now)
        self._entries.pop(key, None)
        while len(self._entries) >= self.maxsize:
            del self._entries[next(iter(self._entries))]
        self._entries[key] = CacheEntry(value, now + ttl)

    def _purge(self, now: float) -> None:
        expired = [key for key, entry in self._entries.items() if now >= entry.expires_at]
        for key in expired:
            del self._entries[key]

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: Hashable) -> bool:
        return self.get(key, _ABSENT) is not _ABSENT

    def __len__(self) -> int:
        now = self._clock()
        return sum(1 for entry in self._entries.values() if now < entry.expires_at)


_ABSENT = object()

__all__ = ["TTLCache", "CacheEntry", "Clock", "DEFAULT_MAXSIZE"]
