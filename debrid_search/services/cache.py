# debrid_search/services/cache.py

from __future__ import annotations

import re
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable

from ..config import DEFAULT_CACHE_MAX_SIZE, DEFAULT_CACHE_TTL_SECONDS, logger


@dataclass(frozen=True)
class CacheEntry:
    key: str
    value: Any
    expires_at: float
    tag: str | None = None


class TTLCache:
    """
    Process-wide key/value store with per-entry expiry.

    Entries are immutable and always replaced whole, so a concurrent reader
    sees either the old or the new entry, never a mix. Expiry is checked on
    read and by ``cleanup_expired``; when ``max_size`` is reached the oldest
    entry is evicted.
    """

    MISS = object()

    def __init__(
        self,
        *,
        max_size: int = DEFAULT_CACHE_MAX_SIZE,
        default_ttl: float = DEFAULT_CACHE_TTL_SECONDS,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self.max_size = max(1, max_size)
        self.default_ttl = default_ttl
        self._clock = clock or time.monotonic
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._lock = threading.Lock()
        self._stats = self._empty_stats()

    @staticmethod
    def _empty_stats() -> dict[str, int]:
        return {"hits": 0, "misses": 0, "sets": 0, "deletes": 0, "evictions": 0}

    def get(self, key: str) -> Any:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._stats["misses"] += 1
                return TTLCache.MISS
            if entry.expires_at <= self._clock():
                del self._entries[key]
                self._stats["deletes"] += 1
                self._stats["misses"] += 1
                return TTLCache.MISS
            self._stats["hits"] += 1
            return entry.value

    def set(
        self,
        key: str,
        value: Any,
        *,
        ttl: float | None = None,
        tag: str | None = None,
    ) -> None:
        expires_at = self._clock() + (ttl if ttl is not None else self.default_ttl)
        with self._lock:
            if key in self._entries:
                del self._entries[key]
            else:
                self._evict_if_needed()
            self._entries[key] = CacheEntry(key, value, expires_at, tag)
            self._stats["sets"] += 1

    def delete(self, key: str) -> bool:
        with self._lock:
            if self._entries.pop(key, None) is None:
                return False
            self._stats["deletes"] += 1
            return True

    def get_by_pattern(self, pattern: str) -> list[CacheEntry]:
        """Live entries whose key matches the regular expression ``pattern``."""
        regex = re.compile(pattern)
        now = self._clock()
        with self._lock:
            return [
                entry
                for key, entry in self._entries.items()
                if regex.search(key) and entry.expires_at > now
            ]

    def update_ttl(self, key: str, ttl: float) -> bool:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return False
            self._entries[key] = CacheEntry(
                entry.key, entry.value, self._clock() + ttl, entry.tag
            )
            return True

    def cleanup_expired(self) -> int:
        now = self._clock()
        with self._lock:
            expired = [key for key, entry in self._entries.items() if entry.expires_at <= now]
            for key in expired:
                del self._entries[key]
            self._stats["deletes"] += len(expired)
        if expired:
            logger.debug(f"[CACHE] Removed {len(expired)} expired entries")
        return len(expired)

    def get_stats(self) -> dict[str, Any]:
        with self._lock:
            stats: dict[str, Any] = dict(self._stats)
            stats["size"] = len(self._entries)
        stats["max_size"] = self.max_size
        total = stats["hits"] + stats["misses"]
        stats["hit_rate"] = round(stats["hits"] / total, 2) if total else 0.0
        return stats

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._stats = self._empty_stats()

    def __len__(self) -> int:  # pragma: no cover - convenience
        with self._lock:
            return len(self._entries)

    def _evict_if_needed(self) -> None:
        while len(self._entries) >= self.max_size:
            self._entries.popitem(last=False)
            self._stats["evictions"] += 1
