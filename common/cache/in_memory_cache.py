# common/cache/in_memory_cache.py

"""
In-memory LRU cache with optional per-entry TTL.
"""

import threading
import time
from collections import OrderedDict
from dataclasses import replace
from typing import Any, List, Optional, Tuple

from .cache_interface import CacheInterface, CacheStats, CacheStatus


class InMemoryCache(CacheInterface):
    """
    Thread-safe LRU cache.

    Args:
        max_size: Maximum number of entries before the least recently used
            entry is evicted
        default_ttl: Default time-to-live in seconds; ``None`` keeps entries
            until evicted or cleared
    """

    def __init__(self, max_size: int = 1000, default_ttl: Optional[int] = None):
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self.max_size = max_size
        self.default_ttl = default_ttl
        self._data: "OrderedDict[str, Tuple[Any, Optional[float]]]" = OrderedDict()
        self._lock = threading.RLock()
        self._stats = CacheStats()

    def _lookup(self, key: str) -> Tuple[CacheStatus, Optional[Any]]:
        entry = self._data.get(key)
        if entry is None:
            return CacheStatus.MISS, None
        value, expires_at = entry
        if expires_at is not None and expires_at <= time.monotonic():
            del self._data[key]
            return CacheStatus.EXPIRED, None
        self._data.move_to_end(key)
        return CacheStatus.HIT, value

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            status, value = self._lookup(key)
            if status == CacheStatus.HIT:
                self._stats.hits += 1
            else:
                self._stats.misses += 1
            return value

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        ttl = ttl if ttl is not None else self.default_ttl
        expires_at = time.monotonic() + ttl if ttl else None
        with self._lock:
            self._data[key] = (value, expires_at)
            self._data.move_to_end(key)
            self._stats.sets += 1
            while len(self._data) > self.max_size:
                self._data.popitem(last=False)
                self._stats.evictions += 1

    def delete(self, key: str) -> bool:
        with self._lock:
            if key in self._data:
                del self._data[key]
                self._stats.deletes += 1
                return True
            return False

    def exists(self, key: str) -> bool:
        with self._lock:
            status, _ = self._lookup(key)
            return status == CacheStatus.HIT

    def clear(self) -> None:
        with self._lock:
            self._data.clear()

    def keys(self) -> List[str]:
        with self._lock:
            return [key for key in list(self._data) if self._lookup(key)[0] == CacheStatus.HIT]

    def get_stats(self) -> CacheStats:
        with self._lock:
            return replace(self._stats, size=len(self._data))
