"""Compiled-expression cache.

Bounded LRU mapping from expression text to its parsed form, with an
optional TTL. Keys are hashed, so an entry costs the same whatever the
length of the expression.
"""

import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar

from .hash import Algorithm, cache_key

T = TypeVar("T")


@dataclass
class CacheStats:
    size: int = 0
    capacity: int = 0
    hits: int = 0
    misses: int = 0
    evictions: int = 0
    expirations: int = 0

    @property
    def hit_rate(self) -> float:
        lookups = self.hits + self.misses
        return self.hits / lookups if lookups else 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "size": self.size,
            "capacity": self.capacity,
            "hits": self.hits,
            "misses": self.misses,
            "evictions": self.evictions,
            "expirations": self.expirations,
            "hit_rate": round(self.hit_rate, 4),
        }


class LRUCache(Generic[T]):
    """
    Thread-safe LRU cache keyed by expression text.

    Examples:
        >>> cache = LRUCache[int](capacity=2)
        >>> cache.get_or_compute("a > 1", lambda: 1)
        1
        >>> cache.stats.misses
        1
    """

    def __init__(
        self,
        capacity: int = 512,
        ttl_seconds: float | None = None,
        algorithm: Algorithm = Algorithm.XXHASH64,
    ):
        if capacity <= 0:
            raise ValueError("capacity must be positive")

        self.capacity = capacity
        self.ttl_seconds = ttl_seconds
        self.algorithm = algorithm

        self._entries: OrderedDict[str, tuple[T, float]] = OrderedDict()
        self._stats = CacheStats(capacity=capacity)
        self._lock = threading.RLock()

    def _key(self, expression: str) -> str:
        return cache_key(expression, self.algorithm)

    def _expired(self, stored_at: float) -> bool:
        return self.ttl_seconds is not None and time.monotonic() - stored_at >= self.ttl_seconds

    def get(self, expression: str) -> T | None:
        """Cached value, or None when absent or expired."""
        key = self._key(expression)

        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and self._expired(entry[1]):
                del self._entries[key]
                self._stats.expirations += 1
                self._stats.size = len(self._entries)
                entry = None

            if entry is None:
                self._stats.misses += 1
                return None

            self._entries.move_to_end(key)
            self._stats.hits += 1
            return entry[0]

    def put(self, expression: str, value: T) -> None:
        key = self._key(expression)

        with self._lock:
            self._entries.pop(key, None)
            self._entries[key] = (value, time.monotonic())
            while len(self._entries) > self.capacity:
                self._entries.popitem(last=False)
                self._stats.evictions += 1
            self._stats.size = len(self._entries)

    def get_or_compute(self, expression: str, compute: Callable[[], T]) -> T:
        """
        Return the cached value, computing and storing it on a miss.

        Exceptions from ``compute`` propagate and nothing is stored, so a
        broken expression is re-parsed (and fails again) on every use.
        """
        with self._lock:
            value = self.get(expression)
            if value is None:
                value = compute()
                self.put(expression, value)
            return value

    def discard(self, expression: str) -> bool:
        with self._lock:
            removed = self._entries.pop(self._key(expression), None) is not None
            self._stats.size = len(self._entries)
            return removed

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._stats.size = 0

    @property
    def stats(self) -> CacheStats:
        return self._stats

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, expression: str) -> bool:
        """Membership test; does not touch LRU order or stats."""
        return self._key(expression) in self._entries


__all__ = ["LRUCache", "CacheStats"]
