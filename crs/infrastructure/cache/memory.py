"""In-process count cache with TTL expiry and LRU eviction."""

import logging
import threading
import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from crs.config import CountCacheConfig
from crs.domain.search.port.count_cache import CountCache

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Entry:
    value: int
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


class InMemoryCountCache(CountCache):
    """Thread-safe signature -> count map shared by all requests of a process.

    Expired entries are dropped when read. When full, the least recently
    used entry is evicted to make room.
    """

    def __init__(
        self,
        capacity: int = 1000,
        ttl_seconds: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be > 0")
        self._capacity = capacity
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: OrderedDict[str, _Entry] = OrderedDict()
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config: CountCacheConfig) -> "InMemoryCountCache":
        return cls(capacity=config.capacity, ttl_seconds=config.ttl_seconds)

    def get(self, signature: str) -> int | None:
        with self._lock:
            entry = self._entries.get(signature)
            if entry is None:
                return None
            if entry.is_expired(self._clock()):
                del self._entries[signature]
                logger.debug("Count cache entry expired: %s", signature)
                return None
            self._entries.move_to_end(signature)
            return entry.value

    def put(self, signature: str, value: int, ttl: float | None = None) -> None:
        expires_at = self._clock() + (ttl if ttl is not None else self._ttl)
        with self._lock:
            self._entries[signature] = _Entry(value=value, expires_at=expires_at)
            self._entries.move_to_end(signature)
            while len(self._entries) > self._capacity:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug("Count cache evicted: %s", evicted)

    def invalidate(self, signature: str) -> None:
        with self._lock:
            self._entries.pop(signature, None)

    def invalidate_all(self) -> None:
        with self._lock:
            self._entries.clear()

    def stats(self) -> dict[str, Any]:
        with self._lock:
            return {
                "entries": len(self._entries),
                "capacity": self._capacity,
                "ttl_seconds": self._ttl,
            }

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
