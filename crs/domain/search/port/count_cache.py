"""Port for memoizing exact counts by ParameterMap signature."""

from abc import abstractmethod
from typing import Protocol, runtime_checkable

from crs.domain.shared.port import Port


@runtime_checkable
class CountCache(Port, Protocol):
    """Signature -> exact count, safe for concurrent use across requests.

    Implementations should raise CacheUnavailableError when their backend
    fails; callers treat any failure as a miss and never fail a search on it.
    """

    @abstractmethod
    def get(self, signature: str) -> int | None:
        """Cached count, or None on miss or expiry."""
        ...

    @abstractmethod
    def put(self, signature: str, value: int, ttl: float | None = None) -> None:
        """Store ``value``; ``ttl`` seconds overrides the cache default."""
        ...

    @abstractmethod
    def invalidate(self, signature: str) -> None: ...

    @abstractmethod
    def invalidate_all(self) -> None: ...
