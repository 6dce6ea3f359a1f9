"""Unit tests for InMemoryCountCache."""

import threading

import pytest

from crs.config import CountCacheConfig
from crs.infrastructure.cache.memory import InMemoryCountCache


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


class TestInMemoryCountCache:
    def test_get_returns_stored_value(self, clock):
        cache = InMemoryCountCache(clock=clock)

        cache.put("sig", 42)

        assert cache.get("sig") == 42

    def test_miss_returns_none(self):
        assert InMemoryCountCache().get("nope") is None

    def test_zero_is_a_hit(self):
        cache = InMemoryCountCache()

        cache.put("sig", 0)

        assert cache.get("sig") == 0

    def test_entry_expires_after_default_ttl(self, clock):
        # Arrange
        cache = InMemoryCountCache(ttl_seconds=60, clock=clock)
        cache.put("sig", 1)

        # Act
        clock.now += 59
        before = cache.get("sig")
        clock.now += 1
        after = cache.get("sig")

        # Assert
        assert before == 1
        assert after is None
        assert len(cache) == 0

    def test_per_entry_ttl_overrides_default(self, clock):
        cache = InMemoryCountCache(ttl_seconds=600, clock=clock)
        cache.put("sig", 1, ttl=5)

        clock.now += 5

        assert cache.get("sig") is None

    def test_least_recently_used_is_evicted(self, clock):
        # Arrange
        cache = InMemoryCountCache(capacity=2, clock=clock)
        cache.put("a", 1)
        cache.put("b", 2)
        cache.get("a")

        # Act
        cache.put("c", 3)

        # Assert
        assert cache.get("a") == 1
        assert cache.get("b") is None
        assert cache.get("c") == 3

    def test_invalidate(self):
        cache = InMemoryCountCache()
        cache.put("a", 1)
        cache.put("b", 2)

        cache.invalidate("a")
        cache.invalidate("missing")

        assert cache.get("a") is None
        assert cache.get("b") == 2

    def test_invalidate_all(self):
        cache = InMemoryCountCache()
        cache.put("a", 1)
        cache.put("b", 2)

        cache.invalidate_all()

        assert len(cache) == 0

    def test_from_config(self):
        cache = InMemoryCountCache.from_config(CountCacheConfig(capacity=5, ttl_seconds=30))

        assert cache.stats() == {"entries": 0, "capacity": 5, "ttl_seconds": 30}

    @pytest.mark.parametrize("kwargs", [{"capacity": 0}, {"ttl_seconds": 0}])
    def test_rejects_invalid_limits(self, kwargs):
        with pytest.raises(ValueError):
            InMemoryCountCache(**kwargs)

    def test_concurrent_writers_respect_capacity(self):
        # Arrange
        cache = InMemoryCountCache(capacity=50)

        def writer(offset: int) -> None:
            for i in range(200):
                cache.put(f"{offset}:{i}", i)
                cache.get(f"{offset}:{i // 2}")

        threads = [threading.Thread(target=writer, args=(n,)) for n in range(8)]

        # Act
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        # Assert
        assert len(cache) == 50
