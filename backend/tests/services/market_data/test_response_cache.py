# tests/services/market_data/test_response_cache.py
"""
Tests for the TTL + LRU response cache.
"""

import pytest

from cryptofolio.services.market_data import ResponseCache


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock) -> ResponseCache:
    return ResponseCache(default_ttl=60, max_size=3, clock=clock)


class TestExpiry:
    """Entries expire after their TTL."""

    def test_get_before_expiry(self, cache, clock):
        cache.set("a", [1, 2])
        clock.advance(59)

        assert cache.get("a") == [1, 2]

    def test_get_after_expiry(self, cache, clock):
        """Should return None and drop the entry once the TTL has passed."""
        cache.set("a", "value")
        clock.advance(60)

        assert cache.get("a") is None
        assert cache.stats().keys == 0

    def test_per_entry_ttl(self, cache, clock):
        """A ttl passed to set() should override the default."""
        cache.set("short", 1, ttl=5)
        cache.set("long", 2)
        clock.advance(10)

        assert cache.get("short") is None
        assert cache.get("long") == 2


class TestEviction:
    """The least recently used entry goes first when full."""

    def test_evicts_oldest(self, cache):
        for key in ("a", "b", "c", "d"):
            cache.set(key, key)

        assert cache.get("a") is None
        assert cache.get("d") == "d"
        assert cache.stats().keys == 3

    def test_get_refreshes_recency(self, cache):
        """Reading an entry should protect it from the next eviction."""
        for key in ("a", "b", "c"):
            cache.set(key, key)
        cache.get("a")
        cache.set("d", "d")

        assert cache.get("a") == "a"
        assert cache.get("b") is None

    def test_overwrite_does_not_evict(self, cache):
        for key in ("a", "b", "c"):
            cache.set(key, key)
        cache.set("a", "new")

        assert cache.get("a") == "new"
        assert cache.stats().keys == 3

    def test_rejects_zero_size(self):
        with pytest.raises(ValueError):
            ResponseCache(max_size=0)


class TestManagement:
    """Tests for invalidate, flush and stats."""

    def test_invalidate(self, cache):
        cache.set("a", 1)

        assert cache.invalidate("a") is True
        assert cache.invalidate("a") is False
        assert cache.get("a") is None

    def test_flush_returns_count(self, cache):
        cache.set("a", 1)
        cache.set("b", 2)

        assert cache.flush() == 2
        assert cache.stats().keys == 0

    def test_stats_counts_hits_and_misses(self, cache):
        cache.set("a", 1)
        cache.get("a")
        cache.get("a")
        cache.get("missing")

        stats = cache.stats()
        assert stats.hits == 2
        assert stats.misses == 1
        assert stats.keys == 1
        assert stats.max_size == 3
