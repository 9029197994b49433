"""Tests for the enrichment TTL cache."""

import pytest

from ops_briefing.core.enrichment.cache import CacheStats, EnrichmentCache


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return EnrichmentCache(ttl_seconds=900, clock=clock)


class TestEnrichmentCache:
    """Tests for get/set, TTL expiry and statistics."""

    def test_miss_then_hit(self, cache):
        assert cache.get("ado:1") is None
        cache.set("ado:1", {"id": 1})
        assert cache.get("ado:1") == {"id": 1}
        assert cache.stats() == CacheStats(keys=1, hits=1, misses=1)

    def test_entry_expires_after_ttl(self, cache, clock):
        cache.set("ado:1", "value")
        clock.advance(899)
        assert cache.get("ado:1") == "value"
        clock.advance(1)
        assert cache.get("ado:1") is None
        assert cache.stats().keys == 0

    def test_set_refreshes_ttl(self, cache, clock):
        cache.set("ado:1", "old")
        clock.advance(600)
        cache.set("ado:1", "new")
        clock.advance(600)
        assert cache.get("ado:1") == "new"

    def test_stats_purge_expired(self, cache, clock):
        cache.set("a", 1)
        clock.advance(500)
        cache.set("b", 2)
        clock.advance(500)
        assert cache.stats().keys == 1

    def test_eviction_drops_oldest_half(self, clock):
        cache = EnrichmentCache(ttl_seconds=900, max_size=4, clock=clock)
        for key in ["a", "b", "c", "d"]:
            cache.set(key, key)
        cache.set("e", "e")

        assert cache.get("a") is None
        assert cache.get("b") is None
        assert cache.get("c") == "c"
        assert cache.get("e") == "e"

    def test_overwrite_does_not_evict(self, clock):
        cache = EnrichmentCache(ttl_seconds=900, max_size=2, clock=clock)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.set("b", 3)
        assert cache.get("a") == 1
        assert cache.get("b") == 3

    def test_disabled_cache(self, clock):
        cache = EnrichmentCache(enabled=False, clock=clock)
        cache.set("a", 1)
        assert cache.get("a") is None
        assert cache.stats() == CacheStats(keys=0, hits=0, misses=0)

        cache.enabled = True
        cache.set("a", 1)
        assert cache.get("a") == 1

    def test_clear(self, cache):
        cache.set("a", 1)
        cache.set("b", 2)
        cache.get("a")
        assert cache.clear() == 2
        assert cache.stats() == CacheStats(keys=0, hits=0, misses=0)

    def test_invalid_arguments(self):
        with pytest.raises(ValueError, match="ttl_seconds"):
            EnrichmentCache(ttl_seconds=0)
        with pytest.raises(ValueError, match="max_size"):
            EnrichmentCache(max_size=0)


class TestCacheKeys:
    """Tests for key builders."""

    def test_ado_key(self):
        assert EnrichmentCache.build_ado_key(42) == "ado:42"

    def test_ado_key_with_changed_date(self):
        assert EnrichmentCache.build_ado_key(42, "2024-01-15T10:30:00Z") == "ado:42:2024-01-15"
        assert EnrichmentCache.build_ado_key(42, "2024-01-15") == "ado:42:2024-01-15"

    def test_gsd_key_normalizes_trailing_slash(self):
        assert EnrichmentCache.build_gsd_key("/work/alpha/") == "gsd:/work/alpha"
        assert EnrichmentCache.build_gsd_key("/work/alpha") == "gsd:/work/alpha"
