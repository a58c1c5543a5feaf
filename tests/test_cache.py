"""
Unit tests for envfusion/core/cache.py

Covers TTL expiry, eviction, statistics, concurrent writers and cache key
bucketing. Time is driven by a fake clock.
"""
import asyncio

import pytest

from envfusion.core.cache import CacheEntry, InMemoryCache, aggregation_cache_key
from envfusion.core.models import Category, Location


@pytest.fixture
def cache(fake_clock):
    return InMemoryCache(default_ttl=300, max_size=3, cleanup_interval=60, clock=fake_clock)


class TestCacheEntry:

    @pytest.mark.unit
    def test_expiry(self):
        entry = CacheEntry(key="k", value=1, created_at=100.0, ttl=50)
        assert entry.expires_at == 150.0
        assert entry.is_expired(149.9) is False
        assert entry.is_expired(150.0) is True


class TestInMemoryCache:

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_set_and_get(self, cache):
        await cache.set("k", {"v": 1})
        assert await cache.get("k") == {"v": 1}

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_missing_key_is_none(self, cache):
        assert await cache.get("absent") is None

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_entry_expires_after_ttl(self, cache, fake_clock):
        await cache.set("k", "value", ttl=10)
        fake_clock.advance(9)
        assert await cache.get("k") == "value"
        fake_clock.advance(1)
        assert await cache.get("k") is None
        assert (await cache.get_stats())["size"] == 0

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_default_ttl_used(self, cache, fake_clock):
        await cache.set("k", "value")
        fake_clock.advance(299)
        assert await cache.get("k") == "value"
        fake_clock.advance(1)
        assert await cache.get("k") is None

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_oldest_entry_evicted_at_max_size(self, cache, fake_clock):
        for i in range(3):
            await cache.set(f"k{i}", i)
            fake_clock.advance(1)
        await cache.set("k3", 3)

        stats = await cache.get_stats()
        assert stats["evictions"] == 1
        assert stats["size"] == 3
        assert await cache.get("k0") is None
        assert await cache.get("k3") == 3

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_overwrite_does_not_evict(self, cache):
        for i in range(3):
            await cache.set(f"k{i}", i)
        await cache.set("k1", "new")
        assert await cache.get("k1") == "new"
        assert (await cache.get_stats())["evictions"] == 0

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_periodic_cleanup_removes_expired(self, cache, fake_clock):
        await cache.set("short", 1, ttl=5)
        await cache.set("long", 2, ttl=500)
        fake_clock.advance(61)
        assert await cache.get("long") == 2
        assert (await cache.get_stats())["size"] == 1

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_stats_track_hits_and_misses(self, cache):
        await cache.set("k", 1)
        await cache.get("k")
        await cache.get("k")
        await cache.get("other")
        stats = await cache.get_stats()
        assert stats["hits"] == 2
        assert stats["misses"] == 1
        assert stats["sets"] == 1
        assert stats["hit_rate"] == "66.67%"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_concurrent_writers_last_one_wins(self, cache):
        await asyncio.gather(*(cache.set("k", i) for i in range(10)))
        assert await cache.get("k") in range(10)
        assert (await cache.get_stats())["size"] == 1


class TestAggregationCacheKey:

    @pytest.mark.unit
    def test_key_format(self):
        key = aggregation_cache_key(Category.WEATHER, Location(45.52312, -122.67648), 100)
        assert key == "aggregated:weather:45.5231:-122.6765:r100"

    @pytest.mark.unit
    def test_nearby_points_share_a_bucket(self):
        a = aggregation_cache_key(Category.OCEAN, Location(10.00001, 20.00002), 50)
        b = aggregation_cache_key(Category.OCEAN, Location(10.00004, 19.99998), 50)
        assert a == b

    @pytest.mark.unit
    def test_category_and_radius_change_the_key(self):
        location = Location(10.0, 20.0)
        assert aggregation_cache_key(Category.OCEAN, location, 50) != \
            aggregation_cache_key(Category.WEATHER, location, 50)
        assert aggregation_cache_key(Category.OCEAN, location, 50) != \
            aggregation_cache_key(Category.OCEAN, location, 75)

    @pytest.mark.unit
    def test_optional_parts_only_when_set(self):
        location = Location(10.0, 20.0)
        key = aggregation_cache_key(
            Category.EVENTS, location, 500, precision=2,
            days=3, limit=20, sources=["usgs_earthquakes", "nasa_eonet"],
            exclude_sources=["weatherapi"],
        )
        assert key == (
            "aggregated:events:10.00:20.00:r500:d3:n20"
            ":only=nasa_eonet,usgs_earthquakes:skip=weatherapi"
        )
        assert aggregation_cache_key(Category.OCEAN, location, 100, precision=2) == (
            "aggregated:ocean:10.00:20.00:r100"
        )

    @pytest.mark.unit
    def test_look_back_and_limit_change_the_key(self):
        location = Location(45.0, -122.0)
        assert aggregation_cache_key(Category.OCEAN, location, 100, days=1) != \
            aggregation_cache_key(Category.OCEAN, location, 100, days=30)
        assert aggregation_cache_key(Category.EVENTS, location, 100, days=7, limit=10) != \
            aggregation_cache_key(Category.EVENTS, location, 100, days=7, limit=50)
