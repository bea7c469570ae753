"""Tests for the embedding cache and its periodic sweep."""

import asyncio

from ragbot.services.embedding_cache import EmbeddingCache
from ragbot.services.scheduler import PeriodicTask


class TestEmbeddingCache:
    """Test get/put and size-based eviction."""

    def test_get_returns_stored_vector(self):
        cache = EmbeddingCache(max_entries=10)
        cache.put("hello", [0.1, 0.2])

        assert cache.get("hello") == [0.1, 0.2]
        assert cache.get("missing") is None
        assert "hello" in cache
        assert len(cache) == 1

    def test_put_never_evicts(self):
        """Test that occupancy may exceed the cap between sweeps."""
        cache = EmbeddingCache(max_entries=100)
        for i in range(150):
            cache.put(f"text {i}", [float(i)])

        assert len(cache) == 150

    def test_sweep_below_cap_is_noop(self):
        cache = EmbeddingCache(max_entries=100)
        for i in range(100):
            cache.put(f"text {i}", [float(i)])

        assert cache.sweep() == 0
        assert len(cache) == 100

    def test_sweep_evicts_oldest_entries(self):
        """Test that a sweep over the cap removes the oldest-inserted entries."""
        cache = EmbeddingCache(max_entries=100, eviction_fraction=0.2)
        for i in range(150):
            cache.put(f"text {i}", [float(i)])

        removed = cache.sweep()

        assert removed == 50
        assert len(cache) <= cache.max_entries
        assert "text 0" not in cache
        assert "text 49" not in cache
        assert "text 50" in cache
        assert "text 149" in cache
        print(f"Sweep removed {removed} entries, {len(cache)} remain")

    def test_sweep_removes_fraction_when_larger_than_overflow(self):
        """Test that a small overflow still evicts the configured fraction."""
        cache = EmbeddingCache(max_entries=100, eviction_fraction=0.2)
        for i in range(101):
            cache.put(f"text {i}", [float(i)])

        removed = cache.sweep()

        assert removed == 20
        assert len(cache) == 81
        assert "text 19" not in cache
        assert "text 20" in cache

    def test_overwrite_keeps_single_entry(self):
        cache = EmbeddingCache()
        cache.put("same", [1.0])
        cache.put("same", [2.0])

        assert len(cache) == 1
        assert cache.get("same") == [2.0]


class TestCacheSweepTask:
    """Test the sweep running as a periodic task."""

    async def test_periodic_sweep_caps_occupancy(self):
        cache = EmbeddingCache(max_entries=10, eviction_fraction=0.2)
        for i in range(30):
            cache.put(f"text {i}", [float(i)])

        task = PeriodicTask("cache-sweep", interval=0.01, action=cache.sweep)
        task.start()
        await asyncio.sleep(0.05)
        await task.cancel()

        assert len(cache) <= 10
        assert not task.running
