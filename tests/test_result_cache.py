"""
Result Cache Tests - BD Scoring Engine
tests/test_result_cache.py

Tests for the result cache: hits, misses, TTL, eviction, invalidation,
single-flight computation and graceful degradation when the store fails.
"""
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import MagicMock, patch

import pytest
import redis

from bd_scoring.config import Settings
from bd_scoring.core.exceptions import CalculationError, Cancelled
from bd_scoring.models.scoring import ScoringResult
from bd_scoring.services.redis_cache import RedisCache
from bd_scoring.services.result_cache import (
    InMemoryStore,
    ResultCache,
    build_result_cache,
)

FINGERPRINT = "f" * 64


@pytest.fixture
def sample_result(uncached_engine, high_quality_company, market_context):
    return uncached_engine.evaluate(high_quality_company, market_context=market_context)


class FailingStore:
    """Store whose every operation raises, as an unreachable backend would."""

    def get(self, key, model=None):
        raise RuntimeError("store down")

    def set(self, key, value, ttl_seconds):
        raise RuntimeError("store down")

    def delete_pattern(self, pattern):
        raise RuntimeError("store down")

    def count(self, pattern):
        raise RuntimeError("store down")


# =============================================================================
# IN-MEMORY STORE
# =============================================================================

class TestInMemoryStore:

    def test_entry_expires_after_ttl(self, sample_result):
        now = [100.0]
        store = InMemoryStore(clock=lambda: now[0])
        store.set("k", sample_result, ttl_seconds=10)

        now[0] = 109.0
        assert store.get("k") == sample_result
        now[0] = 110.0
        assert store.get("k") is None

    def test_overflow_evicts_oldest_to_80_percent(self, sample_result):
        store = InMemoryStore(max_size=10)
        for i in range(11):
            store.set(f"bdscore:c{i}:x", sample_result, ttl_seconds=60)

        assert store.count("bdscore:*") == 8
        assert store.get("bdscore:c0:x") is None
        assert store.get("bdscore:c10:x") is not None

    def test_delete_pattern(self, sample_result):
        store = InMemoryStore()
        store.set("bdscore:a:1", sample_result, 60)
        store.set("bdscore:a:2", sample_result, 60)
        store.set("bdscore:b:1", sample_result, 60)

        assert store.delete_pattern("bdscore:a:*") == 2
        assert store.count("bdscore:*") == 1


# =============================================================================
# RESULT CACHE
# =============================================================================

class TestResultCache:

    def test_miss_then_hit(self, sample_result):
        cache = ResultCache()
        assert cache.get("c1", FINGERPRINT) is None

        cache.put("c1", FINGERPRINT, sample_result)
        assert cache.get("c1", FINGERPRINT) == sample_result

        stats = cache.stats()
        assert stats.hits == 1
        assert stats.misses == 1
        assert stats.size == 1
        assert stats.hit_rate == pytest.approx(0.5)

    def test_key_includes_fingerprint(self, sample_result):
        cache = ResultCache()
        cache.put("c1", FINGERPRINT, sample_result)
        assert cache.get("c1", "0" * 64) is None

    def test_invalidate_drops_every_fingerprint(self, sample_result):
        cache = ResultCache()
        cache.put("c1", "a" * 64, sample_result)
        cache.put("c1", "b" * 64, sample_result)
        cache.put("c2", "a" * 64, sample_result)

        assert cache.invalidate("c1") == 2
        assert cache.get("c1", "a" * 64) is None
        assert cache.get("c2", "a" * 64) is not None

    def test_clear_all_resets_counters(self, sample_result):
        cache = ResultCache()
        cache.put("c1", FINGERPRINT, sample_result)
        cache.get("c1", FINGERPRINT)
        cache.clear_all()

        stats = cache.stats()
        assert stats.size == 0
        assert stats.hits == 0

    def test_store_errors_degrade_to_miss(self, sample_result):
        cache = ResultCache(store=FailingStore())
        compute = MagicMock(return_value=sample_result)

        result = cache.get_or_compute("c1", FINGERPRINT, compute)

        assert result == sample_result
        compute.assert_called_once()
        assert cache.invalidate("c1") == 0
        stats = cache.stats()
        assert stats.errors >= 3
        assert stats.size == 0


# =============================================================================
# SINGLE-FLIGHT
# =============================================================================

class TestSingleFlight:

    def test_concurrent_callers_compute_once(self, sample_result):
        cache = ResultCache()
        calls = []
        barrier = threading.Barrier(10)

        def compute():
            calls.append(1)
            time.sleep(0.1)
            return sample_result

        def worker(_):
            barrier.wait()
            return cache.get_or_compute("c1", FINGERPRINT, compute)

        with ThreadPoolExecutor(max_workers=10) as pool:
            results = list(pool.map(worker, range(10)))

        assert len(calls) == 1
        assert all(r == sample_result for r in results)
        assert cache.stats().computations == 1
        assert cache.stats().in_flight == 0

    def test_leader_failure_propagates_and_is_not_cached(self, sample_result):
        cache = ResultCache()

        def failing():
            raise CalculationError("boom")

        with pytest.raises(CalculationError):
            cache.get_or_compute("c1", FINGERPRINT, failing)

        assert cache.get("c1", FINGERPRINT) is None
        assert cache.get_or_compute("c1", FINGERPRINT, lambda: sample_result) == sample_result

    def test_followers_retry_after_leader_cancelled(self, sample_result):
        cache = ResultCache()
        leader_started = threading.Event()
        release_leader = threading.Event()
        follower_compute = MagicMock(return_value=sample_result)

        def cancelled_compute():
            leader_started.set()
            release_leader.wait(timeout=5)
            raise Cancelled("leader cancelled")

        with ThreadPoolExecutor(max_workers=2) as pool:
            leader = pool.submit(cache.get_or_compute, "c1", FINGERPRINT, cancelled_compute)
            assert leader_started.wait(timeout=5)
            follower = pool.submit(cache.get_or_compute, "c1", FINGERPRINT, follower_compute)
            time.sleep(0.05)
            release_leader.set()

            with pytest.raises(Cancelled):
                leader.result(timeout=5)
            assert follower.result(timeout=5) == sample_result

        follower_compute.assert_called_once()
        assert cache.get("c1", FINGERPRINT) == sample_result


# =============================================================================
# REDIS STORE
# =============================================================================

class TestRedisCache:

    def test_set_and_get_round_trip(self, sample_result):
        with patch("bd_scoring.services.redis_cache.redis.from_url") as mock_from_url:
            mock_client = MagicMock()
            mock_from_url.return_value = mock_client

            store = RedisCache("redis://cache:6379/0", model=ScoringResult)
            store.set("bdscore:c1:x", sample_result, 300)
            mock_client.setex.assert_called_once_with(
                "bdscore:c1:x", 300, sample_result.model_dump_json()
            )

            mock_client.get.return_value = sample_result.model_dump_json()
            assert store.get("bdscore:c1:x") == sample_result

    def test_get_miss(self):
        with patch("bd_scoring.services.redis_cache.redis.from_url") as mock_from_url:
            mock_client = MagicMock()
            mock_client.get.return_value = None
            mock_from_url.return_value = mock_client

            assert RedisCache(model=ScoringResult).get("missing") is None

    def test_delete_pattern_scans_and_deletes(self):
        with patch("bd_scoring.services.redis_cache.redis.from_url") as mock_from_url:
            mock_client = MagicMock()
            mock_client.scan_iter.return_value = ["bdscore:c1:a", "bdscore:c1:b"]
            mock_from_url.return_value = mock_client

            store = RedisCache()
            assert store.delete_pattern("bdscore:c1:*") == 2
            mock_client.scan_iter.assert_called_once_with(match="bdscore:c1:*")
            assert mock_client.delete.call_count == 2

    def test_redis_errors_degrade_result_cache(self, sample_result):
        with patch("bd_scoring.services.redis_cache.redis.from_url") as mock_from_url:
            mock_client = MagicMock()
            mock_client.get.side_effect = redis.ConnectionError("refused")
            mock_client.setex.side_effect = redis.ConnectionError("refused")
            mock_from_url.return_value = mock_client

            cache = ResultCache(store=RedisCache(model=ScoringResult))
            result = cache.get_or_compute("c1", FINGERPRINT, lambda: sample_result)

            assert result == sample_result
            assert cache.stats().errors >= 2


# =============================================================================
# BACKEND SELECTION
# =============================================================================

class TestBuildResultCache:

    def test_memory_backend_by_default(self):
        cache = build_result_cache(Settings(CACHE_BACKEND="memory"))
        assert isinstance(cache._store, InMemoryStore)

    def test_redis_backend_when_reachable(self):
        with patch("bd_scoring.services.result_cache.RedisCache") as mock_store_cls:
            mock_store_cls.return_value.ping.return_value = True
            cache = build_result_cache(Settings(CACHE_BACKEND="redis"))
            assert cache._store is mock_store_cls.return_value

    def test_falls_back_to_memory_when_redis_unreachable(self):
        with patch("bd_scoring.services.result_cache.RedisCache") as mock_store_cls:
            mock_store_cls.return_value.ping.side_effect = redis.ConnectionError("refused")
            cache = build_result_cache(Settings(CACHE_BACKEND="redis"))
            assert isinstance(cache._store, InMemoryStore)
