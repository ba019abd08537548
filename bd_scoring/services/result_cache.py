"""
Result Cache - BD Scoring Engine
bd_scoring/services/result_cache.py

Memoizes ScoringResults keyed by (company id, config fingerprint).

- Best-effort: any store error is logged and treated as a miss.
- Single-flight: concurrent ``get_or_compute`` calls for the same key run the
  computation once; the others wait on the leader's future.
- Constructed explicitly and injected into the engine (no module singleton).
"""

import fnmatch
import logging
import threading
import time
from collections import OrderedDict
from concurrent.futures import Future
from typing import Callable, Dict, Optional, Tuple

import redis
from pydantic import BaseModel

from bd_scoring.config import Settings, settings as default_settings
from bd_scoring.core.exceptions import Cancelled
from bd_scoring.models.scoring import ScoringResult
from bd_scoring.services.redis_cache import RedisCache

logger = logging.getLogger(__name__)

KEY_PREFIX = "bdscore:"
EVICT_TARGET_RATIO = 0.8


class InMemoryStore:
    """
    TTL + size-bounded dict store.

    When an insert pushes the store over ``max_size``, the oldest entries are
    evicted until size is at 80% of capacity.
    """

    def __init__(self, max_size: int = 1000, clock: Callable[[], float] = time.monotonic):
        self.max_size = max_size
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: "OrderedDict[str, Tuple[float, BaseModel]]" = OrderedDict()

    def get(self, key: str, model=None) -> Optional[BaseModel]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                return None
            return value

    def set(self, key: str, value: BaseModel, ttl_seconds: int) -> None:
        with self._lock:
            self._entries.pop(key, None)
            self._entries[key] = (self._clock() + ttl_seconds, value)
            if len(self._entries) > self.max_size:
                self._evict()

    def _evict(self) -> None:
        target = int(self.max_size * EVICT_TARGET_RATIO)
        now = self._clock()
        for key in [k for k, (exp, _) in self._entries.items() if exp <= now]:
            del self._entries[key]
        while len(self._entries) > target:
            self._entries.popitem(last=False)

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def delete_pattern(self, pattern: str) -> int:
        with self._lock:
            doomed = [k for k in self._entries if fnmatch.fnmatchcase(k, pattern)]
            for key in doomed:
                del self._entries[key]
            return len(doomed)

    def count(self, pattern: str) -> int:
        with self._lock:
            return sum(1 for k in self._entries if fnmatch.fnmatchcase(k, pattern))


class CacheStats(BaseModel):
    hits: int
    misses: int
    errors: int
    computations: int
    size: int
    in_flight: int
    hit_rate: float


class ResultCache:
    """Read-through cache with single-flight computation per key."""

    def __init__(self, store=None, ttl_seconds: Optional[int] = None, config: Settings = None):
        config = config or default_settings
        self._store = store if store is not None else InMemoryStore(max_size=config.CACHE_MAX_SIZE)
        self._ttl = ttl_seconds or config.CACHE_TTL_SECONDS
        self._lock = threading.Lock()
        self._in_flight: Dict[str, Future] = {}
        self._hits = 0
        self._misses = 0
        self._errors = 0
        self._computations = 0

    @staticmethod
    def make_key(company_id: str, fingerprint: str) -> str:
        return f"{KEY_PREFIX}{company_id}:{fingerprint}"

    # ------------------------------------------------------------------
    # Best-effort primitives
    # ------------------------------------------------------------------

    def get(self, company_id: str, fingerprint: str) -> Optional[ScoringResult]:
        key = self.make_key(company_id, fingerprint)
        try:
            value = self._store.get(key, ScoringResult)
        except Exception as e:
            self._record_error("cache_read_failed", key, e)
            value = None
        with self._lock:
            if value is None:
                self._misses += 1
            else:
                self._hits += 1
        return value

    def put(self, company_id: str, fingerprint: str, result: ScoringResult) -> None:
        key = self.make_key(company_id, fingerprint)
        try:
            self._store.set(key, result, self._ttl)
        except Exception as e:
            self._record_error("cache_write_failed", key, e)

    def invalidate(self, company_id: str) -> int:
        """Drop every cached result for a company (all fingerprints)."""
        try:
            removed = self._store.delete_pattern(f"{KEY_PREFIX}{company_id}:*")
        except Exception as e:
            self._record_error("cache_invalidate_failed", company_id, e)
            return 0
        logger.info("cache_invalidated", extra={"company_id": company_id, "removed": removed})
        return removed

    def clear_all(self) -> None:
        try:
            self._store.delete_pattern(f"{KEY_PREFIX}*")
        except Exception as e:
            self._record_error("cache_clear_failed", "*", e)
        with self._lock:
            self._hits = self._misses = self._errors = self._computations = 0

    def _record_error(self, event: str, key: str, error: Exception) -> None:
        with self._lock:
            self._errors += 1
        logger.warning(event, extra={"key": key, "error": str(error)})

    # ------------------------------------------------------------------
    # Single-flight
    # ------------------------------------------------------------------

    def get_or_compute(
        self,
        company_id: str,
        fingerprint: str,
        compute: Callable[[], ScoringResult],
    ) -> ScoringResult:
        """
        Return the cached result or compute it exactly once per key.

        Followers block on the leader's future. A leader failure propagates to
        every follower and is not cached, except ``Cancelled``: followers then
        retry, since the leader's cancellation is not theirs.
        """
        key = self.make_key(company_id, fingerprint)
        while True:
            cached = self.get(company_id, fingerprint)
            if cached is not None:
                return cached

            with self._lock:
                future = self._in_flight.get(key)
                leader = future is None
                if leader:
                    future = Future()
                    self._in_flight[key] = future

            if not leader:
                try:
                    return future.result()
                except Cancelled:
                    continue

            try:
                # A previous leader may have stored the value between our miss and
                # taking leadership.
                cached = self._peek(key)
                if cached is None:
                    with self._lock:
                        self._computations += 1
                    cached = compute()
                    self.put(company_id, fingerprint, cached)
            except BaseException as exc:
                self._release(key)
                future.set_exception(exc)
                raise
            self._release(key)
            future.set_result(cached)
            return cached

    def _release(self, key: str) -> None:
        with self._lock:
            self._in_flight.pop(key, None)

    def _peek(self, key: str) -> Optional[ScoringResult]:
        try:
            return self._store.get(key, ScoringResult)
        except Exception as e:
            self._record_error("cache_read_failed", key, e)
            return None

    def stats(self) -> CacheStats:
        try:
            size = self._store.count(f"{KEY_PREFIX}*")
        except Exception as e:
            self._record_error("cache_count_failed", "*", e)
            size = 0
        with self._lock:
            lookups = self._hits + self._misses
            return CacheStats(
                hits=self._hits,
                misses=self._misses,
                errors=self._errors,
                computations=self._computations,
                size=size,
                in_flight=len(self._in_flight),
                hit_rate=self._hits / lookups if lookups else 0.0,
            )


def build_result_cache(config: Settings = None) -> ResultCache:
    """
    Create the cache for the configured backend.

    Falls back to the in-memory store when Redis is unreachable, so the
    service keeps working without caching infrastructure.
    """
    config = config or default_settings
    if config.CACHE_BACKEND == "redis":
        try:
            store = RedisCache(config.REDIS_URL, model=ScoringResult)
            store.ping()
            logger.info("result_cache_backend", extra={"backend": "redis"})
            return ResultCache(store=store, config=config)
        except (redis.RedisError, ConnectionError) as e:
            logger.warning("redis_unavailable_fallback_memory", extra={"error": str(e)})
    return ResultCache(config=config)
