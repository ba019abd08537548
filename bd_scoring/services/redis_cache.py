"""
Redis Result Store - BD Scoring Engine
bd_scoring/services/redis_cache.py

Redis-backed store for serialized scoring results. Same get/set/delete
surface as the in-memory store so ResultCache can use either.
"""
import redis
from typing import Optional, TypeVar, Type
from pydantic import BaseModel

from bd_scoring.config import settings

T = TypeVar("T", bound=BaseModel)


class RedisCache:
    def __init__(self, url: Optional[str] = None, model: Type[T] = None):
        self.client = redis.from_url(
            url or settings.REDIS_URL,
            decode_responses=True,
            socket_connect_timeout=5,
        )
        self.model = model

    def ping(self) -> bool:
        return bool(self.client.ping())

    def get(self, key: str, model: Optional[Type[T]] = None) -> Optional[T]:
        """Get cached item and deserialize to Pydantic model."""
        data = self.client.get(key)
        if data:
            return (model or self.model).model_validate_json(data)
        return None

    def set(self, key: str, value: BaseModel, ttl_seconds: int) -> None:
        """Cache Pydantic model with TTL."""
        self.client.setex(
            key,
            ttl_seconds,
            value.model_dump_json(),
        )

    def delete(self, key: str) -> None:
        """Invalidate single cache entry."""
        self.client.delete(key)

    def delete_pattern(self, pattern: str) -> int:
        """Invalidate all keys matching a glob pattern."""
        removed = 0
        for key in self.client.scan_iter(match=pattern):
            self.client.delete(key)
            removed += 1
        return removed

    def count(self, pattern: str) -> int:
        return sum(1 for _ in self.client.scan_iter(match=pattern))
