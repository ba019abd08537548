"""
Services module for the BD Scoring Engine.
"""

from bd_scoring.services.batch_scheduler import BatchScheduler
from bd_scoring.services.notifier import WebhookNotifier
from bd_scoring.services.redis_cache import RedisCache
from bd_scoring.services.result_cache import InMemoryStore, ResultCache, build_result_cache
from bd_scoring.services.scoring_service import ScoringService

__all__ = [
    "BatchScheduler",
    "InMemoryStore",
    "RedisCache",
    "ResultCache",
    "ScoringService",
    "WebhookNotifier",
    "build_result_cache",
]
