"""
Dependencies - BD Scoring Engine
bd_scoring/core/dependencies.py

FastAPI dependency injection for the scoring service.
"""

from functools import lru_cache

from bd_scoring.config import get_settings
from bd_scoring.services.result_cache import ResultCache, build_result_cache
from bd_scoring.services.scoring_service import ScoringService


@lru_cache()
def get_result_cache() -> ResultCache:
    """Get cached ResultCache for the configured backend."""
    return build_result_cache(get_settings())


@lru_cache()
def get_scoring_service() -> ScoringService:
    """Get cached ScoringService instance."""
    return ScoringService(cache=get_result_cache(), config=get_settings())
