"""
Health Check Router - BD Scoring Engine
bd_scoring/routers/health.py

Reports service status and result-cache statistics.
"""
from datetime import datetime, timezone
from typing import Dict, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from bd_scoring.config import settings
from bd_scoring.core.dependencies import get_scoring_service
from bd_scoring.services.result_cache import CacheStats
from bd_scoring.services.scoring_service import ScoringService

router = APIRouter(tags=["Health"])


class HealthResponse(BaseModel):
    status: str
    timestamp: datetime
    version: str
    dependencies: Dict[str, str]
    cache: Optional[CacheStats] = None


@router.get("/health", response_model=HealthResponse)
def health_check(service: ScoringService = Depends(get_scoring_service)):
    stats = service.cache_stats()
    cache_status = "disabled"
    if stats is not None:
        cache_status = "degraded" if stats.errors else "healthy"
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(timezone.utc),
        version=settings.APP_VERSION,
        dependencies={"cache": f"{settings.CACHE_BACKEND}: {cache_status}"},
        cache=stats,
    )
