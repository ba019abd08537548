"""
Scoring API Router
bd_scoring/routers/scoring.py

Endpoints:
  POST /api/v1/scoring/evaluate                   - Score one company
  POST /api/v1/scoring/evaluate-batch             - Score a list synchronously (invalid ones skipped)
  POST /api/v1/scoring/statistics                 - Distributions over a list of results
  POST /api/v1/scoring/explain                    - Per-pillar explanations
  GET  /api/v1/scoring/weights/profiles           - All named weight profiles
  GET  /api/v1/scoring/weights/profiles/{name}    - One profile
  PUT  /api/v1/scoring/weights/profiles/{name}    - Save a (normalized) profile
  POST /api/v1/scoring/weights/validate           - Validate weights without raising
  POST /api/v1/scoring/weights/normalize          - Proportionally rescale weights
  POST /api/v1/scoring/weights/impact             - Compare two weightings on the same pillar scores
"""

from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from bd_scoring.config import settings
from bd_scoring.core.dependencies import get_scoring_service
from bd_scoring.models.company import CompanyRecord
from bd_scoring.models.enumerations import PillarName
from bd_scoring.models.market_context import MarketContext
from bd_scoring.models.scoring import (
    Explanation,
    ScoringResult,
    ScoringStatistics,
    ValidationResult,
)
from bd_scoring.scoring.weights import ScoringParameters, WeightConfig, WeightImpactAnalysis
from bd_scoring.services.scoring_service import ScoringService

router = APIRouter(prefix=f"{settings.API_V1_PREFIX}/scoring", tags=["Scoring"])


# =====================================================================
# Request / Response Models
# =====================================================================

class EvaluateRequest(BaseModel):
    """Score one company with a named profile or explicit weights."""
    company: CompanyRecord
    profile: Optional[str] = None
    weights: Optional[WeightConfig] = None
    parameters: Optional[ScoringParameters] = None
    market_context: Optional[MarketContext] = None


class EvaluateManyRequest(BaseModel):
    companies: List[CompanyRecord] = Field(..., min_length=1)
    profile: Optional[str] = None
    weights: Optional[WeightConfig] = None
    parameters: Optional[ScoringParameters] = None
    market_context: Optional[MarketContext] = None


class EvaluateManyResponse(BaseModel):
    requested: int
    evaluated: int
    results: List[ScoringResult]


class StatisticsRequest(BaseModel):
    results: List[ScoringResult]


class ExplainRequest(BaseModel):
    company: CompanyRecord
    market_context: Optional[MarketContext] = None


class WeightImpactRequest(BaseModel):
    pillar_scores: Dict[PillarName, float]
    original: WeightConfig
    new: WeightConfig


# =====================================================================
# Evaluation
# =====================================================================

@router.post("/evaluate", response_model=ScoringResult, summary="Score one company")
def evaluate_company(
    request: EvaluateRequest,
    service: ScoringService = Depends(get_scoring_service),
):
    config = service.resolve_config(request.profile, request.weights, request.parameters)
    return service.evaluate_company(request.company, config, request.market_context)


@router.post(
    "/evaluate-batch",
    response_model=EvaluateManyResponse,
    summary="Score several companies synchronously",
    description="Invalid companies are skipped; results keep input order.",
)
def evaluate_companies(
    request: EvaluateManyRequest,
    service: ScoringService = Depends(get_scoring_service),
):
    config = service.resolve_config(request.profile, request.weights, request.parameters)
    results = service.evaluate_companies(request.companies, config, request.market_context)
    return EvaluateManyResponse(
        requested=len(request.companies),
        evaluated=len(results),
        results=results,
    )


@router.post("/statistics", response_model=ScoringStatistics, summary="Summarize scoring results")
def scoring_statistics(
    request: StatisticsRequest,
    service: ScoringService = Depends(get_scoring_service),
):
    return service.get_scoring_statistics(request.results)


@router.post(
    "/explain",
    response_model=Dict[PillarName, Explanation],
    summary="Explain each pillar score",
)
def explain_company(
    request: ExplainRequest,
    service: ScoringService = Depends(get_scoring_service),
):
    return service.explain_company(request.company, request.market_context)


# =====================================================================
# Weights
# =====================================================================

@router.get("/weights/profiles", response_model=Dict[str, WeightConfig])
def list_weight_profiles(service: ScoringService = Depends(get_scoring_service)):
    return service.list_profiles()


@router.get("/weights/profiles/{name}", response_model=WeightConfig)
def get_weight_profile(name: str, service: ScoringService = Depends(get_scoring_service)):
    weights = service.get_profile(name)
    if weights is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error_code": "PROFILE_NOT_FOUND", "message": f"Weight profile '{name}' not found"},
        )
    return weights


@router.put("/weights/profiles/{name}", response_model=WeightConfig)
def save_weight_profile(
    name: str,
    weights: WeightConfig,
    service: ScoringService = Depends(get_scoring_service),
):
    return service.save_profile(name, weights)


@router.post("/weights/validate", response_model=ValidationResult)
def validate_weights(weights: WeightConfig, service: ScoringService = Depends(get_scoring_service)):
    return service.validate_weights(weights)


@router.post("/weights/normalize", response_model=WeightConfig)
def normalize_weights(weights: WeightConfig, service: ScoringService = Depends(get_scoring_service)):
    return service.normalize_weights(weights)


@router.post("/weights/impact", response_model=WeightImpactAnalysis)
def weight_impact(
    request: WeightImpactRequest,
    service: ScoringService = Depends(get_scoring_service),
):
    missing = [p.value for p in PillarName if p not in request.pillar_scores]
    if missing:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"error_code": "VALIDATION_ERROR", "message": f"Missing pillar scores: {', '.join(missing)}"},
        )
    return service.weight_impact(request.pillar_scores, request.original, request.new)
