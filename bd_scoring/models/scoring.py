"""
Scoring Result Models - BD Scoring Engine
bd_scoring/models/scoring.py

Value objects produced by pillars and the engine. All frozen.
"""

from datetime import datetime, timezone
from typing import Dict, Optional, Tuple
from uuid import uuid4

from pydantic import Field, field_validator

from bd_scoring.models.company import FrozenModel
from bd_scoring.models.enumerations import (
    InvestmentRecommendation,
    PillarName,
    RiskLevel,
    ValidationSeverity,
)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

class ValidationIssue(FrozenModel):
    field: str
    message: str
    severity: ValidationSeverity = ValidationSeverity.CRITICAL
    suggestion: Optional[str] = None


class ValidationResult(FrozenModel):
    is_valid: bool
    completeness: float = Field(..., ge=0.0, le=1.0)
    errors: Tuple[ValidationIssue, ...] = ()
    warnings: Tuple[ValidationIssue, ...] = ()


# ---------------------------------------------------------------------------
# Pillar output
# ---------------------------------------------------------------------------

class ScoringFactor(FrozenModel):
    name: str
    weight: float = Field(..., ge=0.0, le=1.0)
    score: float = Field(..., ge=1.0, le=5.0)
    rationale: str = ""

    @property
    def contribution(self) -> float:
        return self.weight * self.score


class PillarScore(FrozenModel):
    pillar: PillarName
    raw_score: float = Field(..., ge=1.0, le=5.0)
    confidence: float = Field(..., ge=0.0, le=1.0)
    completeness: float = Field(..., ge=0.0, le=1.0)
    data_quality: float = Field(..., ge=0.0, le=1.0)
    methodology: float = Field(..., ge=0.0, le=1.0)
    factors: Tuple[ScoringFactor, ...]
    warnings: Tuple[str, ...] = ()
    explanation: str = ""


class Explanation(FrozenModel):
    summary: str
    factor_contributions: Dict[str, float]
    methodology: str
    limitations: Tuple[str, ...] = ()


# ---------------------------------------------------------------------------
# Engine output
# ---------------------------------------------------------------------------

class ConfidenceMetrics(FrozenModel):
    overall: float = Field(..., ge=0.0, le=1.0)
    data_completeness: float = Field(..., ge=0.0, le=1.0)
    model_accuracy: float = Field(..., ge=0.0, le=1.0)
    comparable_quality: float = Field(..., ge=0.0, le=1.0)


class ScoringResult(FrozenModel):
    id: str = Field(default_factory=lambda: str(uuid4()))
    company_id: str
    company_name: str = ""
    config_fingerprint: str
    overall_score: float = Field(..., ge=0.0, le=5.0)
    pillar_scores: Dict[PillarName, PillarScore]
    weighted_scores: Dict[PillarName, float]
    confidence: ConfidenceMetrics
    recommendations: Tuple[str, ...] = Field(..., min_length=1)
    investment_recommendation: InvestmentRecommendation
    risk_level: RiskLevel
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_validator("pillar_scores")
    @classmethod
    def all_pillars_present(cls, value: Dict[PillarName, PillarScore]) -> Dict[PillarName, PillarScore]:
        missing = set(PillarName) - set(value)
        if missing:
            raise ValueError(f"missing pillar scores: {sorted(p.value for p in missing)}")
        return value


class ScoringStatistics(FrozenModel):
    total_companies: int
    average_score: float
    average_confidence: float
    score_distribution: Dict[str, int]
    recommendation_distribution: Dict[InvestmentRecommendation, int]
