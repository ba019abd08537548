"""
Scoring Pillar Base
bd_scoring/scoring/pillars/base.py

Shared contract for the six pillars. A pillar is stateless: ``score`` is a pure
function of (company, market context, class constants), so one instance can be
shared across threads.

Formulas:
    completeness = present(required ∪ optional) / |required ∪ optional|
    raw_score    = clamp(Σ factor.weight × factor.score, 1, 5)
    confidence   = clamp(0.4·completeness + 0.3·data_quality + 0.3·methodology, 0, 1)
"""

import logging
import math
from abc import ABC, abstractmethod
from typing import Callable, ClassVar, Dict, List, Tuple

from bd_scoring.core.exceptions import CalculationError, InvalidData
from bd_scoring.models.company import CompanyRecord
from bd_scoring.models.enumerations import PillarName, ValidationSeverity
from bd_scoring.models.market_context import MarketContext
from bd_scoring.models.scoring import (
    Explanation,
    PillarScore,
    ScoringFactor,
    ValidationIssue,
    ValidationResult,
)
from bd_scoring.scoring.utils import clamp

logger = logging.getLogger(__name__)

MIN_SCORE = 1.0
MAX_SCORE = 5.0
COMPLETENESS_WARNING_THRESHOLD = 0.7

_W_COMPLETENESS = 0.4
_W_QUALITY = 0.3
_W_METHODOLOGY = 0.3


# Field key -> presence predicate. Keys are what pillars list as required/optional.
FIELD_CHECKS: Dict[str, Callable[[CompanyRecord], bool]] = {
    "name": lambda c: bool(c.basic_info.name.strip()),
    "sector": lambda c: bool(c.basic_info.sector.strip()),
    "therapeutic_areas": lambda c: bool(c.basic_info.therapeutic_areas),
    "stage": lambda c: c.basic_info.stage is not None,
    "programs": lambda c: bool(c.pipeline.programs),
    "lead_differentiators": lambda c: bool(
        c.pipeline.lead_program and c.pipeline.lead_program.differentiators
    ),
    "program_risks": lambda c: any(p.risks for p in c.pipeline.programs),
    "cash_position": lambda c: c.financials.cash_position > 0,
    "burn_rate": lambda c: c.financials.burn_rate > 0,
    "runway": lambda c: c.financials.runway_months is not None,
    "last_funding": lambda c: c.financials.last_funding is not None,
    "addressable_market": lambda c: c.market.addressable_market > 0,
    "competitors": lambda c: bool(c.market.competitors),
    "market_dynamics": lambda c: c.market.market_dynamics is not None,
    "approvals": lambda c: bool(c.regulatory.approvals),
    "clinical_trials": lambda c: bool(c.regulatory.clinical_trials),
    "regulatory_strategy": lambda c: c.regulatory.regulatory_strategy is not None,
}


def describe_score(score: float) -> str:
    if score >= 4.5:
        return "Excellent"
    if score >= 3.5:
        return "Good"
    if score >= 2.5:
        return "Average"
    if score >= 1.5:
        return "Below Average"
    return "Poor"


class ScoringPillar(ABC):
    """One scoring dimension. Subclasses declare constants and implement ``_calculate_factors``."""

    pillar: ClassVar[PillarName]
    default_weight: ClassVar[float]
    methodology_reliability: ClassVar[float]
    methodology: ClassVar[str]
    required_fields: ClassVar[Tuple[str, ...]]
    optional_fields: ClassVar[Tuple[str, ...]] = ()
    factor_weights: ClassVar[Dict[str, float]]
    limitations: ClassVar[Tuple[str, ...]] = ()

    @property
    def display_name(self) -> str:
        return self.pillar.display_name

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def completeness(self, company: CompanyRecord) -> float:
        fields = self.required_fields + self.optional_fields
        if not fields:
            return 1.0
        present = sum(1 for f in fields if FIELD_CHECKS[f](company))
        return present / len(fields)

    def validate(self, company: CompanyRecord) -> ValidationResult:
        errors: List[ValidationIssue] = [
            ValidationIssue(
                field=f,
                message=f"Required field '{f}' is missing or invalid for {self.display_name}",
            )
            for f in self.required_fields
            if not FIELD_CHECKS[f](company)
        ]
        specific_errors, warnings = self._specific_validation(company)
        errors.extend(specific_errors)

        completeness = self.completeness(company)
        if completeness < COMPLETENESS_WARNING_THRESHOLD:
            warnings.append(ValidationIssue(
                field="completeness",
                message=f"Data completeness is {completeness:.0%}, below recommended 70%",
                severity=ValidationSeverity.WARNING,
                suggestion="Provide optional fields to improve scoring confidence",
            ))

        return ValidationResult(
            is_valid=not errors,
            completeness=completeness,
            errors=tuple(errors),
            warnings=tuple(warnings),
        )

    def _specific_validation(
        self, company: CompanyRecord
    ) -> Tuple[List[ValidationIssue], List[ValidationIssue]]:
        """Pillar-specific (errors, warnings)."""
        return [], []

    @staticmethod
    def _warning(field: str, message: str, suggestion: str = None) -> ValidationIssue:
        return ValidationIssue(
            field=field,
            message=message,
            severity=ValidationSeverity.WARNING,
            suggestion=suggestion,
        )

    # ------------------------------------------------------------------
    # Scoring
    # ------------------------------------------------------------------

    def score(self, company: CompanyRecord, context: MarketContext) -> PillarScore:
        validation = self.validate(company)
        if not validation.is_valid:
            messages = [e.message for e in validation.errors]
            raise InvalidData(
                f"{self.display_name} scoring requires valid input data",
                messages,
            )

        factors = self._calculate_factors(company, context)
        self._check_factors(factors)

        weighted = sum(f.weight * f.score for f in factors)
        if not math.isfinite(weighted):
            raise CalculationError(f"{self.display_name} produced a non-finite score")
        raw_score = clamp(weighted, MIN_SCORE, MAX_SCORE)

        data_quality = clamp(self._assess_data_quality(company, context), 0.0, 1.0)
        confidence = self.calculate_confidence(validation.completeness, data_quality)

        warnings = self._generic_warnings(raw_score, confidence, validation.completeness)
        warnings.extend(self._specific_warnings(company, context))

        logger.debug(
            "pillar_scored",
            extra={
                "pillar": self.pillar.value,
                "company_id": company.id,
                "raw_score": round(raw_score, 4),
                "confidence": round(confidence, 4),
                "warnings": len(warnings),
            },
        )

        return PillarScore(
            pillar=self.pillar,
            raw_score=raw_score,
            confidence=confidence,
            completeness=validation.completeness,
            data_quality=data_quality,
            methodology=self.methodology_reliability,
            factors=tuple(factors),
            warnings=tuple(warnings),
            explanation=self.methodology,
        )

    def calculate_confidence(self, completeness: float, data_quality: float) -> float:
        blended = (
            completeness * _W_COMPLETENESS
            + data_quality * _W_QUALITY
            + self.methodology_reliability * _W_METHODOLOGY
        )
        return clamp(blended, 0.0, 1.0)

    def _check_factors(self, factors: List[ScoringFactor]) -> None:
        names = [f.name for f in factors]
        if names != list(self.factor_weights):
            raise CalculationError(
                f"{self.display_name} factor set mismatch: {names}"
            )
        total = sum(f.weight for f in factors)
        if abs(total - 1.0) > 1e-6:
            raise CalculationError(
                f"{self.display_name} factor weights sum to {total}, expected 1.0"
            )

    def _factor(self, name: str, score: float, rationale: str = "") -> ScoringFactor:
        """Build a factor with its declared weight; weight and score are clamped."""
        return ScoringFactor(
            name=name,
            weight=clamp(self.factor_weights[name], 0.0, 1.0),
            score=clamp(score, MIN_SCORE, MAX_SCORE),
            rationale=rationale,
        )

    @abstractmethod
    def _calculate_factors(
        self, company: CompanyRecord, context: MarketContext
    ) -> List[ScoringFactor]:
        """Return factors in ``factor_weights`` order."""

    def _assess_data_quality(self, company: CompanyRecord, context: MarketContext) -> float:
        return 1.0

    def _specific_warnings(self, company: CompanyRecord, context: MarketContext) -> List[str]:
        return []

    @staticmethod
    def _generic_warnings(score: float, confidence: float, completeness: float) -> List[str]:
        warnings = []
        if confidence < 0.3:
            warnings.append("Low confidence score due to insufficient data")
        if completeness < 0.5:
            warnings.append("Significant data gaps may affect scoring accuracy")
        if score <= 2.0:
            warnings.append("Low score indicates significant concerns")
        return warnings

    # ------------------------------------------------------------------
    # Explanation
    # ------------------------------------------------------------------

    def explain(self, score: PillarScore) -> Explanation:
        limitations = list(self.limitations)
        if score.confidence < 0.5:
            limitations.append("Confidence is below 50%; treat this score as indicative only")
        if score.completeness < COMPLETENESS_WARNING_THRESHOLD:
            limitations.append("Several inputs were unavailable and reduced confidence")
        return Explanation(
            summary=(
                f"{self.display_name} scored {score.raw_score:.1f}/5.0 "
                f"({describe_score(score.raw_score)})"
            ),
            factor_contributions={f.name: round(f.contribution, 4) for f in score.factors},
            methodology=self.methodology,
            limitations=tuple(limitations),
        )
