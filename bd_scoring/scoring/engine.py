"""
Scoring Engine - BD Scoring Engine
bd_scoring/scoring/engine.py

Runs the six pillars in parallel and aggregates them into a ScoringResult.

Formulas:
    overall      = clamp(Σ raw_score_i × w_i, 0, 5)                (Decimal, pillar order)
    completeness = Σ w_i × completeness_i / Σ w_i
    confidence   = min(0.4·completeness + 0.3·accuracy + 0.3·comparables,
                       min(components) + smoothing)
    risk index   = mean(5 − RR, 5 − FR, 5 − MO, 4·(1 − confidence)) × risk_adjustment

Recommendation buckets (overall): ≥4.5 strong_buy, ≥3.5 buy, ≥2.5 hold,
≥1.5 sell, else strong_sell; one bucket lower when risk is very_high.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from bd_scoring.config import Settings, settings as default_settings
from bd_scoring.core.exceptions import CalculationError, Cancelled, InvalidData
from bd_scoring.models.company import CompanyRecord
from bd_scoring.models.enumerations import (
    InvestmentRecommendation,
    PillarName,
    RiskLevel,
    ValidationSeverity,
)
from bd_scoring.models.market_context import MarketContext
from bd_scoring.models.scoring import (
    ConfidenceMetrics,
    Explanation,
    PillarScore,
    ScoringResult,
    ValidationIssue,
    ValidationResult,
)
from bd_scoring.scoring.pillars import PILLARS, ScoringPillar
from bd_scoring.scoring.utils import clamp, to_decimal, weighted_mean, weighted_sum
from bd_scoring.scoring.weights import ScoringConfig, WeightConfig

logger = logging.getLogger(__name__)

PILLAR_WORKERS = 6

# (minimum comparables, quality)
COMPARABLE_QUALITY_TABLE: Tuple[Tuple[int, float], ...] = (
    (10, 0.9),
    (5, 0.7),
    (2, 0.5),
)
COMPARABLE_QUALITY_FLOOR = 0.3

RISK_THRESHOLDS: Tuple[Tuple[float, RiskLevel], ...] = (
    (3.5, RiskLevel.VERY_HIGH),
    (2.5, RiskLevel.HIGH),
    (1.5, RiskLevel.MEDIUM),
)

RECOMMENDATION_THRESHOLDS: Tuple[Tuple[float, InvestmentRecommendation], ...] = (
    (4.5, InvestmentRecommendation.STRONG_BUY),
    (3.5, InvestmentRecommendation.BUY),
    (2.5, InvestmentRecommendation.HOLD),
    (1.5, InvestmentRecommendation.SELL),
)


# =============================================================================
# Pure aggregation helpers
# =============================================================================

def aggregate(
    raw_scores: Mapping[PillarName, float],
    weights: WeightConfig,
) -> Tuple[float, Dict[PillarName, float]]:
    """
    Weighted overall score and per-pillar contributions.

    Summation always runs in PillarName order over quantized Decimals, so the
    result does not depend on which pillar finished first.
    """
    pillars = list(PillarName)
    values = [to_decimal(raw_scores[p]) for p in pillars]
    factors = [to_decimal(weights.weight_for(p), places=6) for p in pillars]

    weighted = {
        p: float((v * w).quantize(Decimal("0.0001")))
        for p, v, w in zip(pillars, values, factors)
    }
    overall = clamp(weighted_sum(values, factors), Decimal("0"), Decimal("5"))
    return float(overall), weighted


def comparable_quality(context: MarketContext) -> float:
    count = context.comparable_count
    for minimum, quality in COMPARABLE_QUALITY_TABLE:
        if count >= minimum:
            return quality
    return COMPARABLE_QUALITY_FLOOR


def calculate_confidence(
    pillar_scores: Mapping[PillarName, PillarScore],
    weights: WeightConfig,
    context: MarketContext,
    config: Settings = None,
) -> ConfidenceMetrics:
    config = config or default_settings
    pillars = list(PillarName)
    completeness = float(weighted_mean(
        [to_decimal(pillar_scores[p].completeness) for p in pillars],
        [to_decimal(weights.weight_for(p), places=6) for p in pillars],
    ))
    accuracy = config.MODEL_ACCURACY
    comparables = comparable_quality(context)

    blended = (
        completeness * config.CONFIDENCE_W_COMPLETENESS
        + accuracy * config.CONFIDENCE_W_ACCURACY
        + comparables * config.CONFIDENCE_W_COMPARABLES
    )
    ceiling = min(completeness, accuracy, comparables) + config.CONFIDENCE_SMOOTHING
    overall = clamp(min(blended, ceiling), 0.0, 1.0)

    return ConfidenceMetrics(
        overall=round(overall, 4),
        data_completeness=round(clamp(completeness, 0.0, 1.0), 4),
        model_accuracy=accuracy,
        comparable_quality=comparables,
    )


def determine_risk_level(
    pillar_scores: Mapping[PillarName, PillarScore],
    confidence: ConfidenceMetrics,
    risk_adjustment: float = 1.0,
) -> RiskLevel:
    components = [
        5.0 - pillar_scores[PillarName.REGULATORY_RISK].raw_score,
        5.0 - pillar_scores[PillarName.FINANCIAL_READINESS].raw_score,
        5.0 - pillar_scores[PillarName.MARKET_OUTLOOK].raw_score,
        (1.0 - confidence.overall) * 4.0,
    ]
    index = sum(components) / len(components) * risk_adjustment
    for threshold, level in RISK_THRESHOLDS:
        if index >= threshold:
            return level
    return RiskLevel.LOW


def determine_investment_recommendation(
    overall_score: float,
    risk_level: RiskLevel,
) -> InvestmentRecommendation:
    recommendation = InvestmentRecommendation.STRONG_SELL
    for threshold, bucket in RECOMMENDATION_THRESHOLDS:
        if overall_score >= threshold:
            recommendation = bucket
            break
    if risk_level is RiskLevel.VERY_HIGH:
        recommendation = recommendation.downgrade()
    return recommendation


def generate_recommendations(
    overall_score: float,
    pillar_scores: Mapping[PillarName, PillarScore],
    confidence: ConfidenceMetrics,
    confidence_threshold: float,
    completeness_threshold: float,
) -> Tuple[str, ...]:
    """Human-readable guidance. The first entry (overall bucket) is always present."""
    if overall_score >= 4.0:
        recommendations = ["Strong candidate for partnership or acquisition"]
    elif overall_score >= 3.0:
        recommendations = ["Moderate investment opportunity with specific strengths"]
    else:
        recommendations = ["High-risk investment requiring careful evaluation"]

    asset_quality = pillar_scores[PillarName.ASSET_QUALITY].raw_score
    if asset_quality >= 4.0:
        recommendations.append("Strong pipeline assets with competitive advantages")
    elif asset_quality < 2.5:
        recommendations.append("Pipeline quality concerns require further due diligence")

    if pillar_scores[PillarName.FINANCIAL_READINESS].raw_score < 2.5:
        recommendations.append("Financial runway concerns: consider timing of investment")
    if pillar_scores[PillarName.REGULATORY_RISK].raw_score < 2.5:
        recommendations.append("High regulatory risk: monitor clinical trial progress closely")

    if confidence.overall < confidence_threshold:
        recommendations.append("Low confidence in scoring: gather additional data before decision")
    if confidence.data_completeness < completeness_threshold:
        recommendations.append("Incomplete data: request additional company information")

    return tuple(recommendations)


# =============================================================================
# Engine
# =============================================================================

class ScoringEngine:
    """
    Evaluates companies against a ScoringConfig.

    The result cache is injected; without one every call computes. The pillar
    pool is owned by the engine and released by ``shutdown()``.
    """

    def __init__(
        self,
        cache=None,
        config: Settings = None,
        pillars: Sequence[ScoringPillar] = PILLARS,
    ):
        self.cache = cache
        self.config = config or default_settings
        self.pillars = tuple(pillars)
        self._executor = ThreadPoolExecutor(
            max_workers=PILLAR_WORKERS, thread_name_prefix="pillar"
        )
        self._lock = threading.Lock()
        self._computations = 0

    @property
    def computations(self) -> int:
        """Number of full (uncached) evaluations performed."""
        with self._lock:
            return self._computations

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate(self, company: CompanyRecord) -> ValidationResult:
        """
        Structural checks plus every pillar's validation.

        All errors are accumulated; nothing short-circuits on the first.
        """
        errors: List[ValidationIssue] = []
        warnings: List[ValidationIssue] = []

        if not company.basic_info.name.strip():
            errors.append(ValidationIssue(field="basic_info.name", message="Company name is required"))
        if not company.pipeline.programs:
            errors.append(ValidationIssue(
                field="pipeline.programs",
                message="At least one pipeline program is required",
            ))
        if company.financials.cash_position < 0:
            errors.append(ValidationIssue(
                field="financials.cash_position", message="Cash position cannot be negative",
            ))
        if company.financials.burn_rate < 0:
            errors.append(ValidationIssue(
                field="financials.burn_rate", message="Burn rate cannot be negative",
            ))
        if not company.basic_info.therapeutic_areas:
            warnings.append(ValidationIssue(
                field="basic_info.therapeutic_areas",
                message="No therapeutic areas specified",
                severity=ValidationSeverity.WARNING,
                suggestion="Add therapeutic areas for better scoring accuracy",
            ))

        completeness = []
        seen = {e.message for e in errors}
        for pillar in self.pillars:
            result = pillar.validate(company)
            completeness.append(result.completeness)
            for issue in result.errors:
                if issue.message not in seen:
                    seen.add(issue.message)
                    errors.append(issue)
            warnings.extend(result.warnings)

        return ValidationResult(
            is_valid=not errors,
            completeness=sum(completeness) / len(completeness) if completeness else 1.0,
            errors=tuple(errors),
            warnings=tuple(warnings),
        )

    def _ensure_valid(self, company: CompanyRecord) -> None:
        validation = self.validate(company)
        if not validation.is_valid:
            messages = [e.message for e in validation.errors]
            logger.warning(
                "company_validation_failed",
                extra={"company_id": company.id, "errors": messages},
            )
            raise InvalidData(
                f"Critical data validation errors: {', '.join(messages)}", messages
            )

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def evaluate(
        self,
        company: CompanyRecord,
        config: Optional[ScoringConfig] = None,
        market_context: Optional[MarketContext] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> ScoringResult:
        """
        Score one company.

        Raises:
            InvalidData: structural or pillar validation failed.
            ConfigurationError: weights are negative or do not sum to 1.0.
            CalculationError: a pillar produced an impossible value.
            Cancelled: ``cancel_event`` was set before pillars ran or before aggregation.
        """
        config = config or ScoringConfig()
        context = market_context or MarketContext.default()

        config.weights.ensure_valid()
        self._ensure_valid(company)

        fingerprint = config.fingerprint(context)

        def compute() -> ScoringResult:
            return self._compute(company, config, context, fingerprint, cancel_event)

        if self.cache is None:
            return compute()
        return self.cache.get_or_compute(company.id, fingerprint, compute)

    def _compute(
        self,
        company: CompanyRecord,
        config: ScoringConfig,
        context: MarketContext,
        fingerprint: str,
        cancel_event: Optional[threading.Event],
    ) -> ScoringResult:
        _check_cancelled(cancel_event, company)
        with self._lock:
            self._computations += 1

        futures = {
            pillar.pillar: self._executor.submit(pillar.score, company, context)
            for pillar in self.pillars
        }
        try:
            pillar_scores = {name: future.result() for name, future in futures.items()}
        except CalculationError as e:
            logger.error(
                "pillar_calculation_failed",
                extra={"company_id": company.id, "error": str(e)},
            )
            raise
        finally:
            for future in futures.values():
                future.cancel()

        _check_cancelled(cancel_event, company)

        weights = config.weights
        overall, weighted_scores = aggregate(
            {p: s.raw_score for p, s in pillar_scores.items()}, weights
        )
        confidence = calculate_confidence(pillar_scores, weights, context, self.config)
        risk_level = determine_risk_level(
            pillar_scores, confidence, config.parameters.risk_adjustment
        )
        investment = determine_investment_recommendation(overall, risk_level)
        recommendations = generate_recommendations(
            overall,
            pillar_scores,
            confidence,
            config.parameters.confidence_threshold,
            self.config.RECOMMENDATION_COMPLETENESS_THRESHOLD,
        )

        result = ScoringResult(
            company_id=company.id,
            company_name=company.name,
            config_fingerprint=fingerprint,
            overall_score=overall,
            pillar_scores=pillar_scores,
            weighted_scores=weighted_scores,
            confidence=confidence,
            recommendations=recommendations,
            investment_recommendation=investment,
            risk_level=risk_level,
        )

        logger.info(
            "company_scored",
            extra={
                "company_id": company.id,
                "config": config.name,
                "overall_score": overall,
                "confidence": confidence.overall,
                "risk_level": risk_level.value,
                "recommendation": investment.value,
            },
        )
        return result

    def evaluate_many(
        self,
        companies: Sequence[CompanyRecord],
        config: Optional[ScoringConfig] = None,
        market_context: Optional[MarketContext] = None,
    ) -> List[ScoringResult]:
        """Score each company in order; invalid companies are logged and skipped."""
        config = config or ScoringConfig()
        config.weights.ensure_valid()

        results = []
        for company in companies:
            try:
                results.append(self.evaluate(company, config, market_context))
            except InvalidData as e:
                logger.warning(
                    "company_skipped",
                    extra={"company_id": company.id, "name": company.name, "errors": e.errors},
                )
        return results

    def explain(
        self,
        company: CompanyRecord,
        market_context: Optional[MarketContext] = None,
    ) -> Dict[PillarName, Explanation]:
        """Per-pillar explanation summaries without aggregation."""
        context = market_context or MarketContext.default()
        self._ensure_valid(company)
        futures = {
            pillar.pillar: (pillar, self._executor.submit(pillar.score, company, context))
            for pillar in self.pillars
        }
        return {name: pillar.explain(future.result()) for name, (pillar, future) in futures.items()}

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def shutdown(self) -> None:
        self._executor.shutdown(wait=True)

    def __enter__(self) -> "ScoringEngine":
        return self

    def __exit__(self, *exc) -> None:
        self.shutdown()


def _check_cancelled(cancel_event: Optional[threading.Event], company: CompanyRecord) -> None:
    if cancel_event is not None and cancel_event.is_set():
        logger.info("evaluation_cancelled", extra={"company_id": company.id})
        raise Cancelled(f"Evaluation of {company.id} cancelled")
