"""
Pillar Weight Configuration
bd_scoring/scoring/weights.py

WeightConfig holds the six pillar weights. Invariant for a *valid* config:

    Σ w_i = 1.0 ± WEIGHT_TOLERANCE,   w_i ∈ [0, 1]

``validate()`` reports violations without raising; ``normalize()`` rescales
proportionally:

    w_i' = w_i / Σ w          (Σ w > 0)
    w_i' = 1/6                (Σ w == 0)

Also provides the named profile registry, weight-impact analysis and the
ScoringConfig whose fingerprint keys the result cache.
"""

import hashlib
import json
import logging
import threading
from typing import Dict, List, Mapping, Optional

from pydantic import ConfigDict, Field

from bd_scoring.config import settings
from bd_scoring.core.exceptions import ConfigurationError
from bd_scoring.models.company import FrozenModel
from bd_scoring.models.enumerations import PillarName, ValidationSeverity
from bd_scoring.models.market_context import MarketContext
from bd_scoring.models.scoring import ValidationIssue, ValidationResult

logger = logging.getLogger(__name__)

_FINGERPRINT_PLACES = 6


class WeightConfig(FrozenModel):
    """Relative importance of each pillar. Negative values are representable so they can be reported."""

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    asset_quality: float = 0.25
    market_outlook: float = 0.20
    capital_intensity: float = 0.15
    strategic_fit: float = 0.20
    financial_readiness: float = 0.10
    regulatory_risk: float = 0.10

    # ---- accessors ----

    def as_dict(self) -> Dict[PillarName, float]:
        return {pillar: getattr(self, pillar.value) for pillar in PillarName}

    def weight_for(self, pillar: PillarName) -> float:
        return getattr(self, pillar.value)

    @property
    def total(self) -> float:
        return sum(self.as_dict().values())

    @property
    def is_valid(self) -> bool:
        return self.validate().is_valid

    @classmethod
    def from_mapping(cls, weights: Mapping[str, float]) -> "WeightConfig":
        """Build from a pillar-name keyed mapping; every pillar must be present."""
        missing = [p.value for p in PillarName if p.value not in weights]
        if missing:
            raise ConfigurationError(f"Missing weights for: {', '.join(missing)}")
        return cls(**{p.value: float(weights[p.value]) for p in PillarName})

    @classmethod
    def equal(cls) -> "WeightConfig":
        share = 1.0 / len(PillarName)
        return cls(**{p.value: share for p in PillarName})

    # ---- validation ----

    def validate(self) -> ValidationResult:
        tolerance = settings.WEIGHT_TOLERANCE
        weights = self.as_dict()
        errors: List[ValidationIssue] = []
        warnings: List[ValidationIssue] = []

        for pillar, weight in weights.items():
            if weight < 0:
                errors.append(ValidationIssue(
                    field=pillar.value,
                    message=f"{pillar.display_name} weight cannot be negative ({weight:.3f})",
                ))
            elif weight > 1.0:
                errors.append(ValidationIssue(
                    field=pillar.value,
                    message=f"{pillar.display_name} weight cannot exceed 1.0 ({weight:.3f})",
                ))
            elif weight == 0:
                warnings.append(ValidationIssue(
                    field=pillar.value,
                    message=f"{pillar.display_name} has zero weight and will not affect the overall score",
                    severity=ValidationSeverity.WARNING,
                    suggestion="Assign a small weight if this pillar should be considered",
                ))

        total = self.total
        if total > 1.0 + tolerance:
            errors.append(ValidationIssue(
                field="totalWeight",
                message=f"Total weights sum to {total:.3f}, which exceeds 1.0",
            ))
        elif total < 1.0 - tolerance:
            errors.append(ValidationIssue(
                field="totalWeight",
                message=f"Total weights sum to {total:.3f}, which is less than 1.0",
            ))

        heaviest = max(weights, key=weights.get)
        max_w, min_w = weights[heaviest], min(weights.values())
        if max_w > 0.5:
            warnings.append(ValidationIssue(
                field="weightBalance",
                message=f"{heaviest.display_name} dominates with {max_w:.0%} of total weight",
                severity=ValidationSeverity.WARNING,
                suggestion="Consider a more balanced distribution",
            ))
        if max_w - min_w > 0.4 and min_w > 0:
            warnings.append(ValidationIssue(
                field="weightDisparity",
                message=f"Large disparity between highest ({max_w:.2f}) and lowest ({min_w:.2f}) weights",
                severity=ValidationSeverity.WARNING,
            ))

        nonzero = sum(1 for w in weights.values() if w > 0)
        return ValidationResult(
            is_valid=not errors,
            completeness=nonzero / len(weights),
            errors=tuple(errors),
            warnings=tuple(warnings),
        )

    def ensure_valid(self) -> None:
        """Raise ConfigurationError carrying every validation error."""
        result = self.validate()
        if not result.is_valid:
            messages = [f"{e.field}: {e.message}" for e in result.errors]
            raise ConfigurationError("Invalid weight configuration", messages)

    # ---- normalization ----

    def normalize(self) -> "WeightConfig":
        """Proportional rescale to sum 1.0; equal weights when every weight is zero."""
        weights = self.as_dict()
        negative = [p.value for p, w in weights.items() if w < 0]
        if negative:
            raise ConfigurationError(
                f"Cannot normalize negative weights: {', '.join(negative)}"
            )
        total = sum(weights.values())
        if total == 0:
            return WeightConfig.equal()
        return WeightConfig(**{p.value: w / total for p, w in weights.items()})

    # ---- application ----

    def apply(self, pillar_scores: Mapping[PillarName, float]) -> Dict[PillarName, float]:
        """Per-pillar weighted contribution (score × weight)."""
        return {p: pillar_scores[p] * w for p, w in self.as_dict().items()}

    def canonical(self) -> Dict[str, float]:
        """Normalized weights rounded for hashing, keyed by pillar value."""
        normalized = self.normalize()
        return {p.value: round(w, _FINGERPRINT_PLACES) for p, w in normalized.as_dict().items()}


class WeightImpactAnalysis(FrozenModel):
    total_score_difference: float
    percentage_change: float
    pillar_impacts: Dict[PillarName, float]
    significant_changes: Dict[PillarName, float]


def calculate_weight_impact(
    pillar_scores: Mapping[PillarName, float],
    original: WeightConfig,
    new: WeightConfig,
) -> WeightImpactAnalysis:
    """Compare weighted totals of the same pillar scores under two weightings."""
    before = original.apply(pillar_scores)
    after = new.apply(pillar_scores)
    before_total = sum(before.values())
    difference = sum(after.values()) - before_total
    impacts = {p: after[p] - before[p] for p in PillarName}
    return WeightImpactAnalysis(
        total_score_difference=difference,
        percentage_change=(difference / before_total * 100) if before_total > 0 else 0.0,
        pillar_impacts=impacts,
        significant_changes={p: d for p, d in impacts.items() if abs(d) > 0.1},
    )


# =============================================================================
# Scoring configuration
# =============================================================================

class ScoringParameters(FrozenModel):
    """Custom parameters that change results and therefore participate in the fingerprint."""

    risk_adjustment: float = Field(
        default=1.0, ge=0.0, le=2.0,
        description="Multiplier on the composite risk index (1.0 = neutral)",
    )
    confidence_threshold: float = Field(
        default=0.6, ge=0.0, le=1.0,
        description="Below this overall confidence a data-gathering recommendation is added",
    )


class ScoringConfig(FrozenModel):
    name: str = "Default"
    weights: WeightConfig = Field(default_factory=lambda: settings.default_weights)
    parameters: ScoringParameters = Field(default_factory=ScoringParameters)

    def fingerprint(self, market_context: Optional[MarketContext] = None) -> str:
        """
        Stable cache key component.

        sha256 over canonical JSON of normalized weights, parameters, methodology
        version and (when given) the market-context fingerprint. Field order and
        config name do not participate.
        """
        payload = {
            "weights": self.weights.canonical(),
            "parameters": self.parameters.model_dump(mode="json"),
            "methodology": settings.METHODOLOGY_VERSION,
            "market_context": market_context.fingerprint() if market_context else None,
        }
        encoded = json.dumps(payload, sort_keys=True, separators=(",", ":"))
        return hashlib.sha256(encoded.encode("utf-8")).hexdigest()


# =============================================================================
# Profile registry
# =============================================================================

BUILTIN_PROFILES: Dict[str, WeightConfig] = {
    "Default": WeightConfig(),
    "Conservative": WeightConfig(
        asset_quality=0.20, market_outlook=0.15, capital_intensity=0.15,
        strategic_fit=0.15, financial_readiness=0.20, regulatory_risk=0.15,
    ),
    "Aggressive": WeightConfig(
        asset_quality=0.35, market_outlook=0.30, capital_intensity=0.10,
        strategic_fit=0.15, financial_readiness=0.05, regulatory_risk=0.05,
    ),
    "Balanced": WeightConfig.equal(),
    "Strategic": WeightConfig(
        asset_quality=0.30, market_outlook=0.20, capital_intensity=0.10,
        strategic_fit=0.30, financial_readiness=0.05, regulatory_risk=0.05,
    ),
}


class WeightProfileRegistry:
    """Named weight profiles. Thread-safe; seeded with the built-in profiles."""

    def __init__(self):
        self._lock = threading.Lock()
        self._profiles: Dict[str, WeightConfig] = dict(BUILTIN_PROFILES)

    def save_profile(self, name: str, weights: WeightConfig) -> WeightConfig:
        """Store a normalized copy. Negative or out-of-range weights are rejected."""
        if not name:
            raise ConfigurationError("Profile name is required")
        blocking = [
            e for e in weights.validate().errors if e.field != "totalWeight"
        ]
        if blocking:
            raise ConfigurationError(
                f"Cannot save invalid weight profile: {blocking[0].message}",
                [e.message for e in blocking],
            )
        normalized = weights.normalize()
        with self._lock:
            self._profiles[name] = normalized
        logger.info("weight_profile_saved", extra={"profile": name})
        return normalized

    def load_profile(self, name: str) -> Optional[WeightConfig]:
        with self._lock:
            return self._profiles.get(name)

    def list_profiles(self) -> List[str]:
        with self._lock:
            return sorted(self._profiles)

    def delete_profile(self, name: str) -> bool:
        with self._lock:
            return self._profiles.pop(name, None) is not None
