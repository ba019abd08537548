from enum import Enum


class DevelopmentStage(str, Enum):
    PRECLINICAL = "preclinical"
    PHASE_1 = "phase_1"
    PHASE_2 = "phase_2"
    PHASE_3 = "phase_3"
    APPROVED = "approved"
    MARKETED = "marketed"

    @property
    def order(self) -> int:
        """Position in the development lifecycle (preclinical = 0)."""
        return _STAGE_ORDER.index(self)

    @property
    def is_late_stage(self) -> bool:
        return self in (DevelopmentStage.PHASE_3, DevelopmentStage.APPROVED, DevelopmentStage.MARKETED)

    @property
    def is_commercial(self) -> bool:
        return self in (DevelopmentStage.APPROVED, DevelopmentStage.MARKETED)


_STAGE_ORDER = list(DevelopmentStage)


class FundingType(str, Enum):
    SEED = "seed"
    SERIES_A = "series_a"
    SERIES_B = "series_b"
    SERIES_C = "series_c"
    IPO = "ipo"
    DEBT = "debt"


class RiskProbability(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class RiskImpact(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class MilestoneStatus(str, Enum):
    UPCOMING = "upcoming"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    DELAYED = "delayed"
    CANCELLED = "cancelled"


class ReimbursementEnvironment(str, Enum):
    FAVORABLE = "favorable"
    MODERATE = "moderate"
    CHALLENGING = "challenging"
    UNKNOWN = "unknown"


class ApprovalType(str, Enum):
    FULL = "full"
    CONDITIONAL = "conditional"
    BREAKTHROUGH = "breakthrough"
    FAST_TRACK = "fast_track"
    ORPHAN = "orphan"


class TrialStatus(str, Enum):
    PLANNED = "planned"
    RECRUITING = "recruiting"
    ACTIVE = "active"
    COMPLETED = "completed"
    SUSPENDED = "suspended"
    TERMINATED = "terminated"


class RegulatoryPathway(str, Enum):
    STANDARD = "standard"
    ACCELERATED = "accelerated"
    BREAKTHROUGH = "breakthrough"
    FAST_TRACK = "fast_track"
    ORPHAN = "orphan"


class IPOActivity(str, Enum):
    HOT = "hot"
    MODERATE = "moderate"
    COLD = "cold"


class FundingEnvironment(str, Enum):
    ABUNDANT = "abundant"
    MODERATE = "moderate"
    CONSTRAINED = "constrained"


class RegulatoryClimate(str, Enum):
    SUPPORTIVE = "supportive"
    NEUTRAL = "neutral"
    RESTRICTIVE = "restrictive"


class PillarName(str, Enum):
    ASSET_QUALITY = "asset_quality"
    MARKET_OUTLOOK = "market_outlook"
    CAPITAL_INTENSITY = "capital_intensity"
    STRATEGIC_FIT = "strategic_fit"
    FINANCIAL_READINESS = "financial_readiness"
    REGULATORY_RISK = "regulatory_risk"

    @property
    def display_name(self) -> str:
        return self.value.replace("_", " ").title()


class InvestmentRecommendation(str, Enum):
    """Ordinal: STRONG_SELL < SELL < HOLD < BUY < STRONG_BUY."""
    STRONG_SELL = "strong_sell"
    SELL = "sell"
    HOLD = "hold"
    BUY = "buy"
    STRONG_BUY = "strong_buy"

    @property
    def rank(self) -> int:
        return list(InvestmentRecommendation).index(self)

    def downgrade(self) -> "InvestmentRecommendation":
        """One bucket lower, floored at STRONG_SELL."""
        members = list(InvestmentRecommendation)
        return members[max(0, self.rank - 1)]


class RiskLevel(str, Enum):
    """Ordinal: LOW < MEDIUM < HIGH < VERY_HIGH."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    VERY_HIGH = "very_high"

    @property
    def rank(self) -> int:
        return list(RiskLevel).index(self)


class ValidationSeverity(str, Enum):
    CRITICAL = "critical"
    WARNING = "warning"


class BatchStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    PARTIALLY_COMPLETED = "partially_completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self not in (BatchStatus.PENDING, BatchStatus.RUNNING)
