"""
Company Record Models - BD Scoring Engine
bd_scoring/models/company.py

Immutable snapshot of a biotech company as submitted by the caller.
Collections are tuples and every model is frozen; use ``with_changes`` to
derive a modified copy.

Structural problems (empty name, negative cash) are accepted here on
purpose: rejecting them is the scoring engine's pre-flight job, and the
batch scheduler needs to record such companies as per-unit errors.
"""

from datetime import date
from typing import Any, Optional, Tuple
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

from bd_scoring.models.enumerations import (
    ApprovalType,
    DevelopmentStage,
    FundingType,
    MilestoneStatus,
    RegulatoryPathway,
    ReimbursementEnvironment,
    RiskImpact,
    RiskProbability,
    TrialStatus,
)


class FrozenModel(BaseModel):
    """Base for immutable value objects."""

    model_config = ConfigDict(frozen=True)

    def with_changes(self, **updates: Any):
        """Return a validated copy with the given top-level fields replaced."""
        data = self.model_dump()
        data.update(updates)
        return type(self).model_validate(data)


# ---------------------------------------------------------------------------
# Basic info
# ---------------------------------------------------------------------------

class BasicInfo(FrozenModel):
    name: str = Field(..., description="Company name (may be empty; engine rejects it)")
    ticker: Optional[str] = Field(default=None, max_length=10)
    sector: str = Field(default="Biotechnology")
    therapeutic_areas: Tuple[str, ...] = Field(default=())
    stage: DevelopmentStage = Field(..., description="Most advanced company-level stage")
    description: Optional[str] = None

    @field_validator("ticker")
    @classmethod
    def uppercase_ticker(cls, value: Optional[str]) -> Optional[str]:
        return value.upper() if value else None


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------

class Risk(FrozenModel):
    description: str
    probability: RiskProbability = RiskProbability.MEDIUM
    impact: RiskImpact = RiskImpact.MEDIUM
    mitigation: Optional[str] = None


class Milestone(FrozenModel):
    name: str
    expected_date: date
    status: MilestoneStatus = MilestoneStatus.UPCOMING


class Program(FrozenModel):
    name: str
    indication: str = ""
    stage: DevelopmentStage
    mechanism: str = ""
    differentiators: Tuple[str, ...] = ()
    risks: Tuple[Risk, ...] = ()
    timeline: Tuple[Milestone, ...] = ()


class Pipeline(FrozenModel):
    programs: Tuple[Program, ...] = ()

    @property
    def total_programs(self) -> int:
        return len(self.programs)

    @property
    def lead_program(self) -> Optional[Program]:
        """Most advanced program; earliest in input order on ties."""
        if not self.programs:
            return None
        best = self.programs[0]
        for program in self.programs[1:]:
            if program.stage.order > best.stage.order:
                best = program
        return best

    @property
    def indications(self) -> Tuple[str, ...]:
        """Unique, non-empty indications in first-seen order."""
        seen = []
        for p in self.programs:
            if p.indication and p.indication not in seen:
                seen.append(p.indication)
        return tuple(seen)

    @property
    def mechanisms(self) -> Tuple[str, ...]:
        seen = []
        for p in self.programs:
            if p.mechanism and p.mechanism not in seen:
                seen.append(p.mechanism)
        return tuple(seen)


# ---------------------------------------------------------------------------
# Financials
# ---------------------------------------------------------------------------

class FundingRound(FrozenModel):
    type: FundingType
    amount: float = Field(..., ge=0, description="Round size in $M")
    funding_date: date
    investors: Tuple[str, ...] = ()


class Financials(FrozenModel):
    cash_position: float = Field(..., description="Cash on hand in $M")
    burn_rate: float = Field(..., description="Net monthly burn in $M")
    last_funding: Optional[FundingRound] = None

    @property
    def runway_months(self) -> Optional[float]:
        """Months of cash at current burn; None when burn is not positive (unbounded)."""
        if self.burn_rate <= 0:
            return None
        return self.cash_position / self.burn_rate


# ---------------------------------------------------------------------------
# Market
# ---------------------------------------------------------------------------

class Competitor(FrozenModel):
    name: str
    stage: DevelopmentStage
    market_share: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    strengths: Tuple[str, ...] = ()
    weaknesses: Tuple[str, ...] = ()


class MarketDynamics(FrozenModel):
    growth_rate: float = Field(default=0.0, description="Annual growth rate, 0.08 = 8%")
    barriers: Tuple[str, ...] = ()
    drivers: Tuple[str, ...] = ()
    reimbursement: ReimbursementEnvironment = ReimbursementEnvironment.UNKNOWN


class MarketInfo(FrozenModel):
    addressable_market: float = Field(default=0.0, description="Addressable market in $B")
    competitors: Tuple[Competitor, ...] = ()
    market_dynamics: Optional[MarketDynamics] = None


# ---------------------------------------------------------------------------
# Regulatory
# ---------------------------------------------------------------------------

class Approval(FrozenModel):
    indication: str
    region: str
    approval_date: date
    type: ApprovalType = ApprovalType.FULL


class ClinicalTrial(FrozenModel):
    name: str
    phase: DevelopmentStage
    indication: str = ""
    status: TrialStatus = TrialStatus.ACTIVE
    start_date: Optional[date] = None
    expected_completion: Optional[date] = None
    patient_count: Optional[int] = Field(default=None, ge=0)

    @property
    def is_active(self) -> bool:
        return self.status in (TrialStatus.ACTIVE, TrialStatus.RECRUITING)


class RegulatoryStrategy(FrozenModel):
    pathway: RegulatoryPathway = RegulatoryPathway.STANDARD
    timeline: int = Field(default=60, ge=0, description="Months to expected approval")
    risks: Tuple[str, ...] = ()
    mitigations: Tuple[str, ...] = ()


class RegulatoryInfo(FrozenModel):
    approvals: Tuple[Approval, ...] = ()
    clinical_trials: Tuple[ClinicalTrial, ...] = ()
    regulatory_strategy: Optional[RegulatoryStrategy] = None


# ---------------------------------------------------------------------------
# Root record
# ---------------------------------------------------------------------------

class CompanyRecord(FrozenModel):
    """
    One company as evaluated by the engine.

    ``id`` is a stable opaque identity used for cache keys; two records with
    the same id are assumed to describe the same company version unless the
    caller invalidates the cache.
    """

    id: str = Field(default_factory=lambda: str(uuid4()))
    basic_info: BasicInfo
    pipeline: Pipeline = Field(default_factory=Pipeline)
    financials: Financials
    market: MarketInfo = Field(default_factory=MarketInfo)
    regulatory: RegulatoryInfo = Field(default_factory=RegulatoryInfo)

    @property
    def name(self) -> str:
        return self.basic_info.name

    @property
    def stage(self) -> DevelopmentStage:
        return self.basic_info.stage

    @property
    def areas_lower(self) -> Tuple[str, ...]:
        """Therapeutic areas lower-cased for keyword matching."""
        return tuple(a.lower() for a in self.basic_info.therapeutic_areas)

    def with_basic_info(self, **updates: Any) -> "CompanyRecord":
        return self.with_changes(basic_info=self.basic_info.with_changes(**updates))

    def with_financials(self, **updates: Any) -> "CompanyRecord":
        return self.with_changes(financials=self.financials.with_changes(**updates))

    def with_market(self, **updates: Any) -> "CompanyRecord":
        return self.with_changes(market=self.market.with_changes(**updates))

    def with_regulatory(self, **updates: Any) -> "CompanyRecord":
        return self.with_changes(regulatory=self.regulatory.with_changes(**updates))
