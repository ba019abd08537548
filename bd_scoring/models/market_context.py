"""
Market Context Models - BD Scoring Engine
bd_scoring/models/market_context.py

Per-evaluation market backdrop supplied by the caller. ``as_of`` anchors every
date-relative rule (funding freshness, delayed trials, near-term milestones)
so pillar scoring never reads the wall clock.
"""

import hashlib
from datetime import date
from typing import Optional, Tuple

from pydantic import Field

from bd_scoring.models.company import FrozenModel
from bd_scoring.models.enumerations import (
    DevelopmentStage,
    FundingEnvironment,
    IPOActivity,
    RegulatoryClimate,
)


class BenchmarkData(FrozenModel):
    therapeutic_area: str
    stage: DevelopmentStage
    average_score: float = Field(..., ge=0.0, le=5.0)
    standard_deviation: float = Field(default=0.0, ge=0.0)
    sample_size: int = Field(default=0, ge=0)


class MarketConditions(FrozenModel):
    biotech_index: float = 1000.0
    ipo_activity: IPOActivity = IPOActivity.MODERATE
    funding_environment: FundingEnvironment = FundingEnvironment.MODERATE
    regulatory_climate: RegulatoryClimate = RegulatoryClimate.NEUTRAL


class ComparableCompany(FrozenModel):
    name: str
    therapeutic_area: str = ""
    stage: Optional[DevelopmentStage] = None
    valuation: Optional[float] = Field(default=None, ge=0, description="Valuation in $M")


class IndustryMetrics(FrozenModel):
    average_valuation: float = 500.0
    median_timeline: float = 36.0
    success_rate: float = Field(default=0.15, ge=0.0, le=1.0)
    average_runway: float = 18.0


class MarketContext(FrozenModel):
    benchmark_data: Tuple[BenchmarkData, ...] = ()
    market_conditions: MarketConditions = Field(default_factory=MarketConditions)
    comparable_companies: Tuple[ComparableCompany, ...] = ()
    industry_metrics: IndustryMetrics = Field(default_factory=IndustryMetrics)
    as_of: date = Field(default_factory=date.today)

    @classmethod
    def default(cls, as_of: Optional[date] = None) -> "MarketContext":
        """Neutral context with no benchmarks or comparables."""
        if as_of is None:
            return cls()
        return cls(as_of=as_of)

    @property
    def comparable_count(self) -> int:
        return len(self.comparable_companies)

    def fingerprint(self) -> str:
        """Stable sha256 over the canonical JSON form."""
        return hashlib.sha256(self.model_dump_json().encode("utf-8")).hexdigest()
