"""
Financial Readiness Pillar
bd_scoring/scoring/pillars/financial_readiness.py

Cash adequacy, burn discipline and runway relative to development stage.

Factors (weight):
    Cash Position           0.25   thresholds 500/200/100/50 $M × stage multiplier
    Burn Rate Efficiency    0.20   burn vs expected (low, high) band for stage
    Funding Runway          0.30   ≥24mo→5, ≥18→4, ≥12→3, ≥6→2, else 1
    Capital Intensity       0.15   (stage intensity + pipeline complexity) / 2
    Financing Need Timing   0.08   months until raise needed (runway − 9) × stage advantage
    Data Freshness          0.02   days since last funding event
"""

from typing import Dict, List, Tuple

from bd_scoring.models.company import CompanyRecord
from bd_scoring.models.enumerations import DevelopmentStage as S, PillarName
from bd_scoring.models.market_context import MarketContext
from bd_scoring.models.scoring import ScoringFactor, ValidationIssue
from bd_scoring.scoring.pillars.base import ScoringPillar
from bd_scoring.scoring.utils import clamp, score_at_least, score_at_most, score_below

CASH_STAGE_MULTIPLIER: Dict[S, float] = {
    S.PRECLINICAL: 0.5, S.PHASE_1: 0.7, S.PHASE_2: 1.0,
    S.PHASE_3: 1.5, S.APPROVED: 1.2, S.MARKETED: 2.0,
}

# Expected monthly burn band ($M) per stage
EXPECTED_BURN: Dict[S, Tuple[float, float]] = {
    S.PRECLINICAL: (1, 5), S.PHASE_1: (3, 10), S.PHASE_2: (5, 20),
    S.PHASE_3: (10, 50), S.APPROVED: (5, 30), S.MARKETED: (10, 100),
}

STAGE_INTENSITY: Dict[S, float] = {
    S.PRECLINICAL: 0.2, S.PHASE_1: 0.4, S.PHASE_2: 0.6,
    S.PHASE_3: 0.9, S.APPROVED: 0.5, S.MARKETED: 0.3,
}

FINANCING_STAGE_ADVANTAGE: Dict[S, float] = {
    S.PRECLINICAL: 0.8, S.PHASE_1: 0.9, S.PHASE_2: 1.0,
    S.PHASE_3: 1.2, S.APPROVED: 1.3, S.MARKETED: 1.1,
}

RUNWAY_TABLE = [(24, 5.0), (18, 4.0), (12, 3.0), (6, 2.0)]
FINANCING_LEAD_MONTHS = 9
STALE_FUNDING_DAYS = 548  # ~18 months


class FinancialReadinessPillar(ScoringPillar):
    pillar = PillarName.FINANCIAL_READINESS
    default_weight = 0.10
    methodology_reliability = 0.90
    methodology = (
        "Financial readiness evaluation based on cash position, burn rate efficiency, "
        "funding runway, capital intensity, financing timing, and data freshness"
    )
    required_fields = ("cash_position", "burn_rate", "runway")
    optional_fields = ("last_funding",)
    factor_weights = {
        "Cash Position": 0.25,
        "Burn Rate Efficiency": 0.20,
        "Funding Runway": 0.30,
        "Capital Intensity": 0.15,
        "Financing Need Timing": 0.08,
        "Data Freshness": 0.02,
    }
    limitations = (
        "Point-in-time financials; off-balance-sheet commitments are not considered",
        "Burn rate assumed constant over the runway horizon",
    )

    def _specific_validation(self, company: CompanyRecord):
        errors: List[ValidationIssue] = []
        warnings: List[ValidationIssue] = []
        fin = company.financials
        if fin.cash_position > 10000:
            warnings.append(self._warning(
                "financials.cash_position",
                "Cash position seems unusually high (>$10B)",
                "Verify cash position is reported in millions",
            ))
        if fin.burn_rate > 100:
            warnings.append(self._warning(
                "financials.burn_rate",
                "Burn rate seems unusually high (>$100M/month)",
                "Verify burn rate is monthly and in millions",
            ))
        return errors, warnings

    def _calculate_factors(self, company: CompanyRecord, context: MarketContext) -> List[ScoringFactor]:
        fin = company.financials
        stage = company.stage
        runway = fin.runway_months

        return [
            self._cash_position(fin.cash_position, stage),
            self._burn_efficiency(fin.burn_rate, stage),
            self._factor(
                "Funding Runway",
                score_at_least(runway, RUNWAY_TABLE, 1.0),
                f"{runway:.1f} months of runway at current burn",
            ),
            self._capital_intensity(company),
            self._financing_timing(runway, stage),
            self._data_freshness(company, context),
        ]

    def _cash_position(self, cash: float, stage: S) -> ScoringFactor:
        m = CASH_STAGE_MULTIPLIER[stage]
        table = [(500 * m, 5.0), (200 * m, 4.0), (100 * m, 3.0), (50 * m, 2.0)]
        return self._factor(
            "Cash Position",
            score_at_least(cash, table, 1.0),
            f"${cash:.0f}M cash against {stage.value} stage requirements",
        )

    def _burn_efficiency(self, burn: float, stage: S) -> ScoringFactor:
        low, high = EXPECTED_BURN[stage]
        score = score_at_most(
            burn, [(low, 5.0), (low * 1.5, 4.0), (high, 3.0), (high * 1.5, 2.0)], 1.0
        )
        return self._factor(
            "Burn Rate Efficiency",
            score,
            f"${burn:.1f}M/month vs expected ${low:.0f}-{high:.0f}M for {stage.value}",
        )

    def _capital_intensity(self, company: CompanyRecord) -> ScoringFactor:
        programs = company.pipeline.total_programs
        indications = len(company.pipeline.indications)
        complexity = (min(1.0, programs / 10) + min(1.0, indications / 5)) / 2
        intensity = (STAGE_INTENSITY[company.stage] + complexity) / 2
        score = score_below(intensity, [(0.3, 5.0), (0.5, 4.0), (0.7, 3.0), (0.9, 2.0)], 1.0)
        return self._factor(
            "Capital Intensity",
            score,
            f"Capital intensity index {intensity:.2f} ({programs} programs, {indications} indications)",
        )

    def _financing_timing(self, runway: float, stage: S) -> ScoringFactor:
        months_until_raise = max(0.0, runway - FINANCING_LEAD_MONTHS)
        base = score_at_least(months_until_raise, [(18, 5.0), (12, 4.0), (6, 3.0), (3, 2.0)], 1.0)
        score = min(5.0, base * FINANCING_STAGE_ADVANTAGE[stage])
        return self._factor(
            "Financing Need Timing",
            score,
            f"{months_until_raise:.1f} months before a raise is needed",
        )

    def _data_freshness(self, company: CompanyRecord, context: MarketContext) -> ScoringFactor:
        funding = company.financials.last_funding
        if funding is None:
            return self._factor("Data Freshness", 3.0, "No funding event reported")
        days = max(0, (context.as_of - funding.funding_date).days)
        score = score_below(days, [(30, 5.0), (60, 4.0), (90, 3.0), (180, 2.0)], 1.0)
        return self._factor("Data Freshness", score, f"Last funding {days} days before assessment")

    def _assess_data_quality(self, company: CompanyRecord, context: MarketContext) -> float:
        fin = company.financials
        quality = 1.0
        if fin.cash_position <= 0 or fin.burn_rate <= 0:
            quality *= 0.5
        if fin.last_funding is None:
            quality *= 0.8
        runway = fin.runway_months
        if runway is None or not 0 < runway < 120:
            quality *= 0.7
        return clamp(quality, 0.0, 1.0)

    def _specific_warnings(self, company: CompanyRecord, context: MarketContext) -> List[str]:
        fin = company.financials
        warnings = []
        runway = fin.runway_months
        if runway is not None:
            if runway < 6:
                warnings.append("Critical: Less than 6 months runway remaining")
            elif runway < 12:
                warnings.append("Warning: Less than 12 months runway remaining")
        if fin.burn_rate > fin.cash_position * 0.1:
            warnings.append("High burn rate relative to cash position")
        if fin.last_funding is not None:
            if (context.as_of - fin.last_funding.funding_date).days > STALE_FUNDING_DAYS:
                warnings.append("No recent funding activity (>18 months)")
        return warnings
