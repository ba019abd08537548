"""
Market Outlook Pillar
bd_scoring/scoring/pillars/market_outlook.py

Commercial attractiveness of the company's target markets.

Factors (weight):
    Market Size              0.30
    Growth Potential         0.25
    Competitive Landscape    0.20
    Regulatory Pathway       0.15
    Reimbursement            0.05
    Market Dynamics          0.05
"""

from typing import Dict, List

from bd_scoring.models.company import CompanyRecord
from bd_scoring.models.enumerations import (
    PillarName,
    RegulatoryPathway,
    ReimbursementEnvironment,
)
from bd_scoring.models.market_context import MarketContext
from bd_scoring.models.scoring import ScoringFactor
from bd_scoring.scoring.pillars import keywords as kw
from bd_scoring.scoring.pillars.base import ScoringPillar
from bd_scoring.scoring.utils import count_matching, score_at_least, score_at_most

MARKET_SIZE_TABLE = [(10, 5.0), (5, 4.0), (1, 3.0), (0.1, 2.0)]
GROWTH_TABLE = [(0.15, 5.0), (0.08, 4.0), (0.03, 3.0), (0.0, 2.0)]

PATHWAY_SCORE: Dict[RegulatoryPathway, float] = {
    RegulatoryPathway.BREAKTHROUGH: 5.0,
    RegulatoryPathway.FAST_TRACK: 4.5,
    RegulatoryPathway.ACCELERATED: 4.0,
    RegulatoryPathway.ORPHAN: 4.0,
    RegulatoryPathway.STANDARD: 3.0,
}

REIMBURSEMENT_SCORE: Dict[ReimbursementEnvironment, float] = {
    ReimbursementEnvironment.FAVORABLE: 5.0,
    ReimbursementEnvironment.MODERATE: 3.0,
    ReimbursementEnvironment.CHALLENGING: 2.0,
    ReimbursementEnvironment.UNKNOWN: 2.5,
}


class MarketOutlookPillar(ScoringPillar):
    pillar = PillarName.MARKET_OUTLOOK
    default_weight = 0.20
    methodology_reliability = 0.80
    methodology = (
        "Market outlook evaluation based on addressable market size, growth, competitive "
        "landscape, regulatory pathway, reimbursement environment, and market dynamics"
    )
    required_fields = ("addressable_market", "therapeutic_areas")
    optional_fields = ("competitors", "market_dynamics")
    factor_weights = {
        "Market Size": 0.30,
        "Growth Potential": 0.25,
        "Competitive Landscape": 0.20,
        "Regulatory Pathway": 0.15,
        "Reimbursement": 0.05,
        "Market Dynamics": 0.05,
    }
    limitations = (
        "Market size and growth are company-reported estimates",
        "Competitor list may be incomplete",
    )

    def _specific_validation(self, company: CompanyRecord):
        warnings = []
        market = company.market
        dynamics = market.market_dynamics
        if dynamics is not None and dynamics.growth_rate < 0:
            warnings.append(self._warning(
                "market.market_dynamics.growth_rate", "Negative market growth rate reported",
            ))
        if not market.competitors:
            warnings.append(self._warning(
                "market.competitors",
                "No competitors listed",
                "Add known competitors for a more accurate competitive assessment",
            ))
        if dynamics is None or dynamics.reimbursement == ReimbursementEnvironment.UNKNOWN:
            warnings.append(self._warning(
                "market.market_dynamics.reimbursement", "Reimbursement environment unknown",
            ))
        if 0 < market.addressable_market < 0.1:
            warnings.append(self._warning(
                "market.addressable_market", "Addressable market below $100M",
            ))
        return [], warnings

    def _calculate_factors(self, company: CompanyRecord, context: MarketContext) -> List[ScoringFactor]:
        size = company.market.addressable_market
        return [
            self._factor(
                "Market Size",
                score_at_least(size, MARKET_SIZE_TABLE, 1.0),
                f"${size:.1f}B addressable market",
            ),
            self._growth(company),
            self._competition(company),
            self._regulatory_pathway(company),
            self._reimbursement(company),
            self._dynamics(company),
        ]

    def _growth(self, company: CompanyRecord) -> ScoringFactor:
        dynamics = company.market.market_dynamics
        if dynamics is None:
            return self._factor("Growth Potential", 2.5, "No market dynamics reported")
        score = score_at_least(dynamics.growth_rate, GROWTH_TABLE, 1.0)
        if len(dynamics.drivers) > len(dynamics.barriers):
            score += 0.5
        elif len(dynamics.barriers) > len(dynamics.drivers):
            score -= 0.5
        return self._factor(
            "Growth Potential", score, f"{dynamics.growth_rate:.1%} annual market growth"
        )

    def _competition(self, company: CompanyRecord) -> ScoringFactor:
        competitors = company.market.competitors
        count = len(competitors)
        score = score_at_most(count, [(0, 5.0), (2, 4.0), (5, 3.0), (10, 2.0)], 1.0)
        if count:
            advanced = sum(1 for c in competitors if c.stage.is_late_stage)
            if advanced > count / 2:
                score -= 1.0
            with_weaknesses = sum(1 for c in competitors if c.weaknesses)
            if with_weaknesses > count / 2:
                score += 0.5
        return self._factor("Competitive Landscape", score, f"{count} competitors identified")

    def _regulatory_pathway(self, company: CompanyRecord) -> ScoringFactor:
        strategy = company.regulatory.regulatory_strategy
        if strategy is None:
            return self._factor("Regulatory Pathway", 3.0, "No regulatory strategy reported")
        score = PATHWAY_SCORE[strategy.pathway]
        if strategy.timeline <= 24:
            score += 0.5
        elif strategy.timeline >= 60:
            score -= 0.5
        if len(strategy.risks) > 3:
            score -= 0.5
        return self._factor(
            "Regulatory Pathway",
            score,
            f"{strategy.pathway.value} pathway, {strategy.timeline} months to approval",
        )

    def _reimbursement(self, company: CompanyRecord) -> ScoringFactor:
        dynamics = company.market.market_dynamics
        env = dynamics.reimbursement if dynamics else ReimbursementEnvironment.UNKNOWN
        return self._factor("Reimbursement", REIMBURSEMENT_SCORE[env], f"{env.value} reimbursement")

    def _dynamics(self, company: CompanyRecord) -> ScoringFactor:
        dynamics = company.market.market_dynamics
        if dynamics is None:
            return self._factor("Market Dynamics", 3.0, "No market dynamics reported")
        net = len(dynamics.drivers) - len(dynamics.barriers)
        if net >= 3:
            score = 5.0
        elif net >= 1:
            score = 4.0
        elif net == 0:
            score = 3.0
        elif net >= -2:
            score = 2.0
        else:
            score = 1.0
        if count_matching(dynamics.drivers, kw.HIGH_IMPACT_DRIVERS):
            score += 0.5
        return self._factor("Market Dynamics", score, f"Net {net:+d} drivers over barriers")

    def _assess_data_quality(self, company: CompanyRecord, context: MarketContext) -> float:
        market = company.market
        dynamics = market.market_dynamics
        checks = [
            market.addressable_market > 0,
            dynamics is not None,
            bool(market.competitors),
            company.regulatory.regulatory_strategy is not None,
            dynamics is not None and dynamics.reimbursement != ReimbursementEnvironment.UNKNOWN,
        ]
        return sum(checks) / len(checks)

    def _specific_warnings(self, company: CompanyRecord, context: MarketContext) -> List[str]:
        market = company.market
        warnings = []
        if market.addressable_market < 1:
            warnings.append("Small addressable market may limit commercial potential")
        dynamics = market.market_dynamics
        if dynamics is not None:
            if dynamics.growth_rate < 0:
                warnings.append("Declining market conditions")
            if dynamics.reimbursement == ReimbursementEnvironment.CHALLENGING:
                warnings.append("Challenging reimbursement environment")
        commercial = sum(1 for c in market.competitors if c.stage.is_commercial)
        if commercial > 2:
            warnings.append("Multiple approved competitors in market")
        strategy = company.regulatory.regulatory_strategy
        if strategy is not None and strategy.timeline > 60:
            warnings.append("Extended regulatory timeline delays market entry")
        return warnings
