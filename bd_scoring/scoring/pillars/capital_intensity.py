"""
Capital Intensity Pillar
bd_scoring/scoring/pillars/capital_intensity.py

How much capital the path to market will consume. Higher score means a
lighter capital requirement.

Factors (weight):
    Development Cost            0.25
    Capital Efficiency          0.20
    Manufacturing Complexity    0.20
    Regulatory Cost             0.15
    Time to Market              0.10
    Scalability                 0.10
"""

from typing import Dict, List

from bd_scoring.models.company import CompanyRecord
from bd_scoring.models.enumerations import (
    DevelopmentStage as S,
    MilestoneStatus,
    PillarName,
    RegulatoryPathway as P,
)
from bd_scoring.models.market_context import MarketContext
from bd_scoring.models.scoring import ScoringFactor
from bd_scoring.scoring.pillars import keywords as kw
from bd_scoring.scoring.pillars.base import ScoringPillar
from bd_scoring.scoring.utils import clamp, contains_any, score_at_most

DEVELOPMENT_COST: Dict[S, float] = {
    S.PRECLINICAL: 4.5, S.PHASE_1: 4.0, S.PHASE_2: 3.0,
    S.PHASE_3: 2.0, S.APPROVED: 4.0, S.MARKETED: 4.0,
}

TIME_TO_MARKET: Dict[S, float] = {
    S.PRECLINICAL: 2.0, S.PHASE_1: 2.5, S.PHASE_2: 3.5,
    S.PHASE_3: 4.0, S.APPROVED: 5.0, S.MARKETED: 5.0,
}

REGULATORY_COST: Dict[P, float] = {
    P.ORPHAN: 4.5, P.BREAKTHROUGH: 4.0, P.FAST_TRACK: 4.0,
    P.ACCELERATED: 3.5, P.STANDARD: 3.0,
}

MANUFACTURING_SCORE = {1: 4.5, 2: 3.5, 3: 2.0}


def manufacturing_level(company: CompanyRecord) -> int:
    """1 = small molecule / simple, 2 = biologic, 3 = gene, cell or viral modality."""
    texts = list(company.areas_lower) + [m.lower() for m in company.pipeline.mechanisms]
    if contains_any(texts, kw.ADVANCED_MODALITY):
        return 3
    if contains_any(texts, kw.BIOLOGIC):
        return 2
    return 1


class CapitalIntensityPillar(ScoringPillar):
    pillar = PillarName.CAPITAL_INTENSITY
    default_weight = 0.15
    methodology_reliability = 0.80
    methodology = (
        "Capital intensity evaluation based on development cost, capital efficiency, "
        "manufacturing complexity, regulatory cost, time to market, and scalability"
    )
    required_fields = ("burn_rate", "stage")
    optional_fields = ("programs", "clinical_trials")
    factor_weights = {
        "Development Cost": 0.25,
        "Capital Efficiency": 0.20,
        "Manufacturing Complexity": 0.20,
        "Regulatory Cost": 0.15,
        "Time to Market": 0.10,
        "Scalability": 0.10,
    }
    limitations = (
        "Development cost benchmarks are stage averages, not program-specific budgets",
    )

    def _specific_validation(self, company: CompanyRecord):
        warnings = []
        if company.stage.is_commercial:
            warnings.append(self._warning(
                "basic_info.stage",
                "Commercial-stage company; development cost factors are less informative",
            ))
        if not company.pipeline.programs:
            warnings.append(self._warning("pipeline.programs", "No pipeline programs listed"))
        if company.stage != S.PRECLINICAL and not company.regulatory.clinical_trials:
            warnings.append(self._warning(
                "regulatory.clinical_trials",
                "No clinical trials listed for a clinical-stage company",
            ))
        return [], warnings

    def _calculate_factors(self, company: CompanyRecord, context: MarketContext) -> List[ScoringFactor]:
        return [
            self._development_cost(company),
            self._capital_efficiency(company),
            self._manufacturing(company),
            self._regulatory_cost(company),
            self._time_to_market(company, context),
            self._scalability(company),
        ]

    def _development_cost(self, company: CompanyRecord) -> ScoringFactor:
        score = DEVELOPMENT_COST[company.stage]
        if contains_any(company.areas_lower, kw.COMPLEX_AREAS):
            score -= 0.5
        programs = company.pipeline.total_programs
        if programs > 3:
            score -= 0.3
        elif programs == 1:
            score += 0.2
        return self._factor("Development Cost", score, f"{company.stage.value} stage cost profile")

    def _capital_efficiency(self, company: CompanyRecord) -> ScoringFactor:
        programs = max(1, company.pipeline.total_programs)
        burn_per_program = company.financials.burn_rate / programs
        cash_per_program = company.financials.cash_position / programs
        score = score_at_most(
            burn_per_program, [(2, 4.5), (5, 4.0), (10, 3.0), (20, 2.0)], 1.5
        )
        if cash_per_program > 50:
            score += 0.3
        elif cash_per_program < 10:
            score -= 0.3
        return self._factor(
            "Capital Efficiency", score, f"${burn_per_program:.1f}M monthly burn per program"
        )

    def _manufacturing(self, company: CompanyRecord) -> ScoringFactor:
        level = manufacturing_level(company)
        return self._factor(
            "Manufacturing Complexity",
            MANUFACTURING_SCORE[level],
            f"Manufacturing complexity level {level}",
        )

    def _regulatory_cost(self, company: CompanyRecord) -> ScoringFactor:
        strategy = company.regulatory.regulatory_strategy
        pathway = strategy.pathway if strategy else P.STANDARD
        score = REGULATORY_COST[pathway]
        trials = company.regulatory.clinical_trials
        if sum(1 for t in trials if t.phase == S.PHASE_3) > 1:
            score -= 0.5
        if sum(1 for t in trials if t.is_active) > 3:
            score -= 0.3
        patients = sum(t.patient_count or 0 for t in trials)
        if patients > 1000:
            score -= 0.4
        elif 0 < patients < 100:
            score += 0.2
        return self._factor(
            "Regulatory Cost", score, f"{pathway.value} pathway, {patients} enrolled patients"
        )

    def _time_to_market(self, company: CompanyRecord, context: MarketContext) -> ScoringFactor:
        score = TIME_TO_MARKET[company.stage]
        strategy = company.regulatory.regulatory_strategy
        if strategy is not None:
            if strategy.timeline <= 24:
                score += 0.5
            elif strategy.timeline > 60:
                score -= 0.5
        near_term = [
            m for p in company.pipeline.programs for m in p.timeline
            if m.status == MilestoneStatus.UPCOMING
            and m.expected_date >= context.as_of
            and m.expected_date.year == context.as_of.year
        ]
        if near_term:
            score += 0.3
        return self._factor(
            "Time to Market", score, f"{len(near_term)} milestones due this year"
        )

    def _scalability(self, company: CompanyRecord) -> ScoringFactor:
        market = company.market.addressable_market
        score = score_at_most(market, [(1, 2.0), (5, 3.0), (20, 4.0)], 4.5)
        mechanisms = [m.lower() for m in company.pipeline.mechanisms]
        if contains_any(list(company.areas_lower) + mechanisms, kw.PLATFORM):
            score += 0.5
        if len(company.pipeline.indications) > 2:
            score += 0.2
        if contains_any(mechanisms, kw.SMALL_MOLECULE):
            score += 0.3
        return self._factor("Scalability", score, f"${market:.1f}B market reach")

    def _assess_data_quality(self, company: CompanyRecord, context: MarketContext) -> float:
        fin = company.financials
        quality = 1.0
        if fin.last_funding is not None and (context.as_of - fin.last_funding.funding_date).days > 365:
            quality -= 0.2
        if fin.burn_rate > fin.cash_position:
            quality -= 0.1
        trials = company.regulatory.clinical_trials
        if trials:
            with_counts = sum(1 for t in trials if t.patient_count is not None)
            quality *= 0.5 + 0.5 * (with_counts / len(trials))
        return clamp(quality, 0.0, 1.0)

    def _specific_warnings(self, company: CompanyRecord, context: MarketContext) -> List[str]:
        warnings = []
        fin = company.financials
        if fin.burn_rate > 10:
            warnings.append("High monthly burn rate indicates capital-intensive operations")
        runway = fin.runway_months
        if runway is not None and runway < 12:
            warnings.append("Limited runway increases financing pressure")
        if contains_any(company.areas_lower, kw.GENE_THERAPY | kw.CELL_THERAPY):
            warnings.append("Gene and cell therapies require specialized, costly manufacturing")
        phase3 = sum(1 for t in company.regulatory.clinical_trials if t.phase == S.PHASE_3)
        if phase3 > 1:
            warnings.append("Multiple Phase III trials require substantial capital")
        return warnings
