"""
Strategic Fit Pillar
bd_scoring/scoring/pillars/strategic_fit.py

Attractiveness to a strategic acquirer or partner.

Factors (weight):
    Therapeutic Alignment    0.25
    Capability Complement    0.20
    Synergy Potential        0.20   3 + rd·0.4 + commercial·0.3 + manufacturing·0.2 + regulatory·0.1
    Integration Complexity   0.15
    Geographic Fit           0.10
    Cultural Fit             0.10
"""

from typing import Dict, List, Set

from bd_scoring.models.company import CompanyRecord
from bd_scoring.models.enumerations import (
    DevelopmentStage as S,
    PillarName,
    RegulatoryPathway,
)
from bd_scoring.models.market_context import MarketContext
from bd_scoring.models.scoring import ScoringFactor
from bd_scoring.scoring.pillars import keywords as kw
from bd_scoring.scoring.pillars.base import ScoringPillar
from bd_scoring.scoring.pillars.capital_intensity import manufacturing_level
from bd_scoring.scoring.utils import clamp, contains_any, count_matching, score_at_least

CAPABILITY_BY_STAGE: Dict[S, float] = {
    S.PRECLINICAL: 3.5, S.PHASE_1: 4.0, S.PHASE_2: 4.5,
    S.PHASE_3: 4.0, S.APPROVED: 3.5, S.MARKETED: 3.0,
}

INTEGRATION_BY_STAGE: Dict[S, float] = {
    S.PRECLINICAL: 4.0, S.PHASE_1: 3.5, S.PHASE_2: 3.0,
    S.PHASE_3: 2.5, S.APPROVED: 2.0, S.MARKETED: 1.5,
}

CULTURE_STAGE_ADJ: Dict[S, float] = {
    S.PRECLINICAL: 0.2, S.PHASE_1: 0.2, S.PHASE_2: 0.1,
    S.PHASE_3: 0.1, S.APPROVED: -0.1, S.MARKETED: -0.1,
}

ALIGNMENT_TABLE = [(0.8, 4.5), (0.6, 4.0), (0.4, 3.5), (0.2, 2.5)]
GEOGRAPHY_SCORE = {0: 3.0, 1: 3.5, 2: 4.0}


def approval_regions(company: CompanyRecord) -> Set[str]:
    """Major regions (US, EU, Japan, China) with at least one approval."""
    regions = set()
    for approval in company.regulatory.approvals:
        region = kw.MAJOR_REGIONS.get(approval.region.strip().lower())
        if region:
            regions.add(region)
    return regions


class StrategicFitPillar(ScoringPillar):
    pillar = PillarName.STRATEGIC_FIT
    default_weight = 0.20
    methodology_reliability = 0.75
    methodology = (
        "Strategic fit evaluation based on therapeutic alignment, capability complement, "
        "synergy potential, integration complexity, geographic fit, and cultural fit"
    )
    required_fields = ("therapeutic_areas", "programs")
    optional_fields = ("competitors", "approvals")
    factor_weights = {
        "Therapeutic Alignment": 0.25,
        "Capability Complement": 0.20,
        "Synergy Potential": 0.20,
        "Integration Complexity": 0.15,
        "Geographic Fit": 0.10,
        "Cultural Fit": 0.10,
    }
    limitations = (
        "Assesses fit against a generic large-pharma acquirer profile",
        "Cultural fit is inferred from stage and modality only",
    )

    def _specific_validation(self, company: CompanyRecord):
        warnings = []
        if not company.market.competitors:
            warnings.append(self._warning(
                "market.competitors", "No competitor data for strategic positioning",
            ))
        if company.stage.is_late_stage and not company.regulatory.approvals:
            warnings.append(self._warning(
                "regulatory.approvals", "Late-stage company without recorded approvals or designations",
            ))
        return [], warnings

    def _calculate_factors(self, company: CompanyRecord, context: MarketContext) -> List[ScoringFactor]:
        return [
            self._alignment(company),
            self._capability(company),
            self._synergy(company),
            self._integration(company),
            self._geography(company),
            self._culture(company),
        ]

    def _alignment(self, company: CompanyRecord) -> ScoringFactor:
        areas = company.areas_lower
        ratio = count_matching(areas, kw.STRATEGIC_AREAS) / len(areas)
        score = score_at_least(ratio, ALIGNMENT_TABLE, 2.0)
        if contains_any(areas, kw.HIGH_VALUE_AREAS):
            score += 0.3
        indications = len(company.pipeline.indications)
        if indications == 1:
            score += 0.2
        elif indications > 5:
            score -= 0.2
        return self._factor(
            "Therapeutic Alignment", score, f"{ratio:.0%} of areas in strategic focus"
        )

    def _capability(self, company: CompanyRecord) -> ScoringFactor:
        score = CAPABILITY_BY_STAGE[company.stage]
        mechanisms = [m.lower() for m in company.pipeline.mechanisms]
        if contains_any(list(company.areas_lower) + mechanisms, kw.PLATFORM):
            score += 0.4
        if len(mechanisms) > 2:
            score += 0.2
        if contains_any(company.areas_lower, ("rare", "orphan", "gene", "cell")):
            score += 0.3
        return self._factor(
            "Capability Complement", score, f"{len(mechanisms)} distinct mechanisms"
        )

    def _synergy(self, company: CompanyRecord) -> ScoringFactor:
        rd = min(1.0, company.pipeline.total_programs / 5)
        commercial = min(1.0, company.market.addressable_market / 10)
        manufacturing = 1.0 if manufacturing_level(company) <= 2 else 0.5
        strategy = company.regulatory.regulatory_strategy
        expedited = strategy is not None and strategy.pathway != RegulatoryPathway.STANDARD
        regulatory = min(1.0, len(company.regulatory.approvals) * 0.5 + (0.5 if expedited else 0.0))
        score = 3.0 + rd * 0.4 + commercial * 0.3 + manufacturing * 0.2 + regulatory * 0.1
        return self._factor(
            "Synergy Potential",
            score,
            f"R&D {rd:.2f}, commercial {commercial:.2f}, manufacturing {manufacturing:.2f}, "
            f"regulatory {regulatory:.2f}",
        )

    def _integration(self, company: CompanyRecord) -> ScoringFactor:
        score = INTEGRATION_BY_STAGE[company.stage]
        trials = company.regulatory.clinical_trials
        active = sum(1 for t in trials if t.is_active)
        if active > 3:
            score -= 0.5
        elif active == 0:
            score += 0.3
        programs = company.pipeline.total_programs
        if programs > 5:
            score -= 0.3
        elif programs == 1:
            score += 0.2
        if any((t.patient_count or 0) > 500 for t in trials):
            score -= 0.2
        return self._factor(
            "Integration Complexity", score, f"{active} active trials, {programs} programs"
        )

    def _geography(self, company: CompanyRecord) -> ScoringFactor:
        regions = approval_regions(company)
        score = GEOGRAPHY_SCORE.get(len(regions), 4.5)
        if any((t.patient_count or 0) > 300 for t in company.regulatory.clinical_trials):
            score += 0.2
        if "US" in regions:
            score += 0.2
        return self._factor(
            "Geographic Fit",
            score,
            f"Approvals in {', '.join(sorted(regions)) if regions else 'no major regions'}",
        )

    def _culture(self, company: CompanyRecord) -> ScoringFactor:
        innovation = min(4.5, 3.0 + 0.2 * len(company.pipeline.mechanisms))
        score = (3.5 + innovation) / 2 + CULTURE_STAGE_ADJ[company.stage]
        if any(p.differentiators for p in company.pipeline.programs):
            score += 0.2
        if contains_any(company.areas_lower, kw.CUTTING_EDGE):
            score += 0.3
        return self._factor("Cultural Fit", score, "Innovation profile and operating stage")

    def _assess_data_quality(self, company: CompanyRecord, context: MarketContext) -> float:
        quality = 1.0
        areas = company.areas_lower
        if any(len(a) < 4 or a in kw.VAGUE_AREAS for a in areas):
            quality -= 0.2
        programs = company.pipeline.programs
        if programs:
            detailed = sum(1 for p in programs if p.indication and p.mechanism)
            quality *= detailed / len(programs)
        competitors = company.market.competitors
        if competitors:
            described = sum(1 for c in competitors if c.strengths or c.weaknesses)
            quality *= 0.8 + 0.2 * (described / len(competitors))
        else:
            quality *= 0.8
        return clamp(quality, 0.0, 1.0)

    def _specific_warnings(self, company: CompanyRecord, context: MarketContext) -> List[str]:
        warnings = []
        areas = company.areas_lower
        if areas and count_matching(areas, kw.RARE) == len(areas):
            warnings.append("Niche therapeutic focus may limit the strategic buyer pool")
        programs = company.pipeline.total_programs
        if programs == 1:
            warnings.append("Single-asset company concentrates strategic risk")
            if company.stage in (S.PRECLINICAL, S.PHASE_1):
                warnings.append("Early-stage single asset limits near-term strategic value")
        active = sum(1 for t in company.regulatory.clinical_trials if t.is_active)
        if active > 5:
            warnings.append("Large active trial portfolio complicates integration")
        if not company.regulatory.approvals:
            warnings.append("No regulatory approvals or designations to date")
        return warnings
