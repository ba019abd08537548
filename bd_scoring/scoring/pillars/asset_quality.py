"""
Asset Quality Pillar
bd_scoring/scoring/pillars/asset_quality.py

Strength of the pipeline itself.

Factors (weight):
    Pipeline Strength          0.25   program count 0→1, 1→2.5, 2-3→3.5, 4-6→4, 7+→4.5, ± diversity
    Development Stage          0.20   lead-program stage
    Competitive Positioning    0.20   lead differentiators vs more advanced competitors
    IP Strength                0.10   IP signals in differentiators, platform, orphan exclusivity
    Indication Size            0.15   addressable market
    Unmet Medical Need         0.10   rare/severe areas, expedited designations, crowding
"""

from typing import Dict, List

from bd_scoring.models.company import CompanyRecord
from bd_scoring.models.enumerations import (
    ApprovalType,
    DevelopmentStage as S,
    PillarName,
    RegulatoryPathway,
    RiskImpact,
    RiskProbability,
)
from bd_scoring.models.market_context import MarketContext
from bd_scoring.models.scoring import ScoringFactor
from bd_scoring.scoring.pillars import keywords as kw
from bd_scoring.scoring.pillars.base import ScoringPillar
from bd_scoring.scoring.utils import clamp, contains_any, count_matching, score_at_least

LEAD_STAGE_SCORE: Dict[S, float] = {
    S.PRECLINICAL: 1.5, S.PHASE_1: 2.5, S.PHASE_2: 3.5,
    S.PHASE_3: 4.5, S.APPROVED: 5.0, S.MARKETED: 5.0,
}

INDICATION_SIZE_TABLE = [(10, 4.5), (5, 4.0), (1, 3.0), (0.1, 2.0)]


def _pipeline_base(count: int) -> float:
    if count == 0:
        return 1.0
    if count == 1:
        return 2.5
    if count <= 3:
        return 3.5
    if count <= 6:
        return 4.0
    return 4.5


class AssetQualityPillar(ScoringPillar):
    pillar = PillarName.ASSET_QUALITY
    default_weight = 0.25
    methodology_reliability = 0.85
    methodology = (
        "Asset quality evaluation based on pipeline strength, development stage, competitive "
        "positioning, IP strength, indication size, and unmet medical need"
    )
    required_fields = ("programs", "therapeutic_areas", "stage")
    optional_fields = ("lead_differentiators", "program_risks", "competitors")
    factor_weights = {
        "Pipeline Strength": 0.25,
        "Development Stage": 0.20,
        "Competitive Positioning": 0.20,
        "IP Strength": 0.10,
        "Indication Size": 0.15,
        "Unmet Medical Need": 0.10,
    }
    limitations = (
        "IP strength is inferred from stated differentiators, not a patent search",
        "Program-level probability of success is not modelled explicitly",
    )

    def _specific_validation(self, company: CompanyRecord):
        warnings = []
        lead = company.pipeline.lead_program
        if lead is not None and not lead.differentiators:
            warnings.append(self._warning(
                "pipeline.lead_program.differentiators",
                "No differentiators specified for lead program",
                "Add key differentiators to improve competitive positioning assessment",
            ))
        for program in company.pipeline.programs:
            if program.stage == S.PRECLINICAL and not program.indication:
                warnings.append(self._warning(
                    "pipeline.programs.indication",
                    f"Indication not specified for preclinical program: {program.name}",
                    "Specify target indication for more accurate assessment",
                ))
        return [], warnings

    def _calculate_factors(self, company: CompanyRecord, context: MarketContext) -> List[ScoringFactor]:
        return [
            self._pipeline_strength(company),
            self._development_stage(company),
            self._competitive_positioning(company),
            self._ip_strength(company),
            self._indication_size(company),
            self._unmet_need(company),
        ]

    def _pipeline_strength(self, company: CompanyRecord) -> ScoringFactor:
        count = company.pipeline.total_programs
        score = _pipeline_base(count)
        indications = len(company.pipeline.indications)
        if indications >= 3:
            score += 0.3
        elif indications == 1 and count > 1:
            score -= 0.2
        return self._factor(
            "Pipeline Strength", score, f"{count} programs across {indications} indications"
        )

    def _development_stage(self, company: CompanyRecord) -> ScoringFactor:
        lead = company.pipeline.lead_program
        score = LEAD_STAGE_SCORE[lead.stage]
        clinical = sum(1 for p in company.pipeline.programs if p.stage.order >= S.PHASE_1.order)
        if clinical >= 2:
            score += 0.2
        return self._factor(
            "Development Stage", score, f"Lead program {lead.name} in {lead.stage.value}"
        )

    def _competitive_positioning(self, company: CompanyRecord) -> ScoringFactor:
        lead = company.pipeline.lead_program
        score = 3.0
        differentiators = len(lead.differentiators)
        if differentiators >= 3:
            score += 1.0
        elif differentiators >= 1:
            score += 0.5
        else:
            score -= 0.5
        competitors = company.market.competitors
        if not competitors:
            score += 0.5
        else:
            ahead = sum(1 for c in competitors if c.stage.order > lead.stage.order)
            score -= min(1.0, 0.3 * ahead)
        return self._factor(
            "Competitive Positioning",
            score,
            f"{differentiators} differentiators vs {len(competitors)} competitors",
        )

    def _ip_strength(self, company: CompanyRecord) -> ScoringFactor:
        score = 3.0
        differentiators = [d for p in company.pipeline.programs for d in p.differentiators]
        signals = count_matching(differentiators, kw.IP_SIGNALS)
        score += min(1.5, 0.4 * signals)
        mechanisms = [m.lower() for m in company.pipeline.mechanisms]
        if contains_any(mechanisms, kw.PLATFORM):
            score += 0.3
        strategy = company.regulatory.regulatory_strategy
        orphan = (strategy is not None and strategy.pathway == RegulatoryPathway.ORPHAN) or any(
            a.type == ApprovalType.ORPHAN for a in company.regulatory.approvals
        )
        if orphan:
            score += 0.3
        return self._factor("IP Strength", score, f"{signals} IP-related differentiators")

    def _indication_size(self, company: CompanyRecord) -> ScoringFactor:
        market = company.market.addressable_market
        score = score_at_least(market, INDICATION_SIZE_TABLE, 1.5)
        if len(company.pipeline.indications) > 2:
            score += 0.3
        return self._factor("Indication Size", score, f"${market:.1f}B addressable market")

    def _unmet_need(self, company: CompanyRecord) -> ScoringFactor:
        score = 3.0
        areas = company.areas_lower
        if contains_any(areas, kw.RARE):
            score += 0.8
        elif contains_any(areas, kw.ONCOLOGY | kw.NEUROLOGY):
            score += 0.5
        strategy = company.regulatory.regulatory_strategy
        expedited = strategy is not None and strategy.pathway in (
            RegulatoryPathway.BREAKTHROUGH, RegulatoryPathway.FAST_TRACK,
        )
        designated = any(
            a.type in (ApprovalType.BREAKTHROUGH, ApprovalType.FAST_TRACK)
            for a in company.regulatory.approvals
        )
        if expedited or designated:
            score += 0.5
        competitors = len(company.market.competitors)
        if competitors <= 2:
            score += 0.3
        elif competitors > 5:
            score -= 0.5
        dynamics = company.market.market_dynamics
        if dynamics is not None and contains_any(dynamics.drivers, ("unmet",)):
            score += 0.3
        return self._factor("Unmet Medical Need", score, "Severity, designations and crowding")

    def _assess_data_quality(self, company: CompanyRecord, context: MarketContext) -> float:
        programs = company.pipeline.programs
        quality = sum(1 for p in programs if p.indication and p.mechanism) / len(programs)
        lead = company.pipeline.lead_program
        if not lead.differentiators:
            quality -= 0.2
        if not company.market.competitors:
            quality -= 0.1
        return clamp(quality, 0.0, 1.0)

    def _specific_warnings(self, company: CompanyRecord, context: MarketContext) -> List[str]:
        warnings = []
        pipeline = company.pipeline
        if pipeline.total_programs == 1:
            warnings.append("Pipeline concentrated in a single program")
        if pipeline.lead_program.stage == S.PRECLINICAL:
            warnings.append("Lead asset is preclinical; development risk is high")
        for program in pipeline.programs:
            for risk in program.risks:
                if (
                    risk.probability == RiskProbability.HIGH
                    and risk.impact in (RiskImpact.HIGH, RiskImpact.CRITICAL)
                ):
                    warnings.append(
                        f"High-probability, high-impact risk in {program.name}: {risk.description}"
                    )
        return warnings
