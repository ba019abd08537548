"""
Regulatory Risk Pillar
bd_scoring/scoring/pillars/regulatory_risk.py

Likelihood and cost of regulatory setbacks. Higher score means LOWER risk.

Factors (weight):
    Pathway Complexity      0.25
    Clinical Risk           0.20
    Regulatory Precedent    0.20
    Safety Profile          0.15
    Manufacturing Risk      0.10
    Timeline Risk           0.10
"""

from typing import Dict, List, Tuple

from bd_scoring.models.company import CompanyRecord
from bd_scoring.models.enumerations import (
    ApprovalType,
    DevelopmentStage as S,
    PillarName,
    RegulatoryPathway as P,
    TrialStatus,
)
from bd_scoring.models.market_context import MarketContext
from bd_scoring.models.scoring import ScoringFactor
from bd_scoring.scoring.pillars import keywords as kw
from bd_scoring.scoring.pillars.base import ScoringPillar
from bd_scoring.scoring.utils import clamp, contains_any, score_at_most

PATHWAY_BASE: Dict[P, float] = {
    P.ORPHAN: 4.5, P.BREAKTHROUGH: 4.2, P.FAST_TRACK: 4.0,
    P.ACCELERATED: 3.8, P.STANDARD: 3.0,
}

# Applied once per matching group
AREA_ADJUSTMENTS: Tuple[Tuple[frozenset, float], ...] = (
    (kw.GENE_THERAPY, -0.8),
    (kw.CELL_THERAPY, -0.7),
    (kw.NEUROLOGY, -0.5),
    (kw.PSYCHIATRY, -0.5),
    (kw.CARDIOVASCULAR, -0.3),
    (kw.ONCOLOGY, -0.2),
    (kw.RARE, 0.3),
    (kw.INFECTIOUS, 0.2),
    (kw.DERMATOLOGY, 0.3),
)

PATHWAY_STAGE_ADJ: Dict[S, float] = {
    S.PRECLINICAL: -0.2, S.PHASE_1: 0.1, S.PHASE_2: 0.2, S.PHASE_3: 0.3,
}

CLINICAL_BY_STAGE: Dict[S, float] = {
    S.PRECLINICAL: 3.5, S.PHASE_1: 3.0, S.PHASE_2: 2.5,
    S.PHASE_3: 2.0, S.APPROVED: 4.5, S.MARKETED: 4.5,
}

# Expected months to approval (low, high) by stage
EXPECTED_TIMELINE: Dict[S, Tuple[int, int]] = {
    S.PRECLINICAL: (72, 120), S.PHASE_1: (60, 96), S.PHASE_2: (36, 72),
    S.PHASE_3: (12, 36), S.APPROVED: (0, 12), S.MARKETED: (0, 12),
}

TIMELINE_PATHWAY_BONUS: Dict[P, float] = {
    P.BREAKTHROUGH: 0.3, P.FAST_TRACK: 0.3, P.ACCELERATED: 0.2, P.ORPHAN: 0.1, P.STANDARD: 0.0,
}

SPECIAL_APPROVALS = (ApprovalType.BREAKTHROUGH, ApprovalType.FAST_TRACK, ApprovalType.ORPHAN)
HIGH_RISK_AREAS = kw.GENE_THERAPY | kw.CELL_THERAPY | kw.NEUROLOGY | kw.PSYCHIATRY


class RegulatoryRiskPillar(ScoringPillar):
    pillar = PillarName.REGULATORY_RISK
    default_weight = 0.10
    methodology_reliability = 0.85
    methodology = (
        "Regulatory risk evaluation based on pathway complexity, clinical risk, regulatory "
        "precedent, safety profile, manufacturing risk, and timeline risk (higher is lower risk)"
    )
    required_fields = ("stage", "therapeutic_areas")
    optional_fields = ("approvals", "clinical_trials", "regulatory_strategy")
    factor_weights = {
        "Pathway Complexity": 0.25,
        "Clinical Risk": 0.20,
        "Regulatory Precedent": 0.20,
        "Safety Profile": 0.15,
        "Manufacturing Risk": 0.10,
        "Timeline Risk": 0.10,
    }
    limitations = (
        "Regulator behaviour is modelled from historical precedent by area and modality",
        "Safety signals are inferred from trial status, not adverse-event data",
    )

    def _specific_validation(self, company: CompanyRecord):
        warnings = []
        if company.regulatory.regulatory_strategy is None:
            warnings.append(self._warning(
                "regulatory.regulatory_strategy",
                "No regulatory strategy provided",
                "Add pathway and timeline to refine regulatory risk",
            ))
        if company.stage != S.PRECLINICAL and not company.regulatory.clinical_trials:
            warnings.append(self._warning(
                "regulatory.clinical_trials", "No clinical trials listed for a clinical-stage company",
            ))
        return [], warnings

    def _calculate_factors(self, company: CompanyRecord, context: MarketContext) -> List[ScoringFactor]:
        return [
            self._pathway(company),
            self._clinical(company),
            self._precedent(company),
            self._safety(company),
            self._manufacturing(company),
            self._timeline(company, context),
        ]

    @staticmethod
    def _pathway_of(company: CompanyRecord) -> P:
        strategy = company.regulatory.regulatory_strategy
        return strategy.pathway if strategy else P.STANDARD

    @staticmethod
    def _mechanisms(company: CompanyRecord) -> List[str]:
        return [m.lower() for m in company.pipeline.mechanisms]

    def _pathway(self, company: CompanyRecord) -> ScoringFactor:
        pathway = self._pathway_of(company)
        if company.stage.is_commercial:
            return self._factor("Pathway Complexity", 4.5, "Product already approved")
        score = PATHWAY_BASE[pathway]
        for group, adjustment in AREA_ADJUSTMENTS:
            if contains_any(company.areas_lower, group):
                score += adjustment
        score += PATHWAY_STAGE_ADJ.get(company.stage, 0.0)
        return self._factor("Pathway Complexity", score, f"{pathway.value} pathway")

    def _clinical(self, company: CompanyRecord) -> ScoringFactor:
        score = CLINICAL_BY_STAGE[company.stage]
        trials = company.regulatory.clinical_trials
        if sum(1 for t in trials if t.phase == S.PHASE_3) > 1:
            score -= 0.5
        if sum(1 for t in trials if t.phase == S.PHASE_2) > 2:
            score -= 0.3
        counts = [t.patient_count for t in trials if t.patient_count is not None]
        if counts:
            score += score_at_most(sum(counts), [(100, 0.2), (500, 0.1), (1500, -0.1)], -0.3)
        if any(t.status in (TrialStatus.SUSPENDED, TrialStatus.TERMINATED) for t in trials):
            score -= 0.4
        indications = [i.lower() for i in company.pipeline.indications]
        if contains_any(list(company.areas_lower) + indications, kw.HARD_ENDPOINTS):
            score -= 0.3
        return self._factor("Clinical Risk", score, f"{len(trials)} trials on record")

    def _precedent(self, company: CompanyRecord) -> ScoringFactor:
        score = 3.0
        areas = company.areas_lower
        mechanisms = self._mechanisms(company)
        if contains_any(areas, kw.ESTABLISHED_AREAS):
            score += 0.3
        if contains_any(areas, kw.ADVANCED_MODALITY | frozenset(["digital"])):
            score -= 0.4
        if contains_any(areas, kw.NEUROLOGY | kw.PSYCHIATRY):
            score -= 0.2
        if contains_any(mechanisms, kw.ESTABLISHED_MECHANISM):
            score += 0.2
        elif contains_any(mechanisms, kw.NOVEL_MECHANISM):
            score -= 0.3
        approvals = company.regulatory.approvals
        if approvals:
            score += 0.4
            if any(a.type in SPECIAL_APPROVALS for a in approvals):
                score += 0.2
        if contains_any(areas, kw.ONCOLOGY | kw.INFECTIOUS):
            score += 0.2
        return self._factor("Regulatory Precedent", score, f"{len(approvals)} prior approvals")

    def _safety(self, company: CompanyRecord) -> ScoringFactor:
        score = 3.5
        areas = company.areas_lower
        mechanisms = self._mechanisms(company)
        if contains_any(areas, kw.ONCOLOGY):
            score += 0.2
        if contains_any(areas, kw.GENE_THERAPY | kw.CELL_THERAPY):
            score -= 0.5
        if contains_any(areas, kw.NEUROLOGY | kw.PSYCHIATRY):
            score -= 0.2
        if contains_any(mechanisms, kw.SMALL_MOLECULE | frozenset(["antibody"])):
            score += 0.2
        if contains_any(mechanisms, kw.ADVANCED_MODALITY):
            score -= 0.3
        trials = company.regulatory.clinical_trials
        if any(t.status == TrialStatus.COMPLETED for t in trials):
            score += 0.3
        if any(t.status == TrialStatus.SUSPENDED for t in trials):
            score -= 0.5
        indications = [i.lower() for i in company.pipeline.indications]
        if contains_any(indications, kw.VULNERABLE_POPULATIONS):
            score -= 0.2
        if contains_any(mechanisms + indications, ("combination",)):
            score -= 0.2
        return self._factor("Safety Profile", score, "Modality and trial-status safety signals")

    def _manufacturing(self, company: CompanyRecord) -> ScoringFactor:
        score = 3.5
        mechanisms = self._mechanisms(company)
        advanced = contains_any(mechanisms + list(company.areas_lower), kw.ADVANCED_MODALITY)
        if contains_any(mechanisms, kw.SMALL_MOLECULE):
            score += 0.5
        if advanced:
            score -= 0.8
        if contains_any(company.areas_lower, kw.COMPLEX_AREAS):
            score -= 0.3
        if advanced and company.stage.order >= S.PHASE_3.order:
            score -= 0.3
        if contains_any(mechanisms, ("vaccine", "viral")):
            score -= 0.2
        return self._factor("Manufacturing Risk", score, "CMC risk from modality and scale")

    def _timeline(self, company: CompanyRecord, context: MarketContext) -> ScoringFactor:
        strategy = company.regulatory.regulatory_strategy
        low, high = EXPECTED_TIMELINE[company.stage]
        months = strategy.timeline if strategy else high
        score = score_at_most(months, [(24, 4.5), (48, 4.0), (72, 3.0), (96, 2.5)], 2.0)
        if low <= months <= high:
            score += 0.2
        elif months < low:
            score -= 0.3
        else:
            score -= 0.1
        trials = company.regulatory.clinical_trials
        delayed = [
            t for t in trials
            if t.is_active and t.expected_completion is not None
            and t.expected_completion < context.as_of
        ]
        if delayed:
            score -= 0.4
        if any((t.patient_count or 0) > 500 for t in trials):
            score -= 0.2
        if contains_any(company.areas_lower, kw.RARE):
            score -= 0.1
        score += TIMELINE_PATHWAY_BONUS[self._pathway_of(company)]
        return self._factor(
            "Timeline Risk", score, f"{months} months to approval, {len(delayed)} delayed trials"
        )

    def _timeline_unrealistic(self, company: CompanyRecord) -> bool:
        strategy = company.regulatory.regulatory_strategy
        if strategy is None:
            return False
        low, _ = EXPECTED_TIMELINE[company.stage]
        return strategy.timeline < low

    def _assess_data_quality(self, company: CompanyRecord, context: MarketContext) -> float:
        quality = 1.0
        strategy = company.regulatory.regulatory_strategy
        if strategy is not None:
            if not strategy.risks:
                quality -= 0.2
            if not strategy.mitigations:
                quality -= 0.1
        trials = company.regulatory.clinical_trials
        if trials:
            dated = sum(1 for t in trials if t.start_date and t.expected_completion)
            quality *= 0.7 + 0.3 * (dated / len(trials))
        if self._timeline_unrealistic(company):
            quality -= 0.3
        return clamp(quality, 0.0, 1.0)

    def _specific_warnings(self, company: CompanyRecord, context: MarketContext) -> List[str]:
        warnings = []
        if contains_any(company.areas_lower, HIGH_RISK_AREAS):
            warnings.append("High regulatory complexity in therapeutic area")
        if contains_any(self._mechanisms(company), kw.NOVEL_MECHANISM):
            warnings.append("Novel mechanism may face additional regulatory scrutiny")
        trials = company.regulatory.clinical_trials
        if any(t.status in (TrialStatus.SUSPENDED, TrialStatus.TERMINATED) for t in trials):
            warnings.append("Suspended or terminated trials indicate regulatory or safety issues")
        if self._timeline_unrealistic(company):
            warnings.append("Regulatory timeline appears optimistic for current stage")
        if contains_any(self._mechanisms(company), kw.ADVANCED_MODALITY):
            warnings.append("Complex manufacturing may delay regulatory approval")
        if len(company.pipeline.indications) > 3:
            warnings.append("Multiple indications increase regulatory workload")
        return warnings
