# tests/test_pillars.py

"""
Pillar Tests - factor tables, validation, warnings and explanations for the six pillars
"""

import pytest

from bd_scoring.core.exceptions import CalculationError, InvalidData
from bd_scoring.models.company import Pipeline
from bd_scoring.models.enumerations import DevelopmentStage, PillarName
from bd_scoring.models.scoring import ScoringFactor
from bd_scoring.scoring.pillars import PILLARS, PILLARS_BY_NAME, describe_score, index_pillars
from bd_scoring.scoring.pillars.capital_intensity import manufacturing_level
from bd_scoring.scoring.pillars.financial_readiness import FinancialReadinessPillar


# =============================================================================
# REGISTRY
# =============================================================================

class TestPillarRegistry:
    """The closed set of six pillars."""

    def test_one_pillar_per_name_in_enum_order(self):
        assert [p.pillar for p in PILLARS] == list(PillarName)
        assert set(PILLARS_BY_NAME) == set(PillarName)

    def test_duplicate_pillar_rejected(self):
        with pytest.raises(ValueError):
            index_pillars(PILLARS[:-1] + (PILLARS[0],))

    def test_missing_pillar_rejected(self):
        with pytest.raises(ValueError):
            index_pillars(PILLARS[:-1])

    @pytest.mark.parametrize("pillar", PILLARS, ids=lambda p: p.pillar.value)
    def test_factor_weights_sum_to_one(self, pillar):
        assert sum(pillar.factor_weights.values()) == pytest.approx(1.0)

    def test_default_weights_sum_to_one(self):
        assert sum(p.default_weight for p in PILLARS) == pytest.approx(1.0)


# =============================================================================
# SCORING CONTRACT
# =============================================================================

class TestPillarScoring:
    """Every pillar honours the score contract for each archetype."""

    @pytest.mark.parametrize("pillar", PILLARS, ids=lambda p: p.pillar.value)
    @pytest.mark.parametrize(
        "archetype", ["high_quality_company", "medium_quality_company", "low_quality_company"]
    )
    def test_score_bounds_and_factors(self, pillar, archetype, market_context, request):
        company = request.getfixturevalue(archetype)
        score = pillar.score(company, market_context)

        assert score.pillar == pillar.pillar
        assert 1.0 <= score.raw_score <= 5.0
        assert 0.0 <= score.confidence <= 1.0
        assert [f.name for f in score.factors] == list(pillar.factor_weights)
        assert sum(f.weight for f in score.factors) == pytest.approx(1.0)
        assert all(1.0 <= f.score <= 5.0 for f in score.factors)

    @pytest.mark.parametrize("pillar", PILLARS, ids=lambda p: p.pillar.value)
    def test_score_is_pure(self, pillar, high_quality_company, market_context):
        first = pillar.score(high_quality_company, market_context)
        second = pillar.score(high_quality_company, market_context)
        assert first == second

    def test_high_quality_beats_low_quality_overall(
        self, high_quality_company, low_quality_company, market_context
    ):
        high = sum(p.score(high_quality_company, market_context).raw_score for p in PILLARS)
        low = sum(p.score(low_quality_company, market_context).raw_score for p in PILLARS)
        assert high > low

    def test_missing_required_field_raises_invalid_data(self, high_quality_company, market_context):
        company = high_quality_company.with_changes(pipeline=Pipeline())
        pillar = PILLARS_BY_NAME[PillarName.ASSET_QUALITY]

        with pytest.raises(InvalidData) as exc_info:
            pillar.score(company, market_context)
        assert any("programs" in e for e in exc_info.value.errors)

    def test_mismatched_factor_set_raises_calculation_error(
        self, high_quality_company, market_context
    ):
        class BrokenPillar(FinancialReadinessPillar):
            def _calculate_factors(self, company, context):
                return [ScoringFactor(name="Cash Position", weight=1.0, score=3.0)]

        with pytest.raises(CalculationError):
            BrokenPillar().score(high_quality_company, market_context)


# =============================================================================
# FINANCIAL READINESS
# =============================================================================

class TestFinancialReadiness:
    """Runway rules for Financial Readiness."""

    pillar = PILLARS_BY_NAME[PillarName.FINANCIAL_READINESS]

    def test_three_months_runway_is_critical(self, low_quality_company, market_context):
        company = low_quality_company.with_financials(cash_position=15.0, burn_rate=5.0)
        score = self.pillar.score(company, market_context)

        runway = next(f for f in score.factors if f.name == "Funding Runway")
        assert runway.score < 2.0
        assert any("Critical" in w and "runway" in w for w in score.warnings)

    def test_long_runway_scores_top(self, high_quality_company, market_context):
        score = self.pillar.score(high_quality_company, market_context)
        runway = next(f for f in score.factors if f.name == "Funding Runway")
        assert runway.score == 5.0
        assert not any("Critical" in w for w in score.warnings)

    def test_no_funding_event_gives_neutral_freshness(self, low_quality_company, market_context):
        score = self.pillar.score(low_quality_company, market_context)
        freshness = next(f for f in score.factors if f.name == "Data Freshness")
        assert freshness.score == 3.0

    def test_zero_burn_is_invalid(self, medium_quality_company, market_context):
        company = medium_quality_company.with_financials(burn_rate=0.0)
        with pytest.raises(InvalidData):
            self.pillar.score(company, market_context)

    def test_freshness_uses_context_date(self, high_quality_company, market_context):
        later = market_context.with_changes(as_of=market_context.as_of.replace(year=2027))
        recent = self.pillar.score(high_quality_company, market_context)
        stale = self.pillar.score(high_quality_company, later)

        def freshness(s):
            return next(f for f in s.factors if f.name == "Data Freshness").score

        assert freshness(recent) > freshness(stale)


# =============================================================================
# CAPITAL INTENSITY
# =============================================================================

class TestCapitalIntensity:

    def test_manufacturing_level_in_range(
        self, high_quality_company, medium_quality_company, low_quality_company
    ):
        for company in (high_quality_company, medium_quality_company, low_quality_company):
            assert manufacturing_level(company) in (1, 2, 3)


# =============================================================================
# VALIDATION & EXPLANATION
# =============================================================================

class TestValidationAndExplanation:

    @pytest.mark.parametrize("pillar", PILLARS, ids=lambda p: p.pillar.value)
    def test_valid_archetype_passes_validation(self, pillar, high_quality_company):
        result = pillar.validate(high_quality_company)
        assert result.is_valid
        assert 0.0 <= result.completeness <= 1.0

    def test_sparse_company_gets_completeness_warning(self, low_quality_company):
        pillar = PILLARS_BY_NAME[PillarName.REGULATORY_RISK]
        result = pillar.validate(low_quality_company)
        assert result.is_valid
        assert any(w.field == "completeness" for w in result.warnings)

    def test_explain_summarizes_score(self, high_quality_company, market_context):
        pillar = PILLARS_BY_NAME[PillarName.MARKET_OUTLOOK]
        score = pillar.score(high_quality_company, market_context)
        explanation = pillar.explain(score)

        assert explanation.summary.startswith("Market Outlook scored")
        assert set(explanation.factor_contributions) == set(pillar.factor_weights)
        assert explanation.methodology == pillar.methodology

    @pytest.mark.parametrize(
        "score, label",
        [(4.8, "Excellent"), (3.9, "Good"), (2.5, "Average"), (1.6, "Below Average"), (1.0, "Poor")],
    )
    def test_describe_score(self, score, label):
        assert describe_score(score) == label

    def test_stage_order(self):
        assert DevelopmentStage.PRECLINICAL.order < DevelopmentStage.PHASE_3.order
        assert DevelopmentStage.PHASE_3.is_late_stage
        assert not DevelopmentStage.PHASE_2.is_late_stage
