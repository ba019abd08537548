# tests/test_models.py

"""
Model Validation Tests - Tests for Pydantic models, enumerations and settings
"""

from datetime import date

import pytest
from pydantic import ValidationError

from conftest import build_high_quality_company, build_medium_quality_company

from bd_scoring.config import Settings
from bd_scoring.models.batch import BatchOptions, BatchRequest
from bd_scoring.models.company import BasicInfo, Financials, Pipeline, Program
from bd_scoring.models.enumerations import (
    BatchStatus,
    DevelopmentStage,
    InvestmentRecommendation,
    PillarName,
    RiskLevel,
)
from bd_scoring.models.market_context import MarketContext



# ENUMERATION TESTS


class TestEnumerations:
    """Ordinal helpers on the enumerations."""

    def test_pillar_order(self):
        expected = [
            "asset_quality", "market_outlook", "capital_intensity",
            "strategic_fit", "financial_readiness", "regulatory_risk",
        ]
        assert [p.value for p in PillarName] == expected

    def test_recommendation_downgrade_floors(self):
        assert InvestmentRecommendation.STRONG_BUY.downgrade() == InvestmentRecommendation.BUY
        assert InvestmentRecommendation.STRONG_SELL.downgrade() == InvestmentRecommendation.STRONG_SELL

    def test_risk_rank(self):
        assert RiskLevel.LOW.rank < RiskLevel.VERY_HIGH.rank

    @pytest.mark.parametrize("status_, terminal", [
        (BatchStatus.PENDING, False),
        (BatchStatus.RUNNING, False),
        (BatchStatus.COMPLETED, True),
        (BatchStatus.PARTIALLY_COMPLETED, True),
        (BatchStatus.FAILED, True),
        (BatchStatus.CANCELLED, True),
    ])
    def test_terminal_states(self, status_, terminal):
        assert status_.is_terminal is terminal



# COMPANY MODEL TESTS


class TestCompanyRecord:
    """Tests for the immutable company snapshot."""

    def test_frozen(self):
        company = build_high_quality_company()
        with pytest.raises(ValidationError):
            company.basic_info.name = "Other"

    def test_with_changes_returns_copy(self):
        company = build_high_quality_company()
        renamed = company.with_basic_info(name="Renamed")
        assert renamed.name == "Renamed"
        assert company.name == "Helix Oncology"

    def test_ticker_uppercased(self):
        info = BasicInfo(name="X", ticker="abc", stage=DevelopmentStage.PHASE_1)
        assert info.ticker == "ABC"

    def test_structural_problems_accepted_at_construction(self):
        company = build_medium_quality_company().with_financials(cash_position=-10.0)
        assert company.financials.cash_position == -10.0

    def test_runway(self):
        assert Financials(cash_position=120, burn_rate=8).runway_months == pytest.approx(15.0)
        assert Financials(cash_position=120, burn_rate=0).runway_months is None

    def test_lead_program_prefers_most_advanced_then_first(self):
        pipeline = Pipeline(programs=(
            Program(name="A", stage=DevelopmentStage.PHASE_2),
            Program(name="B", stage=DevelopmentStage.PHASE_3),
            Program(name="C", stage=DevelopmentStage.PHASE_3),
        ))
        assert pipeline.lead_program.name == "B"
        assert Pipeline().lead_program is None

    def test_json_round_trip(self):
        company = build_high_quality_company()
        restored = type(company).model_validate_json(company.model_dump_json())
        assert restored == company



# MARKET CONTEXT TESTS


class TestMarketContext:

    def test_fingerprint_stable_and_sensitive(self):
        a = MarketContext(as_of=date(2025, 1, 1))
        b = MarketContext(as_of=date(2025, 1, 1))
        c = MarketContext(as_of=date(2025, 1, 2))
        assert a.fingerprint() == b.fingerprint()
        assert a.fingerprint() != c.fingerprint()

    def test_default_has_no_comparables(self):
        assert MarketContext.default(date(2025, 1, 1)).comparable_count == 0



# BATCH MODEL TESTS


class TestBatchModels:

    def test_option_presets(self):
        assert BatchOptions.reliable().continue_on_error is False
        assert BatchOptions.high_throughput().max_concurrency == 10
        background = BatchOptions.background("http://hooks.local")
        assert background.notify_on_completion is True

    @pytest.mark.parametrize("concurrency", [0, 65])
    def test_concurrency_bounds(self, concurrency):
        with pytest.raises(ValidationError):
            BatchOptions(max_concurrency=concurrency)

    def test_request_requires_companies(self):
        with pytest.raises(ValidationError):
            BatchRequest(companies=[])



# SETTINGS TESTS


class TestSettings:

    def test_defaults(self):
        config = Settings()
        assert sum(config.pillar_weights) == pytest.approx(1.0)
        assert config.default_weights.is_valid

    def test_bad_default_weights_rejected(self):
        with pytest.raises(ValidationError):
            Settings(W_ASSET_QUALITY=0.9)

    def test_page_size_consistency(self):
        with pytest.raises(ValidationError):
            Settings(PAGE_SIZE_DEFAULT=50, PAGE_SIZE_MAX=10)
