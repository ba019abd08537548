# tests/conftest.py

"""
Pytest Fixtures - Shared company archetypes, market context and services

ARCHETYPES:
- high_quality_company:   late-stage oncology, well funded, approvals on file
- medium_quality_company: phase 2 neurology, moderate runway
- low_quality_company:    preclinical, 3 months of runway, sparse data
"""

from datetime import date

import pytest
from fastapi.testclient import TestClient

from bd_scoring.core.dependencies import get_scoring_service
from bd_scoring.main import app
from bd_scoring.models.company import (
    Approval,
    BasicInfo,
    ClinicalTrial,
    CompanyRecord,
    Competitor,
    Financials,
    FundingRound,
    MarketDynamics,
    MarketInfo,
    Milestone,
    Pipeline,
    Program,
    RegulatoryInfo,
    RegulatoryStrategy,
    Risk,
)
from bd_scoring.models.enumerations import (
    ApprovalType,
    DevelopmentStage,
    FundingType,
    RegulatoryPathway,
    ReimbursementEnvironment,
    RiskImpact,
    RiskProbability,
    TrialStatus,
)
from bd_scoring.models.market_context import ComparableCompany, MarketContext
from bd_scoring.scoring.engine import ScoringEngine
from bd_scoring.services.batch_scheduler import BatchScheduler
from bd_scoring.services.result_cache import ResultCache
from bd_scoring.services.scoring_service import ScoringService

AS_OF = date(2025, 6, 30)


# =============================================================================
# MARKET CONTEXT FIXTURES
# =============================================================================

@pytest.fixture
def as_of():
    return AS_OF


@pytest.fixture
def market_context():
    """Fixed-date context with five oncology/neurology comparables."""
    return MarketContext(
        as_of=AS_OF,
        comparable_companies=tuple(
            ComparableCompany(
                name=f"Comparable {i}",
                therapeutic_area="Oncology" if i % 2 else "Neurology",
                stage=DevelopmentStage.PHASE_2,
                valuation=400.0 + 50 * i,
            )
            for i in range(5)
        ),
    )


# =============================================================================
# COMPANY ARCHETYPES
# =============================================================================

def build_high_quality_company(company_id: str = "high-quality") -> CompanyRecord:
    return CompanyRecord(
        id=company_id,
        basic_info=BasicInfo(
            name="Helix Oncology",
            ticker="hlx",
            therapeutic_areas=("Oncology", "Immunology"),
            stage=DevelopmentStage.PHASE_3,
            description="Late-stage antibody platform company",
        ),
        pipeline=Pipeline(programs=(
            Program(
                name="HLX-101",
                indication="Non-small cell lung cancer",
                stage=DevelopmentStage.PHASE_3,
                mechanism="PD-1 bispecific antibody",
                differentiators=("First-in-class bispecific", "Patent protected to 2040"),
                risks=(Risk(
                    description="Enrollment pace",
                    probability=RiskProbability.LOW,
                    impact=RiskImpact.MEDIUM,
                    mitigation="Added 40 sites",
                ),),
                timeline=(Milestone(name="Topline data", expected_date=date(2025, 12, 1)),),
            ),
            Program(
                name="HLX-202",
                indication="Melanoma",
                stage=DevelopmentStage.PHASE_2,
                mechanism="Antibody-drug conjugate",
                differentiators=("Novel payload",),
            ),
            Program(
                name="HLX-303",
                indication="Rheumatoid arthritis",
                stage=DevelopmentStage.PHASE_1,
                mechanism="Monoclonal antibody",
            ),
        )),
        financials=Financials(
            cash_position=800.0,
            burn_rate=15.0,
            last_funding=FundingRound(
                type=FundingType.SERIES_C,
                amount=250.0,
                funding_date=date(2025, 6, 10),
                investors=("Atlas Ventures", "Orbit Capital"),
            ),
        ),
        market=MarketInfo(
            addressable_market=25.0,
            competitors=(
                Competitor(name="BigPharma A", stage=DevelopmentStage.MARKETED, market_share=0.3),
                Competitor(name="Biotech B", stage=DevelopmentStage.PHASE_2),
            ),
            market_dynamics=MarketDynamics(
                growth_rate=0.12,
                barriers=("Biologics manufacturing",),
                drivers=("Aging population", "Unmet medical need"),
                reimbursement=ReimbursementEnvironment.FAVORABLE,
            ),
        ),
        regulatory=RegulatoryInfo(
            approvals=(Approval(
                indication="Melanoma",
                region="US",
                approval_date=date(2023, 3, 1),
                type=ApprovalType.BREAKTHROUGH,
            ),),
            clinical_trials=(
                ClinicalTrial(
                    name="HELIX-3",
                    phase=DevelopmentStage.PHASE_3,
                    indication="Non-small cell lung cancer",
                    status=TrialStatus.ACTIVE,
                    start_date=date(2024, 1, 15),
                    expected_completion=date(2026, 6, 1),
                    patient_count=600,
                ),
            ),
            regulatory_strategy=RegulatoryStrategy(
                pathway=RegulatoryPathway.BREAKTHROUGH,
                timeline=18,
                risks=("Label negotiation",),
                mitigations=("Early FDA engagement",),
            ),
        ),
    )


def build_medium_quality_company(company_id: str = "medium-quality") -> CompanyRecord:
    return CompanyRecord(
        id=company_id,
        basic_info=BasicInfo(
            name="Cortex Therapeutics",
            therapeutic_areas=("Neurology",),
            stage=DevelopmentStage.PHASE_2,
        ),
        pipeline=Pipeline(programs=(
            Program(
                name="CTX-7",
                indication="Alzheimer's disease",
                stage=DevelopmentStage.PHASE_2,
                mechanism="Small molecule inhibitor",
            ),
        )),
        financials=Financials(
            cash_position=120.0,
            burn_rate=8.0,
            last_funding=FundingRound(
                type=FundingType.SERIES_B,
                amount=80.0,
                funding_date=date(2024, 9, 1),
            ),
        ),
        market=MarketInfo(
            addressable_market=8.0,
            competitors=(Competitor(name="Rival C", stage=DevelopmentStage.PHASE_3),),
        ),
        regulatory=RegulatoryInfo(
            clinical_trials=(ClinicalTrial(
                name="CTX-7-201",
                phase=DevelopmentStage.PHASE_2,
                status=TrialStatus.RECRUITING,
                patient_count=180,
            ),),
        ),
    )


def build_low_quality_company(company_id: str = "low-quality") -> CompanyRecord:
    return CompanyRecord(
        id=company_id,
        basic_info=BasicInfo(
            name="Tiny Bio",
            therapeutic_areas=("Dermatology",),
            stage=DevelopmentStage.PRECLINICAL,
        ),
        pipeline=Pipeline(programs=(
            Program(name="TB-1", indication="Eczema", stage=DevelopmentStage.PRECLINICAL),
        )),
        financials=Financials(cash_position=15.0, burn_rate=5.0),
        market=MarketInfo(addressable_market=0.5),
    )


@pytest.fixture
def high_quality_company():
    return build_high_quality_company()


@pytest.fixture
def medium_quality_company():
    return build_medium_quality_company()


@pytest.fixture
def low_quality_company():
    return build_low_quality_company()


@pytest.fixture
def invalid_company():
    """Structurally invalid: empty name and no pipeline programs."""
    return build_medium_quality_company("invalid").with_changes(
        basic_info=BasicInfo(name="", therapeutic_areas=("Neurology",), stage=DevelopmentStage.PHASE_2),
        pipeline=Pipeline(),
    )


# =============================================================================
# SERVICE FIXTURES
# =============================================================================

@pytest.fixture
def result_cache():
    return ResultCache()


@pytest.fixture
def engine(result_cache):
    """Engine with an injected in-memory cache; pool released after the test."""
    scoring_engine = ScoringEngine(cache=result_cache)
    yield scoring_engine
    scoring_engine.shutdown()


@pytest.fixture
def uncached_engine():
    scoring_engine = ScoringEngine()
    yield scoring_engine
    scoring_engine.shutdown()


@pytest.fixture
def scheduler(engine):
    batch_scheduler = BatchScheduler(engine)
    yield batch_scheduler
    batch_scheduler.shutdown()


# =============================================================================
# FASTAPI TEST CLIENT FIXTURE
# =============================================================================

@pytest.fixture
def scoring_service(market_context):
    service = ScoringService(cache=ResultCache(), market_context=market_context)
    yield service
    service.shutdown()


@pytest.fixture
def client(scoring_service):
    """TestClient wired to a fresh ScoringService instead of the process-wide one."""
    app.dependency_overrides[get_scoring_service] = lambda: scoring_service
    yield TestClient(app)
    app.dependency_overrides.clear()
