"""
The six scoring pillars.

The set is closed: ``PILLARS`` is the complete registry and the engine
evaluates exactly these, keyed by ``PillarName``.
"""

from typing import Dict, Sequence, Tuple

from bd_scoring.models.enumerations import PillarName
from bd_scoring.scoring.pillars.asset_quality import AssetQualityPillar
from bd_scoring.scoring.pillars.base import ScoringPillar, describe_score
from bd_scoring.scoring.pillars.capital_intensity import CapitalIntensityPillar
from bd_scoring.scoring.pillars.financial_readiness import FinancialReadinessPillar
from bd_scoring.scoring.pillars.market_outlook import MarketOutlookPillar
from bd_scoring.scoring.pillars.regulatory_risk import RegulatoryRiskPillar
from bd_scoring.scoring.pillars.strategic_fit import StrategicFitPillar

PILLARS: Tuple[ScoringPillar, ...] = (
    AssetQualityPillar(),
    MarketOutlookPillar(),
    CapitalIntensityPillar(),
    StrategicFitPillar(),
    FinancialReadinessPillar(),
    RegulatoryRiskPillar(),
)


def index_pillars(pillars: Sequence[ScoringPillar]) -> Dict[PillarName, ScoringPillar]:
    """Key pillars by name; every PillarName needs exactly one pillar."""
    by_name = {p.pillar: p for p in pillars}
    if len(by_name) != len(pillars) or set(by_name) != set(PillarName):
        raise ValueError("every PillarName needs exactly one pillar")
    return by_name


PILLARS_BY_NAME: Dict[PillarName, ScoringPillar] = index_pillars(PILLARS)

__all__ = [
    "PILLARS",
    "PILLARS_BY_NAME",
    "index_pillars",
    "ScoringPillar",
    "describe_score",
    "AssetQualityPillar",
    "MarketOutlookPillar",
    "CapitalIntensityPillar",
    "StrategicFitPillar",
    "FinancialReadinessPillar",
    "RegulatoryRiskPillar",
]
