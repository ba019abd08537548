"""
Scoring Statistics
bd_scoring/scoring/statistics.py

Pure reducer over a list of ScoringResults. Both distributions sum to
``total_companies``.
"""

from typing import Dict, Sequence

from bd_scoring.models.enumerations import InvestmentRecommendation
from bd_scoring.models.scoring import ScoringResult, ScoringStatistics

SCORE_BUCKETS = ("0.0-1.0", "1.0-2.0", "2.0-3.0", "3.0-4.0", "4.0-5.0")


def score_bucket(score: float) -> str:
    """Bucket label for an overall score; 5.0 lands in the top bucket."""
    index = min(int(score), len(SCORE_BUCKETS) - 1)
    return SCORE_BUCKETS[max(index, 0)]


def get_scoring_statistics(results: Sequence[ScoringResult]) -> ScoringStatistics:
    score_distribution: Dict[str, int] = {bucket: 0 for bucket in SCORE_BUCKETS}
    recommendation_distribution: Dict[InvestmentRecommendation, int] = {
        rec: 0 for rec in InvestmentRecommendation
    }

    if not results:
        return ScoringStatistics(
            total_companies=0,
            average_score=0.0,
            average_confidence=0.0,
            score_distribution=score_distribution,
            recommendation_distribution=recommendation_distribution,
        )

    for result in results:
        score_distribution[score_bucket(result.overall_score)] += 1
        recommendation_distribution[result.investment_recommendation] += 1

    total = len(results)
    return ScoringStatistics(
        total_companies=total,
        average_score=round(sum(r.overall_score for r in results) / total, 4),
        average_confidence=round(sum(r.confidence.overall for r in results) / total, 4),
        score_distribution=score_distribution,
        recommendation_distribution=recommendation_distribution,
    )
