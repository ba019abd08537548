# tests/test_statistics.py

"""
Scoring Statistics Tests - bucket boundaries and distributions
"""

import pytest

from conftest import build_high_quality_company, build_low_quality_company, build_medium_quality_company

from bd_scoring.models.enumerations import InvestmentRecommendation
from bd_scoring.scoring.statistics import SCORE_BUCKETS, get_scoring_statistics, score_bucket


class TestScoreBucket:

    @pytest.mark.parametrize(
        "score, bucket",
        [
            (0.0, "0.0-1.0"),
            (0.99, "0.0-1.0"),
            (1.0, "1.0-2.0"),
            (2.5, "2.0-3.0"),
            (3.99, "3.0-4.0"),
            (4.0, "4.0-5.0"),
            (5.0, "4.0-5.0"),
        ],
    )
    def test_bucket_boundaries(self, score, bucket):
        assert score_bucket(score) == bucket


class TestScoringStatistics:

    def test_empty_input(self):
        stats = get_scoring_statistics([])
        assert stats.total_companies == 0
        assert stats.average_score == 0.0
        assert stats.average_confidence == 0.0
        assert set(stats.score_distribution) == set(SCORE_BUCKETS)
        assert sum(stats.score_distribution.values()) == 0

    def test_distributions_sum_to_total(self, uncached_engine, market_context):
        companies = [
            build_high_quality_company("a"),
            build_medium_quality_company("b"),
            build_low_quality_company("c"),
            build_low_quality_company("d"),
        ]
        results = [uncached_engine.evaluate(c, market_context=market_context) for c in companies]

        stats = get_scoring_statistics(results)

        assert stats.total_companies == 4
        assert sum(stats.score_distribution.values()) == 4
        assert sum(stats.recommendation_distribution.values()) == 4
        assert set(stats.recommendation_distribution) == set(InvestmentRecommendation)
        assert stats.average_score == pytest.approx(
            sum(r.overall_score for r in results) / 4, abs=1e-4
        )
        assert 0.0 <= stats.average_confidence <= 1.0
