"""
Scoring Service - BD Scoring Engine
bd_scoring/services/scoring_service.py

Library-level facade wiring the engine, result cache, weight profiles and
batch scheduler together. Routers and callers talk to this class only.
"""

import logging
from typing import Dict, List, Mapping, Optional, Sequence

from bd_scoring.config import Settings, settings as default_settings
from bd_scoring.core.exceptions import ConfigurationError
from bd_scoring.models.batch import (
    BatchError,
    BatchJob,
    BatchOptions,
    BatchProcessingStatistics,
    BatchSummary,
    Page,
)
from bd_scoring.models.company import CompanyRecord
from bd_scoring.models.enumerations import PillarName
from bd_scoring.models.market_context import MarketContext
from bd_scoring.models.scoring import (
    Explanation,
    ScoringResult,
    ScoringStatistics,
    ValidationResult,
)
from bd_scoring.scoring.engine import ScoringEngine
from bd_scoring.scoring.statistics import get_scoring_statistics
from bd_scoring.scoring.weights import (
    ScoringConfig,
    ScoringParameters,
    WeightConfig,
    WeightImpactAnalysis,
    WeightProfileRegistry,
    calculate_weight_impact,
)
from bd_scoring.services.batch_scheduler import BatchScheduler
from bd_scoring.services.result_cache import CacheStats, ResultCache

logger = logging.getLogger(__name__)


class ScoringService:
    """Evaluation, weight-profile and batch operations behind one object."""

    def __init__(
        self,
        cache: Optional[ResultCache] = None,
        config: Settings = None,
        engine: Optional[ScoringEngine] = None,
        scheduler: Optional[BatchScheduler] = None,
        profiles: Optional[WeightProfileRegistry] = None,
        market_context: Optional[MarketContext] = None,
    ):
        self.config = config or default_settings
        self.cache = cache
        self.engine = engine or ScoringEngine(cache=cache, config=self.config)
        self.scheduler = scheduler or BatchScheduler(self.engine, config=self.config)
        self.profiles = profiles or WeightProfileRegistry()
        self.market_context = market_context

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def resolve_config(
        self,
        profile: Optional[str] = None,
        weights: Optional[WeightConfig] = None,
        parameters: Optional[ScoringParameters] = None,
    ) -> ScoringConfig:
        """
        Build a ScoringConfig from a named profile or explicit weights.

        Explicit weights win over the profile; with neither, the configured
        default weights are used.
        """
        name = "Default"
        if weights is None and profile:
            weights = self.profiles.load_profile(profile)
            if weights is None:
                raise ConfigurationError(f"Unknown weight profile: {profile}")
            name = profile
        elif weights is not None:
            name = "Custom"
        return ScoringConfig(
            name=name,
            weights=weights or self.config.default_weights,
            parameters=parameters or ScoringParameters(),
        )

    def _context(self, market_context: Optional[MarketContext]) -> MarketContext:
        return market_context or self.market_context or MarketContext.default()

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def evaluate_company(
        self,
        company: CompanyRecord,
        config: Optional[ScoringConfig] = None,
        market_context: Optional[MarketContext] = None,
    ) -> ScoringResult:
        return self.engine.evaluate(company, config, self._context(market_context))

    def evaluate_companies(
        self,
        companies: Sequence[CompanyRecord],
        config: Optional[ScoringConfig] = None,
        market_context: Optional[MarketContext] = None,
    ) -> List[ScoringResult]:
        return self.engine.evaluate_many(companies, config, self._context(market_context))

    def validate_company(self, company: CompanyRecord) -> ValidationResult:
        return self.engine.validate(company)

    def explain_company(
        self,
        company: CompanyRecord,
        market_context: Optional[MarketContext] = None,
    ) -> Dict[PillarName, Explanation]:
        return self.engine.explain(company, self._context(market_context))

    @staticmethod
    def get_scoring_statistics(results: Sequence[ScoringResult]) -> ScoringStatistics:
        return get_scoring_statistics(results)

    def invalidate_company(self, company_id: str) -> int:
        if self.cache is None:
            return 0
        return self.cache.invalidate(company_id)

    def cache_stats(self) -> Optional[CacheStats]:
        return self.cache.stats() if self.cache is not None else None

    # ------------------------------------------------------------------
    # Weights
    # ------------------------------------------------------------------

    def list_profiles(self) -> Dict[str, WeightConfig]:
        return {name: self.profiles.load_profile(name) for name in self.profiles.list_profiles()}

    def get_profile(self, name: str) -> Optional[WeightConfig]:
        return self.profiles.load_profile(name)

    def save_profile(self, name: str, weights: WeightConfig) -> WeightConfig:
        return self.profiles.save_profile(name, weights)

    def delete_profile(self, name: str) -> bool:
        return self.profiles.delete_profile(name)

    @staticmethod
    def validate_weights(weights: WeightConfig) -> ValidationResult:
        return weights.validate()

    @staticmethod
    def normalize_weights(weights: WeightConfig) -> WeightConfig:
        return weights.normalize()

    @staticmethod
    def weight_impact(
        pillar_scores: Mapping[PillarName, float],
        original: WeightConfig,
        new: WeightConfig,
    ) -> WeightImpactAnalysis:
        return calculate_weight_impact(pillar_scores, original, new)

    # ------------------------------------------------------------------
    # Batch
    # ------------------------------------------------------------------

    def start_batch_job(
        self,
        companies: Sequence[CompanyRecord],
        config: Optional[ScoringConfig] = None,
        options: Optional[BatchOptions] = None,
        market_context: Optional[MarketContext] = None,
    ) -> BatchJob:
        return self.scheduler.start_batch_job(
            companies, config, options, self._context(market_context)
        )

    def get_batch_status(self, job_id: str) -> Optional[BatchJob]:
        return self.scheduler.get_batch_status(job_id)

    def get_active_batches(self) -> List[BatchJob]:
        return self.scheduler.get_active_batches()

    def cancel_batch_job(self, job_id: str) -> bool:
        return self.scheduler.cancel_batch_job(job_id)

    def get_batch_job_results(
        self, job_id: str, page: int = 1, page_size: Optional[int] = None
    ) -> Page[ScoringResult]:
        return self.scheduler.get_batch_job_results(job_id, page, page_size)

    def get_batch_job_errors(
        self, job_id: str, page: int = 1, page_size: Optional[int] = None
    ) -> Page[BatchError]:
        return self.scheduler.get_batch_job_errors(job_id, page, page_size)

    def get_batch_summary(self, job_id: str) -> BatchSummary:
        return self.scheduler.get_batch_summary(job_id)

    def get_batch_processing_statistics(self) -> BatchProcessingStatistics:
        return self.scheduler.get_batch_processing_statistics()

    def cleanup_completed_jobs(self, older_than_hours: float = 1.0) -> int:
        return self.scheduler.cleanup_completed_jobs(older_than_hours)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def shutdown(self) -> None:
        logger.info("scoring_service_shutdown")
        self.scheduler.shutdown(wait_for_jobs=True)
        self.engine.shutdown()
