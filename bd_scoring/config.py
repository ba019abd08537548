"""Application configuration with comprehensive validation."""
import os
from functools import lru_cache
from typing import Literal, List

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _default_concurrency() -> int:
    return max(1, min(10, os.cpu_count() or 1))


class Settings(BaseSettings):
    """Engine, cache and batch settings. Every key can be overridden from the environment."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    APP_NAME: str = "BD Scoring Engine"
    APP_VERSION: str = "1.0.0"
    APP_ENV: Literal["development", "staging", "production"] = "development"
    DEBUG: bool = False
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # API
    API_V1_PREFIX: str = "/api/v1"

    # Methodology version (part of the cache fingerprint)
    METHODOLOGY_VERSION: str = "1.0"

    # Default pillar weights
    W_ASSET_QUALITY: float = Field(default=0.25, ge=0.0, le=1.0)
    W_MARKET_OUTLOOK: float = Field(default=0.20, ge=0.0, le=1.0)
    W_CAPITAL_INTENSITY: float = Field(default=0.15, ge=0.0, le=1.0)
    W_STRATEGIC_FIT: float = Field(default=0.20, ge=0.0, le=1.0)
    W_FINANCIAL_READINESS: float = Field(default=0.10, ge=0.0, le=1.0)
    W_REGULATORY_RISK: float = Field(default=0.10, ge=0.0, le=1.0)
    WEIGHT_TOLERANCE: float = Field(default=0.001, gt=0.0, le=0.01)

    # Confidence blending
    MODEL_ACCURACY: float = Field(default=0.85, ge=0.0, le=1.0)
    CONFIDENCE_W_COMPLETENESS: float = Field(default=0.4, ge=0.0, le=1.0)
    CONFIDENCE_W_ACCURACY: float = Field(default=0.3, ge=0.0, le=1.0)
    CONFIDENCE_W_COMPARABLES: float = Field(default=0.3, ge=0.0, le=1.0)
    CONFIDENCE_SMOOTHING: float = Field(default=0.2, ge=0.0, le=1.0)

    # Recommendation thresholds
    RECOMMENDATION_COMPLETENESS_THRESHOLD: float = Field(default=0.7, ge=0.0, le=1.0)

    # Result cache
    CACHE_BACKEND: Literal["memory", "redis"] = "memory"
    CACHE_TTL_SECONDS: int = Field(default=300, ge=1, le=86400)
    CACHE_MAX_SIZE: int = Field(default=1000, ge=1)
    REDIS_URL: str = "redis://localhost:6379/0"

    # Batch scheduler
    BATCH_DEFAULT_MAX_CONCURRENCY: int = Field(default_factory=_default_concurrency, ge=1, le=64)
    BATCH_MAX_COMPANIES: int = Field(default=100, ge=1, le=10000)
    BATCH_SECONDS_PER_COMPANY: float = Field(default=2.0, gt=0.0)
    PAGE_SIZE_DEFAULT: int = Field(default=20, ge=1)
    PAGE_SIZE_MAX: int = Field(default=100, ge=1)
    WEBHOOK_TIMEOUT_SECONDS: float = Field(default=5.0, gt=0.0, le=60.0)

    @model_validator(mode="after")
    def validate_pillar_weights(self):
        """Validate default pillar weights sum to 1.0."""
        total = sum(self.pillar_weights)
        if abs(total - 1.0) > self.WEIGHT_TOLERANCE:
            raise ValueError(f"Pillar weights must sum to 1.0, got {total}")
        return self

    @model_validator(mode="after")
    def validate_confidence_blend(self):
        """Validate confidence blend weights sum to 1.0."""
        total = (
            self.CONFIDENCE_W_COMPLETENESS
            + self.CONFIDENCE_W_ACCURACY
            + self.CONFIDENCE_W_COMPARABLES
        )
        if abs(total - 1.0) > self.WEIGHT_TOLERANCE:
            raise ValueError(f"Confidence blend weights must sum to 1.0, got {total}")
        return self

    @model_validator(mode="after")
    def validate_page_sizes(self):
        if self.PAGE_SIZE_DEFAULT > self.PAGE_SIZE_MAX:
            raise ValueError("PAGE_SIZE_DEFAULT cannot exceed PAGE_SIZE_MAX")
        return self

    @property
    def pillar_weights(self) -> List[float]:
        """Get default pillar weights as list (pillar enum order)."""
        return [
            self.W_ASSET_QUALITY, self.W_MARKET_OUTLOOK, self.W_CAPITAL_INTENSITY,
            self.W_STRATEGIC_FIT, self.W_FINANCIAL_READINESS, self.W_REGULATORY_RISK,
        ]

    @property
    def default_weights(self):
        """Default pillar weights as a WeightConfig."""
        from bd_scoring.scoring.weights import WeightConfig

        return WeightConfig(
            asset_quality=self.W_ASSET_QUALITY,
            market_outlook=self.W_MARKET_OUTLOOK,
            capital_intensity=self.W_CAPITAL_INTENSITY,
            strategic_fit=self.W_STRATEGIC_FIT,
            financial_readiness=self.W_FINANCIAL_READINESS,
            regulatory_risk=self.W_REGULATORY_RISK,
        )


@lru_cache
def get_settings() -> Settings:
    return Settings()

settings = get_settings()
