"""
Batch Job Models - BD Scoring Engine
bd_scoring/models/batch.py

Snapshot and request/response models for the batch scheduler. The scheduler
keeps its own mutable state; callers only ever see these frozen copies.
"""

from datetime import datetime
from typing import Generic, List, Optional, Tuple, TypeVar

from pydantic import BaseModel, Field, model_validator

from bd_scoring.config import settings
from bd_scoring.models.company import CompanyRecord, FrozenModel
from bd_scoring.models.enumerations import BatchStatus
from bd_scoring.models.scoring import ScoringResult

T = TypeVar("T")


class BatchOptions(FrozenModel):
    continue_on_error: bool = True
    max_concurrency: int = Field(
        default_factory=lambda: settings.BATCH_DEFAULT_MAX_CONCURRENCY,
        ge=1,
        le=64,
    )
    notify_on_completion: bool = False
    webhook_url: Optional[str] = None

    @classmethod
    def high_throughput(cls) -> "BatchOptions":
        return cls(continue_on_error=True, max_concurrency=10)

    @classmethod
    def reliable(cls) -> "BatchOptions":
        return cls(continue_on_error=False, max_concurrency=3)

    @classmethod
    def background(cls, webhook_url: Optional[str] = None) -> "BatchOptions":
        return cls(
            continue_on_error=True,
            max_concurrency=5,
            notify_on_completion=True,
            webhook_url=webhook_url,
        )


class BatchError(FrozenModel):
    index: int = Field(..., ge=0, description="Submission index of the failing company")
    company_id: Optional[str] = None
    company_name: Optional[str] = None
    error: str


class BatchJob(FrozenModel):
    """Point-in-time view of one batch job."""

    id: str
    status: BatchStatus
    total_companies: int
    processed_companies: int = 0
    successful_evaluations: int = 0
    failed_evaluations: int = 0
    progress: float = Field(default=0.0, ge=0.0, le=1.0)
    options: BatchOptions
    config_name: str = "Default"
    start_time: datetime
    completion_time: Optional[datetime] = None
    estimated_completion: Optional[datetime] = None
    processing_time: Optional[float] = None
    errors: Tuple[BatchError, ...] = ()
    results: Tuple[ScoringResult, ...] = ()

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def success_rate(self) -> float:
        if self.processed_companies == 0:
            return 0.0
        return self.successful_evaluations / self.processed_companies


class BatchSummary(FrozenModel):
    total_companies: int
    successful_evaluations: int
    failed_evaluations: int
    average_score: Optional[float] = None
    average_confidence: Optional[float] = None
    processing_time: Optional[float] = None


class BatchRequest(BaseModel):
    """Body for starting a batch job."""

    companies: List[CompanyRecord] = Field(..., min_length=1)
    config_name: Optional[str] = None
    options: BatchOptions = Field(default_factory=BatchOptions)

    @model_validator(mode="after")
    def check_batch_size(self):
        if len(self.companies) > settings.BATCH_MAX_COMPANIES:
            raise ValueError(
                f"Maximum {settings.BATCH_MAX_COMPANIES} companies allowed per batch"
            )
        return self


# ---------------------------------------------------------------------------
# Pagination
# ---------------------------------------------------------------------------

class PaginationInfo(FrozenModel):
    page: int
    page_size: int
    total_items: int
    total_pages: int
    has_next: bool
    has_previous: bool


class Page(BaseModel, Generic[T]):
    job_id: str
    job_status: BatchStatus
    items: List[T]
    pagination: PaginationInfo


class BatchProcessingStatistics(FrozenModel):
    total_jobs: int
    active_jobs: int
    completed_jobs: int
    failed_jobs: int
    cancelled_jobs: int
    average_processing_time: float
    total_companies_processed: int
    average_success_rate: float
    last_updated: datetime
