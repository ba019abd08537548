"""
Batch Jobs API Router
bd_scoring/routers/batch.py

Endpoints:
  POST   /api/v1/batch/jobs                  - Start a background batch job (202)
  GET    /api/v1/batch/jobs                  - All jobs in the registry
  GET    /api/v1/batch/jobs/{job_id}         - Job status snapshot
  DELETE /api/v1/batch/jobs/{job_id}         - Cancel a pending/running job
  GET    /api/v1/batch/jobs/{job_id}/results - Paginated results (submission order)
  GET    /api/v1/batch/jobs/{job_id}/errors  - Paginated per-company errors
  GET    /api/v1/batch/jobs/{job_id}/summary - Average score/confidence over successes
  GET    /api/v1/batch/statistics            - Processing statistics across jobs
  POST   /api/v1/batch/cleanup               - Remove old terminal jobs
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel

from bd_scoring.config import settings
from bd_scoring.core.dependencies import get_scoring_service
from bd_scoring.core.exceptions import BatchJobNotFound
from bd_scoring.models.batch import (
    BatchError,
    BatchJob,
    BatchProcessingStatistics,
    BatchRequest,
    BatchSummary,
    Page,
)
from bd_scoring.models.scoring import ScoringResult
from bd_scoring.services.scoring_service import ScoringService

router = APIRouter(prefix=f"{settings.API_V1_PREFIX}/batch", tags=["Batch Jobs"])


class CancelResponse(BaseModel):
    job_id: str
    cancelled: bool


class CleanupResponse(BaseModel):
    removed: int
    older_than_hours: float


@router.post(
    "/jobs",
    response_model=BatchJob,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Start a batch evaluation job",
)
def start_batch_job(
    request: BatchRequest,
    service: ScoringService = Depends(get_scoring_service),
):
    config = service.resolve_config(profile=request.config_name)
    return service.start_batch_job(request.companies, config, request.options)


@router.get("/jobs", response_model=List[BatchJob])
def list_batch_jobs(service: ScoringService = Depends(get_scoring_service)):
    return service.get_active_batches()


@router.get("/jobs/{job_id}", response_model=BatchJob)
def get_batch_job(job_id: str, service: ScoringService = Depends(get_scoring_service)):
    job = service.get_batch_status(job_id)
    if job is None:
        raise BatchJobNotFound(job_id)
    return job


@router.delete("/jobs/{job_id}", response_model=CancelResponse)
def cancel_batch_job(job_id: str, service: ScoringService = Depends(get_scoring_service)):
    if service.get_batch_status(job_id) is None:
        raise BatchJobNotFound(job_id)
    return CancelResponse(job_id=job_id, cancelled=service.cancel_batch_job(job_id))


@router.get("/jobs/{job_id}/results", response_model=Page[ScoringResult])
def get_batch_job_results(
    job_id: str,
    page: int = Query(1),
    page_size: Optional[int] = Query(None),
    service: ScoringService = Depends(get_scoring_service),
):
    return service.get_batch_job_results(job_id, page, page_size)


@router.get("/jobs/{job_id}/errors", response_model=Page[BatchError])
def get_batch_job_errors(
    job_id: str,
    page: int = Query(1),
    page_size: Optional[int] = Query(None),
    service: ScoringService = Depends(get_scoring_service),
):
    return service.get_batch_job_errors(job_id, page, page_size)


@router.get("/jobs/{job_id}/summary", response_model=BatchSummary)
def get_batch_summary(job_id: str, service: ScoringService = Depends(get_scoring_service)):
    return service.get_batch_summary(job_id)


@router.get("/statistics", response_model=BatchProcessingStatistics)
def get_batch_statistics(service: ScoringService = Depends(get_scoring_service)):
    return service.get_batch_processing_statistics()


@router.post("/cleanup", response_model=CleanupResponse)
def cleanup_batch_jobs(
    older_than_hours: float = Query(1.0, ge=0.0),
    service: ScoringService = Depends(get_scoring_service),
):
    removed = service.cleanup_completed_jobs(older_than_hours)
    return CleanupResponse(removed=removed, older_than_hours=older_than_hours)
