"""
Batch Job Scheduler - BD Scoring Engine
bd_scoring/services/batch_scheduler.py

Runs many evaluations as a tracked background job.

State machine:
    pending -> running -> completed | partially_completed | failed | cancelled

Each job gets a dispatcher thread and its own ThreadPoolExecutor sized to
``max_concurrency``. Units are submitted lazily, so at most
``max_concurrency`` evaluations are in flight and cancellation stops dispatch
immediately. The registry is the only state shared between jobs and is
guarded by one lock; callers only ever receive frozen BatchJob snapshots.
"""

import math
import threading
import uuid
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import structlog

from bd_scoring.config import Settings, settings as default_settings
from bd_scoring.core.exceptions import (
    BatchJobNotFound,
    InvalidData,
    InvalidPagination,
)
from bd_scoring.models.batch import (
    BatchError,
    BatchJob,
    BatchOptions,
    BatchProcessingStatistics,
    BatchSummary,
    Page,
    PaginationInfo,
)
from bd_scoring.models.company import CompanyRecord
from bd_scoring.models.enumerations import BatchStatus
from bd_scoring.models.market_context import MarketContext
from bd_scoring.models.scoring import ScoringResult
from bd_scoring.scoring.engine import ScoringEngine
from bd_scoring.scoring.weights import ScoringConfig
from bd_scoring.services.notifier import WebhookNotifier

logger = structlog.get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class _JobState:
    """Mutable job record. Only touched by the scheduler while holding its lock."""

    def __init__(
        self,
        companies: Sequence[CompanyRecord],
        config: ScoringConfig,
        options: BatchOptions,
        market_context: Optional[MarketContext],
        start_time: datetime,
    ):
        self.id = str(uuid.uuid4())
        self.status = BatchStatus.PENDING
        self.companies = tuple(companies)
        self.config = config
        self.options = options
        self.market_context = market_context
        self.start_time = start_time
        self.completion_time: Optional[datetime] = None
        self.estimated_completion: Optional[datetime] = None
        self.processing_time: Optional[float] = None
        self.results: Dict[int, ScoringResult] = {}
        self.errors: List[BatchError] = []
        self.cancel_event = threading.Event()
        self.thread: Optional[threading.Thread] = None

    @property
    def processed(self) -> int:
        return len(self.results) + len(self.errors)

    def snapshot(self) -> BatchJob:
        total = len(self.companies)
        return BatchJob(
            id=self.id,
            status=self.status,
            total_companies=total,
            processed_companies=self.processed,
            successful_evaluations=len(self.results),
            failed_evaluations=len(self.errors),
            progress=self.processed / total if total else 0.0,
            options=self.options,
            config_name=self.config.name,
            start_time=self.start_time,
            completion_time=self.completion_time,
            estimated_completion=self.estimated_completion,
            processing_time=self.processing_time,
            errors=tuple(sorted(self.errors, key=lambda e: e.index)),
            results=tuple(self.results[i] for i in sorted(self.results)),
        )


class BatchScheduler:
    """Registry and executor for batch evaluation jobs."""

    def __init__(
        self,
        engine: ScoringEngine,
        config: Settings = None,
        notifier: Optional[WebhookNotifier] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.engine = engine
        self.config = config or default_settings
        self.notifier = notifier or WebhookNotifier(timeout=self.config.WEBHOOK_TIMEOUT_SECONDS)
        self._clock = clock
        self._lock = threading.Lock()
        self._jobs: Dict[str, _JobState] = {}

    # ------------------------------------------------------------------
    # Start
    # ------------------------------------------------------------------

    def start_batch_job(
        self,
        companies: Sequence[CompanyRecord],
        config: Optional[ScoringConfig] = None,
        options: Optional[BatchOptions] = None,
        market_context: Optional[MarketContext] = None,
    ) -> BatchJob:
        """
        Register a job and start it in the background.

        Returns a ``pending`` snapshot immediately.

        Raises:
            InvalidData: empty or oversized batch, or (fail-fast only) any
                structurally invalid company.
            ConfigurationError: invalid weights.
        """
        config = config or ScoringConfig()
        options = options or BatchOptions()

        if not companies:
            raise InvalidData("At least one company is required")
        limit = self.config.BATCH_MAX_COMPANIES
        if len(companies) > limit:
            raise InvalidData(
                f"Maximum {limit} companies allowed per batch, got {len(companies)}"
            )
        config.weights.ensure_valid()

        if not options.continue_on_error:
            self._preflight(companies)

        state = _JobState(companies, config, options, market_context, self._clock())
        with self._lock:
            self._jobs[state.id] = state
            snapshot = state.snapshot()

        state.thread = threading.Thread(
            target=self._run, args=(state,), name=f"batch-{state.id[:8]}", daemon=True
        )
        state.thread.start()

        logger.info(
            "batch_job_started",
            job_id=state.id,
            total_companies=len(companies),
            max_concurrency=options.max_concurrency,
            continue_on_error=options.continue_on_error,
            config=config.name,
        )
        return snapshot

    def _preflight(self, companies: Sequence[CompanyRecord]) -> None:
        messages = []
        for index, company in enumerate(companies):
            validation = self.engine.validate(company)
            for issue in validation.errors:
                label = company.name or company.id
                messages.append(f"Company {index} ({label}): {issue.message}")
        if messages:
            raise InvalidData("Batch contains invalid companies", messages)

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def _run(self, state: _JobState) -> None:
        with self._lock:
            if state.cancel_event.is_set():
                self._finalize_locked(state, BatchStatus.CANCELLED)
                return
            state.status = BatchStatus.RUNNING
            state.estimated_completion = state.start_time + timedelta(
                seconds=len(state.companies)
                * self.config.BATCH_SECONDS_PER_COMPANY
                / state.options.max_concurrency
            )

        stopped = False
        try:
            stopped = self._dispatch(state)
        except Exception:
            logger.exception("batch_dispatcher_crashed", job_id=state.id)
            stopped = True

        with self._lock:
            if state.cancel_event.is_set() and state.processed < len(state.companies):
                status = BatchStatus.CANCELLED
            elif stopped or not state.results:
                status = BatchStatus.FAILED
            elif state.errors:
                status = BatchStatus.PARTIALLY_COMPLETED
            else:
                status = BatchStatus.COMPLETED
            snapshot = self._finalize_locked(state, status)

        if state.options.notify_on_completion and state.options.webhook_url:
            self.notifier.notify(snapshot, self._summarize(snapshot))

    def _dispatch(self, state: _JobState) -> bool:
        """Feed units to the pool. Returns True when fail-fast stopped the job."""
        options = state.options
        in_flight: Dict[Future, int] = {}
        stopped = False

        with ThreadPoolExecutor(
            max_workers=options.max_concurrency,
            thread_name_prefix=f"batch-{state.id[:8]}",
        ) as executor:
            for index, company in enumerate(state.companies):
                while len(in_flight) >= options.max_concurrency:
                    stopped = self._drain(state, in_flight) or stopped
                if stopped or state.cancel_event.is_set():
                    break
                future = executor.submit(
                    self.engine.evaluate, company, state.config, state.market_context
                )
                in_flight[future] = index

            while in_flight:
                stopped = self._drain(state, in_flight) or stopped
        return stopped

    def _drain(self, state: _JobState, in_flight: Dict[Future, int]) -> bool:
        """Record every unit that has finished; True when fail-fast should stop dispatch."""
        done, _ = wait(set(in_flight), return_when=FIRST_COMPLETED)
        stop = False
        for future in done:
            index = in_flight.pop(future)
            company = state.companies[index]
            error = future.exception()
            with self._lock:
                if error is None:
                    state.results[index] = future.result()
                else:
                    state.errors.append(BatchError(
                        index=index,
                        company_id=company.id,
                        company_name=company.name or None,
                        error=str(error),
                    ))
                    stop = stop or not state.options.continue_on_error
            if error is not None:
                logger.warning(
                    "batch_unit_failed",
                    job_id=state.id,
                    index=index,
                    company_id=company.id,
                    error_type=type(error).__name__,
                    error=str(error),
                )
        return stop

    def _finalize_locked(self, state: _JobState, status: BatchStatus) -> BatchJob:
        now = self._clock()
        state.status = status
        state.completion_time = now
        state.processing_time = (now - state.start_time).total_seconds()
        snapshot = state.snapshot()
        logger.info(
            "batch_job_finished",
            job_id=state.id,
            status=status.value,
            processed=snapshot.processed_companies,
            successful=snapshot.successful_evaluations,
            failed=snapshot.failed_evaluations,
            processing_time=state.processing_time,
        )
        return snapshot

    # ------------------------------------------------------------------
    # Queries and control
    # ------------------------------------------------------------------

    def get_batch_status(self, job_id: str) -> Optional[BatchJob]:
        with self._lock:
            state = self._jobs.get(job_id)
            return state.snapshot() if state else None

    def get_active_batches(self) -> List[BatchJob]:
        """Every job currently in the registry, oldest first."""
        with self._lock:
            states = sorted(self._jobs.values(), key=lambda s: s.start_time)
            return [s.snapshot() for s in states]

    def cancel_batch_job(self, job_id: str) -> bool:
        """
        Signal cancellation. Only pending or running jobs can be cancelled.

        In-flight units finish and keep their results; the job turns
        ``cancelled`` once they have. A job whose units have all been
        processed is already finishing and is not cancelled.
        """
        with self._lock:
            state = self._jobs.get(job_id)
            if state is None or state.status.is_terminal or state.cancel_event.is_set():
                return False
            if state.processed == len(state.companies):
                return False
            state.cancel_event.set()
        logger.info("batch_job_cancel_requested", job_id=job_id)
        return True

    def wait_for_completion(self, job_id: str, timeout: Optional[float] = None) -> BatchJob:
        """Block until the job's dispatcher exits and return the final snapshot."""
        with self._lock:
            state = self._require(job_id)
            thread = state.thread
        if thread is not None:
            thread.join(timeout)
        with self._lock:
            return state.snapshot()

    def cleanup_completed_jobs(self, older_than_hours: float = 1.0) -> int:
        """Drop terminal jobs that completed before the retention window."""
        cutoff = self._clock() - timedelta(hours=older_than_hours)
        with self._lock:
            doomed = [
                job_id
                for job_id, state in self._jobs.items()
                if state.status.is_terminal
                and state.completion_time is not None
                and state.completion_time <= cutoff
            ]
            for job_id in doomed:
                del self._jobs[job_id]
        if doomed:
            logger.info("batch_jobs_cleaned_up", removed=len(doomed), older_than_hours=older_than_hours)
        return len(doomed)

    def shutdown(self, wait_for_jobs: bool = True) -> None:
        """Cancel every unfinished job and optionally wait for dispatchers to exit."""
        with self._lock:
            states = list(self._jobs.values())
            for state in states:
                if not state.status.is_terminal:
                    state.cancel_event.set()
        if wait_for_jobs:
            for state in states:
                if state.thread is not None:
                    state.thread.join()

    # ------------------------------------------------------------------
    # Paginated retrieval
    # ------------------------------------------------------------------

    def get_batch_job_results(
        self, job_id: str, page: int = 1, page_size: Optional[int] = None
    ) -> Page[ScoringResult]:
        """Results in submission-index order."""
        page_size = self._check_pagination(page, page_size)
        with self._lock:
            state = self._require(job_id)
            items = [state.results[i] for i in sorted(state.results)]
            status = state.status
        return self._page(job_id, status, items, page, page_size)

    def get_batch_job_errors(
        self, job_id: str, page: int = 1, page_size: Optional[int] = None
    ) -> Page[BatchError]:
        page_size = self._check_pagination(page, page_size)
        with self._lock:
            state = self._require(job_id)
            items = sorted(state.errors, key=lambda e: e.index)
            status = state.status
        return self._page(job_id, status, items, page, page_size)

    def _check_pagination(self, page: int, page_size: Optional[int]) -> int:
        if page_size is None:
            page_size = self.config.PAGE_SIZE_DEFAULT
        max_size = self.config.PAGE_SIZE_MAX
        if page < 1 or page_size < 1 or page_size > max_size:
            raise InvalidPagination(page, page_size, max_size)
        return page_size

    @staticmethod
    def _page(job_id: str, status: BatchStatus, items: list, page: int, page_size: int) -> Page:
        total = len(items)
        total_pages = math.ceil(total / page_size) if total else 0
        start = (page - 1) * page_size
        return Page(
            job_id=job_id,
            job_status=status,
            items=items[start:start + page_size],
            pagination=PaginationInfo(
                page=page,
                page_size=page_size,
                total_items=total,
                total_pages=total_pages,
                has_next=page < total_pages,
                has_previous=page > 1,
            ),
        )

    def _require(self, job_id: str) -> _JobState:
        state = self._jobs.get(job_id)
        if state is None:
            raise BatchJobNotFound(job_id)
        return state

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def get_batch_summary(self, job_id: str) -> BatchSummary:
        with self._lock:
            snapshot = self._require(job_id).snapshot()
        return self._summarize(snapshot)

    @staticmethod
    def _summarize(job: BatchJob) -> BatchSummary:
        scores: Tuple[float, ...] = tuple(r.overall_score for r in job.results)
        confidences = tuple(r.confidence.overall for r in job.results)
        return BatchSummary(
            total_companies=job.total_companies,
            successful_evaluations=job.successful_evaluations,
            failed_evaluations=job.failed_evaluations,
            average_score=round(sum(scores) / len(scores), 4) if scores else None,
            average_confidence=round(sum(confidences) / len(confidences), 4) if confidences else None,
            processing_time=job.processing_time,
        )

    def get_batch_processing_statistics(self) -> BatchProcessingStatistics:
        with self._lock:
            states = list(self._jobs.values())
            statuses = [s.status for s in states]
            processing_times = [s.processing_time for s in states if s.processing_time is not None]
            processed = [s.processed for s in states]
            success_rates = [len(s.results) / s.processed for s in states if s.processed]

        return BatchProcessingStatistics(
            total_jobs=len(states),
            active_jobs=sum(1 for s in statuses if not s.is_terminal),
            completed_jobs=sum(
                1 for s in statuses
                if s in (BatchStatus.COMPLETED, BatchStatus.PARTIALLY_COMPLETED)
            ),
            failed_jobs=statuses.count(BatchStatus.FAILED),
            cancelled_jobs=statuses.count(BatchStatus.CANCELLED),
            average_processing_time=(
                sum(processing_times) / len(processing_times) if processing_times else 0.0
            ),
            total_companies_processed=sum(processed),
            average_success_rate=(
                sum(success_rates) / len(success_rates) if success_rates else 0.0
            ),
            last_updated=self._clock(),
        )
