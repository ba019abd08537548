"""
Completion Webhook - BD Scoring Engine
bd_scoring/services/notifier.py

POSTs a JSON summary of a finished batch job to the caller's webhook.
Delivery is best-effort: failures are logged and never affect job status.
"""

from typing import Optional

import httpx
import structlog

from bd_scoring.config import settings
from bd_scoring.models.batch import BatchJob, BatchSummary

logger = structlog.get_logger(__name__)


class WebhookNotifier:
    """Sends batch completion notifications over HTTP."""

    def __init__(self, timeout: Optional[float] = None, client: Optional[httpx.Client] = None):
        self.timeout = timeout or settings.WEBHOOK_TIMEOUT_SECONDS
        self._client = client

    def notify(self, job: BatchJob, summary: BatchSummary) -> bool:
        """Return True when the webhook accepted the payload (2xx)."""
        url = job.options.webhook_url
        if not (job.options.notify_on_completion and url):
            return False

        payload = {
            "job_id": job.id,
            "status": job.status.value,
            "completion_time": job.completion_time.isoformat() if job.completion_time else None,
            "summary": summary.model_dump(mode="json"),
        }
        try:
            if self._client is not None:
                response = self._client.post(url, json=payload, timeout=self.timeout)
            else:
                response = httpx.post(url, json=payload, timeout=self.timeout)
        except httpx.HTTPError as e:
            logger.warning("batch_webhook_failed", job_id=job.id, url=url, error=str(e))
            return False

        if response.is_success:
            logger.info("batch_webhook_sent", job_id=job.id, status_code=response.status_code)
            return True
        logger.warning(
            "batch_webhook_rejected",
            job_id=job.id,
            url=url,
            status_code=response.status_code,
        )
        return False
