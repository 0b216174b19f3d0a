"""
JobController - the operations offered on background jobs.

    submit(text, voice_name, filename=None) -> job id
    get_status(job_id) -> Job
    list_jobs(status=None, limit=None) -> [Job]
    cancel(job_id) -> Job
    retry(job_id) -> Job
    health() -> dict

submit() and retry() validate, record a pending job, enqueue it and wake
the scheduler. They return as soon as the job is queued and never wait for
admission, which happens later on the scheduler's dispatcher thread.

Cancellation only applies to pending jobs. Whether a cancel or an admission
wins for a given job is decided by AdmissionQueue: cancel succeeds only when
it is the one that takes the id out of the queue.

Retry never revives the failed job. It creates a new pending job with the
same inputs, linked to the first job of the chain through original_job_id.
The bound applies to the whole chain: retry_count is the number of retries
spawned from the root so far, so retrying the same failed job repeatedly
still runs into max_retries.
"""
from __future__ import annotations

import math
import threading
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence, Union

from tts_jobs.core.config import Defaults, GEMINI_VOICES
from tts_jobs.core.errors import InvalidStateError, RetryLimitError, ValidationError
from tts_jobs.core.logging import get_logger, info, verbose
from tts_jobs.jobs.models import CANCELLED_MESSAGE, Job, JobStatus, utc_now
from tts_jobs.jobs.queue import AdmissionQueue
from tts_jobs.jobs.scheduler import Scheduler
from tts_jobs.jobs.store import JobStore
from tts_jobs.services.validators import validate_filename_hint, validate_text, validate_voice

if TYPE_CHECKING:
    from tts_jobs.core.metrics import JobMetrics

_LOG = get_logger("tts-jobs.controller")


def estimated_time(text: str) -> str:
    """Rough user-facing duration estimate: ~100 characters per second, 5 s minimum."""
    seconds = max(5, math.ceil(len(text) / 100))
    if seconds < 60:
        return f"~{seconds}s"
    return f"~{math.ceil(seconds / 60)}m"


class JobController:
    """Entry point for job operations; owns no state beyond its collaborators."""

    def __init__(
        self,
        store: JobStore,
        queue: AdmissionQueue,
        scheduler: Scheduler,
        voices: Sequence[str] = GEMINI_VOICES,
        max_retries: int = Defaults.JOBS_MAX_RETRIES,
        max_text_chars: int = Defaults.JOBS_MAX_TEXT_CHARS,
        text_preview_chars: int = Defaults.LOGGING_TEXT_PREVIEW_CHARS,
        metrics: Optional["JobMetrics"] = None,
    ):
        self._store = store
        self._queue = queue
        self._scheduler = scheduler
        self._voices = tuple(voices)
        self.max_retries = max_retries
        self.max_text_chars = max_text_chars
        self._preview_chars = text_preview_chars
        self._metrics = metrics

        # Retries spawned so far per chain root
        self._retry_lock = threading.Lock()
        self._chain_retries: Dict[str, int] = {}

    def _enqueue(self, job: Job, retry: bool = False) -> None:
        self._store.put(job)
        self._queue.enqueue(job.id)
        if self._metrics is not None:
            self._metrics.record_submitted(retry=retry)
            self._metrics.set_scheduler_state(
                active=self._scheduler.active_count,
                queued=len(self._queue),
            )
        self._scheduler.wake()

    # =========================================================================
    # Submission
    # =========================================================================

    def submit(self, text: Optional[str], voice_name: Optional[str], filename: Optional[str] = None) -> str:
        """
        Record a new pending job and queue it for synthesis.

        Returns:
            The new job id.

        Raises:
            ValidationError: Text missing/blank/too long or voice unknown.
                No job is created.
        """
        text = validate_text(text, max_length=self.max_text_chars)
        voice_name = validate_voice(voice_name, self._voices)
        filename = validate_filename_hint(filename)

        job = Job.create(text=text, voice_name=voice_name, requested_filename=filename)
        self._enqueue(job)

        info(
            _LOG, "job_submitted",
            job_id=job.id,
            chars=len(text),
            voice=voice_name,
            queued=len(self._queue),
            preview=text[: self._preview_chars],
        )
        return job.id

    def retry(self, job_id: str) -> Job:
        """
        Queue a new job repeating a failed one.

        Raises:
            NotFoundError: Unknown job id.
            InvalidStateError: The job is not failed.
            RetryLimitError: The chain already holds max_retries retries.
        """
        failed = self._store.get(job_id)

        if failed.status != JobStatus.FAILED:
            raise InvalidStateError(
                "Can only retry failed jobs",
                details={"job_id": job_id, "status": failed.status.value},
            )

        root_id = failed.chain_root_id
        with self._retry_lock:
            spawned = max(self._chain_retries.get(root_id, 0), failed.retry_count)
            if spawned >= self.max_retries:
                raise RetryLimitError(
                    f"Maximum retry attempts ({self.max_retries}) exceeded",
                    details={"job_id": job_id, "original_job_id": root_id, "retry_count": spawned},
                )

            job = Job.create(
                text=failed.text,
                voice_name=failed.voice_name,
                requested_filename=failed.requested_filename,
                retry_count=spawned + 1,
                original_job_id=root_id,
            )
            self._enqueue(job, retry=True)
            self._chain_retries[root_id] = spawned + 1

        info(
            _LOG, "job_retried",
            job_id=job.id,
            failed_job_id=failed.id,
            original_job_id=job.original_job_id,
            retry_count=job.retry_count,
        )
        return job

    # =========================================================================
    # Queries
    # =========================================================================

    def get_status(self, job_id: str) -> Job:
        """
        Raises:
            NotFoundError: Unknown job id.
        """
        return self._store.get(job_id)

    def list_jobs(
        self,
        status: Union[JobStatus, str, None] = None,
        limit: Optional[int] = None,
    ) -> List[Job]:
        """
        Jobs newest first, optionally filtered by status and truncated.

        Jobs created in the same instant keep newest-inserted first.
        """
        if status is not None and not isinstance(status, JobStatus):
            try:
                status = JobStatus(str(status).lower())
            except ValueError:
                raise ValidationError(
                    f"Invalid status: {status}",
                    details={"reason": "STATUS_UNKNOWN", "allowed": [s.value for s in JobStatus]},
                ) from None

        if limit is not None and limit < 0:
            raise ValidationError("limit must be non-negative", details={"reason": "LIMIT_INVALID"})

        jobs = list(reversed(self._store.list_all()))
        jobs.sort(key=lambda j: j.created_at, reverse=True)

        if status is not None:
            jobs = [j for j in jobs if j.status == status]
        if limit is not None:
            jobs = jobs[:limit]
        return jobs

    def voices(self) -> List[str]:
        return list(self._voices)

    def health(self) -> Dict[str, Any]:
        """Scheduler load snapshot."""
        stats = self._scheduler.stats()
        return {
            "activeJobs": stats.active,
            "queuedJobs": stats.queued,
            "maxConcurrent": stats.max_concurrent,
            "totalJobs": len(self._store),
        }

    # =========================================================================
    # Cancellation
    # =========================================================================

    def cancel(self, job_id: str) -> Job:
        """
        Cancel a pending job.

        Raises:
            NotFoundError: Unknown job id.
            InvalidStateError: The job is not pending, including the case
                where it was admitted while this call was in progress.
        """
        job = self._store.get(job_id)

        if job.status != JobStatus.PENDING or not self._queue.remove(job_id):
            current = self._store.get(job_id)
            raise InvalidStateError(
                "Can only cancel pending jobs",
                details={"job_id": job_id, "status": current.status.value},
            )

        cancelled = self._store.update(
            job_id,
            status=JobStatus.FAILED,
            error=CANCELLED_MESSAGE,
            completed_at=utc_now(),
        )
        if self._metrics is not None:
            self._metrics.record_cancelled()
            self._metrics.set_scheduler_state(
                active=self._scheduler.active_count,
                queued=len(self._queue),
            )

        verbose(_LOG, "job_cancelled", job_id=job_id, queued=len(self._queue))
        return cancelled
