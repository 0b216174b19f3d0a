"""
Background Job Scheduler.

Admits pending jobs from the AdmissionQueue into a bounded worker pool and
drives each one through the SynthesisClient, recording every step in the
JobStore.

Architecture:
    A single dispatcher thread waits on a condition variable. It is woken
    when a job is enqueued (wake()) and when a running job terminates (the
    finally block of _execute). On every wake it admits jobs while
    active < max_concurrent. The wait also has a timeout (poll_interval_s),
    so a lost wake-up is recovered on the next tick.

    Executions run on a ThreadPoolExecutor sized to max_concurrent. The
    active counter is guarded by the same condition and is only changed on
    admission and in the unconditional release step, so it always equals
    the number of jobs in `processing`.

Execution:
    processing (progress 10, started_at) -> 25 -> synthesize() -> 80
    -> WAV written -> completed (progress 100, result)
    Any exception along the way -> failed (error), slot released.

Admission happens on the dispatcher thread, never on the caller of
submit(), so submit() never waits for a free slot.

Usage:
    scheduler = Scheduler(store, queue, client, audio_store, max_concurrent=3)
    scheduler.start()
    ...
    queue.enqueue(job.id)
    scheduler.wake()
    ...
    scheduler.stop()
"""
from __future__ import annotations

import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from tts_jobs.core.config import Defaults
from tts_jobs.core.errors import JobError
from tts_jobs.core.logging import (
    debug,
    exception,
    fail,
    get_logger,
    info,
    set_job_id,
    success,
    verbose,
)
from tts_jobs.jobs.models import Job, JobStatus, utc_now
from tts_jobs.jobs.queue import AdmissionQueue
from tts_jobs.jobs.store import JobStore

if TYPE_CHECKING:
    from tts_jobs.audio.storage import AudioStore
    from tts_jobs.core.metrics import JobMetrics
    from tts_jobs.synthesis.base import SynthesisClient

_LOG = get_logger("tts-jobs.scheduler")

# Progress markers reported while a job is processing
PROGRESS_STARTED = 10
PROGRESS_SYNTHESIZING = 25
PROGRESS_AUDIO_RECEIVED = 80
PROGRESS_DONE = 100


@dataclass
class SchedulerStats:
    """Point-in-time view of the scheduler."""
    max_concurrent: int
    active: int
    queued: int
    total_admitted: int
    total_completed: int
    total_failed: int
    running: bool


class Scheduler:
    """
    Bounded-concurrency executor for queued jobs.

    Thread-safety:
        - active count and totals are guarded by _cond
        - job state goes through JobStore (its own lock)
        - queue membership goes through AdmissionQueue (its own lock)
        Lock order is always _cond -> store/queue; the store and the queue
        never call back into the scheduler.
    """

    def __init__(
        self,
        store: JobStore,
        queue: AdmissionQueue,
        client: "SynthesisClient",
        audio_store: "AudioStore",
        max_concurrent: int = Defaults.JOBS_MAX_CONCURRENT,
        poll_interval_s: float = Defaults.JOBS_POLL_INTERVAL_S,
        metrics: Optional["JobMetrics"] = None,
    ):
        if max_concurrent < 1:
            raise ValueError(f"max_concurrent must be >= 1, got {max_concurrent}")

        self.max_concurrent = max_concurrent
        self.poll_interval_s = poll_interval_s

        self._store = store
        self._queue = queue
        self._client = client
        self._audio_store = audio_store
        self._metrics = metrics

        self._cond = threading.Condition()
        self._active = 0
        self._total_admitted = 0
        self._total_completed = 0
        self._total_failed = 0

        self._stopping = False
        self._dispatcher: Optional[threading.Thread] = None
        self._executor: Optional[ThreadPoolExecutor] = None

    # =========================================================================
    # Lifecycle
    # =========================================================================

    @property
    def running(self) -> bool:
        return self._dispatcher is not None and self._dispatcher.is_alive()

    def start(self) -> None:
        """Start the worker pool and the dispatcher thread (idempotent)."""
        with self._cond:
            if self._dispatcher is not None:
                return
            self._stopping = False
            self._executor = ThreadPoolExecutor(
                max_workers=self.max_concurrent,
                thread_name_prefix="tts-job-",
            )
            self._dispatcher = threading.Thread(
                target=self._dispatch_loop,
                name="tts-job-dispatcher",
                daemon=True,
            )
            self._dispatcher.start()

        info(
            _LOG, "scheduler_started",
            max_concurrent=self.max_concurrent,
            poll_interval_s=self.poll_interval_s,
        )

    def stop(self, wait: bool = True) -> None:
        """
        Stop admitting jobs and shut the pool down.

        Jobs still in the queue stay `pending`. With wait=True, in-flight
        executions are allowed to finish first.
        """
        with self._cond:
            if self._dispatcher is None:
                return
            self._stopping = True
            self._cond.notify_all()
            dispatcher = self._dispatcher
            executor = self._executor

        dispatcher.join()
        if executor is not None:
            executor.shutdown(wait=wait)

        with self._cond:
            self._dispatcher = None
            self._executor = None

        info(_LOG, "scheduler_stopped", pending=len(self._queue))

    def wake(self) -> None:
        """Ask the dispatcher to run an admission check now."""
        with self._cond:
            self._cond.notify_all()

    # =========================================================================
    # Inspection
    # =========================================================================

    @property
    def active_count(self) -> int:
        with self._cond:
            return self._active

    def stats(self) -> SchedulerStats:
        with self._cond:
            return SchedulerStats(
                max_concurrent=self.max_concurrent,
                active=self._active,
                queued=len(self._queue),
                total_admitted=self._total_admitted,
                total_completed=self._total_completed,
                total_failed=self._total_failed,
                running=self._dispatcher is not None and not self._stopping,
            )

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        """
        Block until nothing is queued or running.

        Returns False if the timeout expired first.
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._cond:
            while self._active > 0 or len(self._queue) > 0:
                remaining = None if deadline is None else deadline - time.monotonic()
                if remaining is not None and remaining <= 0:
                    return False
                # Cancellation empties the queue without notifying, so poll
                self._cond.wait(timeout=0.05 if remaining is None else min(0.05, remaining))
        return True

    # =========================================================================
    # Admission
    # =========================================================================

    def _dispatch_loop(self) -> None:
        with self._cond:
            while not self._stopping:
                self._admit_locked()
                self._cond.wait(timeout=self.poll_interval_s)

    def _admit_locked(self) -> None:
        """Admit queued jobs while a slot is free. Caller holds _cond."""
        while not self._stopping and self._active < self.max_concurrent:
            job_id = self._queue.dequeue_next()
            if job_id is None:
                break

            try:
                job = self._store.update(
                    job_id,
                    status=JobStatus.PROCESSING,
                    started_at=utc_now(),
                    progress=PROGRESS_STARTED,
                )
            except JobError as e:
                # Only pending ids are queued; skip anything else
                debug(_LOG, "admission_skipped", job_id=job_id, reason=e.code)
                continue

            self._active += 1
            self._total_admitted += 1
            verbose(
                _LOG, "job_admitted",
                job_id=job_id, active=self._active, queued=len(self._queue),
            )
            self._publish_state_locked()

            assert self._executor is not None
            self._executor.submit(self._execute, job)

    def _publish_state_locked(self) -> None:
        if self._metrics is not None:
            self._metrics.set_scheduler_state(active=self._active, queued=len(self._queue))

    # =========================================================================
    # Execution
    # =========================================================================

    def _execute(self, job: Job) -> None:
        """Run one admitted job to a terminal status. Never raises."""
        set_job_id(job.id)
        t0 = time.perf_counter()
        status = JobStatus.FAILED
        audio_bytes = 0

        try:
            self._store.update(job.id, progress=PROGRESS_SYNTHESIZING)
            info(_LOG, "job_processing", chars=len(job.text), voice=job.voice_name)

            pcm = self._client.synthesize(job.text, job.voice_name)
            self._store.update(job.id, progress=PROGRESS_AUDIO_RECEIVED)
            verbose(_LOG, "job_audio_received", pcm_bytes=len(pcm))

            result = self._audio_store.save_pcm(pcm, filename_hint=job.requested_filename)
            self._store.update(
                job.id,
                status=JobStatus.COMPLETED,
                progress=PROGRESS_DONE,
                result=result,
                completed_at=utc_now(),
            )
            status = JobStatus.COMPLETED
            audio_bytes = result.size_bytes
            success(
                _LOG, "job_completed",
                filename=result.filename,
                duration=result.duration_seconds,
                seconds=round(time.perf_counter() - t0, 3),
            )

        except Exception as e:
            message = e.message if isinstance(e, JobError) else (str(e) or type(e).__name__)
            try:
                self._store.update(
                    job.id,
                    status=JobStatus.FAILED,
                    error=message,
                    completed_at=utc_now(),
                )
            except JobError:
                exception(_LOG, "job_failure_not_recorded", error=message)
            fail(
                _LOG, "job_failed",
                error=message,
                error_type=type(e).__name__,
                seconds=round(time.perf_counter() - t0, 3),
            )

        finally:
            with self._cond:
                self._active -= 1
                if status == JobStatus.COMPLETED:
                    self._total_completed += 1
                else:
                    self._total_failed += 1
                self._publish_state_locked()
                self._cond.notify_all()

            if self._metrics is not None:
                self._metrics.record_finished(
                    status.value,
                    duration=time.perf_counter() - t0,
                    audio_bytes=audio_bytes,
                )
