"""
Prometheus Metrics for the job service.

Metrics Exposed:
    tts_jobs_submitted_total      - Counter of accepted submissions (new + retry)
    tts_jobs_finished_total       - Counter of terminal jobs by status
    tts_jobs_cancelled_total      - Counter of cancelled jobs
    tts_job_duration_seconds      - Histogram of processing time (started -> terminal)
    tts_jobs_active               - Gauge of jobs currently processing
    tts_jobs_queued               - Gauge of jobs waiting for admission
    tts_audio_bytes_total         - Counter of WAV bytes written

Usage:
    from tts_jobs.core.metrics import metrics

    metrics.record_submitted(retry=False)
    metrics.record_finished("completed", duration=2.4, audio_bytes=115244)
    metrics.set_scheduler_state(active=2, queued=5)

    content, content_type = metrics.get_metrics_response()

Each JobMetrics instance owns a private CollectorRegistry, so tests can
build as many as they like without duplicate-registration errors.
"""
from __future__ import annotations

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)


class JobMetrics:
    """Counters and gauges describing the job queue and scheduler."""

    def __init__(self) -> None:
        self._registry = CollectorRegistry()

        self._submitted = Counter(
            "tts_jobs_submitted_total",
            "Total jobs accepted for background synthesis",
            ["kind"],
            registry=self._registry,
        )
        self._finished = Counter(
            "tts_jobs_finished_total",
            "Total jobs that reached a terminal status",
            ["status"],
            registry=self._registry,
        )
        self._cancelled = Counter(
            "tts_jobs_cancelled_total",
            "Total pending jobs cancelled before admission",
            registry=self._registry,
        )
        self._duration = Histogram(
            "tts_job_duration_seconds",
            "Time from admission to terminal status",
            buckets=(0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0, 300.0),
            registry=self._registry,
        )
        self._active = Gauge(
            "tts_jobs_active",
            "Jobs currently processing",
            registry=self._registry,
        )
        self._queued = Gauge(
            "tts_jobs_queued",
            "Jobs waiting in the admission queue",
            registry=self._registry,
        )
        self._audio_bytes = Counter(
            "tts_audio_bytes_total",
            "Total WAV bytes written",
            registry=self._registry,
        )

    @property
    def registry(self) -> CollectorRegistry:
        return self._registry

    def record_submitted(self, retry: bool = False) -> None:
        self._submitted.labels(kind="retry" if retry else "new").inc()

    def record_finished(self, status: str, duration: float, audio_bytes: int = 0) -> None:
        """
        Record a job that left `processing`.

        Args:
            status: "completed" or "failed"
            duration: Seconds spent processing
            audio_bytes: Size of the written WAV file (0 on failure)
        """
        self._finished.labels(status=status).inc()
        self._duration.observe(max(0.0, duration))
        if audio_bytes > 0:
            self._audio_bytes.inc(audio_bytes)

    def record_cancelled(self) -> None:
        self._cancelled.inc()
        self._finished.labels(status="failed").inc()

    def set_scheduler_state(self, active: int, queued: int) -> None:
        self._active.set(active)
        self._queued.set(queued)

    def get_metrics_response(self) -> tuple[bytes, str]:
        """Return (body, content_type) for the /metrics endpoint."""
        return generate_latest(self._registry), CONTENT_TYPE_LATEST


# Process-wide instance used by the HTTP layer
metrics = JobMetrics()
