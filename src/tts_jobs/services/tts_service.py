"""
TTSService - wiring for the job core and the synchronous path.

One TTSService owns one of each collaborator:

    SynthesisClient ─┬─> Scheduler <── AdmissionQueue
                     │       │
    AudioStore ──────┤       └──> JobStore
                     │
                     └─> synchronous synthesize_to_file / synthesize_base64

    JobController fronts JobStore, AdmissionQueue and Scheduler.

The synchronous path calls the client directly on the request thread; it
does not go through the queue and does not count toward max_concurrent.

Example:
    >>> from tts_jobs.core.config import Settings
    >>> from tts_jobs.services import TTSService
    >>>
    >>> service = TTSService(Settings(raw={"synthesis": {"provider": "silence"}}))
    >>> service.start()
    >>> job_id = service.controller.submit("Hello there", "Kore")
    >>> service.scheduler.wait_idle(timeout=10)
    >>> service.controller.get_status(job_id).status
    <JobStatus.COMPLETED: 'completed'>
    >>> service.stop()
"""
from __future__ import annotations

import base64
import threading
import time
from typing import Any, Dict, Optional

from tts_jobs.audio.storage import AudioStore
from tts_jobs.audio.wav import pcm_duration_seconds, pcm_to_wav
from tts_jobs.core.config import Settings
from tts_jobs.core.logging import fail, get_logger, info, success
from tts_jobs.core.metrics import JobMetrics, metrics as global_metrics
from tts_jobs.jobs.models import JobResult, JobStatus
from tts_jobs.jobs.queue import AdmissionQueue
from tts_jobs.jobs.scheduler import Scheduler
from tts_jobs.jobs.store import JobStore
from tts_jobs.services.job_controller import JobController
from tts_jobs.services.validators import validate_filename_hint, validate_text, validate_voice
from tts_jobs.synthesis.base import SynthesisClient, make_client

_LOG = get_logger("tts-jobs.service")


class TTSService:
    """
    Owns the job core and the synchronous conversion path.

    Args:
        settings: Loaded settings.
        client: Synthesis client to use instead of the configured provider.
        metrics: Metrics sink; defaults to the process-wide instance.
    """

    def __init__(
        self,
        settings: Settings,
        client: Optional[SynthesisClient] = None,
        metrics: Optional[JobMetrics] = None,
    ):
        self.settings = settings
        self.config = settings.get_service_config()
        self.metrics = metrics or global_metrics

        self.client = client or make_client(self.config)
        self.audio_store = AudioStore(
            self.config.storage.output_dir,
            sample_rate=self.config.synthesis.sample_rate,
        )
        self.store = JobStore()
        self.queue = AdmissionQueue()
        self.scheduler = Scheduler(
            self.store,
            self.queue,
            self.client,
            self.audio_store,
            max_concurrent=self.config.jobs.max_concurrent,
            poll_interval_s=self.config.jobs.poll_interval_s,
            metrics=self.metrics,
        )
        self.controller = JobController(
            self.store,
            self.queue,
            self.scheduler,
            voices=settings.voices,
            max_retries=self.config.jobs.max_retries,
            max_text_chars=self.config.jobs.max_text_chars,
            text_preview_chars=self.config.logging.text_preview_chars,
            metrics=self.metrics,
        )
        self._started_at = time.time()

    @property
    def default_voice(self) -> str:
        return self.config.synthesis.default_voice

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def start(self) -> None:
        self.scheduler.start()
        info(
            _LOG, "service_started",
            provider=self.client.name,
            max_concurrent=self.config.jobs.max_concurrent,
            output_dir=str(self.audio_store.output_dir),
        )

    def stop(self) -> None:
        self.scheduler.stop()
        self.client.close()
        info(_LOG, "service_stopped")

    def get_health_info(self) -> Dict[str, Any]:
        health = self.controller.health()
        return {
            "status": "healthy",
            "timestamp": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
            "availableVoices": len(self.controller.voices()),
            "activeJobs": health["activeJobs"],
            "queuedJobs": health["queuedJobs"],
            "maxConcurrent": health["maxConcurrent"],
            "totalJobs": health["totalJobs"],
            "jobsByStatus": {s.value: self.store.count_by_status(s) for s in JobStatus},
            "provider": self.client.name,
            "uptime": round(time.time() - self._started_at, 1),
        }

    # =========================================================================
    # Synchronous path
    # =========================================================================

    def _synthesize_now(self, text: Optional[str], voice_name: Optional[str]) -> bytes:
        text = validate_text(text, max_length=self.config.jobs.max_text_chars)
        voice_name = validate_voice(voice_name or self.default_voice, self.controller.voices())

        t0 = time.perf_counter()
        info(_LOG, "sync_synthesis", chars=len(text), voice=voice_name)
        try:
            pcm = self.client.synthesize(text, voice_name)
        except Exception as e:
            fail(_LOG, "sync_synthesis_failed", error=str(e), seconds=round(time.perf_counter() - t0, 3))
            raise
        success(_LOG, "sync_synthesis_done", pcm_bytes=len(pcm), seconds=round(time.perf_counter() - t0, 3))
        return pcm

    def synthesize_to_file(
        self,
        text: Optional[str],
        voice_name: Optional[str] = None,
        filename: Optional[str] = None,
    ) -> JobResult:
        """
        Convert text and write the WAV into the output directory.

        Raises:
            ValidationError: Bad text, voice or filename.
            SynthesisError: Provider failure.
        """
        filename = validate_filename_hint(filename)
        pcm = self._synthesize_now(text, voice_name)
        return self.audio_store.save_pcm(pcm, filename_hint=filename)

    def synthesize_base64(self, text: Optional[str], voice_name: Optional[str] = None) -> Dict[str, Any]:
        """Convert text and return the WAV inline, base64-encoded. Nothing is written."""
        pcm = self._synthesize_now(text, voice_name)
        wav = pcm_to_wav(pcm, self.config.synthesis.sample_rate)
        return {
            "audioData": base64.b64encode(wav).decode("ascii"),
            "duration": pcm_duration_seconds(len(pcm), self.config.synthesis.sample_rate),
            "fileSize": round(len(wav) / 1024, 1),
        }


# =============================================================================
# Singleton
# =============================================================================

_service: Optional[TTSService] = None
_service_lock = threading.Lock()


def get_service(settings: Settings) -> TTSService:
    """
    Get or create the process-wide TTSService.

    Uses double-checked locking so concurrent first requests build only one
    service.
    """
    global _service
    if _service is None:
        with _service_lock:
            if _service is None:
                _service = TTSService(settings)
    return _service


def reset_service() -> None:
    """Drop the singleton (tests)."""
    global _service
    with _service_lock:
        _service = None
