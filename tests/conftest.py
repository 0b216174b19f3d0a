"""Shared fixtures: a controllable synthesis client and a wired job core."""
from __future__ import annotations

import threading
import time
from typing import Callable, List, Optional, Tuple

import pytest

from tts_jobs.core.errors import SynthesisError
from tts_jobs.synthesis.base import SynthesisClient


class FakeSynthesisClient(SynthesisClient):
    """
    Sleeps for `delay` seconds and returns `pcm`, or raises SynthesisError
    for texts matched by `fail_when`.

    Tracks how many calls run at once so tests can check the bound.
    """
    name = "fake"

    def __init__(
        self,
        delay: float = 0.0,
        pcm: bytes = b"\x00\x00" * 2400,
        fail_when: Optional[Callable[[str], bool]] = None,
        gate: Optional[threading.Event] = None,
    ):
        super().__init__(sample_rate=24000)
        self.delay = delay
        self.pcm = pcm
        self.fail_when = fail_when
        self.gate = gate
        self.calls: List[Tuple[str, str]] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self._lock = threading.Lock()

    def synthesize(self, text: str, voice_name: str) -> bytes:
        with self._lock:
            self.calls.append((text, voice_name))
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.gate is not None:
                self.gate.wait(timeout=10)
            if self.delay:
                time.sleep(self.delay)
            if self.fail_when is not None and self.fail_when(text):
                raise SynthesisError(f"provider rejected: {text}")
            return self.pcm
        finally:
            with self._lock:
                self.in_flight -= 1


class Core:
    """Store, queue, scheduler and controller wired around one client."""

    def __init__(self, client: SynthesisClient, output_dir, max_concurrent: int = 3,
                 max_retries: int = 3, poll_interval_s: float = 5.0):
        from tts_jobs.audio.storage import AudioStore
        from tts_jobs.core.metrics import JobMetrics
        from tts_jobs.jobs.queue import AdmissionQueue
        from tts_jobs.jobs.scheduler import Scheduler
        from tts_jobs.jobs.store import JobStore
        from tts_jobs.services.job_controller import JobController

        self.client = client
        self.metrics = JobMetrics()
        self.audio_store = AudioStore(output_dir, sample_rate=24000)
        self.store = JobStore()
        self.queue = AdmissionQueue()
        self.scheduler = Scheduler(
            self.store, self.queue, client, self.audio_store,
            max_concurrent=max_concurrent,
            poll_interval_s=poll_interval_s,
            metrics=self.metrics,
        )
        self.controller = JobController(
            self.store, self.queue, self.scheduler,
            max_retries=max_retries,
            metrics=self.metrics,
        )


def wait_for(predicate: Callable[[], bool], timeout: float = 5.0, interval: float = 0.01) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


@pytest.fixture
def fake_client():
    return FakeSynthesisClient()


@pytest.fixture
def make_core(tmp_path):
    """Factory for a job core; started schedulers are stopped on teardown."""
    cores: List[Core] = []

    def _make(client: Optional[SynthesisClient] = None, start: bool = True, **kwargs) -> Core:
        core = Core(client or FakeSynthesisClient(), tmp_path / "out", **kwargs)
        if start:
            core.scheduler.start()
        cores.append(core)
        return core

    yield _make

    for core in cores:
        core.scheduler.stop()


@pytest.fixture
def silence_settings(tmp_path):
    """Settings using the offline provider and a temporary output directory."""
    from tts_jobs.core.config import Settings

    return Settings(raw={
        "jobs": {"max_concurrent": 2, "poll_interval_s": 0.5},
        "synthesis": {"provider": "silence"},
        "storage": {"output_dir": str(tmp_path / "uploads")},
    })
