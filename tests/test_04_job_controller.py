"""Tests for submit / status / list / cancel / retry."""
from __future__ import annotations

import threading

import pytest

from conftest import FakeSynthesisClient, wait_for


class TestSubmit:
    """Validation and job creation."""

    def test_submit_creates_pending_job(self, make_core):
        from tts_jobs.jobs.models import JobStatus

        core = make_core(start=False)
        job_id = core.controller.submit("Hello there", "Puck", filename="greeting")
        job = core.controller.get_status(job_id)
        assert job.status == JobStatus.PENDING
        assert job.voice_name == "Puck"
        assert job.requested_filename == "greeting"
        assert job_id in core.queue

    @pytest.mark.parametrize("text", ["", "   ", "\n\t", None])
    def test_blank_text_rejected(self, make_core, text):
        from tts_jobs.core.errors import ValidationError

        core = make_core(start=False)
        with pytest.raises(ValidationError):
            core.controller.submit(text, "Kore")
        assert len(core.store) == 0
        assert len(core.queue) == 0

    def test_length_limit(self, make_core):
        from tts_jobs.core.errors import ValidationError

        core = make_core(start=False)
        core.controller.submit("a" * 32000, "Kore")

        with pytest.raises(ValidationError) as exc:
            core.controller.submit("a" * 32001, "Kore")
        assert exc.value.details["reason"] == "TEXT_TOO_LONG"
        assert len(core.store) == 1

    def test_unknown_voice_rejected(self, make_core):
        from tts_jobs.core.errors import ValidationError

        core = make_core(start=False)
        with pytest.raises(ValidationError) as exc:
            core.controller.submit("hello", "NotAVoice")
        assert "Available voices" in exc.value.message
        assert len(core.store) == 0

    def test_queued_gauge_tracks_submissions(self, make_core):
        core = make_core(start=False)
        core.controller.submit("one", "Kore")
        core.controller.submit("two", "Kore")
        assert core.metrics.registry.get_sample_value("tts_jobs_queued") == 2.0
        assert core.metrics.registry.get_sample_value("tts_jobs_active") == 0.0

    def test_estimated_time(self):
        from tts_jobs.services.job_controller import estimated_time

        assert estimated_time("short") == "~5s"
        assert estimated_time("a" * 1000) == "~10s"
        assert estimated_time("a" * 5900) == "~59s"
        assert estimated_time("a" * 6000) == "~1m"
        assert estimated_time("a" * 32000) == "~6m"


class TestQueries:
    """get_status, list_jobs, health."""

    def test_unknown_job(self, make_core):
        from tts_jobs.core.errors import NotFoundError

        core = make_core(start=False)
        with pytest.raises(NotFoundError):
            core.controller.get_status("nope")

    def test_list_newest_first(self, make_core):
        core = make_core(start=False)
        ids = [core.controller.submit(f"text {i}", "Kore") for i in range(5)]
        listed = [j.id for j in core.controller.list_jobs()]
        assert listed == list(reversed(ids))

    def test_list_filter_and_limit(self, make_core):
        core = make_core(start=False)
        ids = [core.controller.submit(f"text {i}", "Kore") for i in range(4)]
        core.controller.cancel(ids[1])

        failed = core.controller.list_jobs(status="failed")
        assert [j.id for j in failed] == [ids[1]]
        pending = core.controller.list_jobs(status="pending", limit=2)
        assert [j.id for j in pending] == [ids[3], ids[2]]
        assert core.controller.list_jobs(limit=0) == []

    def test_list_invalid_status(self, make_core):
        from tts_jobs.core.errors import ValidationError

        core = make_core(start=False)
        with pytest.raises(ValidationError):
            core.controller.list_jobs(status="done")

    def test_health(self, make_core):
        core = make_core(start=False, max_concurrent=2)
        core.controller.submit("a", "Kore")
        core.controller.submit("b", "Kore")
        assert core.controller.health() == {
            "activeJobs": 0,
            "queuedJobs": 2,
            "maxConcurrent": 2,
            "totalJobs": 2,
        }

    def test_health_while_running(self, make_core):
        gate = threading.Event()
        core = make_core(client=FakeSynthesisClient(gate=gate), max_concurrent=1)
        core.controller.submit("a", "Kore")
        core.controller.submit("b", "Kore")
        assert wait_for(lambda: core.controller.health()["activeJobs"] == 1)
        assert core.controller.health()["queuedJobs"] == 1
        gate.set()
        assert core.scheduler.wait_idle(timeout=5)
        assert core.controller.health()["activeJobs"] == 0


class TestCancel:
    """Cancellation of pending jobs only."""

    def test_cancel_pending(self, make_core):
        from tts_jobs.jobs.models import CANCELLED_MESSAGE, JobStatus

        core = make_core(start=False)
        job_id = core.controller.submit("hello", "Kore")
        job = core.controller.cancel(job_id)

        assert job.status == JobStatus.FAILED
        assert job.error == CANCELLED_MESSAGE == "Job cancelled by user"
        assert job.completed_at is not None
        assert job_id not in core.queue
        assert job_id in core.store

    def test_cancelled_job_never_runs(self, make_core):
        core = make_core(start=False)
        job_id = core.controller.submit("never", "Kore")
        core.controller.cancel(job_id)
        core.scheduler.start()
        assert core.scheduler.wait_idle(timeout=5)
        assert core.client.calls == []

    def test_cancel_unknown(self, make_core):
        from tts_jobs.core.errors import NotFoundError

        core = make_core(start=False)
        with pytest.raises(NotFoundError):
            core.controller.cancel("nope")

    def test_cancel_processing_rejected(self, make_core):
        from tts_jobs.core.errors import InvalidStateError
        from tts_jobs.jobs.models import JobStatus

        gate = threading.Event()
        core = make_core(client=FakeSynthesisClient(gate=gate))
        job_id = core.controller.submit("hello", "Kore")
        assert wait_for(lambda: core.store.get(job_id).status == JobStatus.PROCESSING)

        with pytest.raises(InvalidStateError):
            core.controller.cancel(job_id)
        gate.set()
        assert core.scheduler.wait_idle(timeout=5)
        assert core.store.get(job_id).status == JobStatus.COMPLETED

    def test_cancel_twice(self, make_core):
        from tts_jobs.core.errors import InvalidStateError

        core = make_core(start=False)
        job_id = core.controller.submit("hello", "Kore")
        core.controller.cancel(job_id)
        with pytest.raises(InvalidStateError):
            core.controller.cancel(job_id)

    def test_cancel_races_admission(self, make_core):
        """Each job ends up either cancelled or run, never both."""
        from tts_jobs.core.errors import InvalidStateError
        from tts_jobs.jobs.models import CANCELLED_MESSAGE, JobStatus

        client = FakeSynthesisClient()
        core = make_core(client=client, max_concurrent=3)
        ids = [core.controller.submit(f"job {i}", "Kore") for i in range(30)]

        cancelled = set()
        for job_id in ids:
            try:
                core.controller.cancel(job_id)
                cancelled.add(job_id)
            except InvalidStateError:
                pass

        assert core.scheduler.wait_idle(timeout=10)
        ran = {text for text, _ in client.calls}
        for i, job_id in enumerate(ids):
            job = core.store.get(job_id)
            if job_id in cancelled:
                assert job.status == JobStatus.FAILED
                assert job.error == CANCELLED_MESSAGE
                assert f"job {i}" not in ran
            else:
                assert job.status == JobStatus.COMPLETED
                assert f"job {i}" in ran


class TestRetry:
    """Retry chains."""

    def _failed_job(self, core, text="bad"):
        job_id = core.controller.submit(text, "Kore")
        assert core.scheduler.wait_idle(timeout=5)
        return job_id

    def test_retry_creates_linked_job(self, make_core):
        from tts_jobs.jobs.models import JobStatus

        core = make_core(client=FakeSynthesisClient(fail_when=lambda t: True))
        original = self._failed_job(core)

        retried = core.controller.retry(original)
        assert retried.id != original
        assert retried.original_job_id == original
        assert retried.retry_count == 1
        assert retried.text == "bad"
        assert core.store.get(original).status == JobStatus.FAILED

    def test_retry_chain_points_at_root(self, make_core):
        core = make_core(client=FakeSynthesisClient(fail_when=lambda t: True))
        root = self._failed_job(core)

        first = core.controller.retry(root)
        assert core.scheduler.wait_idle(timeout=5)
        second = core.controller.retry(first.id)
        assert second.original_job_id == root
        assert second.retry_count == 2

    def test_retry_limit(self, make_core):
        from tts_jobs.core.errors import RetryLimitError

        core = make_core(client=FakeSynthesisClient(fail_when=lambda t: True), max_retries=2)
        job_id = self._failed_job(core)
        for _ in range(2):
            job_id = core.controller.retry(job_id).id
            assert core.scheduler.wait_idle(timeout=5)

        with pytest.raises(RetryLimitError):
            core.controller.retry(job_id)

    def test_same_root_retried_repeatedly_is_bounded(self, make_core):
        from tts_jobs.core.errors import RetryLimitError

        core = make_core(client=FakeSynthesisClient(fail_when=lambda t: True), max_retries=3)
        root = self._failed_job(core)

        retried = [core.controller.retry(root) for _ in range(3)]
        assert [r.retry_count for r in retried] == [1, 2, 3]
        assert {r.original_job_id for r in retried} == {root}

        with pytest.raises(RetryLimitError):
            core.controller.retry(root)

        # Siblings of the root share its budget
        assert core.scheduler.wait_idle(timeout=5)
        with pytest.raises(RetryLimitError):
            core.controller.retry(retried[0].id)
        assert len(core.store) == 4

    def test_concurrent_retries_respect_bound(self, make_core):
        from tts_jobs.core.errors import RetryLimitError

        core = make_core(client=FakeSynthesisClient(fail_when=lambda t: True), max_retries=3)
        root = self._failed_job(core)
        core.scheduler.stop()

        accepted, rejected = [], []
        lock = threading.Lock()
        barrier = threading.Barrier(8)

        def worker():
            barrier.wait()
            try:
                job = core.controller.retry(root)
            except RetryLimitError:
                with lock:
                    rejected.append(1)
            else:
                with lock:
                    accepted.append(job.retry_count)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sorted(accepted) == [1, 2, 3]
        assert len(rejected) == 5

    def test_retry_of_cancelled_job(self, make_core):
        core = make_core(start=False)
        job_id = core.controller.submit("hello", "Kore")
        core.controller.cancel(job_id)
        retried = core.controller.retry(job_id)
        assert retried.original_job_id == job_id

    def test_retry_requires_failed(self, make_core):
        from tts_jobs.core.errors import InvalidStateError, NotFoundError

        core = make_core(start=False)
        job_id = core.controller.submit("hello", "Kore")
        with pytest.raises(InvalidStateError):
            core.controller.retry(job_id)
        with pytest.raises(NotFoundError):
            core.controller.retry("nope")

    def test_retry_runs_to_completion(self, make_core):
        from tts_jobs.jobs.models import JobStatus

        attempts = {"n": 0}

        def fail_first(text):
            attempts["n"] += 1
            return attempts["n"] == 1

        core = make_core(client=FakeSynthesisClient(fail_when=fail_first))
        original = self._failed_job(core, text="flaky")
        retried = core.controller.retry(original)
        assert core.scheduler.wait_idle(timeout=5)
        assert core.store.get(retried.id).status == JobStatus.COMPLETED
        assert core.metrics.registry.get_sample_value(
            "tts_jobs_submitted_total", {"kind": "retry"}) == 1.0


class TestServiceSingleton:
    """get_service() / reset_service()."""

    def test_singleton_and_reset(self, silence_settings):
        from tts_jobs.services.tts_service import get_service, reset_service

        reset_service()
        try:
            first = get_service(silence_settings)
            assert get_service(silence_settings) is first
            assert first.client.name == "silence"

            reset_service()
            assert get_service(silence_settings) is not first
        finally:
            reset_service()
