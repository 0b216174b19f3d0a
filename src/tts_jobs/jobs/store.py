"""
In-memory job table.

The store is the single source of truth for job state. Every read returns a
copy taken under the lock and every write replaces the stored record in one
step, so a concurrent reader sees either the state before a transition or
the state after it, never a mix.

Entries are never removed; cancellation is a terminal status.
"""
from __future__ import annotations

import dataclasses
import threading
from typing import Any, Dict, List

from tts_jobs.core.errors import NotFoundError
from tts_jobs.jobs.models import Job, JobStatus, check_transition


class JobStore:
    """Thread-safe mapping from job id to Job."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._jobs: Dict[str, Job] = {}

    def put(self, job: Job) -> None:
        """Insert a new job. Ids are never reused, so a duplicate is a bug."""
        with self._lock:
            if job.id in self._jobs:
                raise ValueError(f"job id already stored: {job.id}")
            self._jobs[job.id] = dataclasses.replace(job)

    def get(self, job_id: str) -> Job:
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                raise NotFoundError(f"Job not found: {job_id}", details={"job_id": job_id})
            return dataclasses.replace(job)

    def update(self, job_id: str, **changes: Any) -> Job:
        """
        Apply field changes to one job atomically and return the new snapshot.

        A `status` change is checked against the lifecycle table; an illegal
        move raises InvalidStateError and leaves the record untouched.
        Progress never decreases.
        """
        with self._lock:
            current = self._jobs.get(job_id)
            if current is None:
                raise NotFoundError(f"Job not found: {job_id}", details={"job_id": job_id})

            target = changes.get("status")
            if target is not None and target != current.status:
                check_transition(job_id, current.status, JobStatus(target))

            if "progress" in changes:
                changes["progress"] = max(current.progress, int(changes["progress"]))

            updated = dataclasses.replace(current, **changes)
            self._jobs[job_id] = updated
            return dataclasses.replace(updated)

    def list_all(self) -> List[Job]:
        """Snapshot of every job in insertion order."""
        with self._lock:
            return [dataclasses.replace(j) for j in self._jobs.values()]

    def count_by_status(self, status: JobStatus) -> int:
        with self._lock:
            return sum(1 for j in self._jobs.values() if j.status == status)

    def __len__(self) -> int:
        with self._lock:
            return len(self._jobs)

    def __contains__(self, job_id: object) -> bool:
        with self._lock:
            return job_id in self._jobs
