"""
Job record model and lifecycle rules.

Lifecycle:
    pending ──> processing ──> completed
       │             └───────> failed
       └──────────────────────> failed   (cancelled before admission)

Terminal statuses (completed, failed) are never left. A retry does not
revive a failed job; it creates a new one linked by original_job_id.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from tts_jobs.core.errors import InvalidStateError

CANCELLED_MESSAGE = "Job cancelled by user"


class JobStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


ALLOWED_TRANSITIONS = {
    JobStatus.PENDING: frozenset({JobStatus.PROCESSING, JobStatus.FAILED}),
    JobStatus.PROCESSING: frozenset({JobStatus.COMPLETED, JobStatus.FAILED}),
    JobStatus.COMPLETED: frozenset(),
    JobStatus.FAILED: frozenset(),
}


def utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


def new_job_id() -> str:
    return uuid.uuid4().hex


def check_transition(job_id: str, current: JobStatus, target: JobStatus) -> None:
    """Raise InvalidStateError unless current -> target is a legal move."""
    if target not in ALLOWED_TRANSITIONS[current]:
        raise InvalidStateError(
            f"Job {job_id} cannot move from {current.value} to {target.value}",
            details={"job_id": job_id, "status": current.value, "target": target.value},
        )


@dataclass(frozen=True)
class JobResult:
    """Output reference of a completed job."""
    filename: str
    size_bytes: int
    duration_seconds: float

    @property
    def download_url(self) -> str:
        return f"/download/{self.filename}"

    @property
    def size_kb(self) -> float:
        return round(self.size_bytes / 1024, 1)


@dataclass
class Job:
    """
    One requested unit of text-to-speech work and its tracked state.

    Instances handed out by JobStore are snapshots; mutate through
    JobStore.update() only.
    """
    id: str
    text: str
    voice_name: str
    requested_filename: Optional[str] = None
    status: JobStatus = JobStatus.PENDING
    progress: int = 0
    created_at: datetime = field(default_factory=utc_now)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    result: Optional[JobResult] = None
    error: Optional[str] = None
    retry_count: int = 0
    original_job_id: Optional[str] = None

    @classmethod
    def create(
        cls,
        text: str,
        voice_name: str,
        requested_filename: Optional[str] = None,
        retry_count: int = 0,
        original_job_id: Optional[str] = None,
    ) -> "Job":
        return cls(
            id=new_job_id(),
            text=text,
            voice_name=voice_name,
            requested_filename=requested_filename,
            retry_count=retry_count,
            original_job_id=original_job_id,
        )

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def chain_root_id(self) -> str:
        """Id of the first job in this job's retry chain."""
        return self.original_job_id or self.id

    def processing_seconds(self) -> Optional[float]:
        if self.started_at is None:
            return None
        end = self.completed_at or utc_now()
        return (end - self.started_at).total_seconds()

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready representation consumed by the HTTP layer and dashboard."""
        d: Dict[str, Any] = {
            "id": self.id,
            "status": self.status.value,
            "progress": self.progress,
            "createdAt": self.created_at.isoformat(),
            "textLength": len(self.text),
            "voiceName": self.voice_name,
            "retryCount": self.retry_count,
        }
        if self.started_at is not None:
            d["startedAt"] = self.started_at.isoformat()
            d["processingTime"] = round(self.processing_seconds(), 3)
        if self.completed_at is not None:
            d["completedAt"] = self.completed_at.isoformat()
        if self.requested_filename:
            d["requestedFilename"] = self.requested_filename
        if self.result is not None:
            d["filename"] = self.result.filename
            d["downloadUrl"] = self.result.download_url
            d["duration"] = self.result.duration_seconds
            d["fileSize"] = self.result.size_kb
        if self.error is not None:
            d["error"] = self.error
        if self.original_job_id is not None:
            d["originalJobId"] = self.original_job_id
        return d
