"""
Background job core.

    - models.py: Job record, statuses, lifecycle table
    - store.py: JobStore (id -> Job)
    - queue.py: AdmissionQueue (FIFO of pending ids)
    - scheduler.py: Scheduler (bounded execution of queued jobs)
"""
from .models import CANCELLED_MESSAGE, Job, JobResult, JobStatus
from .queue import AdmissionQueue
from .scheduler import Scheduler, SchedulerStats
from .store import JobStore

__all__ = [
    "AdmissionQueue",
    "CANCELLED_MESSAGE",
    "Job",
    "JobResult",
    "JobStatus",
    "JobStore",
    "Scheduler",
    "SchedulerStats",
]
