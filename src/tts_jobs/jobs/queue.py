"""
FIFO admission queue of pending job ids.

The queue lock also decides the cancel/admit race: an id leaves the queue
exactly once, either through dequeue_next() (admission) or remove()
(cancellation), and whichever call takes it first wins.
"""
from __future__ import annotations

import threading
from collections import deque
from typing import Deque, List, Optional


class AdmissionQueue:
    """Thread-safe ordered sequence of job ids waiting for a slot."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._ids: Deque[str] = deque()

    def enqueue(self, job_id: str) -> bool:
        """Append an id. Returns False if it is already queued."""
        with self._lock:
            if job_id in self._ids:
                return False
            self._ids.append(job_id)
            return True

    def dequeue_next(self) -> Optional[str]:
        with self._lock:
            if not self._ids:
                return None
            return self._ids.popleft()

    def remove(self, job_id: str) -> bool:
        """Remove a specific id, keeping the order of the rest. False if absent."""
        with self._lock:
            try:
                self._ids.remove(job_id)
            except ValueError:
                return False
            return True

    def snapshot(self) -> List[str]:
        with self._lock:
            return list(self._ids)

    def __len__(self) -> int:
        with self._lock:
            return len(self._ids)

    def __contains__(self, job_id: object) -> bool:
        with self._lock:
            return job_id in self._ids
