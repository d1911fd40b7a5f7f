"""
Job Queue
=========

Insertion-ordered history of print jobs. Jobs are only appended, moved to
a terminal status once, or removed explicitly.
"""

import logging
import threading
import time
from typing import List, Optional

from .config import RECENT_JOBS_LIMIT
from .models import PrintJob, FAILED

logger = logging.getLogger(__name__)


class JobQueue:
    """Owned store for print jobs."""

    def __init__(self, recent_limit: int = RECENT_JOBS_LIMIT):
        self.recent_limit = recent_limit
        self._jobs: List[PrintJob] = []
        self._lock = threading.Lock()
        self._last_id = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._jobs)

    def _next_id(self) -> int:
        # Millisecond timestamp, bumped when two jobs land in the same ms
        job_id = max(int(time.time() * 1000), self._last_id + 1)
        self._last_id = job_id
        return job_id

    def create(self, printer_name: str, paper_width: int) -> PrintJob:
        """Create a pending job and append it."""
        with self._lock:
            job = PrintJob(id=self._next_id(), printer_name=printer_name, paper_width=paper_width)
            self._jobs.append(job)
        return job

    def all(self) -> List[PrintJob]:
        with self._lock:
            return list(self._jobs)

    def recent(self) -> List[PrintJob]:
        """Last N jobs, most recent first."""
        with self._lock:
            return list(reversed(self._jobs[-self.recent_limit:]))

    def get(self, job_id: int) -> Optional[PrintJob]:
        with self._lock:
            for job in self._jobs:
                if job.id == job_id:
                    return job
        return None

    def complete(self, job: PrintJob) -> bool:
        """Mark job completed. No-op when the job was removed meanwhile."""
        with self._lock:
            if not self._contains(job):
                logger.debug("Job %s completed after removal, ignoring", job.id)
                return False
            job.complete()
        return True

    def fail(self, job: PrintJob, error: str) -> bool:
        """Mark job failed. No-op when the job was removed meanwhile."""
        with self._lock:
            if not self._contains(job):
                logger.debug("Job %s failed after removal, ignoring", job.id)
                return False
            job.fail(error)
        return True

    def remove(self, job_id: int) -> bool:
        """Remove the first job with this id."""
        with self._lock:
            for index, job in enumerate(self._jobs):
                if job.id == job_id:
                    del self._jobs[index]
                    return True
        return False

    def clear_failed(self) -> int:
        """Remove every failed job. Returns the number removed."""
        with self._lock:
            before = len(self._jobs)
            self._jobs[:] = [j for j in self._jobs if j.status != FAILED]
            return before - len(self._jobs)

    def _contains(self, job: PrintJob) -> bool:
        return any(j is job for j in self._jobs)
