"""In-memory store for background refinement jobs with TTL cleanup.

WHY: Auto-refinement runs several analyze/improve rounds, each a paced
Gemini call, so it takes minutes. The HTTP API returns a job ID at once
and the client polls for progress. An in-memory store is enough for a
single-user tool with no persistence requirements.

HOW: Three components work together:
  JobStatus  -- enum of valid job states
  Job        -- dataclass holding the job's input, progress, and result
  JobStore   -- thread-safe dict-based store with create/update/get/list/
                delete and TTL cleanup

RULES:
- All store mutations are protected by threading.Lock
- TTL expiry only removes terminal jobs (completed/failed)
- Job IDs are uuid4 hex strings generated at creation time
- Default TTL is 1 hour (3600 seconds)
"""

from __future__ import annotations

import enum
import logging
import threading
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

# Default time-to-live for completed/failed jobs (seconds)
DEFAULT_TTL_SECONDS = 3600


class JobStatus(str, enum.Enum):
    """Valid states for a refinement job.

    HOW: Inherits from str so values serialize cleanly to JSON.

    RULES:
    - pending: job created, not yet started
    - running: analyze/improve rounds in progress
    - completed: result is ready
    - failed: unrecoverable error at any round
    """

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


TERMINAL_STATUSES = (JobStatus.COMPLETED, JobStatus.FAILED)


@dataclass
class Job:
    """Metadata and state for a single refinement job.

    RULES:
    - id: uuid4 hex string, immutable after creation
    - script: the starting script
    - config: target score and attempt limit the job runs with
    - progress: latest {"attempt": n, "hookingScore": x} report, or None
    - result: RefinementResult-shaped dict once completed, else None
    - error: error message string if status is FAILED, else None
    """

    id: str
    status: JobStatus
    script: str
    created_at: float
    updated_at: float
    completed_at: Optional[float] = None
    error: Optional[str] = None
    progress: Optional[Dict[str, Any]] = None
    config: Dict[str, Any] = field(default_factory=dict)
    result: Optional[Dict[str, Any]] = None


class JobStore:
    """Thread-safe in-memory store for refinement jobs.

    WHY: Request handlers and background tasks touch job state at the same
    time. A single store with locking gives them one consistent view.

    RULES:
    - All public methods that mutate state acquire self._lock
    - create_job() raises ValueError once max_jobs jobs are pending or
      running; finished jobs wait for cleanup without taking a slot
    - get_job() returns None for missing job IDs (no exceptions)
    - update_job() applies only the non-None arguments
    """

    def __init__(
        self,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        max_jobs: int = 20,
        clock=time.time,
    ) -> None:
        self._jobs: Dict[str, Job] = {}
        self._lock = threading.Lock()
        self._ttl_seconds = ttl_seconds
        self._clock = clock
        self.max_jobs = max_jobs

    def create_job(self, script: str, config: Optional[Dict[str, Any]] = None) -> Job:
        """Create a new job in PENDING state."""
        with self._lock:
            active = sum(1 for j in self._jobs.values() if j.status not in TERMINAL_STATUSES)
            if active >= self.max_jobs:
                raise ValueError(
                    "Maximum number of concurrent jobs ({}) reached".format(self.max_jobs)
                )

            now = self._clock()
            job = Job(
                id=uuid.uuid4().hex,
                status=JobStatus.PENDING,
                script=script,
                created_at=now,
                updated_at=now,
                config=config or {},
            )
            self._jobs[job.id] = job

        logger.info("Created refinement job %s (%d chars)", job.id, len(script))
        return job

    def get_job(self, job_id: str) -> Optional[Job]:
        """Retrieve a job by ID, or None if not found.

        The returned Job is the live instance, not a copy.
        """
        with self._lock:
            return self._jobs.get(job_id)

    def list_jobs(self) -> List[Job]:
        """All jobs, oldest first."""
        with self._lock:
            return sorted(self._jobs.values(), key=lambda j: j.created_at)

    def update_job(
        self,
        job_id: str,
        status: Optional[JobStatus] = None,
        error: Optional[str] = None,
        progress: Optional[Dict[str, Any]] = None,
        result: Optional[Dict[str, Any]] = None,
    ) -> Optional[Job]:
        """Update a job's mutable fields.

        RULES:
        - Returns the updated Job, or None if job_id not found
        - updated_at is always bumped
        - completed_at is set when status becomes COMPLETED or FAILED
        """
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                return None

            now = self._clock()
            if status is not None:
                job.status = status
            if error is not None:
                job.error = error
            if progress is not None:
                job.progress = progress
            if result is not None:
                job.result = result

            job.updated_at = now
            if job.status in TERMINAL_STATUSES:
                job.completed_at = now

            return job

    def delete_job(self, job_id: str) -> bool:
        """Remove a job. Returns True if it existed."""
        with self._lock:
            job = self._jobs.pop(job_id, None)
        if job is None:
            return False
        logger.info("Deleted refinement job %s", job_id)
        return True

    def cleanup_expired(self) -> int:
        """Remove terminal jobs whose completed_at is older than the TTL.

        Returns the count of removed jobs.
        """
        now = self._clock()
        expired: List[Job] = []

        with self._lock:
            for job_id, job in list(self._jobs.items()):
                if job.status not in TERMINAL_STATUSES or job.completed_at is None:
                    continue
                if now - job.completed_at > self._ttl_seconds:
                    expired.append(self._jobs.pop(job_id))

        for job in expired:
            logger.info("Expired job %s (completed %.0fs ago)", job.id, now - job.completed_at)
        return len(expired)
