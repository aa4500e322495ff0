"""Job progress store for cart-fill runs.

Single-owner registry of job state keyed by job id. The orchestrator is the
only writer for a given job; polling callers read snapshots. Entries expire
after a retention window counted from the last update, and expiry is applied
lazily on read.

No operation raises: an unknown or expired id is a normal outcome.
"""

import threading
import time
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

from src.models.models import CartFillJob
from src.utils.logger import job_logger


DEFAULT_TTL_SECONDS = 3600

# Identity and timestamp are owned by the store
UPDATABLE_FIELDS = frozenset(CartFillJob.model_fields) - {"job_id", "updated_at"}


class JobStore(ABC):
    """Keyed job registry used by the cart-fill orchestrator and the job API."""

    @abstractmethod
    def create(self, job_id: str) -> CartFillJob:
        """Insert a new job in the ``started`` state."""

    @abstractmethod
    def update(self, job_id: str, **fields: Any) -> None:
        """Replace the given fields on a stored job; no-op for unknown ids."""

    @abstractmethod
    def get(self, job_id: str) -> Optional[CartFillJob]:
        """Return the current job or None if absent or expired."""


class InMemoryJobStore(JobStore):
    """Process-local job store with time-based expiry.

    Args:
        ttl_seconds: Retention window measured from the job's last update.
        clock: Monotonic time source in seconds; injectable for tests.
    """

    def __init__(self, ttl_seconds: float = DEFAULT_TTL_SECONDS, clock: Callable[[], float] = time.monotonic) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._jobs: dict[str, CartFillJob] = {}
        self._lock = threading.Lock()

    def create(self, job_id: str) -> CartFillJob:
        with self._lock:
            existing = self._jobs.get(job_id)
            if existing is not None:
                job_logger(job_id).warning("Job already exists, keeping current state")
                return existing.model_copy(deep=True)
            job = CartFillJob(job_id=job_id, updated_at=self._clock())
            self._jobs[job_id] = job
            return job.model_copy(deep=True)

    def update(self, job_id: str, **fields: Any) -> None:
        unknown = {key for key in fields if key not in UPDATABLE_FIELDS}
        if unknown:
            job_logger(job_id).warning(f"Ignoring non-updatable job fields: {sorted(unknown)}")
            fields = {key: value for key, value in fields.items() if key not in unknown}

        with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                job_logger(job_id).debug("Dropping update for unknown or expired job")
                return
            if job.is_terminal:
                job_logger(job_id).debug(f"Dropping update for finished job ({job.status})")
                return
            self._jobs[job_id] = job.model_copy(update={**fields, "updated_at": self._clock()}, deep=True)

    def get(self, job_id: str) -> Optional[CartFillJob]:
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                return None
            if self._clock() - job.updated_at > self.ttl_seconds:
                del self._jobs[job_id]
                job_logger(job_id).debug("Evicted expired job")
                return None
            return job.model_copy(deep=True)

    def __len__(self) -> int:
        with self._lock:
            return len(self._jobs)
