"""Thread-safe store of job records."""

import threading
import uuid
from copy import deepcopy
from typing import Any, Callable, Dict, List, Optional

from ..errors import NotFoundError
from ..models import JobKind, JobRecord, JobState
from ..models.scene import utc_now


class JobRegistry:
    """In-memory job records shared by the pollers of one studio."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._jobs: Dict[str, JobRecord] = {}

    def add(self, record: JobRecord) -> JobRecord:
        with self._lock:
            self._jobs[record.job_id] = deepcopy(record)
        return deepcopy(record)

    def get(self, job_id: str) -> JobRecord:
        """Return a copy of a job record.

        Raises:
            NotFoundError: If the job is unknown.
        """
        with self._lock:
            record = self._jobs.get(job_id)
            if record is None:
                raise NotFoundError("Job not found", details={"job_id": job_id})
            return deepcopy(record)

    def contains(self, job_id: str) -> bool:
        with self._lock:
            return job_id in self._jobs

    def update(self, job_id: str, mutate: Callable[[JobRecord], None]) -> JobRecord:
        """Apply a mutation to a stored record under the registry lock."""
        with self._lock:
            record = self._jobs.get(job_id)
            if record is None:
                raise NotFoundError("Job not found", details={"job_id": job_id})
            mutate(record)
            return deepcopy(record)

    def list(self, kind: Optional[JobKind] = None) -> List[JobRecord]:
        with self._lock:
            return [
                deepcopy(record)
                for record in self._jobs.values()
                if kind is None or record.kind == kind
            ]

    def record_completed(
        self,
        kind: JobKind,
        result: Any,
        metadata: Optional[dict] = None,
    ) -> JobRecord:
        """Register a synchronous vendor call as an already-completed job."""
        now = utc_now()
        record = JobRecord(
            job_id=f"{kind.value}-{uuid.uuid4().hex[:12]}",
            kind=kind,
            state=JobState.COMPLETED,
            progress=100.0,
            result=result,
            submitted_at=now,
            completed_at=now,
            metadata=metadata or {},
        )
        return self.add(record)
