"""Job tracking models for long-running vendor work."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional


class JobKind(str, Enum):
    """Vendor job types."""
    VIDEO_GENERATE = "video_generate"
    STITCH = "stitch"
    STYLE_TRANSFER = "style_transfer"
    PORTRAIT = "portrait"
    ANALYSIS = "analysis"


class JobState(str, Enum):
    """Local lifecycle of a tracked job."""
    SUBMITTED = "submitted"
    POLLING = "polling"
    COMPLETED = "completed"
    FAILED = "failed"
    TIMEOUT = "timeout"

    @property
    def terminal(self) -> bool:
        return self in (JobState.COMPLETED, JobState.FAILED, JobState.TIMEOUT)


class JobStatus(str, Enum):
    """Normalised vendor status returned by a poll."""
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


_COMPLETED_STATUSES = {"completed", "complete", "succeeded", "success", "succeed", "done"}
_FAILED_STATUSES = {"failed", "failure", "error", "cancelled", "canceled"}


def normalize_status(raw: Any) -> JobStatus:
    """Map a vendor status string onto processing/completed/failed."""
    if not isinstance(raw, str):
        return JobStatus.PROCESSING
    lowered = raw.strip().lower()
    if lowered in _COMPLETED_STATUSES:
        return JobStatus.COMPLETED
    if lowered in _FAILED_STATUSES:
        return JobStatus.FAILED
    return JobStatus.PROCESSING


def normalize_progress(raw: Any) -> float:
    """Coerce vendor progress into [0, 100]; missing or garbage means 0."""
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return 0.0
    if value != value:  # NaN
        return 0.0
    return max(0.0, min(100.0, value))


@dataclass
class PollResult:
    """Result of a single status poll."""

    job_id: str
    status: JobStatus
    progress: float = 0.0
    result: Any = None
    endpoint: Optional[str] = None
    raw: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "job_id": self.job_id,
            "status": self.status.value,
            "progress": self.progress,
            "result": self.result,
            "endpoint": self.endpoint,
        }


@dataclass
class JobRecord:
    """Local record of a submitted job."""

    job_id: str
    kind: JobKind
    state: JobState = JobState.SUBMITTED
    deployment_id: Optional[str] = None
    progress: float = 0.0
    result: Any = None
    endpoint: Optional[str] = None
    error_message: Optional[str] = None
    submitted_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    metadata: dict = field(default_factory=dict)

    @property
    def status(self) -> JobStatus:
        """Vendor-facing status for this record."""
        if self.state == JobState.COMPLETED:
            return JobStatus.COMPLETED
        if self.state in (JobState.FAILED, JobState.TIMEOUT):
            return JobStatus.FAILED
        return JobStatus.PROCESSING

    def to_dict(self) -> dict:
        return {
            "job_id": self.job_id,
            "kind": self.kind.value,
            "state": self.state.value,
            "status": self.status.value,
            "deployment_id": self.deployment_id,
            "progress": self.progress,
            "result": self.result,
            "endpoint": self.endpoint,
            "error_message": self.error_message,
            "submitted_at": self.submitted_at.isoformat() if self.submitted_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "metadata": self.metadata,
        }
