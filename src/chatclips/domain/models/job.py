"""Job domain model - one unit of pipeline work with its own retry budget."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional


class JobType(str, Enum):
    """Pipeline stages a job can drive."""

    ANALYZE_VOD = "analyze_vod"
    EXTRACT_CLIP = "extract_clip"
    UPLOAD_CLIP = "upload_clip"


class JobStatus(str, Enum):
    """Job lifecycle states.

    PENDING -> PROCESSING -> COMPLETED | PENDING (retry) | FAILED
    """

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        """Whether no further transition can happen."""
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


@dataclass
class Job:
    """A processing job as stored in the job table."""

    type: JobType
    vod_id: int
    user_id: str
    id: Optional[int] = None
    status: JobStatus = JobStatus.PENDING
    parameters: dict[str, Any] = field(default_factory=dict)
    attempts: int = 0
    priority: int = 0
    progress: int = 0
    result: Optional[dict[str, Any]] = None
    error: Optional[str] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @classmethod
    def create(
        cls,
        job_type: JobType,
        vod_id: int,
        user_id: str,
        parameters: Optional[dict[str, Any]] = None,
        priority: int = 0,
    ) -> "Job":
        """Build a new PENDING job."""
        return cls(
            type=JobType(job_type),
            vod_id=vod_id,
            user_id=user_id,
            parameters=dict(parameters or {}),
            priority=priority,
        )


@dataclass
class JobResult:
    """Outcome returned by a processor.

    Processors report success or failure through this object instead of
    raising, the queue turns it into the job's next state.
    """

    success: bool
    data: Optional[dict[str, Any]] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, data: Optional[dict[str, Any]] = None) -> "JobResult":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str) -> "JobResult":
        return cls(success=False, error=error)
