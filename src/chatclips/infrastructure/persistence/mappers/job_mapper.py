"""Job mapping functions."""

from ....domain.models import Job, JobStatus, JobType
from ..models import JobModel
from .base import ensure_utc


def job_to_domain(model: JobModel) -> Job:
    return Job(
        id=model.id,
        type=JobType(model.type),
        status=JobStatus(model.status),
        vod_id=model.vod_id,
        user_id=model.user_id,
        parameters=dict(model.parameters or {}),
        attempts=model.attempts,
        priority=model.priority,
        progress=model.progress,
        result=model.result,
        error=model.error,
        created_at=ensure_utc(model.created_at),
        started_at=ensure_utc(model.started_at),
        completed_at=ensure_utc(model.completed_at),
    )


def job_to_persistence(entity: Job) -> JobModel:
    return JobModel(
        id=entity.id,
        type=entity.type.value,
        status=entity.status.value,
        vod_id=entity.vod_id,
        user_id=entity.user_id,
        parameters=dict(entity.parameters),
        attempts=entity.attempts,
        priority=entity.priority,
        progress=entity.progress,
        result=entity.result,
        error=entity.error,
        created_at=entity.created_at,
        started_at=entity.started_at,
        completed_at=entity.completed_at,
    )
