"""Job repository.

Every status transition is a conditional ``UPDATE`` whose ``WHERE`` clause
names the state the job must currently be in. The row count tells the
caller whether it won, so two workers polling the same table can never
both process one job, and a late progress write can never overwrite a
terminal state.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Set

from sqlalchemy import select, update

from ....domain.models import Job, JobStatus, JobType
from ..mappers import job_to_domain, job_to_persistence
from ..models import JobModel
from .base_repository import BaseRepository

ABANDONED_ERROR = "Job abandoned while processing"


def _now() -> datetime:
    return datetime.now(timezone.utc)


class JobRepository(BaseRepository[Job, JobModel]):
    """Stores jobs and performs their guarded state transitions."""

    model_class = JobModel
    to_domain = staticmethod(job_to_domain)
    to_persistence = staticmethod(job_to_persistence)

    async def list_for_user(self, user_id: str, limit: int = 10) -> List[Job]:
        """Most recent jobs of an owner."""
        stmt = (
            select(JobModel)
            .where(JobModel.user_id == user_id)
            .order_by(JobModel.created_at.desc(), JobModel.id.desc())
            .limit(limit)
        )
        return await self._find(stmt)

    async def list_for_vod(self, vod_id: int) -> List[Job]:
        """Jobs of a VOD in creation order."""
        stmt = (
            select(JobModel)
            .where(JobModel.vod_id == vod_id)
            .order_by(JobModel.created_at, JobModel.id)
        )
        return await self._find(stmt)

    async def pending_upload_paths(self) -> Set[str]:
        """Local clip files that PENDING or PROCESSING upload jobs still need."""
        stmt = select(JobModel.parameters).where(
            JobModel.type == JobType.UPLOAD_CLIP.value,
            JobModel.status.in_(
                (JobStatus.PENDING.value, JobStatus.PROCESSING.value)
            ),
        )
        result = await self.session.execute(stmt)
        return {
            parameters["local_path"]
            for parameters in result.scalars().all()
            if parameters and parameters.get("local_path")
        }

    async def next_candidates(self, max_attempts: int, limit: int = 5) -> List[int]:
        """IDs of claimable jobs, best first.

        Ordered by priority descending, then creation time and ID ascending.
        """
        stmt = (
            select(JobModel.id)
            .where(
                JobModel.status == JobStatus.PENDING.value,
                JobModel.attempts < max_attempts,
            )
            .order_by(
                JobModel.priority.desc(), JobModel.created_at, JobModel.id
            )
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def claim(
        self, job_id: int, max_attempts: int, now: Optional[datetime] = None
    ) -> bool:
        """Move a PENDING job to PROCESSING and count the attempt.

        Returns:
            True if this caller won the job
        """
        stmt = (
            update(JobModel)
            .where(
                JobModel.id == job_id,
                JobModel.status == JobStatus.PENDING.value,
                JobModel.attempts < max_attempts,
            )
            .values(
                status=JobStatus.PROCESSING.value,
                started_at=now or _now(),
                attempts=JobModel.attempts + 1,
                progress=0,
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1

    async def claim_next(
        self, max_attempts: int, now: Optional[datetime] = None
    ) -> Optional[Job]:
        """Claim the best eligible job, skipping any lost to another worker."""
        while True:
            candidates = await self.next_candidates(max_attempts)
            if not candidates:
                return None
            for job_id in candidates:
                if await self.claim(job_id, max_attempts, now):
                    return await self.get(job_id)

    async def mark_completed(
        self,
        job_id: int,
        result: Optional[Dict[str, Any]] = None,
        now: Optional[datetime] = None,
    ) -> bool:
        stmt = (
            update(JobModel)
            .where(
                JobModel.id == job_id,
                JobModel.status == JobStatus.PROCESSING.value,
            )
            .values(
                status=JobStatus.COMPLETED.value,
                completed_at=now or _now(),
                result=result,
                progress=100,
            )
            .execution_options(synchronize_session=False)
        )
        outcome = await self.session.execute(stmt)
        return outcome.rowcount == 1

    async def mark_failed(
        self, job_id: int, error: str, now: Optional[datetime] = None
    ) -> bool:
        """Fail a PROCESSING job without retry."""
        stmt = (
            update(JobModel)
            .where(
                JobModel.id == job_id,
                JobModel.status == JobStatus.PROCESSING.value,
            )
            .values(
                status=JobStatus.FAILED.value,
                completed_at=now or _now(),
                error=error,
            )
            .execution_options(synchronize_session=False)
        )
        outcome = await self.session.execute(stmt)
        return outcome.rowcount == 1

    async def record_failure(
        self, job_id: int, error: str, max_attempts: int, now: Optional[datetime] = None
    ) -> Optional[JobStatus]:
        """Apply the retry policy to a failed attempt.

        The job becomes FAILED once its attempts reach ``max_attempts`` and
        PENDING otherwise. The error is kept either way.

        Returns:
            The new status, or None if the job was not PROCESSING
        """
        exhausted = (
            update(JobModel)
            .where(
                JobModel.id == job_id,
                JobModel.status == JobStatus.PROCESSING.value,
                JobModel.attempts >= max_attempts,
            )
            .values(
                status=JobStatus.FAILED.value,
                completed_at=now or _now(),
                error=error,
            )
            .execution_options(synchronize_session=False)
        )
        if (await self.session.execute(exhausted)).rowcount == 1:
            return JobStatus.FAILED

        retry = (
            update(JobModel)
            .where(
                JobModel.id == job_id,
                JobModel.status == JobStatus.PROCESSING.value,
            )
            .values(status=JobStatus.PENDING.value, error=error)
            .execution_options(synchronize_session=False)
        )
        if (await self.session.execute(retry)).rowcount == 1:
            return JobStatus.PENDING
        return None

    async def update_progress(self, job_id: int, progress: int) -> bool:
        """Record progress of a running job; ignored once it left PROCESSING."""
        stmt = (
            update(JobModel)
            .where(
                JobModel.id == job_id,
                JobModel.status == JobStatus.PROCESSING.value,
            )
            .values(progress=max(0, min(int(progress), 100)))
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1

    async def stale_exhausted(self, cutoff: datetime, max_attempts: int) -> List[Job]:
        """PROCESSING jobs claimed before ``cutoff`` with no attempts left."""
        stmt = select(JobModel).where(
            JobModel.status == JobStatus.PROCESSING.value,
            JobModel.started_at < cutoff,
            JobModel.attempts >= max_attempts,
        )
        return await self._find(stmt)

    async def requeue_stale(
        self, cutoff: datetime, max_attempts: int, now: Optional[datetime] = None
    ) -> int:
        """Recover jobs left PROCESSING by a worker that went away.

        Jobs claimed before ``cutoff`` go back to PENDING, or to FAILED when
        their attempts are used up.

        Returns:
            Number of recovered jobs
        """
        stale = (
            JobModel.status == JobStatus.PROCESSING.value,
            JobModel.started_at < cutoff,
        )
        failed = await self.session.execute(
            update(JobModel)
            .where(*stale, JobModel.attempts >= max_attempts)
            .values(
                status=JobStatus.FAILED.value,
                completed_at=now or _now(),
                error=ABANDONED_ERROR,
            )
            .execution_options(synchronize_session=False)
        )
        requeued = await self.session.execute(
            update(JobModel)
            .where(*stale)
            .values(status=JobStatus.PENDING.value, error=ABANDONED_ERROR)
            .execution_options(synchronize_session=False)
        )
        return failed.rowcount + requeued.rowcount
