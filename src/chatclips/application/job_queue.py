"""
Polling job queue.

Each ``JobQueue`` runs one background loop that claims and processes one
job per tick. Several queues (in one process or many) may poll the same
table: claims are conditional updates, so a job is processed by at most
one of them at a time.
"""

import asyncio
import os
import socket
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import structlog

from ..domain.exceptions import ProcessorNotRegisteredError
from ..domain.models import Job, JobResult, JobStatus, JobType
from ..domain.protocols import JobProcessor
from ..infrastructure.database import Database
from ..infrastructure.observability import job_span
from ..infrastructure.persistence.repositories import ClipRepository, JobRepository

logger = structlog.get_logger(__name__)

CLIP_JOB_TYPES = frozenset({JobType.EXTRACT_CLIP, JobType.UPLOAD_CLIP})


def default_worker_name() -> str:
    return f"{socket.gethostname()}-{os.getpid()}"


def clip_of(job: Job) -> Optional[int]:
    """ID of the clip a clip-stage job works on, if any."""
    if job.type not in CLIP_JOB_TYPES:
        return None
    clip_id = (job.parameters or {}).get("clip_id")
    return clip_id if isinstance(clip_id, int) else None


class JobQueue:
    """
    Database-backed job scheduler.

    Jobs move PENDING -> PROCESSING -> COMPLETED, back to PENDING for a
    retry, or to FAILED once ``max_attempts`` claims have failed. All of
    those transitions happen here; processors only return a ``JobResult``.
    """

    def __init__(
        self,
        database: Database,
        max_attempts: int = 3,
        poll_interval_ms: int = 5000,
        job_timeout_seconds: Optional[float] = None,
        stale_after_seconds: Optional[float] = None,
        worker_name: Optional[str] = None,
    ):
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")

        self.database = database
        self.max_attempts = max_attempts
        self.poll_interval_ms = poll_interval_ms
        self.job_timeout_seconds = job_timeout_seconds
        self.stale_after_seconds = stale_after_seconds
        self.worker_name = worker_name or default_worker_name()

        self._processors: Dict[JobType, JobProcessor] = {}
        self._tick_lock = asyncio.Lock()
        self._stopping = asyncio.Event()
        self._task: Optional[asyncio.Task] = None

    def register_processor(self, job_type: JobType, processor: JobProcessor) -> None:
        """Route jobs of ``job_type`` to ``processor``, replacing any previous one."""
        self._processors[JobType(job_type)] = processor
        logger.debug(
            "Registered job processor",
            job_type=JobType(job_type).value,
            processor=type(processor).__name__,
            worker=self.worker_name,
        )

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def create_job(
        self,
        job_type: JobType,
        vod_id: int,
        user_id: str,
        parameters: Optional[Dict[str, Any]] = None,
        priority: int = 0,
    ) -> Job:
        """Insert a PENDING job; processing happens on a later tick."""
        async with self.database.session() as session:
            job = await JobRepository(session).add(
                Job.create(job_type, vod_id, user_id, parameters, priority)
            )

        logger.info(
            "Job created",
            job_id=job.id,
            job_type=job.type.value,
            vod_id=vod_id,
            priority=priority,
        )
        return job

    async def get_job_status(self, job_id: int) -> Optional[Job]:
        async with self.database.session() as session:
            return await JobRepository(session).get(job_id)

    async def get_jobs_for_owner(self, user_id: str, limit: int = 10) -> List[Job]:
        async with self.database.session() as session:
            return await JobRepository(session).list_for_user(user_id, limit)

    async def get_jobs_for_vod(self, vod_id: int) -> List[Job]:
        async with self.database.session() as session:
            return await JobRepository(session).list_for_vod(vod_id)

    async def start(self, poll_interval_ms: Optional[int] = None) -> None:
        """Start polling in the background; a no-op while already running."""
        if self.is_running:
            return

        if poll_interval_ms is not None:
            self.poll_interval_ms = poll_interval_ms

        if self.stale_after_seconds:
            await self.recover_stale_jobs()

        self._stopping.clear()
        self._task = asyncio.create_task(
            self._run_loop(), name=f"job-queue-{self.worker_name}"
        )
        logger.info(
            "Job queue started",
            worker=self.worker_name,
            poll_interval_ms=self.poll_interval_ms,
            processors=sorted(job_type.value for job_type in self._processors),
        )

    async def stop(self) -> None:
        """Stop polling; returns once the job in flight, if any, has finished."""
        if self._task is None:
            return

        self._stopping.set()
        task, self._task = self._task, None
        await task
        logger.info("Job queue stopped", worker=self.worker_name)

    async def _run_loop(self) -> None:
        while not self._stopping.is_set():
            try:
                await self.tick()
            except Exception:
                logger.exception("Job queue tick failed", worker=self.worker_name)

            try:
                await asyncio.wait_for(
                    self._stopping.wait(), timeout=self.poll_interval_ms / 1000
                )
            except asyncio.TimeoutError:
                pass

    async def recover_stale_jobs(self) -> int:
        """Return jobs abandoned in PROCESSING to the retry cycle."""
        if not self.stale_after_seconds:
            return 0

        cutoff = datetime.now(timezone.utc) - timedelta(seconds=self.stale_after_seconds)
        async with self.database.session() as session:
            repository = JobRepository(session)
            abandoned = await repository.stale_exhausted(cutoff, self.max_attempts)
            recovered = await repository.requeue_stale(cutoff, self.max_attempts)
            for job in abandoned:
                await self._fail_clip(session, job, logger.bind(job_id=job.id))

        if recovered:
            logger.warning(
                "Recovered stale jobs", count=recovered, worker=self.worker_name
            )
        return recovered

    async def tick(self) -> bool:
        """Claim and process at most one job.

        Returns:
            True if a job was processed, False when idle or when another
            tick of this queue is still running
        """
        if self._tick_lock.locked():
            return False

        async with self._tick_lock:
            async with self.database.session() as session:
                job = await JobRepository(session).claim_next(self.max_attempts)

            if job is None:
                return False

            await self._process(job)
            return True

    async def _process(self, job: Job) -> None:
        log = logger.bind(
            job_id=job.id,
            job_type=job.type.value,
            attempt=job.attempts,
            worker=self.worker_name,
        )

        processor = self._processors.get(job.type)
        if processor is None:
            error = str(ProcessorNotRegisteredError(job.type.value))
            log.error("Job type has no processor", error=error)
            async with self.database.session() as session:
                if await JobRepository(session).mark_failed(job.id, error):
                    await self._fail_clip(session, job, log)
            return

        log.info("Processing job")
        with job_span(job.type.value, job.id, attempt=job.attempts):
            try:
                if self.job_timeout_seconds:
                    result = await asyncio.wait_for(
                        processor.process(job), timeout=self.job_timeout_seconds
                    )
                else:
                    result = await processor.process(job)
            except asyncio.TimeoutError:
                result = JobResult.fail(
                    f"Job timed out after {self.job_timeout_seconds}s"
                )
            except Exception as e:
                log.exception("Processor raised")
                result = JobResult.fail(str(e) or type(e).__name__)

        await self._finish(job, result, log)

    async def _finish(self, job: Job, result: JobResult, log: Any) -> None:
        async with self.database.session() as session:
            repository = JobRepository(session)
            if result.success:
                await repository.mark_completed(job.id, result.data)
                status = JobStatus.COMPLETED
            else:
                status = await repository.record_failure(
                    job.id, result.error or "Unknown error", self.max_attempts
                )
                if status == JobStatus.FAILED:
                    await self._fail_clip(session, job, log)

        if status == JobStatus.COMPLETED:
            log.info("Job completed")
        elif status == JobStatus.FAILED:
            log.error("Job failed", error=result.error)
        elif status == JobStatus.PENDING:
            log.warning(
                "Job attempt failed, will retry",
                error=result.error,
                max_attempts=self.max_attempts,
            )
        else:
            log.warning("Job left PROCESSING before its result was recorded")

    async def _fail_clip(self, session: Any, job: Job, log: Any) -> None:
        # A clip whose stage job is out of attempts can never become READY
        clip_id = clip_of(job)
        if clip_id is not None and await ClipRepository(session).fail_unless_ready(clip_id):
            log.warning("Clip marked failed", clip_id=clip_id)
