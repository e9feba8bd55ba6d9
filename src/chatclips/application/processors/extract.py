"""Clip extraction stage: cut the highlight out of the VOD into a local file."""

import os
import uuid

import structlog
from pydantic import BaseModel, Field, model_validator

from ...domain.models import ClipStatus, Job, JobResult, JobType
from ...domain.protocols import Transcoder
from ...infrastructure.database import Database
from ...infrastructure.persistence.repositories import ClipRepository, JobRepository
from ..progress import ProgressReporter
from .base import BaseProcessor

logger = structlog.get_logger(__name__)


class ExtractClipParameters(BaseModel):
    clip_id: int
    source_url: str = Field(min_length=1)
    start_time: float = Field(ge=0)
    end_time: float

    @model_validator(mode="after")
    def check_range(self) -> "ExtractClipParameters":
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class ExtractClipProcessor(BaseProcessor):
    """Runs the transcoder for one clip and queues its upload."""

    job_type = JobType.EXTRACT_CLIP

    def __init__(
        self,
        database: Database,
        transcoder: Transcoder,
        temp_dir: str,
        clip_format: str = "mp4",
        progress_interval_seconds: float = 2.0,
    ):
        super().__init__(database)
        self.transcoder = transcoder
        self.temp_dir = temp_dir
        self.clip_format = clip_format
        self.progress_interval_seconds = progress_interval_seconds

    def new_output_path(self, clip_id: int) -> str:
        return os.path.join(
            self.temp_dir, f"clip_{clip_id}_{uuid.uuid4().hex}.{self.clip_format}"
        )

    async def handle(self, job: Job) -> JobResult:
        params = self.parse_parameters(ExtractClipParameters, job)
        log = logger.bind(job_id=job.id, clip_id=params.clip_id)

        async with self.database.session() as session:
            clips = ClipRepository(session)
            clip = await clips.get(params.clip_id)
            if clip is None:
                return JobResult.fail("Clip not found")
            await clips.update_status(clip.id, ClipStatus.PROCESSING)

        output_path = self.new_output_path(clip.id)
        reporter = ProgressReporter(
            self.database, job.id, min_interval_seconds=self.progress_interval_seconds
        )
        result = await self.transcoder.extract_clip(
            params.source_url,
            params.start_time,
            params.end_time,
            output_path,
            on_progress=reporter,
        )
        await reporter.flush()

        if not result.success:
            async with self.database.session() as session:
                await ClipRepository(session).update_status(clip.id, ClipStatus.FAILED)
            log.warning("Clip extraction failed", error=result.error)
            return JobResult.fail(result.error or "Clip extraction failed")

        local_path = result.output_path or output_path
        duration = (
            result.duration
            if result.duration is not None
            else params.end_time - params.start_time
        )

        async with self.database.session() as session:
            await JobRepository(session).add(
                Job.create(
                    JobType.UPLOAD_CLIP,
                    vod_id=job.vod_id,
                    user_id=job.user_id,
                    parameters={
                        "clip_id": clip.id,
                        "local_path": local_path,
                        "duration": duration,
                    },
                )
            )

        log.info("Clip extracted", local_path=local_path, duration=duration)
        return JobResult.ok(
            {"clip_id": clip.id, "local_path": local_path, "duration": duration}
        )
