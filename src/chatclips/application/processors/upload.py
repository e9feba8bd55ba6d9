"""Upload stage: publish the extracted clip and its thumbnail."""

import os
from datetime import datetime, timezone
from typing import Optional

import structlog
from pydantic import BaseModel, Field

from ...domain.exceptions import StorageError
from ...domain.models import Job, JobResult, JobType
from ...domain.protocols import ObjectStorage, Transcoder
from ...infrastructure.database import Database
from ...infrastructure.persistence.repositories import ClipRepository
from ...infrastructure.storage import StorageHelper
from .base import BaseProcessor

logger = structlog.get_logger(__name__)


class UploadClipParameters(BaseModel):
    clip_id: int
    local_path: str = Field(min_length=1)
    duration: Optional[float] = None


def thumbnail_path_for(local_path: str) -> str:
    return f"{os.path.splitext(local_path)[0]}_thumb.jpg"


class UploadClipProcessor(BaseProcessor):
    """Uploads a clip, makes it READY and removes its temporary files.

    A failed clip upload fails the attempt and keeps the local file for the
    retry. A missing thumbnail does not.
    """

    job_type = JobType.UPLOAD_CLIP

    def __init__(
        self,
        database: Database,
        transcoder: Transcoder,
        storage: ObjectStorage,
        clip_format: str = "mp4",
    ):
        super().__init__(database)
        self.transcoder = transcoder
        self.storage = storage
        self.clip_format = clip_format

    async def handle(self, job: Job) -> JobResult:
        params = self.parse_parameters(UploadClipParameters, job)
        log = logger.bind(job_id=job.id, clip_id=params.clip_id)

        async with self.database.session() as session:
            clip = await ClipRepository(session).get(params.clip_id)
        if clip is None:
            return JobResult.fail("Clip not found")

        if not os.path.isfile(params.local_path):
            return JobResult.fail(f"Local clip file not found: {params.local_path}")

        video_url = await self.storage.upload(
            params.local_path,
            StorageHelper.clip_key(clip.user_id, clip.id, self.clip_format),
        )

        thumbnail_path = thumbnail_path_for(params.local_path)
        thumbnail_url = await self._upload_thumbnail(
            params.local_path, thumbnail_path, clip.user_id, clip.id, log
        )

        async with self.database.session() as session:
            await ClipRepository(session).mark_ready(
                clip.id,
                video_url=video_url,
                thumbnail_url=thumbnail_url,
                duration=params.duration,
                processed_at=datetime.now(timezone.utc),
            )

        for path in (params.local_path, thumbnail_path):
            await self.storage.delete(path)

        log.info("Clip uploaded", video_url=video_url, has_thumbnail=bool(thumbnail_url))
        return JobResult.ok(
            {"clip_id": clip.id, "video_url": video_url, "thumbnail_url": thumbnail_url}
        )

    async def _upload_thumbnail(
        self, video_path: str, thumbnail_path: str, user_id: str, clip_id: int, log
    ) -> Optional[str]:
        result = await self.transcoder.generate_thumbnail(video_path, thumbnail_path)
        if not result.success:
            log.warning("Thumbnail generation failed", error=result.error)
            return None

        try:
            return await self.storage.upload(
                thumbnail_path, StorageHelper.thumbnail_key(user_id, clip_id)
            )
        except StorageError as e:
            log.warning("Thumbnail upload failed", error=str(e))
            return None
