"""VOD analysis stage: chat replay in, clip candidates and extraction jobs out."""

import asyncio
from datetime import datetime, timezone

import structlog

from ...domain.models import Clip, HighlightMoment, Job, JobResult, JobType
from ...domain.protocols import PlaybackUrlResolver, TranscriptProvider
from ...domain.services.highlight_detection import ChatSpikeDetector
from ...infrastructure.database import Database
from ...infrastructure.persistence.repositories import (
    ClipRepository,
    JobRepository,
    VodRepository,
)
from .base import BaseProcessor

logger = structlog.get_logger(__name__)


def clip_title(index: int, moment: HighlightMoment) -> str:
    return f"Highlight {index}: {moment.reason}"


class AnalyzeVodProcessor(BaseProcessor):
    """Detects highlights in a VOD's chat and queues one extraction per highlight.

    Every input check runs before the first write, and all writes share one
    transaction, so a failed attempt leaves the VOD untouched.
    """

    job_type = JobType.ANALYZE_VOD

    def __init__(
        self,
        database: Database,
        transcripts: TranscriptProvider,
        resolver: PlaybackUrlResolver,
        detector: ChatSpikeDetector | None = None,
    ):
        super().__init__(database)
        self.transcripts = transcripts
        self.resolver = resolver
        self.detector = detector or ChatSpikeDetector()

    async def handle(self, job: Job) -> JobResult:
        log = logger.bind(job_id=job.id, vod_id=job.vod_id)

        async with self.database.session() as session:
            vod = await VodRepository(session).get(job.vod_id)
        if vod is None:
            return JobResult.fail("VOD not found")

        messages = await self.transcripts.fetch_transcript(vod)
        if not messages:
            return JobResult.fail("No chat data found for VOD")

        source_url = await self.resolver.resolve_playback_url(vod)
        if not source_url:
            return JobResult.fail("Failed to get VOD download URL")

        moments = await asyncio.to_thread(self.detector.detect, messages)
        log.info(
            "Chat analysis finished",
            message_count=len(messages),
            highlights=len(moments),
            algorithm=self.detector.algorithm_name,
        )

        clip_ids = []
        async with self.database.session() as session:
            clips = ClipRepository(session)
            jobs = JobRepository(session)

            for index, moment in enumerate(moments, start=1):
                clip = await clips.add(
                    Clip(
                        vod_id=vod.id,
                        user_id=vod.user_id,
                        title=clip_title(index, moment),
                        start_time=moment.start // 1000,
                        end_time=moment.end // 1000,
                        confidence_score=moment.confidence_score,
                        metadata=moment.to_metadata(),
                    )
                )
                clip_ids.append(clip.id)
                await jobs.add(
                    Job.create(
                        JobType.EXTRACT_CLIP,
                        vod_id=vod.id,
                        user_id=vod.user_id,
                        parameters={
                            "clip_id": clip.id,
                            "source_url": source_url,
                            "start_time": clip.start_time,
                            "end_time": clip.end_time,
                        },
                    )
                )

            await VodRepository(session).mark_analyzed(vod.id, datetime.now(timezone.utc))

        return JobResult.ok(
            {
                "message_count": len(messages),
                "highlights_found": len(moments),
                "clip_ids": clip_ids,
            }
        )
