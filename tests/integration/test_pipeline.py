"""End-to-end run of the analyze -> extract -> upload pipeline through the queue."""

import asyncio
import os
import time
from pathlib import Path

import pytest

from chatclips.application import JobQueue
from chatclips.application.processors import (
    AnalyzeVodProcessor,
    ExtractClipProcessor,
    UploadClipProcessor,
)
from chatclips.domain.models import ClipStatus, Job, JobStatus, JobType, VodStatus
from chatclips.domain.protocols import TranscodeResult
from chatclips.infrastructure.config import Settings
from chatclips.infrastructure.persistence.repositories import (
    ClipRepository,
    JobRepository,
    VodRepository,
)
from chatclips.infrastructure.storage import LocalStorage
from chatclips.worker import build_queues, run_worker, sweep_temp_dir
from tests.factories import ChatMessageFactory


def spike(start_ms: int, count: int = 12):
    return [
        ChatMessageFactory(
            timestamp=start_ms + i * 500,
            sender=f"viewer_{i % 6}",
            text="PogChamp lets go",
        )
        for i in range(count)
    ]


class StubTwitch:
    def __init__(self, messages):
        self.messages = messages

    async def fetch_transcript(self, vod):
        return list(self.messages)

    async def resolve_playback_url(self, vod):
        return f"https://usher.example.com/vod/{vod.platform_vod_id}.m3u8"


class StubTranscoder:
    def __init__(self, failing_starts=()):
        self.failing_starts = set(failing_starts)

    async def extract_clip(self, input_url, start_time, end_time, output_path, on_progress=None):
        if start_time in self.failing_starts:
            return TranscodeResult(success=False, error="FFmpeg exited with code 1")
        if on_progress is not None:
            await on_progress(100.0)
        Path(output_path).write_bytes(b"video")
        return TranscodeResult(success=True, output_path=output_path, duration=end_time - start_time)

    async def generate_thumbnail(self, video_path, output_path):
        Path(output_path).write_bytes(b"jpeg")
        return TranscodeResult(success=True, output_path=output_path)


def make_queue(database, messages, transcoder, tmp_path) -> JobQueue:
    twitch = StubTwitch(messages)
    queue = JobQueue(database, max_attempts=1, poll_interval_ms=60_000)
    queue.register_processor(
        JobType.ANALYZE_VOD, AnalyzeVodProcessor(database, twitch, twitch)
    )
    queue.register_processor(
        JobType.EXTRACT_CLIP,
        ExtractClipProcessor(
            database, transcoder, temp_dir=str(tmp_path / "tmp"), progress_interval_seconds=0
        ),
    )
    queue.register_processor(
        JobType.UPLOAD_CLIP,
        UploadClipProcessor(
            database,
            transcoder,
            LocalStorage(root=str(tmp_path / "public"), base_url="https://cdn.example.com"),
        ),
    )
    return queue


async def drain(queue: JobQueue, limit: int = 50) -> int:
    processed = 0
    while processed < limit and await queue.tick():
        processed += 1
    return processed


class TestPipeline:
    """Test a VOD travelling through every stage."""

    @pytest.mark.asyncio
    async def test_highlights_end_up_as_ready_clips(self, database, vod, tmp_path):
        (tmp_path / "tmp").mkdir()
        messages = spike(0) + spike(300_000) + spike(900_000)
        queue = make_queue(database, messages, StubTranscoder(), tmp_path)
        analyze = await queue.create_job(JobType.ANALYZE_VOD, vod.id, vod.user_id)

        # 1 analyze + 3 extract + 3 upload
        assert await drain(queue) == 7

        assert (await queue.get_job_status(analyze.id)).status == JobStatus.COMPLETED
        jobs = await queue.get_jobs_for_vod(vod.id)
        assert sorted(job.type.value for job in jobs) == sorted(
            ["analyze_vod"] + ["extract_clip"] * 3 + ["upload_clip"] * 3
        )
        assert all(job.status == JobStatus.COMPLETED for job in jobs)

        async with database.session() as session:
            clips = await ClipRepository(session).list_for_vod(vod.id)
            stored_vod = await VodRepository(session).get(vod.id)
        assert stored_vod.status == VodStatus.ANALYZED
        assert [clip.status for clip in clips] == [ClipStatus.READY] * 3
        assert all(clip.video_url.startswith("https://cdn.example.com/clips/") for clip in clips)
        assert list((tmp_path / "tmp").iterdir()) == []

    @pytest.mark.asyncio
    async def test_failed_extraction_stays_local_to_its_clip(self, database, vod, tmp_path):
        (tmp_path / "tmp").mkdir()
        messages = spike(0) + spike(300_000)
        queue = make_queue(database, messages, StubTranscoder(failing_starts={300}), tmp_path)
        analyze = await queue.create_job(JobType.ANALYZE_VOD, vod.id, vod.user_id)

        await drain(queue)

        assert (await queue.get_job_status(analyze.id)).status == JobStatus.COMPLETED
        jobs = await queue.get_jobs_for_vod(vod.id)
        extract_statuses = sorted(
            job.status.value for job in jobs if job.type == JobType.EXTRACT_CLIP
        )
        assert extract_statuses == ["completed", "failed"]
        assert len([job for job in jobs if job.type == JobType.UPLOAD_CLIP]) == 1

        async with database.session() as session:
            clips = await ClipRepository(session).list_for_vod(vod.id)
        assert [clip.status for clip in clips] == [ClipStatus.READY, ClipStatus.FAILED]


class TestWorker:
    """Test wiring of the worker process."""

    @pytest.fixture
    def settings(self, tmp_path, database_url):
        return Settings(
            _env_file=None,
            database={"url": database_url},
            queue={"worker_count": 2, "poll_interval_ms": 50, "max_attempts": 4},
            media={"temp_dir": str(tmp_path / "tmp"), "ffmpeg_path": "ffmpeg-missing"},
            storage={"local_root": str(tmp_path / "public")},
        )

    @pytest.mark.asyncio
    async def test_build_queues(self, settings, database):
        from chatclips.infrastructure.adapters import TwitchVodClient

        async with TwitchVodClient.from_config(settings.twitch) as twitch:
            queues = build_queues(settings, database, twitch, worker_name="w")

        assert [queue.worker_name for queue in queues] == ["w-0", "w-1"]
        for queue in queues:
            assert queue.max_attempts == 4
            assert queue.poll_interval_ms == 50
            assert set(queue._processors) == set(JobType)

    @pytest.mark.asyncio
    async def test_run_worker_stops_on_event(self, settings):
        stop_event = asyncio.Event()
        stop_event.set()

        await asyncio.wait_for(run_worker(settings, stop_event), timeout=10)

        assert Path(settings.media.temp_dir).is_dir()

    @pytest.mark.asyncio
    async def test_restart_keeps_clips_waiting_for_upload(self, settings, database, clip):
        temp_dir = Path(settings.media.temp_dir)
        temp_dir.mkdir()
        waiting = temp_dir / "clip_1_waiting.mp4"
        orphan = temp_dir / "clip_2_orphan.mp4"
        two_hours_ago = time.time() - 7200
        for path in (waiting, orphan):
            path.write_bytes(b"video")
            os.utime(path, (two_hours_ago, two_hours_ago))
        async with database.session() as session:
            await JobRepository(session).add(
                Job.create(
                    JobType.UPLOAD_CLIP,
                    clip.vod_id,
                    clip.user_id,
                    {"clip_id": clip.id, "local_path": str(waiting)},
                )
            )

        assert await sweep_temp_dir(settings, database) == 1

        assert waiting.exists()
        assert not orphan.exists()
