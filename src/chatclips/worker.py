"""
Worker process entry point.

Wires configuration, persistence, adapters and processors together and runs
``queue.worker_count`` independent job queues until SIGINT or SIGTERM.
"""

import asyncio
import signal
from pathlib import Path
from typing import List, Optional

import structlog

from .application import JobQueue
from .application.processors import (
    AnalyzeVodProcessor,
    ExtractClipProcessor,
    UploadClipProcessor,
)
from .domain.models import JobType
from .domain.services.highlight_detection import ChatSpikeDetector
from .infrastructure.adapters import TwitchVodClient
from .infrastructure.config import Settings, get_settings
from .infrastructure.database import Database
from .infrastructure.logging_config import configure_logging
from .infrastructure.media import (
    FFmpegTranscoder,
    check_ffmpeg_available,
    cleanup_temp_dir,
)
from .infrastructure.observability import configure_logfire
from .infrastructure.persistence.repositories import JobRepository
from .infrastructure.storage import create_storage

logger = structlog.get_logger(__name__)


def build_queues(
    settings: Settings,
    database: Database,
    twitch: TwitchVodClient,
    worker_name: str = "worker",
) -> List[JobQueue]:
    """Create ``worker_count`` queues sharing one set of processors."""
    transcoder = FFmpegTranscoder.from_config(settings.media)
    storage = create_storage(settings)

    processors = {
        JobType.ANALYZE_VOD: AnalyzeVodProcessor(
            database,
            transcripts=twitch,
            resolver=twitch,
            detector=ChatSpikeDetector(settings.detection),
        ),
        JobType.EXTRACT_CLIP: ExtractClipProcessor(
            database,
            transcoder=transcoder,
            temp_dir=settings.media.temp_dir,
            clip_format=settings.media.clip_format,
            progress_interval_seconds=settings.queue.progress_interval_seconds,
        ),
        JobType.UPLOAD_CLIP: UploadClipProcessor(
            database,
            transcoder=transcoder,
            storage=storage,
            clip_format=settings.media.clip_format,
        ),
    }

    queues = []
    for index in range(settings.queue.worker_count):
        queue = JobQueue(
            database,
            max_attempts=settings.queue.max_attempts,
            poll_interval_ms=settings.queue.poll_interval_ms,
            job_timeout_seconds=settings.queue.job_timeout_seconds,
            stale_after_seconds=settings.queue.stale_after_seconds,
            worker_name=f"{worker_name}-{index}",
        )
        for job_type, processor in processors.items():
            queue.register_processor(job_type, processor)
        queues.append(queue)
    return queues


async def sweep_temp_dir(settings: Settings, database: Database) -> int:
    """Remove leftover temp files that no unfinished upload job refers to."""
    Path(settings.media.temp_dir).mkdir(parents=True, exist_ok=True)
    async with database.session() as session:
        in_use = await JobRepository(session).pending_upload_paths()

    removed = cleanup_temp_dir(settings.media.temp_dir, keep=in_use)
    if removed:
        logger.info("Removed stale temporary files", count=removed, kept=len(in_use))
    return removed


async def run_worker(
    settings: Settings, stop_event: Optional[asyncio.Event] = None
) -> None:
    """Run the job queues until ``stop_event`` is set or a signal arrives."""
    stop_event = stop_event or asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except (NotImplementedError, RuntimeError):
            # Signal handlers are only available in the main thread on Unix
            pass

    if not check_ffmpeg_available(settings.media.ffmpeg_path):
        logger.warning(
            "FFmpeg not found, clip extraction will fail",
            path=settings.media.ffmpeg_path,
        )

    database = Database.from_config(settings.database)
    await database.create_all()
    await sweep_temp_dir(settings, database)

    twitch = TwitchVodClient.from_config(settings.twitch)
    queues = build_queues(settings, database, twitch, worker_name=settings.app.name)

    try:
        for queue in queues:
            await queue.start()
        logger.info(
            "Worker started",
            queues=len(queues),
            environment=settings.app.environment,
        )
        await stop_event.wait()
    finally:
        logger.info("Worker stopping")
        await asyncio.gather(*(queue.stop() for queue in queues))
        await twitch.aclose()
        await database.dispose()
        logger.info("Worker stopped")


def main() -> None:
    """Console entry point of ``chatclips-worker``."""
    settings = get_settings()
    configure_logging(settings)
    configure_logfire(settings)
    asyncio.run(run_worker(settings))


if __name__ == "__main__":
    main()
