"""Domain protocols - interfaces of the collaborators the pipeline calls."""

from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Protocol, runtime_checkable

from .models import ChatMessage, Job, JobResult, Vod

ProgressCallback = Callable[[float], Awaitable[None]]


@dataclass
class TranscodeResult:
    """Outcome of one invocation of the transcoding tool."""

    success: bool
    output_path: Optional[str] = None
    duration: Optional[float] = None
    error: Optional[str] = None


@runtime_checkable
class TranscriptProvider(Protocol):
    """Source of VOD chat replays."""

    async def fetch_transcript(self, vod: Vod) -> list[ChatMessage]:
        """Fetch every chat message of a VOD, ordered by timestamp.

        Returns an empty list when the platform has no replay for the VOD.
        """
        ...


@runtime_checkable
class PlaybackUrlResolver(Protocol):
    """Resolves the media URL the transcoder reads from."""

    async def resolve_playback_url(self, vod: Vod) -> Optional[str]:
        """Return a playable URL for the VOD or None when unavailable."""
        ...


@runtime_checkable
class Transcoder(Protocol):
    """External video tool used to cut clips and grab thumbnails."""

    async def extract_clip(
        self,
        input_url: str,
        start_time: float,
        end_time: float,
        output_path: str,
        on_progress: Optional[ProgressCallback] = None,
    ) -> TranscodeResult:
        """Cut ``[start_time, end_time)`` (seconds) of ``input_url`` into ``output_path``."""
        ...

    async def generate_thumbnail(
        self, video_path: str, output_path: str
    ) -> TranscodeResult:
        """Write a single-frame JPEG of ``video_path`` to ``output_path``."""
        ...


@runtime_checkable
class ObjectStorage(Protocol):
    """Destination of finished clip artifacts."""

    async def upload(self, local_path: str, destination_key: str) -> str:
        """Upload a local file and return its public URL.

        Raises:
            StorageError: If the upload fails.
        """
        ...

    async def delete(self, local_path: str) -> None:
        """Remove a local temporary file, ignoring files that are already gone."""
        ...


@runtime_checkable
class JobProcessor(Protocol):
    """Performs the work of one job type."""

    async def process(self, job: Job) -> JobResult:
        """Run one pipeline stage for ``job``; must not raise."""
        ...
