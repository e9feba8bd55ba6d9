"""FFmpeg integration for clip extraction and thumbnail generation.

FFmpeg runs as an asyncio subprocess. Clip extraction asks FFmpeg for
machine-readable progress on stdout (``-progress pipe:1``) and turns the
reported output time into a completion percentage.
"""

import asyncio
import logging
import os
import subprocess
import time
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from ...domain.exceptions import TranscodeError
from ...domain.protocols import ProgressCallback, TranscodeResult
from ..config import MediaConfig

logger = logging.getLogger(__name__)

# Lines of stderr kept in error messages
STDERR_TAIL_LINES = 10
THUMBNAIL_HEIGHT = 720


def parse_progress_line(line: str, duration: float) -> Optional[float]:
    """Percentage encoded in one ``-progress`` output line.

    ``out_time_ms`` and ``out_time_us`` both carry microseconds.

    Returns:
        Percentage in [0, 100], or None for lines without output time
    """
    key, _, value = line.strip().partition("=")
    if key == "progress" and value == "end":
        return 100.0
    if key not in ("out_time_ms", "out_time_us") or duration <= 0:
        return None
    try:
        seconds = int(value) / 1_000_000
    except ValueError:
        return None
    return max(0.0, min(seconds / duration * 100, 100.0))


def _stderr_tail(stderr: bytes) -> str:
    lines = stderr.decode(errors="replace").strip().splitlines()
    return "\n".join(lines[-STDERR_TAIL_LINES:]) or "Unknown error"


class FFmpegTranscoder:
    """Cuts clips out of VOD playlists and grabs thumbnail frames."""

    def __init__(
        self,
        ffmpeg_path: str = "ffmpeg",
        video_height: int = 1080,
        preset: str = "fast",
        crf: int = 23,
        thumbnail_offset_seconds: float = 1.0,
    ):
        self.ffmpeg_path = ffmpeg_path
        self.video_height = video_height
        self.preset = preset
        self.crf = crf
        self.thumbnail_offset_seconds = thumbnail_offset_seconds

    @classmethod
    def from_config(cls, config: MediaConfig) -> "FFmpegTranscoder":
        return cls(
            ffmpeg_path=config.ffmpeg_path,
            video_height=config.video_height,
            preset=config.preset,
            crf=config.crf,
            thumbnail_offset_seconds=config.thumbnail_offset_seconds,
        )

    def build_clip_command(
        self, input_url: str, start_time: float, end_time: float, output_path: str
    ) -> List[str]:
        """FFmpeg arguments cutting ``[start_time, end_time)`` into ``output_path``."""
        return [
            self.ffmpeg_path,
            "-y",
            "-ss",
            str(start_time),
            "-i",
            input_url,
            "-t",
            str(end_time - start_time),
            "-c:v",
            "libx264",
            "-preset",
            self.preset,
            "-crf",
            str(self.crf),
            "-vf",
            f"scale=-2:{self.video_height}",
            "-c:a",
            "aac",
            "-b:a",
            "192k",
            "-movflags",
            "+faststart",
            "-progress",
            "pipe:1",
            "-nostats",
            output_path,
        ]

    def build_thumbnail_command(self, video_path: str, output_path: str) -> List[str]:
        return [
            self.ffmpeg_path,
            "-y",
            "-ss",
            str(self.thumbnail_offset_seconds),
            "-i",
            video_path,
            "-frames:v",
            "1",
            "-vf",
            f"scale=-2:{THUMBNAIL_HEIGHT}",
            "-q:v",
            "2",
            output_path,
        ]

    async def _run(
        self,
        cmd: List[str],
        duration: float = 0.0,
        on_progress: Optional[ProgressCallback] = None,
    ) -> Tuple[int, bytes]:
        try:
            process = await asyncio.create_subprocess_exec(
                *cmd, stdout=asyncio.subprocess.PIPE, stderr=asyncio.subprocess.PIPE
            )
        except OSError as e:
            raise TranscodeError(f"Failed to start FFmpeg: {e}") from e

        # stderr is drained alongside stdout
        stderr_task = asyncio.create_task(process.stderr.read())
        try:
            async for raw_line in process.stdout:
                percent = parse_progress_line(raw_line.decode(errors="replace"), duration)
                if percent is not None and on_progress is not None:
                    await on_progress(percent)
            returncode = await process.wait()
        except BaseException:
            if process.returncode is None:
                process.kill()
                await process.wait()
            raise
        finally:
            stderr = await stderr_task

        return returncode, stderr

    async def extract_clip(
        self,
        input_url: str,
        start_time: float,
        end_time: float,
        output_path: str,
        on_progress: Optional[ProgressCallback] = None,
    ) -> TranscodeResult:
        """Extract a clip from a VOD at the given time range (seconds)."""
        duration = end_time - start_time
        if duration <= 0:
            return TranscodeResult(
                success=False,
                error=f"Invalid clip range: {start_time}s to {end_time}s",
            )

        Path(output_path).parent.mkdir(parents=True, exist_ok=True)
        cmd = self.build_clip_command(input_url, start_time, end_time, output_path)

        try:
            returncode, stderr = await self._run(cmd, duration, on_progress)
        except TranscodeError as e:
            logger.error(f"Clip extraction error: {e}")
            return TranscodeResult(success=False, error=str(e))

        if returncode != 0:
            error = f"FFmpeg exited with code {returncode}: {_stderr_tail(stderr)}"
            logger.error(f"Clip extraction failed for {output_path}: {error}")
            return TranscodeResult(success=False, error=error)

        if not os.path.isfile(output_path):
            return TranscodeResult(success=False, error="Output file not created")

        logger.info(f"Extracted clip: {output_path}")
        return TranscodeResult(success=True, output_path=output_path, duration=duration)

    async def generate_thumbnail(
        self, video_path: str, output_path: str
    ) -> TranscodeResult:
        """Create a JPEG thumbnail from a frame near the start of a clip."""
        cmd = self.build_thumbnail_command(video_path, output_path)

        try:
            returncode, stderr = await self._run(cmd)
        except TranscodeError as e:
            return TranscodeResult(success=False, error=str(e))

        if returncode != 0:
            return TranscodeResult(
                success=False,
                error=f"FFmpeg exited with code {returncode}: {_stderr_tail(stderr)}",
            )

        logger.info(f"Created thumbnail: {output_path}")
        return TranscodeResult(success=True, output_path=output_path)


def cleanup_temp_dir(
    temp_dir: str, max_age_seconds: float = 3600, keep: Iterable[str] = ()
) -> int:
    """Delete files in ``temp_dir`` not modified for ``max_age_seconds``.

    Paths in ``keep`` are never removed, however old they are.

    Returns:
        Number of removed files
    """
    directory = Path(temp_dir)
    if not directory.is_dir():
        return 0

    protected = {Path(p).resolve() for p in keep}
    cutoff = time.time() - max_age_seconds
    removed = 0
    for path in directory.iterdir():
        if path.resolve() in protected:
            continue
        try:
            if path.is_file() and path.stat().st_mtime < cutoff:
                path.unlink()
                removed += 1
        except OSError as e:
            logger.warning(f"Failed to remove stale temp file {path}: {e}")
    return removed


def check_ffmpeg_available(ffmpeg_path: str = "ffmpeg") -> bool:
    """Check if FFmpeg is available on the system."""
    try:
        subprocess.run(
            [ffmpeg_path, "-version"], capture_output=True, timeout=10, check=True
        )
        return True
    except (OSError, subprocess.SubprocessError):
        return False
