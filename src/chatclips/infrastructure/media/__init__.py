"""Media processing through FFmpeg."""

from .ffmpeg_integration import (
    FFmpegTranscoder,
    check_ffmpeg_available,
    cleanup_temp_dir,
    parse_progress_line,
)

__all__ = [
    "FFmpegTranscoder",
    "check_ffmpeg_available",
    "cleanup_temp_dir",
    "parse_progress_line",
]
