"""Tests for the FFmpeg transcoder."""

import asyncio
import os
import time
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from chatclips.infrastructure.config import MediaConfig
from chatclips.infrastructure.media import (
    FFmpegTranscoder,
    cleanup_temp_dir,
    parse_progress_line,
)


def fake_process(stdout: bytes = b"", stderr: bytes = b"", returncode: int = 0):
    """Stand-in for an asyncio subprocess with canned output."""
    out = asyncio.StreamReader()
    out.feed_data(stdout)
    out.feed_eof()
    err = asyncio.StreamReader()
    err.feed_data(stderr)
    err.feed_eof()

    process = MagicMock()
    process.stdout = out
    process.stderr = err
    process.returncode = returncode
    process.wait = AsyncMock(return_value=returncode)
    return process


def spawning(process, create_output: bool = True):
    """Replacement for ``create_subprocess_exec`` that writes the output file."""
    calls = []

    async def _spawn(*cmd, **kwargs):
        calls.append(list(cmd))
        if create_output:
            Path(cmd[-1]).write_bytes(b"data")
        return process

    _spawn.calls = calls
    return _spawn


class TestParseProgressLine:
    """Test parsing of ``-progress`` output."""

    @pytest.mark.parametrize(
        "line, expected",
        [
            ("out_time_ms=5000000", 50.0),
            ("out_time_us=2500000\n", 25.0),
            ("out_time_ms=20000000", 100.0),
            ("progress=end", 100.0),
            ("progress=continue", None),
            ("frame=120", None),
            ("out_time_ms=N/A", None),
        ],
    )
    def test_lines(self, line, expected):
        assert parse_progress_line(line, duration=10.0) == expected

    def test_unknown_duration(self):
        assert parse_progress_line("out_time_ms=5000000", duration=0) is None


class TestFFmpegTranscoder:
    """Test command construction and subprocess handling."""

    @pytest.fixture
    def transcoder(self):
        return FFmpegTranscoder.from_config(
            MediaConfig(ffmpeg_path="/usr/bin/ffmpeg", video_height=720, crf=20)
        )

    def test_clip_command(self, transcoder):
        cmd = transcoder.build_clip_command("https://vod/index.m3u8", 60, 90, "/tmp/out.mp4")

        assert cmd[0] == "/usr/bin/ffmpeg"
        assert cmd[cmd.index("-ss") + 1] == "60"
        assert cmd[cmd.index("-i") + 1] == "https://vod/index.m3u8"
        assert cmd[cmd.index("-t") + 1] == "30"
        assert cmd[cmd.index("-crf") + 1] == "20"
        assert cmd[cmd.index("-vf") + 1] == "scale=-2:720"
        assert cmd[cmd.index("-progress") + 1] == "pipe:1"
        assert cmd[-1] == "/tmp/out.mp4"

    def test_thumbnail_command(self, transcoder):
        cmd = transcoder.build_thumbnail_command("/tmp/out.mp4", "/tmp/out.jpg")

        assert cmd[cmd.index("-frames:v") + 1] == "1"
        assert cmd[cmd.index("-ss") + 1] == "1.0"
        assert cmd[-1] == "/tmp/out.jpg"

    @pytest.mark.asyncio
    async def test_extract_clip_reports_progress(self, transcoder, tmp_path):
        output = tmp_path / "clips" / "out.mp4"
        process = fake_process(
            stdout=b"out_time_ms=15000000\nprogress=continue\nout_time_us=30000000\nprogress=end\n"
        )
        spawn = spawning(process)
        progress = []

        async def on_progress(percent):
            progress.append(percent)

        with patch("asyncio.create_subprocess_exec", spawn):
            result = await transcoder.extract_clip(
                "https://vod/index.m3u8", 60, 90, str(output), on_progress=on_progress
            )

        assert result.success
        assert result.output_path == str(output)
        assert result.duration == 30
        assert progress == [50.0, 100.0, 100.0]
        assert spawn.calls[0][-1] == str(output)

    @pytest.mark.asyncio
    async def test_extract_clip_failure_carries_stderr(self, transcoder, tmp_path):
        process = fake_process(stderr=b"Opening input\nServer returned 403 Forbidden\n", returncode=1)

        with patch("asyncio.create_subprocess_exec", spawning(process, create_output=False)):
            result = await transcoder.extract_clip(
                "https://vod/index.m3u8", 0, 30, str(tmp_path / "out.mp4")
            )

        assert not result.success
        assert result.error.startswith("FFmpeg exited with code 1")
        assert "403 Forbidden" in result.error

    @pytest.mark.asyncio
    async def test_extract_clip_without_output_file(self, transcoder, tmp_path):
        with patch(
            "asyncio.create_subprocess_exec",
            spawning(fake_process(), create_output=False),
        ):
            result = await transcoder.extract_clip(
                "https://vod/index.m3u8", 0, 30, str(tmp_path / "out.mp4")
            )

        assert not result.success
        assert result.error == "Output file not created"

    @pytest.mark.asyncio
    async def test_missing_executable(self, transcoder, tmp_path):
        with patch(
            "asyncio.create_subprocess_exec",
            AsyncMock(side_effect=FileNotFoundError("ffmpeg")),
        ):
            result = await transcoder.extract_clip(
                "https://vod/index.m3u8", 0, 30, str(tmp_path / "out.mp4")
            )

        assert not result.success
        assert result.error.startswith("Failed to start FFmpeg")

    @pytest.mark.asyncio
    async def test_invalid_range(self, transcoder, tmp_path):
        result = await transcoder.extract_clip(
            "https://vod/index.m3u8", 30, 30, str(tmp_path / "out.mp4")
        )

        assert not result.success
        assert "Invalid clip range" in result.error

    @pytest.mark.asyncio
    async def test_generate_thumbnail(self, transcoder, tmp_path):
        thumbnail = tmp_path / "out.jpg"

        with patch("asyncio.create_subprocess_exec", spawning(fake_process())):
            result = await transcoder.generate_thumbnail(
                str(tmp_path / "out.mp4"), str(thumbnail)
            )

        assert result.success
        assert result.output_path == str(thumbnail)

    @pytest.mark.asyncio
    async def test_generate_thumbnail_failure(self, transcoder, tmp_path):
        process = fake_process(stderr=b"Invalid data found", returncode=183)

        with patch("asyncio.create_subprocess_exec", spawning(process, create_output=False)):
            result = await transcoder.generate_thumbnail(
                str(tmp_path / "out.mp4"), str(tmp_path / "out.jpg")
            )

        assert not result.success
        assert "Invalid data found" in result.error


class TestCleanupTempDir:
    """Test removal of leftover temporary files."""

    def test_removes_only_old_files(self, tmp_path):
        old = tmp_path / "old.mp4"
        new = tmp_path / "new.mp4"
        old.write_bytes(b"x")
        new.write_bytes(b"x")
        two_hours_ago = time.time() - 7200
        os.utime(old, (two_hours_ago, two_hours_ago))

        assert cleanup_temp_dir(str(tmp_path), max_age_seconds=3600) == 1
        assert not old.exists()
        assert new.exists()

    def test_kept_files_survive_however_old(self, tmp_path):
        queued = tmp_path / "clip_1.mp4"
        orphan = tmp_path / "clip_2.mp4"
        for path in (queued, orphan):
            path.write_bytes(b"x")
            os.utime(path, (time.time() - 7200, time.time() - 7200))

        removed = cleanup_temp_dir(str(tmp_path), keep=[str(queued)])

        assert removed == 1
        assert queued.exists()
        assert not orphan.exists()

    def test_missing_directory(self, tmp_path):
        assert cleanup_temp_dir(str(tmp_path / "nope")) == 0
