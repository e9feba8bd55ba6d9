"""Tests for throttled job progress reporting."""

import pytest

from chatclips.application import ProgressReporter
from chatclips.domain.models import JobType
from chatclips.infrastructure.persistence.repositories import JobRepository


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


async def stored_progress(database, job_id: int) -> int:
    async with database.session() as session:
        return (await JobRepository(session).get(job_id)).progress


class TestProgressReporter:
    """Test the progress side channel of running jobs."""

    @pytest.mark.asyncio
    async def test_first_report_is_written(self, database, vod, claim_job):
        job = await claim_job(JobType.EXTRACT_CLIP, vod)
        reporter = ProgressReporter(database, job.id, clock=FakeClock())

        await reporter(12.7)

        assert await stored_progress(database, job.id) == 12
        assert reporter.last_written == 12

    @pytest.mark.asyncio
    async def test_reports_are_throttled_until_flush(self, database, vod, claim_job):
        job = await claim_job(JobType.EXTRACT_CLIP, vod)
        clock = FakeClock()
        reporter = ProgressReporter(database, job.id, min_interval_seconds=2.0, clock=clock)

        await reporter.report(10)
        clock.now = 1.0
        await reporter.report(40)

        assert await stored_progress(database, job.id) == 10

        clock.now = 2.5
        await reporter.report(60)
        assert await stored_progress(database, job.id) == 60

        clock.now = 3.0
        await reporter.report(90)
        await reporter.flush()
        assert await stored_progress(database, job.id) == 90

    @pytest.mark.asyncio
    async def test_values_are_clamped(self, database, vod, claim_job):
        job = await claim_job(JobType.EXTRACT_CLIP, vod)
        reporter = ProgressReporter(database, job.id, min_interval_seconds=0)

        await reporter.report(250)

        assert await stored_progress(database, job.id) == 100

    @pytest.mark.asyncio
    async def test_flush_without_pending_value_writes_nothing(self, database, vod, claim_job):
        job = await claim_job(JobType.EXTRACT_CLIP, vod)
        reporter = ProgressReporter(database, job.id)

        await reporter.flush()

        assert reporter.last_written is None
        assert await stored_progress(database, job.id) == 0

    @pytest.mark.asyncio
    async def test_cannot_touch_finished_job(self, database, vod, claim_job):
        job = await claim_job(JobType.EXTRACT_CLIP, vod)
        async with database.session() as session:
            await JobRepository(session).mark_failed(job.id, "gone")
        reporter = ProgressReporter(database, job.id, min_interval_seconds=0)

        await reporter.report(55)

        assert await stored_progress(database, job.id) == 0
