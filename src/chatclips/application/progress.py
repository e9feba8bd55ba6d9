"""
Progress reporting for running jobs.

Progress is a side channel next to the job's terminal state transition:
writes are throttled, and the conditional update behind them is ignored
once the job has left PROCESSING.
"""

import time
from typing import Callable, Optional

import structlog
from sqlalchemy.exc import SQLAlchemyError

from ..infrastructure.database import Database
from ..infrastructure.persistence.repositories import JobRepository

logger = structlog.get_logger(__name__)


class ProgressReporter:
    """Throttled writer of a job's completion percentage.

    Instances are callables, so they can be handed to the transcoder as a
    progress callback. Call :meth:`flush` once the work is done to persist
    the last value held back by the throttle.
    """

    def __init__(
        self,
        database: Database,
        job_id: int,
        min_interval_seconds: float = 2.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.database = database
        self.job_id = job_id
        self.min_interval_seconds = min_interval_seconds
        self._clock = clock
        self._last_written: Optional[int] = None
        self._last_write_at: Optional[float] = None
        self._pending: Optional[int] = None

    @property
    def last_written(self) -> Optional[int]:
        return self._last_written

    async def __call__(self, percent: float) -> None:
        await self.report(percent)

    async def report(self, percent: float) -> None:
        value = max(0, min(int(percent), 100))
        if value == self._last_written:
            self._pending = None
            return

        now = self._clock()
        if (
            self._last_write_at is not None
            and now - self._last_write_at < self.min_interval_seconds
        ):
            self._pending = value
            return

        await self._write(value, now)

    async def flush(self) -> None:
        """Persist the most recent value the throttle held back."""
        if self._pending is not None and self._pending != self._last_written:
            await self._write(self._pending, self._clock())
        self._pending = None

    async def _write(self, value: int, now: float) -> None:
        self._pending = None
        self._last_write_at = now
        try:
            async with self.database.session() as session:
                await JobRepository(session).update_progress(self.job_id, value)
        except SQLAlchemyError as e:
            logger.warning(
                "Failed to record job progress",
                job_id=self.job_id,
                progress=value,
                error=str(e),
            )
            return
        self._last_written = value
