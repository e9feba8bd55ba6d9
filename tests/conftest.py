"""Pytest configuration and fixtures."""

from pathlib import Path
from typing import AsyncGenerator

import pytest
import pytest_asyncio

from chatclips.domain.models import Clip, Job, JobType, Vod
from chatclips.infrastructure.database import Database
from chatclips.infrastructure.persistence.repositories import (
    ClipRepository,
    JobRepository,
    VodRepository,
)
from tests.factories import ClipFactory, VodFactory


@pytest.fixture
def database_url(tmp_path: Path) -> str:
    """File-backed SQLite so concurrent sessions see each other's commits."""
    return f"sqlite+aiosqlite:///{tmp_path / 'chatclips-test.db'}"


@pytest_asyncio.fixture
async def database(database_url: str) -> AsyncGenerator[Database, None]:
    """Create test database with tables."""
    db = Database(database_url)
    await db.create_all()

    yield db

    await db.dispose()


@pytest_asyncio.fixture
async def vod(database: Database) -> Vod:
    """A stored VOD awaiting analysis."""
    async with database.session() as session:
        return await VodRepository(session).add(VodFactory())


@pytest_asyncio.fixture
async def clip(database: Database, vod: Vod) -> Clip:
    """A stored PENDING clip of ``vod``."""
    async with database.session() as session:
        return await ClipRepository(session).add(
            ClipFactory(vod_id=vod.id, user_id=vod.user_id)
        )


@pytest.fixture
def claim_job(database: Database):
    """Insert a job and claim it, as the queue does before dispatching."""

    async def _claim(
        job_type: JobType,
        vod: Vod,
        parameters: dict | None = None,
        max_attempts: int = 3,
    ) -> Job:
        async with database.session() as session:
            repository = JobRepository(session)
            job = await repository.add(
                Job.create(job_type, vod.id, vod.user_id, parameters)
            )
            assert await repository.claim(job.id, max_attempts)
            return await repository.get(job.id)

    return _claim
