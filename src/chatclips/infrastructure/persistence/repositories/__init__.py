"""Repositories over the persistence models."""

from .clip_repository import ClipRepository
from .job_repository import JobRepository
from .vod_repository import VodRepository

__all__ = ["ClipRepository", "JobRepository", "VodRepository"]
