"""Database models."""

from .base import Base, TimestampMixin
from .clip import ClipModel
from .job import JobModel
from .vod import VodModel

__all__ = ["Base", "ClipModel", "JobModel", "TimestampMixin", "VodModel"]
