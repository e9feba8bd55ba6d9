"""Processing job model backing the polling job queue."""

from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import JSON, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin


class JobModel(Base, TimestampMixin):
    """One unit of pipeline work.

    Status changes go through the conditional updates of ``JobRepository``
    so that concurrent workers never process the same job twice.
    """

    __tablename__ = "processing_jobs"
    __table_args__ = (
        Index("ix_processing_jobs_selection", "status", "priority", "created_at"),
    )

    id: Mapped[int] = mapped_column(
        primary_key=True, comment="Unique identifier for the job"
    )
    type: Mapped[str] = mapped_column(
        String(50), nullable=False, index=True, comment="Pipeline stage"
    )
    status: Mapped[str] = mapped_column(
        String(50), nullable=False, default="pending", comment="Job state"
    )
    vod_id: Mapped[int] = mapped_column(
        Integer, nullable=False, index=True, comment="VOD the job belongs to"
    )
    user_id: Mapped[str] = mapped_column(
        String(255), nullable=False, index=True, comment="Owner of the job"
    )
    parameters: Mapped[Dict[str, Any]] = mapped_column(
        JSON, nullable=False, default=dict, comment="Stage input"
    )
    attempts: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, comment="Claims so far"
    )
    priority: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, comment="Higher runs first"
    )
    progress: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, comment="Percent complete"
    )
    result: Mapped[Optional[Dict[str, Any]]] = mapped_column(
        JSON, nullable=True, comment="Stage output"
    )
    error: Mapped[Optional[str]] = mapped_column(
        Text, nullable=True, comment="Last failure message"
    )
    started_at: Mapped[Optional[datetime]] = mapped_column(
        nullable=True, comment="When the job was last claimed"
    )
    completed_at: Mapped[Optional[datetime]] = mapped_column(
        nullable=True, comment="When the job reached a terminal state"
    )

    def __repr__(self) -> str:
        return f"<Job(id={self.id}, type='{self.type}', status='{self.status}')>"
