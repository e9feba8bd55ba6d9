"""Clip model for highlights cut from a VOD."""

from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, Optional

from sqlalchemy import JSON, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin

if TYPE_CHECKING:
    from .vod import VodModel


class ClipModel(Base, TimestampMixin):
    """A clip candidate produced by chat analysis.

    Attributes:
        id: Unique identifier for the clip
        vod_id: VOD the clip is cut from
        user_id: Owner of the clip
        title: Generated clip title
        start_time: Clip start in seconds from VOD start
        end_time: Clip end in seconds from VOD start
        confidence_score: Detector confidence of the highlight
        status: Extraction and upload state
        video_url: Public URL of the uploaded clip
        thumbnail_url: Public URL of the uploaded thumbnail
        duration: Length of the extracted clip in seconds
        clip_metadata: Chat signals behind the highlight
        processed_at: When the clip became ready
    """

    __tablename__ = "clips"

    id: Mapped[int] = mapped_column(
        primary_key=True, comment="Unique identifier for the clip"
    )
    vod_id: Mapped[int] = mapped_column(
        ForeignKey("vods.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="VOD the clip is cut from",
    )
    user_id: Mapped[str] = mapped_column(
        String(255), nullable=False, index=True, comment="Owner of the clip"
    )
    title: Mapped[str] = mapped_column(Text, nullable=False, comment="Clip title")
    start_time: Mapped[int] = mapped_column(
        Integer, nullable=False, comment="Start in seconds from VOD start"
    )
    end_time: Mapped[int] = mapped_column(
        Integer, nullable=False, comment="End in seconds from VOD start"
    )
    confidence_score: Mapped[float] = mapped_column(
        Float, nullable=False, comment="Detector confidence"
    )
    status: Mapped[str] = mapped_column(
        String(50), nullable=False, default="pending", index=True, comment="Clip state"
    )
    video_url: Mapped[Optional[str]] = mapped_column(
        Text, nullable=True, comment="Public URL of the clip"
    )
    thumbnail_url: Mapped[Optional[str]] = mapped_column(
        Text, nullable=True, comment="Public URL of the thumbnail"
    )
    duration: Mapped[Optional[float]] = mapped_column(
        Float, nullable=True, comment="Clip length in seconds"
    )
    clip_metadata: Mapped[Dict[str, Any]] = mapped_column(
        "metadata", JSON, nullable=False, default=dict, comment="Chat signals"
    )
    processed_at: Mapped[Optional[datetime]] = mapped_column(
        nullable=True, comment="When the clip became ready"
    )

    vod: Mapped["VodModel"] = relationship("VodModel", back_populates="clips")

    def __repr__(self) -> str:
        return f"<Clip(id={self.id}, vod_id={self.vod_id}, status='{self.status}')>"
