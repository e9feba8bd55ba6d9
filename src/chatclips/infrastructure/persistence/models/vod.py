"""VOD model for recorded broadcasts whose chat is analyzed."""

from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin

if TYPE_CHECKING:
    from .clip import ClipModel


class VodModel(Base, TimestampMixin):
    """A recorded broadcast registered for highlight analysis.

    Attributes:
        id: Unique identifier for the VOD
        user_id: Owner of the VOD
        platform_vod_id: Video identifier on the streaming platform
        title: Broadcast title
        status: Analysis state
        analyzed_at: When chat analysis finished
    """

    __tablename__ = "vods"

    id: Mapped[int] = mapped_column(
        primary_key=True, comment="Unique identifier for the VOD"
    )
    user_id: Mapped[str] = mapped_column(
        String(255), nullable=False, index=True, comment="Owner of the VOD"
    )
    platform_vod_id: Mapped[str] = mapped_column(
        String(100), nullable=False, comment="Video identifier on the platform"
    )
    title: Mapped[Optional[str]] = mapped_column(
        Text, nullable=True, comment="Broadcast title"
    )
    status: Mapped[str] = mapped_column(
        String(50), nullable=False, default="pending", comment="Analysis state"
    )
    analyzed_at: Mapped[Optional[datetime]] = mapped_column(
        nullable=True, comment="When chat analysis finished"
    )

    clips: Mapped[List["ClipModel"]] = relationship(
        "ClipModel", back_populates="vod", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Vod(id={self.id}, platform_vod_id='{self.platform_vod_id}', status='{self.status}')>"
