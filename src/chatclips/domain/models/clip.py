"""VOD and clip domain models."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional


class VodStatus(str, Enum):
    """VOD analysis state."""

    PENDING = "pending"
    ANALYZED = "analyzed"


class ClipStatus(str, Enum):
    """Clip record lifecycle.

    PENDING -> PROCESSING -> READY | FAILED
    """

    PENDING = "pending"
    PROCESSING = "processing"
    READY = "ready"
    FAILED = "failed"


@dataclass
class Vod:
    """A recorded past broadcast whose chat is analyzed."""

    user_id: str
    platform_vod_id: str
    id: Optional[int] = None
    title: Optional[str] = None
    status: VodStatus = VodStatus.PENDING
    analyzed_at: Optional[datetime] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class Clip:
    """A clip cut from a VOD around a detected highlight.

    ``start_time`` and ``end_time`` are seconds from the start of the VOD.
    """

    vod_id: int
    user_id: str
    title: str
    start_time: int
    end_time: int
    confidence_score: float
    id: Optional[int] = None
    status: ClipStatus = ClipStatus.PENDING
    video_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    duration: Optional[float] = None
    metadata: dict[str, Any] = field(default_factory=dict)
    processed_at: Optional[datetime] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_ready(self) -> bool:
        return self.status == ClipStatus.READY
