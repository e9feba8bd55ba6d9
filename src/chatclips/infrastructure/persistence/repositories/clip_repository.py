"""Clip repository."""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import select, update

from ....domain.models import Clip, ClipStatus
from ..mappers import clip_to_domain, clip_to_persistence
from ..models import ClipModel
from .base_repository import BaseRepository


class ClipRepository(BaseRepository[Clip, ClipModel]):
    """Stores clip candidates and their processing state."""

    model_class = ClipModel
    to_domain = staticmethod(clip_to_domain)
    to_persistence = staticmethod(clip_to_persistence)

    async def list_for_vod(self, vod_id: int) -> List[Clip]:
        """Clips of a VOD in timeline order."""
        stmt = (
            select(ClipModel)
            .where(ClipModel.vod_id == vod_id)
            .order_by(ClipModel.start_time, ClipModel.id)
        )
        return await self._find(stmt)

    async def update_status(self, clip_id: int, status: ClipStatus) -> bool:
        stmt = (
            update(ClipModel)
            .where(ClipModel.id == clip_id)
            .values(status=status.value)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1

    async def mark_ready(
        self,
        clip_id: int,
        video_url: str,
        thumbnail_url: Optional[str],
        duration: Optional[float],
        processed_at: datetime,
    ) -> bool:
        """Record the uploaded artifacts of a clip and flag it READY."""
        stmt = (
            update(ClipModel)
            .where(ClipModel.id == clip_id)
            .values(
                status=ClipStatus.READY.value,
                video_url=video_url,
                thumbnail_url=thumbnail_url,
                duration=duration,
                processed_at=processed_at,
            )
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1

    async def fail_unless_ready(self, clip_id: int) -> bool:
        """Flag a clip FAILED after its last job failed; READY clips are kept."""
        stmt = (
            update(ClipModel)
            .where(
                ClipModel.id == clip_id,
                ClipModel.status != ClipStatus.READY.value,
            )
            .values(status=ClipStatus.FAILED.value)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1
