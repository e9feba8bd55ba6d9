"""VOD repository."""

from datetime import datetime

from sqlalchemy import update

from ....domain.models import Vod, VodStatus
from ..mappers import vod_to_domain, vod_to_persistence
from ..models import VodModel
from .base_repository import BaseRepository


class VodRepository(BaseRepository[Vod, VodModel]):
    """Stores the VODs registered for analysis."""

    model_class = VodModel
    to_domain = staticmethod(vod_to_domain)
    to_persistence = staticmethod(vod_to_persistence)

    async def mark_analyzed(self, vod_id: int, analyzed_at: datetime) -> bool:
        """Flag a VOD as analyzed.

        Returns:
            True if the VOD exists
        """
        stmt = (
            update(VodModel)
            .where(VodModel.id == vod_id)
            .values(status=VodStatus.ANALYZED.value, analyzed_at=analyzed_at)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1
