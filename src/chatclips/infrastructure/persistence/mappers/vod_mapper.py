"""VOD mapping functions."""

from ....domain.models import Vod, VodStatus
from ..models import VodModel
from .base import ensure_utc


def vod_to_domain(model: VodModel) -> Vod:
    return Vod(
        id=model.id,
        user_id=model.user_id,
        platform_vod_id=model.platform_vod_id,
        title=model.title,
        status=VodStatus(model.status),
        analyzed_at=ensure_utc(model.analyzed_at),
        created_at=ensure_utc(model.created_at),
    )


def vod_to_persistence(entity: Vod) -> VodModel:
    return VodModel(
        id=entity.id,
        user_id=entity.user_id,
        platform_vod_id=entity.platform_vod_id,
        title=entity.title,
        status=entity.status.value,
        analyzed_at=entity.analyzed_at,
        created_at=entity.created_at,
    )
