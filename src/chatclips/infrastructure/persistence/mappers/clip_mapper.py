"""Clip mapping functions."""

from ....domain.models import Clip, ClipStatus
from ..models import ClipModel
from .base import ensure_utc


def clip_to_domain(model: ClipModel) -> Clip:
    return Clip(
        id=model.id,
        vod_id=model.vod_id,
        user_id=model.user_id,
        title=model.title,
        start_time=model.start_time,
        end_time=model.end_time,
        confidence_score=model.confidence_score,
        status=ClipStatus(model.status),
        video_url=model.video_url,
        thumbnail_url=model.thumbnail_url,
        duration=model.duration,
        metadata=dict(model.clip_metadata or {}),
        processed_at=ensure_utc(model.processed_at),
        created_at=ensure_utc(model.created_at),
    )


def clip_to_persistence(entity: Clip) -> ClipModel:
    return ClipModel(
        id=entity.id,
        vod_id=entity.vod_id,
        user_id=entity.user_id,
        title=entity.title,
        start_time=entity.start_time,
        end_time=entity.end_time,
        confidence_score=entity.confidence_score,
        status=entity.status.value,
        video_url=entity.video_url,
        thumbnail_url=entity.thumbnail_url,
        duration=entity.duration,
        clip_metadata=dict(entity.metadata),
        processed_at=entity.processed_at,
        created_at=entity.created_at,
    )
