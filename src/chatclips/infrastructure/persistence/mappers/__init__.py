"""Domain/persistence mapping functions."""

from .base import ensure_utc
from .clip_mapper import clip_to_domain, clip_to_persistence
from .job_mapper import job_to_domain, job_to_persistence
from .vod_mapper import vod_to_domain, vod_to_persistence

__all__ = [
    "clip_to_domain",
    "clip_to_persistence",
    "ensure_utc",
    "job_to_domain",
    "job_to_persistence",
    "vod_to_domain",
    "vod_to_persistence",
]
