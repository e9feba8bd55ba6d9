"""Domain models."""

from .chat import ChatMessage, HighlightMoment, TimeWindow
from .clip import Clip, ClipStatus, Vod, VodStatus
from .job import Job, JobResult, JobStatus, JobType

__all__ = [
    "ChatMessage",
    "Clip",
    "ClipStatus",
    "HighlightMoment",
    "Job",
    "JobResult",
    "JobStatus",
    "JobType",
    "TimeWindow",
    "Vod",
    "VodStatus",
]
