"""Application layer: the job queue and the pipeline stage processors."""

from .job_queue import JobQueue
from .progress import ProgressReporter

__all__ = ["JobQueue", "ProgressReporter"]
