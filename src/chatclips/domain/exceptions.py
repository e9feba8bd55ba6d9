"""Domain-specific exceptions.

Failures of external collaborators (chat replay API, ffmpeg, object storage)
are raised as these types inside adapters and turned into failed
``JobResult`` objects by the processors. Nothing here ever reaches the
scheduler loop uncaught.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class ErrorContext:
    """Structured error context."""

    entity_type: Optional[str] = None
    entity_id: Optional[Any] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary format."""
        result: Dict[str, Any] = {}
        if self.entity_type:
            result["entity_type"] = self.entity_type
        if self.entity_id is not None:
            result["entity_id"] = self.entity_id
        result.update(self.extra)
        return result


class ChatClipsError(Exception):
    """Base exception for all pipeline errors."""

    def __init__(self, message: str, *, context: Optional[ErrorContext] = None):
        super().__init__(message)
        self.message = message
        self.context = context or ErrorContext()

    def __str__(self) -> str:
        if self.context.entity_type and self.context.entity_id is not None:
            return f"{self.message} [{self.context.entity_type}:{self.context.entity_id}]"
        return self.message


class ProcessorNotRegisteredError(ChatClipsError):
    """Raised when a job type has no processor in the queue's registry."""

    def __init__(self, job_type: str):
        super().__init__(
            f"No processor registered for job type: {job_type}",
            context=ErrorContext(extra={"job_type": job_type}),
        )
        self.job_type = job_type


class InvalidJobParametersError(ChatClipsError):
    """Raised when a job's parameters payload does not match its type."""

    def __init__(self, job_id: Optional[int], details: str):
        super().__init__(
            f"Invalid job parameters: {details}",
            context=ErrorContext(entity_type="Job", entity_id=job_id),
        )


class TranscriptError(ChatClipsError):
    """Raised when a chat transcript cannot be fetched."""


class TranscodeError(ChatClipsError):
    """Raised when the external transcoding tool cannot be run."""


class StorageError(ChatClipsError):
    """Raised when an artifact cannot be uploaded to object storage."""

    def __init__(self, message: str, key: Optional[str] = None):
        super().__init__(
            message,
            context=ErrorContext(entity_type="Object", entity_id=key),
        )
        self.key = key
