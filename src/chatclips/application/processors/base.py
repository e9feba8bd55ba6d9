"""Shared behaviour of pipeline stage processors."""

from abc import ABC, abstractmethod
from typing import Type, TypeVar

import structlog
from pydantic import BaseModel, ValidationError
from sqlalchemy.exc import SQLAlchemyError

from ...domain.exceptions import ChatClipsError, InvalidJobParametersError
from ...domain.models import Job, JobResult, JobType
from ...infrastructure.database import Database

logger = structlog.get_logger(__name__)

Parameters = TypeVar("Parameters", bound=BaseModel)


class BaseProcessor(ABC):
    """Runs one pipeline stage and reports the outcome as a ``JobResult``.

    Subclasses implement :meth:`handle`. Errors it raises are converted into
    failed results here, so nothing escapes to the queue.
    """

    job_type: JobType

    def __init__(self, database: Database):
        self.database = database

    @staticmethod
    def parse_parameters(model: Type[Parameters], job: Job) -> Parameters:
        try:
            return model.model_validate(job.parameters)
        except ValidationError as e:
            raise InvalidJobParametersError(job.id, str(e)) from e

    async def process(self, job: Job) -> JobResult:
        try:
            return await self.handle(job)
        except ChatClipsError as e:
            logger.warning(
                "Job stage failed",
                job_id=job.id,
                job_type=job.type.value,
                error=str(e),
                **e.context.to_dict(),
            )
            return JobResult.fail(str(e))
        except SQLAlchemyError as e:
            logger.error("Database error in job stage", job_id=job.id, error=str(e))
            return JobResult.fail(f"Database error: {e}")
        except Exception as e:
            logger.exception("Unexpected error in job stage", job_id=job.id)
            return JobResult.fail(f"Unexpected error: {e}")

    @abstractmethod
    async def handle(self, job: Job) -> JobResult:
        """Perform the stage's work for ``job``."""
