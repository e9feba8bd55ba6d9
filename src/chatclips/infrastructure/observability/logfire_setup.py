"""Logfire configuration and setup for the chatclips worker.

This module handles the initialization of Pydantic Logfire and the per-job
spans the queue opens around processor runs.
"""

import logging
from contextlib import nullcontext
from typing import Any, ContextManager

import logfire

from ..config import Settings

logger = logging.getLogger(__name__)

_enabled = False


def configure_logfire(settings: Settings) -> None:
    """Configure and initialize Logfire with application settings.

    Outside production a failed setup is logged and the worker carries on
    without spans.

    Args:
        settings: Application settings
    """
    global _enabled

    if not settings.logfire.enabled:
        logger.info("Logfire is disabled in configuration")
        _enabled = False
        return

    config: dict[str, Any] = {
        "service_name": settings.logfire.service_name,
        "service_version": settings.app.version,
        "environment": settings.logfire_env,
        "send_to_logfire": "if-token-present",
    }
    if not settings.logfire.console_enabled:
        config["console"] = False
    if settings.logfire.token:
        config["token"] = settings.logfire.token.get_secret_value()

    try:
        logfire.configure(**config)
        _setup_integrations()
        _enabled = True
        logger.info(f"Logfire configured successfully for {settings.logfire.service_name}")
    except Exception as e:
        logger.error(f"Failed to configure Logfire: {e}")
        if settings.is_production:
            raise
        logger.warning("Continuing without Logfire outside production")
        _enabled = False


def _setup_integrations() -> None:
    """Instrument the libraries the worker talks to the outside world with."""
    try:
        logfire.instrument_sqlalchemy()
        logger.info("SQLAlchemy instrumentation enabled")
    except Exception as e:
        logger.warning(f"Failed to instrument SQLAlchemy: {e}")

    try:
        logfire.instrument_httpx()
        logger.info("HTTPX instrumentation enabled")
    except Exception as e:
        logger.warning(f"Failed to instrument HTTPX: {e}")


def job_span(job_type: str, job_id: Any, **attributes: Any) -> ContextManager[Any]:
    """Span covering one processor run, or a no-op when Logfire is off.

    Args:
        job_type: Job type value
        job_id: Job identifier
        **attributes: Additional attributes for the span
    """
    if not _enabled:
        return nullcontext()
    return logfire.span(
        "job.{job_type}", job_type=job_type, job_id=job_id, **attributes
    )
