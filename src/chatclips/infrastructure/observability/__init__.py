"""Logfire observability for the worker."""

from .logfire_setup import configure_logfire, job_span

__all__ = ["configure_logfire", "job_span"]
