"""Database connectivity and session management."""

from .connection import Database

__all__ = ["Database"]
