"""Streaming platform adapters."""

from .twitch import TwitchVodClient

__all__ = ["TwitchVodClient"]
