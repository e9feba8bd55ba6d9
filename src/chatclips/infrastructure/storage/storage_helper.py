"""Storage helper utilities.

This module provides utility functions for storage operations,
keeping them separate from the storage backends themselves.
"""

import logging
import mimetypes
import os
from pathlib import Path

logger = logging.getLogger(__name__)


class StorageHelper:
    """Helper class for common storage operations."""

    @staticmethod
    def clip_key(user_id: str, clip_id: int, fmt: str = "mp4") -> str:
        """Object key of an uploaded clip.

        Example:
            >>> StorageHelper.clip_key("user_1", 42)
            'clips/user_1/42.mp4'
        """
        return f"clips/{user_id}/{clip_id}.{fmt}"

    @staticmethod
    def thumbnail_key(user_id: str, clip_id: int) -> str:
        """Object key of a clip thumbnail.

        Example:
            >>> StorageHelper.thumbnail_key("user_1", 42)
            'thumbnails/user_1/42.jpg'
        """
        return f"thumbnails/{user_id}/{clip_id}.jpg"

    @staticmethod
    def get_content_type(filename: str) -> str:
        """Get content type from filename.

        Args:
            filename: File name or path

        Returns:
            MIME content type
        """
        content_type = mimetypes.guess_type(filename)[0]

        extension_map = {
            ".mp4": "video/mp4",
            ".webm": "video/webm",
            ".jpg": "image/jpeg",
        }

        ext = Path(filename).suffix.lower()
        return extension_map.get(ext, content_type or "application/octet-stream")

    @staticmethod
    def remove_local_file(path: str) -> None:
        """Delete a temporary file; a file that is already gone is fine."""
        try:
            os.remove(path)
        except FileNotFoundError:
            return
        except OSError as e:
            logger.warning(f"Failed to delete local file {path}: {e}")
