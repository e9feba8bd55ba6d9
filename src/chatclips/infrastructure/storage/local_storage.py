"""Filesystem storage backend for development and tests."""

import asyncio
import logging
import shutil
from pathlib import Path

from ...domain.exceptions import StorageError
from .storage_helper import StorageHelper

logger = logging.getLogger(__name__)


class LocalStorage:
    """Copies artifacts into a directory served under ``base_url``."""

    def __init__(self, root: str, base_url: str):
        self.root = Path(root)
        self.base_url = base_url.rstrip("/")

    def _copy(self, local_path: str, destination: Path) -> None:
        destination.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(local_path, destination)

    async def upload(self, local_path: str, destination_key: str) -> str:
        destination = self.root / destination_key
        try:
            await asyncio.to_thread(self._copy, local_path, destination)
        except OSError as e:
            raise StorageError(f"Local upload failed: {e}", key=destination_key) from e

        logger.info(f"Stored {local_path} at {destination}")
        return f"{self.base_url}/{destination_key}"

    async def delete(self, local_path: str) -> None:
        await asyncio.to_thread(StorageHelper.remove_local_file, local_path)
