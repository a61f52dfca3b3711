"""
On-disk cache of transformed images.

Artifacts live at <image_root>/[<prefix>/]<cache_key>/<relative path>;
the directory tree is the only index.
"""

import logging
import os
from pathlib import Path
from typing import Optional, Union

from imageserver.core.errors import CacheWriteFailed, ImageServiceError
from imageserver.core.paths import resolve_path

logger = logging.getLogger(__name__)


class CacheStore:
    """Service for reading and writing cached artifacts."""

    def __init__(self, root: Union[str, Path], prefix: str = ""):
        self.root = Path(root)
        self.prefix = prefix.strip("/")

    def relative_path_for(self, key: str, relative_path: str) -> str:
        """Path of an entry relative to the image root."""
        parts = [self.prefix, key, relative_path] if self.prefix else [key, relative_path]
        return "/".join(parts)

    def path_for(self, key: str, relative_path: str) -> Path:
        """Resolved absolute path of an entry, confined to the image root."""
        return resolve_path(self.root, self.relative_path_for(key, relative_path))

    def lookup(self, key: str, relative_path: str) -> Optional[bytes]:
        """
        Read a cached artifact.

        Any failure counts as a miss so the caller regenerates.

        Returns:
            Stored bytes or None
        """
        try:
            cache_path = self.path_for(key, relative_path)
        except ImageServiceError as e:
            logger.warning(f"Cache path rejected for {key}/{relative_path}: {e.detail}")
            return None

        if not cache_path.is_file():
            return None

        try:
            data = cache_path.read_bytes()
        except OSError as e:
            # Entry removed or unreadable between check and read
            logger.warning(f"Cache read failed for {cache_path}: {e}")
            return None

        logger.info(f"Serving from cache: {cache_path}")
        return data

    def write(self, key: str, relative_path: str, data: bytes) -> Path:
        """
        Persist an artifact, overwriting any existing entry.

        Raises:
            CacheWriteFailed: Directory creation or write failed
        """
        try:
            cache_path = self.path_for(key, relative_path)
        except ImageServiceError as e:
            raise CacheWriteFailed(f"Cache path rejected: {e.detail}")

        try:
            os.makedirs(cache_path.parent, exist_ok=True)
            cache_path.write_bytes(data)
        except OSError as e:
            raise CacheWriteFailed(f"Failed to write to cache: {e}")

        return cache_path

    def store(self, key: str, relative_path: str, data: bytes) -> bool:
        """
        Best-effort persist. Failures are logged and never raised.

        Returns:
            True if the artifact was written
        """
        try:
            cache_path = self.write(key, relative_path, data)
        except CacheWriteFailed as e:
            logger.error(f"{e.detail} ({key}/{relative_path})")
            return False

        logger.info(f"Cached processed image: {cache_path}")
        return True
