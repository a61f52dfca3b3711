"""
Request orchestration: validate, look up cache, transform, encode, store.
"""

import logging
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict

from imageserver.api.schemas.params import TransformParams
from imageserver.config import ImageServerConfig
from imageserver.core.errors import NotFound
from imageserver.core.paths import resolve_path
from imageserver.services.cache_store import CacheStore
from imageserver.services.image_processor import ImageProcessor, content_type_for

logger = logging.getLogger(__name__)


class ImageSource(str, Enum):
    """Where the response bytes came from."""
    ORIGINAL = "original"
    CACHE = "cache"
    FRESH = "fresh"


class ImageResult(BaseModel):
    """Bytes to send back with their declared content type."""

    model_config = ConfigDict(frozen=True)

    data: bytes
    content_type: str
    source: ImageSource


class ImageRequestHandler:
    """Serves originals and cached or freshly transformed variants."""

    def __init__(
        self,
        config: ImageServerConfig,
        processor: Optional[ImageProcessor] = None,
        cache: Optional[CacheStore] = None
    ):
        self.config = config
        self.processor = processor or ImageProcessor()
        self.cache = cache or CacheStore(config.image_root, config.cache_prefix)

    def handle(
        self,
        relative_path: str,
        params: Optional[TransformParams] = None
    ) -> ImageResult:
        """
        Produce the response for one image request.

        Args:
            relative_path: Path under the image root
            params: Normalized transform parameters, None to serve the original

        Raises:
            InvalidPath: Path escapes the image root
            NotFound: Original does not exist
            DecodeFailed: Original is not a readable image
            EncodeFailed: Result could not be encoded
        """
        root = self.config.image_root
        # Content type depends on the requested extension only
        content_type = content_type_for(relative_path)

        resolve_path(root, relative_path)

        cache_key = params.cache_key() if params is not None else None
        if cache_key is None:
            original_path = resolve_path(root, relative_path, require_file=True)
            try:
                data = original_path.read_bytes()
            except OSError as e:
                logger.error(f"Failed to read {original_path}: {e}")
                raise NotFound(f"Failed to read image: {relative_path!r}")

            logger.debug(f"Serving original: {original_path}")
            return ImageResult(data=data, content_type=content_type, source=ImageSource.ORIGINAL)

        cached = self.cache.lookup(cache_key, relative_path)
        if cached is not None:
            return ImageResult(data=cached, content_type=content_type, source=ImageSource.CACHE)

        original_path = resolve_path(root, relative_path, require_file=True)
        image = self.processor.decode(original_path)
        processed = self.processor.transform(image, params)
        data = self.processor.encode(processed, relative_path, params.quality)

        # Response does not depend on the write succeeding
        self.cache.store(cache_key, relative_path, data)

        return ImageResult(data=data, content_type=content_type, source=ImageSource.FRESH)
