"""
Image processing service for served images.
Handles decoding, resizing and re-encoding to the requested format.
"""

import logging
import struct
from io import BytesIO
from pathlib import Path, PurePosixPath
from typing import Optional, Union
from PIL import Image

from imageserver.api.schemas.params import TransformParams
from imageserver.core.errors import DecodeFailed, EncodeFailed

logger = logging.getLogger(__name__)

# Response Content-Type per extension
CONTENT_TYPES = {
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "gif": "image/gif",
    "webp": "image/webp",
    "bmp": "image/bmp",
}
DEFAULT_CONTENT_TYPE = "image/png"

# Pillow encoder per extension, kept separate from CONTENT_TYPES
ENCODE_FORMATS = {
    "png": "PNG",
    "jpg": "JPEG",
    "jpeg": "JPEG",
    "gif": "GIF",
    "webp": "WEBP",
    "bmp": "BMP",
}
DEFAULT_ENCODE_FORMAT = "PNG"

MAX_QUALITY = 100


def _f32(value: float) -> float:
    """Round a float to IEEE single precision."""
    return struct.unpack("f", struct.pack("f", value))[0]


def _extension(relative_path: str) -> str:
    return PurePosixPath(relative_path).suffix.lstrip(".").lower()


def content_type_for(relative_path: str) -> str:
    """Content-Type advertised for a requested path."""
    return CONTENT_TYPES.get(_extension(relative_path), DEFAULT_CONTENT_TYPE)


def encode_format_for(relative_path: str) -> str:
    """Pillow format name used to encode a requested path."""
    return ENCODE_FORMATS.get(_extension(relative_path), DEFAULT_ENCODE_FORMAT)


class ImageProcessor:
    """Service for decoding, resizing and encoding images."""

    # High-quality filter for both upscaling and downscaling
    RESAMPLE = Image.Resampling.LANCZOS

    def decode(self, source_path: Union[str, Path]) -> Image.Image:
        """
        Open and fully load an image file.

        Raises:
            DecodeFailed: Pillow cannot read the file
        """
        try:
            with Image.open(source_path) as img:
                img.load()
                # Detach from the file handle
                return img.copy()
        except (OSError, ValueError, Image.DecompressionBombError) as e:
            logger.error(f"Failed to load image {source_path}: {e}")
            raise DecodeFailed(f"Failed to load image: {e}")

    def target_size(self, image: Image.Image, params: TransformParams) -> Optional[tuple]:
        """
        Output dimensions for the requested resize, None for no resize.

        A single given side preserves the aspect ratio; the derived side
        is truncated, never rounded.
        """
        width, height = params.width, params.height
        orig_width, orig_height = image.size

        if width is not None and height is not None:
            return width, height

        # Single precision throughout so sizes match existing cache entries
        if width is not None:
            ratio = _f32(_f32(width) / _f32(orig_width))
            return width, max(1, int(_f32(_f32(orig_height) * ratio)))

        if height is not None:
            ratio = _f32(_f32(height) / _f32(orig_height))
            return max(1, int(_f32(_f32(orig_width) * ratio))), height

        return None

    def transform(self, image: Image.Image, params: TransformParams) -> Image.Image:
        """Apply the resize policy. Quality-only requests are a no-op here."""
        size = self.target_size(image, params)
        if size is None:
            return image

        # Pillow falls back to NEAREST for these modes
        if image.mode in ("P", "PA", "1"):
            if image.mode == "1":
                image = image.convert("L")
            elif image.mode == "PA" or "transparency" in image.info:
                image = image.convert("RGBA")
            else:
                image = image.convert("RGB")

        logger.debug(f"Resizing {image.size} -> {size}")
        return image.resize(size, self.RESAMPLE)

    def encode(
        self,
        image: Image.Image,
        relative_path: str,
        quality: Optional[int] = None
    ) -> bytes:
        """
        Encode an image for the format implied by the path extension.

        Quality only applies to JPEG and is capped at 100. Other formats
        use Pillow's default encoder settings.

        Raises:
            EncodeFailed: The codec rejected the image
        """
        image_format = encode_format_for(relative_path)
        buffer = BytesIO()

        try:
            if image_format == "JPEG" and quality is not None:
                jpeg_quality = min(quality, MAX_QUALITY)
                # Normalize to RGBA first, then drop alpha which JPEG cannot store
                rgb_image = image.convert("RGBA").convert("RGB")
                rgb_image.save(buffer, image_format, quality=jpeg_quality)
            else:
                image.save(buffer, image_format)
        except (OSError, ValueError, KeyError) as e:
            logger.error(f"Failed to encode {relative_path} as {image_format}: {e}")
            raise EncodeFailed(f"Failed to encode image: {e}")

        return buffer.getvalue()
