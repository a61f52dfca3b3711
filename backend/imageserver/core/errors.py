"""
Error taxonomy for image requests.
Every failure is scoped to a single request.
"""


class ImageServiceError(Exception):
    """Base class for request-level image errors."""

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class InvalidPath(ImageServiceError):
    """Requested path escapes the image root, or the root is unusable."""


class NotFound(ImageServiceError):
    """Requested file does not exist as a regular file."""


class DecodeFailed(ImageServiceError):
    """Source file could not be decoded as an image."""


class EncodeFailed(ImageServiceError):
    """Transformed image could not be encoded."""


class CacheWriteFailed(ImageServiceError):
    """Artifact could not be persisted. Recovered locally, never surfaced."""
