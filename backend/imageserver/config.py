"""
Configuration management using Pydantic Settings.
Loads environment variables from .env file and resolves the image root.
"""

from pydantic import BaseModel, ConfigDict
from pydantic_settings import BaseSettings
from pathlib import Path
from typing import List, Optional
import logging
import os

logger = logging.getLogger(__name__)

PACKAGE_DIR = Path(__file__).resolve().parent
PROJECT_ROOT = PACKAGE_DIR.parent.parent


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Image storage (IMAGE_DIR)
    image_dir: Optional[str] = None

    # Subdirectory of the image root holding cache key directories
    cache_prefix: str = ""

    # Landing page
    index_file: Optional[str] = None

    # API Configuration
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # Environment
    environment: str = "development"

    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = None

    # CORS
    cors_origins: List[str] = ["*"]

    model_config = {
        # Look for .env in the backend directory
        "env_file": os.path.join(os.path.dirname(os.path.dirname(__file__)), ".env"),
        "case_sensitive": False,
        "extra": "ignore",
    }


class ImageServerConfig(BaseModel):
    """Immutable runtime configuration handed to the request handler."""

    model_config = ConfigDict(frozen=True)

    image_root: Path
    cache_prefix: str = ""
    index_file: Optional[Path] = None


# Global settings instance
settings = Settings()


def candidate_image_dirs() -> List[Path]:
    """Locations searched for the image root when IMAGE_DIR is unset."""
    return [
        Path("./images"),
        PACKAGE_DIR / "images",
        PROJECT_ROOT / "images",
    ]


def discover_image_dir(image_dir: Optional[str] = None) -> Path:
    """
    Pick the image root directory, creating it if missing.

    Args:
        image_dir: Explicit directory (IMAGE_DIR); wins over discovery

    Returns:
        Absolute, symlink-resolved image root
    """
    if image_dir:
        path = Path(image_dir)
    else:
        path = next(
            (p for p in candidate_image_dirs() if p.is_dir()),
            Path("./images"),
        )

    if not path.exists():
        logger.info(f"Creating image directory: {path}")
        path.mkdir(parents=True, exist_ok=True)

    return path.resolve()


def build_config(source: Optional[Settings] = None) -> ImageServerConfig:
    """Resolve settings into the immutable handler configuration."""
    source = source or settings
    return ImageServerConfig(
        image_root=discover_image_dir(source.image_dir),
        cache_prefix=source.cache_prefix.strip("/"),
        index_file=Path(source.index_file) if source.index_file else None,
    )
