"""
FastAPI application entry point.
Image server with on-the-fly resizing and an on-disk variant cache.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pathlib import Path
from typing import Optional
import logging
import os

from imageserver.api.routes import images
from imageserver.config import PACKAGE_DIR, ImageServerConfig, Settings, build_config, settings
from imageserver.services.image_service import ImageRequestHandler


def configure_logging(source: Settings) -> None:
    """Configure root logging: console, plus a file when LOG_FILE is set."""
    handlers = [logging.StreamHandler()]
    if source.log_file:
        os.makedirs(os.path.dirname(source.log_file) or ".", exist_ok=True)
        handlers.append(logging.FileHandler(source.log_file))

    logging.basicConfig(
        level=source.log_level.upper(),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers
    )


configure_logging(settings)

logger = logging.getLogger(__name__)


def create_app(config: Optional[ImageServerConfig] = None) -> FastAPI:
    """
    Build the application.

    Args:
        config: Resolved configuration; when omitted it is built from the
            environment at startup
    """
    app = FastAPI(
        title="Image Server",
        description="Serve images with on-the-fly resizing and cached variants",
        version="1.0.0",
        docs_url="/api/docs",
        redoc_url="/api/redoc"
    )

    app.state.image_handler = ImageRequestHandler(config) if config else None

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    @app.on_event("startup")
    async def startup_event():
        """Resolve the image root on startup."""
        logger.info("🚀 Starting Image Server...")
        logger.info(f"Environment: {settings.environment}")

        if app.state.image_handler is None:
            app.state.image_handler = ImageRequestHandler(build_config(settings))

        logger.info(f"Serving images from: {app.state.image_handler.config.image_root}")
        logger.info(f"Current working directory: {Path.cwd()}")
        logger.info(f"Package location: {PACKAGE_DIR}")

    # Include routers
    app.include_router(
        images.router,
        tags=["Images"]
    )

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "imageserver.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.environment == "development",
        log_level=settings.log_level.lower()
    )
