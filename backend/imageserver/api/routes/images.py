"""
API routes for serving images and the landing page.
"""

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import FileResponse, Response
from pathlib import Path
from typing import List, Optional
import asyncio
import logging

from imageserver.api.schemas.params import parse_transform_params
from imageserver.config import PROJECT_ROOT, ImageServerConfig
from imageserver.core.errors import ImageServiceError
from imageserver.services.image_service import ImageRequestHandler

logger = logging.getLogger(__name__)

router = APIRouter()


def get_image_handler(request: Request) -> ImageRequestHandler:
    """Dependency to get the handler built at startup."""
    return request.app.state.image_handler


def index_candidates(config: ImageServerConfig) -> List[Path]:
    """Locations searched for the landing page."""
    candidates = [Path("index.html"), PROJECT_ROOT / "index.html"]
    if config.index_file is not None:
        candidates.insert(0, config.index_file)
    return candidates


@router.get("/")
async def index(handler: ImageRequestHandler = Depends(get_image_handler)):
    """Serve the static landing page."""
    for path in index_candidates(handler.config):
        if path.is_file():
            return FileResponse(path, media_type="text/html")

    raise HTTPException(status_code=404, detail="index.html not found")


@router.get("/{file_path:path}")
async def get_image(
    file_path: str,
    w: Optional[str] = Query(None, description="Target width in pixels"),
    h: Optional[str] = Query(None, description="Target height in pixels"),
    q: Optional[str] = Query(None, description="JPEG quality (0-100)"),
    handler: ImageRequestHandler = Depends(get_image_handler)
):
    """
    Serve an image, optionally resized and recompressed.

    - **w**: width; height follows the aspect ratio when **h** is absent
    - **h**: height; width follows the aspect ratio when **w** is absent
    - **q**: JPEG quality, capped at 100

    Without parameters the original bytes are returned unchanged.
    Transformed variants are cached on disk per parameter set.
    """
    params = parse_transform_params(w, h, q)

    try:
        result = await asyncio.to_thread(handler.handle, file_path, params)

    except ImageServiceError as e:
        logger.info(f"Request for {file_path!r} failed: {e.detail}")
        raise HTTPException(status_code=404, detail=e.detail)
    except Exception as e:
        logger.error(f"Error serving image {file_path!r}: {e}")
        raise HTTPException(status_code=500, detail=f"Error serving image: {str(e)}")

    return Response(
        content=result.data,
        media_type=result.content_type,
        headers={"X-Image-Source": result.source.value}
    )
