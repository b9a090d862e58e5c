"""
Wanderlust Backend - Listing Image Serving
===========================================

What:  GET /uploads/{key} returns a stored listing photo.
Who:   <img> tags rendered from Listing.image_url.

Security:
    - The key is resolved against STORAGE_ROOT; anything that escapes it
      (../../etc/passwd) is treated as missing
    - Only files written by FileService live under the root
"""

import logging

from fastapi import APIRouter
from fastapi.responses import FileResponse

from wanderlust.exceptions import NotFoundError
from wanderlust.services.file_service import file_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Uploads"])


@router.get("/uploads/{file_path:path}", summary="Serve a listing image")
async def serve_image(file_path: str) -> FileResponse:
    full_path = file_service.resolve(file_path)
    if full_path is None:
        logger.info("Image not found or outside storage root: %s", file_path)
        raise NotFoundError(resource="image", resource_id=file_path)

    return FileResponse(
        path=str(full_path),
        headers={"Cache-Control": "public, max-age=86400"},
    )
