"""
Cellar Tracker Backend - Upload Route Handlers
===============================================

What:  Standalone image upload (POST /api/upload) and serving of stored
       files (GET /uploads/{filename}).
Who:   The wine form uploads a label first and submits the returned URLs
       with the wine; <img> tags load /uploads/... directly.

Security:
    - Filenames are resolved inside the upload directory only; anything that
      would escape it (../, nested paths) is rejected with 400
    - In-flight temporary files are never served
"""

import logging
import mimetypes

from fastapi import APIRouter, File, UploadFile
from fastapi.responses import FileResponse

from app.exceptions import NotFoundError
from app.schemas.common import ErrorResponse, UploadResponse
from app.services.image_service import URL_PREFIX, image_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Uploads"])


@router.post(
    "/api/upload",
    response_model=UploadResponse,
    responses={
        400: {"description": "Invalid, oversized or corrupt image", "model": ErrorResponse},
        500: {"description": "Storage failure", "model": ErrorResponse},
    },
    summary="Upload a label image",
    description=(
        "Accepts a JPEG, PNG or WebP image (max 5MB), stores it with a 200x200 "
        "thumbnail and returns both relative URLs."
    ),
)
async def upload_image(
    image: UploadFile = File(..., description="Label photo (JPEG, PNG or WebP)"),
) -> UploadResponse:
    content = await image.read()
    stored = await image_service.store(content, image.content_type)
    return UploadResponse(image_url=stored.image_url, thumbnail_url=stored.thumbnail_url)


@router.get(
    f"{URL_PREFIX}/{{filename:path}}",
    summary="Serve a stored image",
    responses={
        200: {"description": "Image file"},
        400: {"description": "Invalid file path", "model": ErrorResponse},
        404: {"description": "File not found", "model": ErrorResponse},
    },
)
async def serve_upload(filename: str) -> FileResponse:
    path = image_service.resolve(filename)
    if not path.is_file():
        raise NotFoundError(resource="file", resource_id=filename)

    media_type, _ = mimetypes.guess_type(path.name)
    return FileResponse(
        path=str(path),
        media_type=media_type or "application/octet-stream",
        # Names are UUIDs and files are never rewritten in place
        headers={"Cache-Control": "public, max-age=86400"},
    )
