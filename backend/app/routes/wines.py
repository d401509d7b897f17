"""
Cellar Tracker Backend - Wine Route Handlers
=============================================

What:  CRUD endpoints for wines under /api/wines.
How:   POST and PUT are multipart/form-data so a label photo can travel with
       the wine in one request:

           wine   JSON string with the wine fields (camelCase)
           image  optional JPEG/PNG/WebP file

       The JSON is validated here with the Pydantic models; the image bytes
       are handed to WineService, which stores them through ImageService.

Background Cleanup:
    Image files replaced by an update, or left behind by a delete, are
    removed after the response has been sent. Cleanup is best effort and
    never changes the response.
"""

import logging
from typing import List, Optional, Tuple, Type, TypeVar

import pydantic
from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.exceptions import ValidationError
from app.schemas.common import CamelModel, ErrorResponse, SuccessResponse
from app.schemas.wine import WineCreate, WineResponse, WineUpdate
from app.services.image_service import image_service
from app.services.wine_service import wine_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/wines", tags=["Wines"])

ModelT = TypeVar("ModelT", bound=CamelModel)


def parse_wine_field(raw: str, model: Type[ModelT]) -> ModelT:
    """
    Validate the `wine` form field against `model`.

    Raises ValidationError (400) carrying the first offending field, so
    malformed JSON and schema violations look the same to the client as any
    other bad input.
    """
    try:
        return model.model_validate_json(raw)
    except pydantic.ValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first.get("loc", ()))
        message = first.get("msg", "Invalid wine data")
        raise ValidationError(
            message=f"Invalid wine data: {location + ': ' if location else ''}{message}",
            field=location or "wine",
            context={"error_count": e.error_count()},
        )


async def read_image(image: Optional[UploadFile]) -> Tuple[Optional[bytes], Optional[str]]:
    """Bytes and declared MIME type of an optional upload; (None, None) when absent."""
    if image is None or not image.filename:
        return None, None
    content = await image.read()
    return content, image.content_type


@router.get(
    "",
    response_model=List[WineResponse],
    summary="List wines",
    description="Every wine, newest first, with its reviews, averageRating and reviewCount.",
)
async def list_wines(db: AsyncSession = Depends(get_db_session)) -> List[WineResponse]:
    return await wine_service.list_wines(db)


@router.get(
    "/{wine_id}",
    response_model=WineResponse,
    responses={404: {"description": "Wine not found", "model": ErrorResponse}},
    summary="Get a single wine",
)
async def get_wine(wine_id: int, db: AsyncSession = Depends(get_db_session)) -> WineResponse:
    return await wine_service.get_wine(db, wine_id)


@router.post(
    "",
    status_code=201,
    response_model=WineResponse,
    responses={
        400: {"description": "Invalid wine data or image", "model": ErrorResponse},
        404: {"description": "Referenced bin not found", "model": ErrorResponse},
    },
    summary="Create a wine",
)
async def create_wine(
    wine: str = Form(..., description="Wine fields as a JSON string"),
    image: Optional[UploadFile] = File(default=None, description="Optional label photo"),
    db: AsyncSession = Depends(get_db_session),
) -> WineResponse:
    data = parse_wine_field(wine, WineCreate)
    content, content_type = await read_image(image)
    return await wine_service.create_wine(db, data, content, content_type)


@router.put(
    "/{wine_id}",
    response_model=WineResponse,
    responses={
        400: {"description": "Invalid wine data or image", "model": ErrorResponse},
        404: {"description": "Wine or referenced bin not found", "model": ErrorResponse},
    },
    summary="Update a wine",
    description="Partial update. A new image replaces the previous one.",
)
async def update_wine(
    wine_id: int,
    background_tasks: BackgroundTasks,
    wine: str = Form(..., description="Changed wine fields as a JSON string"),
    image: Optional[UploadFile] = File(default=None, description="Optional replacement label photo"),
    db: AsyncSession = Depends(get_db_session),
) -> WineResponse:
    data = parse_wine_field(wine, WineUpdate)
    content, content_type = await read_image(image)
    updated, stale_urls = await wine_service.update_wine(db, wine_id, data, content, content_type)
    if stale_urls:
        background_tasks.add_task(image_service.cleanup_urls, *stale_urls)
    return updated


@router.delete(
    "/{wine_id}",
    response_model=SuccessResponse,
    responses={404: {"description": "Wine not found", "model": ErrorResponse}},
    summary="Delete a wine and its reviews",
)
async def delete_wine(
    wine_id: int,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db_session),
) -> SuccessResponse:
    orphaned = await wine_service.delete_wine(db, wine_id)
    if orphaned:
        background_tasks.add_task(image_service.cleanup_urls, *orphaned)
    return SuccessResponse()
