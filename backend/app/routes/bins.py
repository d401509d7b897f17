"""
Cellar Tracker Backend - Bin Route Handlers
============================================

What:  CRUD endpoints for storage bins under /api/bins.
How:   Thin handlers. Body validation is done by FastAPI against the
       Pydantic schemas; everything else is delegated to BinService.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.schemas.bin import BinCreate, BinResponse, BinUpdate
from app.schemas.common import ErrorResponse, SuccessResponse
from app.services.bin_service import bin_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/bins", tags=["Bins"])


@router.get(
    "",
    response_model=List[BinResponse],
    summary="List storage bins",
    description="Returns every bin, newest first.",
)
async def list_bins(db: AsyncSession = Depends(get_db_session)) -> List[BinResponse]:
    return await bin_service.list_bins(db)


@router.post(
    "",
    status_code=201,
    response_model=BinResponse,
    responses={
        400: {"description": "Missing or invalid fields", "model": ErrorResponse},
    },
    summary="Create a storage bin",
)
async def create_bin(
    payload: BinCreate,
    db: AsyncSession = Depends(get_db_session),
) -> BinResponse:
    return await bin_service.create_bin(db, payload)


@router.get(
    "/{bin_id}",
    response_model=BinResponse,
    responses={404: {"description": "Bin not found", "model": ErrorResponse}},
    summary="Get a single bin",
)
async def get_bin(bin_id: int, db: AsyncSession = Depends(get_db_session)) -> BinResponse:
    return await bin_service.get_bin(db, bin_id)


@router.put(
    "/{bin_id}",
    response_model=BinResponse,
    responses={
        400: {"description": "Invalid fields", "model": ErrorResponse},
        404: {"description": "Bin not found", "model": ErrorResponse},
    },
    summary="Update a bin",
    description="Partial update: fields left out of the body keep their current value.",
)
async def update_bin(
    bin_id: int,
    payload: BinUpdate,
    db: AsyncSession = Depends(get_db_session),
) -> BinResponse:
    return await bin_service.update_bin(db, bin_id, payload)


@router.delete(
    "/{bin_id}",
    response_model=SuccessResponse,
    responses={
        404: {"description": "Bin not found", "model": ErrorResponse},
        409: {"description": "Bin still holds wines", "model": ErrorResponse},
    },
    summary="Delete an empty bin",
)
async def delete_bin(bin_id: int, db: AsyncSession = Depends(get_db_session)) -> SuccessResponse:
    await bin_service.delete_bin(db, bin_id)
    return SuccessResponse()
