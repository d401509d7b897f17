"""
Cellar Tracker Backend - Review Route Handler
==============================================

POST /api/reviews. A rating outside 0-100, a missing wineId or an
unparsable reviewDate fails schema validation (400); an unknown wine is 404.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.schemas.common import ErrorResponse
from app.schemas.review import ReviewCreate, ReviewResponse
from app.services.review_service import review_service

router = APIRouter(prefix="/api/reviews", tags=["Reviews"])


@router.post(
    "",
    status_code=201,
    response_model=ReviewResponse,
    responses={
        400: {"description": "Invalid review", "model": ErrorResponse},
        404: {"description": "Wine not found", "model": ErrorResponse},
    },
    summary="Add a tasting review to a wine",
)
async def create_review(
    payload: ReviewCreate,
    db: AsyncSession = Depends(get_db_session),
) -> ReviewResponse:
    return await review_service.create_review(db, payload)
