"""
Cellar Tracker Backend - Analytics Route Handler
=================================================

GET /api/analytics returns every dashboard metric in one object. No caching:
the figures change with every write and the queries are cheap at cellar scale.
"""

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.schemas.analytics import AnalyticsResponse
from app.schemas.common import ErrorResponse
from app.services.analytics_service import analytics_service

router = APIRouter(prefix="/api", tags=["Analytics"])


@router.get(
    "/analytics",
    response_model=AnalyticsResponse,
    responses={500: {"description": "Aggregation failed", "model": ErrorResponse}},
    summary="Collection statistics",
    description=(
        "Vintage, region and variety distributions, ratings by vintage, drinking "
        "window status, bin utilization, vintage performance and per-bin storage history."
    ),
)
async def get_analytics(
    response: Response,
    db: AsyncSession = Depends(get_db_session),
) -> AnalyticsResponse:
    response.headers["Cache-Control"] = "no-store"
    return await analytics_service.get_analytics(db)
