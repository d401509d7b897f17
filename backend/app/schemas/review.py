"""
Cellar Tracker Backend - Review Schemas
========================================

Request and response models for /api/reviews. Reviews are append-only, so
there is no update model.
"""

from datetime import datetime
from typing import Optional

from pydantic import Field

from app.schemas.common import CamelModel


class ReviewCreate(CamelModel):
    """
    Body of POST /api/reviews.

    Validation failures (missing wineId, rating outside 0-100, reviewDate
    that is not an ISO 8601 date/datetime) are answered with 400.
    """
    wine_id: int = Field(gt=0)
    rating: float = Field(ge=0, le=100)
    notes: Optional[str] = None
    review_date: Optional[datetime] = Field(
        default=None,
        description="When the wine was tasted; defaults to the time of creation",
    )


class ReviewResponse(CamelModel):
    id: int
    wine_id: int
    rating: float
    notes: Optional[str] = None
    review_date: datetime
