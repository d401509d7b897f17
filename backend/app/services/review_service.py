"""
Cellar Tracker Backend - Review Service
========================================

Append-only: reviews are created against an existing wine and never
edited. Range checks on the rating happen in the request schema, so by
the time a ReviewCreate reaches this service it is known to be 0-100.
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import DatabaseError, NotFoundError
from app.models import Review, Wine
from app.schemas.review import ReviewCreate, ReviewResponse

logger = logging.getLogger(__name__)


class ReviewService:

    async def create_review(self, db: AsyncSession, data: ReviewCreate) -> ReviewResponse:
        """
        Attach a review to a wine.

        Raises:
            NotFoundError: the wine does not exist (nothing is written)
            DatabaseError: the insert failed
        """
        try:
            wine_id = (
                await db.execute(select(Wine.id).where(Wine.id == data.wine_id))
            ).scalar_one_or_none()
            if wine_id is None:
                raise NotFoundError(resource="wine", resource_id=data.wine_id)

            review = Review(
                wine_id=data.wine_id,
                rating=data.rating,
                notes=data.notes,
                review_date=data.review_date or datetime.now(timezone.utc),
            )
            db.add(review)
            await db.flush()
            logger.info("Review created: %s for wine %s (rating=%.1f)", review.id, wine_id, review.rating)
            return ReviewResponse.model_validate(review)

        except SQLAlchemyError as e:
            logger.error("Database error creating review: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Failed to create review",
                context={"wine_id": data.wine_id, "error_type": type(e).__name__},
            )


# ── Singleton Instance ────────────────────────────────────────────────────
review_service = ReviewService()
