"""
Cellar Tracker Backend - Analytics Service (Dashboard Aggregator)
==================================================================

What:  Derived, read-only statistics over bins, wines and reviews.
How:   One GROUP BY per metric over one of two join paths:

           wines ──▶ bins       binDistribution, storageAnalytics
           wines ──▶ reviews    ratingsByVintage, vintagePerformance
           wines                vintage/region/variety distribution,
                                ageAnalysis

       Averages come back from the database unrounded and are rounded to
       2 decimals here, so PostgreSQL and SQLite give identical output.

Consistency:
    All sub-queries run on the request's single session, one after the
    other, inside the same transaction. They are read-only and commute, so
    order is irrelevant; sharing the transaction means every metric sees the
    same snapshot of the store.

Failure:
    All or nothing. A failure in any sub-query aborts the whole call with
    DatabaseError; partial dashboards are never returned.
"""

import logging
from collections import Counter
from datetime import datetime, timezone
from itertools import groupby
from typing import List, Optional

from sqlalchemy import distinct, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import DatabaseError
from app.models import Bin, Review, Wine
from app.schemas.analytics import (
    AgeBucket,
    AnalyticsResponse,
    BinStorageTrend,
    BinUtilization,
    RegionCount,
    VarietyCount,
    VintageCount,
    VintagePerformance,
    VintageRating,
)
from app.services.metrics import (
    MaturityStatus,
    classify_drinking_window,
    round2,
    utilization_rate,
)

logger = logging.getLogger(__name__)

# Display order of the age analysis buckets
_MATURITY_ORDER = [
    MaturityStatus.READY,
    MaturityStatus.TOO_YOUNG,
    MaturityStatus.PAST_PEAK,
    MaturityStatus.UNSPECIFIED,
]


class AnalyticsService:
    """Stateless aggregator. Each metric method is usable on its own."""

    async def vintage_distribution(self, db: AsyncSession) -> List[VintageCount]:
        """Wines per vintage, oldest vintage first."""
        result = await db.execute(
            select(Wine.vintage, func.count(Wine.id).label("count"))
            .group_by(Wine.vintage)
            .order_by(Wine.vintage)
        )
        return [VintageCount(vintage=row.vintage, count=row.count) for row in result]

    async def region_distribution(self, db: AsyncSession) -> List[RegionCount]:
        result = await db.execute(
            select(Wine.region, func.count(Wine.id).label("count"))
            .group_by(Wine.region)
            .order_by(Wine.region)
        )
        return [RegionCount(region=row.region, count=row.count) for row in result]

    async def variety_distribution(self, db: AsyncSession) -> List[VarietyCount]:
        result = await db.execute(
            select(Wine.variety, func.count(Wine.id).label("count"))
            .group_by(Wine.variety)
            .order_by(Wine.variety)
        )
        return [VarietyCount(variety=row.variety, count=row.count) for row in result]

    async def ratings_by_vintage(self, db: AsyncSession) -> List[VintageRating]:
        """
        Mean review rating per vintage and the number of distinct rated wines.

        Inner join: vintages whose wines have no reviews do not appear.
        """
        result = await db.execute(
            select(
                Wine.vintage,
                func.avg(Review.rating).label("avg_rating"),
                func.count(distinct(Wine.id)).label("count"),
            )
            .join(Review, Review.wine_id == Wine.id)
            .group_by(Wine.vintage)
            .order_by(Wine.vintage)
        )
        return [
            VintageRating(
                vintage=row.vintage,
                avg_rating=round2(row.avg_rating),
                count=row.count,
            )
            for row in result
        ]

    async def age_analysis(self, db: AsyncSession, current_year: int) -> List[AgeBucket]:
        """
        Wines per maturity bucket for `current_year`.

        The database groups by drinking window; each distinct window is then
        classified once and its count added to the bucket. Empty buckets are
        omitted.
        """
        result = await db.execute(
            select(Wine.drink_from, Wine.drink_to, func.count(Wine.id).label("count"))
            .group_by(Wine.drink_from, Wine.drink_to)
        )
        buckets: Counter = Counter()
        for row in result:
            status = classify_drinking_window(current_year, row.drink_from, row.drink_to)
            buckets[status] += row.count

        return [
            AgeBucket(status=status.value, count=buckets[status])
            for status in _MATURITY_ORDER
            if buckets[status]
        ]

    async def bin_distribution(self, db: AsyncSession) -> List[BinUtilization]:
        """Wine count and utilization for every bin, empty bins included."""
        result = await db.execute(
            select(
                Bin.id,
                Bin.name,
                Bin.capacity,
                func.count(Wine.id).label("count"),
            )
            .outerjoin(Wine, Wine.bin_id == Bin.id)
            .group_by(Bin.id, Bin.name, Bin.capacity)
            .order_by(Bin.id)
        )
        return [
            BinUtilization(
                bin_id=row.id,
                bin_name=row.name,
                count=row.count,
                capacity=row.capacity,
                utilization_rate=utilization_rate(row.count, row.capacity),
            )
            for row in result
        ]

    async def vintage_performance(self, db: AsyncSession) -> List[VintagePerformance]:
        """
        Per vintage: wine count, mean rating and number of ratings.

        Outer join so unrated vintages are kept with avg_rating None.
        COUNT(DISTINCT wines.id) because the join repeats a wine once per review.
        """
        result = await db.execute(
            select(
                Wine.vintage,
                func.count(distinct(Wine.id)).label("total_wines"),
                func.avg(Review.rating).label("avg_rating"),
                func.count(Review.id).label("rating_count"),
            )
            .outerjoin(Review, Review.wine_id == Wine.id)
            .group_by(Wine.vintage)
            .order_by(Wine.vintage)
        )
        return [
            VintagePerformance(
                vintage=row.vintage,
                total_wines=row.total_wines,
                avg_rating=round2(row.avg_rating) if row.avg_rating is not None else None,
                rating_count=row.rating_count,
            )
            for row in result
        ]

    async def storage_analytics(self, db: AsyncSession) -> List[BinStorageTrend]:
        """Per bin, the creation times of its wines in chronological order."""
        result = await db.execute(
            select(Bin.id, Bin.name, Bin.capacity, Wine.created_at)
            .outerjoin(Wine, Wine.bin_id == Bin.id)
            .order_by(Bin.id, Wine.created_at, Wine.id)
        )
        trends = []
        for (bin_id, bin_name, capacity), rows in groupby(
            result, key=lambda row: (row.id, row.name, row.capacity)
        ):
            timestamps = [row.created_at for row in rows if row.created_at is not None]
            trends.append(
                BinStorageTrend(
                    bin_id=bin_id,
                    bin_name=bin_name,
                    capacity=capacity,
                    used=len(timestamps),
                    wine_timestamps=timestamps,
                )
            )
        return trends

    async def get_analytics(
        self,
        db: AsyncSession,
        current_year: Optional[int] = None,
    ) -> AnalyticsResponse:
        """
        Compute every dashboard metric.

        Args:
            db: Async database session
            current_year: Year used for the age analysis; defaults to the
                          current UTC calendar year

        Raises:
            DatabaseError: any sub-query failed (no partial result)
        """
        year = current_year if current_year is not None else datetime.now(timezone.utc).year
        try:
            analytics = AnalyticsResponse(
                vintage_distribution=await self.vintage_distribution(db),
                region_distribution=await self.region_distribution(db),
                variety_distribution=await self.variety_distribution(db),
                ratings_by_vintage=await self.ratings_by_vintage(db),
                age_analysis=await self.age_analysis(db, year),
                bin_distribution=await self.bin_distribution(db),
                vintage_performance=await self.vintage_performance(db),
                storage_analytics=await self.storage_analytics(db),
            )
        except SQLAlchemyError as e:
            logger.error("Database error computing analytics: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Failed to fetch analytics",
                context={"error_type": type(e).__name__},
            )

        logger.debug(
            "Analytics computed: %d vintages, %d bins",
            len(analytics.vintage_distribution),
            len(analytics.bin_distribution),
        )
        return analytics


# ── Singleton Instance ────────────────────────────────────────────────────
analytics_service = AnalyticsService()
