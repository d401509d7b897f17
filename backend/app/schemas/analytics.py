"""
Cellar Tracker Backend - Analytics Schemas
===========================================

Response model of GET /api/analytics. Every list is already ordered by the
aggregator; see AnalyticsService for the ordering of each metric.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from app.schemas.common import CamelModel


class VintageCount(CamelModel):
    vintage: int
    count: int


class RegionCount(CamelModel):
    region: str
    count: int


class VarietyCount(CamelModel):
    variety: str
    count: int


class VintageRating(CamelModel):
    """`count` is the number of distinct wines of the vintage with at least one review."""
    vintage: int
    avg_rating: float
    count: int


class AgeBucket(CamelModel):
    status: str
    count: int


class BinUtilization(CamelModel):
    bin_id: int
    bin_name: str
    count: int
    capacity: int
    utilization_rate: float = Field(description="count / capacity * 100, 2 decimals; may exceed 100")


class VintagePerformance(CamelModel):
    vintage: int
    total_wines: int
    avg_rating: Optional[float] = None
    rating_count: int


class BinStorageTrend(CamelModel):
    bin_id: int
    bin_name: str
    capacity: int
    used: int
    wine_timestamps: List[datetime] = Field(
        default_factory=list,
        description="createdAt of every wine in the bin, oldest first",
    )


class AnalyticsResponse(CamelModel):
    vintage_distribution: List[VintageCount]
    region_distribution: List[RegionCount]
    variety_distribution: List[VarietyCount]
    ratings_by_vintage: List[VintageRating]
    age_analysis: List[AgeBucket]
    bin_distribution: List[BinUtilization]
    vintage_performance: List[VintagePerformance]
    storage_analytics: List[BinStorageTrend]
