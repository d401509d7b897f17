"""
Cellar Tracker Backend - Analytics Tests
=========================================

What:  AnalyticsService against a small, fully known collection, plus the
       GET /api/analytics wire format.

Fixture collection (current year pinned to 2024):

    Cellar A (cap 4)   2015 Margaux      Bordeaux  Cab Sauv   2020-2040  reviews 90, 94
                       2015 Pauillac     Bordeaux  Cab Sauv   2026-2045  review  88
                       2018 Barolo       Piedmont  Nebbiolo   2010-2020
    Cellar B (cap 3)   2018 Chablis      Burgundy  Chardonnay no window  review  85
    Empty    (cap 6)   -
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, patch

import pytest
import pytest_asyncio
from sqlalchemy.exc import OperationalError

from app.exceptions import DatabaseError
from app.models import Bin, Review, Wine
from app.services.analytics_service import AnalyticsService, analytics_service

BASE_TIME = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


@pytest_asyncio.fixture
async def collection(db_session):
    cellar_a = Bin(name="Cellar A", location="Basement", capacity=4, created_at=BASE_TIME)
    cellar_b = Bin(name="Cellar B", location="Kitchen", capacity=3, created_at=BASE_TIME)
    empty = Bin(name="Empty", location="Garage", capacity=6, created_at=BASE_TIME)
    db_session.add_all([cellar_a, cellar_b, empty])
    await db_session.flush()

    def wine(bin_, minutes, **fields):
        return Wine(bin_id=bin_.id, created_at=BASE_TIME + timedelta(minutes=minutes), **fields)

    margaux = wine(cellar_a, 3, name="Margaux", vintage=2015, region="Bordeaux",
                   variety="Cabernet Sauvignon", producer="Château Margaux",
                   drink_from=2020, drink_to=2040)
    pauillac = wine(cellar_a, 1, name="Pauillac", vintage=2015, region="Bordeaux",
                    variety="Cabernet Sauvignon", producer="Château Latour",
                    drink_from=2026, drink_to=2045)
    barolo = wine(cellar_a, 2, name="Barolo", vintage=2018, region="Piedmont",
                  variety="Nebbiolo", producer="Giacomo Conterno",
                  drink_from=2010, drink_to=2020)
    chablis = wine(cellar_b, 4, name="Chablis", vintage=2018, region="Burgundy",
                   variety="Chardonnay", producer="Raveneau")
    db_session.add_all([margaux, pauillac, barolo, chablis])
    await db_session.flush()

    db_session.add_all([
        Review(wine_id=margaux.id, rating=90),
        Review(wine_id=margaux.id, rating=94),
        Review(wine_id=pauillac.id, rating=88),
        Review(wine_id=chablis.id, rating=85),
    ])
    await db_session.commit()
    return {"cellar_a": cellar_a, "cellar_b": cellar_b, "empty": empty}


class TestAnalyticsService:

    @pytest.mark.asyncio
    async def test_empty_store(self, db_session):
        result = await analytics_service.get_analytics(db_session, current_year=2024)

        assert result.vintage_distribution == []
        assert result.age_analysis == []
        assert result.bin_distribution == []
        assert result.storage_analytics == []

    @pytest.mark.asyncio
    async def test_distributions(self, db_session, collection):
        result = await analytics_service.get_analytics(db_session, current_year=2024)

        assert [(v.vintage, v.count) for v in result.vintage_distribution] == [(2015, 2), (2018, 2)]
        assert [(r.region, r.count) for r in result.region_distribution] == [
            ("Bordeaux", 2), ("Burgundy", 1), ("Piedmont", 1),
        ]
        assert [(v.variety, v.count) for v in result.variety_distribution] == [
            ("Cabernet Sauvignon", 2), ("Chardonnay", 1), ("Nebbiolo", 1),
        ]
        assert sum(v.count for v in result.vintage_distribution) == 4

    @pytest.mark.asyncio
    async def test_ratings_by_vintage_counts_distinct_rated_wines(self, db_session, collection):
        result = await analytics_service.get_analytics(db_session, current_year=2024)

        ratings = {r.vintage: (r.avg_rating, r.count) for r in result.ratings_by_vintage}
        # 2015: reviews 90, 94, 88 over two wines; 2018: only Chablis is rated
        assert ratings == {2015: (90.67, 2), 2018: (85.0, 1)}

    @pytest.mark.asyncio
    async def test_age_analysis(self, db_session, collection):
        result = await analytics_service.get_analytics(db_session, current_year=2024)

        assert [(a.status, a.count) for a in result.age_analysis] == [
            ("Ready to Drink", 1),
            ("Too Young", 1),
            ("Past Peak", 1),
            ("Unspecified", 1),
        ]

    @pytest.mark.asyncio
    async def test_age_analysis_omits_empty_buckets(self, db_session, collection):
        result = await analytics_service.get_analytics(db_session, current_year=2050)

        assert [(a.status, a.count) for a in result.age_analysis] == [
            ("Past Peak", 3),
            ("Unspecified", 1),
        ]

    @pytest.mark.asyncio
    async def test_year_zero_is_used_as_given(self, db_session, collection):
        result = await analytics_service.get_analytics(db_session, current_year=0)

        assert [(a.status, a.count) for a in result.age_analysis] == [
            ("Too Young", 3),
            ("Unspecified", 1),
        ]

    @pytest.mark.asyncio
    async def test_bin_distribution_includes_empty_bins(self, db_session, collection):
        result = await analytics_service.get_analytics(db_session, current_year=2024)

        assert [
            (b.bin_name, b.count, b.capacity, b.utilization_rate)
            for b in result.bin_distribution
        ] == [
            ("Cellar A", 3, 4, 75.0),
            ("Cellar B", 1, 3, 33.33),
            ("Empty", 0, 6, 0.0),
        ]

    @pytest.mark.asyncio
    async def test_vintage_performance(self, db_session, collection):
        result = await analytics_service.get_analytics(db_session, current_year=2024)

        assert [
            (p.vintage, p.total_wines, p.avg_rating, p.rating_count)
            for p in result.vintage_performance
        ] == [
            (2015, 2, 90.67, 3),
            (2018, 2, 85.0, 1),
        ]

    @pytest.mark.asyncio
    async def test_vintage_performance_unrated_vintage(self, db_session, collection):
        db_session.add(Wine(bin_id=collection["empty"].id, name="Rioja", vintage=2019,
                            region="Rioja", variety="Tempranillo", producer="López de Heredia"))
        await db_session.commit()

        result = await analytics_service.get_analytics(db_session, current_year=2024)

        unrated = result.vintage_performance[-1]
        assert (unrated.vintage, unrated.total_wines, unrated.avg_rating, unrated.rating_count) == (
            2019, 1, None, 0,
        )

    @pytest.mark.asyncio
    async def test_storage_analytics_chronological(self, db_session, collection):
        result = await analytics_service.get_analytics(db_session, current_year=2024)

        cellar_a, cellar_b, empty = result.storage_analytics
        assert (cellar_a.bin_name, cellar_a.capacity, cellar_a.used) == ("Cellar A", 4, 3)
        minutes = [
            int((ts.replace(tzinfo=timezone.utc) - BASE_TIME).total_seconds() // 60)
            for ts in cellar_a.wine_timestamps
        ]
        assert minutes == [1, 2, 3]
        assert cellar_b.used == 1
        assert (empty.used, empty.wine_timestamps) == (0, [])

    @pytest.mark.asyncio
    async def test_database_failure_is_all_or_nothing(self, mock_db_session):
        mock_db_session.execute = AsyncMock(
            side_effect=OperationalError("SELECT", {}, Exception("database is locked"))
        )

        with pytest.raises(DatabaseError, match="Failed to fetch analytics"):
            await AnalyticsService().get_analytics(mock_db_session, current_year=2024)


class TestAnalyticsEndpoint:

    @pytest.mark.asyncio
    async def test_wire_format(self, test_client, collection):
        response = await test_client.get("/api/analytics")

        assert response.status_code == 200
        body = response.json()
        assert set(body) == {
            "vintageDistribution",
            "regionDistribution",
            "varietyDistribution",
            "ratingsByVintage",
            "ageAnalysis",
            "binDistribution",
            "vintagePerformance",
            "storageAnalytics",
        }
        assert body["binDistribution"][0] == {
            "binId": collection["cellar_a"].id,
            "binName": "Cellar A",
            "count": 3,
            "capacity": 4,
            "utilizationRate": 75.0,
        }
        assert body["ratingsByVintage"][0] == {"vintage": 2015, "avgRating": 90.67, "count": 2}
        assert set(body["vintagePerformance"][0]) == {"vintage", "totalWines", "avgRating", "ratingCount"}
        assert set(body["storageAnalytics"][0]) == {"binId", "binName", "capacity", "used", "wineTimestamps"}

    @pytest.mark.asyncio
    async def test_failure_is_500_with_message(self, test_client):
        with patch(
            "app.routes.analytics.analytics_service.get_analytics",
            AsyncMock(side_effect=DatabaseError(message="Failed to fetch analytics")),
        ):
            response = await test_client.get("/api/analytics")

        assert response.status_code == 500
        assert response.json()["error"] == "Failed to fetch analytics"
        assert response.json()["code"] == "server_error"
