"""
Cellar Tracker Backend - Derived Metric Helpers
================================================

Pure functions shared by the analytics aggregator and the wine response
schema. No database access, no I/O.
"""

from enum import Enum
from typing import Iterable, Optional


class MaturityStatus(str, Enum):
    """Drinking-window buckets reported by the age analysis."""

    READY = "Ready to Drink"
    TOO_YOUNG = "Too Young"
    PAST_PEAK = "Past Peak"
    UNSPECIFIED = "Unspecified"


def round2(value: float) -> float:
    return round(float(value), 2)


def mean_rating(ratings: Iterable[float]) -> Optional[float]:
    """
    Arithmetic mean of `ratings` rounded to 2 decimals.

    Returns None for an empty input: an unrated wine has no aggregate
    rating, which is different from a rating of 0.
    """
    values = [float(r) for r in ratings]
    if not values:
        return None
    return round2(sum(values) / len(values))


def utilization_rate(count: int, capacity: int) -> float:
    """
    Percentage of a bin's capacity occupied, rounded to 2 decimals.

    Over-filled bins report more than 100. A non-positive capacity cannot
    come from the API (schema and CHECK constraint), but rows edited by hand
    report 0 instead of dividing by zero.
    """
    if capacity <= 0:
        return 0.0
    return round2(count / capacity * 100)


def classify_drinking_window(
    current_year: int,
    drink_from: Optional[int],
    drink_to: Optional[int],
) -> MaturityStatus:
    """
    Place a wine in exactly one maturity bucket for `current_year`.

        >>> classify_drinking_window(2024, 2023, 2030)
        <MaturityStatus.READY: 'Ready to Drink'>
        >>> classify_drinking_window(2024, None, 2030)
        <MaturityStatus.UNSPECIFIED: 'Unspecified'>
    """
    if drink_from is None or drink_to is None:
        return MaturityStatus.UNSPECIFIED
    if current_year < drink_from:
        return MaturityStatus.TOO_YOUNG
    if current_year > drink_to:
        return MaturityStatus.PAST_PEAK
    return MaturityStatus.READY
