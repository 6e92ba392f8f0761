"""
Closed-interval helpers for booking periods.

A booking holds its resource from start_date to end_date with both bounds
inclusive, so two bookings that share a single instant still overlap.
"""

from datetime import datetime
from typing import Optional

from utils.datetime_utils import ensure_utc


class InvalidIntervalError(ValueError):
    """Raised when an interval ends before it starts."""


def intervals_overlap(
    start_a: datetime,
    end_a: datetime,
    start_b: datetime,
    end_b: datetime
) -> bool:
    """
    Check whether [start_a, end_a] and [start_b, end_b] intersect.

    Mirrors the SQL filter used by availability queries:
    ``start_date <= end AND end_date >= start``.
    """
    start_a, end_a = ensure_utc(start_a), ensure_utc(end_a)
    start_b, end_b = ensure_utc(start_b), ensure_utc(end_b)
    return start_a <= end_b and start_b <= end_a  # type: ignore[operator]


def validate_interval(start: Optional[datetime], end: Optional[datetime]) -> None:
    """Raise InvalidIntervalError if both bounds are known and end < start."""
    if start is None or end is None:
        return
    if ensure_utc(end) < ensure_utc(start):  # type: ignore[operator]
        raise InvalidIntervalError("End date must not be before start date")
