"""
Date interval helpers for rate versions.

An interval is [effective_from, effective_to] with both ends inclusive and
effective_to = None meaning "until further notice". All comparisons are at
day granularity.
"""

from datetime import date, datetime, timedelta
from typing import Optional, Union

from backend.haulbook.models.rate_enums import RateStatus

DateLike = Union[date, datetime]


def as_day(value: Optional[DateLike]) -> Optional[date]:
    """Drop the time-of-day part, keeping None as None."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    return value


def previous_day(day: DateLike) -> date:
    return as_day(day) - timedelta(days=1)


def overlaps(
    a_from: DateLike,
    a_to: Optional[DateLike],
    b_from: DateLike,
    b_to: Optional[DateLike],
) -> bool:
    """
    Check whether two intervals share at least one day.

    A missing end extends to infinity, so two open-ended intervals always
    overlap and an open-ended interval overlaps anything ending on or after
    its start.
    """
    a_from, a_to = as_day(a_from), as_day(a_to)
    b_from, b_to = as_day(b_from), as_day(b_to)

    if a_to is None and b_to is None:
        return True
    if a_to is None:
        return a_from <= b_to
    if b_to is None:
        return b_from <= a_to
    return a_from <= b_to and b_from <= a_to


def contains(effective_from: DateLike, effective_to: Optional[DateLike], day: DateLike) -> bool:
    day = as_day(day)
    if as_day(effective_from) > day:
        return False
    end = as_day(effective_to)
    return end is None or day <= end


def derive_status(
    effective_from: DateLike,
    effective_to: Optional[DateLike],
    today: DateLike,
) -> RateStatus:
    """
    Status of a rate version as seen on `today`.

    Future if it starts after today, Inactive if it ended before today,
    otherwise Active. A version ending today is still Active.
    """
    today = as_day(today)
    if as_day(effective_from) > today:
        return RateStatus.FUTURE
    end = as_day(effective_to)
    if end is not None and end < today:
        return RateStatus.INACTIVE
    return RateStatus.ACTIVE
