"""
Date utilities for budget deadlines.
"""
import math
from datetime import date, datetime, time, timezone
from typing import Optional

SECONDS_PER_DAY = 24 * 3600


def deadline_start(deadline: date) -> datetime:
    """
    Get the moment a deadline starts, as an aware UTC datetime.

    Deadlines are calendar dates; they are compared against "now" from
    00:00:00 UTC of that day.

    Args:
        deadline: Deadline date

    Returns:
        datetime: Midnight UTC of the deadline date
    """
    return datetime.combine(deadline, time.min, tzinfo=timezone.utc)


def _now(now: Optional[datetime]) -> datetime:
    if now is None:
        return datetime.now(timezone.utc)
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now


def is_overdue(deadline: date, now: Optional[datetime] = None) -> bool:
    """
    Check whether a deadline has already passed.

    Args:
        deadline: Deadline date
        now: Reference moment, defaults to the current UTC time

    Returns:
        bool: True once the deadline day has started
    """
    return deadline_start(deadline) < _now(now)


def days_remaining(deadline: date, now: Optional[datetime] = None) -> int:
    """
    Whole days left until the deadline, rounded up.

    Negative when the deadline is in the past, 0 exactly at the start of the
    deadline day.

    Args:
        deadline: Deadline date
        now: Reference moment, defaults to the current UTC time

    Returns:
        int: Days remaining
    """
    delta = deadline_start(deadline) - _now(now)
    return math.ceil(delta.total_seconds() / SECONDS_PER_DAY)
