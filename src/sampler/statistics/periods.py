"""Calendar window helpers for the statistics pages.

Windows are computed in the timezone of the ``now`` passed in, so callers
decide whether "this month" is local or UTC.
"""

from __future__ import annotations

import math
from datetime import datetime, time, timedelta

# Inclusive end of a day, to the store's millisecond precision
END_OF_DAY = time(23, 59, 59, 999000)


def month_range(now: datetime) -> tuple[datetime, datetime]:
    """(first day 00:00, last day 23:59:59.999) of the month containing ``now``."""
    start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    next_month = (start + timedelta(days=32)).replace(day=1)
    end = datetime.combine((next_month - timedelta(days=1)).date(), END_OF_DAY, tzinfo=now.tzinfo)
    return start, end


def previous_month_range(now: datetime) -> tuple[datetime, datetime]:
    this_start, _ = month_range(now)
    return month_range(this_start - timedelta(days=1))


def week_range(now: datetime) -> tuple[datetime, datetime]:
    """(Monday 00:00, Sunday 23:59:59.999) of the week containing ``now``."""
    monday = now.date() - timedelta(days=now.weekday())
    start = datetime.combine(monday, time.min, tzinfo=now.tzinfo)
    end = datetime.combine(monday + timedelta(days=6), END_OF_DAY, tzinfo=now.tzinfo)
    return start, end


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def percent_change(current: float, previous: float) -> int:
    """Whole-percent change; 100 when growing from zero, 0 when both are zero."""
    if previous == 0:
        return 100 if current > 0 else 0
    return round_half_up((current - previous) / previous * 100)
