"""
Period restrictions: how far into the future an event type may be booked.
"""

from typing import Optional

import pendulum
from pendulum import DateTime

from .models import EventConstraints, PeriodType

WEEKEND = (5, 6)  # Saturday, Sunday


def add_business_days(start: DateTime, days: int) -> DateTime:
    """Add `days` working days (Monday to Friday) to `start`."""
    current = start
    remaining = days
    while remaining > 0:
        current = current.add(days=1)
        if current.day_of_week not in WEEKEND:
            remaining -= 1
    return current


def is_out_of_bounds(
    time: DateTime,
    constraints: EventConstraints,
    now: Optional[DateTime] = None,
) -> bool:
    """
    Check whether `time` lies outside the event type's booking period.

    Comparisons are made by calendar day in the time zone of `time`.
    """
    period_type = constraints.period_type or PeriodType.UNLIMITED
    day_end = time.end_of("day")

    if period_type == PeriodType.ROLLING:
        if constraints.period_days is None:
            return False

        now = (now or pendulum.now("UTC")).in_timezone(time.timezone)
        if constraints.period_count_calendar_days:
            rolling_end = now.add(days=constraints.period_days)
        else:
            rolling_end = add_business_days(now, constraints.period_days)

        return day_end > rolling_end.end_of("day")

    if period_type == PeriodType.RANGE:
        if constraints.period_start_date is not None:
            range_start = constraints.period_start_date.in_timezone(time.timezone).end_of("day")
            if day_end < range_start:
                return True
        if constraints.period_end_date is not None:
            range_end = constraints.period_end_date.in_timezone(time.timezone).end_of("day")
            if day_end > range_end:
                return True
        return False

    return False


def is_within_bounds(
    time: DateTime,
    constraints: EventConstraints,
    now: Optional[DateTime] = None,
) -> bool:
    """Inverse of is_out_of_bounds, for use as a slot filter."""
    return not is_out_of_bounds(time, constraints, now=now)
