"""
Builders shared by the test modules.
"""

from typing import Iterable, Optional

import pendulum

from slotengine.domain.models import Host, TimeInterval, UserAvailability, WorkingHours

EVERY_DAY = frozenset(range(7))


def at(value: str, tz: str = "UTC"):
    return pendulum.parse(value, tz=tz)


def interval(start: str, end: str, tz: str = "UTC") -> TimeInterval:
    return TimeInterval(start=at(start, tz), end=at(end, tz))


def nine_to_five(time_zone: str = "UTC", days: Iterable[int] = EVERY_DAY) -> WorkingHours:
    return WorkingHours(days=frozenset(days), start_time=9 * 60, end_time=17 * 60, time_zone=time_zone)


def availability(
    busy: Iterable[TimeInterval] = (),
    time_zone: str = "UTC",
    working_hours: Optional[Iterable[WorkingHours]] = None,
    **kwargs,
) -> UserAvailability:
    if working_hours is None:
        working_hours = (nine_to_five(time_zone),)
    return UserAvailability(
        busy=tuple(busy),
        working_hours=tuple(working_hours),
        time_zone=time_zone,
        **kwargs,
    )


def host(user_id: int, is_fixed: bool = True, **kwargs) -> Host:
    kwargs.setdefault("username", f"user{user_id}")
    return Host(user_id=user_id, is_fixed=is_fixed, **kwargs)
