"""
Aggregation of per-host working hours and date overrides.

The aggregate is a plain union of every host's entries, each tagged with the
owning user and the time zone its minutes are relative to. Collective
intersection is not done here: the fixed-host filter rejects any slot a
fixed host cannot take.
"""

from dataclasses import dataclass, replace
from typing import Dict, List, Sequence, Tuple

from .models import DateOverride, Host, UserAvailability, WorkingHours

UTC = "UTC"


@dataclass(frozen=True)
class AggregatedWorkingHours:
    """Working hours and overrides of all hosts of one event type."""
    working_hours: Tuple[WorkingHours, ...]
    date_overrides: Tuple[DateOverride, ...]
    time_zones: Dict[int, str]  # user id -> zone; insertion order is host order


def flatten_date_overrides(
    schedules: Sequence[Tuple[Host, UserAvailability]],
) -> Tuple[DateOverride, ...]:
    """Tag every host's date overrides with the host's user id."""
    overrides: List[DateOverride] = []
    for host, availability in schedules:
        for override in availability.date_overrides:
            overrides.append(replace(override, user_id=host.user_id))
    return tuple(overrides)


def aggregate_working_hours(
    schedules: Sequence[Tuple[Host, UserAvailability]],
    force_utc: bool = False,
) -> AggregatedWorkingHours:
    """
    Merge the availability of several hosts into one working-hours view.

    Args:
        schedules: (host, availability) pairs in host order
        force_utc: Interpret every host's working hours in UTC

    Returns:
        AggregatedWorkingHours for the slot generator
    """
    working_hours: List[WorkingHours] = []
    time_zones: Dict[int, str] = {}

    for host, availability in schedules:
        time_zone = UTC if force_utc else (availability.time_zone or host.time_zone)
        time_zones[host.user_id] = time_zone

        for entry in availability.working_hours:
            working_hours.append(
                replace(entry, user_id=host.user_id, time_zone=time_zone)
            )

    return AggregatedWorkingHours(
        working_hours=tuple(working_hours),
        date_overrides=flatten_date_overrides(schedules),
        time_zones=time_zones,
    )
