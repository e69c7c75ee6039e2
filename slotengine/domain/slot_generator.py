"""
Generation of candidate start times from working hours.

Pure domain logic: "now" is passed in, so the same inputs always yield the
same candidates.
"""

from typing import Dict, Iterator, List, Optional, Tuple

import pendulum
from pendulum import Date, DateTime

from .models import MINUTES_PER_DAY, CandidateSlot, TimeInterval
from .working_hours import AggregatedWorkingHours


class SlotGenerator:
    """
    Produces candidate slots for a time window.

    Algorithm:
    1. Build each host's open windows (overrides win over recurring hours)
    2. Walk the requested window one calendar day at a time
    3. Step through every open window touching the day by `frequency`
    4. Drop start times before the minimum booking notice
    5. Attach every host whose open windows fit the whole slot
    """

    def __init__(self, aggregate: AggregatedWorkingHours):
        self.aggregate = aggregate
        self._overrides = self._index_overrides()

    def generate(
        self,
        window_start: DateTime,
        window_end: DateTime,
        duration: int,
        minimum_notice: int = 0,
        frequency: Optional[int] = None,
        now: Optional[DateTime] = None,
    ) -> List[CandidateSlot]:
        """
        Generate candidate slots inside [window_start, window_end).

        Args:
            window_start: Start of the requested window; its time zone is
                the zone the slots are reported in
            window_end: End of the requested window (exclusive)
            duration: Slot length in minutes
            minimum_notice: Minutes that must pass between now and a slot
            frequency: Minutes between two start times, defaults to duration
            now: Reference time for the booking notice

        Returns:
            CandidateSlot objects in ascending time order
        """
        if window_start >= window_end or duration <= 0:
            return []

        frequency = frequency or duration
        now = now or pendulum.now("UTC")
        earliest = now.add(minutes=minimum_notice)
        time_zone = window_start.timezone

        open_windows = {
            user_id: self._get_open_windows(user_id, zone, window_start, window_end)
            for user_id, zone in self.aggregate.time_zones.items()
        }

        # Ordered set of start times, keyed by instant
        start_times: Dict[DateTime, None] = {}

        current = window_start.start_of("day")
        while current < window_end:
            day_end = current.add(days=1)

            for windows in open_windows.values():
                for window in windows:
                    if window.end <= current or window.start >= day_end:
                        continue

                    for time in self._iter_start_times(window, duration, frequency):
                        if time >= day_end:
                            break
                        if time < current or time < window_start or time >= window_end:
                            continue
                        if time < earliest:
                            continue
                        start_times[time.in_timezone(time_zone)] = None

            current = day_end

        slots: List[CandidateSlot] = []
        for time in sorted(start_times):
            slot_end = time.add(minutes=duration)
            user_ids = tuple(
                user_id
                for user_id, windows in open_windows.items()
                if any(window.contains(time, slot_end) for window in windows)
            )
            slots.append(CandidateSlot(time=time, user_ids=user_ids))

        return slots

    def _index_overrides(self) -> Dict[Tuple[int, str], List[TimeInterval]]:
        index: Dict[Tuple[int, str], List[TimeInterval]] = {}
        for override in self.aggregate.date_overrides:
            intervals = index.setdefault((override.user_id, override.date), [])
            intervals.extend(override.intervals)
        return index

    def _get_open_windows(
        self,
        user_id: int,
        time_zone: str,
        window_start: DateTime,
        window_end: DateTime,
    ) -> List[TimeInterval]:
        """
        Build the open windows of one host covering the requested window.

        A date override for a local date replaces all recurring working hours
        of that date.
        """
        windows: List[TimeInterval] = []

        date = window_start.in_timezone(time_zone).date().subtract(days=1)
        last_date = window_end.in_timezone(time_zone).date()

        while date <= last_date:
            override = self._overrides.get((user_id, date.to_date_string()))

            if override is not None:
                windows.extend(override)
            else:
                for entry in self.aggregate.working_hours:
                    if entry.user_id != user_id or not entry.applies_to(date.day_of_week):
                        continue
                    start = _local_datetime(date, entry.start_time, entry.time_zone)
                    end = _local_datetime(date, entry.end_time, entry.time_zone)
                    # Hours inside a DST gap collapse to nothing
                    if start >= end:
                        continue
                    windows.append(TimeInterval(start=start, end=end))

            date = date.add(days=1)

        return sorted(windows, key=lambda w: w.start)

    @staticmethod
    def _iter_start_times(
        window: TimeInterval,
        duration: int,
        frequency: int,
    ) -> Iterator[DateTime]:
        """Yield start times of a window until less than `duration` remains."""
        time = window.start
        while time.add(minutes=duration) <= window.end:
            yield time
            time = time.add(minutes=frequency)


def _local_datetime(date: Date, minutes: int, time_zone: str) -> DateTime:
    """Wall-clock time `minutes` after local midnight of `date`."""
    if minutes >= MINUTES_PER_DAY:
        return pendulum.datetime(date.year, date.month, date.day, tz=time_zone).add(days=1)

    return pendulum.datetime(
        date.year,
        date.month,
        date.day,
        minutes // 60,
        minutes % 60,
        tz=time_zone,
    )


def generate_slots(
    aggregate: AggregatedWorkingHours,
    window_start: DateTime,
    window_end: DateTime,
    duration: int,
    minimum_notice: int = 0,
    frequency: Optional[int] = None,
    now: Optional[DateTime] = None,
) -> List[CandidateSlot]:
    """Functional shortcut for SlotGenerator(aggregate).generate(...)."""
    return SlotGenerator(aggregate).generate(
        window_start=window_start,
        window_end=window_end,
        duration=duration,
        minimum_notice=minimum_notice,
        frequency=frequency,
        now=now,
    )
