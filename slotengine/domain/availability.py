"""
Availability checks of candidate slots against the hosts' busy times.

Filtering happens in two independent stages that never mutate their input:
fixed hosts gate whether a slot exists at all, loose hosts only narrow the
list of users a slot is offered with.
"""

import time as _time
from typing import Iterable, List, Mapping, Optional, Sequence

from pendulum import DateTime

from .models import AvailabilityStats, CandidateSlot, CurrentSeats, Host, TimeInterval


def find_current_seat(time: DateTime, current_seats: Optional[CurrentSeats]):
    """Return the seated booking starting exactly at `time`, if any."""
    for seat in current_seats or ():
        if seat.start_time == time:
            return seat
    return None


def is_available(
    time: DateTime,
    busy: Iterable[TimeInterval],
    duration: int,
    current_seats: Optional[CurrentSeats] = None,
) -> bool:
    """
    Check whether a slot starting at `time` is free.

    A slot that coincides with a seated booking is always available so that
    more attendees can join it. Otherwise the slot [time, time + duration)
    must not overlap any busy interval; a booking ending exactly when the
    slot starts (or starting exactly when it ends) does not block it.
    """
    if find_current_seat(time, current_seats) is not None:
        return True

    slot_end = time.add(minutes=duration)

    for busy_time in busy:
        # Slot start inside [busy.start, busy.end)
        if busy_time.start <= time < busy_time.end:
            return False
        # Slot end inside (busy.start, busy.end]
        if busy_time.start < slot_end <= busy_time.end:
            return False
        # Busy interval inside the slot
        if time <= busy_time.start and busy_time.end <= slot_end:
            return False

    return True


def apply_buffers(
    busy: Iterable[TimeInterval],
    before_event_buffer: int = 0,
    after_event_buffer: int = 0,
) -> List[TimeInterval]:
    """
    Widen busy intervals by the event type's buffers.

    Each busy interval starts `before_event_buffer` minutes earlier and ends
    `after_event_buffer` minutes later.
    """
    if not before_event_buffer and not after_event_buffer:
        return list(busy)

    return [
        TimeInterval(
            start=interval.start.subtract(minutes=before_event_buffer),
            end=interval.end.add(minutes=after_event_buffer),
        )
        for interval in busy
    ]


class AvailabilityFilter:
    """
    Runs the fixed-host and loose-host stages over candidate slots.

    Results are not cached: every (slot, host) pair is checked anew.
    """

    def __init__(
        self,
        hosts: Sequence[Host],
        busy_times: Mapping[int, Sequence[TimeInterval]],
        duration: int,
        current_seats: Optional[CurrentSeats] = None,
        stats: Optional[AvailabilityStats] = None,
    ):
        self.hosts = list(hosts)
        self.busy_times = busy_times
        self.duration = duration
        self.current_seats = current_seats
        self.stats = stats if stats is not None else AvailabilityStats()

    @property
    def fixed_hosts(self) -> List[Host]:
        return [host for host in self.hosts if host.is_fixed]

    @property
    def loose_hosts(self) -> List[Host]:
        return [host for host in self.hosts if not host.is_fixed]

    def filter_fixed_hosts(self, slots: Sequence[CandidateSlot]) -> List[CandidateSlot]:
        """
        Keep slots every fixed host can take.

        A fixed host must have working hours covering the slot and no
        conflicting busy time.
        """
        fixed_hosts = self.fixed_hosts
        return [
            slot for slot in slots
            if all(self._host_can_take(host, slot) for host in fixed_hosts)
        ]

    def filter_loose_hosts(self, slots: Sequence[CandidateSlot]) -> List[CandidateSlot]:
        """
        Narrow each slot to the loose hosts that are free at its time.

        Slots with no loose host left are dropped. Without loose hosts the
        slots are returned unchanged.
        """
        loose_hosts = self.loose_hosts
        if not loose_hosts:
            return list(slots)

        filtered: List[CandidateSlot] = []
        for slot in slots:
            user_ids = tuple(
                host.user_id for host in loose_hosts
                if self._host_can_take(host, slot)
            )
            if user_ids:
                filtered.append(slot.with_user_ids(user_ids))

        return filtered

    def apply(self, slots: Sequence[CandidateSlot]) -> List[CandidateSlot]:
        """Run both stages: fixed hosts first, then loose hosts."""
        return self.filter_loose_hosts(self.filter_fixed_hosts(slots))

    def _host_can_take(self, host: Host, slot: CandidateSlot) -> bool:
        if host.user_id not in slot.user_ids:
            return False

        started = _time.perf_counter()
        available = is_available(
            time=slot.time,
            busy=self.busy_times.get(host.user_id, ()),
            duration=self.duration,
            current_seats=self.current_seats,
        )
        self.stats.checks += 1
        self.stats.elapsed_ms += (_time.perf_counter() - started) * 1000

        return available
