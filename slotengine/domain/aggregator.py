"""
Grouping of the final slots by calendar day.
"""

from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence

from pendulum import DateTime

from .availability import find_current_seat
from .models import CandidateSlot, CurrentSeats, EventType

ISO_FORMAT = "YYYY-MM-DD[T]HH:mm:ss.SSS[Z]"


class UsersSource(str, Enum):
    """Where the usernames listed on each slot come from."""
    EVENT_HOSTS = "event_hosts"  # every declared host of the event type
    SLOT_HOSTS = "slot_hosts"  # only the hosts left on the slot after filtering


def to_iso_string(time: DateTime) -> str:
    """UTC ISO-8601 representation with milliseconds, e.g. 2024-01-01T09:00:00.000Z."""
    return time.in_timezone("UTC").format(ISO_FORMAT)


def event_usernames(event_type: EventType) -> List[str]:
    """Usernames of the declared hosts, falling back to the event's users."""
    people = event_type.hosts or event_type.users
    return [person.username or "" for person in people]


class SlotAggregator:
    """
    Folds filtered slots into {"YYYY-MM-DD": [slot descriptor, ...]}.

    Day keys use the time zone the slots were computed in; within a day the
    generation order is kept.
    """

    def __init__(
        self,
        event_type: EventType,
        current_seats: Optional[CurrentSeats] = None,
        users_source: UsersSource = UsersSource.EVENT_HOSTS,
    ):
        self.event_type = event_type
        self.current_seats = current_seats
        self.users_source = users_source
        self._usernames = {
            person.user_id: person.username or ""
            for person in (*event_type.users, *event_type.hosts)
        }

    def aggregate(self, slots: Sequence[CandidateSlot]) -> Dict[str, List[Dict[str, Any]]]:
        result: Dict[str, List[Dict[str, Any]]] = {}

        for slot in slots:
            day = slot.time.format("YYYY-MM-DD")
            result.setdefault(day, []).append(self._describe(slot))

        return result

    def _describe(self, slot: CandidateSlot) -> Dict[str, Any]:
        descriptor: Dict[str, Any] = {
            "time": to_iso_string(slot.time),
            "users": self._users_for(slot),
        }

        seat = find_current_seat(slot.time, self.current_seats)
        if seat is not None:
            descriptor["attendees"] = seat.attendee_count
            descriptor["bookingUid"] = seat.booking_uid

        return descriptor

    def _users_for(self, slot: CandidateSlot) -> List[str]:
        if self.users_source == UsersSource.SLOT_HOSTS:
            return [self._usernames.get(user_id, "") for user_id in slot.user_ids]
        return event_usernames(self.event_type)


def aggregate_slots(
    slots: Sequence[CandidateSlot],
    event_type: EventType,
    current_seats: Optional[CurrentSeats] = None,
    users_source: UsersSource = UsersSource.EVENT_HOSTS,
) -> Mapping[str, List[Dict[str, Any]]]:
    """Functional shortcut for SlotAggregator(...).aggregate(slots)."""
    return SlotAggregator(
        event_type=event_type,
        current_seats=current_seats,
        users_source=users_source,
    ).aggregate(slots)
