"""
File-backed event types and availability.

Stands in for the database: the data lives in one JSON document so that the
CLI and tests can run the whole pipeline without any external service.

Document layout:

    {
      "users": [
        {"id": 1, "username": "alice", "timeZone": "Europe/Berlin",
         "workingHours": [{"days": [0, 1, 2, 3, 4], "startTime": "09:00", "endTime": "17:00"}],
         "dateOverrides": [{"date": "2024-01-02", "intervals": [{"start": "...", "end": "..."}]}],
         "bookings": [{"uid": "b1", "eventTypeId": 1, "start": "...", "end": "...", "attendees": 1}]}
      ],
      "eventTypes": [
        {"id": 1, "slug": "intro", "length": 30, "users": [1],
         "hosts": [{"userId": 1, "isFixed": true}], "schedulingType": null}
      ]
    }
"""

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

import pendulum
from pendulum import DateTime
from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..domain.models import (
    CurrentSeat,
    DateOverride,
    EventConstraints,
    EventType,
    Host,
    PeriodType,
    SchedulingType,
    TimeInterval,
    UserAvailability,
    WorkingHours,
)

logger = logging.getLogger(__name__)


def parse_time_of_day(value: str) -> int:
    """Convert "HH:mm" into minutes from midnight; "24:00" is the end of the day."""
    hours, _, minutes = value.partition(":")
    total = int(hours) * 60 + int(minutes or 0)
    if not 0 <= total <= 24 * 60:
        raise ValueError(f"Invalid time of day: {value}")
    return total


class _Record(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class IntervalRecord(_Record):
    start: str
    end: str

    def to_interval(self, time_zone: str) -> TimeInterval:
        return TimeInterval(
            start=pendulum.parse(self.start, tz=time_zone),
            end=pendulum.parse(self.end, tz=time_zone),
        )


class WorkingHoursRecord(_Record):
    days: List[int]
    start_time: str = Field(alias="startTime")
    end_time: str = Field(alias="endTime")

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time_of_day(cls, value: str) -> str:
        parse_time_of_day(value)
        return value


class DateOverrideRecord(_Record):
    date: str
    intervals: List[IntervalRecord] = Field(default_factory=list)


class BookingRecord(_Record):
    uid: str
    start: str
    end: str
    event_type_id: Optional[int] = Field(default=None, alias="eventTypeId")
    attendees: int = 1


class UserRecord(_Record):
    id: int
    username: str
    time_zone: str = Field(default="UTC", alias="timeZone")
    allow_dynamic_booking: bool = Field(default=True, alias="allowDynamicBooking")
    working_hours: List[WorkingHoursRecord] = Field(default_factory=list, alias="workingHours")
    date_overrides: List[DateOverrideRecord] = Field(default_factory=list, alias="dateOverrides")
    bookings: List[BookingRecord] = Field(default_factory=list)


class HostRecord(_Record):
    user_id: int = Field(alias="userId")
    is_fixed: bool = Field(default=False, alias="isFixed")


class EventTypeRecord(_Record):
    id: int
    slug: str
    length: int
    minimum_booking_notice: int = Field(default=120, alias="minimumBookingNotice")
    slot_interval: Optional[int] = Field(default=None, alias="slotInterval")
    before_event_buffer: int = Field(default=0, alias="beforeEventBuffer")
    after_event_buffer: int = Field(default=0, alias="afterEventBuffer")
    period_type: PeriodType = Field(default=PeriodType.UNLIMITED, alias="periodType")
    period_start_date: Optional[str] = Field(default=None, alias="periodStartDate")
    period_end_date: Optional[str] = Field(default=None, alias="periodEndDate")
    period_count_calendar_days: bool = Field(default=True, alias="periodCountCalendarDays")
    period_days: Optional[int] = Field(default=None, alias="periodDays")
    seats_per_time_slot: Optional[int] = Field(default=None, alias="seatsPerTimeSlot")
    scheduling_type: Optional[SchedulingType] = Field(default=None, alias="schedulingType")
    time_zone: Optional[str] = Field(default=None, alias="timeZone")
    users: List[int] = Field(default_factory=list)
    hosts: List[HostRecord] = Field(default_factory=list)


class StoreDocument(_Record):
    users: List[UserRecord] = Field(default_factory=list)
    event_types: List[EventTypeRecord] = Field(default_factory=list, alias="eventTypes")


class JsonScheduleStore:
    """
    Event-type repository and availability provider reading a JSON document.

    Implements both EventTypeRepository and AvailabilityProvider.
    """

    def __init__(self, document: Union[StoreDocument, Dict]):
        if not isinstance(document, StoreDocument):
            document = StoreDocument.model_validate(document)
        self.document = document
        self._users: Dict[int, UserRecord] = {user.id: user for user in document.users}
        self._event_types: Dict[int, EventTypeRecord] = {
            event_type.id: event_type for event_type in document.event_types
        }

    @classmethod
    def from_file(cls, data_file: Path) -> "JsonScheduleStore":
        """
        Load the store from a JSON file.

        Raises:
            FileNotFoundError: If the data file doesn't exist
            ValueError: If the file is not valid JSON
        """
        if not data_file.exists():
            raise FileNotFoundError(f"Data file not found: {data_file}")

        try:
            with open(data_file, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Invalid JSON in {data_file}: {exc}") from exc

        return cls(data)

    def list_event_types(self) -> List[EventType]:
        return [self._to_event_type(record) for record in self.document.event_types]

    async def get_event_type(self, event_type_id: int) -> Optional[EventType]:
        record = self._event_types.get(event_type_id)
        if record is None:
            return None
        return self._to_event_type(record)

    async def get_users_by_username(self, usernames: Sequence[str]) -> List[Host]:
        wanted = {username.lower() for username in usernames}
        return [
            self._to_host(user)
            for user in self.document.users
            if user.username.lower() in wanted
        ]

    async def get_user_availability(
        self,
        host: Host,
        date_from: DateTime,
        date_to: DateTime,
        event_type: EventType,
    ) -> UserAvailability:
        """
        Availability of one user within [date_from, date_to].

        Every booking overlapping the window counts as busy. For seated event
        types, bookings of that event type which still have free seats are
        reported as current seats.
        """
        user = self._users.get(host.user_id)
        if user is None:
            logger.warning("No availability data for user %s", host.user_id)
            return UserAvailability(time_zone=host.time_zone)

        time_zone = user.time_zone
        # Buffers can reach across the window edges
        window = TimeInterval(start=date_from.subtract(days=1), end=date_to.add(days=1))

        busy: List[TimeInterval] = []
        seats: List[CurrentSeat] = []

        for booking in user.bookings:
            try:
                interval = IntervalRecord(start=booking.start, end=booking.end).to_interval(time_zone)
            except ValueError as e:
                logger.warning("Skipping booking %s: %s", booking.uid, e)
                continue

            if not window.overlaps(interval):
                continue
            busy.append(interval)

            capacity = event_type.constraints.seats_per_time_slot
            if (
                capacity
                and event_type.id is not None
                and booking.event_type_id == event_type.id
                and booking.attendees < capacity
            ):
                seats.append(
                    CurrentSeat(
                        start_time=interval.start,
                        booking_uid=booking.uid,
                        attendee_count=booking.attendees,
                    )
                )

        return UserAvailability(
            busy=tuple(busy),
            working_hours=tuple(
                WorkingHours(
                    days=frozenset(entry.days),
                    start_time=parse_time_of_day(entry.start_time),
                    end_time=parse_time_of_day(entry.end_time),
                    user_id=user.id,
                    time_zone=time_zone,
                )
                for entry in user.working_hours
            ),
            date_overrides=tuple(
                DateOverride(
                    user_id=user.id,
                    date=override.date,
                    intervals=tuple(
                        interval.to_interval(time_zone) for interval in override.intervals
                    ),
                )
                for override in user.date_overrides
            ),
            current_seats=tuple(seats) if seats else None,
            time_zone=time_zone,
        )

    def _to_host(self, user: UserRecord, is_fixed: bool = True) -> Host:
        return Host(
            user_id=user.id,
            username=user.username,
            is_fixed=is_fixed,
            time_zone=user.time_zone,
            allow_dynamic_booking=user.allow_dynamic_booking,
        )

    def _to_event_type(self, record: EventTypeRecord) -> EventType:
        users = tuple(
            self._to_host(self._users[user_id])
            for user_id in record.users
            if user_id in self._users
        )
        hosts = tuple(
            self._to_host(self._users[host.user_id], is_fixed=host.is_fixed)
            for host in record.hosts
            if host.user_id in self._users
        )

        return EventType(
            id=record.id,
            slug=record.slug,
            scheduling_type=record.scheduling_type,
            users=users,
            hosts=hosts,
            time_zone=record.time_zone,
            constraints=EventConstraints(
                length=record.length,
                minimum_booking_notice=record.minimum_booking_notice,
                slot_interval=record.slot_interval,
                before_event_buffer=record.before_event_buffer,
                after_event_buffer=record.after_event_buffer,
                period_type=record.period_type,
                period_start_date=_parse_optional(record.period_start_date),
                period_end_date=_parse_optional(record.period_end_date),
                period_count_calendar_days=record.period_count_calendar_days,
                period_days=record.period_days,
                seats_per_time_slot=record.seats_per_time_slot,
            ),
        )


def _parse_optional(value: Optional[str]) -> Optional[DateTime]:
    if not value:
        return None
    return pendulum.parse(value)
