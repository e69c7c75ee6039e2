"""
Application service computing the bookable slots of an event type.

The service validates the request, resolves the event type (or builds a
dynamic one for a group of users), fetches every host's availability via the
collaborator protocols and then runs the domain pipeline:

    working hours -> slot generation -> fixed hosts -> loose hosts
    -> period bounds -> aggregation by day
"""

from __future__ import annotations

import asyncio
import logging
import time as _time
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence, Tuple, Union

import pendulum
from pendulum import DateTime
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from ..domain.aggregator import SlotAggregator, UsersSource
from ..domain.availability import AvailabilityFilter, apply_buffers
from ..domain.bounds import is_within_bounds
from ..domain.exceptions import BadRequestError, NotFoundError, UnauthorizedError
from ..domain.models import (
    AvailabilityStats,
    CurrentSeats,
    EventConstraints,
    EventType,
    Host,
    SchedulingType,
    TimeInterval,
    UserAvailability,
)
from ..domain.slot_generator import SlotGenerator
from ..domain.working_hours import aggregate_working_hours
from ..request_logging import RequestLogger

logger = logging.getLogger(__name__)

FORCED_UTC_ZONE = "Etc/GMT"
DEFAULT_DYNAMIC_EVENT_LENGTH = 15


class EventTypeRepository(Protocol):
    """Lookup of event types and users, backed by persistent storage."""

    async def get_event_type(self, event_type_id: int) -> Optional[EventType]:
        """Return the event type or None when it does not exist."""

    async def get_users_by_username(self, usernames: Sequence[str]) -> List[Host]:
        """Return the users matching the given usernames."""


class AvailabilityProvider(Protocol):
    """Per-user availability: busy times, working hours, overrides, seats."""

    async def get_user_availability(
        self,
        host: Host,
        date_from: DateTime,
        date_to: DateTime,
        event_type: EventType,
    ) -> UserAvailability:
        """Return the availability of one host within the window."""


class ScheduleRequest(BaseModel):
    """Query for the available slots of an event type or a group of users."""

    model_config = ConfigDict(populate_by_name=True)

    start_time: str = Field(alias="startTime")
    end_time: str = Field(alias="endTime")
    event_type_id: Optional[int] = Field(default=None, alias="eventTypeId")
    event_type_slug: str = Field(alias="eventTypeSlug")
    time_zone: Optional[str] = Field(default=None, alias="timeZone")
    username_list: Optional[List[str]] = Field(default=None, alias="usernameList")
    duration: Optional[int] = None
    debug: bool = False

    @field_validator("duration", mode="before")
    @classmethod
    def parse_duration(cls, value: Any) -> Any:
        """Accept durations sent as strings, treating "" as missing."""
        if isinstance(value, str):
            value = value.strip()
            return int(value) if value else None
        return value

    @field_validator("duration")
    @classmethod
    def validate_duration(cls, value: Optional[int]) -> Optional[int]:
        if value is not None and value <= 0:
            raise ValueError("duration must be greater than zero")
        return value

    @model_validator(mode="after")
    def validate_target(self) -> "ScheduleRequest":
        """Either an event type or a list of users must be given."""
        if not self.event_type_id and not self.username_list:
            raise ValueError("Either usernameList or eventTypeId should be filled in.")
        return self

    @property
    def is_dynamic(self) -> bool:
        return not self.event_type_id


def build_dynamic_event_type(
    slug: str,
    users: Sequence[Host],
    default_length: int = DEFAULT_DYNAMIC_EVENT_LENGTH,
) -> EventType:
    """
    Build the event type used for group bookings of several users.

    The slug is the meeting length in minutes ("30", "60", ...).
    """
    length = int(slug) if slug.isdigit() and int(slug) > 0 else default_length
    return EventType(
        slug=slug,
        constraints=EventConstraints(length=length),
        users=tuple(users),
    )


def resolve_hosts(event_type: EventType) -> List[Host]:
    """
    Determine who has to be checked for availability.

    Users of an event without scheduling type, or of a collective one, are
    all fixed. Team events with explicit hosts use those hosts instead.
    """
    is_fixed = (
        event_type.scheduling_type is None
        or event_type.scheduling_type == SchedulingType.COLLECTIVE
    )
    hosts = [
        Host(
            user_id=user.user_id,
            username=user.username,
            is_fixed=is_fixed,
            time_zone=user.time_zone,
            allow_dynamic_booking=user.allow_dynamic_booking,
        )
        for user in event_type.users
    ]

    if event_type.scheduling_type is not None and event_type.hosts:
        hosts = list(event_type.hosts)

    return hosts


class ScheduleService:
    """
    Orchestrates event-type lookup, availability retrieval and slot calculation.

    Depends on protocols only, so the JSON store, a database-backed
    repository or test stubs can be plugged in.
    """

    def __init__(
        self,
        event_types: EventTypeRepository,
        availability: AvailabilityProvider,
        users_source: UsersSource = UsersSource.EVENT_HOSTS,
        dynamic_event_length: int = DEFAULT_DYNAMIC_EVENT_LENGTH,
        log_level: int = logging.INFO,
    ) -> None:
        self._event_types = event_types
        self._availability = availability
        self._users_source = users_source
        self._dynamic_event_length = dynamic_event_length
        self._log_level = log_level

    async def get_schedule(
        self,
        request: Union[ScheduleRequest, Mapping[str, Any]],
        now: Optional[DateTime] = None,
    ) -> Dict[str, Any]:
        """
        Compute the available slots for a request.

        Returns:
            {"slots": {"YYYY-MM-DD": [{"time": ..., "users": [...]}, ...]}}

        Raises:
            BadRequestError: Invalid request, time range or time zone
            NotFoundError: Unknown event type or no users for a group
            UnauthorizedError: A group member does not allow dynamic booking
        """
        request = self.parse_request(request)
        log = RequestLogger.for_request(
            __name__,
            debug=request.debug,
            default_level=self._log_level,
            event_type_id=request.event_type_id,
            slug=request.event_type_slug,
        )
        now = now or pendulum.now("UTC")

        started = _time.perf_counter()
        event_type = await self.resolve_event_type(request)
        log.debug(f"Event type lookup took {(_time.perf_counter() - started) * 1000:.2f}ms")

        start_time, end_time, force_utc = self.parse_time_range(request)

        hosts = resolve_hosts(event_type)
        schedules = await self.fetch_availability(hosts, start_time, end_time, event_type)

        slots = self.calculate_slots(
            event_type=event_type,
            schedules=schedules,
            start_time=start_time,
            end_time=end_time,
            duration=request.duration,
            force_utc=force_utc,
            now=now,
            log=log,
        )

        return {"slots": slots}

    @staticmethod
    def parse_request(request: Union[ScheduleRequest, Mapping[str, Any]]) -> ScheduleRequest:
        if isinstance(request, ScheduleRequest):
            return request
        try:
            return ScheduleRequest.model_validate(request)
        except ValidationError as exc:
            raise BadRequestError(f"Invalid schedule request: {exc}") from exc

    async def resolve_event_type(self, request: ScheduleRequest) -> EventType:
        """Load a regular event type, or build a dynamic one for a group."""
        if not request.is_dynamic:
            event_type = await self._event_types.get_event_type(request.event_type_id)
            if event_type is None:
                raise NotFoundError(f"Event type {request.event_type_id} not found")
            return event_type

        users = await self._event_types.get_users_by_username(request.username_list or [])
        if not users:
            raise NotFoundError("None of the requested users exist")

        if any(not user.allow_dynamic_booking for user in users):
            raise UnauthorizedError("Some of the users in this group do not allow dynamic booking")

        return build_dynamic_event_type(
            request.event_type_slug,
            users,
            default_length=self._dynamic_event_length,
        )

    @staticmethod
    def parse_time_range(request: ScheduleRequest) -> Tuple[DateTime, DateTime, bool]:
        """
        Parse the requested window into the invitee's time zone.

        Returns:
            (start, end, force_utc); force_utc is set for "Etc/GMT", which
            makes every host's working hours count in UTC as well
        """
        zone = request.time_zone or "UTC"
        force_utc = zone == FORCED_UTC_ZONE

        try:
            time_zone = pendulum.timezone("UTC" if force_utc else zone)
        except (ValueError, KeyError) as exc:
            raise BadRequestError(f"Invalid time zone: {zone}") from exc

        start = _parse_datetime(request.start_time).in_timezone(time_zone)
        end = _parse_datetime(request.end_time).in_timezone(time_zone)

        if end < start:
            raise BadRequestError("Invalid time range given.")

        return start, end, force_utc

    async def fetch_availability(
        self,
        hosts: Sequence[Host],
        start_time: DateTime,
        end_time: DateTime,
        event_type: EventType,
    ) -> List[Tuple[Host, UserAvailability]]:
        """Fetch every host's availability concurrently."""
        availabilities = await asyncio.gather(
            *(
                self._availability.get_user_availability(
                    host=host,
                    date_from=start_time,
                    date_to=end_time,
                    event_type=event_type,
                )
                for host in hosts
            )
        )
        return list(zip(hosts, availabilities))

    def calculate_slots(
        self,
        *,
        event_type: EventType,
        schedules: Sequence[Tuple[Host, UserAvailability]],
        start_time: DateTime,
        end_time: DateTime,
        duration: Optional[int] = None,
        force_utc: bool = False,
        now: Optional[DateTime] = None,
        log: Optional[logging.LoggerAdapter] = None,
    ) -> Dict[str, List[Dict[str, Any]]]:
        """Run the synchronous slot pipeline on already fetched availability."""
        log = log or RequestLogger(logger, min_level=self._log_level)
        constraints = event_type.constraints
        now = now or pendulum.now("UTC")

        length = duration or constraints.length
        frequency = constraints.slot_interval or duration or constraints.length

        hosts = [host for host, _ in schedules]
        busy_times: Dict[int, List[TimeInterval]] = {
            host.user_id: apply_buffers(
                availability.busy,
                before_event_buffer=constraints.before_event_buffer,
                after_event_buffer=constraints.after_event_buffer,
            )
            for host, availability in schedules
        }
        current_seats = _pick_current_seats(event_type, schedules)

        started = _time.perf_counter()
        aggregate = aggregate_working_hours(schedules, force_utc=force_utc)
        candidates = SlotGenerator(aggregate).generate(
            window_start=start_time,
            window_end=end_time,
            duration=length,
            minimum_notice=constraints.minimum_booking_notice,
            frequency=frequency,
            now=now,
        )
        log.debug(
            f"Slot generation took {(_time.perf_counter() - started) * 1000:.2f}ms "
            f"and produced {len(candidates)} candidates"
        )

        stats = AvailabilityStats()
        availability_filter = AvailabilityFilter(
            hosts=hosts,
            busy_times=busy_times,
            duration=length,
            current_seats=current_seats,
            stats=stats,
        )
        available = availability_filter.apply(candidates)
        log.debug(
            f"checkForAvailability took {stats.elapsed_ms:.2f}ms "
            f"and executed {stats.checks} times"
        )

        available = [
            slot for slot in available
            if is_within_bounds(slot.time, constraints, now=now)
        ]

        slots = SlotAggregator(
            event_type=event_type,
            current_seats=current_seats,
            users_source=self._users_source,
        ).aggregate(available)
        log.debug(f"Available slots: {sum(len(day) for day in slots.values())} on {len(slots)} day(s)")

        return slots


def _parse_datetime(value: str) -> DateTime:
    """
    Parse an ISO 8601 string to a pendulum DateTime.

    Raises:
        BadRequestError: If the string is not a date-time
    """
    try:
        parsed = pendulum.parse(value)
    except (ValueError, TypeError) as exc:
        raise BadRequestError("Invalid time range given.") from exc

    if isinstance(parsed, DateTime):
        return parsed

    raise BadRequestError("Invalid time range given.")


def _pick_current_seats(
    event_type: EventType,
    schedules: Sequence[Tuple[Host, UserAvailability]],
) -> Optional[CurrentSeats]:
    """First host reporting seated bookings wins; only seated events have any."""
    if not event_type.constraints.seats_per_time_slot:
        return None

    for _, availability in schedules:
        if availability.current_seats:
            return availability.current_seats

    return None
