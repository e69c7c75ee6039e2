"""
Domain models for availability and slot calculations.
"""

from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, Optional, Tuple

from pendulum import DateTime

MINUTES_PER_DAY = 24 * 60


class SchedulingType(str, Enum):
    """How the hosts of a team event share the bookings."""
    COLLECTIVE = "COLLECTIVE"
    ROUND_ROBIN = "ROUND_ROBIN"
    MANAGED = "MANAGED"


class PeriodType(str, Enum):
    """How far into the future an event type may be booked."""
    UNLIMITED = "UNLIMITED"
    ROLLING = "ROLLING"
    RANGE = "RANGE"


@dataclass(frozen=True)
class TimeInterval:
    """
    Represents an immutable interval with start and end datetime.

    Used both for busy periods and for open working-hours windows.
    Invariant: start must be before end.
    """
    start: DateTime
    end: DateTime

    def __post_init__(self):
        if self.start >= self.end:
            raise ValueError(f"Start time {self.start} must be before end time {self.end}")

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return int((self.end - self.start).total_seconds() / 60)

    def overlaps(self, other: "TimeInterval") -> bool:
        """Half-open overlap: touching intervals do not overlap."""
        return self.start < other.end and self.end > other.start

    def contains(self, start: DateTime, end: DateTime) -> bool:
        """Check whether [start, end] lies completely inside this interval."""
        return self.start <= start and end <= self.end

    def __str__(self) -> str:
        return f"{self.start.format('YYYY-MM-DD HH:mm')} - {self.end.format('HH:mm')}"


@dataclass(frozen=True)
class WorkingHours:
    """
    Recurring weekly availability of a single user.

    start_time and end_time are minutes from local midnight in the user's
    time zone; end_time may be 1440 to mean "until the end of the day".
    """
    days: FrozenSet[int]  # 0=Monday, 6=Sunday
    start_time: int
    end_time: int
    user_id: Optional[int] = None
    time_zone: str = "UTC"

    def __post_init__(self):
        if not 0 <= self.start_time < self.end_time <= MINUTES_PER_DAY:
            raise ValueError(
                f"Working hours {self.start_time}-{self.end_time} are not a valid range of minutes"
            )
        invalid_days = [day for day in self.days if day not in range(7)]
        if invalid_days:
            raise ValueError(f"days must be between 0 and 6, got {invalid_days}")

    def applies_to(self, weekday: int) -> bool:
        return weekday in self.days


@dataclass(frozen=True)
class DateOverride:
    """
    Replaces a user's recurring working hours for one local date.

    An override without intervals means the user is off for that date.
    """
    user_id: Optional[int]
    date: str  # YYYY-MM-DD in the user's time zone
    intervals: Tuple[TimeInterval, ...] = ()


@dataclass(frozen=True)
class Host:
    """A user taking part in an event type."""
    user_id: int
    username: str = ""
    is_fixed: bool = True
    time_zone: str = "UTC"
    allow_dynamic_booking: bool = True


@dataclass(frozen=True)
class CandidateSlot:
    """
    A candidate start time and the users who could host it.

    Slots are never mutated; filter stages return new instances.
    """
    time: DateTime
    user_ids: Tuple[int, ...] = ()

    def with_user_ids(self, user_ids: Tuple[int, ...]) -> "CandidateSlot":
        return CandidateSlot(time=self.time, user_ids=user_ids)


@dataclass(frozen=True)
class CurrentSeat:
    """An existing booking on a seated event that still has room."""
    start_time: DateTime
    booking_uid: str
    attendee_count: int


CurrentSeats = Tuple[CurrentSeat, ...]


@dataclass(frozen=True)
class EventConstraints:
    """Scheduling limits configured on an event type."""
    length: int
    minimum_booking_notice: int = 120
    slot_interval: Optional[int] = None
    before_event_buffer: int = 0
    after_event_buffer: int = 0
    period_type: PeriodType = PeriodType.UNLIMITED
    period_start_date: Optional[DateTime] = None
    period_end_date: Optional[DateTime] = None
    period_count_calendar_days: bool = True
    period_days: Optional[int] = None
    seats_per_time_slot: Optional[int] = None

    def __post_init__(self):
        if self.length <= 0:
            raise ValueError("length must be greater than zero")


@dataclass(frozen=True)
class EventType:
    """
    A bookable meeting template.

    Dynamic (group) event types are built on the fly and have no id.
    """
    slug: str
    constraints: EventConstraints
    id: Optional[int] = None
    scheduling_type: Optional[SchedulingType] = None
    users: Tuple[Host, ...] = ()
    hosts: Tuple[Host, ...] = ()
    time_zone: Optional[str] = None

    @property
    def is_dynamic(self) -> bool:
        return self.id is None


@dataclass(frozen=True)
class UserAvailability:
    """Everything the availability collaborator reports for one host."""
    busy: Tuple[TimeInterval, ...] = ()
    working_hours: Tuple[WorkingHours, ...] = ()
    date_overrides: Tuple[DateOverride, ...] = ()
    current_seats: Optional[CurrentSeats] = None
    time_zone: str = "UTC"


@dataclass
class AvailabilityStats:
    """Counters collected while checking slots against busy times."""
    checks: int = 0
    elapsed_ms: float = 0.0
