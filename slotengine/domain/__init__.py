"""
Domain layer - Pure business logic without external dependencies.
"""

from .aggregator import SlotAggregator, UsersSource, aggregate_slots
from .availability import AvailabilityFilter, apply_buffers, is_available
from .bounds import is_within_bounds
from .models import (
    CandidateSlot,
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
from .slot_generator import SlotGenerator, generate_slots
from .working_hours import AggregatedWorkingHours, aggregate_working_hours

__all__ = [
    "AggregatedWorkingHours",
    "AvailabilityFilter",
    "CandidateSlot",
    "CurrentSeat",
    "DateOverride",
    "EventConstraints",
    "EventType",
    "Host",
    "PeriodType",
    "SchedulingType",
    "SlotAggregator",
    "SlotGenerator",
    "TimeInterval",
    "UserAvailability",
    "UsersSource",
    "WorkingHours",
    "aggregate_slots",
    "aggregate_working_hours",
    "apply_buffers",
    "generate_slots",
    "is_available",
    "is_within_bounds",
]
