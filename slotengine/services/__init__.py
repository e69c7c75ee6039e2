"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .booking import BookingRequest, BookingService, build_booking_payload
from .schedule import (
    AvailabilityProvider,
    EventTypeRepository,
    ScheduleRequest,
    ScheduleService,
    build_dynamic_event_type,
    resolve_hosts,
)

__all__ = [
    "AvailabilityProvider",
    "BookingRequest",
    "BookingService",
    "EventTypeRepository",
    "ScheduleRequest",
    "ScheduleService",
    "build_booking_payload",
    "build_dynamic_event_type",
    "resolve_hosts",
]
