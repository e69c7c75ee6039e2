"""
Booking relay: turns a slot picked by an invitee into a booking request for
the booking API.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Mapping, Optional, Protocol, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..domain.exceptions import BadRequestError, NotFoundError
from ..domain.models import EventType
from .schedule import EventTypeRepository

logger = logging.getLogger(__name__)

# Bookings relayed through this service always use the built-in video room
DAILY_VIDEO_LOCATION = "integrations:daily"


class BookingClientProtocol(Protocol):
    """Protocol describing the booking API client needed by the service."""

    def create_booking(self, payload: Mapping[str, Any]) -> Dict[str, Any]:
        """Create the booking and return the API's response body."""


class BookingRequest(BaseModel):
    """An invitee's request to book a slot of an event type."""

    model_config = ConfigDict(populate_by_name=True)

    event_type_id: int = Field(alias="eventTypeId")
    name: str
    email: str
    start: str
    end: str
    notes: Optional[str] = None
    time_zone: str = Field(default="UTC", alias="timezone")


def build_booking_payload(event_type: EventType, request: BookingRequest) -> Dict[str, Any]:
    """Build the body expected by the booking API's create endpoint."""
    return {
        "name": request.name,
        "email": request.email,
        "notes": request.notes,
        "locationType": DAILY_VIDEO_LOCATION,
        "location": DAILY_VIDEO_LOCATION,
        "start": request.start,
        "end": request.end,
        "timeZone": request.time_zone,
        "eventTypeId": request.event_type_id,
        "eventTypeSlug": event_type.slug,
        "customInputs": [],
        "metadata": {},
        "language": "en",
        "hasHashedBookingLink": False,
        "guests": [],
    }


class BookingService:
    """Looks up the event type and forwards the booking to the booking API."""

    def __init__(
        self,
        event_types: EventTypeRepository,
        booking_client: BookingClientProtocol,
    ) -> None:
        self._event_types = event_types
        self._booking_client = booking_client

    async def book(self, request: Union[BookingRequest, Mapping[str, Any]]) -> Dict[str, Any]:
        """
        Relay a booking.

        Raises:
            BadRequestError: If the request is incomplete
            NotFoundError: If the event type does not exist
            BookingAPIError: If the booking API fails
        """
        if not isinstance(request, BookingRequest):
            try:
                request = BookingRequest.model_validate(request)
            except ValidationError as exc:
                raise BadRequestError(f"Invalid booking request: {exc}") from exc

        event_type = await self._event_types.get_event_type(request.event_type_id)
        if event_type is None:
            raise NotFoundError("Event type not found")

        payload = build_booking_payload(event_type, request)
        logger.info("Relaying booking for event type %s at %s", event_type.id, request.start)

        # requests blocks, keep it off the event loop
        return await asyncio.to_thread(self._booking_client.create_booking, payload)
