"""
HTTP client for the booking API.
"""

import logging
from typing import Any, Dict, Mapping, Optional

import requests

from ..domain.exceptions import BookingAPIError

logger = logging.getLogger(__name__)


class BookingClient:
    """
    Client for the booking API of the scheduling web application.

    Uses the /api/book/event endpoint to create bookings.
    """

    BOOK_EVENT_PATH = "/api/book/event"

    def __init__(
        self,
        base_url: str,
        timeout: float = 30,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the booking client.

        Args:
            base_url: Base URL of the web application, e.g. https://cal.example.com
            timeout: Request timeout in seconds
            session: Optional requests session (shared connection pool)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.headers = {"Content-Type": "application/json"}

    def create_booking(self, payload: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Create a booking.

        Args:
            payload: Booking body as built by build_booking_payload

        Returns:
            The created booking as returned by the API

        Raises:
            BookingAPIError: If the API call fails
        """
        url = f"{self.base_url}{self.BOOK_EVENT_PATH}"

        try:
            response = self.session.post(
                url,
                headers=self.headers,
                json=dict(payload),
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()

        except requests.exceptions.RequestException as e:
            raise BookingAPIError(f"Failed to create booking: {e}") from e
        except ValueError as e:
            raise BookingAPIError(f"Booking API returned invalid JSON: {e}") from e

        logger.debug("Booking created: %s", data.get("uid") if isinstance(data, dict) else data)
        return data
