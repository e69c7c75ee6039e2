"""
Adapters layer - External integrations (booking API, JSON data store).
"""

from .booking_client import BookingClient
from .json_store import JsonScheduleStore

__all__ = ["BookingClient", "JsonScheduleStore"]
