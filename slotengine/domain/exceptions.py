"""
Domain-specific exception hierarchy for the slot engine.

Every error carries the HTTP-equivalent status code a transport layer should
answer with.
"""


class SlotEngineError(Exception):
    """Base class for all application-level errors."""

    status_code = 500

    def __init__(self, message: str = ""):
        super().__init__(message or self.__class__.__name__)
        self.message = message or self.__class__.__name__


class NotFoundError(SlotEngineError):
    """Raised when an event type or the users of a dynamic group are missing."""

    status_code = 404


class BadRequestError(SlotEngineError):
    """Raised when the request is malformed (time range, time zone, fields)."""

    status_code = 400


class UnauthorizedError(SlotEngineError):
    """Raised when dynamic booking is not allowed for a requested user."""

    status_code = 401


class BookingAPIError(SlotEngineError):
    """Raised when the booking API cannot be reached or rejects a booking."""

    status_code = 502
