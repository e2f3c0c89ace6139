"""Error taxonomy for the canteen service.

Each error carries the HTTP status it maps to; the app registers a single
handler that renders them as ``{"success": false, "error": message}``.
"""

from typing import Optional


class CanteenError(Exception):
    """Base class for every failure surfaced to canteen callers."""

    status_code: int = 400
    default_message: str = "Request failed"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidFormat(CanteenError):
    default_message = "Invalid email format"


class InvalidOrderData(CanteenError):
    default_message = "Missing fields"


class InvalidCredentials(CanteenError):
    status_code = 401
    default_message = "Invalid credentials"


class Unauthorized(CanteenError):
    status_code = 403
    default_message = "Unauthorized"


class NotFound(CanteenError):
    status_code = 404
    default_message = "Not found"


class UnknownUser(NotFound):
    # Login reports a missing account like a bad password.
    status_code = 401
    default_message = "User not found"


class OrderNotFound(NotFound):
    default_message = "Order not found"


class InvalidStatus(CanteenError):
    default_message = "Invalid status"


class IllegalTransition(CanteenError):
    default_message = "Illegal status transition"


class StorageFailure(CanteenError):
    status_code = 500
    default_message = "Internal server error"
