"""
Error taxonomy for the signup API.

Every failure a caller can see is a SignupError subclass carrying the HTTP
status and the public message. Internal detail (store responses, stack
traces) stays on the exception for the server log and is never rendered.
"""
from typing import Any, Dict, Optional

from fastapi.responses import JSONResponse

STATUS_BAD_REQUEST = 400
STATUS_FORBIDDEN = 403
STATUS_NOT_FOUND = 404
STATUS_METHOD_NOT_ALLOWED = 405
STATUS_CONFLICT = 409
STATUS_TOO_MANY_REQUESTS = 429
STATUS_INTERNAL_ERROR = 500

MSG_UNEXPECTED = "Unexpected server error."
MSG_METHOD_NOT_ALLOWED = "Method not allowed."


class SignupError(Exception):
    """Base class for errors reported to API callers."""

    status_code: int = STATUS_INTERNAL_ERROR
    default_message: str = MSG_UNEXPECTED

    def __init__(self, message: Optional[str] = None, detail: Optional[str] = None):
        self.message = message or self.default_message
        self.detail = detail
        super().__init__(self.message)


class InvalidRequest(SignupError):
    status_code = STATUS_BAD_REQUEST
    default_message = "Invalid request."


class SlotDataMissing(SignupError):
    status_code = STATUS_BAD_REQUEST
    default_message = "Slot data missing."


class RateLimited(SignupError):
    status_code = STATUS_TOO_MANY_REQUESTS
    default_message = "Too many requests. Please try again later."


class TooManyConcurrentRequests(SignupError):
    status_code = STATUS_TOO_MANY_REQUESTS
    default_message = "Too many concurrent requests. Try again."


class DuplicateBooking(SignupError):
    status_code = STATUS_CONFLICT
    default_message = "Already booked."


class SlotFull(SignupError):
    status_code = STATUS_CONFLICT
    default_message = "Slot is full."


class AlreadyCancelled(SignupError):
    status_code = STATUS_CONFLICT
    default_message = "Booking is already cancelled."


class BookingNotFound(SignupError):
    status_code = STATUS_NOT_FOUND
    default_message = "Booking not found."


class PhoneMismatch(SignupError):
    status_code = STATUS_FORBIDDEN
    default_message = "Phone number does not match booking."


class StoreError(SignupError):
    """Network or spreadsheet API failure. `detail` holds the raw cause."""

    status_code = STATUS_INTERNAL_ERROR
    default_message = "Storage service unavailable."


class BookingFailed(SignupError):
    status_code = STATUS_INTERNAL_ERROR
    default_message = "Booking could not be completed."


class CancellationFailed(SignupError):
    status_code = STATUS_INTERNAL_ERROR
    default_message = "Cancellation failed."


def error_body(message: str) -> Dict[str, Any]:
    return {"ok": False, "error": message}


def error_response(status_code: int, message: str) -> JSONResponse:
    """Build the `{ok: false, error}` envelope used for every failure."""
    return JSONResponse(status_code=status_code, content=error_body(message))
