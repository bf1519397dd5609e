"""API schemas."""
from slotbook.schemas.slots import SlotOut, AvailabilityResponse
from slotbook.schemas.booking import (
    BookingRequest,
    CancelRequest,
    Confirmation,
    BookingOut,
    BookingsResponse,
)

__all__ = [
    "SlotOut",
    "AvailabilityResponse",
    "BookingRequest",
    "CancelRequest",
    "Confirmation",
    "BookingOut",
    "BookingsResponse",
]
