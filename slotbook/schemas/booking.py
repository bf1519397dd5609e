"""Booking, lookup and cancellation schemas."""
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional

from slotbook.models.signup import Signup


class BookingRequest(BaseModel):
    """A validated and sanitized booking request."""

    name: str
    phone: str
    email: str = ""
    category: str
    notes: str = ""
    slot_ids: List[int]


class CancelRequest(BaseModel):
    """A validated cancellation request."""

    signup_row_id: int
    slot_row_id: int
    phone: str


class Confirmation(BaseModel):
    """Successful write acknowledgement."""

    ok: bool = True
    message: str


class BookingOut(BaseModel):
    """An active booking returned by phone lookup."""

    signup_row_id: int = Field(serialization_alias="signupRowId")
    timestamp: str
    date: str
    slot_label: str = Field(serialization_alias="slotLabel")
    name: str
    email: str
    phone: str
    category: str
    notes: str
    slot_row_id: Optional[int] = Field(default=None, serialization_alias="slotRowId")
    status: str

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_signup(cls, signup: Signup) -> "BookingOut":
        return cls(
            signup_row_id=signup.row_id,
            timestamp=signup.timestamp,
            date=signup.date,
            slot_label=signup.slot_label,
            name=signup.name,
            email=signup.email,
            phone=signup.phone,
            category=signup.category,
            notes=signup.notes,
            slot_row_id=signup.slot_row_id,
            status=signup.status,
        )


class BookingsResponse(BaseModel):
    """Schema for phone lookup response."""

    ok: bool = True
    bookings: List[BookingOut]
