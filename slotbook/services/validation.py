"""Request validation and sanitization."""
import re
from typing import Any, Dict, List

from slotbook.core.config import settings
from slotbook.core.errors import InvalidRequest
from slotbook.schemas.booking import BookingRequest, CancelRequest
from slotbook.models.slot import FIRST_DATA_ROW

PHONE_RE = re.compile(r"^[\d\s\-+()]{8,20}$")
EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def sanitize_input(value: Any, max_length: int) -> str:
    """Trim, strip angle brackets and truncate. Missing values become ""."""
    if value is None or value == "":
        return ""
    return re.sub(r"[<>]", "", str(value).strip())[:max_length]


def is_valid_phone(phone: Any) -> bool:
    if not phone or not isinstance(phone, str):
        return False
    return bool(PHONE_RE.match(phone))


def is_valid_email(email: Any) -> bool:
    """Email is optional, so blank counts as valid."""
    if not email:
        return True
    if not isinstance(email, str):
        return False
    return bool(EMAIL_RE.match(email)) and len(email) <= settings.MAX_EMAIL_LENGTH


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def _positive_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def booking_errors(body: Dict[str, Any]) -> List[str]:
    """Collect every problem with a booking body, in a fixed order."""
    errors = []

    name = body.get("name")
    if not _text(name) or len(name) > settings.MAX_NAME_LENGTH:
        errors.append(f"Name is required (max {settings.MAX_NAME_LENGTH} characters).")

    phone = body.get("phone")
    if not _text(phone) or not is_valid_phone(phone) or len(phone) > settings.MAX_PHONE_LENGTH:
        errors.append("Valid phone number is required.")

    email = body.get("email")
    if email and not is_valid_email(email):
        errors.append("Invalid email address.")

    category = body.get("category")
    if not _text(category) or len(category) > settings.MAX_CATEGORY_LENGTH:
        errors.append("Valid category selection is required.")

    notes = body.get("notes")
    if notes and (not isinstance(notes, str) or len(notes) > settings.MAX_NOTES_LENGTH):
        errors.append(f"Notes must be less than {settings.MAX_NOTES_LENGTH} characters.")

    slot_ids = body.get("slotIds")
    if not isinstance(slot_ids, list) or not slot_ids:
        errors.append("At least one slot must be selected.")
    else:
        if len(slot_ids) > settings.MAX_SLOTS_PER_BOOKING:
            errors.append(f"Only up to {settings.MAX_SLOTS_PER_BOOKING} slots allowed.")
        if not all(_positive_int(i) for i in slot_ids):
            errors.append("Invalid slot IDs provided.")
        elif len(set(slot_ids)) != len(slot_ids):
            errors.append("Duplicate slot IDs provided.")

    return errors


def validate_booking_request(body: Any) -> BookingRequest:
    """
    Validate a raw POST body and return the sanitized request.

    Raises:
        InvalidRequest: with every problem joined by "; "
    """
    if not isinstance(body, dict):
        raise InvalidRequest("Invalid request body.")

    errors = booking_errors(body)
    if errors:
        raise InvalidRequest("; ".join(errors))

    return BookingRequest(
        name=sanitize_input(body.get("name"), settings.MAX_NAME_LENGTH),
        phone=sanitize_input(body.get("phone"), settings.MAX_PHONE_LENGTH),
        email=sanitize_input(body.get("email"), settings.MAX_EMAIL_LENGTH).lower(),
        category=sanitize_input(body.get("category"), settings.MAX_CATEGORY_LENGTH),
        notes=sanitize_input(body.get("notes"), settings.MAX_NOTES_LENGTH),
        slot_ids=list(body["slotIds"]),
    )


def validate_cancel_request(body: Any) -> CancelRequest:
    """Validate a raw PATCH body."""
    if not isinstance(body, dict):
        raise InvalidRequest("Missing cancellation parameters.")

    signup_row_id = body.get("signupRowId")
    slot_row_id = body.get("slotRowId")
    phone = sanitize_input(body.get("phone"), settings.MAX_PHONE_LENGTH)
    if not signup_row_id or not slot_row_id or not phone:
        raise InvalidRequest("Missing cancellation parameters.")

    if not all(
        _positive_int(v) and v >= FIRST_DATA_ROW for v in (signup_row_id, slot_row_id)
    ):
        raise InvalidRequest("Invalid cancellation parameters.")

    return CancelRequest(signup_row_id=signup_row_id, slot_row_id=slot_row_id, phone=phone)


def validate_lookup_phone(raw: Any) -> str:
    phone = sanitize_input(raw, settings.MAX_PHONE_LENGTH)
    if not is_valid_phone(phone):
        raise InvalidRequest("Invalid phone number format.")
    return phone
