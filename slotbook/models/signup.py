"""Signup model (one row of the Signups sheet)."""
from dataclasses import dataclass
from typing import Any, List, Optional

from slotbook.models.slot import FIRST_DATA_ROW, cell

SIGNUPS_SHEET = "Signups"
SIGNUPS_DATA_RANGE = "A2:J"

STATUS_ACTIVE = "ACTIVE"
STATUS_CANCELLED_PREFIX = "CANCELLED:"


class SignupColumns:
    """Zero-based column positions in the Signups sheet."""

    TIMESTAMP = 0
    DATE = 1
    SLOT_LABEL = 2
    NAME = 3
    EMAIL = 4
    PHONE = 5
    CATEGORY = 6
    NOTES = 7
    SLOT_ROW_ID = 8
    STATUS = 9


def _optional_int(value: str) -> Optional[int]:
    try:
        return int(value.strip())
    except ValueError:
        return None


@dataclass
class Signup:
    """Represents one person's claim on one slot."""

    timestamp: str
    date: str
    slot_label: str
    name: str
    email: str
    phone: str
    category: str
    notes: str
    slot_row_id: Optional[int]
    status: str = STATUS_ACTIVE
    row_id: Optional[int] = None

    @property
    def is_active(self) -> bool:
        return self.status.startswith(STATUS_ACTIVE)

    def matches_phone(self, phone: str) -> bool:
        return self.phone.strip() == phone

    @classmethod
    def from_row(cls, row: List[Any], row_id: Optional[int] = None) -> "Signup":
        # A blank status cell predates the column and counts as active.
        return cls(
            timestamp=cell(row, SignupColumns.TIMESTAMP),
            date=cell(row, SignupColumns.DATE),
            slot_label=cell(row, SignupColumns.SLOT_LABEL),
            name=cell(row, SignupColumns.NAME),
            email=cell(row, SignupColumns.EMAIL),
            phone=cell(row, SignupColumns.PHONE),
            category=cell(row, SignupColumns.CATEGORY),
            notes=cell(row, SignupColumns.NOTES),
            slot_row_id=_optional_int(cell(row, SignupColumns.SLOT_ROW_ID)),
            status=cell(row, SignupColumns.STATUS) or STATUS_ACTIVE,
            row_id=row_id,
        )

    def to_row(self) -> List[Any]:
        return [
            self.timestamp,
            self.date,
            self.slot_label,
            self.name,
            self.email,
            self.phone,
            self.category,
            self.notes,
            self.slot_row_id,
            self.status,
        ]


def signups_from_rows(rows: List[List[Any]]) -> List[Signup]:
    """Map the full Signups data range, numbering rows from the first data row."""
    return [
        Signup.from_row(row, row_id=index + FIRST_DATA_ROW)
        for index, row in enumerate(rows)
    ]


def cancelled_status(timestamp: str) -> str:
    return f"{STATUS_CANCELLED_PREFIX}{timestamp}"


def signup_row_range(row_id: int) -> str:
    return f"{SIGNUPS_SHEET}!A{row_id}:J{row_id}"


def signups_listing_range() -> str:
    return f"{SIGNUPS_SHEET}!{SIGNUPS_DATA_RANGE}"
