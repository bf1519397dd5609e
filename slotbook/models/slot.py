"""Slot model (one row of the Slots sheet)."""
from dataclasses import dataclass
from typing import Any, List

SLOTS_SHEET = "Slots"
SLOTS_DATA_RANGE = "A2:E"
# First data row; row 1 holds the header.
FIRST_DATA_ROW = 2


class SlotColumns:
    """Zero-based column positions in the Slots sheet."""

    DATE = 0
    LABEL = 1
    CAPACITY = 2
    TAKEN = 3
    AVAILABLE = 4


def cell(row: List[Any], index: int) -> str:
    """Return the cell as a string, or "" when the row is too short."""
    if index < len(row) and row[index] is not None:
        return str(row[index])
    return ""


def int_cell(row: List[Any], index: int) -> int:
    """Parse a numeric cell, defaulting to 0 for blanks and junk."""
    value = cell(row, index).strip()
    try:
        return int(value)
    except ValueError:
        try:
            return int(float(value))
        except (ValueError, OverflowError):
            return 0


@dataclass
class Slot:
    """Represents one bookable time window on one date."""

    id: int
    date: str
    label: str
    capacity: int
    taken: int

    @property
    def available(self) -> int:
        return max(0, self.capacity - self.taken)

    @property
    def is_full(self) -> bool:
        return self.taken >= self.capacity

    @classmethod
    def from_row(cls, row_id: int, row: List[Any]) -> "Slot":
        return cls(
            id=row_id,
            date=cell(row, SlotColumns.DATE),
            label=cell(row, SlotColumns.LABEL),
            capacity=int_cell(row, SlotColumns.CAPACITY),
            taken=int_cell(row, SlotColumns.TAKEN),
        )


def slot_row_range(row_id: int) -> str:
    """Range covering date..taken of a single slot row."""
    return f"{SLOTS_SHEET}!A{row_id}:D{row_id}"


def slot_taken_range(row_id: int) -> str:
    return f"{SLOTS_SHEET}!D{row_id}"


def slots_listing_range() -> str:
    return f"{SLOTS_SHEET}!{SLOTS_DATA_RANGE}"
