"""Availability listing schemas."""
from pydantic import BaseModel, ConfigDict, Field
from typing import Dict, List

from slotbook.models.slot import Slot


class SlotOut(BaseModel):
    """Schema for a single bookable slot."""

    id: int
    date: str
    slot_label: str = Field(serialization_alias="slotLabel")
    capacity: int
    taken: int
    available: int

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_slot(cls, slot: Slot) -> "SlotOut":
        return cls(
            id=slot.id,
            date=slot.date,
            slot_label=slot.label,
            capacity=slot.capacity,
            taken=slot.taken,
            available=slot.available,
        )


class AvailabilityResponse(BaseModel):
    """Slots grouped by date, in first-seen order."""

    ok: bool = True
    dates: Dict[str, List[SlotOut]]
