"""Availability listing and phone lookup (read-only paths)."""
import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional

import pytz

from slotbook.core.config import settings
from slotbook.core.logging_config import mask_phone
from slotbook.models.signup import STATUS_ACTIVE, signups_from_rows, signups_listing_range
from slotbook.models.slot import FIRST_DATA_ROW, Slot, slots_listing_range
from slotbook.schemas.booking import BookingOut, BookingsResponse
from slotbook.schemas.slots import AvailabilityResponse, SlotOut
from slotbook.services.sheets_client import SheetsClient
from slotbook.services.slot_cache import SlotCache

logger = logging.getLogger(__name__)

DATE_FORMATS = (
    "%Y-%m-%d",
    "%m/%d/%Y",
    "%B %d, %Y",
    "%b %d, %Y",
    "%A, %B %d, %Y",
)


def parse_slot_date(value: str) -> Optional[date]:
    """Parse the date strings operators type into the Slots sheet."""
    value = (value or "").strip()
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue
    return None


def local_today() -> date:
    return datetime.now(pytz.timezone(settings.TIMEZONE)).date()


def group_by_date(slots: List[Slot], today: date) -> Dict[str, List[SlotOut]]:
    """
    Keep bookable upcoming slots and group them by their date string.

    Dates keep the order in which they first appear in the sheet; callers sort.
    """
    grouped: Dict[str, List[SlotOut]] = {}
    for slot in slots:
        slot_date = parse_slot_date(slot.date)
        if slot_date is None or slot_date < today or slot.capacity <= 0:
            continue
        grouped.setdefault(slot.date, []).append(SlotOut.from_slot(slot))
    return grouped


class AvailabilityService:
    """Serves the cached slot listing and per-phone booking lookups."""

    def __init__(self, store: SheetsClient, cache: SlotCache):
        self.store = store
        self.cache = cache

    async def get_availability(self) -> Dict[str, Any]:
        """
        Return the grouped listing, from cache while it is fresh.

        Returns:
            ``{"ok": True, "dates": {...}}`` ready to serialize

        Raises:
            StoreError: If the Slots sheet cannot be read
        """
        cached = self.cache.get()
        if cached is not None:
            return cached

        rows = await self.store.get_values(slots_listing_range())
        slots = [
            Slot.from_row(index + FIRST_DATA_ROW, row) for index, row in enumerate(rows)
        ]
        listing = AvailabilityResponse(
            dates=group_by_date(slots, local_today())
        ).model_dump(by_alias=True)

        self.cache.set(listing)
        logger.info(f"Loaded {len(slots)} slot rows from store")
        return listing

    async def find_bookings(self, phone: str) -> Dict[str, Any]:
        """Return active bookings whose stored phone equals ``phone``."""
        logger.info(f"Looking up bookings for phone {mask_phone(phone)}")

        rows = await self.store.get_values(signups_listing_range())
        bookings = [
            BookingOut.from_signup(s)
            for s in signups_from_rows(rows)
            if s.matches_phone(phone) and s.status == STATUS_ACTIVE
        ]

        logger.info(f"Phone lookup complete: {len(bookings)} booking(s)")
        return BookingsResponse(bookings=bookings).model_dump(by_alias=True)
