"""Booking creation.

Booking reads the requested slot rows and the whole Signups sheet, checks
capacity and duplicates, then submits every signup append and taken-count
update in one batchUpdate.

Known race: nothing locks the slot rows between the read and the write.
Two requests from different phones for the last seat of a slot can both see
``taken < capacity`` and both write ``taken + 1``. The Sheets API has no
conditional update to close this window; the per-phone throttle only limits
how many attempts a single phone can have in flight.

Duplicate detection scans every signup row on each booking (linear in the
size of the sheet).
"""
import asyncio
import logging
from datetime import datetime
from typing import List

import pytz

from slotbook.core.config import settings
from slotbook.core.errors import (
    BookingFailed,
    DuplicateBooking,
    SlotDataMissing,
    SlotFull,
    StoreError,
)
from slotbook.core.logging_config import mask_phone
from slotbook.models.signup import STATUS_ACTIVE, Signup, signups_from_rows, signups_listing_range
from slotbook.models.slot import Slot, SlotColumns, slot_row_range
from slotbook.schemas.booking import BookingRequest, Confirmation
from slotbook.services.sheets_client import AppendRows, Directive, SheetsClient, UpdateCell
from slotbook.services.slot_cache import SlotCache
from slotbook.services.throttle import ConcurrencyThrottle

logger = logging.getLogger(__name__)

MSG_BOOKED = "Booking successful!"


def booking_timestamp() -> str:
    """Local wall-clock time in the configured zone, e.g. ``1/15/2025, 9:05:00 AM``."""
    now = datetime.now(pytz.timezone(settings.TIMEZONE))
    hour = now.hour % 12 or 12
    return (
        f"{now.month}/{now.day}/{now.year}, "
        f"{hour}:{now.minute:02d}:{now.second:02d} {'AM' if now.hour < 12 else 'PM'}"
    )


def find_active_signup(signups: List[Signup], phone: str, slot_id: int):
    for signup in signups:
        if signup.matches_phone(phone) and signup.slot_row_id == slot_id and signup.is_active:
            return signup
    return None


class BookingService:
    """Creates bookings against the Slots and Signups sheets."""

    def __init__(
        self,
        store: SheetsClient,
        cache: SlotCache,
        throttle: ConcurrencyThrottle,
    ):
        self.store = store
        self.cache = cache
        self.throttle = throttle

    async def book(self, request: BookingRequest) -> Confirmation:
        """
        Book every requested slot or none of them.

        Args:
            request: Validated, sanitized booking request

        Returns:
            Confirmation on success

        Raises:
            TooManyConcurrentRequests: phone already has the maximum attempts in flight
            SlotDataMissing: a requested slot row is empty
            DuplicateBooking: phone already holds an active signup for a slot
            SlotFull: a slot has no seats left
            BookingFailed: the store could not be read or written
        """
        async with self.throttle.hold(request.phone):
            try:
                slot_rows, signup_rows = await asyncio.gather(
                    self.store.batch_get_values([slot_row_range(i) for i in request.slot_ids]),
                    self.store.get_values(signups_listing_range()),
                )
            except StoreError as e:
                logger.error(f"Booking read failed: {e.detail}", exc_info=True)
                raise BookingFailed() from e

            directives = self._plan_writes(request, slot_rows, signups_from_rows(signup_rows))

            try:
                await self.store.batch_update(directives)
            except StoreError as e:
                # The write may or may not have landed.
                self.cache.invalidate()
                logger.error(f"Booking write failed: {e.detail}", exc_info=True)
                raise BookingFailed() from e

            self.cache.invalidate()

        logger.info(
            f"Booked {len(request.slot_ids)} slot(s) {request.slot_ids} "
            f"for phone {mask_phone(request.phone)}"
        )
        return Confirmation(message=MSG_BOOKED)

    def _plan_writes(
        self,
        request: BookingRequest,
        slot_rows: List[List[List[str]]],
        signups: List[Signup],
    ) -> List[Directive]:
        """Check every slot in request order and build the batch write."""
        timestamp = booking_timestamp()
        new_rows = []
        updates: List[Directive] = []

        for slot_id, rows in zip(request.slot_ids, slot_rows):
            if not rows:
                logger.warning(f"Slot row {slot_id} is empty")
                raise SlotDataMissing()
            slot = Slot.from_row(slot_id, rows[0])

            if find_active_signup(signups, request.phone, slot_id):
                raise DuplicateBooking(f"Already booked {slot.label} on {slot.date}.")

            if slot.is_full:
                raise SlotFull(f"Slot {slot.label} on {slot.date} is full.")

            signup = Signup(
                timestamp=timestamp,
                date=slot.date,
                slot_label=slot.label,
                name=request.name,
                email=request.email,
                phone=request.phone,
                category=request.category,
                notes=request.notes,
                slot_row_id=slot_id,
                status=STATUS_ACTIVE,
            )
            new_rows.append(signup.to_row())
            updates.append(
                UpdateCell(
                    sheet_id=settings.SLOTS_GID,
                    row=slot_id,
                    column=SlotColumns.TAKEN,
                    value=slot.taken + 1,
                )
            )

        return [AppendRows(sheet_id=settings.SIGNUPS_GID, rows=new_rows), *updates]
