"""Booking cancellation."""
import logging
from datetime import datetime, timezone

from slotbook.core.config import settings
from slotbook.core.errors import (
    AlreadyCancelled,
    BookingNotFound,
    CancellationFailed,
    InvalidRequest,
    PhoneMismatch,
    StoreError,
)
from slotbook.core.logging_config import mask_phone
from slotbook.models.signup import Signup, SignupColumns, cancelled_status, signup_row_range
from slotbook.models.slot import SlotColumns, int_cell, slot_taken_range
from slotbook.schemas.booking import CancelRequest, Confirmation
from slotbook.services.sheets_client import SheetsClient, UpdateCell
from slotbook.services.slot_cache import SlotCache

logger = logging.getLogger(__name__)

MSG_CANCELLED = "Booking cancelled successfully."


class CancellationService:
    """Flips a signup to cancelled and gives its seat back."""

    def __init__(self, store: SheetsClient, cache: SlotCache):
        self.store = store
        self.cache = cache

    async def cancel(self, request: CancelRequest) -> Confirmation:
        """
        Cancel one signup owned by the caller's phone.

        The signup row is kept with status ``CANCELLED:<timestamp>``.

        Raises:
            BookingNotFound: no signup at that row
            PhoneMismatch: the stored phone is not the caller's
            AlreadyCancelled: the signup is no longer active
            InvalidRequest: the slot row does not belong to the signup
            CancellationFailed: the store could not be read or written
        """
        try:
            rows = await self.store.get_values(signup_row_range(request.signup_row_id))
        except StoreError as e:
            logger.error(f"Cancel lookup failed: {e.detail}", exc_info=True)
            raise CancellationFailed() from e

        if not rows:
            raise BookingNotFound()
        signup = Signup.from_row(rows[0], row_id=request.signup_row_id)

        if not signup.matches_phone(request.phone):
            logger.warning(
                f"Cancel rejected for row {request.signup_row_id}: "
                f"phone {mask_phone(request.phone)} does not match"
            )
            raise PhoneMismatch()

        if not signup.is_active:
            raise AlreadyCancelled()

        if signup.slot_row_id != request.slot_row_id:
            raise InvalidRequest("Slot does not match booking.")

        try:
            taken_rows = await self.store.get_values(slot_taken_range(request.slot_row_id))
            current_taken = int_cell(taken_rows[0], 0) if taken_rows else 0
            new_taken = max(0, current_taken - 1)

            ts = datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
            await self.store.batch_update([
                UpdateCell(
                    sheet_id=settings.SIGNUPS_GID,
                    row=request.signup_row_id,
                    column=SignupColumns.STATUS,
                    value=cancelled_status(ts),
                ),
                UpdateCell(
                    sheet_id=settings.SLOTS_GID,
                    row=request.slot_row_id,
                    column=SlotColumns.TAKEN,
                    value=new_taken,
                ),
            ])
        except StoreError as e:
            self.cache.invalidate()
            logger.error(f"Cancel booking failed: {e.detail}", exc_info=True)
            raise CancellationFailed() from e

        self.cache.invalidate()
        logger.info(
            f"Cancelled signup row {request.signup_row_id} (slot {request.slot_row_id}, "
            f"taken {current_taken} -> {new_taken})"
        )
        return Confirmation(message=MSG_CANCELLED)
