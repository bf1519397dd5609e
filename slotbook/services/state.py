"""Process-wide server state.

Rate windows, throttle counters and the slot cache live in memory, are owned
by one ServerState per process and are handed to request handlers through
FastAPI dependencies. They reset on restart and are not shared between
instances; a horizontally scaled deployment limits per instance.
"""
from dataclasses import dataclass
from typing import Optional

from slotbook.core.config import settings
from slotbook.services.availability_service import AvailabilityService
from slotbook.services.booking_service import BookingService
from slotbook.services.cancellation_service import CancellationService
from slotbook.services.rate_limiter import RateLimiter
from slotbook.services.sheets_client import SheetsClient
from slotbook.services.slot_cache import SlotCache
from slotbook.services.throttle import ConcurrencyThrottle


@dataclass
class ServerState:
    store: SheetsClient
    rate_limiter: RateLimiter
    throttle: ConcurrencyThrottle
    cache: SlotCache
    availability: AvailabilityService
    booking: BookingService
    cancellation: CancellationService


def build_state(store: Optional[SheetsClient] = None) -> ServerState:
    """Wire the services around one store gateway."""
    store = store or SheetsClient()
    rate_limiter = RateLimiter(
        window_ms=settings.RATE_LIMIT_WINDOW_MS,
        max_requests=settings.RATE_LIMIT_MAX_REQUESTS,
    )
    throttle = ConcurrencyThrottle(max_concurrent=settings.MAX_CONCURRENT_BOOKINGS)
    cache = SlotCache(ttl_ms=settings.CACHE_TTL_MS)

    return ServerState(
        store=store,
        rate_limiter=rate_limiter,
        throttle=throttle,
        cache=cache,
        availability=AvailabilityService(store, cache),
        booking=BookingService(store, cache, throttle),
        cancellation=CancellationService(store, cache),
    )
