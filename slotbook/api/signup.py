"""Signup endpoints: listing, phone lookup, booking and cancellation."""
import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from fastapi.responses import JSONResponse

from slotbook.core.errors import (
    STATUS_METHOD_NOT_ALLOWED,
    InvalidRequest,
    RateLimited,
    StoreError,
    error_response,
)
from slotbook.services.state import ServerState
from slotbook.services.validation import (
    validate_booking_request,
    validate_cancel_request,
    validate_lookup_phone,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["signup"])


def get_state(request: Request) -> ServerState:
    return request.app.state.server


def client_identity(request: Request) -> str:
    """First X-Forwarded-For hop, then X-Real-IP, then the socket peer."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def enforce_rate_limit(request: Request, state: ServerState = Depends(get_state)) -> None:
    identity = client_identity(request)
    if not state.rate_limiter.allow(identity):
        logger.warning(f"Rate limit exceeded for {identity}")
        raise RateLimited()


async def read_json(request: Request) -> Any:
    try:
        return await request.json()
    except ValueError:
        raise InvalidRequest("Invalid JSON body.")


@router.options("/")
async def preflight():
    """CORS preflight."""
    return Response(status_code=200)


# must precede the GET route
@router.head("/", include_in_schema=False)
async def reject_head():
    raise HTTPException(status_code=STATUS_METHOD_NOT_ALLOWED)


@router.get("/", dependencies=[Depends(enforce_rate_limit)])
async def get_slots_or_bookings(
    phone: Optional[str] = Query(default=None, description="Look up active bookings by phone"),
    state: ServerState = Depends(get_state),
):
    """
    List available slots grouped by date, or a phone's active bookings.

    Without ``phone`` the listing is served from the slot cache when fresh.
    """
    if phone:
        phone = validate_lookup_phone(phone)
        try:
            result = await state.availability.find_bookings(phone)
        except StoreError as e:
            logger.error(f"Phone lookup failed: {e.detail}")
            return error_response(500, "Failed to fetch bookings.")
        return JSONResponse(content=result)

    try:
        result = await state.availability.get_availability()
    except StoreError as e:
        logger.error(f"Slot listing failed: {e.detail}")
        return error_response(500, "Slots not available.")
    return JSONResponse(content=result)


@router.post("/", dependencies=[Depends(enforce_rate_limit)])
async def create_booking(request: Request, state: ServerState = Depends(get_state)):
    """
    Book one or more slots for a phone number.

    All requested slots are booked together or not at all.
    """
    booking = validate_booking_request(await read_json(request))
    confirmation = await state.booking.book(booking)
    return JSONResponse(content=confirmation.model_dump())


@router.patch("/", dependencies=[Depends(enforce_rate_limit)])
async def cancel_booking(request: Request, state: ServerState = Depends(get_state)):
    """Cancel a booking; the caller proves ownership with the booking's phone."""
    cancel = validate_cancel_request(await read_json(request))
    confirmation = await state.cancellation.cancel(cancel)
    return JSONResponse(content=confirmation.model_dump())
