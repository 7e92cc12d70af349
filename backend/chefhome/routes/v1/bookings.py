# backend/chefhome/routes/v1/bookings.py
"""
Booking routes - API v1

Versioned booking endpoints under /api/v1/bookings.
All business logic delegated to ReservationService and BookingService.

Endpoints:
    POST / - Request a service booking (created in ``pending``)
    GET / - List the caller's bookings with pagination
    GET /{booking_id} - Full booking details
    GET /{booking_id}/timeline - Status history
    PUT /{booking_id}/status - Apply a lifecycle event
    POST /{booking_id}/review - Review a completed booking
"""

import asyncio
import logging
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Query, status

from ...api.dependencies import get_booking_service, get_current_actor, get_reservation_service
from ...core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from ...core.exceptions import DomainException
from ...models.booking import Booking, BookingStatus
from ...principal import Actor
from ...schemas.booking import (
    BookingListResponse,
    BookingResponse,
    BookingTransitionRequest,
    ReviewCreate,
    ReviewResponse,
    TimelineEntryResponse,
)
from ...schemas.reservation import ServiceBookingRequest
from ...services.booking_service import BookingService
from ...services.reservation_service import ReservationService
from ...services.reservation_state_machine import allowed_booking_events
from .common import handle_domain_exception, has_next

logger = logging.getLogger(__name__)

# V1 router - no prefix here, will be added when mounting in main.py
router = APIRouter(tags=["bookings-v1"])


def booking_response(booking_service: BookingService, actor: Actor, booking: Booking) -> BookingResponse:
    party = booking_service.party_of(actor, booking)
    events = allowed_booking_events(booking.status, party) if party else []
    return BookingResponse.from_booking(booking, events)


@router.post(
    "",
    response_model=BookingResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        404: {"description": "Chef or menu not found"},
        409: {"description": "Overlaps an existing reservation"},
        422: {"description": "Capacity or availability rule violated"},
        503: {"description": "Chef schedule busy, retry"},
    },
)
async def create_booking(
    booking_data: ServiceBookingRequest = Body(...),
    actor: Actor = Depends(get_current_actor),
    reservation_service: ReservationService = Depends(get_reservation_service),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    """Request a chef for an event at the client's address."""
    try:
        booking = await asyncio.to_thread(reservation_service.reserve, actor, booking_data)
        return booking_response(booking_service, actor, booking)
    except DomainException as e:
        handle_domain_exception(e)


@router.get("", response_model=BookingListResponse)
async def list_bookings(
    status_filter: Optional[BookingStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    per_page: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    actor: Actor = Depends(get_current_actor),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingListResponse:
    """Bookings where the caller is the client or the chef (admins see all)."""
    try:
        items, total = await asyncio.to_thread(
            booking_service.list_bookings_for_actor,
            actor,
            status_filter.value if status_filter else None,
            page,
            per_page,
        )
        return BookingListResponse(
            items=[booking_response(booking_service, actor, b) for b in items],
            total=total,
            page=page,
            per_page=per_page,
            has_next=has_next(page, per_page, total),
        )
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: str,
    actor: Actor = Depends(get_current_actor),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        booking = await asyncio.to_thread(booking_service.get_booking_for_actor, actor, booking_id)
        return booking_response(booking_service, actor, booking)
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/{booking_id}/timeline", response_model=List[TimelineEntryResponse])
async def get_booking_timeline(
    booking_id: str,
    actor: Actor = Depends(get_current_actor),
    booking_service: BookingService = Depends(get_booking_service),
) -> List[TimelineEntryResponse]:
    try:
        entries = await asyncio.to_thread(booking_service.get_timeline, actor, booking_id)
        return [TimelineEntryResponse.model_validate(e) for e in entries]
    except DomainException as e:
        handle_domain_exception(e)


@router.put(
    "/{booking_id}/status",
    response_model=BookingResponse,
    responses={
        403: {"description": "Caller's party may not trigger this event"},
        409: {"description": "Event not allowed from the current status"},
        502: {"description": "Refund failed; booking unchanged"},
    },
)
async def update_booking_status(
    booking_id: str,
    payload: BookingTransitionRequest = Body(...),
    actor: Actor = Depends(get_current_actor),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    """
    Apply a lifecycle event (accept, reject, cancel, start, complete, dispute).

    Dispute resolution is handled by the admin disputes endpoint.
    """
    try:
        booking = await asyncio.to_thread(
            booking_service.transition,
            actor,
            booking_id,
            payload.event.value,
            note=payload.note,
            reason=payload.reason,
        )
        return booking_response(booking_service, actor, booking)
    except DomainException as e:
        handle_domain_exception(e)


@router.post(
    "/{booking_id}/review",
    response_model=ReviewResponse,
    status_code=status.HTTP_201_CREATED,
)
async def review_booking(
    booking_id: str,
    payload: ReviewCreate = Body(...),
    actor: Actor = Depends(get_current_actor),
    booking_service: BookingService = Depends(get_booking_service),
) -> ReviewResponse:
    try:
        review = await asyncio.to_thread(
            booking_service.add_review, actor, booking_id, payload.rating, payload.comment
        )
        return ReviewResponse.model_validate(review)
    except DomainException as e:
        handle_domain_exception(e)
