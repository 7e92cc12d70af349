# backend/chefhome/routes/v1/admin_disputes.py
"""
Admin dispute routes - API v1

Endpoints:
    GET / - Disputed bookings awaiting resolution
    PUT /{booking_id}/resolve - Resolve with a written note and optional refund
"""

import asyncio
import logging

from fastapi import APIRouter, Body, Depends, Query

from ...api.dependencies import get_dispute_service, require_admin
from ...core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from ...core.exceptions import DomainException
from ...principal import Actor
from ...schemas.dispute import DisputedBookingResponse, DisputeListResponse, DisputeResolveRequest
from ...services.dispute_service import DisputeService
from ...services.reservation_state_machine import resolution_events
from .common import handle_domain_exception, has_next

logger = logging.getLogger(__name__)

router = APIRouter(tags=["admin-disputes-v1"])


@router.get("", response_model=DisputeListResponse)
async def list_disputes(
    page: int = Query(1, ge=1),
    per_page: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    admin: Actor = Depends(require_admin),
    dispute_service: DisputeService = Depends(get_dispute_service),
) -> DisputeListResponse:
    try:
        items, total = await asyncio.to_thread(dispute_service.list_disputes, admin, page, per_page)
        return DisputeListResponse(
            items=[DisputedBookingResponse.from_booking(b, resolution_events(b.status)) for b in items],
            total=total,
            page=page,
            per_page=per_page,
            has_next=has_next(page, per_page, total),
        )
    except DomainException as e:
        handle_domain_exception(e)


@router.put(
    "/{booking_id}/resolve",
    response_model=DisputedBookingResponse,
    responses={
        409: {"description": "Booking is not disputed, or another refund is in flight"},
        422: {"description": "Refund exceeds the captured amount"},
        502: {"description": "Refund failed; dispute left open"},
    },
)
async def resolve_dispute(
    booking_id: str,
    payload: DisputeResolveRequest = Body(...),
    admin: Actor = Depends(require_admin),
    dispute_service: DisputeService = Depends(get_dispute_service),
) -> DisputedBookingResponse:
    try:
        booking = await asyncio.to_thread(
            dispute_service.resolve, admin, booking_id, payload.resolution, payload.refund_amount
        )
        return DisputedBookingResponse.from_booking(booking)
    except DomainException as e:
        handle_domain_exception(e)
