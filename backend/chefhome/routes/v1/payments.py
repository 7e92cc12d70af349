# backend/chefhome/routes/v1/payments.py
"""
Payment routes - API v1

Endpoints:
    POST /intents - Create a deposit or balance intent for a booking
    POST /confirm - Confirm an intent and record the capture
    GET /history - Payment ledger of a booking
"""

import asyncio
import logging
from typing import List

from fastapi import APIRouter, Body, Depends, Query, status

from ...api.dependencies import get_current_actor, get_payment_service
from ...core.enums import ReservationParty
from ...core.exceptions import DomainException
from ...principal import Actor
from ...schemas.booking import BookingResponse
from ...schemas.payment import (
    ConfirmPaymentRequest,
    CreateIntentRequest,
    IntentResponse,
    PaymentEventResponse,
)
from ...services.payment_service import PaymentService
from ...services.reservation_state_machine import allowed_booking_events
from .common import handle_domain_exception

logger = logging.getLogger(__name__)

router = APIRouter(tags=["payments-v1"])


@router.post(
    "/intents",
    response_model=IntentResponse,
    status_code=status.HTTP_201_CREATED,
    responses={502: {"description": "Payment provider unavailable"}},
)
async def create_payment_intent(
    payload: CreateIntentRequest = Body(...),
    actor: Actor = Depends(get_current_actor),
    payment_service: PaymentService = Depends(get_payment_service),
) -> IntentResponse:
    try:
        result = await asyncio.to_thread(
            payment_service.create_intent, actor, payload.booking_id, payload.purpose
        )
        return IntentResponse(
            intent_id=result.intent.provider_intent_id,
            client_secret=result.client_secret,
            amount=result.intent.amount,
            purpose=result.intent.purpose,
            status=result.intent.status,
        )
    except DomainException as e:
        handle_domain_exception(e)


@router.post(
    "/confirm",
    response_model=BookingResponse,
    responses={502: {"description": "Payment declined or provider unavailable; booking unchanged"}},
)
async def confirm_payment(
    payload: ConfirmPaymentRequest = Body(...),
    actor: Actor = Depends(get_current_actor),
    payment_service: PaymentService = Depends(get_payment_service),
) -> BookingResponse:
    try:
        booking = await asyncio.to_thread(
            payment_service.confirm_payment, actor, payload.booking_id, payload.intent_id
        )
        return BookingResponse.from_booking(
            booking, allowed_booking_events(booking.status, ReservationParty.CLIENT)
        )
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/history", response_model=List[PaymentEventResponse])
async def payment_history(
    booking_id: str = Query(..., min_length=1),
    actor: Actor = Depends(get_current_actor),
    payment_service: PaymentService = Depends(get_payment_service),
) -> List[PaymentEventResponse]:
    try:
        events = await asyncio.to_thread(payment_service.payment_history, actor, booking_id)
        return [PaymentEventResponse.model_validate(e) for e in events]
    except DomainException as e:
        handle_domain_exception(e)
