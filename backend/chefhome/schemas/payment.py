"""Payment intent request/response schemas."""

from datetime import datetime
from typing import Optional

from pydantic import Field

from ..models.payment import PaymentPurpose
from ._strict_base import StrictRequestModel
from .base import Money, StandardizedModel


class CreateIntentRequest(StrictRequestModel):
    booking_id: str = Field(..., min_length=1)
    purpose: PaymentPurpose = PaymentPurpose.DEPOSIT


class IntentResponse(StandardizedModel):
    intent_id: str = Field(..., description="Provider intent identifier")
    client_secret: Optional[str] = None
    amount: Money
    purpose: str
    status: str


class ConfirmPaymentRequest(StrictRequestModel):
    booking_id: str = Field(..., min_length=1)
    intent_id: str = Field(..., min_length=1)


class PaymentEventResponse(StandardizedModel):
    id: str
    booking_id: str
    event_type: str
    amount: Money
    provider_reference: Optional[str] = None
    created_at: Optional[datetime] = None
