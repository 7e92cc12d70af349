"""Dispute resolution schemas."""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import Field

from ..core.constants import MAX_RESOLUTION_LENGTH
from ._strict_base import StrictRequestModel
from .base import Money, StandardizedModel
from .booking import BookingResponse


class DisputeResolveRequest(StrictRequestModel):
    resolution: str = Field(..., min_length=1, max_length=MAX_RESOLUTION_LENGTH)
    refund_amount: Optional[Decimal] = Field(
        None, ge=0, description="Amount to refund; omit or 0 to release the booking to the chef"
    )


class DisputeResponse(StandardizedModel):
    id: str
    booking_id: str
    raised_by_id: str
    raised_by_party: str
    reason: Optional[str] = None
    raised_at: datetime
    resolution_note: Optional[str] = None
    refund_amount: Optional[Money] = None
    outcome: Optional[str] = None
    resolved_by_id: Optional[str] = None
    resolved_at: Optional[datetime] = None


class DisputedBookingResponse(BookingResponse):
    """Booking as the dispute resolver sees it, with the dispute record."""

    dispute: Optional[DisputeResponse] = None


class DisputeListResponse(StandardizedModel):
    items: List[DisputedBookingResponse]
    total: int
    page: int
    per_page: int
    has_next: bool
