# backend/chefhome/schemas/booking.py
"""
Booking schemas for the Chef@Home platform.

Bookings are self-contained: they carry their own date, window, address
and price breakdown, so they survive later changes to the chef's
availability or menus.
"""

from datetime import date, datetime
from typing import List, Optional

from pydantic import Field

from ..core.constants import MAX_REASON_LENGTH, MAX_REVIEW_COMMENT_LENGTH, MAX_RATING, MIN_RATING
from ..models.booking import Booking
from ..services.reservation_state_machine import BookingEvent
from ._strict_base import StrictRequestModel
from .base import Money, StandardizedModel, TimeOfDay


class BookingTransitionRequest(StrictRequestModel):
    """Lifecycle event for a booking; resolution events go through the admin endpoint."""

    event: BookingEvent
    reason: Optional[str] = Field(None, max_length=MAX_REASON_LENGTH)
    note: Optional[str] = Field(None, max_length=MAX_REASON_LENGTH)


class ReviewCreate(StrictRequestModel):
    rating: int = Field(..., ge=MIN_RATING, le=MAX_RATING)
    comment: Optional[str] = Field(None, max_length=MAX_REVIEW_COMMENT_LENGTH)


class ReviewResponse(StandardizedModel):
    id: str
    booking_id: str
    author_id: str
    author_party: str
    rating: int
    comment: Optional[str] = None
    created_at: Optional[datetime] = None


class ChefSummary(StandardizedModel):
    id: str
    display_name: str
    specialty: Optional[str] = None


class BookingResponse(StandardizedModel):
    id: str
    client_id: str
    chef_id: str
    menu_id: Optional[str] = None
    chef: Optional[ChefSummary] = None

    service_type: str
    event_date: date
    start_time: TimeOfDay
    end_time: TimeOfDay
    duration_hours: int
    guests: int
    event_type: Optional[str] = None

    address: str
    city: str
    zip_code: str
    country: str
    dietary_restrictions: List[str] = Field(default_factory=list)
    allergies: List[str] = Field(default_factory=list)
    special_requests: Optional[str] = None

    base_price: Money
    service_fee: Money
    total_amount: Money
    deposit_amount: Money
    captured_amount: Money
    refunded_amount: Money
    payment_status: str

    status: str
    is_b2b: bool = False
    company_name: Optional[str] = None

    created_at: Optional[datetime] = None
    confirmed_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    disputed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancelled_by_party: Optional[str] = None
    cancellation_reason: Optional[str] = None

    allowed_events: List[str] = Field(
        default_factory=list, description="Events the caller may trigger from the current status"
    )

    @classmethod
    def from_booking(cls, booking: Booking, allowed_events: Optional[List[str]] = None) -> "BookingResponse":
        response = cls.model_validate(booking)
        if allowed_events:
            response.allowed_events = list(allowed_events)
        return response


class BookingListResponse(StandardizedModel):
    items: List[BookingResponse]
    total: int
    page: int
    per_page: int
    has_next: bool


class TimelineEntryResponse(StandardizedModel):
    id: str
    from_status: Optional[str] = None
    to_status: str
    event: str
    actor_id: Optional[str] = None
    actor_role: str
    note: Optional[str] = None
    created_at: Optional[datetime] = None
