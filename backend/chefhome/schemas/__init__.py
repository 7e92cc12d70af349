# backend/chefhome/schemas/__init__.py
"""
Pydantic schemas for the Chef@Home platform.

Request models forbid unknown fields; response models are built from
ORM objects.
"""

from .availability import (
    BlackoutDateCreate,
    BlackoutDateResponse,
    BookingLimitsUpdate,
    ChefAvailabilityResponse,
    DayScheduleResponse,
    WeeklyWindowsReplace,
)
from .booking import (
    BookingListResponse,
    BookingResponse,
    BookingTransitionRequest,
    ReviewCreate,
    ReviewResponse,
    TimelineEntryResponse,
)
from .chef_home import (
    AppointmentCreate,
    AppointmentResponse,
    AppointmentStatusUpdate,
    LocationCreate,
    LocationResponse,
    LocationUpdate,
)
from .dispute import (
    DisputedBookingResponse,
    DisputeListResponse,
    DisputeResolveRequest,
    DisputeResponse,
)
from .payment import ConfirmPaymentRequest, CreateIntentRequest, IntentResponse, PaymentEventResponse
from .reservation import (
    ChefHomeAppointmentRequest,
    ReservationRequest,
    ServiceBookingRequest,
    parse_reservation_request,
)

__all__ = [
    # Availability
    "BlackoutDateCreate",
    "BlackoutDateResponse",
    "BookingLimitsUpdate",
    "ChefAvailabilityResponse",
    "DayScheduleResponse",
    "WeeklyWindowsReplace",
    # Bookings
    "BookingListResponse",
    "BookingResponse",
    "BookingTransitionRequest",
    "ReviewCreate",
    "ReviewResponse",
    "TimelineEntryResponse",
    # Chef-home
    "AppointmentCreate",
    "AppointmentResponse",
    "AppointmentStatusUpdate",
    "LocationCreate",
    "LocationResponse",
    "LocationUpdate",
    # Disputes
    "DisputedBookingResponse",
    "DisputeListResponse",
    "DisputeResolveRequest",
    "DisputeResponse",
    # Payments
    "ConfirmPaymentRequest",
    "CreateIntentRequest",
    "IntentResponse",
    "PaymentEventResponse",
    # Reservations
    "ChefHomeAppointmentRequest",
    "ReservationRequest",
    "ServiceBookingRequest",
    "parse_reservation_request",
]
