# backend/chefhome/models/__init__.py
"""
SQLAlchemy models for the Chef@Home reservation engine.

Importing this package registers every table on ``Base.metadata``.
"""

from .booking import (
    BOOKING_ACTIVE_STATUSES,
    BOOKING_TERMINAL_STATUSES,
    Booking,
    BookingReview,
    BookingStatus,
    EventType,
    PaymentStatus,
)
from .booking_dispute import BookingDispute, DisputeOutcome
from .chef import Chef, ChefAvailabilityWindow, ChefBlackoutDate, Menu, MenuType, ServiceType
from .chef_home import (
    APPOINTMENT_ACTIVE_STATUSES,
    AppointmentStatus,
    ChefHomeAppointment,
    ChefHomeLocation,
)
from .notification import Notification
from .payment import (
    IntentStatus,
    LedgerEventType,
    PaymentEvent,
    PaymentIntent,
    PaymentPurpose,
    RefundAttempt,
    RefundAttemptStatus,
)
from .timeline import ReservationTimelineEntry
from .user import User

__all__ = [
    "APPOINTMENT_ACTIVE_STATUSES",
    "AppointmentStatus",
    "BOOKING_ACTIVE_STATUSES",
    "BOOKING_TERMINAL_STATUSES",
    "Booking",
    "BookingDispute",
    "BookingReview",
    "BookingStatus",
    "Chef",
    "ChefAvailabilityWindow",
    "ChefBlackoutDate",
    "ChefHomeAppointment",
    "ChefHomeLocation",
    "DisputeOutcome",
    "EventType",
    "IntentStatus",
    "LedgerEventType",
    "Menu",
    "MenuType",
    "Notification",
    "PaymentEvent",
    "PaymentIntent",
    "PaymentPurpose",
    "PaymentStatus",
    "RefundAttempt",
    "RefundAttemptStatus",
    "ReservationTimelineEntry",
    "ServiceType",
    "User",
]
