# backend/chefhome/models/booking.py
"""
Booking model for the Chef@Home platform.

A booking is a client's request for a chef to cook at the client's
address (or for a B2B event). It is self-contained: pricing, menu choice
and event details are snapshotted at creation time so the record
survives later changes to the chef's menus or rates.

Bookings are never hard-deleted; cancelled and completed bookings are
kept for history and revenue reporting.
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
import logging
from typing import Optional

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    Time,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..core.timeutils import TimeWindow
from ..database import Base

logger = logging.getLogger(__name__)


class BookingStatus(str, Enum):
    """Booking lifecycle statuses."""

    PENDING = "pending"  # Awaiting chef acceptance
    CONFIRMED = "confirmed"  # Accepted by the chef
    IN_PROGRESS = "in_progress"  # Event day reached
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    DISPUTED = "disputed"  # Frozen until an admin resolves it


BOOKING_ACTIVE_STATUSES = (
    BookingStatus.PENDING.value,
    BookingStatus.CONFIRMED.value,
    BookingStatus.IN_PROGRESS.value,
    BookingStatus.DISPUTED.value,
)

BOOKING_TERMINAL_STATUSES = (BookingStatus.COMPLETED.value, BookingStatus.CANCELLED.value)


class PaymentStatus(str, Enum):
    PENDING = "pending"
    DEPOSIT_PAID = "deposit_paid"
    FULLY_PAID = "fully_paid"
    PARTIALLY_REFUNDED = "partially_refunded"
    REFUNDED = "refunded"


class EventType(str, Enum):
    BIRTHDAY = "birthday"
    ANNIVERSARY = "anniversary"
    DINNER_PARTY = "dinner-party"
    CORPORATE = "corporate"
    WEDDING = "wedding"
    OTHER = "other"


class Booking(Base):
    """
    Service booking between a client and a chef.

    Money columns use two decimals in the booking currency. The ledger in
    ``payment_events`` holds one event per captured or refunded amount.
    """

    __tablename__ = "bookings"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))

    # Core relationships
    client_id = Column(String(26), ForeignKey("users.id"), nullable=False, index=True)
    chef_id = Column(String(26), ForeignKey("chefs.id"), nullable=False)
    menu_id = Column(String(26), ForeignKey("menus.id"), nullable=True)

    service_type = Column(String(30), nullable=False)

    # Event details
    event_date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    duration_hours = Column(Integer, nullable=False)
    guests = Column(Integer, nullable=False)
    event_type = Column(String(30), nullable=True)

    # Location
    address = Column(String(255), nullable=False)
    city = Column(String(100), nullable=False)
    zip_code = Column(String(20), nullable=False)
    country = Column(String(60), nullable=False, default="France")

    # Client preferences
    dietary_restrictions = Column(JSON, nullable=False, default=list)
    allergies = Column(JSON, nullable=False, default=list)
    special_requests = Column(Text, nullable=True)

    # Pricing snapshot
    base_price = Column(Numeric(10, 2), nullable=False)
    service_fee = Column(Numeric(10, 2), nullable=False)
    total_amount = Column(Numeric(10, 2), nullable=False)
    deposit_amount = Column(Numeric(10, 2), nullable=False)

    # Payment summary (the ledger is authoritative)
    payment_status = Column(String(30), nullable=False, default=PaymentStatus.PENDING.value)
    captured_amount = Column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    refunded_amount = Column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))

    status = Column(String(20), nullable=False, default=BookingStatus.PENDING.value, index=True)

    # B2B
    is_b2b = Column(Boolean, nullable=False, default=False)
    company_name = Column(String(200), nullable=True)

    # Lifecycle timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
    confirmed_at = Column(DateTime(timezone=True), nullable=True)
    started_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    disputed_at = Column(DateTime(timezone=True), nullable=True)

    # Cancellation
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_by_id = Column(String(26), ForeignKey("users.id"), nullable=True)
    cancelled_by_party = Column(String(20), nullable=True)
    cancellation_reason = Column(Text, nullable=True)

    client = relationship("User", foreign_keys=[client_id])
    chef = relationship("Chef")
    menu = relationship("Menu")
    dispute = relationship("BookingDispute", back_populates="booking", uselist=False)
    reviews = relationship("BookingReview", back_populates="booking")

    __table_args__ = (
        Index("ix_bookings_chef_date", "chef_id", "event_date"),
        CheckConstraint(
            "status IN ('pending', 'confirmed', 'in_progress', 'completed', 'cancelled', 'disputed')",
            name="ck_bookings_status",
        ),
        CheckConstraint("start_time < end_time", name="ck_bookings_time_order"),
        CheckConstraint(
            "duration_hours >= 1 AND duration_hours <= 12", name="ck_bookings_duration"
        ),
        CheckConstraint("guests >= 1", name="ck_bookings_guests_positive"),
        CheckConstraint("total_amount >= 0", name="ck_bookings_total_non_negative"),
        CheckConstraint("refunded_amount <= captured_amount", name="ck_bookings_refund_bounded"),
    )

    def __repr__(self) -> str:
        return (
            f"<Booking {self.id}: client={self.client_id}, chef={self.chef_id}, "
            f"date={self.event_date}, time={self.start_time}-{self.end_time}, status={self.status}>"
        )

    @property
    def window(self) -> TimeWindow:
        return TimeWindow(day=self.event_date, start=self.start_time, end=self.end_time)

    @property
    def refundable_amount(self) -> Decimal:
        """Money captured and not yet refunded."""
        return Decimal(self.captured_amount or 0) - Decimal(self.refunded_amount or 0)

    @property
    def balance_due(self) -> Decimal:
        return Decimal(self.total_amount) - Decimal(self.captured_amount or 0)

    def is_terminal(self) -> bool:
        return self.status in BOOKING_TERMINAL_STATUSES

    def apply_status(self, target: BookingStatus) -> None:
        """Move to ``target`` and stamp the matching lifecycle timestamp."""
        now = datetime.now(timezone.utc)
        self.status = target.value
        if target == BookingStatus.CONFIRMED:
            self.confirmed_at = now
        elif target == BookingStatus.IN_PROGRESS:
            self.started_at = now
        elif target == BookingStatus.COMPLETED:
            self.completed_at = now
        elif target == BookingStatus.DISPUTED:
            self.disputed_at = now
        elif target == BookingStatus.CANCELLED:
            self.cancelled_at = now

    def cancel(self, cancelled_by_user_id: str, party: str, reason: Optional[str] = None) -> None:
        """Cancel this booking."""
        self.apply_status(BookingStatus.CANCELLED)
        self.cancelled_by_id = cancelled_by_user_id
        self.cancelled_by_party = party
        self.cancellation_reason = reason
        logger.info(f"Booking {self.id} cancelled by {party} {cancelled_by_user_id}")

    def record_capture(self, amount: Decimal) -> None:
        self.captured_amount = Decimal(self.captured_amount or 0) + amount
        if self.captured_amount >= Decimal(self.total_amount):
            self.payment_status = PaymentStatus.FULLY_PAID.value
        else:
            self.payment_status = PaymentStatus.DEPOSIT_PAID.value

    def record_refund(self, amount: Decimal) -> None:
        self.refunded_amount = Decimal(self.refunded_amount or 0) + amount
        if self.refunded_amount >= Decimal(self.captured_amount or 0):
            self.payment_status = PaymentStatus.REFUNDED.value
        else:
            self.payment_status = PaymentStatus.PARTIALLY_REFUNDED.value


class BookingReview(Base):
    """Post-event rating left by the client or the chef; one per party."""

    __tablename__ = "booking_reviews"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    booking_id = Column(String(26), ForeignKey("bookings.id"), nullable=False, index=True)
    author_id = Column(String(26), ForeignKey("users.id"), nullable=False)
    author_party = Column(String(20), nullable=False)
    rating = Column(Integer, nullable=False)
    comment = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    booking = relationship("Booking", back_populates="reviews")

    __table_args__ = (
        UniqueConstraint("booking_id", "author_party", name="uq_booking_review_party"),
        CheckConstraint("rating >= 1 AND rating <= 5", name="ck_booking_reviews_rating"),
    )
