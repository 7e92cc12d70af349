"""
Payment ledger models.

``payment_intents`` tracks what was asked of the payment collaborator;
``payment_events`` is the append-only ledger and ``refund_attempts`` holds
refunds in flight. Every captured or refunded amount reflected on a
booking has exactly one matching event.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional

import ulid
from sqlalchemy import JSON, DateTime, ForeignKey, Numeric, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..database import Base

if TYPE_CHECKING:
    from .booking import Booking


class PaymentPurpose(str, Enum):
    DEPOSIT = "deposit"
    BALANCE = "balance"
    FULL = "full"


class IntentStatus(str, Enum):
    REQUIRES_CONFIRMATION = "requires_confirmation"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class LedgerEventType(str, Enum):
    INTENT_CREATED = "intent_created"
    CAPTURED = "captured"
    REFUNDED = "refunded"
    CAPTURE_FAILED = "capture_failed"


class RefundAttemptStatus(str, Enum):
    PENDING = "pending"  # requested, provider outcome unknown
    ISSUED = "issued"  # provider confirmed, not yet on the booking
    RECORDED = "recorded"
    FAILED = "failed"  # provider refused, nothing moved


OPEN_REFUND_STATUSES = (RefundAttemptStatus.PENDING.value, RefundAttemptStatus.ISSUED.value)


class PaymentIntent(Base):
    """Payment intent requested for a booking."""

    __tablename__ = "payment_intents"

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    booking_id: Mapped[str] = mapped_column(String(26), ForeignKey("bookings.id"), nullable=False, index=True)
    provider_intent_id: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    purpose: Mapped[str] = mapped_column(String(20), nullable=False)
    status: Mapped[str] = mapped_column(
        String(50), nullable=False, default=IntentStatus.REQUIRES_CONFIRMATION.value
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), onupdate=func.now())

    booking: Mapped["Booking"] = relationship("Booking")

    def __repr__(self) -> str:
        return f"<PaymentIntent(booking_id={self.booking_id}, amount={self.amount}, status={self.status})>"


class PaymentEvent(Base):
    """Append-only ledger entry for a booking's money movements."""

    __tablename__ = "payment_events"

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    booking_id: Mapped[str] = mapped_column(String(26), ForeignKey("bookings.id"), nullable=False, index=True)
    event_type: Mapped[str] = mapped_column(String(50), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    provider_reference: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    data: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self) -> str:
        return f"<PaymentEvent(booking_id={self.booking_id}, type={self.event_type}, amount={self.amount})>"


class RefundAttempt(Base):
    """
    Refund requested from the payment collaborator for a booking.

    Written and committed before the provider is called. While an attempt
    is open (``pending`` or ``issued``) every retry reuses its amount and
    idempotency key, so the provider never pays the same refund twice.
    """

    __tablename__ = "refund_attempts"

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    booking_id: Mapped[str] = mapped_column(String(26), ForeignKey("bookings.id"), nullable=False, index=True)
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    reason: Mapped[str] = mapped_column(String(500), nullable=False)
    idempotency_key: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=RefundAttemptStatus.PENDING.value)
    provider_reference: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), onupdate=func.now())

    @property
    def is_open(self) -> bool:
        return self.status in OPEN_REFUND_STATUSES

    def __repr__(self) -> str:
        return f"<RefundAttempt(booking_id={self.booking_id}, amount={self.amount}, status={self.status})>"
