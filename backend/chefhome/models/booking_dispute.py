"""Booking dispute satellite table."""

from __future__ import annotations

from enum import Enum

from sqlalchemy import Column, DateTime, ForeignKey, Numeric, String, Text
from sqlalchemy.orm import relationship, validates
import ulid

from ..database import Base


class DisputeOutcome(str, Enum):
    REFUNDED = "refunded"  # booking cancelled with a refund
    RELEASED = "released"  # resolved in the chef's favour, booking completed


class BookingDispute(Base):
    """Dispute state for a single booking."""

    __tablename__ = "booking_disputes"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    booking_id = Column(
        String(26),
        ForeignKey("bookings.id"),
        nullable=False,
        unique=True,
        index=True,
    )

    raised_by_id = Column(String(26), ForeignKey("users.id"), nullable=False)
    raised_by_party = Column(String(20), nullable=False)
    reason = Column(Text, nullable=True)
    raised_at = Column(DateTime(timezone=True), nullable=False)

    resolution_note = Column(Text, nullable=True)
    refund_amount = Column(Numeric(10, 2), nullable=True)
    outcome = Column(String(20), nullable=True)
    resolved_by_id = Column(String(26), ForeignKey("users.id"), nullable=True)
    resolved_at = Column(DateTime(timezone=True), nullable=True)

    booking = relationship("Booking", back_populates="dispute")

    @validates("resolution_note")
    def _validate_resolution_note(self, key: str, value: str | None) -> str | None:
        # Audit field: written once by the resolver, never rewritten.
        if self.resolution_note is not None and value != self.resolution_note:
            raise ValueError("Dispute resolution note is immutable once written")
        return value

    def __repr__(self) -> str:
        return f"<BookingDispute booking={self.booking_id} outcome={self.outcome}>"
