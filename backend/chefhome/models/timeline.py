"""Append-only status history shared by bookings and chef-home appointments."""

from sqlalchemy import Column, DateTime, Index, String, Text
from sqlalchemy.sql import func
import ulid

from ..database import Base


class ReservationTimelineEntry(Base):
    __tablename__ = "reservation_timeline"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    reservation_kind = Column(String(30), nullable=False)
    reservation_id = Column(String(26), nullable=False)
    from_status = Column(String(20), nullable=True)  # None for creation
    to_status = Column(String(20), nullable=False)
    event = Column(String(30), nullable=False)
    actor_id = Column(String(26), nullable=True)
    actor_role = Column(String(20), nullable=False)
    note = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("ix_reservation_timeline_reservation", "reservation_kind", "reservation_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<ReservationTimelineEntry {self.reservation_kind}:{self.reservation_id} "
            f"{self.from_status}->{self.to_status} ({self.event})>"
        )
