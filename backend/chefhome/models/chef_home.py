# backend/chefhome/models/chef_home.py
"""
Chef-home hosting: locations a chef opens to guests and the appointments
clients request against them.

Appointments share the chef's schedule with service bookings; the
conflict checker reads both tables in one query.
"""

from datetime import date
from enum import Enum
from typing import Any, List

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
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..core.timeutils import DailySlot, TimeWindow
from ..database import Base


class AppointmentStatus(str, Enum):
    """Chef-home appointment lifecycle statuses."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    CANCELLED = "cancelled"


APPOINTMENT_ACTIVE_STATUSES = (AppointmentStatus.PENDING.value, AppointmentStatus.ACCEPTED.value)


class ChefHomeLocation(Base):
    """A chef's own venue with capacity, pricing and an availability template."""

    __tablename__ = "chef_home_locations"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    chef_id = Column(String(26), ForeignKey("chefs.id"), nullable=False, index=True)
    title = Column(String(100), nullable=False)
    description = Column(Text, nullable=False)

    street = Column(String(200), nullable=False)
    city = Column(String(100), nullable=False)
    zip_code = Column(String(20), nullable=False)
    country = Column(String(60), nullable=False, default="France")
    access_instructions = Column(Text, nullable=True)

    min_guests = Column(Integer, nullable=False, default=1)
    max_guests = Column(Integer, nullable=False)

    base_price = Column(Numeric(10, 2), nullable=False)
    price_per_guest = Column(Numeric(10, 2), nullable=False, default=0)
    currency = Column(String(3), nullable=False, default="EUR")

    # Weekday names ("monday".."sunday") and [{"start": "HH:MM", "end": "HH:MM"}]
    days_of_week = Column(JSON, nullable=False, default=list)
    time_slots = Column(JSON, nullable=False, default=list)
    lead_time_days = Column(Integer, nullable=False, default=3)
    advance_booking_limit_days = Column(Integer, nullable=False, default=90)
    blackout_dates = Column(JSON, nullable=False, default=list)  # ISO dates

    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    chef = relationship("Chef", back_populates="home_locations")
    appointments = relationship("ChefHomeAppointment", back_populates="location")

    __table_args__ = (
        CheckConstraint("min_guests >= 1", name="ck_home_locations_min_guests"),
        CheckConstraint("max_guests >= min_guests", name="ck_home_locations_guest_bounds"),
        CheckConstraint("base_price >= 0", name="ck_home_locations_base_price"),
        CheckConstraint("price_per_guest >= 0", name="ck_home_locations_price_per_guest"),
        CheckConstraint("lead_time_days >= 0", name="ck_home_locations_lead_time"),
    )

    def slots(self) -> List[DailySlot]:
        return [DailySlot.from_strings(s["start"], s["end"]) for s in self.time_slots or []]

    def blackout_days(self) -> List[date]:
        return [date.fromisoformat(value) for value in self.blackout_dates or []]

    def deactivate(self) -> None:
        self.is_active = False

    def __repr__(self) -> str:
        return f"<ChefHomeLocation {self.id}: {self.title} chef={self.chef_id}>"


class ChefHomeAppointment(Base):
    """A client's visit request at a chef-home location."""

    __tablename__ = "chef_home_appointments"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    location_id = Column(String(26), ForeignKey("chef_home_locations.id"), nullable=False)
    chef_id = Column(String(26), ForeignKey("chefs.id"), nullable=False)
    client_id = Column(String(26), ForeignKey("users.id"), nullable=False, index=True)

    requested_date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    guests = Column(Integer, nullable=False)
    message = Column(Text, nullable=True)
    estimated_price = Column(Numeric(10, 2), nullable=False, default=0)

    status = Column(String(20), nullable=False, default=AppointmentStatus.PENDING.value)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    location = relationship("ChefHomeLocation", back_populates="appointments")
    chef = relationship("Chef")
    client = relationship("User")

    __table_args__ = (
        Index("ix_chef_home_appointments_chef_date", "chef_id", "requested_date"),
        CheckConstraint("start_time < end_time", name="ck_appointments_time_order"),
        CheckConstraint("guests >= 1", name="ck_appointments_guests_positive"),
    )

    @property
    def window(self) -> TimeWindow:
        return TimeWindow(day=self.requested_date, start=self.start_time, end=self.end_time)

    def is_active(self) -> bool:
        return self.status in APPOINTMENT_ACTIVE_STATUSES

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "location_id": self.location_id,
            "chef_id": self.chef_id,
            "client_id": self.client_id,
            "requested_date": self.requested_date.isoformat(),
            "start_time": self.start_time.strftime("%H:%M"),
            "end_time": self.end_time.strftime("%H:%M"),
            "guests": self.guests,
            "status": self.status,
        }

    def __repr__(self) -> str:
        return f"<ChefHomeAppointment {self.id} {self.requested_date} {self.status}>"
