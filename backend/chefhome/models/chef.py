# backend/chefhome/models/chef.py
"""
Chef profile, menus and the chef-level availability store.

``schedule_version`` is the optimistic-concurrency token for a chef's
schedule: every reservation write bumps it, so two writers that read
the same version cannot both commit.
"""

from enum import Enum

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
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

from ..database import Base


class ServiceType(str, Enum):
    HOME_DINING = "home-dining"
    PRIVATE_EVENTS = "private-events"
    COOKING_CLASSES = "cooking-classes"
    CATERING = "catering"


class MenuType(str, Enum):
    """How a menu is priced."""

    FORFAIT = "forfait"  # flat rate
    HORAIRE = "horaire"  # per hour


class Chef(Base):
    """Chef profile owned by exactly one user account."""

    __tablename__ = "chefs"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    user_id = Column(String(26), ForeignKey("users.id"), nullable=False, unique=True)
    display_name = Column(String(120), nullable=False)
    specialty = Column(String(120), nullable=True)
    hourly_rate = Column(Numeric(10, 2), nullable=False)
    service_types = Column(JSON, nullable=False, default=list)
    cuisine_types = Column(JSON, nullable=False, default=list)

    # Availability limits for the service-booking path (None -> settings defaults)
    lead_time_days = Column(Integer, nullable=True)
    advance_booking_limit_days = Column(Integer, nullable=True)
    max_guests = Column(Integer, nullable=True)

    rating_average = Column(Numeric(3, 1), nullable=False, default=0)
    rating_count = Column(Integer, nullable=False, default=0)

    is_active = Column(Boolean, nullable=False, default=True)
    schedule_version = Column(Integer, nullable=False, default=1)
    schedule_touched_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    user = relationship("User")
    menus = relationship("Menu", back_populates="chef", order_by="Menu.created_at")
    availability_windows = relationship(
        "ChefAvailabilityWindow",
        back_populates="chef",
        cascade="all, delete-orphan",
        order_by="[ChefAvailabilityWindow.day_of_week, ChefAvailabilityWindow.start_time]",
    )
    blackout_dates = relationship(
        "ChefBlackoutDate", back_populates="chef", cascade="all, delete-orphan"
    )
    home_locations = relationship("ChefHomeLocation", back_populates="chef")

    __mapper_args__ = {"version_id_col": schedule_version}

    __table_args__ = (
        CheckConstraint("hourly_rate >= 0", name="ck_chefs_hourly_rate_non_negative"),
    )

    def offers(self, service_type: str) -> bool:
        return not self.service_types or service_type in self.service_types

    def __repr__(self) -> str:
        return f"<Chef {self.id}: {self.display_name}>"


class Menu(Base):
    """A menu offered by a chef; referenced (not owned) by bookings."""

    __tablename__ = "menus"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    chef_id = Column(String(26), ForeignKey("chefs.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    type = Column(String(20), nullable=False, default=MenuType.FORFAIT.value)
    price = Column(Numeric(10, 2), nullable=False)
    min_guests = Column(Integer, nullable=False, default=1)
    max_guests = Column(Integer, nullable=False)
    courses = Column(JSON, nullable=False, default=list)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    chef = relationship("Chef", back_populates="menus")

    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_menus_price_non_negative"),
        CheckConstraint("min_guests >= 1", name="ck_menus_min_guests_positive"),
        CheckConstraint("max_guests >= min_guests", name="ck_menus_guest_bounds"),
    )


class ChefAvailabilityWindow(Base):
    """Recurring weekly window; ``day_of_week`` follows ``date.weekday()`` (0 = Monday)."""

    __tablename__ = "chef_availability_windows"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    chef_id = Column(String(26), ForeignKey("chefs.id"), nullable=False, index=True)
    day_of_week = Column(Integer, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)

    chef = relationship("Chef", back_populates="availability_windows")

    __table_args__ = (
        CheckConstraint("day_of_week BETWEEN 0 AND 6", name="ck_availability_day_of_week"),
        CheckConstraint("start_time < end_time", name="ck_availability_time_order"),
    )


class ChefBlackoutDate(Base):
    __tablename__ = "chef_blackout_dates"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    chef_id = Column(String(26), ForeignKey("chefs.id"), nullable=False, index=True)
    date = Column(Date, nullable=False)
    reason = Column(String(255), nullable=True)

    chef = relationship("Chef", back_populates="blackout_dates")

    __table_args__ = (UniqueConstraint("chef_id", "date", name="uq_chef_blackout_date"),)
