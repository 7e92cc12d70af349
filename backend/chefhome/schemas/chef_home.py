# backend/chefhome/schemas/chef_home.py
"""Chef-home location and appointment schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import Field, model_validator

from ..core.constants import MAX_APPOINTMENT_MESSAGE_LENGTH
from ..services.reservation_state_machine import AppointmentEvent
from ._strict_base import StrictRequestModel
from .base import HHMM, Money, StandardizedModel, TimeOfDay


class TimeSlotSchema(StrictRequestModel):
    start: HHMM
    end: HHMM


class LocationCreate(StrictRequestModel):
    title: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1)
    street: str = Field(..., min_length=1, max_length=200)
    city: str = Field(..., min_length=1, max_length=100)
    zip_code: str = Field(..., min_length=1, max_length=20)
    country: str = Field("France", max_length=60)
    access_instructions: Optional[str] = None

    min_guests: int = Field(1, ge=1)
    max_guests: int = Field(..., ge=1)
    base_price: Decimal = Field(..., ge=0)
    price_per_guest: Decimal = Field(Decimal("0"), ge=0)
    currency: str = Field("EUR", min_length=3, max_length=3)

    days_of_week: List[str] = Field(default_factory=list)
    time_slots: List[TimeSlotSchema] = Field(default_factory=list)
    lead_time_days: int = Field(3, ge=0)
    advance_booking_limit_days: int = Field(90, ge=0)
    blackout_dates: List[date] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_guest_bounds(self) -> "LocationCreate":
        if self.min_guests > self.max_guests:
            raise ValueError("min_guests cannot exceed max_guests")
        return self

    def to_values(self) -> Dict[str, Any]:
        values = self.model_dump()
        values["time_slots"] = [slot.model_dump() for slot in self.time_slots]
        return values


class LocationUpdate(StrictRequestModel):
    title: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    street: Optional[str] = Field(None, max_length=200)
    city: Optional[str] = Field(None, max_length=100)
    zip_code: Optional[str] = Field(None, max_length=20)
    country: Optional[str] = Field(None, max_length=60)
    access_instructions: Optional[str] = None
    min_guests: Optional[int] = Field(None, ge=1)
    max_guests: Optional[int] = Field(None, ge=1)
    base_price: Optional[Decimal] = Field(None, ge=0)
    price_per_guest: Optional[Decimal] = Field(None, ge=0)
    days_of_week: Optional[List[str]] = None
    time_slots: Optional[List[TimeSlotSchema]] = None
    lead_time_days: Optional[int] = Field(None, ge=0)
    advance_booking_limit_days: Optional[int] = Field(None, ge=0)
    blackout_dates: Optional[List[date]] = None

    def to_changes(self) -> Dict[str, Any]:
        changes = self.model_dump(exclude_unset=True)
        if self.time_slots is not None:
            changes["time_slots"] = [slot.model_dump() for slot in self.time_slots]
        return changes


class LocationResponse(StandardizedModel):
    id: str
    chef_id: str
    title: str
    description: str
    street: str
    city: str
    zip_code: str
    country: str
    access_instructions: Optional[str] = None
    min_guests: int
    max_guests: int
    base_price: Money
    price_per_guest: Money
    currency: str
    days_of_week: List[str]
    time_slots: List[Dict[str, str]]
    lead_time_days: int
    advance_booking_limit_days: int
    blackout_dates: List[str]
    is_active: bool


class AppointmentCreate(StrictRequestModel):
    """Body of ``POST /chef-home/locations/{id}/appointments``."""

    requested_date: date
    start_time: HHMM
    end_time: HHMM
    guests: int = Field(..., ge=1)
    message: Optional[str] = Field(None, max_length=MAX_APPOINTMENT_MESSAGE_LENGTH)


class AppointmentStatusUpdate(StrictRequestModel):
    event: AppointmentEvent


class AppointmentResponse(StandardizedModel):
    id: str
    location_id: str
    chef_id: str
    client_id: str
    requested_date: date
    start_time: TimeOfDay
    end_time: TimeOfDay
    guests: int
    message: Optional[str] = None
    estimated_price: Money
    status: str
    created_at: Optional[datetime] = None
