# backend/chefhome/schemas/reservation.py
"""
Reservation request payloads.

Each reservation kind has its own strict request model; the two are
combined into a discriminated union on ``kind`` so a payload is fully
validated before it reaches the capacity resolver.
"""

from datetime import date
from typing import Annotated, List, Literal, Optional, Union

from pydantic import Field, TypeAdapter

from ..core.constants import (
    MAX_APPOINTMENT_MESSAGE_LENGTH,
    MAX_BOOKING_DURATION_HOURS,
    MIN_BOOKING_DURATION_HOURS,
)
from ..models.booking import EventType
from ..models.chef import ServiceType
from ._strict_base import StrictRequestModel
from .base import HHMM


class EventLocation(StrictRequestModel):
    address: str = Field(..., min_length=1, max_length=255)
    city: str = Field(..., min_length=1, max_length=100)
    zip_code: str = Field(..., min_length=1, max_length=20)
    country: str = Field(default="France", max_length=60)


class ServiceBookingRequest(StrictRequestModel):
    """A chef cooking at the client's address."""

    kind: Literal["service_booking"] = "service_booking"
    chef_id: str = Field(..., min_length=1)
    menu_id: Optional[str] = None
    service_type: ServiceType
    event_date: date
    start_time: HHMM = Field(..., description="Start time, HH:MM 24-hour")
    duration_hours: int = Field(
        ..., ge=MIN_BOOKING_DURATION_HOURS, le=MAX_BOOKING_DURATION_HOURS
    )
    guests: int = Field(..., ge=1)
    event_type: Optional[EventType] = None
    location: EventLocation
    dietary_restrictions: List[str] = Field(default_factory=list)
    allergies: List[str] = Field(default_factory=list)
    special_requests: Optional[str] = Field(default=None, max_length=1000)
    company_name: Optional[str] = Field(default=None, max_length=200)


class ChefHomeAppointmentRequest(StrictRequestModel):
    """A visit at one of the chef's own locations."""

    kind: Literal["chef_home_appointment"] = "chef_home_appointment"
    location_id: str = Field(..., min_length=1)
    requested_date: date
    start_time: HHMM
    end_time: HHMM
    guests: int = Field(..., ge=1)
    message: Optional[str] = Field(default=None, max_length=MAX_APPOINTMENT_MESSAGE_LENGTH)


ReservationRequest = Annotated[
    Union[ServiceBookingRequest, ChefHomeAppointmentRequest],
    Field(discriminator="kind"),
]

reservation_request_adapter: TypeAdapter[ReservationRequest] = TypeAdapter(ReservationRequest)


def parse_reservation_request(payload: object) -> Union[ServiceBookingRequest, ChefHomeAppointmentRequest]:
    """Validate an untyped payload into the matching request model."""
    return reservation_request_adapter.validate_python(payload)
