# backend/chefhome/schemas/availability.py
"""
Chef availability schemas.

Weekly windows are replaced as a whole; blackout dates are added and
removed one at a time. The public schedule view lists the chef's active
reservations for a single day without exposing who booked them.
"""

from datetime import date
from typing import List, Optional

from pydantic import Field

from ..core.constants import DAYS_OF_WEEK
from ._strict_base import StrictRequestModel
from .base import HHMM, StandardizedModel, TimeOfDay


class WeeklyWindow(StrictRequestModel):
    day_of_week: str = Field(..., description=f"One of {', '.join(DAYS_OF_WEEK)}")
    start: HHMM
    end: HHMM


class WeeklyWindowsReplace(StrictRequestModel):
    windows: List[WeeklyWindow] = Field(default_factory=list)


class BlackoutDateCreate(StrictRequestModel):
    date: date
    reason: Optional[str] = Field(None, max_length=255)


class BookingLimitsUpdate(StrictRequestModel):
    lead_time_days: Optional[int] = Field(None, ge=0)
    advance_booking_limit_days: Optional[int] = Field(None, ge=0)
    max_guests: Optional[int] = Field(None, ge=1)


class AvailabilityWindowResponse(StandardizedModel):
    day_of_week: int
    start_time: TimeOfDay
    end_time: TimeOfDay


class BlackoutDateResponse(StandardizedModel):
    id: str
    date: date
    reason: Optional[str] = None


class ChefAvailabilityResponse(StandardizedModel):
    chef_id: str
    lead_time_days: Optional[int] = None
    advance_booking_limit_days: Optional[int] = None
    max_guests: Optional[int] = None
    windows: List[AvailabilityWindowResponse]
    blackout_dates: List[BlackoutDateResponse]


class ScheduleEntry(StandardizedModel):
    kind: str
    start_time: str
    end_time: str
    status: str


class DayScheduleResponse(StandardizedModel):
    chef_id: str
    date: date
    reservations: List[ScheduleEntry]
