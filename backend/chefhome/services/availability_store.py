# backend/chefhome/services/availability_store.py
"""
Availability Store for the Chef@Home platform.

Two sources feed the capacity checks:

* a chef-home location carries its own template (weekdays, daily time
  slots, lead time, advance limit, blackout dates);
* a chef carries weekly windows and blackout dates used for service
  bookings at the client's address.

Both are normalized into an ``AvailabilityProfile`` so the capacity
resolver has one shape to reason about. Chefs manage their own weekly
windows and blackouts through this service.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, time, timedelta
import logging
from typing import Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.constants import DAYS_OF_WEEK
from ..core.exceptions import (
    ConflictException,
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from ..core.timeutils import DailySlot, TimeWindow, parse_hhmm
from ..models.chef import Chef, ChefBlackoutDate
from ..models.chef_home import ChefHomeLocation
from ..principal import Actor
from ..repositories.factory import RepositoryFactory
from .base import BaseService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AvailabilityProfile:
    """
    Normalized availability of a chef or a chef-home location.

    ``slots_by_weekday`` maps ``date.weekday()`` to the daily slots open on
    that weekday. When ``unrestricted`` is set every time of day is open.
    """

    days_of_week: FrozenSet[int]
    slots_by_weekday: Dict[int, Tuple[DailySlot, ...]]
    lead_time_days: int
    advance_booking_limit_days: int
    blackout_dates: FrozenSet[date] = field(default_factory=frozenset)
    enforce_days_of_week: bool = False
    unrestricted: bool = False

    def earliest_bookable_date(self, today: date) -> date:
        return today + timedelta(days=self.lead_time_days)

    def latest_bookable_date(self, today: date) -> date:
        return today + timedelta(days=self.advance_booking_limit_days)

    def is_blackout(self, day: date) -> bool:
        return day in self.blackout_dates

    def is_open_on(self, day: date) -> bool:
        return day.weekday() in self.days_of_week

    def slots_for(self, day: date) -> List[TimeWindow]:
        if self.unrestricted:
            return [TimeWindow(day=day, start=time(0, 0), end=time(23, 59, 59, 999999))]
        return [slot.on(day) for slot in self.slots_by_weekday.get(day.weekday(), ())]

    def slot_containing(self, window: TimeWindow) -> Optional[TimeWindow]:
        for slot in self.slots_for(window.day):
            if slot.contains(window):
                return slot
        return None


def weekday_index(name: str) -> int:
    try:
        return DAYS_OF_WEEK.index(name.strip().lower())
    except ValueError as exc:
        raise ValidationException(
            f"Unknown day of week '{name}'", code="VALIDATION_ERROR", details={"day": name}
        ) from exc


def parse_slots(raw_slots: Iterable[Dict[str, str]]) -> List[DailySlot]:
    """Parse and validate ``{"start": "HH:MM", "end": "HH:MM"}`` slots."""
    slots: List[DailySlot] = []
    for raw in raw_slots:
        try:
            slot = DailySlot(start=parse_hhmm(raw["start"]), end=parse_hhmm(raw["end"]))
        except (KeyError, TypeError, ValueError) as exc:
            raise ValidationException(
                f"Invalid time slot {raw!r}: {exc}", code="VALIDATION_ERROR"
            ) from exc
        if not slot.start < slot.end:
            raise ValidationException(
                "Time slot start must be before its end",
                code="VALIDATION_ERROR",
                details=slot.as_dict(),
            )
        slots.append(slot)
    return slots


def profile_for_location(location: ChefHomeLocation) -> AvailabilityProfile:
    days = frozenset(weekday_index(name) for name in location.days_of_week or [])
    slots = tuple(location.slots())
    return AvailabilityProfile(
        days_of_week=days,
        slots_by_weekday={day: slots for day in days},
        lead_time_days=location.lead_time_days,
        advance_booking_limit_days=location.advance_booking_limit_days,
        blackout_dates=frozenset(location.blackout_days()),
        enforce_days_of_week=True,
    )


def profile_for_chef(chef: Chef) -> AvailabilityProfile:
    """
    Profile for the service-booking path.

    A chef who never declared weekly windows is bookable at any time of
    day; lead time, advance limit and blackouts still apply.
    """
    slots_by_weekday: Dict[int, List[DailySlot]] = {}
    for window in chef.availability_windows:
        slots_by_weekday.setdefault(window.day_of_week, []).append(
            DailySlot(start=window.start_time, end=window.end_time)
        )
    lead = chef.lead_time_days
    limit = chef.advance_booking_limit_days
    return AvailabilityProfile(
        days_of_week=frozenset(slots_by_weekday) if slots_by_weekday else frozenset(range(7)),
        slots_by_weekday={day: tuple(slots) for day, slots in slots_by_weekday.items()},
        lead_time_days=settings.default_lead_time_days if lead is None else lead,
        advance_booking_limit_days=(
            settings.default_advance_booking_limit_days if limit is None else limit
        ),
        blackout_dates=frozenset(b.date for b in chef.blackout_dates),
        enforce_days_of_week=False,
        unrestricted=not slots_by_weekday,
    )


@dataclass(frozen=True)
class WeeklyWindowInput:
    day_of_week: str
    start: str
    end: str


class AvailabilityStore(BaseService):
    """Chef-owned availability data and profile construction."""

    def __init__(self, db: Session):
        super().__init__(db)
        self.chef_repository = RepositoryFactory.create_chef_repository(db)

    profile_for_location = staticmethod(profile_for_location)
    profile_for_chef = staticmethod(profile_for_chef)

    def _owned_chef(self, actor: Actor, chef_id: str) -> Chef:
        chef = self.chef_repository.get_by_id(chef_id)
        if not chef:
            raise NotFoundException("Chef not found", code="NOT_FOUND")
        if not (actor.is_admin or (actor.is_chef and chef.user_id == actor.user_id)):
            raise ForbiddenException("Only the chef can manage this availability")
        return chef

    def get_chef_for_user(self, user_id: str) -> Chef:
        chef = self.chef_repository.get_by_user_id(user_id)
        if not chef:
            raise NotFoundException("Chef profile not found", code="NOT_FOUND")
        return chef

    def get_availability(self, chef_id: str) -> Chef:
        chef = self.chef_repository.get_by_id(chef_id)
        if not chef:
            raise NotFoundException("Chef not found", code="NOT_FOUND")
        return chef

    @BaseService.measure_operation("replace_weekly_windows")
    def replace_weekly_windows(
        self, actor: Actor, chef_id: str, windows: Sequence[WeeklyWindowInput]
    ) -> Chef:
        parsed: List[Tuple[int, time, time]] = []
        for window in windows:
            day = weekday_index(window.day_of_week)
            (slot,) = parse_slots([{"start": window.start, "end": window.end}])
            parsed.append((day, slot.start, slot.end))

        by_day: Dict[int, List[Tuple[time, time]]] = {}
        for day, start, end in sorted(parsed):
            previous = by_day.setdefault(day, [])
            if previous and start < previous[-1][1]:
                raise ValidationException(
                    f"Overlapping availability windows on {DAYS_OF_WEEK[day]}",
                    code="VALIDATION_ERROR",
                )
            previous.append((start, end))

        with self.transaction():
            chef = self._owned_chef(actor, chef_id)
            self.chef_repository.replace_windows(chef, parsed)
        self.db.refresh(chef)
        self.log_operation("replace_weekly_windows", chef_id=chef_id, windows=len(parsed))
        return chef

    @BaseService.measure_operation("add_blackout_date")
    def add_blackout_date(
        self, actor: Actor, chef_id: str, day: date, reason: Optional[str] = None
    ) -> ChefBlackoutDate:
        with self.transaction():
            chef = self._owned_chef(actor, chef_id)
            if self.chef_repository.get_blackout(chef.id, day):
                raise ConflictException(
                    f"{day.isoformat()} is already blocked", code="BLACKOUT_EXISTS"
                )
            blackout = self.chef_repository.add_blackout(chef.id, day, reason)
        self.db.expire(chef, ["blackout_dates"])
        return blackout

    @BaseService.measure_operation("remove_blackout_date")
    def remove_blackout_date(self, actor: Actor, chef_id: str, day: date) -> None:
        with self.transaction():
            chef = self._owned_chef(actor, chef_id)
            blackout = self.chef_repository.get_blackout(chef.id, day)
            if not blackout:
                raise NotFoundException("Blackout date not found", code="NOT_FOUND")
            self.chef_repository.remove_blackout(blackout)
        self.db.expire(chef, ["blackout_dates"])

    @BaseService.measure_operation("update_booking_limits")
    def update_booking_limits(
        self,
        actor: Actor,
        chef_id: str,
        *,
        lead_time_days: Optional[int] = None,
        advance_booking_limit_days: Optional[int] = None,
        max_guests: Optional[int] = None,
    ) -> Chef:
        for name, value in (
            ("lead_time_days", lead_time_days),
            ("advance_booking_limit_days", advance_booking_limit_days),
        ):
            if value is not None and value < 0:
                raise ValidationException(f"{name} cannot be negative", code="VALIDATION_ERROR")
        if max_guests is not None and max_guests < 1:
            raise ValidationException("max_guests must be at least 1", code="VALIDATION_ERROR")

        with self.transaction():
            chef = self._owned_chef(actor, chef_id)
            if lead_time_days is not None:
                chef.lead_time_days = lead_time_days
            if advance_booking_limit_days is not None:
                chef.advance_booking_limit_days = advance_booking_limit_days
            if max_guests is not None:
                chef.max_guests = max_guests
            self.chef_repository.flush()
        return chef
