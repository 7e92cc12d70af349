# backend/chefhome/services/capacity_resolver.py
"""
Capacity Resolver for the Chef@Home platform.

Decides whether a requested window and guest count fit a chef's (or a
chef-home location's) declared capacity and availability. It is a pure
function of its inputs plus "today": no reservation is read here, the
overlap check belongs to the conflict checker.

Checks run in a fixed order and the first failure wins:

1. time range (``INVALID_TIME_RANGE``)
2. guest bounds (``OUT_OF_CAPACITY``)
3. lead time and advance limit (``LEAD_TIME_VIOLATION``)
4. blackout date (``BLACKOUT_DATE``)
5. weekday, home path only (``OUTSIDE_AVAILABILITY_WINDOW``)
6. slot containment (``OUTSIDE_AVAILABILITY_WINDOW``)
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
import logging
from typing import Optional, Tuple

from ..core.config import settings
from ..core.constants import DAYS_OF_WEEK
from ..core.exceptions import (
    BlackoutDateException,
    InvalidTimeRangeException,
    LeadTimeViolationException,
    OutOfCapacityException,
    OutsideAvailabilityWindowException,
    ReservationRejected,
)
from ..core.timeutils import TimeWindow, TodayProvider, format_hhmm, resolve_today
from ..models.chef import Chef, Menu
from ..models.chef_home import ChefHomeLocation
from .availability_store import AvailabilityProfile, profile_for_chef, profile_for_location

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CapacityCheckResult:
    ok: bool
    rejection: Optional[ReservationRejected] = None

    @classmethod
    def accepted(cls) -> "CapacityCheckResult":
        return cls(ok=True)

    @classmethod
    def rejected(cls, rejection: ReservationRejected) -> "CapacityCheckResult":
        return cls(ok=False, rejection=rejection)


def guest_bounds(
    chef: Chef, location: Optional[ChefHomeLocation] = None, menu: Optional[Menu] = None
) -> Tuple[int, int]:
    """Inclusive ``(min, max)`` guest bounds for the reservation path in use."""
    if location is not None:
        return location.min_guests, location.max_guests
    if menu is not None:
        return menu.min_guests, menu.max_guests
    return 1, chef.max_guests or settings.default_max_guests


class CapacityResolver:
    """Validates a request against capacity and availability rules."""

    def __init__(self, today_provider: Optional[TodayProvider] = None):
        self.today_provider = today_provider

    def validate_request(
        self,
        *,
        chef: Chef,
        window: TimeWindow,
        guests: int,
        location: Optional[ChefHomeLocation] = None,
        menu: Optional[Menu] = None,
        today: Optional[date] = None,
    ) -> CapacityCheckResult:
        today = today or resolve_today(self.today_provider)

        if not window.is_valid:
            return CapacityCheckResult.rejected(
                InvalidTimeRangeException(
                    "Start time must be before end time",
                    details={"start": format_hhmm(window.start), "end": format_hhmm(window.end)},
                )
            )

        min_guests, max_guests = guest_bounds(chef, location, menu)
        if not min_guests <= guests <= max_guests:
            return CapacityCheckResult.rejected(OutOfCapacityException(guests, min_guests, max_guests))

        profile: AvailabilityProfile = (
            profile_for_location(location) if location is not None else profile_for_chef(chef)
        )

        earliest = profile.earliest_bookable_date(today)
        latest = profile.latest_bookable_date(today)
        if window.day < earliest:
            return CapacityCheckResult.rejected(
                LeadTimeViolationException(window.day, earliest, latest, limit="lead_time")
            )
        if window.day > latest:
            return CapacityCheckResult.rejected(
                LeadTimeViolationException(window.day, earliest, latest, limit="advance_limit")
            )

        if profile.is_blackout(window.day):
            return CapacityCheckResult.rejected(BlackoutDateException(window.day))

        if profile.enforce_days_of_week and not profile.is_open_on(window.day):
            return CapacityCheckResult.rejected(
                OutsideAvailabilityWindowException(
                    f"Not open on {DAYS_OF_WEEK[window.day.weekday()]}",
                    details={
                        "date": window.day.isoformat(),
                        "open_days": [DAYS_OF_WEEK[d] for d in sorted(profile.days_of_week)],
                    },
                )
            )

        if profile.slot_containing(window) is None:
            return CapacityCheckResult.rejected(
                OutsideAvailabilityWindowException(
                    f"{window.label()} is not within an available time slot",
                    details={
                        "date": window.day.isoformat(),
                        "requested": window.label(),
                        "slots": [slot.label() for slot in profile.slots_for(window.day)],
                    },
                )
            )

        return CapacityCheckResult.accepted()

    def require_valid(self, **kwargs) -> None:
        """
        Same as ``validate_request`` but raises the rejection.

        Raises:
            ReservationRejected: The first failed check
        """
        result = self.validate_request(**kwargs)
        if result.rejection is not None:
            logger.info(
                "Reservation request rejected: %s", result.rejection.code,
                extra={"code": result.rejection.code},
            )
            raise result.rejection
