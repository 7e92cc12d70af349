"""
Time helpers for the reservation engine.

Windows are half-open intervals ``[start, end)`` on a single calendar day.
"today" is always evaluated in the marketplace timezone.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
import re
from typing import Callable, Optional

import pytz

from .config import settings

_HHMM = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")

TodayProvider = Callable[[], date]


def parse_hhmm(value: str) -> time:
    """Parse a strict ``HH:MM`` 24-hour value."""
    if not isinstance(value, str):
        raise ValueError(f"Time must be a string in HH:MM format, got {type(value).__name__}")
    match = _HHMM.match(value.strip())
    if not match:
        raise ValueError(f"Invalid time '{value}', expected HH:MM (00:00-23:59)")
    return time(int(match.group(1)), int(match.group(2)))


def format_hhmm(value: time) -> str:
    return value.strftime("%H:%M")


def to_minutes(value: time) -> int:
    return value.hour * 60 + value.minute


def marketplace_today() -> date:
    """Today's date in the marketplace timezone."""
    tz = pytz.timezone(settings.marketplace_timezone)
    return datetime.now(tz).date()


@dataclass(frozen=True)
class TimeWindow:
    """A half-open ``[start, end)`` window on one day."""

    day: date
    start: time
    end: time

    @classmethod
    def from_strings(cls, day: date, start: str, end: str) -> "TimeWindow":
        return cls(day=day, start=parse_hhmm(start), end=parse_hhmm(end))

    @classmethod
    def from_duration(cls, day: date, start: str | time, hours: int) -> "TimeWindow":
        """
        Build a window from a start time and a duration in hours.

        Raises:
            ValueError: If the window would run past midnight
        """
        start_time = parse_hhmm(start) if isinstance(start, str) else start
        end_dt = datetime.combine(day, start_time) + timedelta(hours=hours)
        if end_dt.date() != day or end_dt.time() == time(0, 0):
            raise ValueError("Reservations cannot run past midnight")
        return cls(day=day, start=start_time, end=end_dt.time())

    @property
    def is_valid(self) -> bool:
        return self.start < self.end

    @property
    def duration_minutes(self) -> int:
        return to_minutes(self.end) - to_minutes(self.start)

    def overlaps(self, other: "TimeWindow") -> bool:
        if self.day != other.day:
            return False
        return self.start < other.end and other.start < self.end

    def contains(self, other: "TimeWindow") -> bool:
        return self.day == other.day and self.start <= other.start and other.end <= self.end

    def label(self) -> str:
        return f"{format_hhmm(self.start)}-{format_hhmm(self.end)}"


@dataclass(frozen=True)
class DailySlot:
    """A recurring ``[start, end)`` slot without a date attached."""

    start: time
    end: time

    @classmethod
    def from_strings(cls, start: str, end: str) -> "DailySlot":
        return cls(start=parse_hhmm(start), end=parse_hhmm(end))

    def on(self, day: date) -> TimeWindow:
        return TimeWindow(day=day, start=self.start, end=self.end)

    def as_dict(self) -> dict[str, str]:
        return {"start": format_hhmm(self.start), "end": format_hhmm(self.end)}


def resolve_today(provider: Optional[TodayProvider] = None) -> date:
    return provider() if provider else marketplace_today()
