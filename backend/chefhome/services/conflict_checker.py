# backend/chefhome/services/conflict_checker.py
"""
Conflict Checker Service for the Chef@Home platform.

Detects overlaps between a requested window and every non-terminal
reservation of a chef, whatever its kind. Overlap is half-open:
``existing.start < requested.end and requested.start < existing.end``,
so a reservation ending at 14:00 never conflicts with one starting at
14:00.

Callers that persist a reservation must run ``find_conflicts`` inside
the chef's atomic unit (see ``ReservationService``).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, time
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ..core.timeutils import TimeWindow, format_hhmm
from ..repositories.factory import RepositoryFactory
from .base import BaseService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReservationRef:
    """Lightweight pointer to a reservation occupying part of a chef's day."""

    kind: str
    id: str
    day: date
    start: time
    end: time
    status: str

    @property
    def window(self) -> TimeWindow:
        return TimeWindow(day=self.day, start=self.start, end=self.end)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "id": self.id,
            "date": self.day.isoformat(),
            "start_time": format_hhmm(self.start),
            "end_time": format_hhmm(self.end),
            "status": self.status,
        }


class ConflictChecker(BaseService):
    def __init__(self, db: Session):
        super().__init__(db)
        self.repository = RepositoryFactory.create_conflict_checker_repository(db)

    def day_schedule(self, chef_id: str, day: date) -> List[ReservationRef]:
        """Non-terminal reservations of the chef on ``day``, ordered by start time."""
        rows = self.repository.get_active_reservations(chef_id, day)
        return [
            ReservationRef(
                kind=row.kind,
                id=row.id,
                day=day,
                start=row.start_time,
                end=row.end_time,
                status=row.status,
            )
            for row in rows
        ]

    def find_conflicts(
        self, chef_id: str, window: TimeWindow, exclude: Optional[str] = None
    ) -> List[ReservationRef]:
        refs = self.repository.get_active_reservations(chef_id, window.day, exclude_id=exclude)
        conflicts = []
        for row in refs:
            ref = ReservationRef(
                kind=row.kind,
                id=row.id,
                day=window.day,
                start=row.start_time,
                end=row.end_time,
                status=row.status,
            )
            if ref.window.overlaps(window):
                conflicts.append(ref)
        if conflicts:
            self.logger.debug(
                f"{len(conflicts)} conflict(s) for chef {chef_id} on {window.day} {window.label()}"
            )
        return conflicts

    def has_conflict(self, chef_id: str, window: TimeWindow, exclude: Optional[str] = None) -> bool:
        return bool(self.find_conflicts(chef_id, window, exclude=exclude))
