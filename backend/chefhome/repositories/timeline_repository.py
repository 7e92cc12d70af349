# backend/chefhome/repositories/timeline_repository.py
"""Append-only reservation history."""

from typing import List, Optional

from sqlalchemy.orm import Session

from ..models.timeline import ReservationTimelineEntry
from .base_repository import BaseRepository


class TimelineRepository(BaseRepository[ReservationTimelineEntry]):
    def __init__(self, db: Session):
        super().__init__(db, ReservationTimelineEntry)

    def record(
        self,
        *,
        kind: str,
        reservation_id: str,
        from_status: Optional[str],
        to_status: str,
        event: str,
        actor_id: Optional[str],
        actor_role: str,
        note: Optional[str] = None,
    ) -> ReservationTimelineEntry:
        return self.create(
            reservation_kind=kind,
            reservation_id=reservation_id,
            from_status=from_status,
            to_status=to_status,
            event=event,
            actor_id=actor_id,
            actor_role=actor_role,
            note=note,
        )

    def for_reservation(self, kind: str, reservation_id: str) -> List[ReservationTimelineEntry]:
        return (
            self.db.query(ReservationTimelineEntry)
            .filter(
                ReservationTimelineEntry.reservation_kind == kind,
                ReservationTimelineEntry.reservation_id == reservation_id,
            )
            .order_by(ReservationTimelineEntry.created_at, ReservationTimelineEntry.id)
            .all()
        )
