# backend/chefhome/repositories/conflict_checker_repository.py
"""
ConflictChecker Repository for the Chef@Home platform.

A chef's schedule is made of two kinds of reservations: service bookings
and chef-home appointments. Both are read here with a single
``UNION ALL`` keyed by ``chef_id + date`` so that the conflict check and
the chef's day agenda always see one consistent picture.
"""

from datetime import date
import logging
from typing import Any, List, Optional, Sequence

from sqlalchemy import literal, select, union_all
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.enums import ReservationKind
from ..core.exceptions import RepositoryException
from ..models.booking import BOOKING_ACTIVE_STATUSES, Booking
from ..models.chef_home import APPOINTMENT_ACTIVE_STATUSES, ChefHomeAppointment
from .base_repository import RETRYABLE_ERRORS

logger = logging.getLogger(__name__)


class ConflictCheckerRepository:
    """Read-only queries over every non-terminal reservation of a chef."""

    def __init__(self, db: Session):
        self.db = db
        self.logger = logging.getLogger(__name__)

    def get_active_reservations(
        self,
        chef_id: str,
        check_date: date,
        exclude_id: Optional[str] = None,
    ) -> Sequence[Any]:
        """
        Non-terminal reservations of both kinds for a chef on one date.

        Rows expose ``kind``, ``id``, ``start_time``, ``end_time``, ``status``
        and are ordered by start time.
        """
        bookings = select(
            literal(ReservationKind.SERVICE_BOOKING.value).label("kind"),
            Booking.id.label("id"),
            Booking.start_time.label("start_time"),
            Booking.end_time.label("end_time"),
            Booking.status.label("status"),
        ).where(
            Booking.chef_id == chef_id,
            Booking.event_date == check_date,
            Booking.status.in_(BOOKING_ACTIVE_STATUSES),
        )
        appointments = select(
            literal(ReservationKind.CHEF_HOME_APPOINTMENT.value).label("kind"),
            ChefHomeAppointment.id.label("id"),
            ChefHomeAppointment.start_time.label("start_time"),
            ChefHomeAppointment.end_time.label("end_time"),
            ChefHomeAppointment.status.label("status"),
        ).where(
            ChefHomeAppointment.chef_id == chef_id,
            ChefHomeAppointment.requested_date == check_date,
            ChefHomeAppointment.status.in_(APPOINTMENT_ACTIVE_STATUSES),
        )
        if exclude_id:
            bookings = bookings.where(Booking.id != exclude_id)
            appointments = appointments.where(ChefHomeAppointment.id != exclude_id)

        combined = union_all(bookings, appointments).subquery()
        stmt = select(combined).order_by(combined.c.start_time, combined.c.id)
        try:
            rows: List[Any] = list(self.db.execute(stmt).all())
        except RETRYABLE_ERRORS:
            raise
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting reservations for conflict check: {str(e)}")
            raise RepositoryException(f"Failed to get conflict reservations: {str(e)}") from e
        return rows
