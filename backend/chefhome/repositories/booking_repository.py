# backend/chefhome/repositories/booking_repository.py
"""
Booking Repository for the Chef@Home platform.

Queries for service bookings, their reviews and the listings used by
clients, chefs and the background jobs.
"""

from datetime import date
import logging
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session, joinedload

from ..core.exceptions import RepositoryException
from ..models.booking import Booking, BookingReview, BookingStatus
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class BookingRepository(BaseRepository[Booking]):
    def __init__(self, db: Session):
        super().__init__(db, Booking)
        self.logger = logging.getLogger(__name__)

    def _apply_eager_loading(self, query: Query) -> Query:
        return query.options(joinedload(Booking.chef), joinedload(Booking.dispute))

    def _page(self, query: Query, skip: int, limit: int) -> List[Booking]:
        return (
            query.order_by(Booking.event_date.desc(), Booking.start_time.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    def list_for_participant(
        self,
        *,
        client_id: Optional[str] = None,
        chef_id: Optional[str] = None,
        status: Optional[str] = None,
        skip: int = 0,
        limit: int = 10,
    ) -> tuple[List[Booking], int]:
        """
        Bookings where the user is the client and/or the chef.

        Returns:
            (page of bookings, total count)
        """
        try:
            query = self.db.query(Booking)
            filters = []
            if client_id:
                filters.append(Booking.client_id == client_id)
            if chef_id:
                filters.append(Booking.chef_id == chef_id)
            if filters:
                query = query.filter(or_(*filters))
            if status:
                query = query.filter(Booking.status == status)
            total = query.count()
            return self._page(query, skip, limit), total
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing bookings: {str(e)}")
            raise RepositoryException(f"Failed to list bookings: {str(e)}") from e

    def list_disputed(self, skip: int = 0, limit: int = 10) -> tuple[List[Booking], int]:
        try:
            query = (
                self.db.query(Booking)
                .options(joinedload(Booking.dispute))
                .filter(Booking.status == BookingStatus.DISPUTED.value)
            )
            total = query.count()
            items = query.order_by(Booking.disputed_at.desc()).offset(skip).limit(limit).all()
            return items, total
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing disputed bookings: {str(e)}")
            raise RepositoryException(f"Failed to list disputes: {str(e)}") from e

    def get_confirmed_due(self, today: date) -> List[Booking]:
        """Confirmed bookings whose event date has been reached."""
        try:
            return (
                self.db.query(Booking)
                .filter(
                    Booking.status == BookingStatus.CONFIRMED.value,
                    Booking.event_date <= today,
                )
                .order_by(Booking.event_date, Booking.start_time)
                .all()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading due bookings: {str(e)}")
            raise RepositoryException(f"Failed to load due bookings: {str(e)}") from e

    def get_confirmed_on(self, day: date) -> List[Booking]:
        try:
            return (
                self.db.query(Booking)
                .filter(
                    Booking.status == BookingStatus.CONFIRMED.value,
                    Booking.event_date == day,
                )
                .order_by(Booking.start_time)
                .all()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading bookings for {day}: {str(e)}")
            raise RepositoryException(f"Failed to load bookings: {str(e)}") from e

    # Reviews

    def get_review(self, booking_id: str, party: str) -> Optional[BookingReview]:
        return (
            self.db.query(BookingReview)
            .filter(BookingReview.booking_id == booking_id, BookingReview.author_party == party)
            .first()
        )

    def create_review(self, **kwargs) -> BookingReview:
        try:
            review = BookingReview(**kwargs)
            self.db.add(review)
            self.db.flush()
            return review
        except SQLAlchemyError as e:
            self.logger.error(f"Error creating review: {str(e)}")
            raise RepositoryException(f"Failed to create review: {str(e)}") from e
