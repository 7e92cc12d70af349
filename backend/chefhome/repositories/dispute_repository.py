# backend/chefhome/repositories/dispute_repository.py
"""Data access for booking disputes."""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ..models.booking_dispute import BookingDispute
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class BookingDisputeRepository(BaseRepository[BookingDispute]):
    def __init__(self, db: Session):
        super().__init__(db, BookingDispute)

    def get_by_booking_id(self, booking_id: str) -> Optional[BookingDispute]:
        return self.find_one_by(booking_id=booking_id)
