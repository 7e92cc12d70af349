# backend/chefhome/repositories/chef_repository.py
"""
Chef Repository for the Chef@Home platform.

Covers chef profiles, menus and the chef-level availability store
(weekly windows and blackout dates).
"""

from datetime import date, datetime, time, timezone
import logging
from typing import List, Optional, Sequence, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session, selectinload

from ..core.exceptions import RepositoryException
from ..models.chef import Chef, ChefAvailabilityWindow, ChefBlackoutDate, Menu
from .base_repository import RETRYABLE_ERRORS, BaseRepository

logger = logging.getLogger(__name__)


class ChefRepository(BaseRepository[Chef]):
    def __init__(self, db: Session):
        super().__init__(db, Chef)
        self.logger = logging.getLogger(__name__)

    def _apply_eager_loading(self, query: Query) -> Query:
        return query.options(
            selectinload(Chef.availability_windows), selectinload(Chef.blackout_dates)
        )

    def get_by_user_id(self, user_id: str) -> Optional[Chef]:
        try:
            return self._apply_eager_loading(self.db.query(Chef)).filter(Chef.user_id == user_id).first()
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting chef for user {user_id}: {str(e)}")
            raise RepositoryException(f"Failed to retrieve chef: {str(e)}") from e

    def touch_schedule(self, chef: Chef) -> None:
        """
        Bump the chef's ``schedule_version``.

        The UPDATE is guarded by the version read earlier in the session;
        a concurrent writer that committed first makes the flush raise
        ``StaleDataError``.
        """
        chef.schedule_touched_at = datetime.now(timezone.utc)
        try:
            self.db.flush()
        except RETRYABLE_ERRORS:
            raise
        except SQLAlchemyError as e:
            self.logger.error(f"Error touching schedule of chef {chef.id}: {str(e)}")
            raise RepositoryException(f"Failed to update chef schedule: {str(e)}") from e

    # Menus

    def get_menu(self, menu_id: str) -> Optional[Menu]:
        return self.db.query(Menu).filter(Menu.id == menu_id).first()

    # Weekly windows

    def replace_windows(
        self, chef: Chef, windows: Sequence[Tuple[int, time, time]]
    ) -> List[ChefAvailabilityWindow]:
        try:
            self.db.query(ChefAvailabilityWindow).filter(
                ChefAvailabilityWindow.chef_id == chef.id
            ).delete(synchronize_session=False)
            created = [
                ChefAvailabilityWindow(
                    chef_id=chef.id, day_of_week=day, start_time=start, end_time=end
                )
                for day, start, end in windows
            ]
            self.db.add_all(created)
            self.db.flush()
            self.db.expire(chef, ["availability_windows"])
            return created
        except SQLAlchemyError as e:
            self.logger.error(f"Error replacing windows of chef {chef.id}: {str(e)}")
            raise RepositoryException(f"Failed to replace availability windows: {str(e)}") from e

    # Blackouts

    def get_blackout(self, chef_id: str, day: date) -> Optional[ChefBlackoutDate]:
        return (
            self.db.query(ChefBlackoutDate)
            .filter(ChefBlackoutDate.chef_id == chef_id, ChefBlackoutDate.date == day)
            .first()
        )

    def add_blackout(self, chef_id: str, day: date, reason: Optional[str]) -> ChefBlackoutDate:
        try:
            blackout = ChefBlackoutDate(chef_id=chef_id, date=day, reason=reason)
            self.db.add(blackout)
            self.db.flush()
            return blackout
        except SQLAlchemyError as e:
            self.logger.error(f"Error adding blackout for chef {chef_id}: {str(e)}")
            raise RepositoryException(f"Failed to add blackout date: {str(e)}") from e

    def remove_blackout(self, blackout: ChefBlackoutDate) -> None:
        self.db.delete(blackout)
        self.db.flush()
