# backend/chefhome/repositories/chef_home_repository.py
"""Data access for chef-home locations and appointments."""

import logging
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session, joinedload

from ..core.exceptions import RepositoryException
from ..models.chef_home import ChefHomeAppointment, ChefHomeLocation
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class ChefHomeLocationRepository(BaseRepository[ChefHomeLocation]):
    def __init__(self, db: Session):
        super().__init__(db, ChefHomeLocation)

    def _apply_eager_loading(self, query: Query) -> Query:
        return query.options(joinedload(ChefHomeLocation.chef))

    def list_active(self, city: Optional[str] = None, skip: int = 0, limit: int = 10) -> List[ChefHomeLocation]:
        try:
            query = self.db.query(ChefHomeLocation).filter(ChefHomeLocation.is_active.is_(True))
            if city:
                query = query.filter(ChefHomeLocation.city.ilike(f"%{city}%"))
            return query.order_by(ChefHomeLocation.created_at.desc()).offset(skip).limit(limit).all()
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing chef-home locations: {str(e)}")
            raise RepositoryException(f"Failed to list locations: {str(e)}") from e

    def list_for_chef(self, chef_id: str) -> List[ChefHomeLocation]:
        return (
            self.db.query(ChefHomeLocation)
            .filter(ChefHomeLocation.chef_id == chef_id)
            .order_by(ChefHomeLocation.created_at.desc())
            .all()
        )


class ChefHomeAppointmentRepository(BaseRepository[ChefHomeAppointment]):
    def __init__(self, db: Session):
        super().__init__(db, ChefHomeAppointment)

    def _apply_eager_loading(self, query: Query) -> Query:
        return query.options(joinedload(ChefHomeAppointment.location), joinedload(ChefHomeAppointment.chef))

    def list_for_participant(
        self,
        *,
        client_id: Optional[str] = None,
        chef_id: Optional[str] = None,
        status: Optional[str] = None,
    ) -> List[ChefHomeAppointment]:
        try:
            query = self.db.query(ChefHomeAppointment)
            if client_id:
                query = query.filter(ChefHomeAppointment.client_id == client_id)
            if chef_id:
                query = query.filter(ChefHomeAppointment.chef_id == chef_id)
            if status:
                query = query.filter(ChefHomeAppointment.status == status)
            return query.order_by(
                ChefHomeAppointment.requested_date.desc(), ChefHomeAppointment.start_time
            ).all()
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing appointments: {str(e)}")
            raise RepositoryException(f"Failed to list appointments: {str(e)}") from e
