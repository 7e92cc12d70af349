# backend/chefhome/services/chef_home_service.py
"""
Chef-home Service for the Chef@Home platform.

Chefs publish locations where guests visit them; clients request
appointments against those locations (creation lives in
``ReservationService`` so it shares the chef's atomic unit). This
service manages the locations and moves appointments through their
state machine. Appointments have no payment coupling.
"""

from __future__ import annotations

from datetime import date
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ..core.enums import ReservationKind
from ..core.exceptions import (
    BusyException,
    ForbiddenException,
    NotFoundException,
    TransitionNotPermittedException,
    ValidationException,
)
from ..core.reservation_lock import reservation_lock
from ..events.reservation_events import ReservationTransitioned
from ..models.chef import Chef
from ..models.chef_home import ChefHomeAppointment, ChefHomeLocation
from ..principal import Actor, party_for
from ..repositories.factory import RepositoryFactory
from .availability_store import parse_slots, weekday_index
from .base import BaseService
from .notification_service import NotificationService
from .reservation_state_machine import plan_appointment_transition

logger = logging.getLogger(__name__)

KIND = ReservationKind.CHEF_HOME_APPOINTMENT.value

_UPDATABLE_FIELDS = frozenset(
    {
        "title",
        "description",
        "street",
        "city",
        "zip_code",
        "country",
        "access_instructions",
        "min_guests",
        "max_guests",
        "base_price",
        "price_per_guest",
        "currency",
        "days_of_week",
        "time_slots",
        "lead_time_days",
        "advance_booking_limit_days",
        "blackout_dates",
    }
)


def appointment_key(appointment_id: str) -> str:
    return f"appointment:{appointment_id}:mutex"


class ChefHomeService(BaseService):
    def __init__(self, db: Session, notification_service: Optional[NotificationService] = None):
        super().__init__(db)
        self.notification_service = notification_service or NotificationService(db)
        self.chef_repository = RepositoryFactory.create_chef_repository(db)
        self.location_repository = RepositoryFactory.create_chef_home_location_repository(db)
        self.appointment_repository = RepositoryFactory.create_chef_home_appointment_repository(db)
        self.timeline_repository = RepositoryFactory.create_timeline_repository(db)

    # Locations

    def _chef_for(self, actor: Actor) -> Chef:
        if not actor.is_chef:
            raise ForbiddenException("Only chefs can manage chef-home locations")
        chef = self.chef_repository.get_by_user_id(actor.user_id)
        if not chef:
            raise NotFoundException("Chef profile not found", code="NOT_FOUND")
        return chef

    def _owned_location(self, actor: Actor, location_id: str) -> ChefHomeLocation:
        location = self.location_repository.get_by_id(location_id)
        if not location:
            raise NotFoundException("Chef-home location not found", code="NOT_FOUND")
        if not actor.is_admin and self._chef_for(actor).id != location.chef_id:
            raise ForbiddenException("You do not own this location")
        return location

    @staticmethod
    def _normalize(values: Dict[str, Any]) -> Dict[str, Any]:
        normalized = dict(values)
        if "days_of_week" in normalized:
            days = [d.strip().lower() for d in normalized["days_of_week"]]
            for day in days:
                weekday_index(day)
            normalized["days_of_week"] = days
        if "time_slots" in normalized:
            normalized["time_slots"] = [s.as_dict() for s in parse_slots(normalized["time_slots"])]
        if "blackout_dates" in normalized:
            normalized["blackout_dates"] = sorted(
                {d.isoformat() if isinstance(d, date) else date.fromisoformat(d).isoformat()
                 for d in normalized["blackout_dates"]}
            )
        min_guests = normalized.get("min_guests")
        max_guests = normalized.get("max_guests")
        if min_guests is not None and max_guests is not None and min_guests > max_guests:
            raise ValidationException(
                "min_guests cannot exceed max_guests", code="VALIDATION_ERROR"
            )
        return normalized

    @BaseService.measure_operation("create_location")
    def create_location(self, actor: Actor, data: Dict[str, Any]) -> ChefHomeLocation:
        chef = self._chef_for(actor)
        values = self._normalize({k: v for k, v in data.items() if k in _UPDATABLE_FIELDS})
        with self.transaction():
            location = self.location_repository.create(chef_id=chef.id, **values)
        self.log_operation("create_location", location_id=location.id, chef_id=chef.id)
        return location

    @BaseService.measure_operation("update_location")
    def update_location(self, actor: Actor, location_id: str, changes: Dict[str, Any]) -> ChefHomeLocation:
        location = self._owned_location(actor, location_id)
        values = self._normalize({k: v for k, v in changes.items() if k in _UPDATABLE_FIELDS})
        min_guests = values.get("min_guests", location.min_guests)
        max_guests = values.get("max_guests", location.max_guests)
        if min_guests > max_guests:
            raise ValidationException("min_guests cannot exceed max_guests", code="VALIDATION_ERROR")
        with self.transaction():
            for key, value in values.items():
                setattr(location, key, value)
            self.location_repository.flush()
        return location

    @BaseService.measure_operation("deactivate_location")
    def deactivate_location(self, actor: Actor, location_id: str) -> ChefHomeLocation:
        """Soft delete: existing appointments are kept, new requests are refused."""
        location = self._owned_location(actor, location_id)
        with self.transaction():
            location.deactivate()
            self.location_repository.flush()
        return location

    def get_location(self, location_id: str) -> ChefHomeLocation:
        location = self.location_repository.get_by_id(location_id)
        if not location or not location.is_active:
            raise NotFoundException("Chef-home location not found", code="NOT_FOUND")
        return location

    def list_active_locations(
        self, city: Optional[str] = None, page: int = 1, per_page: int = 10
    ) -> List[ChefHomeLocation]:
        return self.location_repository.list_active(city=city, skip=(page - 1) * per_page, limit=per_page)

    def list_locations_for_chef(self, actor: Actor) -> List[ChefHomeLocation]:
        return self.location_repository.list_for_chef(self._chef_for(actor).id)

    # Appointments

    def list_my_appointments(self, actor: Actor, status: Optional[str] = None) -> List[ChefHomeAppointment]:
        if actor.is_chef:
            chef = self.chef_repository.get_by_user_id(actor.user_id)
            if not chef:
                return []
            return self.appointment_repository.list_for_participant(chef_id=chef.id, status=status)
        return self.appointment_repository.list_for_participant(client_id=actor.user_id, status=status)

    @BaseService.measure_operation("transition_appointment")
    def transition_appointment(self, actor: Actor, appointment_id: str, event: str) -> ChefHomeAppointment:
        """
        Apply ``accept``, ``decline`` or ``cancel`` to an appointment.

        Raises:
            InvalidTransitionException: Event not allowed from the current status
            TransitionNotPermittedException: Actor's party may not trigger it
        """
        with reservation_lock(appointment_key(appointment_id)) as acquired:
            if not acquired:
                raise BusyException("Appointment is being updated, please retry")
            with self.transaction():
                appointment = self.db.get(ChefHomeAppointment, appointment_id, populate_existing=True)
                if not appointment:
                    raise NotFoundException("Appointment not found", code="NOT_FOUND")
                party = party_for(actor, appointment.client_id, appointment.chef.user_id)
                if party is None:
                    raise TransitionNotPermittedException(event, actor.role.value)
                plan = plan_appointment_transition(appointment.status, event, party)
                from_status = appointment.status
                appointment.status = plan.target
                self.timeline_repository.record(
                    kind=KIND,
                    reservation_id=appointment.id,
                    from_status=from_status,
                    to_status=plan.target,
                    event=event,
                    actor_id=actor.user_id,
                    actor_role=actor.role.value,
                )

        self.log_operation(
            "appointment_transition",
            appointment_id=appointment.id,
            transition_event=event,
            to_status=appointment.status,
        )
        recipients = [
            user_id
            for user_id in (appointment.client_id, appointment.chef.user_id)
            if user_id != actor.user_id
        ]
        self.notification_service.publish(
            ReservationTransitioned(
                reservation_kind=KIND,
                reservation_id=appointment.id,
                event=event,
                from_status=from_status,
                to_status=appointment.status,
                actor_id=actor.user_id,
                recipients=recipients,
            )
        )
        return appointment
