# backend/chefhome/services/reservation_service.py
"""
Reservation Service for the Chef@Home platform.

Creates service bookings and chef-home appointments. Both kinds compete
for the same chef schedule, so creation follows the same path:

1. the request has been validated at the boundary (strict schemas);
2. the actor must be a client (or B2B buyer);
3. chef, menu and location are loaded and checked;
4. the capacity resolver validates capacity and availability;
5. inside the chef's atomic unit the conflict check runs, the record is
   inserted in ``pending`` and the chef's ``schedule_version`` is bumped
   in the same transaction;
6. counter-parties are notified after commit.

The atomic unit combines a per-chef lock (process-local plus Redis when
configured) with the optimistic version check on the chef row. A lost
race (stale version, lock contention, a locked store) is retried with
exponential backoff up to ``settings.reservation_retry_attempts`` before
``BUSY`` is returned. A conflict is a business outcome and is never
retried: replaying the same request yields the same ``CONFLICT_DETECTED``.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, List, Optional, TypeVar, Union

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.enums import ReservationKind, RoleName
from ..core.exceptions import (
    BookingConflictException,
    BusinessRuleException,
    BusyException,
    InvalidTimeRangeException,
    NotFoundException,
    TransitionNotPermittedException,
)
from ..core.reservation_lock import chef_schedule_key, reservation_lock
from ..core.timeutils import TimeWindow, TodayProvider, parse_hhmm
from ..events.reservation_events import ReservationCreated
from ..models.booking import Booking, BookingStatus
from ..models.chef import Chef, Menu
from ..models.chef_home import AppointmentStatus, ChefHomeAppointment, ChefHomeLocation
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..principal import Actor
from ..repositories.base_repository import RETRYABLE_ERRORS
from ..repositories.factory import RepositoryFactory
from ..schemas.reservation import ChefHomeAppointmentRequest, ServiceBookingRequest
from .base import BaseService
from .capacity_resolver import CapacityResolver
from .conflict_checker import ConflictChecker
from .notification_service import NotificationService
from .pricing_service import PricingService

logger = logging.getLogger(__name__)

R = TypeVar("R", Booking, ChefHomeAppointment)

Reservation = Union[Booking, ChefHomeAppointment]


class _LostRace(Exception):
    """Internal signal: the chef's atomic unit could not be entered this attempt."""


class ReservationService(BaseService):
    def __init__(
        self,
        db: Session,
        *,
        today_provider: Optional[TodayProvider] = None,
        notification_service: Optional[NotificationService] = None,
        pricing_service: Optional[PricingService] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        super().__init__(db)
        self.today_provider = today_provider
        self.capacity_resolver = CapacityResolver(today_provider)
        self.conflict_checker = ConflictChecker(db)
        self.notification_service = notification_service or NotificationService(db)
        self.pricing_service = pricing_service or PricingService()
        self._sleep = sleep
        self.chef_repository = RepositoryFactory.create_chef_repository(db)
        self.booking_repository = RepositoryFactory.create_booking_repository(db)
        self.location_repository = RepositoryFactory.create_chef_home_location_repository(db)
        self.appointment_repository = RepositoryFactory.create_chef_home_appointment_repository(db)
        self.timeline_repository = RepositoryFactory.create_timeline_repository(db)

    @BaseService.measure_operation("reserve")
    def reserve(
        self, actor: Actor, request: Union[ServiceBookingRequest, ChefHomeAppointmentRequest]
    ) -> Reservation:
        """
        Create a reservation in ``pending``.

        Raises:
            TransitionNotPermittedException: Actor is not a client
            NotFoundException: Chef, menu or location missing or inactive
            ReservationRejected: Capacity or availability check failed
            BookingConflictException: Overlaps a non-terminal reservation
            BusyException: Retry budget exhausted
        """
        if not actor.is_client:
            raise TransitionNotPermittedException("create", actor.role.value)
        if isinstance(request, ServiceBookingRequest):
            return self.create_service_booking(actor, request)
        return self.request_appointment(actor, request)

    # Service bookings

    def _load_chef(self, chef_id: str) -> Chef:
        chef = self.chef_repository.get_by_id(chef_id)
        if not chef or not chef.is_active:
            raise NotFoundException("Chef not found", code="NOT_FOUND", details={"chef_id": chef_id})
        return chef

    def _load_menu(self, chef: Chef, menu_id: Optional[str]) -> Optional[Menu]:
        if not menu_id:
            return None
        menu = self.chef_repository.get_menu(menu_id)
        if not menu or not menu.is_active or menu.chef_id != chef.id:
            raise NotFoundException("Menu not found", code="NOT_FOUND", details={"menu_id": menu_id})
        return menu

    @staticmethod
    def _booking_window(request: ServiceBookingRequest) -> TimeWindow:
        try:
            return TimeWindow.from_duration(
                request.event_date, request.start_time, request.duration_hours
            )
        except ValueError as exc:
            raise InvalidTimeRangeException(
                str(exc),
                details={"start": request.start_time, "duration_hours": request.duration_hours},
            ) from exc

    @BaseService.measure_operation("create_service_booking")
    def create_service_booking(self, actor: Actor, request: ServiceBookingRequest) -> Booking:
        if not actor.is_client:
            raise TransitionNotPermittedException("create", actor.role.value)

        chef = self._load_chef(request.chef_id)
        if not chef.offers(request.service_type.value):
            raise BusinessRuleException(
                f"Chef does not offer {request.service_type.value}",
                code="SERVICE_NOT_OFFERED",
                details={"service_type": request.service_type.value},
            )
        menu = self._load_menu(chef, request.menu_id)
        window = self._booking_window(request)

        def validate(current_chef: Chef) -> None:
            self.capacity_resolver.require_valid(
                chef=current_chef, menu=menu, window=window, guests=request.guests
            )

        validate(chef)
        quote = self.pricing_service.quote_booking(chef, request.duration_hours, menu)
        is_b2b = actor.role == RoleName.B2B

        def build() -> Booking:
            return self.booking_repository.create(
                client_id=actor.user_id,
                chef_id=chef.id,
                menu_id=menu.id if menu else None,
                service_type=request.service_type.value,
                event_date=window.day,
                start_time=window.start,
                end_time=window.end,
                duration_hours=request.duration_hours,
                guests=request.guests,
                event_type=request.event_type.value if request.event_type else None,
                address=request.location.address,
                city=request.location.city,
                zip_code=request.location.zip_code,
                country=request.location.country,
                dietary_restrictions=list(request.dietary_restrictions),
                allergies=list(request.allergies),
                special_requests=request.special_requests,
                base_price=quote.base_price,
                service_fee=quote.service_fee,
                total_amount=quote.total_amount,
                deposit_amount=quote.deposit_amount,
                status=BookingStatus.PENDING.value,
                is_b2b=is_b2b,
                company_name=request.company_name if is_b2b else None,
            )

        booking = self._reserve_atomically(
            ReservationKind.SERVICE_BOOKING, actor, chef.id, window, validate, build
        )
        self._notify_created(ReservationKind.SERVICE_BOOKING, booking.id, chef, actor)
        return booking

    # Chef-home appointments

    def _load_location(self, location_id: str) -> ChefHomeLocation:
        location = self.location_repository.get_by_id(location_id)
        if not location or not location.is_active:
            raise NotFoundException(
                "Chef-home location not found", code="NOT_FOUND", details={"location_id": location_id}
            )
        return location

    @BaseService.measure_operation("request_appointment")
    def request_appointment(
        self, actor: Actor, request: ChefHomeAppointmentRequest
    ) -> ChefHomeAppointment:
        if not actor.is_client:
            raise TransitionNotPermittedException("request", actor.role.value)

        location = self._load_location(request.location_id)
        chef = self._load_chef(location.chef_id)
        window = TimeWindow(
            day=request.requested_date,
            start=parse_hhmm(request.start_time),
            end=parse_hhmm(request.end_time),
        )

        def validate(current_chef: Chef) -> None:
            self.capacity_resolver.require_valid(
                chef=current_chef, location=location, window=window, guests=request.guests
            )

        validate(chef)
        estimate = self.pricing_service.estimate_appointment(location, request.guests)

        def build() -> ChefHomeAppointment:
            return self.appointment_repository.create(
                location_id=location.id,
                chef_id=chef.id,
                client_id=actor.user_id,
                requested_date=window.day,
                start_time=window.start,
                end_time=window.end,
                guests=request.guests,
                message=request.message,
                estimated_price=estimate,
                status=AppointmentStatus.PENDING.value,
            )

        appointment = self._reserve_atomically(
            ReservationKind.CHEF_HOME_APPOINTMENT, actor, chef.id, window, validate, build
        )
        self._notify_created(ReservationKind.CHEF_HOME_APPOINTMENT, appointment.id, chef, actor)
        return appointment

    # Atomic unit

    def _attempt(
        self,
        kind: ReservationKind,
        actor: Actor,
        chef_id: str,
        window: TimeWindow,
        validate: Callable[[Chef], None],
        build: Callable[[], R],
    ) -> R:
        with reservation_lock(chef_schedule_key(chef_id)) as acquired:
            if not acquired:
                raise _LostRace("lock_blocked")
            with self.transaction():
                chef = self.db.get(Chef, chef_id, populate_existing=True)
                if chef is None or not chef.is_active:
                    raise NotFoundException("Chef not found", code="NOT_FOUND")
                # Availability may have changed since the first check
                validate(chef)
                conflicts = self.conflict_checker.find_conflicts(chef_id, window)
                if conflicts:
                    raise BookingConflictException(
                        f"{window.label()} on {window.day.isoformat()} overlaps an existing reservation",
                        details={
                            "requested": {"date": window.day.isoformat(), "window": window.label()},
                            "conflicts": [ref.to_dict() for ref in conflicts],
                        },
                    )
                self.chef_repository.touch_schedule(chef)
                reservation = build()
                self.timeline_repository.record(
                    kind=kind.value,
                    reservation_id=reservation.id,
                    from_status=None,
                    to_status=reservation.status,
                    event="create",
                    actor_id=actor.user_id,
                    actor_role=actor.role.value,
                )
            return reservation

    def _reserve_atomically(
        self,
        kind: ReservationKind,
        actor: Actor,
        chef_id: str,
        window: TimeWindow,
        validate: Callable[[Chef], None],
        build: Callable[[], R],
    ) -> R:
        attempts = settings.reservation_retry_attempts
        reasons: List[str] = []
        for attempt in range(1, attempts + 1):
            try:
                reservation = self._attempt(kind, actor, chef_id, window, validate, build)
            except BookingConflictException:
                prometheus_metrics.record_reservation_outcome(kind.value, "conflict")
                self.logger.info(
                    f"Reservation conflict for chef {chef_id} on {window.day} {window.label()}"
                )
                raise
            except _LostRace as exc:
                reasons.append(str(exc))
            except RETRYABLE_ERRORS as exc:
                reasons.append(type(exc).__name__)
            else:
                prometheus_metrics.record_reservation_outcome(kind.value, "created")
                self.log_operation(
                    "reservation_created",
                    reservation_kind=kind.value,
                    reservation_id=reservation.id,
                    chef_id=chef_id,
                    attempt=attempt,
                )
                return reservation

            self.logger.info(
                f"Lost race on chef {chef_id} schedule (attempt {attempt}/{attempts}): {reasons[-1]}"
            )
            if attempt < attempts:
                self._sleep(settings.reservation_retry_backoff_seconds * (2 ** (attempt - 1)))

        prometheus_metrics.record_reservation_outcome(kind.value, "busy")
        self.logger.warning(f"Reservation retry budget exhausted for chef {chef_id}: {reasons}")
        raise BusyException(details={"chef_id": chef_id, "attempts": attempts})

    def _notify_created(
        self, kind: ReservationKind, reservation_id: str, chef: Chef, actor: Actor
    ) -> None:
        self.notification_service.publish(
            ReservationCreated(
                reservation_kind=kind.value,
                reservation_id=reservation_id,
                chef_id=chef.id,
                client_id=actor.user_id,
                recipients=[chef.user_id],
            )
        )

