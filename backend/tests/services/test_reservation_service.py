# backend/tests/services/test_reservation_service.py
"""
Reservation creation through the chef's atomic unit.

Covers both reservation kinds, the typed rejections, the bounded retry
budget and the concurrency guarantee: two overlapping requests for the
same chef yield exactly one reservation.
"""

from datetime import timedelta
import threading
from unittest.mock import patch

import pytest
from sqlalchemy import create_engine, func, select
from sqlalchemy.orm import sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from chefhome.core.enums import RoleName
from chefhome.core.exceptions import (
    BookingConflictException,
    BusinessRuleException,
    BusyException,
    InvalidTimeRangeException,
    LeadTimeViolationException,
    NotFoundException,
    OutOfCapacityException,
    TransitionNotPermittedException,
)
from chefhome.database import Base
from chefhome.models.booking import Booking
from chefhome.models.chef import Chef
from chefhome.models.chef_home import ChefHomeAppointment
from chefhome.models.notification import Notification
from chefhome.models.timeline import ReservationTimelineEntry
from chefhome.models.user import User
from chefhome.schemas.reservation import (
    ChefHomeAppointmentRequest,
    ServiceBookingRequest,
    parse_reservation_request,
)
from chefhome.services.notification_service import NotificationService
from chefhome.services.reservation_service import ReservationService
from tests.conftest import TODAY, no_sleep
from tests.factories.builders import actor_for, create_chef, create_location, create_menu, create_user

EVENT_DAY = TODAY + timedelta(days=10)


def booking_request(chef_id: str, **overrides) -> ServiceBookingRequest:
    payload = {
        "chef_id": chef_id,
        "service_type": "home-dining",
        "event_date": EVENT_DAY.isoformat(),
        "start_time": "19:00",
        "duration_hours": 3,
        "guests": 4,
        "location": {"address": "10 avenue Victor Hugo", "city": "Lyon", "zip_code": "69002"},
    }
    payload.update(overrides)
    return ServiceBookingRequest.model_validate(payload)


def appointment_request(location_id: str, **overrides) -> ChefHomeAppointmentRequest:
    payload = {
        "location_id": location_id,
        "requested_date": EVENT_DAY.isoformat(),
        "start_time": "18:00",
        "end_time": "21:00",
        "guests": 4,
    }
    payload.update(overrides)
    return ChefHomeAppointmentRequest.model_validate(payload)


def _count(db, model) -> int:
    return db.scalar(select(func.count()).select_from(model))


class TestServiceBookingCreation:
    def test_creates_pending_booking_with_quote(self, db, reservation_service, client_actor, chef):
        booking = reservation_service.reserve(client_actor, booking_request(chef.id))

        assert booking.status == "pending"
        assert booking.client_id == client_actor.user_id
        assert booking.window.label() == "19:00-22:00"
        # 3h at 50.00 plus a 10% fee, 20% deposit
        assert str(booking.base_price) == "150.00"
        assert str(booking.total_amount) == "165.00"
        assert str(booking.deposit_amount) == "33.00"

    def test_bumps_schedule_version_and_records_timeline(self, db, reservation_service, client_actor, chef):
        version = chef.schedule_version
        booking = reservation_service.reserve(client_actor, booking_request(chef.id))

        db.refresh(chef)
        assert chef.schedule_version == version + 1
        entries = db.scalars(
            select(ReservationTimelineEntry).where(ReservationTimelineEntry.reservation_id == booking.id)
        ).all()
        assert [(e.from_status, e.to_status, e.event) for e in entries] == [(None, "pending", "create")]

    def test_notifies_the_chef(self, db, reservation_service, client_actor, chef):
        booking = reservation_service.reserve(client_actor, booking_request(chef.id))
        notifications = db.scalars(select(Notification)).all()
        assert [(n.recipient_id, n.reservation_id, n.event) for n in notifications] == [
            (chef.user_id, booking.id, "created")
        ]

    def test_b2b_buyer_keeps_company_name(self, db, reservation_service, chef):
        buyer = actor_for(create_user(db, RoleName.B2B))
        booking = reservation_service.reserve(buyer, booking_request(chef.id, company_name="ACME"))
        assert booking.is_b2b
        assert booking.company_name == "ACME"

    @pytest.mark.parametrize("role", [RoleName.CHEF, RoleName.ADMIN])
    def test_only_clients_create(self, db, reservation_service, chef, role):
        actor = actor_for(create_user(db, role))
        with pytest.raises(TransitionNotPermittedException):
            reservation_service.reserve(actor, booking_request(chef.id))

    def test_unknown_or_inactive_chef(self, db, reservation_service, client_actor):
        with pytest.raises(NotFoundException):
            reservation_service.reserve(client_actor, booking_request("01HZZZZZZZZZZZZZZZZZZZZZZZ"))
        inactive = create_chef(db, is_active=False)
        with pytest.raises(NotFoundException):
            reservation_service.reserve(client_actor, booking_request(inactive.id))

    def test_menu_must_belong_to_chef(self, db, reservation_service, client_actor, chef):
        foreign_menu = create_menu(db, create_chef(db))
        with pytest.raises(NotFoundException):
            reservation_service.reserve(client_actor, booking_request(chef.id, menu_id=foreign_menu.id))

    def test_menu_price_is_used(self, db, reservation_service, client_actor, chef):
        menu = create_menu(db, chef, price=400)
        booking = reservation_service.reserve(client_actor, booking_request(chef.id, menu_id=menu.id))
        assert str(booking.base_price) == "400.00"

    def test_service_type_must_be_offered(self, db, reservation_service, client_actor):
        chef = create_chef(db, service_types=["catering"])
        with pytest.raises(BusinessRuleException) as exc_info:
            reservation_service.reserve(client_actor, booking_request(chef.id))
        assert exc_info.value.code == "SERVICE_NOT_OFFERED"

    def test_capacity_rejection_creates_nothing(self, db, reservation_service, client_actor, chef):
        with pytest.raises(OutOfCapacityException):
            reservation_service.reserve(client_actor, booking_request(chef.id, guests=13))
        with pytest.raises(LeadTimeViolationException):
            reservation_service.reserve(client_actor, booking_request(chef.id, event_date=TODAY.isoformat()))
        assert _count(db, Booking) == 0

    def test_midnight_crossing_is_an_invalid_range(self, db, reservation_service, client_actor, chef):
        with pytest.raises(InvalidTimeRangeException) as exc_info:
            reservation_service.reserve(
                client_actor, booking_request(chef.id, start_time="22:00", duration_hours=3)
            )
        assert exc_info.value.code == "INVALID_TIME_RANGE"


class TestConflicts:
    def test_overlap_is_rejected_with_details(self, db, reservation_service, client_actor, chef):
        first = reservation_service.reserve(client_actor, booking_request(chef.id))

        with pytest.raises(BookingConflictException) as exc_info:
            reservation_service.reserve(client_actor, booking_request(chef.id, start_time="21:00", duration_hours=2))
        assert exc_info.value.code == "CONFLICT_DETECTED"
        assert exc_info.value.details["conflicts"][0]["id"] == first.id
        assert _count(db, Booking) == 1

    def test_rejection_is_reproducible(self, db, reservation_service, client_actor, other_client_user, chef):
        reservation_service.reserve(client_actor, booking_request(chef.id))
        request = booking_request(chef.id)
        other = actor_for(other_client_user)
        for _ in range(3):
            with pytest.raises(BookingConflictException):
                reservation_service.reserve(other, request)
        assert _count(db, Booking) == 1

    def test_adjacent_requests_both_succeed(self, db, reservation_service, client_actor, chef):
        reservation_service.reserve(client_actor, booking_request(chef.id, start_time="12:00", duration_hours=3))
        reservation_service.reserve(client_actor, booking_request(chef.id, start_time="15:00", duration_hours=3))
        assert _count(db, Booking) == 2

    def test_appointment_blocks_a_service_booking(self, db, reservation_service, client_actor, chef):
        location = create_location(db, chef)
        reservation_service.reserve(client_actor, appointment_request(location.id))
        with pytest.raises(BookingConflictException):
            reservation_service.reserve(client_actor, booking_request(chef.id, start_time="20:00", duration_hours=2))


class TestAppointmentCreation:
    def test_creates_pending_appointment_with_estimate(self, db, reservation_service, client_actor, chef):
        location = create_location(db, chef)
        appointment = reservation_service.reserve(client_actor, appointment_request(location.id))
        assert isinstance(appointment, ChefHomeAppointment)
        assert appointment.status == "pending"
        # 80.00 base + 4 x 25.00
        assert str(appointment.estimated_price) == "180.00"

    def test_inactive_location_is_not_found(self, db, reservation_service, client_actor, chef):
        location = create_location(db, chef, is_active=False)
        with pytest.raises(NotFoundException):
            reservation_service.reserve(client_actor, appointment_request(location.id))

    def test_lead_time_from_location(self, db, reservation_service, client_actor, chef):
        location = create_location(db, chef, lead_time_days=3)
        with pytest.raises(LeadTimeViolationException):
            reservation_service.reserve(
                client_actor, appointment_request(location.id, requested_date=(TODAY + timedelta(days=2)).isoformat())
            )
        appointment = reservation_service.reserve(
            client_actor, appointment_request(location.id, requested_date=(TODAY + timedelta(days=3)).isoformat())
        )
        assert appointment.status == "pending"

    def test_discriminated_payload(self, db, reservation_service, client_actor, chef):
        location = create_location(db, chef)
        request = parse_reservation_request(
            {
                "kind": "chef_home_appointment",
                "location_id": location.id,
                "requested_date": EVENT_DAY.isoformat(),
                "start_time": "10:00",
                "end_time": "12:00",
                "guests": 2,
            }
        )
        assert isinstance(reservation_service.reserve(client_actor, request), ChefHomeAppointment)


class TestRetryBudget:
    def test_lost_races_are_retried_then_succeed(self, db, reservation_service, client_actor, chef):
        original = ReservationService._attempt
        calls = []

        def flaky(self, *args, **kwargs):
            calls.append(1)
            if len(calls) == 1:
                raise StaleDataError("version mismatch")
            return original(self, *args, **kwargs)

        with patch.object(ReservationService, "_attempt", flaky):
            booking = reservation_service.reserve(client_actor, booking_request(chef.id))
        assert booking.status == "pending"
        assert len(calls) == 2

    def test_exhausted_budget_is_busy(self, db, client_actor, chef, notification_service):
        delays = []
        service = ReservationService(
            db,
            today_provider=lambda: TODAY,
            notification_service=notification_service,
            sleep=delays.append,
        )
        with patch.object(ReservationService, "_attempt", side_effect=StaleDataError("stale")):
            with pytest.raises(BusyException) as exc_info:
                service.reserve(client_actor, booking_request(chef.id))

        assert exc_info.value.code == "BUSY"
        assert exc_info.value.details["attempts"] == 3
        assert len(delays) == 2
        assert delays[1] == pytest.approx(delays[0] * 2)
        assert _count(db, Booking) == 0

    def test_conflict_is_never_retried(self, db, reservation_service, client_actor, chef):
        with patch.object(
            ReservationService, "_attempt", side_effect=BookingConflictException()
        ) as attempt:
            with pytest.raises(BookingConflictException):
                reservation_service.reserve(client_actor, booking_request(chef.id))
        assert attempt.call_count == 1


class TestConcurrentRequests:
    """Each thread gets its own session on a shared file-backed store."""

    @pytest.fixture
    def file_store(self, tmp_path):
        engine = create_engine(
            f"sqlite:///{tmp_path / 'concurrency.db'}",
            connect_args={"check_same_thread": False, "timeout": 10},
        )
        Base.metadata.create_all(bind=engine)
        yield sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
        engine.dispose()

    def _race(self, session_factory, actor_ids, requests):
        barrier = threading.Barrier(len(requests))
        outcomes = [None] * len(requests)

        def run(index):
            session = session_factory()
            try:
                service = ReservationService(
                    session,
                    today_provider=lambda: TODAY,
                    notification_service=NotificationService(session),
                    sleep=no_sleep,
                )
                actor = actor_for_id(session, actor_ids[index])
                barrier.wait()
                try:
                    outcomes[index] = service.reserve(actor, requests[index]).id
                except BookingConflictException as exc:
                    outcomes[index] = exc.code
            finally:
                session.close()

        threads = [threading.Thread(target=run, args=(i,)) for i in range(len(requests))]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        return outcomes

    def test_overlapping_requests_yield_one_reservation(self, file_store):
        setup = file_store()
        chef = create_chef(setup, lead_time_days=1)
        first = create_user(setup, RoleName.CLIENT)
        second = create_user(setup, RoleName.CLIENT)
        chef_id = chef.id
        setup.close()

        outcomes = self._race(
            file_store,
            [first.id, second.id],
            [
                booking_request(chef_id, start_time="19:00", duration_hours=3),
                booking_request(chef_id, start_time="20:00", duration_hours=3),
            ],
        )

        assert sorted(o == "CONFLICT_DETECTED" for o in outcomes) == [False, True]
        check = file_store()
        try:
            assert _count(check, Booking) == 1
            assert check.get(Chef, chef_id).schedule_version == 2
        finally:
            check.close()

    def test_disjoint_requests_both_succeed(self, file_store):
        setup = file_store()
        chef = create_chef(setup, lead_time_days=1)
        first = create_user(setup, RoleName.CLIENT)
        second = create_user(setup, RoleName.CLIENT)
        chef_id = chef.id
        setup.close()

        outcomes = self._race(
            file_store,
            [first.id, second.id],
            [
                booking_request(chef_id, start_time="12:00", duration_hours=2),
                booking_request(chef_id, start_time="19:00", duration_hours=3),
            ],
        )

        assert "CONFLICT_DETECTED" not in outcomes
        check = file_store()
        try:
            assert _count(check, Booking) == 2
        finally:
            check.close()


def actor_for_id(session, user_id):
    return actor_for(session.get(User, user_id))
