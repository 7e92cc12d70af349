# backend/tests/services/test_booking_service.py
"""
Booking lifecycle after creation.

Money-moving transitions call the payment provider with no transaction
open; a provider failure must leave the booking exactly as it was.
"""

from datetime import time, timedelta
from decimal import Decimal

import pytest
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from chefhome.core.enums import RoleName
from chefhome.core.exceptions import (
    BusinessRuleException,
    ConflictException,
    ForbiddenException,
    InvalidTransitionException,
    PaymentProviderException,
    ServiceException,
    TransitionNotPermittedException,
)
from chefhome.models.booking import BookingStatus
from chefhome.models.booking_dispute import BookingDispute
from chefhome.models.notification import Notification
from chefhome.models.payment import PaymentEvent
from chefhome.principal import Actor
from chefhome.services.booking_service import BookingService
from chefhome.services.payment_provider import PaymentGatewayError
from chefhome.services.refund_policy import NoticePeriodRefundPolicy
from tests.conftest import TODAY
from tests.factories.builders import actor_for, create_booking, create_chef, create_user

EVENT_DAY = TODAY + timedelta(days=10)


@pytest.fixture
def pending_booking(db, client_user, chef):
    return create_booking(db, client=client_user, chef=chef, event_date=EVENT_DAY)


@pytest.fixture
def paid_booking(db, client_user, chef):
    return create_booking(db, client=client_user, chef=chef, event_date=EVENT_DAY, captured=Decimal("33.00"))


def _notifications(db, booking_id):
    return db.scalars(select(Notification).where(Notification.reservation_id == booking_id)).all()


class TestAcceptAndReject:
    def test_chef_accepts(self, db, booking_service, chef_actor, client_user, pending_booking):
        booking = booking_service.transition(chef_actor, pending_booking.id, "accept")

        assert booking.status == "confirmed"
        assert booking.confirmed_at is not None
        timeline = booking_service.get_timeline(chef_actor, booking.id)
        assert [(e.from_status, e.to_status, e.event) for e in timeline] == [("pending", "confirmed", "accept")]
        # only the counter-party hears about it
        assert [n.recipient_id for n in _notifications(db, booking.id)] == [client_user.id]

    def test_client_cannot_accept(self, booking_service, client_actor, pending_booking):
        with pytest.raises(TransitionNotPermittedException):
            booking_service.transition(client_actor, pending_booking.id, "accept")

    def test_unrelated_actor_is_refused(self, booking_service, other_client_user, pending_booking):
        stranger = actor_for(other_client_user)
        with pytest.raises(TransitionNotPermittedException):
            booking_service.transition(stranger, pending_booking.id, "cancel")
        with pytest.raises(ForbiddenException):
            booking_service.get_booking_for_actor(stranger, pending_booking.id)

    def test_other_chef_is_refused(self, db, booking_service, pending_booking):
        other_chef = create_chef(db)
        with pytest.raises(TransitionNotPermittedException):
            booking_service.transition(actor_for(other_chef.user), pending_booking.id, "accept")

    def test_states_cannot_be_skipped(self, booking_service, chef_actor, pending_booking):
        with pytest.raises(InvalidTransitionException) as exc_info:
            booking_service.transition(chef_actor, pending_booking.id, "complete")
        assert exc_info.value.details == {"from": "pending", "event": "complete"}

    def test_reject_refunds_captured_deposit(
        self, db, booking_service, chef_actor, paid_booking, payment_provider
    ):
        booking = booking_service.transition(chef_actor, paid_booking.id, "reject", reason="fully booked")

        assert booking.status == "cancelled"
        assert booking.cancelled_by_party == "chef"
        assert booking.cancellation_reason == "fully booked"
        assert payment_provider.refunds == [(paid_booking.id, Decimal("33.00"), "fully booked")]
        assert booking.refunded_amount == Decimal("33.00")
        assert booking.payment_status == "refunded"
        ledger = db.scalars(select(PaymentEvent).where(PaymentEvent.booking_id == booking.id)).all()
        assert [e.event_type for e in ledger] == ["refunded"]
        assert ledger[0].provider_reference == "re_test_1"


class TestCancellation:
    def test_cancel_without_capture_skips_the_provider(
        self, booking_service, client_actor, pending_booking, payment_provider
    ):
        booking = booking_service.transition(client_actor, pending_booking.id, "cancel")
        assert booking.status == "cancelled"
        assert payment_provider.refunds == []

    def test_provider_failure_leaves_booking_unchanged(
        self, db, booking_service, client_actor, paid_booking, payment_provider
    ):
        payment_provider.fail_refunds = [PaymentGatewayError("card network down")]

        with pytest.raises(PaymentProviderException):
            booking_service.transition(client_actor, paid_booking.id, "cancel")

        db.expire_all()
        booking = booking_service.get_booking_for_actor(client_actor, paid_booking.id)
        assert booking.status == "pending"
        assert booking.refunded_amount == Decimal("0.00")
        assert booking_service.get_timeline(client_actor, booking.id) == []
        assert db.scalars(select(PaymentEvent)).all() == []

    def test_transient_provider_error_is_retried(
        self, booking_service, client_actor, paid_booking, payment_provider
    ):
        payment_provider.fail_refunds = [PaymentGatewayError("timeout", transient=True)]
        booking = booking_service.transition(client_actor, paid_booking.id, "cancel")
        assert booking.status == "cancelled"
        assert len(payment_provider.refunds) == 1

    def test_retry_after_failed_write_refunds_once(
        self, db, booking_service, client_actor, chef_actor, paid_booking, payment_provider, monkeypatch
    ):
        record = booking_service.timeline_repository.record
        failures = [SQLAlchemyError("disk I/O error")]

        def record_failing_once(**kwargs):
            if failures:
                raise failures.pop()
            return record(**kwargs)

        monkeypatch.setattr(booking_service.timeline_repository, "record", record_failing_once)

        with pytest.raises(ServiceException):
            booking_service.transition(client_actor, paid_booking.id, "cancel")

        db.expire_all()
        assert booking_service.get_booking_for_actor(client_actor, paid_booking.id).status == "pending"
        assert len(payment_provider.refunds) == 1
        with pytest.raises(ConflictException) as exc_info:
            booking_service.transition(chef_actor, paid_booking.id, "accept")
        assert exc_info.value.code == "REFUND_IN_PROGRESS"

        booking = booking_service.transition(client_actor, paid_booking.id, "cancel")

        assert booking.status == "cancelled"
        assert booking.refunded_amount == Decimal("33.00")
        assert len(payment_provider.refunds) == 1
        ledger = db.scalars(select(PaymentEvent).where(PaymentEvent.booking_id == booking.id)).all()
        assert [(e.event_type, e.amount, e.provider_reference) for e in ledger] == [
            ("refunded", Decimal("33.00"), "re_test_1")
        ]

    def test_notice_period_policy_on_confirmed_booking(
        self, db, payment_service, notification_service, client_user, chef, payment_provider
    ):
        service = BookingService(
            db,
            payment_service=payment_service,
            refund_policy=NoticePeriodRefundPolicy(),
            notification_service=notification_service,
            today_provider=lambda: TODAY,
        )
        booking = create_booking(
            db,
            client=client_user,
            chef=chef,
            event_date=TODAY + timedelta(days=3),
            status=BookingStatus.CONFIRMED,
            captured=Decimal("100.00"),
        )

        result = service.transition(actor_for(client_user), booking.id, "cancel")

        assert result.status == "cancelled"
        assert payment_provider.refunds[0][1] == Decimal("50.00")
        assert result.payment_status == "partially_refunded"

    def test_chef_cancellation_is_refunded_in_full_under_notice_policy(
        self, db, payment_service, notification_service, client_user, chef, chef_actor, payment_provider
    ):
        service = BookingService(
            db,
            payment_service=payment_service,
            refund_policy=NoticePeriodRefundPolicy(),
            notification_service=notification_service,
            today_provider=lambda: TODAY,
        )
        booking = create_booking(
            db,
            client=client_user,
            chef=chef,
            event_date=TODAY + timedelta(days=1),
            status=BookingStatus.CONFIRMED,
            captured=Decimal("100.00"),
        )
        service.transition(chef_actor, booking.id, "cancel")
        assert payment_provider.refunds[0][1] == Decimal("100.00")

    def test_cancelled_booking_is_terminal(self, booking_service, client_actor, pending_booking):
        booking_service.transition(client_actor, pending_booking.id, "cancel")
        with pytest.raises(InvalidTransitionException):
            booking_service.transition(client_actor, pending_booking.id, "cancel")


class TestRunningAndDisputes:
    def test_chef_cannot_start_before_the_event_date(self, db, booking_service, chef_actor, client_user, chef):
        booking = create_booking(
            db, client=client_user, chef=chef, event_date=EVENT_DAY, status=BookingStatus.CONFIRMED
        )
        with pytest.raises(BusinessRuleException) as exc_info:
            booking_service.transition(chef_actor, booking.id, "start")
        assert exc_info.value.code == "EVENT_NOT_STARTED"

    def test_start_complete_and_review(self, db, booking_service, chef_actor, client_actor, client_user, chef):
        booking = create_booking(db, client=client_user, chef=chef, event_date=TODAY, status=BookingStatus.CONFIRMED)

        booking_service.transition(chef_actor, booking.id, "start")
        completed = booking_service.transition(chef_actor, booking.id, "complete")
        assert completed.status == "completed"
        assert completed.started_at is not None and completed.completed_at is not None

        review = booking_service.add_review(client_actor, booking.id, 4, "Excellent")
        assert review.author_party == "client"
        db.refresh(chef)
        assert chef.rating_count == 1
        assert chef.rating_average == Decimal("4.0")

        with pytest.raises(ConflictException) as exc_info:
            booking_service.add_review(client_actor, booking.id, 5)
        assert exc_info.value.code == "REVIEW_EXISTS"

        # the chef's own review does not feed the rating
        booking_service.add_review(chef_actor, booking.id, 5)
        db.refresh(chef)
        assert chef.rating_count == 1

    def test_review_requires_completion(self, booking_service, client_actor, pending_booking):
        with pytest.raises(BusinessRuleException) as exc_info:
            booking_service.add_review(client_actor, pending_booking.id, 5)
        assert exc_info.value.code == "REVIEW_NOT_ALLOWED"

    def test_dispute_freezes_the_booking(self, db, booking_service, client_actor, client_user, chef):
        booking = create_booking(
            db, client=client_user, chef=chef, event_date=EVENT_DAY, status=BookingStatus.CONFIRMED
        )

        disputed = booking_service.transition(client_actor, booking.id, "dispute", reason="chef no-show")
        assert disputed.status == "disputed"
        dispute = db.scalars(select(BookingDispute).where(BookingDispute.booking_id == booking.id)).one()
        assert dispute.raised_by_party == "client"
        assert dispute.reason == "chef no-show"

        for event in ("cancel", "complete", "start"):
            with pytest.raises((InvalidTransitionException, TransitionNotPermittedException)):
                booking_service.transition(client_actor, booking.id, event)

    def test_resolution_events_are_reserved_for_the_resolver(
        self, db, booking_service, admin_actor, client_user, chef
    ):
        booking = create_booking(db, client=client_user, chef=chef, event_date=EVENT_DAY, status=BookingStatus.DISPUTED)
        with pytest.raises(TransitionNotPermittedException):
            booking_service.transition(admin_actor, booking.id, "resolve_release")


class TestQueries:
    def test_listing_is_scoped_to_the_participant(
        self, db, booking_service, client_actor, chef_actor, admin_actor, client_user, other_client_user, chef
    ):
        mine = create_booking(db, client=client_user, chef=chef, event_date=EVENT_DAY)
        create_booking(db, client=other_client_user, chef=create_chef(db), event_date=EVENT_DAY)

        items, total = booking_service.list_bookings_for_actor(client_actor)
        assert [b.id for b in items] == [mine.id] and total == 1

        items, total = booking_service.list_bookings_for_actor(chef_actor)
        assert [b.id for b in items] == [mine.id]

        _, total = booking_service.list_bookings_for_actor(admin_actor)
        assert total == 2

        _, total = booking_service.list_bookings_for_actor(client_actor, status="confirmed")
        assert total == 0

    def test_chef_without_profile_sees_nothing(self, db, booking_service):
        lonely_chef = actor_for(create_user(db, RoleName.CHEF))
        assert booking_service.list_bookings_for_actor(lonely_chef) == ([], 0)


class TestPeriodicJobs:
    def test_start_due_bookings(self, db, booking_service, client_user, chef):
        due = create_booking(db, client=client_user, chef=chef, event_date=TODAY, status=BookingStatus.CONFIRMED)
        overdue = create_booking(
            db, client=client_user, chef=chef, event_date=TODAY - timedelta(days=1), status=BookingStatus.CONFIRMED
        )
        future = create_booking(db, client=client_user, chef=chef, event_date=EVENT_DAY, status=BookingStatus.CONFIRMED)
        still_pending = create_booking(
            db, client=client_user, chef=chef, event_date=TODAY, start=time(12, 0), end=time(14, 0)
        )

        assert booking_service.start_due_bookings() == 2

        db.expire_all()
        statuses = {b.id: booking_service._load(b.id).status for b in (due, overdue, future, still_pending)}
        assert statuses == {
            due.id: "in_progress",
            overdue.id: "in_progress",
            future.id: "confirmed",
            still_pending.id: "pending",
        }
        entries = booking_service.get_timeline(Actor.system(), due.id)
        assert entries[-1].actor_role == "system"

    def test_reminders_reach_both_parties(self, db, booking_service, client_user, chef):
        tomorrow = TODAY + timedelta(days=1)
        booking = create_booking(db, client=client_user, chef=chef, event_date=tomorrow, status=BookingStatus.CONFIRMED)
        create_booking(
            db,
            client=client_user,
            chef=chef,
            event_date=tomorrow,
            status=BookingStatus.CANCELLED,
            start=time(10, 0),
            end=time(12, 0),
        )

        assert booking_service.due_reminders(tomorrow) == 1
        recipients = {n.recipient_id for n in _notifications(db, booking.id) if n.event == "reminder"}
        assert recipients == {client_user.id, chef.user_id}
