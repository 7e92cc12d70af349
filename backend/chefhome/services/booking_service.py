# backend/chefhome/services/booking_service.py
"""
Booking Service for the Chef@Home platform.

Drives service bookings through the reservation state machine after
creation: chef acceptance, cancellation with refunds, start and
completion, disputes, reviews and the periodic jobs.

Transitions that move money follow a three-phase pattern so the
payment collaborator is never called inside a database transaction:

1. read the booking, plan the transition and commit a refund attempt;
2. call the payment collaborator (refund) with no transaction open;
3. re-read, apply the new status, write the ledger event and the
   timeline entry, commit.

A per-booking lock spans all three phases. If the collaborator fails in
phase 2 the booking keeps its status. If phase 3 fails after the refund
went out, the attempt stays open and the next refunding event records it
without a second payout. Other events are refused until then.
"""

from __future__ import annotations

from datetime import date
from decimal import ROUND_HALF_UP, Decimal
import logging
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from ..core.constants import MAX_RATING, MIN_RATING
from ..core.enums import ReservationKind, ReservationParty
from ..core.exceptions import (
    BusinessRuleException,
    BusyException,
    ConflictException,
    DomainException,
    ForbiddenException,
    InvalidTransitionException,
    NotFoundException,
    TransitionNotPermittedException,
    ValidationException,
)
from ..core.reservation_lock import booking_key, reservation_lock
from ..core.timeutils import TodayProvider, resolve_today
from ..events.reservation_events import ReservationTransitioned
from ..models.booking import Booking, BookingReview, BookingStatus
from ..models.chef import Chef
from ..models.timeline import ReservationTimelineEntry
from ..principal import Actor, party_for
from ..repositories.factory import RepositoryFactory
from .base import BaseService
from .notification_service import NotificationService
from .payment_service import PaymentService
from .refund_policy import CancellationRefundPolicy, FullRefundPolicy
from .reservation_state_machine import (
    RESOLUTION_EVENTS,
    BookingEvent,
    SideEffect,
    TransitionPlan,
    plan_booking_transition,
)

logger = logging.getLogger(__name__)

KIND = ReservationKind.SERVICE_BOOKING.value
REFUND_SIDE_EFFECTS = (SideEffect.REFUND_CAPTURED, SideEffect.REFUND_PER_POLICY)


class BookingService(BaseService):
    def __init__(
        self,
        db: Session,
        payment_service: Optional[PaymentService] = None,
        refund_policy: Optional[CancellationRefundPolicy] = None,
        notification_service: Optional[NotificationService] = None,
        today_provider: Optional[TodayProvider] = None,
    ):
        super().__init__(db)
        self.payment_service = payment_service or PaymentService(db)
        self.refund_policy: CancellationRefundPolicy = refund_policy or FullRefundPolicy()
        self.notification_service = notification_service or NotificationService(db)
        self.today_provider = today_provider
        self.repository = RepositoryFactory.create_booking_repository(db)
        self.chef_repository = RepositoryFactory.create_chef_repository(db)
        self.dispute_repository = RepositoryFactory.create_dispute_repository(db)
        self.timeline_repository = RepositoryFactory.create_timeline_repository(db)

    # Reads

    def _load(self, booking_id: str, *, fresh: bool = False) -> Booking:
        if fresh:
            booking = self.db.get(Booking, booking_id, populate_existing=True)
        else:
            booking = self.repository.get_by_id(booking_id)
        if not booking:
            raise NotFoundException("Booking not found", code="NOT_FOUND", details={"booking_id": booking_id})
        return booking

    def party_of(self, actor: Actor, booking: Booking) -> Optional[ReservationParty]:
        return party_for(actor, booking.client_id, booking.chef.user_id)

    def get_booking_for_actor(self, actor: Actor, booking_id: str) -> Booking:
        booking = self._load(booking_id)
        if self.party_of(actor, booking) is None:
            raise ForbiddenException("You do not have access to this booking")
        return booking

    def list_bookings_for_actor(
        self,
        actor: Actor,
        status: Optional[str] = None,
        page: int = 1,
        per_page: int = 10,
    ) -> Tuple[List[Booking], int]:
        skip = (page - 1) * per_page
        if actor.is_admin:
            return self.repository.list_for_participant(status=status, skip=skip, limit=per_page)
        if actor.is_chef:
            chef = self.chef_repository.get_by_user_id(actor.user_id)
            if not chef:
                return [], 0
            return self.repository.list_for_participant(
                chef_id=chef.id, status=status, skip=skip, limit=per_page
            )
        return self.repository.list_for_participant(
            client_id=actor.user_id, status=status, skip=skip, limit=per_page
        )

    def get_timeline(self, actor: Actor, booking_id: str) -> List[ReservationTimelineEntry]:
        self.get_booking_for_actor(actor, booking_id)
        return self.timeline_repository.for_reservation(KIND, booking_id)

    # Transitions

    def _plan(self, actor: Actor, booking: Booking, event: str) -> Tuple[TransitionPlan, ReservationParty]:
        party = self.party_of(actor, booking)
        if party is None:
            raise TransitionNotPermittedException(event, actor.role.value)
        plan = plan_booking_transition(booking.status, event, party)
        if event in {e.value for e in RESOLUTION_EVENTS}:
            # Dispute outcomes go through the dispute resolver only
            raise TransitionNotPermittedException(event, party.value)
        if plan.event == BookingEvent.START.value and party == ReservationParty.CHEF:
            today = resolve_today(self.today_provider)
            if booking.event_date > today:
                raise BusinessRuleException(
                    "The event date has not been reached yet",
                    code="EVENT_NOT_STARTED",
                    details={"event_date": booking.event_date.isoformat()},
                )
        return plan, party

    def _refund_due(self, booking: Booking, plan: TransitionPlan, party: ReservationParty) -> Decimal:
        if plan.side_effect == SideEffect.REFUND_CAPTURED:
            amount = booking.refundable_amount
        elif plan.side_effect == SideEffect.REFUND_PER_POLICY:
            decision = self.refund_policy.decide(booking, party, resolve_today(self.today_provider))
            self.logger.info(
                f"Refund policy for booking {booking.id}: {decision.amount} ({decision.basis})"
            )
            amount = decision.amount
        else:
            return Decimal("0.00")
        return max(Decimal("0.00"), min(amount, booking.refundable_amount))

    @BaseService.measure_operation("transition_booking")
    def transition(
        self,
        actor: Actor,
        booking_id: str,
        event: str,
        note: Optional[str] = None,
        reason: Optional[str] = None,
    ) -> Booking:
        """
        Apply a user-facing event to a booking.

        Raises:
            InvalidTransitionException: Event not allowed from the current status
            TransitionNotPermittedException: Actor's party may not trigger it
            PaymentProviderException: Refund failed; booking unchanged
            ConflictException: A staged refund must be settled first
            BusyException: Booking is locked by a concurrent update
        """
        with reservation_lock(booking_key(booking_id)) as acquired:
            if not acquired:
                raise BusyException("Booking is being updated, please retry")

            # Phase 1: read, plan and stage the refund; committed before the provider call
            with self.transaction():
                booking = self._load(booking_id, fresh=True)
                plan, party = self._plan(actor, booking, event)
                if plan.side_effect not in REFUND_SIDE_EFFECTS and self.payment_service.open_refund(booking.id):
                    raise ConflictException(
                        "A refund on this booking is still being settled",
                        code="REFUND_IN_PROGRESS",
                        details={"booking_id": booking.id},
                    )
                refund_reason = reason or f"{event} by {party.value}"
                attempt = self.payment_service.prepare_refund(
                    booking, self._refund_due(booking, plan, party), refund_reason
                )

            # Phase 2: payment side effect, no transaction open
            if attempt is not None:
                self.payment_service.issue_refund(attempt)

            # Phase 3: persist
            from_status = booking.status
            refund_amount: Optional[Decimal] = None
            with self.transaction():
                booking = self._load(booking_id, fresh=True)
                if booking.status != from_status:
                    raise InvalidTransitionException(booking.status, event)
                if attempt is not None:
                    refund_amount = self.payment_service.record_refund(booking, attempt)
                self._apply(actor, booking, plan, party, reason)
                self.timeline_repository.record(
                    kind=KIND,
                    reservation_id=booking.id,
                    from_status=from_status,
                    to_status=booking.status,
                    event=event,
                    actor_id=actor.user_id,
                    actor_role=actor.role.value,
                    note=note or reason,
                )

        self.log_operation(
            "booking_transition",
            booking_id=booking.id,
            transition_event=event,
            from_status=from_status,
            to_status=booking.status,
        )
        self._notify_transition(
            actor,
            booking,
            event,
            from_status,
            refund_amount,
        )
        return booking

    def _apply(
        self,
        actor: Actor,
        booking: Booking,
        plan: TransitionPlan,
        party: ReservationParty,
        reason: Optional[str],
    ) -> None:
        target = BookingStatus(plan.target)
        if target == BookingStatus.CANCELLED:
            booking.cancel(actor.user_id, party.value, reason)
        else:
            booking.apply_status(target)
        if plan.side_effect == SideEffect.FREEZE:
            self.dispute_repository.create(
                booking_id=booking.id,
                raised_by_id=actor.user_id,
                raised_by_party=party.value,
                reason=reason,
                raised_at=booking.disputed_at,
            )

    def _notify_transition(
        self,
        actor: Actor,
        booking: Booking,
        event: str,
        from_status: str,
        refund_amount: Optional[Decimal],
    ) -> None:
        recipients = [
            user_id
            for user_id in (booking.client_id, booking.chef.user_id)
            if user_id != actor.user_id
        ]
        self.notification_service.publish(
            ReservationTransitioned(
                reservation_kind=KIND,
                reservation_id=booking.id,
                event=event,
                from_status=from_status,
                to_status=booking.status,
                actor_id=actor.user_id,
                recipients=recipients,
                refund_amount=str(refund_amount) if refund_amount is not None else None,
            )
        )

    # Reviews

    @BaseService.measure_operation("add_review")
    def add_review(
        self, actor: Actor, booking_id: str, rating: int, comment: Optional[str] = None
    ) -> BookingReview:
        """
        Leave a rating on a completed booking; one review per party.

        Client reviews feed the chef's rating average.
        """
        if not MIN_RATING <= rating <= MAX_RATING:
            raise ValidationException(
                f"Rating must be between {MIN_RATING} and {MAX_RATING}", code="VALIDATION_ERROR"
            )
        booking = self._load(booking_id)
        party = self.party_of(actor, booking)
        if party not in (ReservationParty.CLIENT, ReservationParty.CHEF):
            raise TransitionNotPermittedException("review", actor.role.value)
        if booking.status != BookingStatus.COMPLETED.value:
            raise BusinessRuleException(
                "Only completed bookings can be reviewed",
                code="REVIEW_NOT_ALLOWED",
                details={"status": booking.status},
            )
        if self.repository.get_review(booking.id, party.value):
            raise ConflictException("This booking has already been reviewed", code="REVIEW_EXISTS")

        with self.transaction():
            review = self.repository.create_review(
                booking_id=booking.id,
                author_id=actor.user_id,
                author_party=party.value,
                rating=rating,
                comment=comment,
            )
            if party == ReservationParty.CLIENT:
                self._update_chef_rating(booking.chef, rating)
        return review

    @staticmethod
    def _update_chef_rating(chef: Chef, rating: int) -> None:
        count = int(chef.rating_count or 0)
        average = Decimal(chef.rating_average or 0)
        new_average = (average * count + rating) / (count + 1)
        chef.rating_average = new_average.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
        chef.rating_count = count + 1

    # Periodic jobs

    @BaseService.measure_operation("start_due_bookings")
    def start_due_bookings(self, today: Optional[date] = None) -> int:
        """Move confirmed bookings whose date has been reached to ``in_progress``."""
        today = today or resolve_today(self.today_provider)
        system = Actor.system()
        started = 0
        for booking in self.repository.get_confirmed_due(today):
            try:
                self.transition(system, booking.id, BookingEvent.START.value, note="event date reached")
                started += 1
            except DomainException as exc:
                self.logger.warning(
                    f"Could not start booking {booking.id}: {exc.code}",
                    extra={"booking_id": booking.id, "code": exc.code},
                )
        return started

    @BaseService.measure_operation("send_booking_reminders")
    def due_reminders(self, day: date) -> int:
        """Emit a reminder notification for every confirmed booking on ``day``."""
        sent = 0
        for booking in self.repository.get_confirmed_on(day):
            delivered = self.notification_service.notify(
                recipients=[booking.client_id, booking.chef.user_id],
                reservation_kind=KIND,
                reservation_id=booking.id,
                event="reminder",
                message=(
                    f"Reminder: event on {booking.event_date.isoformat()} at "
                    f"{booking.start_time.strftime('%H:%M')}"
                ),
            )
            if delivered:
                sent += 1
        return sent

