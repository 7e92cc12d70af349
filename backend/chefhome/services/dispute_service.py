# backend/chefhome/services/dispute_service.py
"""
Dispute & Refund Resolver for the Chef@Home platform.

An admin resolves a disputed booking with a written resolution and an
optional refund. A positive refund is issued once through the payment
collaborator and the booking is cancelled; no refund releases the
booking to ``completed`` in the chef's favour.

The resolution is never partially applied: if the refund call fails the
booking stays ``disputed`` with no note written, and the admin retries.
A refund the provider already paid is carried by its open refund attempt
and recorded by the retry without a second payout.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
import logging
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from ..core.enums import ReservationKind, ReservationParty
from ..core.exceptions import (
    BusyException,
    ConflictException,
    ForbiddenException,
    NotDisputedException,
    NotFoundException,
    RefundExceedsCapturedException,
    ValidationException,
)
from ..core.reservation_lock import booking_key, reservation_lock
from ..events.reservation_events import ReservationTransitioned
from ..models.booking import Booking, BookingStatus
from ..models.booking_dispute import BookingDispute, DisputeOutcome
from ..principal import Actor
from ..repositories.factory import RepositoryFactory
from .base import BaseService
from .notification_service import NotificationService
from .payment_service import PaymentService
from .reservation_state_machine import BookingEvent, plan_booking_transition

logger = logging.getLogger(__name__)

KIND = ReservationKind.SERVICE_BOOKING.value


class DisputeService(BaseService):
    def __init__(
        self,
        db: Session,
        payment_service: Optional[PaymentService] = None,
        notification_service: Optional[NotificationService] = None,
    ):
        super().__init__(db)
        self.payment_service = payment_service or PaymentService(db)
        self.notification_service = notification_service or NotificationService(db)
        self.booking_repository = RepositoryFactory.create_booking_repository(db)
        self.dispute_repository = RepositoryFactory.create_dispute_repository(db)
        self.timeline_repository = RepositoryFactory.create_timeline_repository(db)

    @staticmethod
    def _require_admin(actor: Actor) -> None:
        if not actor.is_admin:
            raise ForbiddenException("Admin access required", code="TRANSITION_NOT_PERMITTED")

    def list_disputes(self, actor: Actor, page: int = 1, per_page: int = 10) -> Tuple[List[Booking], int]:
        self._require_admin(actor)
        return self.booking_repository.list_disputed(skip=(page - 1) * per_page, limit=per_page)

    def _load_disputed(self, booking_id: str) -> Booking:
        booking = self.db.get(Booking, booking_id, populate_existing=True)
        if not booking:
            raise NotFoundException("Booking not found", code="NOT_FOUND", details={"booking_id": booking_id})
        if booking.status != BookingStatus.DISPUTED.value:
            raise NotDisputedException(booking.id, booking.status)
        return booking

    @BaseService.measure_operation("resolve_dispute")
    def resolve(
        self,
        actor: Actor,
        booking_id: str,
        resolution_text: str,
        refund_amount: Optional[Decimal] = None,
    ) -> Booking:
        """
        Resolve a disputed booking.

        A refund is staged before the provider is called. If the resolution
        fails after the provider paid out, retrying with the same amount
        records the earlier refund instead of issuing a second one.

        Raises:
            NotDisputedException: Booking is not in ``disputed``
            RefundExceedsCapturedException: Refund is negative or above what is refundable
            ConflictException: A different refund is already in flight for the booking
            PaymentProviderException: Refund failed; nothing was written
        """
        self._require_admin(actor)
        if not resolution_text or not resolution_text.strip():
            raise ValidationException("A resolution text is required", code="VALIDATION_ERROR")
        refund = Decimal(refund_amount) if refund_amount is not None else Decimal("0.00")

        with reservation_lock(booking_key(booking_id)) as acquired:
            if not acquired:
                raise BusyException("Booking is being updated, please retry")

            with self.transaction():
                booking = self._load_disputed(booking_id)
                refundable = booking.refundable_amount
                if refund < 0 or refund > refundable:
                    raise RefundExceedsCapturedException(refund, refundable)
                pending = self.payment_service.open_refund(booking.id)
                if pending is not None and Decimal(pending.amount) != refund:
                    raise ConflictException(
                        "Another refund is already in flight for this booking",
                        code="REFUND_IN_PROGRESS",
                        details={"in_flight": str(pending.amount), "requested": str(refund)},
                    )
                event = BookingEvent.RESOLVE_REFUND if refund > 0 else BookingEvent.RESOLVE_RELEASE
                plan = plan_booking_transition(booking.status, event.value, ReservationParty.ADMIN)
                attempt = self.payment_service.prepare_refund(
                    booking, refund, f"dispute resolution: {resolution_text[:200]}"
                )

            if attempt is not None:
                self.payment_service.issue_refund(attempt)

            with self.transaction():
                booking = self._load_disputed(booking_id)
                dispute = self._dispute_for(booking, actor)
                now = datetime.now(timezone.utc)
                dispute.resolution_note = resolution_text
                dispute.refund_amount = refund
                dispute.resolved_by_id = actor.user_id
                dispute.resolved_at = now
                dispute.outcome = (
                    DisputeOutcome.REFUNDED.value if attempt else DisputeOutcome.RELEASED.value
                )
                if attempt is not None:
                    self.payment_service.record_refund(booking, attempt)
                target = BookingStatus(plan.target)
                if target == BookingStatus.CANCELLED:
                    booking.cancel(actor.user_id, ReservationParty.ADMIN.value, "dispute_resolution")
                else:
                    booking.apply_status(target)
                self.timeline_repository.record(
                    kind=KIND,
                    reservation_id=booking.id,
                    from_status=BookingStatus.DISPUTED.value,
                    to_status=booking.status,
                    event=event.value,
                    actor_id=actor.user_id,
                    actor_role=actor.role.value,
                    note=resolution_text,
                )

        self.log_operation(
            "dispute_resolved",
            booking_id=booking.id,
            outcome=dispute.outcome,
            refund_amount=str(refund),
        )
        self.notification_service.publish(
            ReservationTransitioned(
                reservation_kind=KIND,
                reservation_id=booking.id,
                event=event.value,
                from_status=BookingStatus.DISPUTED.value,
                to_status=booking.status,
                actor_id=actor.user_id,
                recipients=[booking.client_id, booking.chef.user_id],
                refund_amount=str(refund) if attempt else None,
            )
        )
        return booking

    def _dispute_for(self, booking: Booking, actor: Actor) -> BookingDispute:
        dispute = self.dispute_repository.get_by_booking_id(booking.id)
        if dispute is None:
            # Bookings disputed outside the booking service (data fixes, imports)
            dispute = self.dispute_repository.create(
                booking_id=booking.id,
                raised_by_id=actor.user_id,
                raised_by_party=ReservationParty.ADMIN.value,
                raised_at=booking.disputed_at or datetime.now(timezone.utc),
            )
        return dispute
