# backend/chefhome/services/payment_service.py
"""
Payment Service for the Chef@Home platform.

Talks to the payment collaborator on behalf of bookings. Provider calls
always happen OUTSIDE a database transaction; the booking and ledger are
only written once the provider has answered, so a failed or timed-out
call leaves the booking exactly as it was.

Refunds are staged as a committed ``RefundAttempt`` before the provider
is called. The attempt carries the idempotency key handed to the
provider and stays open until the refund is on the booking, so a retry
after any failure resumes it instead of refunding again.

Transient provider errors are retried with exponential backoff up to
``settings.payment_retry_attempts`` before surfacing as
``PAYMENT_PROVIDER_ERROR``.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
import logging
import time
from typing import Callable, List, Optional, TypeVar

from sqlalchemy.orm import Session
import ulid

from ..core.config import settings
from ..core.exceptions import (
    BusinessRuleException,
    BusyException,
    ConflictException,
    ForbiddenException,
    NotFoundException,
    PaymentProviderException,
)
from ..core.reservation_lock import booking_key, reservation_lock
from ..models.booking import Booking, BookingStatus
from ..models.payment import (
    IntentStatus,
    LedgerEventType,
    PaymentEvent,
    PaymentIntent,
    PaymentPurpose,
    RefundAttempt,
    RefundAttemptStatus,
)
from ..principal import Actor
from ..repositories.factory import RepositoryFactory
from .base import BaseService
from .payment_provider import IntentHandle, PaymentGatewayError, PaymentProvider

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class IntentResult:
    intent: PaymentIntent
    client_secret: Optional[str]


class PaymentService(BaseService):
    def __init__(
        self,
        db: Session,
        provider: Optional[PaymentProvider] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        super().__init__(db)
        self.provider = provider
        self._sleep = sleep
        self.payment_repository = RepositoryFactory.create_payment_repository(db)
        self.booking_repository = RepositoryFactory.create_booking_repository(db)

    # Provider plumbing

    def _require_provider(self) -> PaymentProvider:
        if self.provider is None:
            raise PaymentProviderException("Payment provider is not configured")
        return self.provider

    def _call_provider(self, operation: str, func: Callable[[], T], **context: object) -> T:
        """
        Run a provider call with bounded retries on transient errors.

        Raises:
            PaymentProviderException: On a permanent error or once retries are exhausted
        """
        attempts = settings.payment_retry_attempts
        for attempt in range(1, attempts + 1):
            try:
                return func()
            except PaymentGatewayError as exc:
                if exc.transient and attempt < attempts:
                    delay = settings.payment_retry_backoff_seconds * (2 ** (attempt - 1))
                    self.logger.info(
                        f"Transient payment error on {operation} (attempt {attempt}/{attempts}), "
                        f"retrying in {delay:.2f}s: {exc}"
                    )
                    self._sleep(delay)
                    continue
                self.logger.warning(f"Payment provider {operation} failed: {exc}")
                raise PaymentProviderException(
                    f"Payment provider error during {operation}",
                    details={"operation": operation, "attempts": attempt, **context},
                ) from exc
        raise AssertionError("unreachable")

    def open_refund(self, booking_id: str) -> Optional[RefundAttempt]:
        """Refund attempt on a booking that has not reached the booking yet, if any."""
        return self.payment_repository.get_open_refund_attempt(booking_id)

    def prepare_refund(self, booking: Booking, amount: Decimal, reason: str) -> Optional[RefundAttempt]:
        """
        Open a refund attempt inside the caller's transaction (no commit).

        An attempt left open by an interrupted earlier call is returned
        unchanged, with its original amount and idempotency key. Returns
        ``None`` when nothing is open and ``amount`` is zero.
        """
        attempt = self.open_refund(booking.id)
        if attempt is not None:
            self.logger.info(
                f"Resuming {attempt.status} refund of {attempt.amount} for booking {booking.id}",
                extra={"booking_id": booking.id, "idempotency_key": attempt.idempotency_key},
            )
            return attempt
        if amount <= 0:
            return None
        return self.payment_repository.create_refund_attempt(
            booking_id=booking.id,
            amount=amount,
            reason=reason,
            idempotency_key=f"refund:{booking.id}:{ulid.ULID()}",
        )

    def issue_refund(self, attempt: RefundAttempt) -> str:
        """
        Send a refund attempt to the provider and commit the outcome.

        Must run with no transaction open. An attempt already ``issued`` is
        not sent again. A definitive refusal closes the attempt as
        ``failed``; an outage leaves it ``pending`` so the next call reuses
        its idempotency key.
        """
        if attempt.status == RefundAttemptStatus.ISSUED.value:
            return attempt.provider_reference
        amount = Decimal(attempt.amount)
        try:
            provider = self._require_provider()
            reference = self._call_provider(
                "refund",
                lambda: provider.refund(attempt.booking_id, amount, attempt.reason, attempt.idempotency_key),
                booking_id=attempt.booking_id,
                amount=str(amount),
            )
        except PaymentProviderException as exc:
            cause = exc.__cause__
            if not (isinstance(cause, PaymentGatewayError) and cause.transient):
                with self.transaction():
                    attempt.status = RefundAttemptStatus.FAILED.value
            raise

        with self.transaction():
            attempt.status = RefundAttemptStatus.ISSUED.value
            attempt.provider_reference = reference
        self.logger.info(
            f"Refund of {amount} issued for booking {attempt.booking_id}",
            extra={"booking_id": attempt.booking_id, "refund_reference": reference},
        )
        return reference

    def record_refund(self, booking: Booking, attempt: RefundAttempt) -> Decimal:
        """Apply an issued refund to the booking and the ledger (no commit)."""
        amount = Decimal(attempt.amount)
        booking.record_refund(amount)
        self.payment_repository.create_payment_event(
            booking_id=booking.id,
            event_type=LedgerEventType.REFUNDED.value,
            amount=amount,
            provider_reference=attempt.provider_reference,
            data={"reason": attempt.reason, "idempotency_key": attempt.idempotency_key},
        )
        attempt.status = RefundAttemptStatus.RECORDED.value
        return amount

    # Client-facing operations

    def _client_booking(self, actor: Actor, booking_id: str) -> Booking:
        booking = self.booking_repository.get_by_id(booking_id)
        if not booking:
            raise NotFoundException("Booking not found", code="NOT_FOUND")
        if not (actor.is_client and booking.client_id == actor.user_id):
            raise ForbiddenException(
                "Only the booking's client can pay for it", code="FORBIDDEN"
            )
        return booking

    def _reload(self, booking_id: str) -> Booking:
        booking = self.db.get(Booking, booking_id, populate_existing=True)
        if not booking:
            raise NotFoundException("Booking not found", code="NOT_FOUND")
        return booking

    @staticmethod
    def _is_payable(booking: Booking) -> bool:
        return not (booking.is_terminal() or booking.status == BookingStatus.DISPUTED.value)

    @classmethod
    def _ensure_payable(cls, booking: Booking) -> None:
        if not cls._is_payable(booking):
            raise ConflictException(
                f"Booking in status '{booking.status}' cannot take payments",
                code="BOOKING_NOT_PAYABLE",
                details={"status": booking.status},
            )

    @staticmethod
    def amount_for(booking: Booking, purpose: PaymentPurpose) -> Decimal:
        if purpose == PaymentPurpose.DEPOSIT:
            if Decimal(booking.captured_amount or 0) > 0:
                raise BusinessRuleException(
                    "Deposit has already been paid", code="DEPOSIT_ALREADY_PAID"
                )
            return Decimal(booking.deposit_amount)
        balance = booking.balance_due
        if balance <= 0:
            raise BusinessRuleException("Booking is already fully paid", code="ALREADY_PAID")
        return balance

    @BaseService.measure_operation("create_payment_intent")
    def create_intent(self, actor: Actor, booking_id: str, purpose: PaymentPurpose) -> IntentResult:
        booking = self._client_booking(actor, booking_id)
        self._ensure_payable(booking)
        amount = self.amount_for(booking, purpose)
        provider = self._require_provider()

        handle: IntentHandle = self._call_provider(
            "create_intent",
            lambda: provider.create_intent(booking.id, amount),
            booking_id=booking.id,
        )

        with self.transaction():
            intent = self.payment_repository.create(
                booking_id=booking.id,
                provider_intent_id=handle.intent_id,
                amount=amount,
                purpose=purpose.value,
                status=IntentStatus.REQUIRES_CONFIRMATION.value,
            )
            self.payment_repository.create_payment_event(
                booking_id=booking.id,
                event_type=LedgerEventType.INTENT_CREATED.value,
                amount=amount,
                provider_reference=handle.intent_id,
                data={"purpose": purpose.value},
            )
        self.log_operation("create_payment_intent", booking_id=booking.id, purpose=purpose.value)
        return IntentResult(intent=intent, client_secret=handle.client_secret)

    @BaseService.measure_operation("confirm_payment")
    def confirm_payment(self, actor: Actor, booking_id: str, intent_id: str) -> Booking:
        """
        Confirm an intent and record the capture.

        Confirming an intent that already succeeded is a no-op. The booking
        is re-read under the per-booking lock, so a cancellation that lands
        before the lock is taken stops the charge.

        Raises:
            ConflictException: Booking can no longer take payments
            PaymentProviderException: Declined payment or provider unavailable;
                the booking is left untouched
        """
        booking = self._client_booking(actor, booking_id)
        intent = self.payment_repository.get_intent_by_provider_id(intent_id)
        if not intent or intent.booking_id != booking.id:
            raise NotFoundException("Payment intent not found", code="NOT_FOUND")
        if intent.status == IntentStatus.SUCCEEDED.value:
            return booking
        provider = self._require_provider()

        with reservation_lock(booking_key(booking.id)) as acquired:
            if not acquired:
                raise BusyException("Booking is being updated, please retry")

            with self.transaction():
                booking = self._reload(booking.id)
                self.db.refresh(intent)
                already_captured = intent.status == IntentStatus.SUCCEEDED.value
                if not already_captured:
                    self._ensure_payable(booking)
            if already_captured:
                return booking

            confirmed = self._call_provider(
                "confirm",
                lambda: provider.confirm(intent_id, booking.id),
                booking_id=booking.id,
            )

            if not confirmed:
                with self.transaction():
                    intent.status = IntentStatus.FAILED.value
                    self.payment_repository.create_payment_event(
                        booking_id=booking.id,
                        event_type=LedgerEventType.CAPTURE_FAILED.value,
                        amount=Decimal("0.00"),
                        provider_reference=intent_id,
                    )
                raise PaymentProviderException(
                    "Payment was declined", details={"intent_id": intent_id, "declined": True}
                )

            with self.transaction():
                booking = self._reload(booking.id)
                self.db.refresh(intent)
                if intent.status != IntentStatus.SUCCEEDED.value:
                    # Captured funds are always recorded, payable or not
                    if not self._is_payable(booking):
                        self.logger.error(
                            f"Capture on booking {booking.id} in status '{booking.status}'",
                            extra={"booking_id": booking.id, "intent_id": intent_id},
                        )
                    intent.status = IntentStatus.SUCCEEDED.value
                    booking.record_capture(Decimal(intent.amount))
                    self.payment_repository.create_payment_event(
                        booking_id=booking.id,
                        event_type=LedgerEventType.CAPTURED.value,
                        amount=Decimal(intent.amount),
                        provider_reference=intent_id,
                        data={"purpose": intent.purpose},
                    )

        self.log_operation("confirm_payment", booking_id=booking.id, intent_id=intent_id)
        return booking

    def payment_history(self, actor: Actor, booking_id: str) -> List[PaymentEvent]:
        """Ledger of a booking, visible to its client and to admins."""
        booking = self.booking_repository.get_by_id(booking_id)
        if not booking:
            raise NotFoundException("Booking not found", code="NOT_FOUND")
        if not (actor.is_admin or booking.client_id == actor.user_id):
            raise ForbiddenException("Not allowed to view this booking's payments", code="FORBIDDEN")
        return self.payment_repository.list_payment_events(booking.id)
