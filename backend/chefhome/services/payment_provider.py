"""
Payment collaborator interface and the Stripe adapter.

The reservation engine only needs three operations from a payment
provider: create an intent for an amount, confirm an intent, and refund
an amount on a booking under a caller-supplied idempotency key, so a
repeated refund request is paid out once. Provider failures surface as
``PaymentGatewayError``; ``transient`` tells callers whether a retry may
succeed.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
import logging
from typing import List, Optional, Protocol

import stripe

from ..core.config import settings

logger = logging.getLogger(__name__)


class PaymentGatewayError(Exception):
    def __init__(self, message: str, *, transient: bool = False):
        super().__init__(message)
        self.transient = transient


@dataclass(frozen=True)
class IntentHandle:
    intent_id: str
    client_secret: Optional[str] = None


class PaymentProvider(Protocol):
    def create_intent(self, booking_id: str, amount: Decimal) -> IntentHandle:
        ...

    def confirm(self, intent_id: str, booking_id: str) -> bool:
        ...

    def refund(self, booking_id: str, amount: Decimal, reason: str, idempotency_key: str) -> str:
        ...


def to_cents(amount: Decimal) -> int:
    return int((Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


_TRANSIENT_STRIPE_ERRORS = (stripe.APIConnectionError, stripe.RateLimitError)


class StripePaymentProvider:
    """
    ``PaymentProvider`` backed by Stripe PaymentIntents.

    Intents carry the booking id in their metadata; refunds are issued
    against the booking's succeeded intents, newest first.
    """

    def __init__(self, api_key: Optional[str] = None, currency: Optional[str] = None):
        key = api_key
        if key is None and settings.stripe_secret_key is not None:
            key = settings.stripe_secret_key.get_secret_value()
        if not key:
            raise PaymentGatewayError("Stripe is not configured", transient=False)
        stripe.api_key = key
        stripe.max_network_retries = 1
        self.currency = (currency or settings.currency).lower()

    def _wrap(self, exc: stripe.StripeError, operation: str) -> PaymentGatewayError:
        transient = isinstance(exc, _TRANSIENT_STRIPE_ERRORS)
        logger.warning(
            f"Stripe {operation} failed: {exc}",
            extra={"operation": operation, "transient": transient},
        )
        return PaymentGatewayError(str(exc), transient=transient)

    def create_intent(self, booking_id: str, amount: Decimal) -> IntentHandle:
        try:
            intent = stripe.PaymentIntent.create(
                amount=to_cents(amount),
                currency=self.currency,
                metadata={"booking_id": booking_id},
                automatic_payment_methods={"enabled": True},
            )
        except stripe.StripeError as exc:
            raise self._wrap(exc, "create_intent") from exc
        return IntentHandle(intent_id=intent.id, client_secret=intent.client_secret)

    def confirm(self, intent_id: str, booking_id: str) -> bool:
        try:
            intent = stripe.PaymentIntent.retrieve(intent_id)
            if intent.metadata.get("booking_id") != booking_id:
                logger.warning(f"Intent {intent_id} does not belong to booking {booking_id}")
                return False
            if intent.status == "requires_confirmation":
                intent = stripe.PaymentIntent.confirm(
                    intent_id, idempotency_key=f"confirm:{intent_id}"
                )
            if intent.status == "requires_capture":
                intent = stripe.PaymentIntent.capture(
                    intent_id, idempotency_key=f"capture:{intent_id}"
                )
        except stripe.CardError as exc:
            logger.info(f"Card declined for intent {intent_id}: {exc}")
            return False
        except stripe.StripeError as exc:
            raise self._wrap(exc, "confirm") from exc
        return intent.status == "succeeded"

    def _succeeded_intents(self, booking_id: str) -> List[stripe.PaymentIntent]:
        result = stripe.PaymentIntent.search(
            query=f"metadata['booking_id']:'{booking_id}' AND status:'succeeded'"
        )
        return sorted(result.data, key=lambda pi: pi.created, reverse=True)

    def refund(self, booking_id: str, amount: Decimal, reason: str, idempotency_key: str) -> str:
        remaining = to_cents(amount)
        references: List[str] = []
        try:
            for intent in self._succeeded_intents(booking_id):
                if remaining <= 0:
                    break
                refundable = int(intent.amount_received or intent.amount)
                chunk = min(remaining, refundable)
                refund = stripe.Refund.create(
                    payment_intent=intent.id,
                    amount=chunk,
                    metadata={"booking_id": booking_id, "reason": reason[:500]},
                    idempotency_key=f"{idempotency_key}:{intent.id}",
                )
                references.append(refund.id)
                remaining -= chunk
        except stripe.StripeError as exc:
            raise self._wrap(exc, "refund") from exc
        if remaining > 0:
            raise PaymentGatewayError(
                f"Not enough captured funds to refund booking {booking_id}", transient=False
            )
        return ",".join(references)
