"""In-memory payment collaborator used by the test suite."""

from dataclasses import dataclass, field
from decimal import Decimal
import itertools
from typing import Dict, List, Optional, Tuple

from chefhome.services.payment_provider import IntentHandle, PaymentGatewayError


@dataclass
class FakePaymentProvider:
    """
    Records every call; failures are scripted per operation.

    Refunds honour idempotency keys the way Stripe does: a repeated key
    returns the first refund's reference without paying out again.
    ``drop_refund_responses`` pays the refund and then loses the answer.
    """

    decline: bool = False
    fail_refunds: List[PaymentGatewayError] = field(default_factory=list)
    fail_confirms: List[PaymentGatewayError] = field(default_factory=list)
    drop_refund_responses: int = 0
    intents: Dict[str, Tuple[str, Decimal]] = field(default_factory=dict)
    confirms: List[Tuple[str, str]] = field(default_factory=list)
    refunds: List[Tuple[str, Decimal, str]] = field(default_factory=list)
    refund_keys: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self._ids = itertools.count(1)

    def create_intent(self, booking_id: str, amount: Decimal) -> IntentHandle:
        intent_id = f"pi_test_{next(self._ids)}"
        self.intents[intent_id] = (booking_id, amount)
        return IntentHandle(intent_id=intent_id, client_secret=f"{intent_id}_secret")

    def confirm(self, intent_id: str, booking_id: str) -> bool:
        if self.fail_confirms:
            raise self.fail_confirms.pop(0)
        self.confirms.append((intent_id, booking_id))
        return not self.decline

    def refund(self, booking_id: str, amount: Decimal, reason: str, idempotency_key: str) -> str:
        if self.fail_refunds:
            raise self.fail_refunds.pop(0)
        if idempotency_key not in self.refund_keys:
            self.refunds.append((booking_id, amount, reason))
            self.refund_keys[idempotency_key] = f"re_test_{len(self.refunds)}"
        if self.drop_refund_responses:
            self.drop_refund_responses -= 1
            raise PaymentGatewayError("connection reset", transient=True)
        return self.refund_keys[idempotency_key]

    def refunded_total(self, booking_id: Optional[str] = None) -> Decimal:
        return sum(
            (amount for b_id, amount, _ in self.refunds if booking_id in (None, b_id)),
            Decimal("0.00"),
        )
