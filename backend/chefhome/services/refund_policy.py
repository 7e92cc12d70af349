"""
Cancellation refund policies.

The refund owed when a booking is cancelled is a pluggable decision.
Policies never return more than what is still refundable on the booking
(captured minus already refunded).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Protocol

from ..core.enums import ReservationParty
from ..models.booking import Booking

CENTS = Decimal("0.01")


@dataclass(frozen=True)
class RefundDecision:
    amount: Decimal
    basis: str

    def to_payload(self) -> dict[str, object]:
        return {"amount": str(self.amount), "basis": self.basis}


class CancellationRefundPolicy(Protocol):
    def decide(self, booking: Booking, party: ReservationParty, today: date) -> RefundDecision:
        ...


class FullRefundPolicy:
    """Refund everything still captured."""

    def decide(self, booking: Booking, party: ReservationParty, today: date) -> RefundDecision:
        return RefundDecision(amount=booking.refundable_amount, basis="full_refund")


class NoticePeriodRefundPolicy:
    """
    Tiered refund based on days of notice before the event.

    * ``days >= full_refund_days``: full refund
    * ``days >= partial_refund_days``: ``partial_rate`` of the refundable amount
    * otherwise: nothing

    Cancellations initiated by the chef are always refunded in full.
    """

    def __init__(
        self,
        full_refund_days: int = 7,
        partial_refund_days: int = 2,
        partial_rate: Decimal = Decimal("0.50"),
    ):
        if partial_refund_days > full_refund_days:
            raise ValueError("partial_refund_days cannot exceed full_refund_days")
        self.full_refund_days = full_refund_days
        self.partial_refund_days = partial_refund_days
        self.partial_rate = Decimal(partial_rate)

    def decide(self, booking: Booking, party: ReservationParty, today: date) -> RefundDecision:
        refundable = booking.refundable_amount
        if party == ReservationParty.CHEF:
            return RefundDecision(amount=refundable, basis="chef_cancelled")

        notice_days = (booking.event_date - today).days
        if notice_days >= self.full_refund_days:
            return RefundDecision(amount=refundable, basis=f">={self.full_refund_days}d_notice")
        if notice_days >= self.partial_refund_days:
            amount = (refundable * self.partial_rate).quantize(CENTS, rounding=ROUND_HALF_UP)
            return RefundDecision(amount=amount, basis=f">={self.partial_refund_days}d_notice")
        return RefundDecision(amount=Decimal("0.00"), basis="late_cancellation")
