"""
Pricing rules for reservations.

Service booking base price depends on the menu:

* per-hour menu (``horaire``): price x hours
* flat menu (``forfait``): price
* no menu: chef hourly rate x hours

A platform fee is added on top, and the deposit is a share of the total.
Chef-home appointments carry an estimate: base price plus a per-guest
supplement.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from ..core.config import settings
from ..models.chef import Chef, Menu, MenuType
from ..models.chef_home import ChefHomeLocation

CENTS = Decimal("0.01")


def _money(value: Decimal) -> Decimal:
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class BookingQuote:
    base_price: Decimal
    service_fee: Decimal
    total_amount: Decimal
    deposit_amount: Decimal


class PricingService:
    def __init__(
        self,
        service_fee_rate: Optional[float] = None,
        deposit_rate: Optional[float] = None,
    ):
        fee = settings.service_fee_rate if service_fee_rate is None else service_fee_rate
        deposit = settings.deposit_rate if deposit_rate is None else deposit_rate
        self.service_fee_rate = Decimal(str(fee))
        self.deposit_rate = Decimal(str(deposit))

    def base_price(self, chef: Chef, hours: int, menu: Optional[Menu] = None) -> Decimal:
        if menu is None:
            return _money(Decimal(chef.hourly_rate) * hours)
        if menu.type == MenuType.HORAIRE.value:
            return _money(Decimal(menu.price) * hours)
        return _money(Decimal(menu.price))

    def quote_booking(self, chef: Chef, hours: int, menu: Optional[Menu] = None) -> BookingQuote:
        base = self.base_price(chef, hours, menu)
        fee = _money(base * self.service_fee_rate)
        total = base + fee
        return BookingQuote(
            base_price=base,
            service_fee=fee,
            total_amount=total,
            deposit_amount=_money(total * self.deposit_rate),
        )

    @staticmethod
    def estimate_appointment(location: ChefHomeLocation, guests: int) -> Decimal:
        per_guest = Decimal(location.price_per_guest or 0)
        return _money(Decimal(location.base_price) + per_guest * guests)
