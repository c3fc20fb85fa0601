"""Pricing context and rounding rules.

A PricingContext is passed explicitly into every price and tax
computation.  It replaces any notion of a "current" currency, customer
or cart: deriving a context for an order or a cart returns a new value
and leaves the original untouched.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import (
    ROUND_CEILING,
    ROUND_FLOOR,
    ROUND_HALF_DOWN,
    ROUND_HALF_EVEN,
    ROUND_HALF_UP,
    Decimal,
)
from enum import Enum
from typing import TYPE_CHECKING

from oms.domain.model.value_objects import DEFAULT_CURRENCY, Money

if TYPE_CHECKING:
    from oms.domain.model.cart import Cart
    from oms.domain.model.order import Order


class RoundingPolicy(Enum):
    """At which aggregation level monetary values are rounded."""

    ITEM = "item"    # round the unit price, then multiply
    LINE = "line"    # multiply, then round the line
    TOTAL = "total"  # never round lines; the grand total is rounded elsewhere


class PriceRoundMode(Enum):
    """Tie-break rule used whenever an amount is rounded."""

    UP = "up"
    DOWN = "down"
    HALF_UP = "half_up"
    HALF_DOWN = "half_down"
    HALF_EVEN = "half_even"

    @property
    def decimal_rounding(self) -> str:
        return _DECIMAL_ROUNDING[self]


_DECIMAL_ROUNDING = {
    PriceRoundMode.UP: ROUND_CEILING,
    PriceRoundMode.DOWN: ROUND_FLOOR,
    PriceRoundMode.HALF_UP: ROUND_HALF_UP,
    PriceRoundMode.HALF_DOWN: ROUND_HALF_DOWN,
    PriceRoundMode.HALF_EVEN: ROUND_HALF_EVEN,
}


@dataclass(frozen=True)
class PricingContext:
    """Everything a price computation needs to know about who is buying.

    Invariant: a single computation uses exactly one ``rounding_policy``.
    """

    currency: str = DEFAULT_CURRENCY
    conversion_rate: Decimal = Decimal("1")
    customer_id: int | None = None
    cart_id: int | None = None
    precision: int = 2
    rounding_policy: RoundingPolicy = RoundingPolicy.ITEM
    round_mode: PriceRoundMode = PriceRoundMode.HALF_UP

    # --- Derivation -----------------------------------------------------------

    def for_order(self, order: Order) -> PricingContext:
        return replace(
            self,
            currency=order.currency,
            conversion_rate=order.conversion_rate,
            customer_id=order.customer_id,
        )

    def for_cart(self, cart: Cart) -> PricingContext:
        """Bind the cart; its computing precision wins over the session one."""
        return replace(self, cart_id=cart.id, precision=cart.computing_precision)

    # --- Money helpers --------------------------------------------------------

    def money(self, amount: Decimal) -> Money:
        return Money(amount, self.currency)

    def convert(self, default_currency_amount: Decimal) -> Money:
        """Convert a catalogue amount (shop default currency) into this context."""
        return Money(default_currency_amount * self.conversion_rate, self.currency)

    def round(self, amount: Money) -> Money:
        return amount.rounded(self.precision, self.round_mode.decimal_rounding)

    def line_total(self, unit_price: Money, quantity: int) -> Money:
        """Total for *quantity* units under the configured rounding policy."""
        if self.rounding_policy is RoundingPolicy.TOTAL:
            return unit_price * quantity
        if self.rounding_policy is RoundingPolicy.LINE:
            return self.round(unit_price * quantity)
        return self.round(unit_price) * quantity
