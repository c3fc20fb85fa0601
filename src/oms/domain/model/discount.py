"""DiscountRule aggregate (a "cart rule")."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal

FREE_SHIPPING_RULE_NAME = "[Generated] CartRule for Free Shipping"
FREE_SHIPPING_VALIDITY = timedelta(hours=24)


@dataclass
class DiscountRule:
    id: int | None
    name: str
    valid_from: datetime
    valid_to: datetime
    customer_id: int | None = None
    quantity: int = 1
    quantity_per_user: int = 1
    minimum_amount_currency: str | None = None
    reduction_currency: str | None = None
    reduction_percent: Decimal = Decimal("0")
    free_shipping: bool = False
    active: bool = True

    @staticmethod
    def free_shipping_for(customer_id: int, currency: str, now: datetime) -> DiscountRule:
        """Single-use free shipping rule valid for 24 hours."""
        return DiscountRule(
            id=None,
            name=FREE_SHIPPING_RULE_NAME,
            valid_from=now,
            valid_to=now + FREE_SHIPPING_VALIDITY,
            customer_id=customer_id,
            quantity=1,
            quantity_per_user=1,
            minimum_amount_currency=currency,
            reduction_currency=currency,
            free_shipping=True,
            active=True,
        )
