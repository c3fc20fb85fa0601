"""Invoice aggregate and the carrier shipment attached to it."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal

from oms.domain.model.shipping import TaxComputationMethod
from oms.domain.model.value_objects import DEFAULT_CURRENCY, Money, TaxedAmount


def _zero() -> TaxedAmount:
    return TaxedAmount.zero(DEFAULT_CURRENCY)


@dataclass
class Invoice:
    """A billing document covering part of an order's lines.

    Totals are computed from scratch when the invoice is created and only
    ever incremented afterwards (``add_products``).
    """

    id: int | None
    order_id: int
    number: int
    products: TaxedAmount = field(default_factory=_zero)
    shipping: TaxedAmount = field(default_factory=_zero)
    wrapping: TaxedAmount = field(default_factory=_zero)
    paid: TaxedAmount = field(default_factory=_zero)
    shipping_tax_computation_method: TaxComputationMethod = TaxComputationMethod.COMBINE
    carrier_taxes: list[Money] = field(default_factory=list)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def add_products(self, paid: TaxedAmount, products: TaxedAmount) -> None:
        """Increase totals by lines added after the invoice was issued."""
        self.paid = self.paid + paid
        self.products = self.products + products

    def formatted_number(self, prefix: str) -> str:
        return f"{prefix}{self.number:06d}"


@dataclass
class CarrierShipment:
    """Carrier, weight and shipping cost for the parcel of one invoice."""

    id: int | None
    order_id: int
    carrier_id: int
    invoice_id: int | None
    weight: Decimal
    shipping_cost: TaxedAmount
