"""Cart aggregate: the working set behind an order's prices.

An order keeps the cart it was placed from.  Editing the order edits
that cart first; prices and totals are then read back from it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum

from oms.domain.model.product import Product, Variant
from oms.domain.model.value_objects import TaxedAmount


class QuantityUpdate(Enum):
    BELOW_MINIMUM = -1
    UNAVAILABLE = 0
    UPDATED = 1


@dataclass
class CartLine:
    product_id: int
    variant_id: int | None
    quantity: int

    def matches(self, product_id: int, variant_id: int | None) -> bool:
        """Same product, and same variant when one is asked for."""
        if self.product_id != product_id:
            return False
        return variant_id is None or self.variant_id == variant_id


@dataclass(frozen=True)
class PriceOverride:
    """Unit price forced for one product/variant of one cart."""

    product_id: int
    variant_id: int | None
    price: TaxedAmount


@dataclass(frozen=True)
class CartProduct:
    """Priced view of a cart line, as produced by ``CartPricing``."""

    product_id: int
    variant_id: int | None
    name: str
    quantity: int
    unit_price: TaxedAmount  # with reductions, unrounded
    total: TaxedAmount
    tax_rate: Decimal
    unit_weight: Decimal

    @property
    def weight(self) -> Decimal:
        return self.unit_weight * self.quantity


@dataclass
class Cart:
    id: int
    order_id: int | None
    currency: str
    customer_id: int
    carrier_id: int
    address_delivery_id: int | None = None
    shop_id: int = 1
    lines: list[CartLine] = field(default_factory=list)
    price_overrides: list[PriceOverride] = field(default_factory=list)
    discount_rule_ids: list[int] = field(default_factory=list)
    gift_wrapping: bool = False
    computing_precision: int = 2

    # --- Quantities -----------------------------------------------------------

    def find_line(self, product_id: int, variant_id: int | None) -> CartLine | None:
        for line in self.lines:
            if line.matches(product_id, variant_id):
                return line
        return None

    def increase_quantity(
        self,
        product: Product,
        variant: Variant | None,
        quantity: int,
        available_quantity: int | None = None,
    ) -> QuantityUpdate:
        """Add *quantity* units of a product (or one of its variants).

        Stock is only checked when ``available_quantity`` is given; the
        cart's own quantity counts against it.
        """
        if quantity <= 0 or not product.active or not product.available_for_order:
            return QuantityUpdate.UNAVAILABLE

        variant_id = variant.id if variant is not None else None
        line = self._find_exact_line(product.id, variant_id)
        new_quantity = quantity + (line.quantity if line is not None else 0)

        if new_quantity < product.minimal_quantity_for(variant):
            return QuantityUpdate.BELOW_MINIMUM
        if available_quantity is not None and new_quantity > available_quantity:
            return QuantityUpdate.UNAVAILABLE

        if line is None:
            self.lines.append(CartLine(product.id, variant_id, new_quantity))
        else:
            line.quantity = new_quantity
        return QuantityUpdate.UPDATED

    # --- Prices ---------------------------------------------------------------

    def set_price_override(
        self, product_id: int, variant_id: int | None, price: TaxedAmount
    ) -> None:
        self.price_overrides = [
            o for o in self.price_overrides
            if (o.product_id, o.variant_id) != (product_id, variant_id)
        ]
        self.price_overrides.append(PriceOverride(product_id, variant_id, price))

    def price_override_for(
        self, product_id: int, variant_id: int | None
    ) -> PriceOverride | None:
        for override in self.price_overrides:
            if (override.product_id, override.variant_id) == (product_id, variant_id):
                return override
        return None

    # --- Discounts ------------------------------------------------------------

    def add_discount_rule(self, rule_id: int) -> None:
        if rule_id not in self.discount_rule_ids:
            self.discount_rule_ids.append(rule_id)

    # --- Internal helpers -----------------------------------------------------

    def _find_exact_line(self, product_id: int, variant_id: int | None) -> CartLine | None:
        for line in self.lines:
            if (line.product_id, line.variant_id) == (product_id, variant_id):
                return line
        return None
