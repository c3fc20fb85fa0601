"""StockLevel aggregate: saleable quantity per product / variant.

There is one row per variant, plus a product-level row (``variant_id``
is None).  For a product with variants, the product-level row is a
derived sum kept up to date by ``StockService.synchronize``.
"""

from __future__ import annotations

from dataclasses import dataclass

from oms.domain.exceptions import ValidationError


@dataclass
class StockLevel:
    """Aggregate root for stock tracking.

    Invariants:
    - ``reserved_quantity`` is never negative
    - ``available_quantity`` only goes below zero for back-orders
    """

    product_id: int
    variant_id: int | None
    physical_quantity: int
    reserved_quantity: int = 0

    @property
    def key(self) -> tuple[int, int | None]:
        return self.product_id, self.variant_id

    @property
    def available_quantity(self) -> int:
        return self.physical_quantity - self.reserved_quantity

    def reserve(self, quantity: int, allow_backorder: bool = False) -> None:
        """Reserve stock for an order line.

        Raises ValidationError if insufficient stock is available and
        back-orders are not allowed.
        """
        if quantity <= 0:
            raise ValidationError("Reservation quantity must be positive")
        if not allow_backorder and quantity > self.available_quantity:
            raise ValidationError(
                f"Insufficient stock for product #{self.product_id} "
                f"(need {quantity}, have {self.available_quantity} available)"
            )
        self.reserved_quantity += quantity

    def set_physical_quantity(self, quantity: int) -> None:
        if quantity < 0:
            raise ValidationError("Physical quantity cannot be negative")
        self.physical_quantity = quantity
