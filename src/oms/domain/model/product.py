"""Product aggregate.

Products live independently of orders. They have their own lifecycle:
prices change, products are added and removed from the catalog.
Variants (size, colour...) belong to their product and are only
reachable through it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum

from oms.domain.exceptions import EntityNotFoundError, ValidationError


class OutOfStockPolicy(Enum):
    DENY = "deny"
    ALLOW = "allow"
    DEFAULT = "default"  # use the shop-wide setting


@dataclass
class Variant:
    id: int
    product_id: int
    reference: str = ""
    price_impact: Decimal = Decimal("0")
    weight_impact: Decimal = Decimal("0")
    minimal_quantity: int = 1


@dataclass
class Product:
    """A product in the catalog.

    ``price`` is expressed tax excluded in the shop default currency;
    ``tax_rate`` is a percentage (``Decimal("20")`` for 20 %).
    """

    id: int
    name: str
    price: Decimal
    tax_rate: Decimal = Decimal("0")
    minimal_quantity: int = 1
    out_of_stock: OutOfStockPolicy = OutOfStockPolicy.DEFAULT
    weight: Decimal = Decimal("0")
    active: bool = True
    available_for_order: bool = True
    variants: list[Variant] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.price < 0:
            raise ValidationError("Product price cannot be negative")
        if self.minimal_quantity < 1:
            raise ValidationError("Minimal quantity must be at least 1")

    def get_variant(self, variant_id: int) -> Variant:
        for variant in self.variants:
            if variant.id == variant_id:
                return variant
        raise EntityNotFoundError(
            f"Variant #{variant_id} not found for product #{self.id}"
        )

    def minimal_quantity_for(self, variant: Variant | None) -> int:
        """Variant minimum wins over the product minimum."""
        if variant is not None:
            return variant.minimal_quantity
        return self.minimal_quantity

    def is_available_when_out_of_stock(self, shop_allows: bool) -> bool:
        if self.out_of_stock is OutOfStockPolicy.DEFAULT:
            return shop_allows
        return self.out_of_stock is OutOfStockPolicy.ALLOW

    @property
    def has_variants(self) -> bool:
        return bool(self.variants)
