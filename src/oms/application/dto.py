"""Data Transfer Objects: plain containers that cross layer boundaries.

DTOs carry data between the CLI and application layers without
exposing domain internals to the outside world.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class AddProductToOrderCommand:
    """Input: add a product (or one of its variants) to a placed order.

    Unit prices, when given, are in the order currency and replace the
    catalogue price for this order only.
    """

    order_id: int
    product_id: int
    quantity: int
    variant_id: int | None = None
    unit_price_tax_incl: Decimal | None = None
    unit_price_tax_excl: Decimal | None = None
    invoice_id: int | None = None
    free_shipping: bool = False


@dataclass(frozen=True)
class OrderLineDTO:
    """Output: a single order line as displayed to the user."""

    id: int
    product_name: str
    quantity: int
    unit_price_tax_excl: str  # formatted, e.g. "15.00 EUR"
    unit_price_tax_incl: str
    total_tax_excl: str
    total_tax_incl: str
    invoice_id: int | None


@dataclass(frozen=True)
class InvoiceDTO:
    id: int
    number: str  # formatted, e.g. "#IN000001"
    products_tax_incl: str
    paid_tax_excl: str
    paid_tax_incl: str


@dataclass(frozen=True)
class OrderDTO:
    """Output: a complete order as displayed to the user."""

    id: int
    customer_id: int
    state: str
    currency: str
    lines: list[OrderLineDTO]
    invoices: list[InvoiceDTO]
    total_products: str
    total_shipping: str
    total_discounts: str
    total_paid_tax_excl: str
    total_paid_tax_incl: str
    created_at: str


@dataclass(frozen=True)
class StockLineDTO:
    product_id: int
    product_name: str
    variant_id: int | None
    physical: int
    reserved: int
    available: int
