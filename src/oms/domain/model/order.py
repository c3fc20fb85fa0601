"""Order aggregate: the core of the domain.

The Order is an aggregate root that owns its lines and the discounts
applied to it.  Invoices and carrier shipments are separate aggregates
referenced by id.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum

from oms.domain.exceptions import ValidationError
from oms.domain.model.cart import CartProduct
from oms.domain.model.pricing import PricingContext
from oms.domain.model.shipping import TaxCalculator
from oms.domain.model.value_objects import Money, Quantity, TaxedAmount


class OrderState(Enum):
    AWAITING_PAYMENT = "AWAITING_PAYMENT"
    PAYMENT_ACCEPTED = "PAYMENT_ACCEPTED"
    PAYMENT_ERROR = "PAYMENT_ERROR"
    PROCESSING = "PROCESSING"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"
    REFUNDED = "REFUNDED"

    @property
    def is_shipped(self) -> bool:
        return self in (OrderState.SHIPPED, OrderState.DELIVERED)

    @property
    def reserves_stock(self) -> bool:
        """Lines created in this state take their quantity out of stock."""
        return self not in (OrderState.CANCELLED, OrderState.PAYMENT_ERROR)


@dataclass
class OrderLine:
    """One product/variant sold within an order, optionally on an invoice."""

    id: int | None
    product_id: int
    variant_id: int | None
    product_name: str
    quantity: Quantity
    unit_price: TaxedAmount
    total_price: TaxedAmount
    tax_rate: Decimal = Decimal("0")
    invoice_id: int | None = None
    unit_weight: Decimal = Decimal("0")
    unit_tax_amount: Money | None = None
    total_tax_amount: Money | None = None

    @staticmethod
    def from_cart_product(product: CartProduct, invoice_id: int | None) -> OrderLine:
        return OrderLine(
            id=None,
            product_id=product.product_id,
            variant_id=product.variant_id,
            product_name=product.name,
            quantity=Quantity(product.quantity),
            unit_price=product.unit_price,
            total_price=product.total,
            tax_rate=product.tax_rate,
            invoice_id=invoice_id,
            unit_weight=product.unit_weight,
        )

    def matches(self, product_id: int, variant_id: int | None) -> bool:
        if self.product_id != product_id:
            return False
        return variant_id is None or self.variant_id == variant_id

    @property
    def weight(self) -> Decimal:
        return self.unit_weight * self.quantity.value

    def reprice(self, unit_price: TaxedAmount, context: PricingContext) -> None:
        """Apply a new unit price and recompute totals for this line's quantity."""
        qty = self.quantity.value
        self.unit_price = unit_price
        self.total_price = TaxedAmount(
            context.line_total(unit_price.tax_excl, qty),
            context.line_total(unit_price.tax_incl, qty),
        )

    def update_tax_amount(self, context: PricingContext) -> None:
        calculator = TaxCalculator.single(self.tax_rate)
        unit_tax = calculator.total_tax(self.unit_price.tax_excl)
        self.unit_tax_amount = unit_tax
        self.total_tax_amount = context.line_total(unit_tax, self.quantity.value)


@dataclass
class OrderDiscount:
    rule_id: int
    name: str
    value: TaxedAmount
    free_shipping: bool = False
    invoice_id: int | None = None


@dataclass
class OrderTotals:
    products: TaxedAmount
    shipping: TaxedAmount
    wrapping: TaxedAmount
    discounts: TaxedAmount
    paid: TaxedAmount

    @staticmethod
    def zero(currency: str) -> OrderTotals:
        return OrderTotals(
            products=TaxedAmount.zero(currency),
            shipping=TaxedAmount.zero(currency),
            wrapping=TaxedAmount.zero(currency),
            discounts=TaxedAmount.zero(currency),
            paid=TaxedAmount.zero(currency),
        )


@dataclass
class Order:
    """Aggregate root for placed orders.

    ``conversion_rate`` converts shop default currency amounts into
    ``currency`` and is frozen at order placement.
    """

    id: int | None
    customer_id: int
    cart_id: int
    carrier_id: int
    currency: str
    conversion_rate: Decimal = Decimal("1")
    state: OrderState = OrderState.AWAITING_PAYMENT
    address_delivery_id: int | None = None
    address_invoice_id: int | None = None
    lines: list[OrderLine] = field(default_factory=list)
    discounts: list[OrderDiscount] = field(default_factory=list)
    invoice_ids: list[int] = field(default_factory=list)
    totals: OrderTotals | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self) -> None:
        if self.totals is None:
            self.totals = OrderTotals.zero(self.currency)

    # --- Queries --------------------------------------------------------------

    @property
    def has_invoice(self) -> bool:
        return bool(self.invoice_ids)

    @property
    def has_been_shipped(self) -> bool:
        return self.state.is_shipped

    def tax_address_id(self, address_type: str) -> int | None:
        """Address that drives taxes: ``"invoice"`` or ``"delivery"``."""
        if address_type == "delivery":
            return self.address_delivery_id
        if address_type == "invoice":
            return self.address_invoice_id
        raise ValidationError(f"Unknown tax address type '{address_type}'")

    def lines_for(self, product_id: int, variant_id: int | None) -> list[OrderLine]:
        return [line for line in self.lines if line.matches(product_id, variant_id)]

    def lines_on_invoice(self, invoice_id: int | None) -> list[OrderLine]:
        return [line for line in self.lines if line.invoice_id == invoice_id]

    # --- Mutations ------------------------------------------------------------

    def add_line(self, line: OrderLine) -> None:
        if line.unit_price.currency != self.currency:
            raise ValidationError(
                f"Line currency {line.unit_price.currency} does not match "
                f"order currency {self.currency}"
            )
        self.lines.append(line)

    def attach_invoice(self, invoice_id: int) -> None:
        if invoice_id not in self.invoice_ids:
            self.invoice_ids.append(invoice_id)

    def add_discount(self, discount: OrderDiscount) -> None:
        self.discounts.append(discount)
