"""Pre-conditions for editing a placed order.

Each guard returns ``Success(None)`` or ``Failure(error)`` instead of
raising, so callers can compose them with early returns and decide
where the failure surfaces.  Guards never mutate anything.
"""

from __future__ import annotations

from returns.result import Failure, Result, Success

from oms.domain.exceptions import (
    DomainException,
    DuplicateProductInInvoiceError,
    DuplicateProductInOrderError,
    OrderAlreadyShippedError,
    ProductOutOfStockError,
)
from oms.domain.model.invoice import Invoice
from oms.domain.model.order import Order
from oms.domain.model.product import Product
from oms.domain.service.stock_service import StockService

GuardResult = Result[None, DomainException]

OK: GuardResult = Success(None)


def ensure_order_not_shipped(order: Order) -> GuardResult:
    if order.has_been_shipped:
        return Failure(OrderAlreadyShippedError("Cannot add product to shipped order."))
    return OK


def ensure_product_not_duplicate(
    order: Order,
    product_id: int,
    variant_id: int | None,
    target_invoice: Invoice | None,
    invoice_prefix: str,
) -> GuardResult:
    """A product may appear once per invoice, and once at all without invoices."""
    matching = order.lines_for(product_id, variant_id)
    if not matching:
        return OK

    # Without a target invoice a new one gets created, unless the order
    # has no invoicing at all.
    if target_invoice is None:
        if not order.has_invoice:
            return Failure(DuplicateProductInOrderError(
                "You cannot add this product in the order as it is already present"
            ))
        return OK

    if target_invoice.id in {line.invoice_id for line in matching}:
        return Failure(DuplicateProductInInvoiceError(
            target_invoice.formatted_number(invoice_prefix)
        ))
    return OK


def ensure_product_in_stock(
    product: Product,
    variant_id: int | None,
    quantity: int,
    stock: StockService,
) -> GuardResult:
    # The order's own quantities were taken out of stock when it was
    # placed, so the available quantity already excludes them.
    if stock.is_available_when_out_of_stock(product):
        return OK

    available = stock.available_quantity(product.id, variant_id)
    if available < quantity:
        return Failure(ProductOutOfStockError(
            f'Product with id "{product.id}" is out of stock, '
            f"thus cannot be added to cart"
        ))
    return OK
