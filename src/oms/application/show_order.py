"""Application service: Show Order use case (query)."""

from __future__ import annotations

from oms.application.dto import InvoiceDTO, OrderDTO, OrderLineDTO
from oms.domain.exceptions import EntityNotFoundError
from oms.domain.model.invoice import Invoice
from oms.domain.model.order import Order
from oms.domain.repository.invoice_repository import InvoiceRepository
from oms.domain.repository.order_repository import OrderRepository


class ShowOrderHandler:

    def __init__(
        self,
        order_repo: OrderRepository,
        invoice_repo: InvoiceRepository,
        invoice_prefix: str = "#IN",
    ) -> None:
        self._order_repo = order_repo
        self._invoice_repo = invoice_repo
        self._invoice_prefix = invoice_prefix

    def handle(self, order_id: int) -> OrderDTO:
        order = self._order_repo.get_by_id(order_id)
        if order is None:
            raise EntityNotFoundError(f"Order #{order_id} not found")
        invoices = self._invoice_repo.list_for_order(order_id)
        return self._to_dto(order, invoices)

    def _to_dto(self, order: Order, invoices: list[Invoice]) -> OrderDTO:
        totals = order.totals
        return OrderDTO(
            id=order.id,  # type: ignore[arg-type]
            customer_id=order.customer_id,
            state=order.state.value,
            currency=order.currency,
            lines=[
                OrderLineDTO(
                    id=line.id,  # type: ignore[arg-type]
                    product_name=line.product_name,
                    quantity=line.quantity.value,
                    unit_price_tax_excl=str(line.unit_price.tax_excl),
                    unit_price_tax_incl=str(line.unit_price.tax_incl),
                    total_tax_excl=str(line.total_price.tax_excl),
                    total_tax_incl=str(line.total_price.tax_incl),
                    invoice_id=line.invoice_id,
                )
                for line in order.lines
            ],
            invoices=[
                InvoiceDTO(
                    id=invoice.id,  # type: ignore[arg-type]
                    number=invoice.formatted_number(self._invoice_prefix),
                    products_tax_incl=str(invoice.products.tax_incl),
                    paid_tax_excl=str(invoice.paid.tax_excl),
                    paid_tax_incl=str(invoice.paid.tax_incl),
                )
                for invoice in invoices
            ],
            total_products=str(totals.products.tax_incl),
            total_shipping=str(totals.shipping.tax_incl),
            total_discounts=str(totals.discounts.tax_incl),
            total_paid_tax_excl=str(totals.paid.tax_excl),
            total_paid_tax_incl=str(totals.paid.tax_incl),
            created_at=order.created_at.strftime("%Y-%m-%d %H:%M UTC"),
        )
