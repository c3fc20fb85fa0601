"""Domain service: Order total recalculation.

Recomputes the order's aggregate totals from its lines, discounts and
carrier shipments after an edit.  Invoices are left alone: their totals
are maintained incrementally by the edit itself.
"""

from __future__ import annotations

from decimal import Decimal

from oms.domain.model.cart import Cart
from oms.domain.model.order import Order, OrderTotals
from oms.domain.model.pricing import PricingContext
from oms.domain.model.value_objects import TaxedAmount
from oms.domain.repository.shipment_repository import ShipmentRepository
from oms.domain.service.cart_pricing import CartPricing, TotalScope


class OrderTotalsUpdater:

    def __init__(self, shipment_repo: ShipmentRepository, pricing: CartPricing) -> None:
        self._shipment_repo = shipment_repo
        self._pricing = pricing

    def update(
        self,
        order: Order,
        cart: Cart,
        invoice_id: int | None,
        context: PricingContext,
    ) -> None:
        """Refresh ``order.totals``; refresh the weight of the touched invoice's parcel."""
        products = TaxedAmount.zero(order.currency)
        for line in order.lines:
            products = products + line.total_price

        discounts = TaxedAmount.zero(order.currency)
        for discount in order.discounts:
            discounts = discounts + discount.value

        shipments = self._shipment_repo.list_for_order(order.id)
        if shipments:
            shipping = TaxedAmount.zero(order.currency)
            for shipment in shipments:
                shipping = shipping + shipment.shipping_cost
        else:
            shipping = self._pricing.shipping_costs(cart, context)

        wrapping = TaxedAmount(
            self._pricing.order_total(cart, context, False, TotalScope.ONLY_WRAPPING),
            self._pricing.order_total(cart, context, True, TotalScope.ONLY_WRAPPING),
        )

        gross = products + shipping + wrapping
        paid = TaxedAmount(
            context.round(gross.tax_excl.subtract_floored(discounts.tax_excl)),
            context.round(gross.tax_incl.subtract_floored(discounts.tax_incl)),
        )
        order.totals = OrderTotals(
            products=products,
            shipping=shipping,
            wrapping=wrapping,
            discounts=discounts,
            paid=paid,
        )

        if invoice_id is not None:
            self._refresh_shipment_weight(order, invoice_id)

    def _refresh_shipment_weight(self, order: Order, invoice_id: int) -> None:
        shipment = self._shipment_repo.get_by_invoice_id(invoice_id)
        if shipment is None:
            return
        shipment.weight = sum(
            (line.weight for line in order.lines_on_invoice(invoice_id)), Decimal("0")
        )
        self._shipment_repo.save(shipment)
