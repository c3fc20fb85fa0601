"""Unit tests for the Order aggregate."""

from decimal import Decimal

import pytest

from oms.domain.exceptions import ValidationError
from oms.domain.model.order import OrderState
from oms.domain.model.pricing import PricingContext, RoundingPolicy
from oms.domain.model.value_objects import Money, Quantity, TaxedAmount
from tests.builders import money, new_order, taxed, widget_line


class TestOrderState:

    def test_shipped_states(self):
        assert OrderState.SHIPPED.is_shipped
        assert OrderState.DELIVERED.is_shipped
        assert not OrderState.PAYMENT_ACCEPTED.is_shipped

    def test_states_not_reserving_stock(self):
        assert not OrderState.CANCELLED.reserves_stock
        assert not OrderState.PAYMENT_ERROR.reserves_stock
        assert OrderState.AWAITING_PAYMENT.reserves_stock


class TestOrder:

    def test_new_order_has_zero_totals(self):
        order = new_order()
        assert order.totals.paid == TaxedAmount.zero("EUR")
        assert not order.has_invoice

    def test_tax_address(self):
        order = new_order()
        order.address_delivery_id = 7
        assert order.tax_address_id("delivery") == 7
        assert order.tax_address_id("invoice") == 1

    def test_unknown_tax_address_type(self):
        with pytest.raises(ValidationError, match="Unknown tax address type"):
            new_order().tax_address_id("billing")

    def test_line_in_other_currency_rejected(self):
        line = widget_line()
        line.unit_price = TaxedAmount(Money.of("1", "USD"), Money.of("1", "USD"))

        with pytest.raises(ValidationError, match="does not match order currency"):
            new_order().add_line(line)

    def test_attach_invoice_once(self):
        order = new_order()
        order.attach_invoice(3)
        order.attach_invoice(3)
        assert order.invoice_ids == [3]
        assert order.has_invoice

    def test_lines_on_invoice(self):
        order = new_order(lines=[widget_line(invoice_id=1), widget_line(invoice_id=2)])
        assert len(order.lines_on_invoice(2)) == 1


class TestOrderLine:

    def test_reprice_uses_own_quantity(self):
        line = widget_line(quantity=3)
        line.reprice(taxed("15.00", "18.00"), PricingContext())

        assert line.unit_price == taxed("15.00", "18.00")
        assert line.total_price == taxed("45.00", "54.00")
        assert line.quantity == Quantity(3)

    def test_tax_amount_item_rounding(self):
        line = widget_line(quantity=3)
        line.unit_price = taxed("3.335", "4.002")

        line.update_tax_amount(PricingContext(rounding_policy=RoundingPolicy.ITEM))

        assert line.unit_tax_amount.amount == Decimal("0.66700")
        assert line.total_tax_amount == money("2.01")

    def test_tax_amount_total_rounding(self):
        line = widget_line(quantity=3)
        line.unit_price = taxed("3.335", "4.002")

        line.update_tax_amount(PricingContext(rounding_policy=RoundingPolicy.TOTAL))

        assert line.total_tax_amount.amount == Decimal("2.00100")

    def test_weight(self):
        assert widget_line(quantity=4).weight == Decimal("4")
