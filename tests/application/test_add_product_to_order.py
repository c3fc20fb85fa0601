"""Integration tests for the AddProductToOrder use case."""

from datetime import timedelta
from decimal import Decimal

import pytest

from oms.application.dto import AddProductToOrderCommand
from oms.domain.exceptions import (
    CartNotFoundError,
    DuplicateProductInInvoiceError,
    DuplicateProductInOrderError,
    EntityNotFoundError,
    IntegrityError,
    MinimumQuantityViolationError,
    OrderAlreadyShippedError,
    ProductOutOfStockError,
    ValidationError,
)
from oms.domain.model.cart import CartLine
from oms.domain.model.discount import FREE_SHIPPING_RULE_NAME
from oms.domain.model.invoice import Invoice
from oms.domain.model.order import OrderState
from oms.domain.model.pricing import PriceRoundMode, RoundingPolicy
from oms.domain.model.product import OutOfStockPolicy, Product
from oms.domain.model.stock import StockLevel
from tests.builders import (
    BULK,
    NOW,
    SHIRT,
    SHIRT_M,
    SHIRT_S,
    WIDGET,
    Shop,
    catalogue,
    money,
    new_cart,
    new_invoice,
    new_order,
    taxed,
    widget_line,
)


def _command(product_id: int = WIDGET, quantity: int = 1, **kwargs) -> AddProductToOrderCommand:
    return AddProductToOrderCommand(order_id=1, product_id=product_id, quantity=quantity, **kwargs)


def _invoiced_shop(**kwargs) -> Shop:
    """Order #1 already invoiced once (#IN000001) with 2 widgets."""
    return Shop(
        order=new_order(lines=[widget_line(2, invoice_id=1)], invoice_ids=[1]),
        cart=new_cart([CartLine(WIDGET, None, 2)]),
        invoices=[new_invoice(1)],
        **kwargs,
    )


class RaisingEventPublisher:

    def publish(self, event) -> None:
        raise RuntimeError("event bus unavailable")


# ── Order without invoices ───────────────────────────────────────────────────


class TestAddProductHappyPath:

    def test_adds_line_with_catalogue_price(self):
        shop = Shop()
        shop.handler().handle(_command(WIDGET, 2))

        order = shop.order()
        assert len(order.lines) == 1
        line = order.lines[0]
        assert line.id is not None
        assert line.product_name == "Widget"
        assert line.quantity.value == 2
        assert line.unit_price == taxed("10.00", "12.00")
        assert line.total_price == taxed("20.00", "24.00")
        assert line.invoice_id is None

    def test_no_invoice_is_created_for_uninvoiced_order(self):
        shop = Shop()
        shop.handler().handle(_command(WIDGET, 2))

        assert shop.invoices.list_for_order(1) == []
        assert shop.shipments.list_for_order(1) == []

    def test_cart_receives_the_quantity(self):
        shop = Shop()
        shop.handler().handle(_command(WIDGET, 2))

        cart = shop.cart()
        assert [(l.product_id, l.variant_id, l.quantity) for l in cart.lines] == [(WIDGET, None, 2)]

    def test_line_tax_amounts(self):
        shop = Shop()
        shop.handler().handle(_command(WIDGET, 2))

        line = shop.order().lines[0]
        assert line.unit_tax_amount == money("2.00")
        assert line.total_tax_amount == money("4.00")

    def test_order_totals_refreshed(self):
        shop = Shop()
        shop.handler().handle(_command(WIDGET, 2))

        totals = shop.order().totals
        assert totals.products == taxed("20.00", "24.00")
        assert totals.shipping == taxed("5.00", "6.00")
        assert totals.paid == taxed("25.00", "30.00")

    def test_stock_reserved(self):
        shop = Shop()
        shop.handler().handle(_command(WIDGET, 2))

        level = shop.stock_levels.get(WIDGET, None)
        assert level.reserved_quantity == 2
        assert level.available_quantity == 98

    def test_cancelled_order_does_not_reserve_stock(self):
        shop = Shop(order=new_order(state=OrderState.CANCELLED))
        shop.handler().handle(_command(WIDGET, 2))

        assert shop.stock_levels.get(WIDGET, None).reserved_quantity == 0
        assert len(shop.order().lines) == 1

    def test_variant_stock_resynchronised(self):
        shop = Shop()
        shop.handler().handle(_command(SHIRT, 2, variant_id=SHIRT_M))

        assert shop.stock_levels.get(SHIRT, SHIRT_M).reserved_quantity == 2
        product_level = shop.stock_levels.get(SHIRT, None)
        assert product_level.physical_quantity == 15
        assert product_level.reserved_quantity == 2

    def test_variant_price_and_name(self):
        shop = Shop()
        shop.handler().handle(_command(SHIRT, 1, variant_id=SHIRT_M))

        line = shop.order().lines[0]
        assert line.product_name == "Shirt - M"
        assert line.variant_id == SHIRT_M
        assert line.unit_price == taxed("22.00", "26.40")

    def test_order_edited_event_published(self):
        shop = Shop()
        shop.handler().handle(_command(WIDGET, 1))

        assert len(shop.events.events) == 1
        event = shop.events.events[0]
        assert event.order_id == 1
        assert event.occurred_at == NOW


# ── Guards ───────────────────────────────────────────────────────────────────


class TestGuards:

    def test_shipped_order_rejected_before_anything_else(self):
        shop = Shop(order=new_order(state=OrderState.SHIPPED))

        # Unknown product: the shipped check must win over the lookup.
        with pytest.raises(OrderAlreadyShippedError, match="shipped order"):
            shop.handler().handle(_command(999, 1))

        assert shop.cart().lines == []
        assert shop.stock_levels.get(WIDGET, None).reserved_quantity == 0

    def test_delivered_order_counts_as_shipped(self):
        shop = Shop(order=new_order(state=OrderState.DELIVERED))

        with pytest.raises(OrderAlreadyShippedError):
            shop.handler().handle(_command(WIDGET, 1))

    def test_duplicate_product_in_uninvoiced_order(self):
        shop = Shop(
            order=new_order(lines=[widget_line(2)]),
            cart=new_cart([CartLine(WIDGET, None, 2)]),
        )

        with pytest.raises(DuplicateProductInOrderError, match="already present"):
            shop.handler().handle(_command(WIDGET, 1))

        assert shop.cart().lines[0].quantity == 2

    def test_duplicate_check_ignores_variant_when_none_requested(self):
        shop = Shop(order=new_order(lines=[widget_line(2)]))
        order = shop.order()
        order.lines[0].product_id = SHIRT
        order.lines[0].variant_id = SHIRT_S
        shop.orders.save(order)

        with pytest.raises(DuplicateProductInOrderError):
            shop.handler().handle(_command(SHIRT, 1))

    def test_same_product_allowed_on_another_invoice(self):
        shop = Shop(
            order=new_order(lines=[widget_line(2, invoice_id=1)], invoice_ids=[1, 2]),
            cart=new_cart([CartLine(WIDGET, None, 2)]),
            invoices=[new_invoice(1), new_invoice(2)],
        )

        shop.handler().handle(_command(WIDGET, 1, invoice_id=2))

        lines = shop.order().lines
        assert sorted(line.invoice_id for line in lines) == [1, 2]

    def test_same_product_rejected_on_same_invoice(self):
        shop = Shop(
            order=new_order(lines=[widget_line(2, invoice_id=1)], invoice_ids=[1, 2]),
            cart=new_cart([CartLine(WIDGET, None, 2)]),
            invoices=[new_invoice(1), new_invoice(2)],
        )

        with pytest.raises(DuplicateProductInInvoiceError) as exc_info:
            shop.handler().handle(_command(WIDGET, 1, invoice_id=1))

        assert exc_info.value.invoice_number == "#IN000001"
        assert "#IN000001" in str(exc_info.value)

    def test_out_of_stock_rejected(self):
        levels = [StockLevel(WIDGET, None, physical_quantity=1)]
        shop = Shop(levels=levels)

        with pytest.raises(ProductOutOfStockError, match='"5" is out of stock'):
            shop.handler().handle(_command(WIDGET, 2))

        assert shop.order().lines == []

    def test_out_of_stock_allowed_by_shop_setting(self):
        levels = [StockLevel(WIDGET, None, physical_quantity=1)]
        shop = Shop(levels=levels, allow_out_of_stock_ordering=True)

        shop.handler().handle(_command(WIDGET, 2))

        assert shop.stock_levels.get(WIDGET, None).available_quantity == -1

    def test_product_policy_overrides_shop_setting(self):
        products = catalogue()
        products[0].out_of_stock = OutOfStockPolicy.DENY
        levels = [StockLevel(WIDGET, None, physical_quantity=0)]
        shop = Shop(products=products, levels=levels, allow_out_of_stock_ordering=True)

        with pytest.raises(ProductOutOfStockError):
            shop.handler().handle(_command(WIDGET, 1))

    def test_unknown_product(self):
        with pytest.raises(EntityNotFoundError, match="Product #999"):
            Shop().handler().handle(_command(999, 1))

    def test_unknown_order(self):
        with pytest.raises(EntityNotFoundError, match="Order #42"):
            Shop().handler().handle(AddProductToOrderCommand(order_id=42, product_id=WIDGET, quantity=1))

    def test_product_with_variants_needs_a_variant(self):
        with pytest.raises(ValidationError, match="has variants"):
            Shop().handler().handle(_command(SHIRT, 1))

    def test_unknown_variant(self):
        with pytest.raises(EntityNotFoundError, match="Variant #99"):
            Shop().handler().handle(_command(SHIRT, 1, variant_id=99))

    def test_missing_cart(self):
        shop = Shop(cart=new_cart())
        cart = shop.cart()
        cart.order_id = 99
        shop.carts.save(cart)

        with pytest.raises(CartNotFoundError, match="cannot be found"):
            shop.handler().handle(_command(WIDGET, 1))

    def test_invoice_of_another_order(self):
        foreign = Invoice(id=3, order_id=2, number=3, created_at=NOW)
        shop = Shop(order=new_order(invoice_ids=[1]), invoices=[new_invoice(1), foreign])

        with pytest.raises(IntegrityError, match="belongs to order #2"):
            shop.handler().handle(_command(WIDGET, 1, invoice_id=3))

    def test_unknown_invoice(self):
        with pytest.raises(EntityNotFoundError, match="Invoice #8"):
            Shop().handler().handle(_command(WIDGET, 1, invoice_id=8))

    @pytest.mark.parametrize("quantity", [0, -2])
    def test_quantity_must_be_positive(self, quantity):
        shop = Shop()

        with pytest.raises(ValidationError, match="Quantity must be positive"):
            shop.handler().handle(_command(WIDGET, quantity))

        assert shop.order().lines == []
        assert shop.cart().lines == []
        assert shop.stock_levels.get(WIDGET, None).reserved_quantity == 0


# ── Minimum quantity ─────────────────────────────────────────────────────────


class TestMinimumQuantity:

    def test_below_minimum_rejected(self):
        shop = Shop()

        with pytest.raises(MinimumQuantityViolationError) as exc_info:
            shop.handler().handle(_command(BULK, 1))

        assert exc_info.value.minimum == 3
        assert str(exc_info.value) == 'Minimum quantity of "3" must be added'

    def test_below_minimum_leaves_cart_and_stock_untouched(self):
        shop = Shop()

        with pytest.raises(MinimumQuantityViolationError):
            shop.handler().handle(_command(BULK, 1))

        assert shop.cart().lines == []
        assert shop.order().lines == []
        assert shop.stock_levels.get(BULK, None).reserved_quantity == 0

    def test_minimum_reached(self):
        shop = Shop()
        shop.handler().handle(_command(BULK, 3))

        assert shop.order().lines[0].quantity.value == 3

    def test_inactive_product_unavailable(self):
        products = catalogue()
        products[0].active = False
        shop = Shop(products=products)

        with pytest.raises(ProductOutOfStockError):
            shop.handler().handle(_command(WIDGET, 1))


# ── Rounding ─────────────────────────────────────────────────────────────────


def _rounding_shop(policy: RoundingPolicy, mode: PriceRoundMode = PriceRoundMode.HALF_UP) -> Shop:
    product = Product(id=11, name="Screw", price=Decimal("3.335"))
    return Shop(
        products=[product],
        levels=[StockLevel(11, None, physical_quantity=100)],
        rounding_policy=policy,
        round_mode=mode,
    )


class TestRounding:

    def test_round_item(self):
        shop = _rounding_shop(RoundingPolicy.ITEM)
        shop.handler().handle(_command(11, 3))

        assert shop.order().lines[0].total_price.tax_excl == money("10.02")

    def test_round_line_half_up(self):
        shop = _rounding_shop(RoundingPolicy.LINE)
        shop.handler().handle(_command(11, 3))

        assert shop.order().lines[0].total_price.tax_excl == money("10.01")

    def test_round_line_half_even(self):
        shop = _rounding_shop(RoundingPolicy.LINE, PriceRoundMode.HALF_EVEN)
        shop.handler().handle(_command(11, 3))

        assert shop.order().lines[0].total_price.tax_excl == money("10.00")

    def test_round_total_defers_rounding(self):
        shop = _rounding_shop(RoundingPolicy.TOTAL)
        shop.handler().handle(_command(11, 3))

        line = shop.order().lines[0]
        assert line.total_price.tax_excl.amount == Decimal("10.005")
        assert line.unit_price.tax_excl.amount == Decimal("3.335")

    def test_cart_precision_wins(self):
        shop = _rounding_shop(RoundingPolicy.LINE)
        cart = shop.cart()
        cart.computing_precision = 1
        shop.carts.save(cart)

        shop.handler().handle(_command(11, 3))

        assert shop.order().lines[0].total_price.tax_excl == money("10.0")


# ── Price override ───────────────────────────────────────────────────────────


class TestPriceOverride:

    def test_tax_incl_price_derives_tax_excl(self):
        shop = Shop()
        shop.handler().handle(_command(WIDGET, 1, unit_price_tax_incl=Decimal("18.00")))

        assert shop.order().lines[0].unit_price == taxed("15.00", "18.00")
        assert shop.cart().price_override_for(WIDGET, None) is not None

    def test_tax_excl_price_derives_tax_incl(self):
        shop = Shop()
        shop.handler().handle(_command(WIDGET, 2, unit_price_tax_excl=Decimal("15.00")))

        line = shop.order().lines[0]
        assert line.unit_price == taxed("15.00", "18.00")
        assert line.total_price == taxed("30.00", "36.00")

    def test_lines_of_same_product_follow_new_price(self):
        shop = _invoiced_shop()
        shop.handler().handle(_command(WIDGET, 1, unit_price_tax_excl=Decimal("15.00")))

        old, new = sorted(shop.order().lines, key=lambda l: l.id)
        assert new.invoice_id == 2
        assert old.invoice_id == 1
        assert old.unit_price == taxed("15.00", "18.00")
        assert old.total_price == taxed("30.00", "36.00")
        assert old.total_tax_amount == money("6.00")


# ── Invoices ─────────────────────────────────────────────────────────────────


class TestInvoices:

    def test_new_invoice_created_for_invoiced_order(self):
        shop = _invoiced_shop()
        shop.handler().handle(_command(SHIRT, 1, variant_id=SHIRT_S))

        invoice = shop.invoices.get_by_id(2)
        assert invoice.order_id == 1
        assert invoice.number == 2
        assert invoice.formatted_number("#IN") == "#IN000002"
        assert invoice.products == taxed("20.00", "24.00")
        assert invoice.shipping == taxed("5.00", "6.00")
        assert invoice.paid == taxed("25.00", "30.00")
        assert invoice.carrier_taxes == [money("1.00")]
        assert shop.order().invoice_ids == [1, 2]

    def test_new_invoice_gets_a_shipment(self):
        shop = _invoiced_shop()
        shop.handler().handle(_command(SHIRT, 1, variant_id=SHIRT_S))

        shipment = shop.shipments.get_by_invoice_id(2)
        assert shipment.carrier_id == 1
        assert shipment.shipping_cost == taxed("5.00", "6.00")
        assert shipment.weight == Decimal("0.5")

    def test_invoice_numbering_respects_start_number(self):
        shop = _invoiced_shop(invoice_start_number=100)
        shop.handler().handle(_command(SHIRT, 1, variant_id=SHIRT_S))

        assert shop.invoices.get_by_id(2).number == 100

    def test_existing_invoice_increased(self):
        shop = _invoiced_shop()
        shop.handler().handle(_command(BULK, 3, invoice_id=1))

        invoice = shop.invoices.get_by_id(1)
        assert invoice.products == taxed("50.00", "54.00")
        assert invoice.paid == taxed("55.00", "60.00")
        assert invoice.shipping == taxed("5.00", "6.00")
        assert len(shop.invoices.list_for_order(1)) == 1

        line = [l for l in shop.order().lines if l.product_id == BULK][0]
        assert line.invoice_id == 1

    def test_existing_invoice_shipment_weight_refreshed(self):
        shop = _invoiced_shop()
        shop.handler().handle(_command(SHIRT, 2, variant_id=SHIRT_S, invoice_id=1))

        # 2 widgets at 1 + 2 shirts at 0.5
        assert shop.shipments.get_by_invoice_id(1).weight == Decimal("3.0")

    def test_order_totals_include_every_shipment(self):
        shop = _invoiced_shop()
        shop.handler().handle(_command(SHIRT, 1, variant_id=SHIRT_S))

        totals = shop.order().totals
        assert totals.products == taxed("40.00", "48.00")
        assert totals.shipping == taxed("10.00", "12.00")
        assert totals.paid == taxed("50.00", "60.00")


class TestFreeShipping:

    def test_creates_single_use_rule(self):
        shop = _invoiced_shop()
        shop.handler().handle(_command(SHIRT, 1, variant_id=SHIRT_S, free_shipping=True))

        rules = shop.discounts.list_all()
        assert len(rules) == 1
        rule = rules[0]
        assert rule.name == FREE_SHIPPING_RULE_NAME
        assert rule.free_shipping is True
        assert rule.customer_id == 1
        assert rule.reduction_currency == "EUR"
        assert rule.minimum_amount_currency == "EUR"
        assert rule.quantity == 1
        assert rule.quantity_per_user == 1
        assert rule.valid_from == NOW
        assert rule.valid_to - rule.valid_from == timedelta(hours=24)

    def test_rule_attached_to_cart_and_order(self):
        shop = _invoiced_shop()
        shop.handler().handle(_command(SHIRT, 1, variant_id=SHIRT_S, free_shipping=True))

        rule = shop.discounts.list_all()[0]
        assert shop.cart().discount_rule_ids == [rule.id]
        discounts = shop.order().discounts
        assert len(discounts) == 1
        assert discounts[0].rule_id == rule.id
        assert discounts[0].free_shipping is True
        assert discounts[0].value == taxed("5.00", "6.00")

    def test_invoice_paid_without_shipping(self):
        shop = _invoiced_shop()
        shop.handler().handle(_command(SHIRT, 1, variant_id=SHIRT_S, free_shipping=True))

        invoice = shop.invoices.get_by_id(2)
        assert invoice.paid == taxed("20.00", "24.00")
        assert invoice.shipping == taxed("5.00", "6.00")
        assert shop.order().totals.paid == taxed("45.00", "54.00")

    def test_ignored_when_order_not_invoiced(self):
        shop = Shop()
        shop.handler().handle(_command(WIDGET, 1, free_shipping=True))

        assert shop.discounts.list_all() == []

    def test_ignored_when_targeting_existing_invoice(self):
        shop = _invoiced_shop()
        shop.handler().handle(_command(BULK, 3, invoice_id=1, free_shipping=True))

        assert shop.discounts.list_all() == []


# ── Pricing context ──────────────────────────────────────────────────────────


class TestPricingContextUntouched:

    def test_after_success(self):
        shop = Shop()
        handler = shop.handler()
        before = handler.base_context

        handler.handle(_command(WIDGET, 1))

        assert handler.base_context == before
        assert handler.base_context.cart_id is None
        assert handler.base_context.customer_id is None

    def test_after_guard_failure(self):
        shop = Shop(order=new_order(state=OrderState.SHIPPED))
        handler = shop.handler()
        before = handler.base_context

        with pytest.raises(OrderAlreadyShippedError):
            handler.handle(_command(WIDGET, 1))

        assert handler.base_context == before

    def test_after_failure_mid_workflow(self):
        shop = Shop()
        handler = shop.handler(events=RaisingEventPublisher())
        before = handler.base_context

        with pytest.raises(RuntimeError):
            handler.handle(_command(WIDGET, 1))

        assert handler.base_context == before


# ── Rollback ─────────────────────────────────────────────────────────────────


class TestRollback:

    def _fail_new_invoice(self) -> Shop:
        shop = _invoiced_shop()
        handler = shop.handler(events=RaisingEventPublisher())
        with pytest.raises(RuntimeError, match="event bus unavailable"):
            handler.handle(_command(SHIRT, 1, variant_id=SHIRT_S, free_shipping=True))
        return shop

    def test_new_invoice_and_shipment_removed(self):
        shop = self._fail_new_invoice()

        assert [i.id for i in shop.invoices.list_for_order(1)] == [1]
        assert [s.invoice_id for s in shop.shipments.list_for_order(1)] == [1]

    def test_free_shipping_rule_removed(self):
        shop = self._fail_new_invoice()

        assert shop.discounts.list_all() == []
        assert shop.cart().discount_rule_ids == []

    def test_order_and_cart_restored(self):
        shop = self._fail_new_invoice()

        order = shop.order()
        assert len(order.lines) == 1
        assert order.invoice_ids == [1]
        assert order.discounts == []
        assert [(l.product_id, l.quantity) for l in shop.cart().lines] == [(WIDGET, 2)]

    def test_stock_reservation_released(self):
        shop = self._fail_new_invoice()

        assert shop.stock_levels.get(SHIRT, SHIRT_S).reserved_quantity == 0
        assert shop.stock_levels.get(SHIRT, None).reserved_quantity == 0

    def test_updated_invoice_restored(self):
        shop = _invoiced_shop()
        handler = shop.handler(events=RaisingEventPublisher())

        with pytest.raises(RuntimeError):
            handler.handle(_command(BULK, 3, invoice_id=1))

        assert shop.invoices.get_by_id(1).paid == taxed("25.00", "30.00")

    def test_updated_invoice_shipment_weight_restored(self):
        shop = _invoiced_shop()
        handler = shop.handler(events=RaisingEventPublisher())

        with pytest.raises(RuntimeError):
            handler.handle(_command(SHIRT, 2, variant_id=SHIRT_S, invoice_id=1))

        assert shop.shipments.get_by_invoice_id(1).weight == Decimal("2")

    def test_rollback_is_logged(self, caplog):
        self._fail_new_invoice()

        assert "Rolled back edit of order #1" in caplog.text
