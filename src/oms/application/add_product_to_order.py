"""Application service: Add Product To Order use case.

Adds a product line to an order that has already been placed:

1. Guards: order not shipped, no duplicate line, enough stock.
2. Cart: apply the manual price (if any) and add the quantity.
3. Invoice: none when the order is not invoiced yet, otherwise
   increase the targeted invoice or issue a new one.
4. Order line: create it, align lines of the same product, reserve and
   resynchronise stock, compute its taxes, refresh the order totals.
5. Publish ``OrderEdited``.

Every step that writes to storage registers how to undo itself, so a
failure half-way leaves no orphan invoice or rule, no stock reservation,
and no stale invoice total or parcel weight.
"""

from __future__ import annotations

import copy
import logging
from contextlib import ExitStack
from datetime import datetime, timezone
from typing import Callable

from returns.result import Failure

from oms.application.dto import AddProductToOrderCommand
from oms.domain.exceptions import (
    CartNotFoundError,
    EntityNotFoundError,
    IntegrityError,
    MinimumQuantityViolationError,
    ProductOutOfStockError,
    ValidationError,
)
from oms.domain.model.cart import Cart, CartProduct, QuantityUpdate
from oms.domain.model.discount import DiscountRule
from oms.domain.model.events import OrderEdited
from oms.domain.model.invoice import CarrierShipment, Invoice
from oms.domain.model.order import Order, OrderDiscount, OrderLine
from oms.domain.model.pricing import PricingContext
from oms.domain.model.product import Product, Variant
from oms.domain.model.value_objects import Quantity, TaxedAmount
from oms.domain.repository.cart_repository import CartRepository
from oms.domain.repository.carrier_repository import AddressRepository, CarrierRepository
from oms.domain.repository.discount_rule_repository import DiscountRuleRepository
from oms.domain.repository.invoice_repository import InvoiceRepository
from oms.domain.repository.order_repository import OrderRepository
from oms.domain.repository.product_repository import ProductRepository
from oms.domain.repository.shipment_repository import ShipmentRepository
from oms.domain.service.cart_pricing import CartPricing, TotalScope
from oms.domain.service.event_publisher import EventPublisher
from oms.domain.service.guards import (
    GuardResult,
    ensure_order_not_shipped,
    ensure_product_in_stock,
    ensure_product_not_duplicate,
)
from oms.domain.service.invoice_numbering import InvoiceNumbering
from oms.domain.service.order_totals import OrderTotalsUpdater
from oms.domain.service.stock_service import StockService

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AddProductToOrderHandler:

    def __init__(
        self,
        order_repo: OrderRepository,
        cart_repo: CartRepository,
        product_repo: ProductRepository,
        invoice_repo: InvoiceRepository,
        shipment_repo: ShipmentRepository,
        discount_repo: DiscountRuleRepository,
        carrier_repo: CarrierRepository,
        address_repo: AddressRepository,
        stock: StockService,
        pricing: CartPricing,
        numbering: InvoiceNumbering,
        totals: OrderTotalsUpdater,
        events: EventPublisher,
        base_context: PricingContext,
        invoice_prefix: str = "#IN",
        tax_address_type: str = "invoice",
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._order_repo = order_repo
        self._cart_repo = cart_repo
        self._product_repo = product_repo
        self._invoice_repo = invoice_repo
        self._shipment_repo = shipment_repo
        self._discount_repo = discount_repo
        self._carrier_repo = carrier_repo
        self._address_repo = address_repo
        self._stock = stock
        self._pricing = pricing
        self._numbering = numbering
        self._totals = totals
        self._events = events
        self._base_context = base_context
        self._invoice_prefix = invoice_prefix
        self._tax_address_type = tax_address_type
        self._clock = clock

    @property
    def base_context(self) -> PricingContext:
        return self._base_context

    def handle(self, command: AddProductToOrderCommand) -> None:
        Quantity(command.quantity)  # rejects zero and negative quantities
        order = self._get_order(command.order_id)
        context = self._base_context.for_order(order)

        # --- Guards (nothing is written before they all pass) -----------------
        self._check(ensure_order_not_shipped(order), command)
        target_invoice = self._get_target_invoice(order, command.invoice_id)
        self._check(
            ensure_product_not_duplicate(
                order, command.product_id, command.variant_id,
                target_invoice, self._invoice_prefix,
            ),
            command,
        )
        product = self._get_product(command.product_id)
        variant = self._get_variant(product, command.variant_id)
        self._check(
            ensure_product_in_stock(product, command.variant_id, command.quantity, self._stock),
            command,
        )

        cart = self._cart_repo.get_by_order_id(order.id)
        if cart is None:
            raise CartNotFoundError("Cart linked to the order cannot be found.")
        context = context.for_cart(cart)

        # --- Mutations ----------------------------------------------------------
        with ExitStack() as rollback:
            rollback.callback(logger.warning, "Rolled back edit of order #%s", order.id)
            rollback.callback(self._order_repo.save, copy.deepcopy(order))
            rollback.callback(self._cart_repo.save, copy.deepcopy(cart))
            rollback.callback(self._stock.restore, product, self._stock.snapshot(product))

            self._apply_price_override(cart, product, variant, command, context)
            self._add_to_cart(cart, product, variant, command.quantity)
            self._cart_repo.save(cart)

            cart_product = self._pricing.cart_product(
                cart, product.id, command.variant_id, command.quantity, context
            )
            if cart_product is None:
                raise IntegrityError(
                    f"Product #{product.id} is missing from cart #{cart.id} after update"
                )

            invoice = self._resolve_invoice(
                command, order, cart, target_invoice, [cart_product], context, rollback
            )

            line = OrderLine.from_cart_product(
                cart_product, invoice.id if invoice is not None else None
            )
            order.add_line(line)
            self._order_repo.save(order)
            if order.state.reserves_stock:
                self._stock.reserve(product, line.variant_id, command.quantity)

            self._update_lines_with_same_product(order, line, context)
            self._stock.synchronize(product)
            line.update_tax_amount(context)

            self._totals.update(order, cart, line.invoice_id, context)
            self._order_repo.save(order)
            self._events.publish(OrderEdited(order_id=order.id, occurred_at=self._clock()))

            rollback.pop_all()

        logger.info(
            "Added %d x product #%s (variant %s) to order #%s, invoice %s",
            command.quantity, product.id, command.variant_id, order.id, line.invoice_id,
        )

    # --- Loading --------------------------------------------------------------

    def _get_order(self, order_id: int) -> Order:
        order = self._order_repo.get_by_id(order_id)
        if order is None:
            raise EntityNotFoundError(f"Order #{order_id} not found")
        return order

    def _get_product(self, product_id: int) -> Product:
        product = self._product_repo.get_by_id(product_id)
        if product is None:
            raise EntityNotFoundError(f"Product #{product_id} not found")
        return product

    @staticmethod
    def _get_variant(product: Product, variant_id: int | None) -> Variant | None:
        if variant_id is None:
            if product.has_variants:
                raise ValidationError(
                    f"Product #{product.id} has variants, one of them must be chosen"
                )
            return None
        return product.get_variant(variant_id)

    def _get_target_invoice(self, order: Order, invoice_id: int | None) -> Invoice | None:
        if invoice_id is None:
            return None
        invoice = self._invoice_repo.get_by_id(invoice_id)
        if invoice is None:
            raise EntityNotFoundError(f"Invoice #{invoice_id} not found")
        if invoice.order_id != order.id:
            raise IntegrityError(
                f"Invoice #{invoice_id} belongs to order #{invoice.order_id}, "
                f"not order #{order.id}"
            )
        return invoice

    @staticmethod
    def _check(result: GuardResult, command: AddProductToOrderCommand) -> None:
        if isinstance(result, Failure):
            logger.warning(
                "Refused to add product #%s to order #%s: %s",
                command.product_id, command.order_id, result.failure(),
            )
            raise result.failure()

    # --- Cart -----------------------------------------------------------------

    def _apply_price_override(
        self,
        cart: Cart,
        product: Product,
        variant: Variant | None,
        command: AddProductToOrderCommand,
        context: PricingContext,
    ) -> None:
        if command.unit_price_tax_incl is None and command.unit_price_tax_excl is None:
            return
        price = self._pricing.override_price(
            product,
            tax_incl=(
                context.money(command.unit_price_tax_incl)
                if command.unit_price_tax_incl is not None else None
            ),
            tax_excl=(
                context.money(command.unit_price_tax_excl)
                if command.unit_price_tax_excl is not None else None
            ),
        )
        cart.set_price_override(product.id, variant.id if variant else None, price)

    @staticmethod
    def _add_to_cart(
        cart: Cart, product: Product, variant: Variant | None, quantity: int
    ) -> None:
        # No available quantity is passed: what the order sold is already
        # out of stock and the cart must not count it a second time.
        result = cart.increase_quantity(product, variant, quantity)

        if result is QuantityUpdate.BELOW_MINIMUM:
            raise MinimumQuantityViolationError(product.minimal_quantity_for(variant))
        if result is QuantityUpdate.UNAVAILABLE:
            raise ProductOutOfStockError(f'Product with id "{product.id}" is out of stock.')

    # --- Invoice --------------------------------------------------------------

    def _resolve_invoice(
        self,
        command: AddProductToOrderCommand,
        order: Order,
        cart: Cart,
        target_invoice: Invoice | None,
        products: list[CartProduct],
        context: PricingContext,
        rollback: ExitStack,
    ) -> Invoice | None:
        if not order.has_invoice:
            return None
        if target_invoice is not None:
            return self._update_existing_invoice(target_invoice, cart, products, context, rollback)
        return self._create_new_invoice(
            order, cart, command.free_shipping, products, context, rollback
        )

    def _create_new_invoice(
        self,
        order: Order,
        cart: Cart,
        free_shipping: bool,
        products: list[CartProduct],
        context: PricingContext,
        rollback: ExitStack,
    ) -> Invoice:
        if free_shipping:
            self._add_free_shipping_rule(order, cart, context, rollback)

        address_id = order.tax_address_id(self._tax_address_type)
        address = self._address_repo.get_by_id(address_id) if address_id is not None else None
        carrier = self._carrier_repo.get_by_id(order.carrier_id)
        if carrier is None:
            raise EntityNotFoundError(f"Carrier #{order.carrier_id} not found")
        calculator = carrier.tax_calculator(address)

        shipping = self._pricing.shipping_costs(cart, context)
        invoice = Invoice(
            id=None,
            order_id=order.id,
            number=self._numbering.next_number(),
            products=self._total(cart, products, context, TotalScope.ONLY_PRODUCTS),
            shipping=shipping,
            wrapping=self._total(cart, products, context, TotalScope.ONLY_WRAPPING),
            paid=self._rounded_total(cart, products, context, TotalScope.BOTH),
            shipping_tax_computation_method=calculator.computation_method,
            carrier_taxes=calculator.taxes_amount(shipping.tax_excl),
            created_at=self._clock(),
        )
        self._invoice_repo.save(invoice)
        rollback.callback(self._invoice_repo.delete, invoice.id)
        order.attach_invoice(invoice.id)

        shipment = CarrierShipment(
            id=None,
            order_id=order.id,
            carrier_id=order.carrier_id,
            invoice_id=invoice.id,
            weight=self._pricing.total_weight(cart),
            shipping_cost=shipping,
        )
        self._shipment_repo.save(shipment)
        rollback.callback(self._shipment_repo.delete, shipment.id)

        logger.info("Issued invoice %s for order #%s",
                    invoice.formatted_number(self._invoice_prefix), order.id)
        return invoice

    def _update_existing_invoice(
        self,
        invoice: Invoice,
        cart: Cart,
        products: list[CartProduct],
        context: PricingContext,
        rollback: ExitStack,
    ) -> Invoice:
        rollback.callback(self._invoice_repo.save, copy.deepcopy(invoice))
        shipment = self._shipment_repo.get_by_invoice_id(invoice.id)
        if shipment is not None:
            # The totals refresh rewrites this parcel's weight.
            rollback.callback(self._shipment_repo.save, copy.deepcopy(shipment))

        # Shipping was settled when the invoice was issued.
        invoice.add_products(
            paid=self._rounded_total(cart, products, context, TotalScope.BOTH_WITHOUT_SHIPPING),
            products=self._total(cart, products, context, TotalScope.ONLY_PRODUCTS),
        )
        self._invoice_repo.save(invoice)
        return invoice

    def _add_free_shipping_rule(
        self,
        order: Order,
        cart: Cart,
        context: PricingContext,
        rollback: ExitStack,
    ) -> None:
        rule = DiscountRule.free_shipping_for(order.customer_id, order.currency, self._clock())
        self._discount_repo.save(rule)
        rollback.callback(self._discount_repo.delete, rule.id)

        cart.add_discount_rule(rule.id)
        self._cart_repo.save(cart)
        order.add_discount(OrderDiscount(
            rule_id=rule.id,
            name=rule.name,
            value=self._pricing.shipping_costs(cart, context),
            free_shipping=True,
        ))

    def _total(
        self,
        cart: Cart,
        products: list[CartProduct],
        context: PricingContext,
        scope: TotalScope,
    ) -> TaxedAmount:
        return TaxedAmount(
            self._pricing.order_total(cart, context, False, scope, products),
            self._pricing.order_total(cart, context, True, scope, products),
        )

    def _rounded_total(
        self,
        cart: Cart,
        products: list[CartProduct],
        context: PricingContext,
        scope: TotalScope,
    ) -> TaxedAmount:
        total = self._total(cart, products, context, scope)
        return TaxedAmount(context.round(total.tax_excl), context.round(total.tax_incl))

    # --- Order lines ----------------------------------------------------------

    @staticmethod
    def _update_lines_with_same_product(
        order: Order, line: OrderLine, context: PricingContext
    ) -> None:
        """Lines of the same product on other invoices share the new unit price."""
        for other in order.lines_for(line.product_id, line.variant_id):
            if other is line:
                continue
            other.reprice(line.unit_price, context)
            other.update_tax_amount(context)
