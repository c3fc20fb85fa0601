"""Domain service: Cart pricing.

Turns cart lines into priced ``CartProduct`` views and computes cart
totals for a given scope.  Every amount is computed for an explicit
``PricingContext``; nothing here reads a "current" currency or cart.
"""

from __future__ import annotations

from decimal import Decimal
from enum import Enum

from oms.domain.exceptions import IntegrityError, ValidationError
from oms.domain.model.cart import Cart, CartProduct
from oms.domain.model.pricing import PricingContext, RoundingPolicy
from oms.domain.model.product import Product, Variant
from oms.domain.model.shipping import HUNDRED, TaxCalculator
from oms.domain.model.value_objects import Money, TaxedAmount
from oms.domain.repository.carrier_repository import AddressRepository, CarrierRepository
from oms.domain.repository.discount_rule_repository import DiscountRuleRepository
from oms.domain.repository.product_repository import ProductRepository


class TotalScope(Enum):
    BOTH = "both"
    BOTH_WITHOUT_SHIPPING = "both_without_shipping"
    ONLY_PRODUCTS = "only_products"
    ONLY_SHIPPING = "only_shipping"
    ONLY_WRAPPING = "only_wrapping"
    ONLY_DISCOUNTS = "only_discounts"


class CartPricing:

    def __init__(
        self,
        product_repo: ProductRepository,
        carrier_repo: CarrierRepository,
        address_repo: AddressRepository,
        discount_repo: DiscountRuleRepository,
        wrapping_fee: Decimal = Decimal("0"),
        wrapping_tax_rate: Decimal = Decimal("0"),
    ) -> None:
        self._product_repo = product_repo
        self._carrier_repo = carrier_repo
        self._address_repo = address_repo
        self._discount_repo = discount_repo
        self._wrapping_fee = wrapping_fee
        self._wrapping_tax_rate = wrapping_tax_rate

    # --- Unit prices ----------------------------------------------------------

    def unit_price(
        self,
        cart: Cart,
        product: Product,
        variant: Variant | None,
        context: PricingContext,
    ) -> TaxedAmount:
        """Unrounded unit price; a cart price override wins over the catalogue."""
        override = cart.price_override_for(product.id, variant.id if variant else None)
        if override is not None:
            return override.price

        base = product.price + (variant.price_impact if variant else Decimal("0"))
        tax_excl = context.convert(base)
        return TaxedAmount(tax_excl, TaxCalculator.single(product.tax_rate).add_taxes(tax_excl))

    @staticmethod
    def override_price(
        product: Product,
        tax_incl: Money | None,
        tax_excl: Money | None,
    ) -> TaxedAmount:
        """Complete a manually entered price; the missing half uses the product tax rate."""
        if tax_incl is None and tax_excl is None:
            raise ValidationError("A price override needs at least one amount")

        calculator = TaxCalculator.single(product.tax_rate)
        if tax_excl is None:
            factor = Decimal("1") + product.tax_rate / HUNDRED
            tax_excl = Money(tax_incl.amount / factor, tax_incl.currency)
        if tax_incl is None:
            tax_incl = calculator.add_taxes(tax_excl)
        return TaxedAmount(tax_excl, tax_incl)

    # --- Cart products --------------------------------------------------------

    def products(self, cart: Cart, context: PricingContext) -> list[CartProduct]:
        return [
            self._build_product(cart, line.product_id, line.variant_id, line.quantity, context)
            for line in cart.lines
        ]

    def cart_product(
        self,
        cart: Cart,
        product_id: int,
        variant_id: int | None,
        quantity: int,
        context: PricingContext,
    ) -> CartProduct | None:
        """Priced cart line for a product/variant, totals computed for *quantity*."""
        line = cart.find_line(product_id, variant_id)
        if line is None:
            return None
        return self._build_product(cart, line.product_id, line.variant_id, quantity, context)

    # --- Totals ---------------------------------------------------------------

    def order_total(
        self,
        cart: Cart,
        context: PricingContext,
        with_taxes: bool,
        scope: TotalScope = TotalScope.BOTH,
        products: list[CartProduct] | None = None,
    ) -> Money:
        """Cart total for *scope*, optionally restricted to *products*.

        Shipping is always computed for the whole cart.
        """
        if scope is TotalScope.ONLY_SHIPPING:
            return self.shipping_cost(cart, context, with_taxes)
        if scope is TotalScope.ONLY_WRAPPING:
            return self._wrapping_cost(cart, context, with_taxes)

        if products is None:
            products = self.products(cart, context)
        products_total = self._products_total(products, context, with_taxes)
        if scope is TotalScope.ONLY_PRODUCTS:
            return products_total

        with_shipping = scope in (TotalScope.BOTH, TotalScope.ONLY_DISCOUNTS)
        shipping = (
            self.shipping_cost(cart, context, with_taxes)
            if with_shipping else Money.zero(context.currency)
        )
        discounts = self._discounts(cart, context, products_total, shipping)
        if scope is TotalScope.ONLY_DISCOUNTS:
            return context.round(discounts)

        total = products_total + self._wrapping_cost(cart, context, with_taxes) + shipping
        return context.round(total.subtract_floored(discounts))

    def shipping_cost(self, cart: Cart, context: PricingContext, with_taxes: bool) -> Money:
        carrier = self._carrier_repo.get_by_id(cart.carrier_id)
        if carrier is None:
            return Money.zero(context.currency)

        if carrier.free_shipping_threshold is not None:
            products_total = self._products_total(self.products(cart, context), context, True)
            if products_total >= context.convert(carrier.free_shipping_threshold):
                return Money.zero(context.currency)

        cost = context.convert(carrier.shipping_cost)
        if with_taxes:
            address = (
                self._address_repo.get_by_id(cart.address_delivery_id)
                if cart.address_delivery_id is not None else None
            )
            cost = carrier.tax_calculator(address).add_taxes(cost)
        return context.round(cost)

    def shipping_costs(self, cart: Cart, context: PricingContext) -> TaxedAmount:
        return TaxedAmount(
            self.shipping_cost(cart, context, with_taxes=False),
            self.shipping_cost(cart, context, with_taxes=True),
        )

    def total_weight(self, cart: Cart) -> Decimal:
        weight = Decimal("0")
        for line in cart.lines:
            product = self._get_product(line.product_id)
            variant = product.get_variant(line.variant_id) if line.variant_id is not None else None
            weight += self._unit_weight(product, variant) * line.quantity
        return weight

    # --- Internal helpers -----------------------------------------------------

    def _build_product(
        self,
        cart: Cart,
        product_id: int,
        variant_id: int | None,
        quantity: int,
        context: PricingContext,
    ) -> CartProduct:
        product = self._get_product(product_id)
        variant = product.get_variant(variant_id) if variant_id is not None else None
        unit = self.unit_price(cart, product, variant, context)
        name = product.name
        if variant is not None and variant.reference:
            name = f"{product.name} - {variant.reference}"

        return CartProduct(
            product_id=product.id,
            variant_id=variant_id,
            name=name,
            quantity=quantity,
            unit_price=unit,
            total=TaxedAmount(
                context.line_total(unit.tax_excl, quantity),
                context.line_total(unit.tax_incl, quantity),
            ),
            tax_rate=product.tax_rate,
            unit_weight=self._unit_weight(product, variant),
        )

    @staticmethod
    def _products_total(
        products: list[CartProduct], context: PricingContext, with_taxes: bool
    ) -> Money:
        total = Money.zero(context.currency)
        for product in products:
            total = total + (product.total.tax_incl if with_taxes else product.total.tax_excl)
        if context.rounding_policy is RoundingPolicy.TOTAL:
            return context.round(total)
        return total

    def _discounts(
        self,
        cart: Cart,
        context: PricingContext,
        products_total: Money,
        shipping: Money,
    ) -> Money:
        total = Money.zero(context.currency)
        shipping_discounted = False
        for rule_id in cart.discount_rule_ids:
            rule = self._discount_repo.get_by_id(rule_id)
            if rule is None or not rule.active:
                continue
            if rule.reduction_percent:
                total = total + products_total * (rule.reduction_percent / HUNDRED)
            if rule.free_shipping and not shipping_discounted:
                total = total + shipping
                shipping_discounted = True
        return total

    def _wrapping_cost(self, cart: Cart, context: PricingContext, with_taxes: bool) -> Money:
        if not cart.gift_wrapping:
            return Money.zero(context.currency)
        fee = context.convert(self._wrapping_fee)
        if with_taxes:
            fee = TaxCalculator.single(self._wrapping_tax_rate).add_taxes(fee)
        return context.round(fee)

    @staticmethod
    def _unit_weight(product: Product, variant: Variant | None) -> Decimal:
        return product.weight + (variant.weight_impact if variant else Decimal("0"))

    def _get_product(self, product_id: int) -> Product:
        product = self._product_repo.get_by_id(product_id)
        if product is None:
            raise IntegrityError(f"Cart refers to unknown product #{product_id}")
        return product
