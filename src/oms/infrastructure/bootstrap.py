"""Composition root: wires concrete implementations to domain interfaces.

This is the only place in the codebase that knows about *all* layers.
Every other module depends only on abstractions.
"""

from __future__ import annotations

from oms.application.add_product_to_order import AddProductToOrderHandler
from oms.application.delete_product import DeleteProductHandler
from oms.application.set_stock import SetStockHandler
from oms.application.show_order import ShowOrderHandler
from oms.application.show_stock import ShowStockHandler
from oms.domain.service.cart_pricing import CartPricing
from oms.domain.service.invoice_numbering import InvoiceNumbering
from oms.domain.service.order_totals import OrderTotalsUpdater
from oms.domain.service.stock_service import StockService
from oms.infrastructure.events.logging_publisher import LoggingEventPublisher
from oms.infrastructure.persistence.json_carrier_repository import (
    JsonAddressRepository,
    JsonCarrierRepository,
)
from oms.infrastructure.persistence.json_cart_repository import JsonCartRepository
from oms.infrastructure.persistence.json_discount_rule_repository import (
    JsonDiscountRuleRepository,
)
from oms.infrastructure.persistence.json_invoice_repository import (
    JsonInvoiceRepository,
    JsonShipmentRepository,
)
from oms.infrastructure.persistence.json_order_repository import (
    JsonOrderRepository,
)
from oms.infrastructure.persistence.json_product_repository import (
    JsonProductRepository,
)
from oms.infrastructure.persistence.json_stock_repository import JsonStockRepository
from oms.infrastructure.settings import Settings


# --- Repositories -------------------------------------------------------------

def product_repository(settings: Settings) -> JsonProductRepository:
    return JsonProductRepository(settings.data_dir / "products.json")


def order_repository(settings: Settings) -> JsonOrderRepository:
    return JsonOrderRepository(settings.data_dir / "orders.json")


def cart_repository(settings: Settings) -> JsonCartRepository:
    return JsonCartRepository(settings.data_dir / "carts.json")


def stock_repository(settings: Settings) -> JsonStockRepository:
    return JsonStockRepository(settings.data_dir / "stock.json")


def invoice_repository(settings: Settings) -> JsonInvoiceRepository:
    return JsonInvoiceRepository(settings.data_dir / "invoices.json")


def shipment_repository(settings: Settings) -> JsonShipmentRepository:
    return JsonShipmentRepository(settings.data_dir / "order_carriers.json")


def discount_rule_repository(settings: Settings) -> JsonDiscountRuleRepository:
    return JsonDiscountRuleRepository(settings.data_dir / "discount_rules.json")


def carrier_repository(settings: Settings) -> JsonCarrierRepository:
    return JsonCarrierRepository(settings.data_dir / "carriers.json")


def address_repository(settings: Settings) -> JsonAddressRepository:
    return JsonAddressRepository(settings.data_dir / "addresses.json")


# --- Handlers -----------------------------------------------------------------

def stock_service(settings: Settings) -> StockService:
    return StockService(stock_repository(settings), settings.allow_out_of_stock_ordering)


def add_product_to_order_handler(settings: Settings) -> AddProductToOrderHandler:
    products = product_repository(settings)
    carriers = carrier_repository(settings)
    addresses = address_repository(settings)
    discounts = discount_rule_repository(settings)
    invoices = invoice_repository(settings)
    shipments = shipment_repository(settings)

    pricing = CartPricing(
        product_repo=products,
        carrier_repo=carriers,
        address_repo=addresses,
        discount_repo=discounts,
        wrapping_fee=settings.wrapping_fee,
        wrapping_tax_rate=settings.wrapping_tax_rate,
    )
    return AddProductToOrderHandler(
        order_repo=order_repository(settings),
        cart_repo=cart_repository(settings),
        product_repo=products,
        invoice_repo=invoices,
        shipment_repo=shipments,
        discount_repo=discounts,
        carrier_repo=carriers,
        address_repo=addresses,
        stock=stock_service(settings),
        pricing=pricing,
        numbering=InvoiceNumbering(invoices, settings.invoice_start_number),
        totals=OrderTotalsUpdater(shipments, pricing),
        events=LoggingEventPublisher(),
        base_context=settings.pricing_context(),
        invoice_prefix=settings.invoice_prefix,
        tax_address_type=settings.tax_address_type,
    )


def show_order_handler(settings: Settings) -> ShowOrderHandler:
    return ShowOrderHandler(
        order_repo=order_repository(settings),
        invoice_repo=invoice_repository(settings),
        invoice_prefix=settings.invoice_prefix,
    )


def show_stock_handler(settings: Settings) -> ShowStockHandler:
    return ShowStockHandler(stock_repository(settings), product_repository(settings))


def set_stock_handler(settings: Settings) -> SetStockHandler:
    return SetStockHandler(
        stock_repo=stock_repository(settings),
        product_repo=product_repository(settings),
        stock=stock_service(settings),
    )


def delete_product_handler(settings: Settings) -> DeleteProductHandler:
    return DeleteProductHandler(product_repository(settings), stock_repository(settings))
