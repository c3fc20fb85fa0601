"""CLI commands for the Order aggregate."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation

import click

from oms.application.dto import AddProductToOrderCommand, OrderDTO
from oms.domain.exceptions import DomainException
from oms.infrastructure.bootstrap import add_product_to_order_handler, show_order_handler
from oms.infrastructure.settings import load_settings


def _parse_price(ctx: click.Context, param: click.Parameter, raw: str | None) -> Decimal | None:
    if raw is None:
        return None
    try:
        price = Decimal(raw)
    except InvalidOperation:
        raise click.BadParameter(f"Invalid price '{raw}'.")
    if not price.is_finite() or price < 0:
        raise click.BadParameter(f"Price must be a non-negative number, got '{raw}'.")
    return price


def _display_order(dto: OrderDTO) -> None:
    """Shared formatting for displaying an order."""
    click.echo(f"Order #{dto.id}  (state={dto.state})")
    click.echo(f"Customer: #{dto.customer_id}")
    click.echo(f"Created:  {dto.created_at}")
    click.echo()

    click.echo(f"  {'Product':<20} {'Qty':>5} {'Unit (incl.)':>14} {'Total (incl.)':>14} {'Invoice':>8}")
    click.echo(f"  {'-'*65}")
    for line in dto.lines:
        invoice = f"#{line.invoice_id}" if line.invoice_id is not None else "-"
        click.echo(
            f"  {line.product_name:<20} {line.quantity:>5} "
            f"{line.unit_price_tax_incl:>14} {line.total_tax_incl:>14} {invoice:>8}"
        )
    click.echo(f"  {'-'*65}")

    click.echo(f"  {'Products':<27} {dto.total_products:>20}")
    click.echo(f"  {'Shipping':<27} {dto.total_shipping:>20}")
    click.echo(f"  {'Discounts':<27} {dto.total_discounts:>20}")
    click.echo(f"  {'Total (excl.)':<27} {dto.total_paid_tax_excl:>20}")
    click.echo(f"  {'Total (incl.)':<27} {dto.total_paid_tax_incl:>20}")

    if dto.invoices:
        click.echo()
        click.echo("Invoices:")
        for invoice in dto.invoices:
            click.echo(
                f"  {invoice.number:<12} products {invoice.products_tax_incl:>14}"
                f"  paid {invoice.paid_tax_incl:>14}"
            )


@click.command("add-product")
@click.option("--id", "order_id", required=True, type=int, help="Order ID to edit.")
@click.option("--product", "product_id", required=True, type=int, help="Product ID.")
@click.option("--variant", "variant_id", default=None, type=int, help="Variant ID.")
@click.option("--quantity", required=True, type=click.IntRange(min=1), help="Quantity to add.")
@click.option("--price-tax-incl", default=None, callback=_parse_price,
              help="Unit price, tax included.")
@click.option("--price-tax-excl", default=None, callback=_parse_price,
              help="Unit price, tax excluded.")
@click.option("--invoice", "invoice_id", default=None, type=int, help="Existing invoice to add to.")
@click.option("--free-shipping", is_flag=True, default=False, help="Offer shipping on a new invoice.")
def order_add_product(
    order_id: int,
    product_id: int,
    variant_id: int | None,
    quantity: int,
    price_tax_incl: Decimal | None,
    price_tax_excl: Decimal | None,
    invoice_id: int | None,
    free_shipping: bool,
) -> None:
    """Add a product to an order that has already been placed."""
    command = AddProductToOrderCommand(
        order_id=order_id,
        product_id=product_id,
        quantity=quantity,
        variant_id=variant_id,
        unit_price_tax_incl=price_tax_incl,
        unit_price_tax_excl=price_tax_excl,
        invoice_id=invoice_id,
        free_shipping=free_shipping,
    )

    try:
        settings = load_settings()
        add_product_to_order_handler(settings).handle(command)
        dto = show_order_handler(settings).handle(order_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Added {quantity} x product #{product_id} to order #{order_id}")
    click.echo()
    _display_order(dto)


@click.command("show")
@click.option("--id", "order_id", required=True, type=int, help="Order ID to display.")
def order_show(order_id: int) -> None:
    """Show details of an existing order."""
    try:
        dto = show_order_handler(load_settings()).handle(order_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _display_order(dto)
