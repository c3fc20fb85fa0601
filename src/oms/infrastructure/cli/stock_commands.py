"""CLI commands for stock management."""

from __future__ import annotations

import click

from oms.domain.exceptions import DomainException
from oms.infrastructure.bootstrap import set_stock_handler, show_stock_handler
from oms.infrastructure.settings import load_settings


@click.command("set")
@click.option("--product", "product_id", required=True, type=int, help="Product ID.")
@click.option("--variant", "variant_id", default=None, type=int, help="Variant ID.")
@click.option("--quantity", required=True, type=int, help="Physical quantity in stock.")
def stock_set(product_id: int, variant_id: int | None, quantity: int) -> None:
    """Set the physical stock of a product or variant."""
    try:
        set_stock_handler(load_settings()).handle(product_id, quantity, variant_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    target = f"product #{product_id}"
    if variant_id is not None:
        target += f" variant #{variant_id}"
    click.echo(f"Stock for {target} set to {quantity}")


@click.command("show")
def stock_show() -> None:
    """Show current stock levels."""
    try:
        lines = show_stock_handler(load_settings()).handle()
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if not lines:
        click.echo("No stock records found.")
        return

    click.echo(f"{'Product':<20} {'Variant':>8} {'Physical':>9} {'Reserved':>10} {'Available':>10}")
    click.echo("-" * 61)
    for line in lines:
        variant = str(line.variant_id) if line.variant_id is not None else "-"
        click.echo(
            f"{line.product_name:<20} {variant:>8} {line.physical:>9} "
            f"{line.reserved:>10} {line.available:>10}"
        )
