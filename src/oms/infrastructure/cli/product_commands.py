"""CLI commands for the Product aggregate."""

from __future__ import annotations

import click

from oms.domain.exceptions import DomainException
from oms.infrastructure.bootstrap import delete_product_handler, product_repository
from oms.infrastructure.settings import load_settings


@click.command("list")
def product_list() -> None:
    """List all products in the catalog."""
    try:
        products = product_repository(load_settings()).list_all()
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if not products:
        click.echo("No products found.")
        return

    click.echo(f"{'ID':<6} {'Name':<20} {'Price':>10} {'Tax':>6} {'Variants':>9}")
    click.echo("-" * 55)
    for p in products:
        click.echo(
            f"{p.id:<6} {p.name:<20} {str(p.price):>10} {str(p.tax_rate):>6} {len(p.variants):>9}"
        )


@click.command("delete")
@click.option("--id", "product_ids", required=True, multiple=True, type=int,
              help="Product ID; repeat to delete several at once.")
def product_delete(product_ids: tuple[int, ...]) -> None:
    """Delete one or more products and their stock rows."""
    try:
        handler = delete_product_handler(load_settings())
        if len(product_ids) == 1:
            handler.delete(product_ids[0])
        else:
            handler.bulk_delete(list(product_ids))
    except DomainException as exc:
        raise click.ClickException(str(exc))

    ids = ", ".join(f"#{product_id}" for product_id in product_ids)
    click.echo(f"Deleted product(s) {ids}")
