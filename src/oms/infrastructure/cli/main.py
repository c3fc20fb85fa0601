import click

from oms.infrastructure.cli.order_commands import order_add_product, order_show
from oms.infrastructure.cli.product_commands import product_delete, product_list
from oms.infrastructure.cli.stock_commands import stock_set, stock_show
from oms.infrastructure.log_config import configure_logging
from oms.infrastructure.settings import LOG_LEVELS, ConfigurationError, load_settings


@click.group()
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default=None,
    help="Override the configured log level.",
)
def cli(log_level: str | None) -> None:
    """OMS: Order Management System"""
    if log_level is None:
        try:
            log_level = load_settings().log_level
        except ConfigurationError as exc:
            raise click.ClickException(str(exc))
    configure_logging(log_level)


@cli.group()
def order() -> None:
    """Edit placed orders."""


@cli.group()
def product() -> None:
    """Manage products."""


@cli.group()
def stock() -> None:
    """Manage stock levels."""


# Register subcommands
order.add_command(order_add_product)
order.add_command(order_show)
product.add_command(product_delete)
product.add_command(product_list)
stock.add_command(stock_set)
stock.add_command(stock_show)
