import click

from storefront.infrastructure.bootstrap import settings
from storefront.infrastructure.cli.coupon_commands import coupon_apply, coupon_validate
from storefront.infrastructure.cli.db_commands import (
    db_clear,
    db_clear_cache,
    db_dump,
    db_migrate,
    db_seed,
)
from storefront.infrastructure.cli.inventory_commands import inventory_set, inventory_show
from storefront.infrastructure.cli.order_commands import order_complete, order_pay
from storefront.infrastructure.cli.stock_commands import (
    stock_decrease,
    stock_increase,
    stock_show,
)
from storefront.infrastructure.logger import setup_logging


@click.group()
def cli() -> None:
    """Storefront - stock, orders and coupons over a JSON collection store."""
    config = settings()
    setup_logging(config.log_level, json=config.log_json)


@cli.group()
def inventory() -> None:
    """Manage size-keyed inventory."""


@cli.group()
def stock() -> None:
    """Manage product stock."""


@cli.group()
def order() -> None:
    """Pay and complete orders."""


@cli.group()
def coupon() -> None:
    """Validate and apply coupons."""


@cli.group()
def db() -> None:
    """Database maintenance."""


# Register subcommands
inventory.add_command(inventory_set)
inventory.add_command(inventory_show)
stock.add_command(stock_increase)
stock.add_command(stock_decrease)
stock.add_command(stock_show)
order.add_command(order_pay)
order.add_command(order_complete)
coupon.add_command(coupon_validate)
coupon.add_command(coupon_apply)
db.add_command(db_migrate)
db.add_command(db_clear)
db.add_command(db_dump)
db.add_command(db_seed)
db.add_command(db_clear_cache)
