"""CLI commands for order payment and completion."""

from __future__ import annotations

import asyncio

import click

from storefront.application.complete_order import CompleteOrderHandler
from storefront.application.confirm_payment import ConfirmPaymentHandler
from storefront.domain.exceptions import DomainException
from storefront.infrastructure.bootstrap import order_repository, stock_ledger
from storefront.infrastructure.persistence.errors import StorageError


@click.command("pay")
@click.option("--id", "order_id", required=True, help="Order id to mark as paid.")
@click.option("--user", "user_id", default="system", help="Who confirmed the payment.")
def order_pay(order_id: str, user_id: str) -> None:
    """Confirm payment of a pending order (takes its goods out of stock)."""
    handler = ConfirmPaymentHandler(order_repo=order_repository(), ledger=stock_ledger())

    try:
        dto = asyncio.run(handler.handle(order_id, user_id))
    except (DomainException, StorageError) as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order {dto.order_number} ({dto.order_id}) is {dto.status}")
    click.echo()
    click.echo(f"  {'Product':<20} {'Size':<6} {'Qty':>5} {'Stock':>7} {'Size qty':>9}")
    click.echo(f"  {'-'*51}")
    for line in dto.lines:
        stock = "-" if line.stock_after is None else line.stock_after
        size_qty = "-" if line.size_quantity_after is None else line.size_quantity_after
        click.echo(
            f"  {line.product_id:<20} {line.size or '-':<6} {line.quantity:>5} "
            f"{stock:>7} {size_qty:>9}"
        )
        if line.error:
            click.echo(f"    ! {line.error}")


@click.command("complete")
@click.option("--id", "order_id", required=True, help="Order id to complete.")
def order_complete(order_id: str) -> None:
    """Complete an order (removes its size records from inventory)."""
    handler = CompleteOrderHandler(order_repo=order_repository(), ledger=stock_ledger())

    try:
        removed = asyncio.run(handler.handle(order_id))
    except (DomainException, StorageError) as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order {order_id} completed, {removed} inventory record(s) removed.")
