"""CLI commands for the scalar product stock and its movement log."""

from __future__ import annotations

import asyncio

import click

from storefront.application.adjust_stock import AdjustStockHandler
from storefront.application.show_stock import ShowStockHandler
from storefront.domain.exceptions import DomainException
from storefront.domain.model.stock_movement import MovementReason
from storefront.infrastructure.bootstrap import (
    inventory_repository,
    product_repository,
    stock_ledger,
    stock_movement_repository,
)
from storefront.infrastructure.persistence.errors import StorageError

_REASONS = click.Choice([reason.value for reason in MovementReason])


def _adjust(product_id: str, delta: int, reason: str, user_id: str) -> None:
    handler = AdjustStockHandler(ledger=stock_ledger())

    try:
        result = asyncio.run(
            handler.handle(product_id, delta, reason=reason, user_id=user_id)
        )
    except (DomainException, StorageError) as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Stock of '{product_id}' is now {result.stock} ({delta:+d}, {reason})")


@click.command("increase")
@click.option("--product", "product_id", required=True, help="Product id.")
@click.option("--quantity", required=True, type=click.IntRange(min=1))
@click.option("--reason", type=_REASONS, default=MovementReason.MANUAL_ADJUSTMENT.value)
@click.option("--user", "user_id", default="system", help="Who made the change.")
def stock_increase(product_id: str, quantity: int, reason: str, user_id: str) -> None:
    """Add units to a product's stock."""
    _adjust(product_id, quantity, reason, user_id)


@click.command("decrease")
@click.option("--product", "product_id", required=True, help="Product id.")
@click.option("--quantity", required=True, type=click.IntRange(min=1))
@click.option("--reason", type=_REASONS, default=MovementReason.MANUAL_ADJUSTMENT.value)
@click.option("--user", "user_id", default="system", help="Who made the change.")
def stock_decrease(product_id: str, quantity: int, reason: str, user_id: str) -> None:
    """Remove units from a product's stock (refused if not enough)."""
    _adjust(product_id, -quantity, reason, user_id)


@click.command("show")
@click.option("--product", "product_id", required=True, help="Product id.")
def stock_show(product_id: str) -> None:
    """Show a product's stock, its sizes and its movement history."""
    handler = ShowStockHandler(
        product_repo=product_repository(),
        inventory_repo=inventory_repository(),
        movement_repo=stock_movement_repository(),
    )

    try:
        dto = asyncio.run(handler.handle(product_id))
    except (DomainException, StorageError) as exc:
        raise click.ClickException(str(exc))

    click.echo(f"{dto.product_name} ({dto.product_id})")
    click.echo(f"Stock: {dto.stock}")
    if dto.sizes:
        sizes = ", ".join(f"{size}={qty}" for size, qty in sorted(dto.sizes.items()))
        click.echo(f"Sizes: {sizes}")
    click.echo()

    if not dto.movements:
        click.echo("No stock movements recorded.")
        return

    click.echo(f"  {'When':<20} {'Delta':>6} {'Reason':<18} {'User':<12} {'Order':<16}")
    click.echo(f"  {'-'*76}")
    for m in dto.movements:
        click.echo(
            f"  {m.created_at:<20} {m.delta:>+6d} {m.reason:<18} "
            f"{m.user_id:<12} {m.order_id or '-':<16}"
        )
