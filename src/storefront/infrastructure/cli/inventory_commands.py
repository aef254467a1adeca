"""CLI commands for size-keyed inventory."""

from __future__ import annotations

import asyncio

import click

from storefront.application.set_inventory import SetInventoryHandler
from storefront.application.show_inventory import ShowInventoryHandler
from storefront.domain.exceptions import DomainException
from storefront.infrastructure.bootstrap import inventory_repository, product_repository
from storefront.infrastructure.persistence.errors import StorageError


@click.command("set")
@click.option("--product", "product_id", required=True, help="Product id.")
@click.option("--size", required=True, help="Size label, e.g. M or 42.")
@click.option("--quantity", required=True, type=int, help="Units on hand for this size.")
def inventory_set(product_id: str, size: str, quantity: int) -> None:
    """Set the quantity on hand for one size of a product."""
    handler = SetInventoryHandler(
        inventory_repo=inventory_repository(),
        product_repo=product_repository(),
    )

    try:
        asyncio.run(handler.handle(product_id=product_id, size=size, quantity=quantity))
    except (DomainException, StorageError) as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Inventory for '{product_id}' size {size} set to {quantity}")


@click.command("show")
def inventory_show() -> None:
    """Show current inventory per product and size."""
    handler = ShowInventoryHandler(
        inventory_repo=inventory_repository(),
        product_repo=product_repository(),
    )

    try:
        lines = asyncio.run(handler.handle())
    except (DomainException, StorageError) as exc:
        raise click.ClickException(str(exc))

    if not lines:
        click.echo("No inventory records found.")
        return

    click.echo(f"{'Product':<24} {'Size':<8} {'Quantity':>8}  {'Updated':<20}")
    click.echo("-" * 64)
    for line in lines:
        click.echo(
            f"{line.product_name:<24} {line.size:<8} {line.quantity:>8}  {line.updated_at:<20}"
        )
