"""CLI commands for coupons."""

from __future__ import annotations

import asyncio

import click

from storefront.application.apply_coupon import ApplyCouponHandler
from storefront.application.dto import CouponQuoteDTO
from storefront.application.validate_coupon import ValidateCouponHandler
from storefront.domain.exceptions import DomainException
from storefront.infrastructure.bootstrap import coupon_repository
from storefront.infrastructure.persistence.errors import StorageError


def _display_quote(dto: CouponQuoteDTO) -> None:
    click.echo(f"Coupon:   {dto.code}")
    click.echo(f"Subtotal: {dto.subtotal:>20}")
    click.echo(f"Discount: {dto.discount:>20}")
    click.echo(f"Total:    {dto.total:>20}")


@click.command("validate")
@click.option("--code", required=True, help="Coupon code.")
@click.option("--subtotal", required=True, help="Order subtotal, e.g. 150000.")
def coupon_validate(code: str, subtotal: str) -> None:
    """Check a coupon against a subtotal without using it up."""
    handler = ValidateCouponHandler(coupon_repo=coupon_repository())

    try:
        dto = asyncio.run(handler.handle(code, subtotal))
    except (DomainException, StorageError) as exc:
        raise click.ClickException(str(exc))

    _display_quote(dto)


@click.command("apply")
@click.option("--code", required=True, help="Coupon code.")
@click.option("--subtotal", required=True, help="Order subtotal, e.g. 150000.")
@click.option("--user", "user_id", default=None, help="Customer using the coupon.")
def coupon_apply(code: str, subtotal: str, user_id: str | None) -> None:
    """Apply a coupon, consuming it if it is one-time."""
    handler = ApplyCouponHandler(coupon_repo=coupon_repository())

    try:
        dto = asyncio.run(handler.handle(code, subtotal, user_id=user_id))
    except (DomainException, StorageError) as exc:
        raise click.ClickException(str(exc))

    _display_quote(dto)
    if dto.consumed:
        click.echo("One-time coupon consumed.")
