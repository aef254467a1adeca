"""Data Transfer Objects: plain containers that cross layer boundaries.

DTOs carry data between the CLI and application layers without
exposing domain internals to the outside world.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class InventoryLineDTO:
    """Output: one size record joined with its product name."""

    product_id: str
    product_name: str
    size: str
    quantity: int
    updated_at: str


@dataclass(frozen=True)
class MovementDTO:
    delta: int
    reason: str
    user_id: str
    order_id: str | None
    created_at: str


@dataclass(frozen=True)
class StockDTO:
    """Output: scalar stock of a product and how it got there."""

    product_id: str
    product_name: str
    stock: int
    sizes: dict[str, int]
    movements: list[MovementDTO]


@dataclass(frozen=True)
class SaleLineDTO:
    product_id: str
    size: str | None
    quantity: int
    stock_after: int | None
    size_quantity_after: int | None
    error: str | None


@dataclass(frozen=True)
class PaymentDTO:
    """Output: an order confirmed as paid and what it did to stock."""

    order_id: str
    order_number: str
    status: str
    lines: list[SaleLineDTO]


@dataclass(frozen=True)
class CouponQuoteDTO:
    """Output: the discount a coupon grants on a subtotal."""

    code: str
    subtotal: str
    discount: str
    total: str
    consumed: bool = False
