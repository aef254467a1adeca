"""Order aggregate and its line items.

Line items are persisted in their own collection (``orderItems``) and
point back to the order by ``order_id``; the order record itself only
carries status and totals.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from storefront.domain.exceptions import ValidationError
from storefront.domain.model.value_objects import Money, Quantity


class OrderStatus(Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"


class OrderSource(Enum):
    ONLINE = "ONLINE"
    POS = "POS"
    TELEGRAM = "TELEGRAM"


@dataclass(frozen=True)
class OrderItem:
    """One line of an order: a product, an optional size and a quantity."""

    id: str | None
    order_id: str
    product_id: str
    quantity: Quantity
    price: Money
    size: str | None = None

    @property
    def line_total(self) -> Money:
        return self.price * self.quantity.value


@dataclass
class Order:
    """Aggregate root for customer orders.

    Status moves PENDING -> PAID -> COMPLETED, with CANCELLED reachable
    from PENDING and PAID. Inventory side effects of each transition are
    coordinated by the application handlers, not here.
    """

    id: str | None
    order_number: str
    total: Money
    status: OrderStatus = OrderStatus.PENDING
    source: OrderSource = OrderSource.ONLINE
    coupon_code: str | None = None
    discount: Money | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime | None = None

    # --- State transitions ----------------------------------------------------

    def mark_paid(self, now: datetime | None = None) -> None:
        """Transition PENDING -> PAID."""
        if self.status == OrderStatus.PAID:
            raise ValidationError(f"Order {self.order_number} is already paid")
        if self.status != OrderStatus.PENDING:
            raise ValidationError(
                f"Cannot pay order {self.order_number} in {self.status.value} status"
            )
        self._transition(OrderStatus.PAID, now)

    def complete(self, now: datetime | None = None) -> None:
        """Transition PENDING|PAID -> COMPLETED."""
        if self.status == OrderStatus.COMPLETED:
            raise ValidationError(f"Order {self.order_number} is already completed")
        if self.status == OrderStatus.CANCELLED:
            raise ValidationError(
                f"Cannot complete order {self.order_number} in CANCELLED status"
            )
        self._transition(OrderStatus.COMPLETED, now)

    def cancel(self, now: datetime | None = None) -> None:
        """Transition PENDING|PAID -> CANCELLED."""
        if self.status == OrderStatus.CANCELLED:
            raise ValidationError(f"Order {self.order_number} is already cancelled")
        if self.status == OrderStatus.COMPLETED:
            raise ValidationError(
                f"Cannot cancel order {self.order_number} in COMPLETED status"
            )
        self._transition(OrderStatus.CANCELLED, now)

    def reopen(self, now: datetime | None = None) -> None:
        """Transition PAID -> PENDING, for a payment whose sale was refused."""
        if self.status != OrderStatus.PAID:
            raise ValidationError(
                f"Cannot reopen order {self.order_number} in {self.status.value} status"
            )
        self._transition(OrderStatus.PENDING, now)

    # --- Internal helpers -----------------------------------------------------

    def _transition(self, status: OrderStatus, now: datetime | None) -> None:
        self.status = status
        self.updated_at = now or datetime.now(timezone.utc)
