"""Size-keyed inventory record.

One record per (product, size) pair tracks how many units of that size
are on hand. Uniqueness of the pair is enforced by the handler that
creates records, not by storage.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone

from storefront.domain.exceptions import ValidationError


@dataclass
class InventoryRecord:
    """Per-size stock level.

    Invariants:
    - ``quantity`` is never negative
    """

    id: str | None
    product_id: str
    size: str
    quantity: int
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self) -> None:
        if not self.size or not self.size.strip():
            raise ValidationError("Inventory size is required")
        if self.quantity < 0:
            raise ValidationError(
                f"Inventory quantity cannot be negative, got {self.quantity}"
            )

    def matches(self, product_id: str, size: str | None) -> bool:
        return self.product_id == product_id and self.size == size

    def decrease(self, quantity: int, now: datetime | None = None) -> int:
        """Take *quantity* units off, clamping at zero.

        Returns the number of units actually removed, which is less than
        *quantity* when the record held fewer.
        """
        if quantity <= 0:
            raise ValidationError("Decrease quantity must be positive")
        removed = min(quantity, self.quantity)
        self.quantity -= removed
        self.updated_at = now or datetime.now(timezone.utc)
        return removed

    def set_quantity(self, quantity: int, now: datetime | None = None) -> None:
        if quantity < 0:
            raise ValidationError(
                f"Inventory quantity cannot be negative, got {quantity}"
            )
        self.quantity = quantity
        self.updated_at = now or datetime.now(timezone.utc)
