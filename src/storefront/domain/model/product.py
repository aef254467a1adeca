"""Product aggregate.

Products live independently of orders. Besides catalog data a product
carries ``stock``, the scalar stock counter. It is a coarser signal than
the per-size inventory records and only moves through the stock ledger.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone

from storefront.domain.exceptions import ValidationError
from storefront.domain.model.value_objects import Money


@dataclass
class Product:
    """A product in the catalog."""

    id: str | None
    name: str
    price: Money
    stock: int = 0
    slug: str = ""
    category_id: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime | None = None

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValidationError("Product name is required")
        if self.stock < 0:
            raise ValidationError(f"Product stock cannot be negative, got {self.stock}")

    def shortfall(self, quantity: int) -> int:
        """How many units are missing to sell *quantity* (0 if enough)."""
        return max(0, quantity - self.stock)
