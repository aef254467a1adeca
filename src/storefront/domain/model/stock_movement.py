"""StockMovement: immutable audit record of one scalar stock change."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from storefront.domain.exceptions import ValidationError


class MovementReason(Enum):
    PURCHASE = "purchase"
    MANUAL_ADJUSTMENT = "manual_adjustment"
    RETURN = "return"
    DAMAGE = "damage"

    @staticmethod
    def parse(raw: str | MovementReason) -> MovementReason:
        if isinstance(raw, MovementReason):
            return raw
        try:
            return MovementReason(raw)
        except ValueError as exc:
            allowed = ", ".join(r.value for r in MovementReason)
            raise ValidationError(
                f"Unknown stock movement reason {raw!r} (expected one of: {allowed})"
            ) from exc


@dataclass(frozen=True)
class StockMovement:
    """One signed change to ``Product.stock``.

    Written exactly once per successful ledger mutation and never updated
    or deleted afterwards.
    """

    id: str | None
    product_id: str
    delta: int
    reason: MovementReason
    user_id: str
    order_id: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self) -> None:
        if self.delta == 0:
            raise ValidationError("Stock movement delta cannot be zero")
