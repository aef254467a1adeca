"""Coupon aggregate.

A coupon grants a percentage or fixed discount, optionally within a
validity window and above a minimum purchase. One-time coupons are
consumed by flipping ``used``; the check against that flag happens here,
the persistence of it in the coupon repository.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum

from storefront.domain.exceptions import ValidationError
from storefront.domain.model.value_objects import Money


class DiscountType(Enum):
    PERCENTAGE = "PERCENTAGE"
    FIXED = "FIXED"


@dataclass
class Coupon:

    id: str | None
    code: str
    discount: Decimal
    discount_type: DiscountType
    valid_from: datetime | None = None
    valid_until: datetime | None = None
    min_purchase: Money | None = None
    max_discount: Money | None = None
    one_time_use: bool = False
    used: bool = False
    used_by: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime | None = None

    def __post_init__(self) -> None:
        if not self.code or not self.code.strip():
            raise ValidationError("Coupon code is required")
        if self.discount <= 0:
            raise ValidationError("Coupon discount must be positive")
        if self.discount_type == DiscountType.PERCENTAGE and self.discount > 100:
            raise ValidationError("Percentage discount cannot exceed 100")

    def matches_code(self, code: str) -> bool:
        return self.code.upper() == code.strip().upper()

    def ensure_applicable(self, subtotal: Money, now: datetime | None = None) -> None:
        """Raise ValidationError if the coupon cannot be used for *subtotal*."""
        now = now or datetime.now(timezone.utc)
        if self.one_time_use and self.used:
            raise ValidationError(f"Coupon {self.code} has already been used")
        if self.valid_until is not None and self.valid_until < now:
            raise ValidationError(f"Coupon {self.code} has expired")
        if self.valid_from is not None and self.valid_from > now:
            raise ValidationError(f"Coupon {self.code} is not valid yet")
        if self.min_purchase is not None and subtotal < self.min_purchase:
            raise ValidationError(
                f"Coupon {self.code} requires a minimum purchase of {self.min_purchase}"
            )

    def discount_for(self, subtotal: Money) -> Money:
        """Discount granted on *subtotal*, never more than the subtotal itself."""
        if self.discount_type == DiscountType.PERCENTAGE:
            amount = subtotal.percent(self.discount)
        else:
            amount = Money(self.discount, subtotal.currency)
        if self.max_discount is not None:
            amount = amount.min(self.max_discount)
        return amount.min(subtotal)

    def mark_used(self, user_id: str | None, now: datetime | None = None) -> None:
        """Consume a one-time coupon. Reusable coupons are left untouched."""
        if not self.one_time_use:
            return
        if self.used:
            raise ValidationError(f"Coupon {self.code} has already been used")
        self.used = True
        self.used_by = user_id
        self.updated_at = now or datetime.now(timezone.utc)
