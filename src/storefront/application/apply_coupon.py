"""Application service: Apply Coupon use case.

Validates the coupon like ValidateCouponHandler, then consumes one-time
coupons. Consumption is a conditional write: if another checkout marked
the coupon used in the meantime, this one is rejected.
"""

from __future__ import annotations

from datetime import datetime, timezone

from storefront.application.dto import CouponQuoteDTO
from storefront.application.validate_coupon import ValidateCouponHandler, quote
from storefront.domain.exceptions import ValidationError
from storefront.domain.model.value_objects import Money
from storefront.domain.repository.coupon_repository import CouponRepository


class ApplyCouponHandler:

    def __init__(self, coupon_repo: CouponRepository) -> None:
        self._coupon_repo = coupon_repo

    async def handle(
        self,
        code: str,
        subtotal: str,
        user_id: str | None = None,
        now: datetime | None = None,
    ) -> CouponQuoteDTO:
        now = now or datetime.now(timezone.utc)
        coupon = await ValidateCouponHandler(self._coupon_repo).load(code)
        amount = Money.of(subtotal)
        coupon.ensure_applicable(amount, now)

        if not coupon.one_time_use:
            return quote(coupon, amount)

        coupon.mark_used(user_id, now)
        if not await self._coupon_repo.consume(coupon):
            raise ValidationError(f"Coupon {coupon.code} has already been used")
        return quote(coupon, amount, consumed=True)
