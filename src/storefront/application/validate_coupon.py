"""Application service: Validate Coupon use case (query)."""

from __future__ import annotations

from datetime import datetime, timezone

from storefront.application.dto import CouponQuoteDTO
from storefront.domain.exceptions import EntityNotFoundError, ValidationError
from storefront.domain.model.coupon import Coupon
from storefront.domain.model.value_objects import Money
from storefront.domain.repository.coupon_repository import CouponRepository


class ValidateCouponHandler:

    def __init__(self, coupon_repo: CouponRepository) -> None:
        self._coupon_repo = coupon_repo

    async def handle(
        self, code: str, subtotal: str, now: datetime | None = None
    ) -> CouponQuoteDTO:
        coupon = await self.load(code)
        amount = Money.of(subtotal)
        coupon.ensure_applicable(amount, now or datetime.now(timezone.utc))
        return quote(coupon, amount)

    async def load(self, code: str) -> Coupon:
        if not code or not code.strip():
            raise ValidationError("Coupon code is required")
        coupon = await self._coupon_repo.get_by_code(code)
        if coupon is None:
            raise EntityNotFoundError(f"Coupon '{code}' not found")
        return coupon


def quote(coupon: Coupon, subtotal: Money, consumed: bool = False) -> CouponQuoteDTO:
    discount = coupon.discount_for(subtotal)
    return CouponQuoteDTO(
        code=coupon.code,
        subtotal=str(subtotal),
        discount=str(discount),
        total=str(subtotal - discount),
        consumed=consumed,
    )
