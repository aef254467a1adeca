"""Collection-store-backed implementation of CouponRepository."""

from __future__ import annotations

from decimal import Decimal

from storefront.domain.model.coupon import Coupon, DiscountType
from storefront.domain.repository.coupon_repository import CouponRepository
from storefront.infrastructure.persistence.collection_names import COUPONS
from storefront.infrastructure.persistence.collection_store import CollectionStore
from storefront.infrastructure.persistence.serialization import (
    EPOCH,
    compact,
    from_iso,
    money_or_none,
    to_iso,
)


class JsonCouponRepository(CouponRepository):

    def __init__(self, store: CollectionStore) -> None:
        self._store = store

    # --- CouponRepository interface -------------------------------------------

    async def get_by_id(self, coupon_id: str) -> Coupon | None:
        raw = await self._store.get_by_id_async(COUPONS, coupon_id)
        return self._to_domain(raw) if raw is not None else None

    async def get_by_code(self, code: str) -> Coupon | None:
        wanted = code.strip().upper()
        raw = await self._store.find_one_async(
            COUPONS, lambda r: str(r.get("code", "")).upper() == wanted
        )
        return self._to_domain(raw) if raw is not None else None

    async def save(self, coupon: Coupon) -> Coupon:
        raw = await self._store.create_async(COUPONS, self._to_raw(coupon))
        coupon.id = raw["id"]
        return coupon

    async def consume(self, coupon: Coupon) -> bool:
        raw = await self._store.update_async(
            COUPONS,
            coupon.id,  # type: ignore[arg-type]
            compact({
                "used": True,
                "usedBy": coupon.used_by,
                "updatedAt": to_iso(coupon.updated_at),
            }),
            only_if=lambda r: not r.get("used", False),
        )
        return raw is not None

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(coupon: Coupon) -> dict:
        return compact({
            "id": coupon.id,
            "code": coupon.code,
            "discount": float(coupon.discount) if coupon.discount % 1 else int(coupon.discount),
            "discountType": coupon.discount_type.value,
            "validFrom": to_iso(coupon.valid_from),
            "validUntil": to_iso(coupon.valid_until),
            "minPurchase": coupon.min_purchase.to_json() if coupon.min_purchase else None,
            "maxDiscount": coupon.max_discount.to_json() if coupon.max_discount else None,
            "oneTimeUse": coupon.one_time_use,
            "used": coupon.used,
            "usedBy": coupon.used_by,
            "createdAt": to_iso(coupon.created_at),
            "updatedAt": to_iso(coupon.updated_at),
        })

    @staticmethod
    def _to_domain(raw: dict) -> Coupon:
        # Records written by the admin panel use oneTime / expiresAt.
        return Coupon(
            id=raw["id"],
            code=raw["code"],
            discount=Decimal(str(raw["discount"])),
            discount_type=DiscountType(raw.get("discountType", DiscountType.PERCENTAGE.value)),
            valid_from=from_iso(raw.get("validFrom")),
            valid_until=from_iso(raw.get("validUntil") or raw.get("expiresAt")),
            min_purchase=money_or_none(raw.get("minPurchase")),
            max_discount=money_or_none(raw.get("maxDiscount")),
            one_time_use=bool(raw.get("oneTimeUse") or raw.get("oneTime")),
            used=bool(raw.get("used", False)),
            used_by=raw.get("usedBy"),
            created_at=from_iso(raw.get("createdAt")) or EPOCH,
            updated_at=from_iso(raw.get("updatedAt")),
        )
