"""Abstract repository for Coupon aggregate."""

from __future__ import annotations

from abc import ABC, abstractmethod

from storefront.domain.model.coupon import Coupon


class CouponRepository(ABC):

    @abstractmethod
    async def get_by_id(self, coupon_id: str) -> Coupon | None:
        """Return a coupon by its ID, or None if not found."""

    @abstractmethod
    async def get_by_code(self, code: str) -> Coupon | None:
        """Return a coupon by code (case-insensitive), or None."""

    @abstractmethod
    async def save(self, coupon: Coupon) -> Coupon:
        """Persist a new or updated coupon."""

    @abstractmethod
    async def consume(self, coupon: Coupon) -> bool:
        """Persist ``used``/``usedBy`` unless someone consumed it first.

        Returns False when the stored coupon was already marked used.
        """
