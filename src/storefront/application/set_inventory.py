"""Application service: Set Inventory use case.

Creates the size record for a (product, size) pair on first stocking and
overwrites its quantity afterwards, so at most one record per pair exists.
"""

from __future__ import annotations

from datetime import datetime, timezone

from storefront.domain.exceptions import EntityNotFoundError, ValidationError
from storefront.domain.model.inventory import InventoryRecord
from storefront.domain.repository.inventory_repository import InventoryRepository
from storefront.domain.repository.product_repository import ProductRepository


class SetInventoryHandler:

    def __init__(
        self,
        inventory_repo: InventoryRepository,
        product_repo: ProductRepository,
    ) -> None:
        self._inventory_repo = inventory_repo
        self._product_repo = product_repo

    async def handle(self, product_id: str, size: str, quantity: int) -> InventoryRecord:
        """Set the on-hand quantity of one size of a product."""
        if quantity < 0:
            raise ValidationError("Inventory quantity cannot be negative")

        product = await self._product_repo.get_by_id(product_id)
        if product is None:
            raise EntityNotFoundError(f"Product not found: '{product_id}'")

        size = size.strip()
        existing = await self._inventory_repo.find(product_id, size)
        if existing is not None:
            existing.set_quantity(quantity, datetime.now(timezone.utc))
            await self._inventory_repo.save_quantity(existing)
            return existing

        record = InventoryRecord(
            id=None, product_id=product_id, size=size, quantity=quantity
        )
        return await self._inventory_repo.add(record)
