"""Application service: Show Inventory use case (query)."""

from __future__ import annotations

from datetime import timezone

from storefront.application.dto import InventoryLineDTO
from storefront.domain.repository.inventory_repository import InventoryRepository
from storefront.domain.repository.product_repository import ProductRepository


class ShowInventoryHandler:

    def __init__(
        self,
        inventory_repo: InventoryRepository,
        product_repo: ProductRepository,
    ) -> None:
        self._inventory_repo = inventory_repo
        self._product_repo = product_repo

    async def handle(self) -> list[InventoryLineDTO]:
        names = {p.id: p.name for p in await self._product_repo.list_all()}
        records = await self._inventory_repo.list_all()
        lines = [
            InventoryLineDTO(
                product_id=record.product_id,
                product_name=names.get(record.product_id, "(unknown product)"),
                size=record.size,
                quantity=record.quantity,
                updated_at=record.updated_at.astimezone(timezone.utc).strftime(
                    "%Y-%m-%d %H:%M UTC"
                ),
            )
            for record in records
        ]
        return sorted(lines, key=lambda line: (line.product_name, line.size))
