"""Application service: Show Stock use case (query)."""

from __future__ import annotations

from storefront.application.dto import MovementDTO, StockDTO
from storefront.domain.exceptions import EntityNotFoundError
from storefront.domain.repository.inventory_repository import InventoryRepository
from storefront.domain.repository.product_repository import ProductRepository
from storefront.domain.repository.stock_movement_repository import (
    StockMovementRepository,
)


class ShowStockHandler:

    def __init__(
        self,
        product_repo: ProductRepository,
        inventory_repo: InventoryRepository,
        movement_repo: StockMovementRepository,
    ) -> None:
        self._product_repo = product_repo
        self._inventory_repo = inventory_repo
        self._movement_repo = movement_repo

    async def handle(self, product_id: str) -> StockDTO:
        product = await self._product_repo.get_by_id(product_id)
        if product is None:
            raise EntityNotFoundError(f"Product not found: '{product_id}'")

        sizes = {
            record.size: record.quantity
            for record in await self._inventory_repo.list_for_product(product_id)
        }
        movements = await self._movement_repo.list_for_product(product_id)
        return StockDTO(
            product_id=product_id,
            product_name=product.name,
            stock=product.stock,
            sizes=sizes,
            movements=[
                MovementDTO(
                    delta=m.delta,
                    reason=m.reason.value,
                    user_id=m.user_id,
                    order_id=m.order_id,
                    created_at=m.created_at.isoformat(timespec="seconds"),
                )
                for m in movements
            ],
        )
