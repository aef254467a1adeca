"""Collection-store-backed implementation of StockMovementRepository."""

from __future__ import annotations

from storefront.domain.model.stock_movement import MovementReason, StockMovement
from storefront.domain.repository.stock_movement_repository import (
    StockMovementRepository,
)
from storefront.infrastructure.persistence.collection_names import STOCK_MOVEMENTS
from storefront.infrastructure.persistence.collection_store import CollectionStore
from storefront.infrastructure.persistence.serialization import (
    EPOCH,
    compact,
    from_iso,
    to_iso,
)


class JsonStockMovementRepository(StockMovementRepository):

    def __init__(self, store: CollectionStore) -> None:
        self._store = store

    # --- StockMovementRepository interface ------------------------------------

    async def append(self, movement: StockMovement) -> StockMovement:
        raw = await self._store.create_async(STOCK_MOVEMENTS, self._to_raw(movement))
        return self._to_domain(raw)

    async def list_for_product(self, product_id: str) -> list[StockMovement]:
        records = await self._store.find_async(
            STOCK_MOVEMENTS, lambda r: r.get("productId") == product_id
        )
        movements = [self._to_domain(raw) for raw in records]
        return sorted(movements, key=lambda m: m.created_at)

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(movement: StockMovement) -> dict:
        return compact({
            "id": movement.id,
            "productId": movement.product_id,
            "delta": movement.delta,
            "reason": movement.reason.value,
            "orderId": movement.order_id,
            "userId": movement.user_id,
            "createdAt": to_iso(movement.created_at),
        })

    @staticmethod
    def _to_domain(raw: dict) -> StockMovement:
        return StockMovement(
            id=raw["id"],
            product_id=raw["productId"],
            delta=int(raw["delta"]),
            reason=MovementReason(raw["reason"]),
            user_id=raw.get("userId", ""),
            order_id=raw.get("orderId"),
            created_at=from_iso(raw.get("createdAt")) or EPOCH,
        )
