"""Collection-store-backed implementation of InventoryRepository."""

from __future__ import annotations

from storefront.domain.model.inventory import InventoryRecord
from storefront.domain.repository.inventory_repository import InventoryRepository
from storefront.infrastructure.persistence.collection_names import INVENTORY
from storefront.infrastructure.persistence.collection_store import CollectionStore
from storefront.infrastructure.persistence.serialization import (
    EPOCH,
    compact,
    from_iso,
    to_iso,
)


class JsonInventoryRepository(InventoryRepository):

    def __init__(self, store: CollectionStore) -> None:
        self._store = store

    # --- InventoryRepository interface ----------------------------------------

    async def find(self, product_id: str, size: str | None) -> InventoryRecord | None:
        raw = await self._store.find_one_async(
            INVENTORY,
            lambda r: r.get("productId") == product_id and r.get("size") == size,
        )
        return self._to_domain(raw) if raw is not None else None

    async def list_all(self) -> list[InventoryRecord]:
        return [self._to_domain(raw) for raw in await self._store.get_all_async(INVENTORY)]

    async def list_for_product(self, product_id: str) -> list[InventoryRecord]:
        records = await self._store.find_async(
            INVENTORY, lambda r: r.get("productId") == product_id
        )
        return [self._to_domain(raw) for raw in records]

    async def add(self, record: InventoryRecord) -> InventoryRecord:
        raw = await self._store.create_async(INVENTORY, self._to_raw(record))
        record.id = raw["id"]
        return record

    async def save_quantity(
        self, record: InventoryRecord, expected_quantity: int | None = None
    ) -> InventoryRecord | None:
        only_if = None
        if expected_quantity is not None:
            only_if = lambda r: int(r.get("quantity", 0)) == expected_quantity  # noqa: E731
        raw = await self._store.update_async(
            INVENTORY,
            record.id,  # type: ignore[arg-type]
            {"quantity": record.quantity, "updatedAt": to_iso(record.updated_at)},
            only_if=only_if,
        )
        return self._to_domain(raw) if raw is not None else None

    async def remove(self, record_id: str) -> bool:
        return await self._store.remove_async(INVENTORY, record_id)

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(record: InventoryRecord) -> dict:
        return compact({
            "id": record.id,
            "productId": record.product_id,
            "size": record.size,
            "quantity": record.quantity,
            "updatedAt": to_iso(record.updated_at),
        })

    @staticmethod
    def _to_domain(raw: dict) -> InventoryRecord:
        return InventoryRecord(
            id=raw["id"],
            product_id=raw["productId"],
            size=raw["size"],
            quantity=int(raw.get("quantity", 0)),
            updated_at=from_iso(raw.get("updatedAt")) or EPOCH,
        )
