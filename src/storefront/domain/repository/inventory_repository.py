"""Abstract repository for size-keyed inventory records."""

from __future__ import annotations

from abc import ABC, abstractmethod

from storefront.domain.model.inventory import InventoryRecord


class InventoryRepository(ABC):

    @abstractmethod
    async def find(self, product_id: str, size: str | None) -> InventoryRecord | None:
        """Return the record for a (product, size) pair, or None."""

    @abstractmethod
    async def list_all(self) -> list[InventoryRecord]:
        """Return every inventory record."""

    @abstractmethod
    async def list_for_product(self, product_id: str) -> list[InventoryRecord]:
        """Return every size record of one product."""

    @abstractmethod
    async def add(self, record: InventoryRecord) -> InventoryRecord:
        """Persist a new record, assigning its ID if missing."""

    @abstractmethod
    async def save_quantity(
        self, record: InventoryRecord, expected_quantity: int | None = None
    ) -> InventoryRecord | None:
        """Persist ``quantity`` and ``updated_at`` of an existing record.

        With *expected_quantity* the write happens only if the stored
        quantity still equals it; None if that failed or the record is gone.
        """

    @abstractmethod
    async def remove(self, record_id: str) -> bool:
        """Delete a record; False if it was already gone."""
