"""Abstract repository for the append-only stock movement log."""

from __future__ import annotations

from abc import ABC, abstractmethod

from storefront.domain.model.stock_movement import StockMovement


class StockMovementRepository(ABC):

    @abstractmethod
    async def append(self, movement: StockMovement) -> StockMovement:
        """Record a movement and return it with its ID assigned."""

    @abstractmethod
    async def list_for_product(self, product_id: str) -> list[StockMovement]:
        """Return a product's movements, oldest first."""
