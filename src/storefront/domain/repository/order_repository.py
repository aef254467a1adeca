"""Abstract repository for Order aggregate and its line items."""

from __future__ import annotations

from abc import ABC, abstractmethod

from storefront.domain.model.order import Order, OrderItem, OrderStatus


class OrderRepository(ABC):

    @abstractmethod
    async def get_by_id(self, order_id: str) -> Order | None:
        """Return an order by its ID, or None if not found."""

    @abstractmethod
    async def save(self, order: Order) -> Order:
        """Persist a new or updated order."""

    @abstractmethod
    async def change_status(self, order: Order, expected: OrderStatus) -> bool:
        """Persist ``order.status`` only if the stored status is *expected*.

        Returns False when another writer moved the order first.
        """

    @abstractmethod
    async def items_of(self, order_id: str) -> list[OrderItem]:
        """Return the line items that belong to an order."""

    @abstractmethod
    async def add_item(self, item: OrderItem) -> OrderItem:
        """Persist a new line item."""
