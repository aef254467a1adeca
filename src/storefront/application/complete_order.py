"""Application service: Complete Order use case.

Completing an order means its goods have left the shop for good, so the
matching size records are deleted rather than decremented. The status
change is conditional on the status the order was read with; only the
caller that wins it removes inventory.
"""

from __future__ import annotations

from storefront.domain.exceptions import EntityNotFoundError, ValidationError
from storefront.domain.repository.order_repository import OrderRepository
from storefront.domain.service.stock_ledger import StockLedger


class CompleteOrderHandler:

    def __init__(self, order_repo: OrderRepository, ledger: StockLedger) -> None:
        self._order_repo = order_repo
        self._ledger = ledger

    async def handle(self, order_id: str) -> int:
        """Complete the order and return how many size records were removed."""
        order = await self._order_repo.get_by_id(order_id)
        if order is None:
            raise EntityNotFoundError(f"Order '{order_id}' not found")

        previous = order.status
        order.complete()
        if not await self._order_repo.change_status(order, expected=previous):
            raise ValidationError(
                f"Order {order.order_number} changed status while being completed"
            )

        items = await self._order_repo.items_of(order_id)
        return await self._ledger.remove_inventory_on_completion(items)
