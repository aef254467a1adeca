"""Application service: Adjust Stock use case.

Manual stock changes (restocking, returns, damage write-offs) go through
the ledger like sales do, so each one leaves a movement record.
"""

from __future__ import annotations

from storefront.domain.exceptions import EntityNotFoundError, ValidationError
from storefront.domain.model.stock_movement import MovementReason
from storefront.domain.service.stock_ledger import StockLedger, StockResult


class AdjustStockHandler:

    def __init__(self, ledger: StockLedger) -> None:
        self._ledger = ledger

    async def handle(
        self,
        product_id: str,
        delta: int,
        reason: str = MovementReason.MANUAL_ADJUSTMENT.value,
        user_id: str = "system",
    ) -> StockResult:
        """Apply a signed stock change; raise if it cannot be applied."""
        if delta == 0:
            raise ValidationError("Stock adjustment cannot be zero")

        if delta > 0:
            result = await self._ledger.atomic_increase_stock(
                product_id, delta, reason, user_id
            )
        else:
            result = await self._ledger.atomic_decrease_stock(
                product_id, -delta, reason, user_id
            )

        if result.success:
            return result
        if result.stock is None:
            raise EntityNotFoundError(result.error or f"Product '{product_id}' not found")
        raise ValidationError(
            f"Cannot remove {-delta} units of product '{product_id}': {result.error}"
        )
