"""Application service: Confirm Payment use case.

Marks a PENDING order as PAID and records the sale against both stock
signals. Scalar stock is checked for every line before anything is
written: a payment that would oversell is refused as a whole rather than
accepted with some lines left undecremented.

The PENDING -> PAID transition is claimed in storage before any stock
moves, so two payments of one order cannot both take stock. If the sale
is then refused the claim is released and the order is PENDING again.
"""

from __future__ import annotations

import structlog

from storefront.application.dto import PaymentDTO, SaleLineDTO
from storefront.domain.exceptions import (
    DomainException,
    EntityNotFoundError,
    ValidationError,
)
from storefront.domain.model.order import Order, OrderStatus
from storefront.domain.repository.order_repository import OrderRepository
from storefront.domain.service.stock_ledger import SaleResult, StockLedger

logger = structlog.get_logger(__name__)


class ConfirmPaymentHandler:

    def __init__(self, order_repo: OrderRepository, ledger: StockLedger) -> None:
        self._order_repo = order_repo
        self._ledger = ledger

    async def handle(self, order_id: str, user_id: str) -> PaymentDTO:
        order = await self._order_repo.get_by_id(order_id)
        if order is None:
            raise EntityNotFoundError(f"Order '{order_id}' not found")

        # Validates the transition before any stock moves.
        order.mark_paid()

        items = await self._order_repo.items_of(order_id)
        if not items:
            raise ValidationError(f"Order {order.order_number} has no items")

        missing = await self._ledger.shortfalls(items)
        if missing:
            raise ValidationError(_shortfall_message(missing))

        if not await self._order_repo.change_status(order, expected=OrderStatus.PENDING):
            raise ValidationError(
                f"Order {order.order_number} is already paid or no longer pending"
            )

        try:
            sale = await self._ledger.record_sale(items, user_id=user_id, order_id=order_id)
        except DomainException:
            await self._release(order)
            raise

        if not sale.success:
            await self._release(order)
            missing = {
                line.item.product_id: line.stock.shortfall or line.item.quantity.value
                for line in sale.failures
            }
            raise ValidationError(_shortfall_message(missing))

        return self._to_dto(order_id, order.order_number, order.status.value, sale)

    async def _release(self, order: Order) -> None:
        order.reopen()
        if not await self._order_repo.change_status(order, expected=OrderStatus.PAID):
            logger.error("payment_claim_not_released", order_id=order.id)

    @staticmethod
    def _to_dto(
        order_id: str, order_number: str, status: str, sale: SaleResult
    ) -> PaymentDTO:
        return PaymentDTO(
            order_id=order_id,
            order_number=order_number,
            status=status,
            lines=[
                SaleLineDTO(
                    product_id=line.item.product_id,
                    size=line.item.size,
                    quantity=line.item.quantity.value,
                    stock_after=line.stock.stock if line.stock.success else None,
                    size_quantity_after=line.inventory.quantity if line.inventory else None,
                    error=line.stock.error,
                )
                for line in sale.lines
            ],
        )


def _shortfall_message(missing: dict[str, int]) -> str:
    detail = ", ".join(f"{pid} (short {gap})" for pid, gap in sorted(missing.items()))
    return f"Insufficient stock for: {detail}"
