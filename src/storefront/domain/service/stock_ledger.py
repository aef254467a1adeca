"""Domain service: Stock Ledger.

Two stock signals exist side by side:

- ``Product.stock``, a scalar counter per product, changed only through
  :meth:`StockLedger.atomic_decrease_stock` / ``atomic_increase_stock``,
  each of which writes one StockMovement audit record;
- size-keyed ``InventoryRecord`` quantities, decremented on payment and
  deleted on order completion.

The two are stored separately. :meth:`StockLedger.record_sale` moves both
for a sale; the single-signal operations remain for callers that
genuinely need only one.

"Atomic" here means sufficiency-checked and audited. The check-then-write
sequence runs under a per-product lock inside one process. Across
processes every counter write is conditional on the value the check was
made against; when another writer got there first the cycle is re-run
on a fresh read, and ConcurrentModificationError is raised if it keeps
losing.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Callable, Iterable

import structlog

from storefront.domain.exceptions import ConcurrentModificationError, ValidationError
from storefront.domain.model.inventory import InventoryRecord
from storefront.domain.model.order import OrderItem
from storefront.domain.model.stock_movement import MovementReason, StockMovement
from storefront.domain.repository.inventory_repository import InventoryRepository
from storefront.domain.repository.product_repository import ProductRepository
from storefront.domain.repository.stock_movement_repository import (
    StockMovementRepository,
)
from storefront.domain.service.keyed_locks import KeyedAsyncLocks

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class StockResult:
    """Outcome of one scalar stock mutation.

    Insufficient stock and unknown products are reported here, never
    raised: the caller decides whether to abort or carry on.
    """

    success: bool
    product_id: str
    stock: int | None = None
    shortfall: int = 0
    movement: StockMovement | None = None
    error: str | None = None

    @staticmethod
    def ok(product_id: str, stock: int, movement: StockMovement) -> StockResult:
        return StockResult(True, product_id, stock=stock, movement=movement)

    @staticmethod
    def insufficient(product_id: str, available: int, requested: int) -> StockResult:
        return StockResult(
            False,
            product_id,
            stock=available,
            shortfall=requested - available,
            error=f"Insufficient stock (need {requested}, have {available})",
        )

    @staticmethod
    def not_found(product_id: str) -> StockResult:
        return StockResult(False, product_id, error=f"Product '{product_id}' not found")


@dataclass(frozen=True)
class SaleLineResult:
    item: OrderItem
    stock: StockResult
    inventory: InventoryRecord | None = None


@dataclass(frozen=True)
class SaleResult:
    lines: list[SaleLineResult] = field(default_factory=list)
    rolled_back: bool = False

    @property
    def success(self) -> bool:
        return not self.rolled_back and all(line.stock.success for line in self.lines)

    @property
    def failures(self) -> list[SaleLineResult]:
        return [line for line in self.lines if not line.stock.success]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StockLedger:

    def __init__(
        self,
        product_repo: ProductRepository,
        inventory_repo: InventoryRepository,
        movement_repo: StockMovementRepository,
        clock: Callable[[], datetime] = _utcnow,
        write_attempts: int = 5,
    ) -> None:
        self._product_repo = product_repo
        self._inventory_repo = inventory_repo
        self._movement_repo = movement_repo
        self._clock = clock
        self._write_attempts = max(1, write_attempts)
        self._product_locks = KeyedAsyncLocks()
        self._inventory_locks = KeyedAsyncLocks()

    # --- Scalar stock ---------------------------------------------------------

    async def atomic_decrease_stock(
        self,
        product_id: str,
        quantity: int,
        reason: MovementReason | str,
        user_id: str,
        order_id: str | None = None,
    ) -> StockResult:
        """Take *quantity* off ``Product.stock`` if enough is available.

        On insufficiency nothing is written and no movement is recorded.
        """
        _require_positive(quantity)
        return await self._apply(
            product_id, -quantity, MovementReason.parse(reason), user_id, order_id
        )

    async def atomic_increase_stock(
        self,
        product_id: str,
        quantity: int,
        reason: MovementReason | str,
        user_id: str,
        order_id: str | None = None,
    ) -> StockResult:
        """Add *quantity* to ``Product.stock``; increases are always accepted."""
        _require_positive(quantity)
        return await self._apply(
            product_id, quantity, MovementReason.parse(reason), user_id, order_id
        )

    async def shortfalls(self, order_items: Iterable[OrderItem]) -> dict[str, int]:
        """Missing units per product for a prospective sale (empty if none).

        Quantities of several lines for the same product are summed.
        Unknown products count their whole quantity as missing.
        """
        needed: dict[str, int] = defaultdict(int)
        for item in order_items:
            needed[item.product_id] += item.quantity.value

        missing: dict[str, int] = {}
        for product_id, quantity in needed.items():
            product = await self._product_repo.get_by_id(product_id)
            gap = quantity if product is None else product.shortfall(quantity)
            if gap > 0:
                missing[product_id] = gap
        return missing

    # --- Size-keyed inventory -------------------------------------------------

    async def decrease_inventory_on_payment(
        self, order_items: Iterable[OrderItem]
    ) -> list[InventoryRecord]:
        """Decrement each line's (product, size) record, clamped at zero.

        Lines without a matching record are skipped. ``Product.stock`` is
        not touched.
        """
        updated: list[InventoryRecord] = []
        for item in order_items:
            record = await self._decrease_inventory(item)
            if record is not None:
                updated.append(record)
        return updated

    async def remove_inventory_on_completion(
        self, order_items: Iterable[OrderItem]
    ) -> int:
        """Delete each line's (product, size) record outright.

        Returns how many records were removed.
        """
        removed = 0
        for item in order_items:
            async with self._inventory_locks.lock(_inventory_key(item)):
                record = await self._inventory_repo.find(item.product_id, item.size)
                if record is None:
                    continue
                if await self._inventory_repo.remove(record.id):  # type: ignore[arg-type]
                    removed += 1
                    logger.info(
                        "inventory_removed",
                        product_id=item.product_id,
                        size=item.size,
                        quantity=record.quantity,
                    )
        return removed

    # --- Combined -------------------------------------------------------------

    async def record_sale(
        self,
        order_items: Iterable[OrderItem],
        user_id: str,
        order_id: str | None = None,
    ) -> SaleResult:
        """Move both stock signals for every line of a sale.

        Scalar stock goes first, line by line. If a line cannot be taken
        (stock changed since the caller checked, or the product vanished)
        the lines already taken are put back with a ``return`` movement
        and no size record is touched. Size records are decremented only
        once every line has been taken.
        """
        taken: list[SaleLineResult] = []
        for item in order_items:
            try:
                stock = await self.atomic_decrease_stock(
                    item.product_id,
                    item.quantity.value,
                    MovementReason.PURCHASE,
                    user_id,
                    order_id,
                )
            except ConcurrentModificationError:
                await self._put_back(taken, user_id, order_id)
                raise
            line = SaleLineResult(item=item, stock=stock)
            if not stock.success:
                logger.warning(
                    "sale_stock_not_decreased",
                    product_id=item.product_id,
                    order_id=order_id,
                    error=stock.error,
                )
                await self._put_back(taken, user_id, order_id)
                return SaleResult(lines=[*taken, line], rolled_back=True)
            taken.append(line)

        lines = []
        for line in taken:
            try:
                inventory = await self._decrease_inventory(line.item)
            except ConcurrentModificationError as exc:
                # Scalar stock is already taken; the size record is left as is.
                logger.warning(
                    "sale_size_record_skipped",
                    product_id=line.item.product_id,
                    size=line.item.size,
                    order_id=order_id,
                    error=str(exc),
                )
                inventory = None
            lines.append(replace(line, inventory=inventory))
        return SaleResult(lines=lines)

    # --- Internal helpers -----------------------------------------------------

    async def _apply(
        self,
        product_id: str,
        delta: int,
        reason: MovementReason,
        user_id: str,
        order_id: str | None,
    ) -> StockResult:
        async with self._product_locks.lock(product_id):
            # The write only lands if the stored counter still holds the
            # value the check was made against.
            for attempt in range(1, self._write_attempts + 1):
                product = await self._product_repo.get_by_id(product_id)
                if product is None:
                    return StockResult.not_found(product_id)

                if delta < 0 and product.stock < -delta:
                    logger.info(
                        "stock_insufficient",
                        product_id=product_id,
                        requested=-delta,
                        available=product.stock,
                    )
                    return StockResult.insufficient(product_id, product.stock, -delta)

                now = self._clock()
                new_stock = product.stock + delta
                written = await self._product_repo.set_stock(
                    product_id, new_stock, now, expected_stock=product.stock
                )
                if written is not None:
                    break
                logger.info(
                    "stock_changed_concurrently", product_id=product_id, attempt=attempt
                )
            else:
                raise ConcurrentModificationError(
                    f"Stock of product '{product_id}' kept changing; "
                    f"gave up after {self._write_attempts} attempts"
                )

            movement = await self._movement_repo.append(
                StockMovement(
                    id=None,
                    product_id=product_id,
                    delta=delta,
                    reason=reason,
                    user_id=user_id,
                    order_id=order_id,
                    created_at=now,
                )
            )

        logger.info(
            "stock_changed",
            product_id=product_id,
            delta=delta,
            stock=new_stock,
            reason=reason.value,
            order_id=order_id,
        )
        return StockResult.ok(product_id, new_stock, movement)

    async def _decrease_inventory(self, item: OrderItem) -> InventoryRecord | None:
        async with self._inventory_locks.lock(_inventory_key(item)):
            for attempt in range(1, self._write_attempts + 1):
                record = await self._inventory_repo.find(item.product_id, item.size)
                if record is None:
                    logger.info(
                        "inventory_record_missing",
                        product_id=item.product_id,
                        size=item.size,
                    )
                    return None
                expected = record.quantity
                record.decrease(item.quantity.value, self._clock())
                saved = await self._inventory_repo.save_quantity(
                    record, expected_quantity=expected
                )
                if saved is not None:
                    return record
                logger.info(
                    "inventory_changed_concurrently",
                    product_id=item.product_id,
                    size=item.size,
                    attempt=attempt,
                )
            raise ConcurrentModificationError(
                f"Inventory of {_inventory_key(item)} kept changing; "
                f"gave up after {self._write_attempts} attempts"
            )

    async def _put_back(
        self, taken: list[SaleLineResult], user_id: str, order_id: str | None
    ) -> None:
        for line in reversed(taken):
            await self.atomic_increase_stock(
                line.item.product_id,
                line.item.quantity.value,
                MovementReason.RETURN,
                user_id,
                order_id,
            )
        if taken:
            logger.warning("sale_rolled_back", order_id=order_id, lines=len(taken))


def _require_positive(quantity: int) -> None:
    if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity <= 0:
        raise ValidationError(f"Stock quantity must be a positive integer, got {quantity!r}")


def _inventory_key(item: OrderItem) -> str:
    return f"{item.product_id}/{item.size}"
