"""Integration tests for the CompleteOrder use case."""

import asyncio

import pytest

from storefront.application.complete_order import CompleteOrderHandler
from storefront.domain.exceptions import EntityNotFoundError, ValidationError
from storefront.domain.model.inventory import InventoryRecord
from storefront.domain.model.order import Order, OrderItem, OrderStatus
from storefront.domain.model.value_objects import Money, Quantity
from storefront.domain.service.stock_ledger import StockLedger
from tests.fakes import (
    FakeInventoryRepository,
    FakeOrderRepository,
    FakeProductRepository,
    FakeStockMovementRepository,
)


def _setup(status: OrderStatus = OrderStatus.PAID):
    inventory = FakeInventoryRepository([
        InventoryRecord(id=None, product_id="dress", size="M", quantity=3),
        InventoryRecord(id=None, product_id="dress", size="L", quantity=2),
    ])
    orders = FakeOrderRepository()
    ledger = StockLedger(FakeProductRepository(), inventory, FakeStockMovementRepository())

    async def place():
        order = await orders.save(
            Order(id=None, order_number="ORD-7", total=Money.of("450000"), status=status)
        )
        await orders.add_item(OrderItem(
            id=None, order_id=order.id, product_id="dress",
            quantity=Quantity(1), price=Money.of("450000"), size="M",
        ))
        return order.id

    order_id = asyncio.run(place())
    return orders, inventory, CompleteOrderHandler(orders, ledger), order_id


def test_completion_removes_matching_size_records():
    orders, inventory, handler, order_id = _setup()

    removed = asyncio.run(handler.handle(order_id))

    assert removed == 1
    assert inventory.quantity_of("dress", "M") is None
    assert inventory.quantity_of("dress", "L") == 2
    assert asyncio.run(orders.get_by_id(order_id)).status == OrderStatus.COMPLETED


def test_completing_twice_rejected():
    _, inventory, handler, order_id = _setup(OrderStatus.COMPLETED)

    with pytest.raises(ValidationError, match="already completed"):
        asyncio.run(handler.handle(order_id))
    assert inventory.quantity_of("dress", "M") == 3


def test_unknown_order_rejected():
    _, _, handler, _ = _setup()
    with pytest.raises(EntityNotFoundError):
        asyncio.run(handler.handle("nope"))


def test_concurrent_completions_remove_inventory_once():
    orders, inventory, handler, order_id = _setup()

    async def complete_twice():
        return await asyncio.gather(
            handler.handle(order_id), handler.handle(order_id), return_exceptions=True
        )

    results = asyncio.run(complete_twice())

    assert sorted(r for r in results if isinstance(r, int)) == [1]
    errors = [r for r in results if isinstance(r, ValidationError)]
    assert len(errors) == 1
    assert "changed status" in str(errors[0])
    assert inventory.quantity_of("dress", "L") == 2
    assert orders.status_of(order_id) == OrderStatus.COMPLETED
