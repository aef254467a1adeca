"""Collection-store-backed implementation of OrderRepository.

Orders and their line items live in two collections, ``orders`` and
``orderItems``, linked by ``orderId``.
"""

from __future__ import annotations

from storefront.domain.model.order import Order, OrderItem, OrderSource, OrderStatus
from storefront.domain.model.value_objects import Money, Quantity
from storefront.domain.repository.order_repository import OrderRepository
from storefront.infrastructure.persistence.collection_names import ORDER_ITEMS, ORDERS
from storefront.infrastructure.persistence.collection_store import CollectionStore
from storefront.infrastructure.persistence.serialization import (
    EPOCH,
    compact,
    from_iso,
    money_or_none,
    to_iso,
)


class JsonOrderRepository(OrderRepository):

    def __init__(self, store: CollectionStore) -> None:
        self._store = store

    # --- OrderRepository interface --------------------------------------------

    async def get_by_id(self, order_id: str) -> Order | None:
        raw = await self._store.get_by_id_async(ORDERS, order_id)
        return self._to_domain(raw) if raw is not None else None

    async def save(self, order: Order) -> Order:
        # create() merges into an existing id, so this is an upsert.
        raw = await self._store.create_async(ORDERS, self._to_raw(order))
        order.id = raw["id"]
        return order

    async def change_status(self, order: Order, expected: OrderStatus) -> bool:
        raw = await self._store.update_async(
            ORDERS,
            order.id,  # type: ignore[arg-type]
            compact({"status": order.status.value, "updatedAt": to_iso(order.updated_at)}),
            only_if=lambda r: r.get("status", OrderStatus.PENDING.value) == expected.value,
        )
        return raw is not None

    async def items_of(self, order_id: str) -> list[OrderItem]:
        records = await self._store.find_async(
            ORDER_ITEMS, lambda r: r.get("orderId") == order_id
        )
        return [self._item_to_domain(raw) for raw in records]

    async def add_item(self, item: OrderItem) -> OrderItem:
        raw = await self._store.create_async(ORDER_ITEMS, self._item_to_raw(item))
        return self._item_to_domain(raw)

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(order: Order) -> dict:
        return compact({
            "id": order.id,
            "orderNumber": order.order_number,
            "status": order.status.value,
            "source": order.source.value,
            "total": order.total.to_json(),
            "couponCode": order.coupon_code,
            "discount": order.discount.to_json() if order.discount else None,
            "createdAt": to_iso(order.created_at),
            "updatedAt": to_iso(order.updated_at),
        })

    @staticmethod
    def _to_domain(raw: dict) -> Order:
        return Order(
            id=raw["id"],
            order_number=raw.get("orderNumber", raw["id"]),
            total=Money.of(raw.get("total", 0)),
            status=OrderStatus(raw.get("status", OrderStatus.PENDING.value)),
            source=OrderSource(raw.get("source", OrderSource.ONLINE.value)),
            coupon_code=raw.get("couponCode"),
            discount=money_or_none(raw.get("discount")),
            created_at=from_iso(raw.get("createdAt")) or EPOCH,
            updated_at=from_iso(raw.get("updatedAt")),
        )

    @staticmethod
    def _item_to_raw(item: OrderItem) -> dict:
        return compact({
            "id": item.id,
            "orderId": item.order_id,
            "productId": item.product_id,
            "size": item.size,
            "quantity": item.quantity.value,
            "price": item.price.to_json(),
        })

    @staticmethod
    def _item_to_domain(raw: dict) -> OrderItem:
        return OrderItem(
            id=raw["id"],
            order_id=raw["orderId"],
            product_id=raw["productId"],
            quantity=Quantity(int(raw["quantity"])),
            price=Money.of(raw.get("price", 0)),
            size=raw.get("size"),
        )
