"""In-memory fakes for testing.

The fake repositories implement the same abstract interfaces as the JSON
repositories but keep everything in a dict. FakeS3Client mimics the
handful of boto3 S3 calls the object storage medium makes, including
ETag-conditional writes.
"""

from __future__ import annotations

import asyncio
import copy
import dataclasses
import io
import itertools
import threading

from botocore.exceptions import ClientError

from storefront.domain.model.coupon import Coupon
from storefront.domain.model.inventory import InventoryRecord
from storefront.domain.model.order import Order, OrderItem
from storefront.domain.model.product import Product
from storefront.domain.model.stock_movement import StockMovement
from storefront.domain.repository.coupon_repository import CouponRepository
from storefront.domain.repository.inventory_repository import InventoryRepository
from storefront.domain.repository.order_repository import OrderRepository
from storefront.domain.repository.product_repository import ProductRepository
from storefront.domain.repository.stock_movement_repository import (
    StockMovementRepository,
)

_ids = itertools.count(1)


def _next_id(prefix: str) -> str:
    return f"{prefix}-{next(_ids)}"


class FakeProductRepository(ProductRepository):

    def __init__(self, products: list[Product] | None = None) -> None:
        self._store: dict[str, Product] = {}
        for p in products or []:
            self._store[p.id] = p

    async def get_by_id(self, product_id: str) -> Product | None:
        product = self._store.get(product_id)
        return copy.deepcopy(product) if product is not None else None

    async def list_all(self) -> list[Product]:
        return [copy.deepcopy(p) for p in self._store.values()]

    async def add(self, product: Product) -> Product:
        if product.id is None:
            product.id = _next_id("product")
        self._store[product.id] = copy.deepcopy(product)
        return product

    async def set_stock(self, product_id, stock, updated_at, expected_stock=None):
        product = self._store.get(product_id)
        if product is None:
            return None
        if expected_stock is not None and product.stock != expected_stock:
            return None
        product.stock = stock
        product.updated_at = updated_at
        return copy.deepcopy(product)

    def stock_of(self, product_id: str) -> int:
        return self._store[product_id].stock


class FakeInventoryRepository(InventoryRepository):

    def __init__(self, records: list[InventoryRecord] | None = None) -> None:
        self._store: dict[str, InventoryRecord] = {}
        for record in records or []:
            if record.id is None:
                record.id = _next_id("inv")
            self._store[record.id] = record

    async def find(self, product_id, size):
        for record in self._store.values():
            if record.matches(product_id, size):
                return copy.deepcopy(record)
        return None

    async def list_all(self) -> list[InventoryRecord]:
        return [copy.deepcopy(r) for r in self._store.values()]

    async def list_for_product(self, product_id: str) -> list[InventoryRecord]:
        return [copy.deepcopy(r) for r in self._store.values() if r.product_id == product_id]

    async def add(self, record: InventoryRecord) -> InventoryRecord:
        if record.id is None:
            record.id = _next_id("inv")
        self._store[record.id] = copy.deepcopy(record)
        return record

    async def save_quantity(self, record, expected_quantity=None):
        stored = self._store.get(record.id)
        if stored is None:
            return None
        if expected_quantity is not None and stored.quantity != expected_quantity:
            return None
        stored.quantity = record.quantity
        stored.updated_at = record.updated_at
        return copy.deepcopy(stored)

    async def remove(self, record_id: str) -> bool:
        return self._store.pop(record_id, None) is not None

    def quantity_of(self, product_id: str, size: str) -> int | None:
        for record in self._store.values():
            if record.matches(product_id, size):
                return record.quantity
        return None


class FakeStockMovementRepository(StockMovementRepository):

    def __init__(self) -> None:
        self.movements: list[StockMovement] = []

    async def append(self, movement: StockMovement) -> StockMovement:
        stored = dataclasses.replace(movement, id=movement.id or _next_id("mov"))
        self.movements.append(stored)
        return stored

    async def list_for_product(self, product_id: str) -> list[StockMovement]:
        return sorted(
            (m for m in self.movements if m.product_id == product_id),
            key=lambda m: m.created_at,
        )


class FakeOrderRepository(OrderRepository):

    def __init__(self) -> None:
        self._orders: dict[str, Order] = {}
        self._items: list[OrderItem] = []

    async def get_by_id(self, order_id: str) -> Order | None:
        order = self._orders.get(order_id)
        result = copy.deepcopy(order) if order is not None else None
        # Hand control back to the loop, as a real read would.
        await asyncio.sleep(0)
        return result

    async def save(self, order: Order) -> Order:
        if order.id is None:
            order.id = _next_id("order")
        self._orders[order.id] = copy.deepcopy(order)
        return order

    async def change_status(self, order, expected):
        stored = self._orders.get(order.id)
        if stored is None or stored.status != expected:
            return False
        stored.status = order.status
        stored.updated_at = order.updated_at
        return True

    def status_of(self, order_id: str):
        return self._orders[order_id].status

    async def items_of(self, order_id: str) -> list[OrderItem]:
        return [i for i in self._items if i.order_id == order_id]

    async def add_item(self, item: OrderItem) -> OrderItem:
        stored = dataclasses.replace(item, id=item.id or _next_id("item"))
        self._items.append(stored)
        return stored


class FakeCouponRepository(CouponRepository):

    def __init__(self, coupons: list[Coupon] | None = None) -> None:
        self._store: dict[str, Coupon] = {}
        for coupon in coupons or []:
            if coupon.id is None:
                coupon.id = _next_id("coupon")
            self._store[coupon.id] = coupon

    async def get_by_id(self, coupon_id: str) -> Coupon | None:
        coupon = self._store.get(coupon_id)
        return copy.deepcopy(coupon) if coupon is not None else None

    async def get_by_code(self, code: str) -> Coupon | None:
        for coupon in self._store.values():
            if coupon.matches_code(code):
                return copy.deepcopy(coupon)
        return None

    async def save(self, coupon: Coupon) -> Coupon:
        if coupon.id is None:
            coupon.id = _next_id("coupon")
        self._store[coupon.id] = copy.deepcopy(coupon)
        return coupon

    async def consume(self, coupon: Coupon) -> bool:
        stored = self._store.get(coupon.id)
        if stored is None or stored.used:
            return False
        stored.used = True
        stored.used_by = coupon.used_by
        stored.updated_at = coupon.updated_at
        return True


# --- Object storage ---------------------------------------------------------


def client_error(code: str, operation: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


class _FakePaginator:

    def __init__(self, client: FakeS3Client) -> None:
        self._client = client

    def paginate(self, Bucket: str, Prefix: str = ""):
        keys = sorted(k for k in self._client.objects if k.startswith(Prefix))
        yield {"Contents": [{"Key": k} for k in keys]}


class FakeS3Client:
    """Dict-backed stand-in for a boto3 S3 client.

    ``objects`` maps key to ``(body bytes, etag)``. ``get_calls`` counts
    fetches so tests can see whether a read hit the cache. Set
    ``fail_reads`` to make get_object raise a non-404 error, and
    ``conflicts`` to reject that many conditional writes as if a peer
    had written first.
    """

    def __init__(self) -> None:
        self.objects: dict[str, tuple[bytes, str]] = {}
        self.get_calls = 0
        self.put_calls: list[dict] = []
        self.fail_reads = False
        self.conflicts = 0
        self._etags = itertools.count(1)
        # Calls arrive from worker threads; S3 applies each one atomically.
        self._lock = threading.Lock()

    def put_raw(self, key: str, body: str) -> str:
        etag = f'"etag-{next(self._etags)}"'
        self.objects[key] = (body.encode("utf-8"), etag)
        return etag

    def body_of(self, key: str) -> str:
        return self.objects[key][0].decode("utf-8")

    def get_object(self, Bucket: str, Key: str) -> dict:
        with self._lock:
            return self._get(Key)

    def _get(self, Key: str) -> dict:
        self.get_calls += 1
        if self.fail_reads:
            raise client_error("InternalError", "GetObject")
        if Key not in self.objects:
            raise client_error("NoSuchKey", "GetObject")
        body, etag = self.objects[Key]
        return {"Body": io.BytesIO(body), "ETag": etag}

    def put_object(self, Bucket: str, Key: str, Body: bytes, ContentType: str, **conditions) -> dict:
        with self._lock:
            return self._put(Key, Body, ContentType, conditions)

    def _put(self, Key: str, Body: bytes, ContentType: str, conditions: dict) -> dict:
        self.put_calls.append({"Key": Key, "ContentType": ContentType, **conditions})
        if self.conflicts > 0:
            self.conflicts -= 1
            raise client_error("PreconditionFailed", "PutObject")

        current = self.objects.get(Key)
        if conditions.get("IfNoneMatch") == "*" and current is not None:
            raise client_error("PreconditionFailed", "PutObject")
        if "IfMatch" in conditions and (current is None or current[1] != conditions["IfMatch"]):
            raise client_error("PreconditionFailed", "PutObject")

        etag = f'"etag-{next(self._etags)}"'
        self.objects[Key] = (Body, etag)
        return {"ETag": etag}

    def get_paginator(self, operation: str) -> _FakePaginator:
        assert operation == "list_objects_v2"
        return _FakePaginator(self)


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds
