"""Collection-store-backed implementation of ProductRepository."""

from __future__ import annotations

from datetime import datetime

from storefront.domain.model.product import Product
from storefront.domain.model.value_objects import Money
from storefront.domain.repository.product_repository import ProductRepository
from storefront.infrastructure.persistence.collection_names import PRODUCTS
from storefront.infrastructure.persistence.collection_store import CollectionStore
from storefront.infrastructure.persistence.serialization import (
    EPOCH,
    compact,
    from_iso,
    to_iso,
)


class JsonProductRepository(ProductRepository):

    def __init__(self, store: CollectionStore) -> None:
        self._store = store

    # --- ProductRepository interface ------------------------------------------

    async def get_by_id(self, product_id: str) -> Product | None:
        raw = await self._store.get_by_id_async(PRODUCTS, product_id)
        return self._to_domain(raw) if raw is not None else None

    async def list_all(self) -> list[Product]:
        return [self._to_domain(raw) for raw in await self._store.get_all_async(PRODUCTS)]

    async def add(self, product: Product) -> Product:
        raw = await self._store.create_async(PRODUCTS, self._to_raw(product))
        product.id = raw["id"]
        return product

    async def set_stock(
        self,
        product_id: str,
        stock: int,
        updated_at: datetime,
        expected_stock: int | None = None,
    ) -> Product | None:
        # Only the counter is sent so concurrent catalog edits are not clobbered.
        only_if = None
        if expected_stock is not None:
            only_if = lambda r: int(r.get("stock", 0)) == expected_stock  # noqa: E731
        raw = await self._store.update_async(
            PRODUCTS,
            product_id,
            {"stock": stock, "updatedAt": to_iso(updated_at)},
            only_if=only_if,
        )
        return self._to_domain(raw) if raw is not None else None

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(product: Product) -> dict:
        return compact({
            "id": product.id,
            "name": product.name,
            "slug": product.slug,
            "price": product.price.to_json(),
            "stock": product.stock,
            "categoryId": product.category_id,
            "createdAt": to_iso(product.created_at),
            "updatedAt": to_iso(product.updated_at),
        })

    @staticmethod
    def _to_domain(raw: dict) -> Product:
        return Product(
            id=raw["id"],
            name=raw["name"],
            price=Money.of(raw.get("price", 0)),
            stock=int(raw.get("stock", 0)),
            slug=raw.get("slug", ""),
            category_id=raw.get("categoryId"),
            created_at=from_iso(raw.get("createdAt")) or EPOCH,
            updated_at=from_iso(raw.get("updatedAt")),
        )
