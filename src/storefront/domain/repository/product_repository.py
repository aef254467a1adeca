"""Abstract repository for Product aggregate.

Defined in the domain layer so the domain never depends on
infrastructure. Concrete implementations live in the infrastructure
layer on top of the collection store.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from storefront.domain.model.product import Product


class ProductRepository(ABC):

    @abstractmethod
    async def get_by_id(self, product_id: str) -> Product | None:
        """Return a product by its ID, or None if not found."""

    @abstractmethod
    async def list_all(self) -> list[Product]:
        """Return every product in the catalog."""

    @abstractmethod
    async def add(self, product: Product) -> Product:
        """Persist a new product, assigning its ID if missing."""

    @abstractmethod
    async def set_stock(
        self,
        product_id: str,
        stock: int,
        updated_at: datetime,
        expected_stock: int | None = None,
    ) -> Product | None:
        """Overwrite only the stock counter.

        With *expected_stock* the write happens only if the stored counter
        still equals it. Returns None if the product is gone or the
        expectation failed.
        """
