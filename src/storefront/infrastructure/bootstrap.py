"""Composition root: wires concrete implementations to domain interfaces.

This is the only place in the codebase that knows about *all* layers.
Every other module depends only on abstractions. The store and the
ledger are built once per process so every handler shares the same
read cache and the same locks.
"""

from __future__ import annotations

from functools import lru_cache

from storefront.domain.service.stock_ledger import StockLedger
from storefront.infrastructure.config import Settings
from storefront.infrastructure.persistence.collection_store import CollectionStore
from storefront.infrastructure.persistence.json_coupon_repository import (
    JsonCouponRepository,
)
from storefront.infrastructure.persistence.json_inventory_repository import (
    JsonInventoryRepository,
)
from storefront.infrastructure.persistence.json_order_repository import (
    JsonOrderRepository,
)
from storefront.infrastructure.persistence.json_product_repository import (
    JsonProductRepository,
)
from storefront.infrastructure.persistence.json_stock_movement_repository import (
    JsonStockMovementRepository,
)
from storefront.infrastructure.persistence.local_file_medium import LocalFileMedium
from storefront.infrastructure.persistence.object_storage_medium import (
    ObjectStorageMedium,
    make_s3_client,
)
from storefront.infrastructure.persistence.read_cache import ReadCache


@lru_cache(maxsize=1)
def settings() -> Settings:
    return Settings()


def build_local_store(config: Settings) -> CollectionStore:
    return CollectionStore(
        LocalFileMedium(config.data_dir),
        ReadCache(ttl=config.cache_ttl_seconds),
        write_attempts=config.write_attempts,
    )


def build_remote_store(config: Settings) -> CollectionStore:
    client = make_s3_client(
        region=config.blob_region,
        endpoint_url=config.blob_endpoint_url,
        access_key_id=config.blob_access_key_id,
        secret_access_key=config.blob_secret_access_key,
        timeout=config.storage_timeout_seconds,
    )
    medium = ObjectStorageMedium(
        client,
        config.blob_bucket,  # type: ignore[arg-type]
        prefix=config.blob_prefix,
        timeout=config.storage_timeout_seconds,
        conditional_writes=config.blob_conditional_writes,
    )
    return CollectionStore(
        medium,
        ReadCache(ttl=config.cache_ttl_seconds),
        write_attempts=config.write_attempts,
    )


def build_store(config: Settings) -> CollectionStore:
    """Object storage when credentials are configured, local files otherwise."""
    if config.use_object_storage:
        return build_remote_store(config)
    return build_local_store(config)


@lru_cache(maxsize=1)
def collection_store() -> CollectionStore:
    return build_store(settings())


def product_repository() -> JsonProductRepository:
    return JsonProductRepository(collection_store())


def inventory_repository() -> JsonInventoryRepository:
    return JsonInventoryRepository(collection_store())


def stock_movement_repository() -> JsonStockMovementRepository:
    return JsonStockMovementRepository(collection_store())


def order_repository() -> JsonOrderRepository:
    return JsonOrderRepository(collection_store())


def coupon_repository() -> JsonCouponRepository:
    return JsonCouponRepository(collection_store())


@lru_cache(maxsize=1)
def stock_ledger() -> StockLedger:
    return StockLedger(
        product_repo=product_repository(),
        inventory_repo=inventory_repository(),
        movement_repo=stock_movement_repository(),
        write_attempts=settings().write_attempts,
    )
