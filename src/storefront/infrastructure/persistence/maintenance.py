"""Whole-database maintenance operations.

Moving local collections to object storage, wiping collections, dumping
everything for a backup and seeding a fresh shop. All of them work on
any pair of stores through the awaitable API.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable

import structlog

from storefront.infrastructure.persistence.collection_names import (
    CATEGORIES,
    INVENTORY,
    KNOWN_COLLECTIONS,
    PRODUCTS,
)
from storefront.infrastructure.persistence.collection_store import CollectionStore

logger = structlog.get_logger(__name__)


@dataclass
class MigrationReport:
    migrated: dict[str, int] = field(default_factory=dict)
    skipped_empty: list[str] = field(default_factory=list)
    skipped_existing: dict[str, int] = field(default_factory=dict)


async def migrate_to_remote(
    local: CollectionStore,
    remote: CollectionStore,
    names: Iterable[str] = KNOWN_COLLECTIONS,
) -> MigrationReport:
    """Copy each non-empty collection from *local* to *remote*.

    Collections that already hold records remotely are left alone
    so a second run cannot duplicate or overwrite data.
    """
    report = MigrationReport()
    for name in names:
        records = await local.get_all_async(name)
        if not records:
            report.skipped_empty.append(name)
            continue

        existing = await remote.get_all_async(name)
        if existing:
            logger.warning(
                "migration_skipped_existing", collection=name, existing=len(existing)
            )
            report.skipped_existing[name] = len(existing)
            continue

        await remote.replace_all_async(name, records)
        report.migrated[name] = len(records)
        logger.info("collection_migrated", collection=name, records=len(records))
    return report


async def clear_collections(
    store: CollectionStore, names: Iterable[str] = KNOWN_COLLECTIONS
) -> list[str]:
    """Overwrite every existing collection among *names* with ``[]``."""
    present = set(await store.list_collections_async())
    cleared: list[str] = []
    for name in names:
        if name not in present:
            continue
        await store.replace_all_async(name, [])
        cleared.append(name)
        logger.info("collection_cleared", collection=name)
    return cleared


async def dump_database(
    store: CollectionStore, names: Iterable[str] = KNOWN_COLLECTIONS
) -> dict[str, list[dict]]:
    return {name: await store.get_all_async(name) for name in names}


_DEMO_CATEGORIES = [
    {"name": "Dresses", "slug": "dresses", "description": "Elegant dresses"},
    {"name": "Blouses", "slug": "blouses", "description": "Stylish blouses"},
    {"name": "Hijabs", "slug": "hijabs", "description": "Quality hijabs"},
    {"name": "Accessories", "slug": "accessories", "description": "Accessories"},
]

_DEMO_PRODUCTS = [
    # (name, slug, category slug, price, sizes)
    ("Evening dress", "evening-dress", "dresses", 450000, {"S": 3, "M": 5, "L": 2}),
    ("Silk blouse", "silk-blouse", "blouses", 220000, {"M": 4, "L": 4}),
    ("Chiffon hijab", "chiffon-hijab", "hijabs", 90000, {"ONE": 12}),
]


async def seed_demo_data(store: CollectionStore) -> dict[str, int]:
    """Seed categories, products and size records into an empty shop.

    Each collection is seeded only if it is empty; returns how many
    records were created per collection.
    """
    created = {CATEGORIES: 0, PRODUCTS: 0, INVENTORY: 0}
    now = datetime.now(timezone.utc).isoformat()

    if not await store.count_async(CATEGORIES):
        for category in _DEMO_CATEGORIES:
            await store.create_async(CATEGORIES, {**category, "createdAt": now})
            created[CATEGORIES] += 1

    if await store.count_async(PRODUCTS):
        return created

    categories = {c["slug"]: c["id"] for c in await store.get_all_async(CATEGORIES)}
    for name, slug, category_slug, price, sizes in _DEMO_PRODUCTS:
        product = await store.create_async(PRODUCTS, {
            "name": name,
            "slug": slug,
            "price": price,
            "stock": sum(sizes.values()),
            "categoryId": categories.get(category_slug),
            "createdAt": now,
        })
        created[PRODUCTS] += 1
        for size, quantity in sizes.items():
            await store.create_async(INVENTORY, {
                "productId": product["id"],
                "size": size,
                "quantity": quantity,
                "updatedAt": now,
            })
            created[INVENTORY] += 1

    logger.info("demo_data_seeded", **created)
    return created
