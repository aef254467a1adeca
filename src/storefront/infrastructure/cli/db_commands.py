"""CLI commands for whole-database maintenance."""

from __future__ import annotations

import asyncio
import json

import click

from storefront.infrastructure.bootstrap import (
    build_local_store,
    build_remote_store,
    collection_store,
    settings,
)
from storefront.infrastructure.persistence.collection_names import KNOWN_COLLECTIONS
from storefront.infrastructure.persistence.errors import StorageError
from storefront.infrastructure.persistence.maintenance import (
    clear_collections,
    dump_database,
    migrate_to_remote,
    seed_demo_data,
)

_COLLECTION = click.option(
    "--collection",
    "names",
    multiple=True,
    help="Limit to this collection (repeatable). Defaults to all known ones.",
)


@click.command("migrate")
@_COLLECTION
def db_migrate(names: tuple[str, ...]) -> None:
    """Copy local collections to object storage."""
    config = settings()
    if not config.use_object_storage:
        raise click.ClickException(
            "Object storage is not configured "
            "(set STOREFRONT_BLOB_BUCKET and STOREFRONT_BLOB_ACCESS_KEY_ID)."
        )

    try:
        report = asyncio.run(
            migrate_to_remote(
                build_local_store(config),
                build_remote_store(config),
                names or KNOWN_COLLECTIONS,
            )
        )
    except StorageError as exc:
        raise click.ClickException(str(exc))

    for name, count in report.migrated.items():
        click.echo(f"migrated  {name:<16} {count:>6} record(s)")
    for name, count in report.skipped_existing.items():
        click.echo(f"skipped   {name:<16} {count:>6} already in object storage")
    for name in report.skipped_empty:
        click.echo(f"empty     {name}")


@click.command("clear")
@_COLLECTION
@click.confirmation_option(prompt="This deletes every record. Continue?")
def db_clear(names: tuple[str, ...]) -> None:
    """Empty collections (all known ones by default)."""
    try:
        cleared = asyncio.run(clear_collections(collection_store(), names or KNOWN_COLLECTIONS))
    except StorageError as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Cleared {len(cleared)} collection(s): {', '.join(cleared) or '-'}")


@click.command("dump")
@_COLLECTION
def db_dump(names: tuple[str, ...]) -> None:
    """Print collections as one JSON document."""
    try:
        dump = asyncio.run(dump_database(collection_store(), names or KNOWN_COLLECTIONS))
    except StorageError as exc:
        raise click.ClickException(str(exc))

    click.echo(json.dumps(dump, indent=2, ensure_ascii=False))


@click.command("seed")
def db_seed() -> None:
    """Seed demo categories, products and sizes into an empty shop."""
    try:
        created = asyncio.run(seed_demo_data(collection_store()))
    except StorageError as exc:
        raise click.ClickException(str(exc))

    for name, count in created.items():
        click.echo(f"{name:<16} {count:>4} created")


@click.command("clear-cache")
@click.argument("name")
def db_clear_cache(name: str) -> None:
    """Drop the cached snapshot of one collection."""
    collection_store().clear_cache(name)
    click.echo(f"Cache for '{name}' cleared.")
