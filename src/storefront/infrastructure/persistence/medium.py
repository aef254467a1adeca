"""Backing medium interface for the collection store.

A medium knows how to read and write one whole collection at a time.
It has no notion of records, ids or merging; that is the store's job.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from storefront.infrastructure.persistence.errors import CorruptCollectionError

# Version token of a collection that has never been written.
ABSENT_VERSION = "absent"


@dataclass(frozen=True)
class CollectionSnapshot:
    """The full contents of one collection as read from a medium.

    ``version`` is an opaque token (file mtime, object ETag) used to detect
    concurrent writes. ``exists`` distinguishes a collection that was never
    written from one that was written empty.
    """

    name: str
    records: list[dict] = field(default_factory=list)
    version: str | None = ABSENT_VERSION
    exists: bool = False

    @staticmethod
    def missing(name: str) -> CollectionSnapshot:
        return CollectionSnapshot(name=name)


class BackingMedium(ABC):

    #: True for media that require the awaitable API.
    is_remote: bool = False

    @abstractmethod
    def read(self, name: str) -> CollectionSnapshot:
        """Return the persisted contents of *name*, empty if absent."""

    @abstractmethod
    def write(
        self, name: str, records: list[dict], expected_version: str | None = None
    ) -> str | None:
        """Overwrite *name* with *records* and return the new version.

        When *expected_version* is given and the stored version differs,
        raise ``WriteConflictError`` without writing. ``ABSENT_VERSION``
        means the collection must not exist yet; ``None`` writes
        unconditionally.
        """

    @abstractmethod
    def list_collections(self) -> list[str]:
        """Return the names of every collection present on the medium."""

    @abstractmethod
    async def read_async(self, name: str) -> CollectionSnapshot:
        """Awaitable form of :meth:`read`."""

    @abstractmethod
    async def write_async(
        self, name: str, records: list[dict], expected_version: str | None = None
    ) -> str | None:
        """Awaitable form of :meth:`write`."""

    @abstractmethod
    async def list_collections_async(self) -> list[str]:
        """Awaitable form of :meth:`list_collections`."""


# --- Serialization ------------------------------------------------------------


def encode_records(records: list[dict]) -> str:
    """Serialize a collection the way it is persisted: pretty-printed JSON."""
    return json.dumps(records, indent=2, ensure_ascii=False) + "\n"


def decode_records(name: str, text: str) -> list[dict]:
    """Parse a serialized collection, rejecting anything but an array of objects."""
    try:
        items = json.loads(text)
    except json.JSONDecodeError as exc:
        raise CorruptCollectionError(
            f"Collection '{name}' is not valid JSON: {exc}"
        ) from exc

    if not isinstance(items, list) or not all(isinstance(i, dict) for i in items):
        raise CorruptCollectionError(
            f"Collection '{name}' must be a JSON array of objects"
        )
    return items
