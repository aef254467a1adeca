"""Storage-level exceptions.

Not-found is never an exception at this layer: lookups return ``None`` and
deletions return ``False``. What remains are faults the caller cannot treat
as ordinary data.
"""

from __future__ import annotations


class StorageError(Exception):
    """Base class for all collection store errors."""


class StorageMisuseError(StorageError):
    """A blocking entry point was called while object storage is active."""


class BackingMediumError(StorageError):
    """The backing medium could not be read or written."""


class CorruptCollectionError(BackingMediumError):
    """A persisted collection is not a JSON array of records."""


class WriteConflictError(StorageError):
    """The collection changed underneath a read-modify-write cycle."""

    def __init__(self, collection: str, expected: str | None, actual: str | None = None) -> None:
        self.collection = collection
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Collection '{collection}' was modified concurrently "
            f"(expected version {expected!r}, found {actual!r})"
        )
