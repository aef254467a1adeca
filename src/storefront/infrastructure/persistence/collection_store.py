"""Collection store: CRUD over whole-collection JSON containers.

Every collection is a JSON array of records (dicts with a string ``id``)
kept in a single container on the backing medium. Writes are
read-whole / mutate / write-whole cycles; queries are linear scans.

Each operation has a blocking form and an awaitable ``*_async`` form.
The blocking forms only work against a local medium: with object storage
active they raise ``StorageMisuseError``, except ``get_all`` (and the
queries built on it), which falls back to the last cached snapshot.

Read-modify-write cycles on one collection are serialised inside the
process and every write carries the version token of the snapshot it was
computed from. If another process wrote in between, the medium raises
``WriteConflictError``; the cycle is re-run on a fresh read up to
``write_attempts`` times before the conflict is surfaced.
"""

from __future__ import annotations

import random
import string
import time
from typing import Any, Callable

import structlog

from storefront.domain.service.keyed_locks import KeyedAsyncLocks, KeyedThreadLocks
from storefront.infrastructure.persistence.errors import (
    StorageMisuseError,
    WriteConflictError,
)
from storefront.infrastructure.persistence.medium import (
    ABSENT_VERSION,
    BackingMedium,
    CollectionSnapshot,
)
from storefront.infrastructure.persistence.read_cache import ReadCache

logger = structlog.get_logger(__name__)

Record = dict[str, Any]
Predicate = Callable[[Record], bool]
# A mutation edits the record list in place and returns (result, changed).
Mutation = Callable[[list[Record]], tuple[Any, bool]]

_ID_ALPHABET = string.ascii_lowercase + string.digits


def new_record_id() -> str:
    """Millisecond timestamp plus a random base-36 suffix.

    Unique enough for a single shop; not a UUID.
    """
    suffix = "".join(random.choices(_ID_ALPHABET, k=9))
    return f"{int(time.time() * 1000)}-{suffix}"


class CollectionStore:

    def __init__(
        self,
        medium: BackingMedium,
        cache: ReadCache | None = None,
        *,
        write_attempts: int = 3,
    ) -> None:
        self._medium = medium
        self._cache = cache if cache is not None else ReadCache()
        self._write_attempts = max(1, write_attempts)
        self._thread_locks = KeyedThreadLocks()
        self._async_locks = KeyedAsyncLocks()

    @property
    def is_remote(self) -> bool:
        return self._medium.is_remote

    @property
    def medium(self) -> BackingMedium:
        return self._medium

    @property
    def cache(self) -> ReadCache:
        return self._cache

    def clear_cache(self, name: str) -> None:
        """Force the next read of *name* to go to the backing medium."""
        logger.info("cache_cleared", collection=name)
        self._cache.invalidate(name)

    # --- Blocking API ---------------------------------------------------------

    def get_all(self, name: str) -> list[Record]:
        if self.is_remote:
            entry = self._cache.peek(name)
            if entry is None:
                logger.warning(
                    "blocking_read_without_snapshot",
                    collection=name,
                    hint="use get_all_async() while object storage is active",
                )
                return []
            return entry.records
        return self._medium.read(name).records

    def get_by_id(self, name: str, record_id: str) -> Record | None:
        return _find_by_id(self.get_all(name), record_id)

    def create(self, name: str, record: Record) -> Record:
        self._require_local("create")
        return self._mutate(name, _upsert(_with_id(record)))

    def update(
        self,
        name: str,
        record_id: str,
        changes: Record,
        *,
        only_if: Predicate | None = None,
    ) -> Record | None:
        """Shallow-merge *changes* into a record; None if it does not exist.

        With *only_if*, the merge happens only when the current record
        satisfies it (checked inside the write cycle); otherwise None.
        """
        self._require_local("update")
        return self._mutate(name, _merge(record_id, changes, only_if))

    def remove(self, name: str, record_id: str) -> bool:
        self._require_local("remove")
        return self._mutate(name, _delete(record_id))

    def find(self, name: str, predicate: Predicate) -> list[Record]:
        return [r for r in self.get_all(name) if predicate(r)]

    def find_one(self, name: str, predicate: Predicate) -> Record | None:
        return next((r for r in self.get_all(name) if predicate(r)), None)

    def count(self, name: str, predicate: Predicate | None = None) -> int:
        records = self.get_all(name)
        if predicate is None:
            return len(records)
        return sum(1 for r in records if predicate(r))

    def replace_all(self, name: str, records: list[Record]) -> None:
        """Overwrite *name* wholesale, without a version check."""
        self._require_local("replace_all")
        with self._thread_locks.lock(name):
            self._medium.write(name, list(records))

    def list_collections(self) -> list[str]:
        self._require_local("list_collections")
        return self._medium.list_collections()

    # --- Awaitable API --------------------------------------------------------

    async def get_all_async(self, name: str) -> list[Record]:
        return (await self._snapshot_async(name)).records

    async def get_by_id_async(self, name: str, record_id: str) -> Record | None:
        return _find_by_id(await self.get_all_async(name), record_id)

    async def create_async(self, name: str, record: Record) -> Record:
        return await self._mutate_async(name, _upsert(_with_id(record)))

    async def update_async(
        self,
        name: str,
        record_id: str,
        changes: Record,
        *,
        only_if: Predicate | None = None,
    ) -> Record | None:
        return await self._mutate_async(name, _merge(record_id, changes, only_if))

    async def remove_async(self, name: str, record_id: str) -> bool:
        return await self._mutate_async(name, _delete(record_id))

    async def find_async(self, name: str, predicate: Predicate) -> list[Record]:
        return [r for r in await self.get_all_async(name) if predicate(r)]

    async def find_one_async(self, name: str, predicate: Predicate) -> Record | None:
        return next((r for r in await self.get_all_async(name) if predicate(r)), None)

    async def count_async(self, name: str, predicate: Predicate | None = None) -> int:
        records = await self.get_all_async(name)
        if predicate is None:
            return len(records)
        return sum(1 for r in records if predicate(r))

    async def replace_all_async(self, name: str, records: list[Record]) -> None:
        async with self._async_locks.lock(name):
            version = await self._medium.write_async(name, list(records))
            if self.is_remote:
                self._cache.put(name, records, version)

    async def list_collections_async(self) -> list[str]:
        return await self._medium.list_collections_async()

    # --- Read-modify-write cycles ---------------------------------------------

    def _mutate(self, name: str, mutation: Mutation) -> Any:
        with self._thread_locks.lock(name):
            attempt = 0
            while True:
                attempt += 1
                snapshot = self._medium.read(name)
                records = snapshot.records
                result, changed = mutation(records)
                if not changed:
                    return result
                try:
                    self._medium.write(name, records, snapshot.version)
                except WriteConflictError as exc:
                    self._handle_conflict(name, attempt, exc)
                    continue
                return result

    async def _mutate_async(self, name: str, mutation: Mutation) -> Any:
        async with self._async_locks.lock(name):
            attempt = 0
            while True:
                attempt += 1
                snapshot = await self._snapshot_async(name)
                records = snapshot.records
                result, changed = mutation(records)
                if not changed:
                    return result
                try:
                    version = await self._medium.write_async(
                        name, records, snapshot.version
                    )
                except WriteConflictError as exc:
                    self._handle_conflict(name, attempt, exc)
                    continue
                if self.is_remote:
                    self._cache.put(name, records, version)
                return result

    async def _snapshot_async(self, name: str) -> CollectionSnapshot:
        if not self.is_remote:
            return await self._medium.read_async(name)

        entry = self._cache.get(name)
        if entry is not None:
            return CollectionSnapshot(
                name=name,
                records=entry.records,
                version=entry.version,
                exists=entry.version != ABSENT_VERSION,
            )

        logger.debug("cache_miss", collection=name)
        snapshot = await self._medium.read_async(name)
        if snapshot.exists:
            self._cache.put(name, snapshot.records, snapshot.version)
        else:
            self._cache.invalidate(name)
        return snapshot

    def _handle_conflict(
        self, name: str, attempt: int, exc: WriteConflictError
    ) -> None:
        self._cache.invalidate(name)
        if attempt >= self._write_attempts:
            logger.error(
                "write_conflict",
                collection=name,
                attempts=attempt,
                expected=exc.expected,
                actual=exc.actual,
            )
            raise WriteConflictError(name, exc.expected, exc.actual) from exc
        logger.warning("write_conflict_retry", collection=name, attempt=attempt)

    def _require_local(self, operation: str) -> None:
        if self.is_remote:
            raise StorageMisuseError(
                f"{operation}() called synchronously but object storage is enabled. "
                f"Use {operation}_async() instead."
            )


# --- Mutations ----------------------------------------------------------------


def _with_id(record: Record) -> Record:
    item = dict(record)
    if not item.get("id"):
        item["id"] = new_record_id()
    return item


def _index_of(records: list[Record], record_id: str) -> int | None:
    for i, raw in enumerate(records):
        if raw.get("id") == record_id:
            return i
    return None


def _find_by_id(records: list[Record], record_id: str) -> Record | None:
    index = _index_of(records, record_id)
    return records[index] if index is not None else None


def _upsert(item: Record) -> Mutation:
    def mutation(records: list[Record]) -> tuple[Record, bool]:
        index = _index_of(records, item["id"])
        if index is None:
            records.append(dict(item))
            return dict(item), True
        # An existing id is merged into, not rejected.
        records[index] = {**records[index], **item, "id": item["id"]}
        return dict(records[index]), True

    return mutation


def _merge(
    record_id: str, changes: Record, only_if: Predicate | None = None
) -> Mutation:
    def mutation(records: list[Record]) -> tuple[Record | None, bool]:
        index = _index_of(records, record_id)
        if index is None:
            return None, False
        if only_if is not None and not only_if(records[index]):
            return None, False
        records[index] = {**records[index], **changes, "id": record_id}
        return dict(records[index]), True

    return mutation


def _delete(record_id: str) -> Mutation:
    def mutation(records: list[Record]) -> tuple[bool, bool]:
        index = _index_of(records, record_id)
        if index is None:
            return False, False
        del records[index]
        return True, True

    return mutation
