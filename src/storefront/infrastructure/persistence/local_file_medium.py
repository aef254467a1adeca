"""Local filesystem medium: one pretty-printed JSON file per collection.

Layout::

    <data_dir>/
        collections/
            products.json
            inventory.json
            ...
            .products.lock     # held while a write checks and replaces

Writes to one collection are serialised across processes with an
exclusive ``flock`` on its lock file, so the version check and the
rename happen as one step. POSIX only.
"""

from __future__ import annotations

import asyncio
import fcntl
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

import structlog

from storefront.infrastructure.persistence.errors import (
    BackingMediumError,
    WriteConflictError,
)
from storefront.infrastructure.persistence.medium import (
    ABSENT_VERSION,
    BackingMedium,
    CollectionSnapshot,
    decode_records,
    encode_records,
)

logger = structlog.get_logger(__name__)

COLLECTIONS_DIRNAME = "collections"


class LocalFileMedium(BackingMedium):

    is_remote = False

    def __init__(self, data_dir: Path) -> None:
        self._collections_dir = Path(data_dir) / COLLECTIONS_DIRNAME
        self._ensure_dirs()

    @property
    def collections_dir(self) -> Path:
        return self._collections_dir

    def path_for(self, name: str) -> Path:
        return self._collections_dir / f"{name}.json"

    def lock_path_for(self, name: str) -> Path:
        return self._collections_dir / f".{name}.lock"

    # --- BackingMedium interface ----------------------------------------------

    def read(self, name: str) -> CollectionSnapshot:
        path = self.path_for(name)
        try:
            version = self._version_of(path)
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return CollectionSnapshot.missing(name)
        except OSError as exc:
            raise BackingMediumError(f"Cannot read collection '{name}': {exc}") from exc

        records = decode_records(name, text)
        return CollectionSnapshot(name=name, records=records, version=version, exists=True)

    def write(
        self, name: str, records: list[dict], expected_version: str | None = None
    ) -> str | None:
        path = self.path_for(name)
        payload = encode_records(records)
        try:
            with self._exclusive(name):
                if expected_version is not None:
                    actual = self._version_of(path)
                    if actual != expected_version:
                        raise WriteConflictError(name, expected_version, actual)
                self._atomic_write(path, payload)
                version = self._version_of(path)
        except OSError as exc:
            raise BackingMediumError(f"Cannot write collection '{name}': {exc}") from exc

        logger.debug("collection_written", collection=name, records=len(records))
        return version

    def list_collections(self) -> list[str]:
        return sorted(p.stem for p in self._collections_dir.glob("*.json"))

    async def read_async(self, name: str) -> CollectionSnapshot:
        return await asyncio.to_thread(self.read, name)

    async def write_async(
        self, name: str, records: list[dict], expected_version: str | None = None
    ) -> str | None:
        return await asyncio.to_thread(self.write, name, records, expected_version)

    async def list_collections_async(self) -> list[str]:
        return await asyncio.to_thread(self.list_collections)

    # --- File helpers ---------------------------------------------------------

    @staticmethod
    def _version_of(path: Path) -> str:
        try:
            st = path.stat()
        except FileNotFoundError:
            return ABSENT_VERSION
        return f"{st.st_ino}-{st.st_mtime_ns}-{st.st_size}"

    @contextmanager
    def _exclusive(self, name: str) -> Iterator[None]:
        with open(self.lock_path_for(name), "a") as fh:
            fcntl.flock(fh.fileno(), fcntl.LOCK_EX)
            try:
                yield
            finally:
                fcntl.flock(fh.fileno(), fcntl.LOCK_UN)

    @staticmethod
    def _atomic_write(path: Path, payload: str) -> None:
        fd, tmp_name = tempfile.mkstemp(
            dir=path.parent, prefix=f".{path.stem}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(payload)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def _ensure_dirs(self) -> None:
        self._collections_dir.mkdir(parents=True, exist_ok=True)
