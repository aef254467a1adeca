"""Tests for CollectionStore over the local filesystem medium."""

import asyncio
import fcntl
import json
import threading

import pytest

from storefront.infrastructure.persistence.collection_store import CollectionStore
from storefront.infrastructure.persistence.errors import (
    CorruptCollectionError,
    WriteConflictError,
)
from storefront.infrastructure.persistence.local_file_medium import LocalFileMedium


@pytest.fixture
def medium(tmp_path):
    return LocalFileMedium(tmp_path)


@pytest.fixture
def store(medium):
    return CollectionStore(medium)


class PeerWritingMedium(LocalFileMedium):
    """Simulates another process writing between our read and our write."""

    def __init__(self, data_dir, peer_writes: int) -> None:
        super().__init__(data_dir)
        self.peer_writes = peer_writes

    def write(self, name, records, expected_version=None):
        if self.peer_writes > 0:
            self.peer_writes -= 1
            current = self.read(name).records
            super().write(name, current + [{"id": f"peer-{self.peer_writes}"}])
        return super().write(name, records, expected_version)


class TestCrud:

    def test_create_then_read_back(self, store):
        created = store.create("products", {"name": "Evening dress", "stock": 5})

        assert created["id"]
        assert store.get_by_id("products", created["id"]) == created
        assert store.get_all("products") == [created]

    def test_caller_id_is_kept(self, store):
        store.create("products", {"id": "p1", "name": "Silk blouse"})
        assert store.get_by_id("products", "p1")["name"] == "Silk blouse"

    def test_create_with_existing_id_merges(self, store):
        store.create("products", {"id": "p1", "name": "Silk blouse", "stock": 2})
        store.create("products", {"id": "p1", "stock": 7})

        assert store.get_all("products") == [{"id": "p1", "name": "Silk blouse", "stock": 7}]

    def test_update_merges_instead_of_replacing(self, store):
        store.create("products", {"id": "p1", "name": "Silk blouse", "stock": 2})

        updated = store.update("products", "p1", {"stock": 1, "id": "hijacked"})

        assert updated == {"id": "p1", "name": "Silk blouse", "stock": 1}

    def test_update_missing_returns_none(self, store):
        assert store.update("products", "ghost", {"stock": 1}) is None

    def test_update_only_if(self, store):
        store.create("coupons", {"id": "c1", "used": False})

        assert store.update("coupons", "c1", {"used": True}, only_if=lambda r: not r["used"])
        assert store.update("coupons", "c1", {"used": True}, only_if=lambda r: not r["used"]) is None

    def test_remove_is_idempotent(self, store):
        store.create("products", {"id": "p1"})

        assert store.remove("products", "p1") is True
        assert store.remove("products", "p1") is False
        assert store.get_all("products") == []

    def test_find_and_count(self, store):
        for size, qty in (("S", 0), ("M", 3), ("L", 5)):
            store.create("inventory", {"productId": "p1", "size": size, "quantity": qty})

        in_stock = store.find("inventory", lambda r: r["quantity"] > 0)
        assert sorted(r["size"] for r in in_stock) == ["L", "M"]
        assert store.find_one("inventory", lambda r: r["size"] == "M")["quantity"] == 3
        assert store.count("inventory") == 3
        assert store.count("inventory", lambda r: r["quantity"] == 0) == 1

    def test_missing_collection_is_empty(self, store):
        assert store.get_all("nothing") == []
        assert store.get_by_id("nothing", "x") is None

    def test_records_read_are_copies(self, store):
        store.create("products", {"id": "p1", "stock": 1})
        store.get_all("products")[0]["stock"] = 99
        assert store.get_by_id("products", "p1")["stock"] == 1


class TestLayout:

    def test_pretty_printed_json_array(self, store, medium, tmp_path):
        store.create("products", {"id": "p1", "name": "Платье"})

        path = tmp_path / "collections" / "products.json"
        assert medium.path_for("products") == path
        text = path.read_text(encoding="utf-8")
        assert text == json.dumps([{"id": "p1", "name": "Платье"}], indent=2, ensure_ascii=False) + "\n"

    def test_list_collections(self, store):
        store.create("orders", {"id": "o1"})
        store.replace_all("coupons", [])
        assert store.list_collections() == ["coupons", "orders"]

    def test_blocking_api_allowed_locally(self, store):
        assert not store.is_remote
        store.create("products", {"id": "p1"})  # no StorageMisuseError


class TestFailures:

    def test_corrupt_file_raises(self, store, tmp_path):
        (tmp_path / "collections" / "products.json").write_text("{not json", encoding="utf-8")
        with pytest.raises(CorruptCollectionError):
            store.get_all("products")

    def test_non_array_raises(self, store, tmp_path):
        (tmp_path / "collections" / "products.json").write_text('{"id": 1}', encoding="utf-8")
        with pytest.raises(CorruptCollectionError):
            store.get_all("products")

    def test_peer_write_is_retried_and_preserved(self, tmp_path):
        store = CollectionStore(PeerWritingMedium(tmp_path, peer_writes=1), write_attempts=3)

        store.create("products", {"id": "mine"})

        assert sorted(r["id"] for r in store.get_all("products")) == ["mine", "peer-0"]

    def test_conflicts_exhaust_attempts(self, tmp_path):
        store = CollectionStore(PeerWritingMedium(tmp_path, peer_writes=5), write_attempts=2)

        with pytest.raises(WriteConflictError) as info:
            store.create("products", {"id": "mine"})

        error = info.value
        assert error.expected is not None and error.actual is not None
        assert error.expected != error.actual
        assert isinstance(error.__cause__, WriteConflictError)


def test_async_api_matches_blocking_api(store):
    async def run():
        created = await store.create_async("products", {"name": "Silk blouse"})
        await store.update_async("products", created["id"], {"stock": 4})
        return created["id"], await store.get_all_async("products")

    record_id, records = asyncio.run(run())

    assert records == store.get_all("products")
    assert records[0]["stock"] == 4
    assert asyncio.run(store.remove_async("products", record_id)) is True




class TestCrossProcessLocking:

    def test_write_waits_for_the_lock_holder(self, medium):
        medium.write("products", [])
        holder = open(medium.lock_path_for("products"), "a")
        fcntl.flock(holder.fileno(), fcntl.LOCK_EX)
        done = threading.Event()

        def write():
            medium.write("products", [{"id": "p1"}])
            done.set()

        writer = threading.Thread(target=write)
        writer.start()
        try:
            assert not done.wait(0.2)
            assert medium.read("products").records == []
        finally:
            fcntl.flock(holder.fileno(), fcntl.LOCK_UN)
            holder.close()
        writer.join(timeout=5)

        assert done.is_set()
        assert medium.read("products").records == [{"id": "p1"}]

    def test_lock_files_are_not_collections(self, store):
        store.create("products", {"id": "p1"})
        assert store.list_collections() == ["products"]

    def test_async_io_runs_off_the_loop_thread(self, tmp_path):
        io_threads = []

        class RecordingMedium(LocalFileMedium):
            def read(self, name):
                io_threads.append(threading.get_ident())
                return super().read(name)

            def write(self, name, records, expected_version=None):
                io_threads.append(threading.get_ident())
                return super().write(name, records, expected_version)

        store = CollectionStore(RecordingMedium(tmp_path))

        async def run():
            await store.create_async("products", {"id": "p1"})
            return threading.get_ident()

        loop_thread = asyncio.run(run())

        assert len(io_threads) == 2
        assert loop_thread not in io_threads
