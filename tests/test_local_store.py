"""Tests for the durable local store and its key/value adapters."""

import asyncio
import json

import pytest

from dreamlog.adapters.file_kv import FileKeyValueStore
from dreamlog.adapters.memory_kv import MemoryKeyValueStore
from dreamlog.core.records import Draft, RecordKind
from dreamlog.local_store import DRAFT_KEY, LocalStore, LocalWriteError
from dreamlog.outbox import Outbox

from conftest import make_entry, make_interpretation

ENTRIES = RecordKind.ENTRIES


class YieldingKeyValueStore(MemoryKeyValueStore):
    """Suspends on every call so concurrent writers interleave."""

    async def get_item(self, key):
        await asyncio.sleep(0)
        return await super().get_item(key)

    async def set_item(self, key, value):
        await asyncio.sleep(0)
        await super().set_item(key, value)


class BrokenKeyValueStore(MemoryKeyValueStore):
    def __init__(self, fail_reads=False, fail_writes=False, **kwargs):
        super().__init__(**kwargs)
        self.fail_reads = fail_reads
        self.fail_writes = fail_writes

    async def get_item(self, key):
        if self.fail_reads:
            raise OSError("disk unreadable")
        return await super().get_item(key)

    async def set_item(self, key, value):
        if self.fail_writes:
            raise OSError("disk full")
        await super().set_item(key, value)


class TestLocalStore:
    def test_save_then_get_by_id(self):
        store = LocalStore(MemoryKeyValueStore())
        entry = make_entry("d1", title="Flight", symbols=["bird"])

        async def run():
            await store.save(ENTRIES, entry)
            return await store.get_by_id(ENTRIES, "d1")

        assert asyncio.run(run()) == entry

    def test_save_replaces_existing_id(self):
        store = LocalStore(MemoryKeyValueStore())

        async def run():
            await store.save(ENTRIES, make_entry("d1", content="first"))
            await store.save(ENTRIES, make_entry("d1", content="second"))
            return await store.get(ENTRIES)

        entries = asyncio.run(run())
        assert len(entries) == 1
        assert entries[0].content == "second"

    def test_save_keeps_entries_sorted_by_date_descending(self):
        store = LocalStore(MemoryKeyValueStore())

        async def run():
            for id, day in [("a", "2024-01-10"), ("b", "2024-01-20"), ("c", "2024-01-15")]:
                await store.save(ENTRIES, make_entry(id, date=day))
            return await store.get(ENTRIES)

        assert [e.id for e in asyncio.run(run())] == ["b", "c", "a"]

    def test_persists_json_under_kind_key(self):
        kv = MemoryKeyValueStore()
        store = LocalStore(kv)
        asyncio.run(store.save(RecordKind.INTERPRETATIONS, make_interpretation("i1")))

        data = json.loads(kv.data["@interpretations"])
        assert data[0]["id"] == "i1"
        assert data[0]["messages"][1]["role"] == "assistant"

    def test_get_missing_id_returns_none(self):
        store = LocalStore(MemoryKeyValueStore())
        assert asyncio.run(store.get_by_id(ENTRIES, "nope")) is None

    def test_corrupt_data_reads_as_empty(self):
        store = LocalStore(MemoryKeyValueStore({"@entries": "{not json"}))
        assert asyncio.run(store.get(ENTRIES)) == []

    def test_malformed_records_are_skipped(self):
        raw = json.dumps([{"date": "2024-01-15"}, make_entry("d1").to_dict()])
        store = LocalStore(MemoryKeyValueStore({"@entries": raw}))
        assert [e.id for e in asyncio.run(store.get(ENTRIES))] == ["d1"]

    def test_unreadable_store_reads_as_empty(self):
        store = LocalStore(BrokenKeyValueStore(fail_reads=True))
        assert asyncio.run(store.get(ENTRIES)) == []
        assert asyncio.run(store.get_draft()) is None

    def test_failed_write_raises(self):
        store = LocalStore(BrokenKeyValueStore(fail_writes=True))
        with pytest.raises(LocalWriteError):
            asyncio.run(store.save(ENTRIES, make_entry("d1")))

    def test_write_does_not_clobber_unreadable_collection(self):
        kv = BrokenKeyValueStore(initial={"@entries": json.dumps([make_entry("old").to_dict()])})
        kv.fail_reads = True
        store = LocalStore(kv)

        with pytest.raises(LocalWriteError):
            asyncio.run(store.save(ENTRIES, make_entry("new")))

        assert [e["id"] for e in json.loads(kv.data["@entries"])] == ["old"]

    def test_concurrent_saves_are_not_lost(self):
        store = LocalStore(YieldingKeyValueStore())

        async def run():
            await asyncio.gather(*(store.save(ENTRIES, make_entry(f"e{i}")) for i in range(20)))
            return await store.get(ENTRIES)

        assert {e.id for e in asyncio.run(run())} == {f"e{i}" for i in range(20)}

    def test_save_all_replaces_collection_sorted(self):
        store = LocalStore(MemoryKeyValueStore())

        async def run():
            await store.save(ENTRIES, make_entry("gone"))
            await store.save_all(ENTRIES, [make_entry("a", date="2024-01-01"), make_entry("b", date="2024-02-01")])
            return await store.get(ENTRIES)

        assert [e.id for e in asyncio.run(run())] == ["b", "a"]

    def test_delete(self):
        store = LocalStore(MemoryKeyValueStore())

        async def run():
            await store.save(ENTRIES, make_entry("a"))
            await store.save(ENTRIES, make_entry("b"))
            await store.delete(ENTRIES, "a")
            return await store.get(ENTRIES)

        assert [e.id for e in asyncio.run(run())] == ["b"]

    def test_draft_is_a_singleton(self):
        store = LocalStore(MemoryKeyValueStore())

        async def run():
            await store.save_draft(Draft(date="2024-01-15", content="first", last_saved="t1"))
            await store.save_draft(Draft(date="2024-01-15", content="second", last_saved="t2"))
            first = await store.get_draft()
            await store.clear_draft()
            return first, await store.get_draft()

        draft, cleared = asyncio.run(run())
        assert draft.content == "second"
        assert cleared is None

    def test_settings(self):
        store = LocalStore(MemoryKeyValueStore())

        async def run():
            await store.set_setting("interpretation_depth", "advanced")
            return await store.get_setting("interpretation_depth"), await store.get_setting("missing")

        assert asyncio.run(run()) == ("advanced", None)

    def test_clear_all_removes_every_collection(self):
        kv = MemoryKeyValueStore()
        store = LocalStore(kv)

        async def run():
            await store.save(ENTRIES, make_entry("d1"))
            await store.save(RecordKind.INTERPRETATIONS, make_interpretation("i1"))
            await Outbox(store, ENTRIES).add(make_entry("d1"))
            await store.save_draft(Draft(date="2024-01-15", content="x", last_saved="t"))
            await store.set_setting("interpretation_depth", "quick")
            await store.clear_all()

        asyncio.run(run())
        assert kv.data == {}


class TestFileKeyValueStore:
    def test_round_trip(self, tmp_path):
        kv = FileKeyValueStore(tmp_path)

        async def run():
            await kv.set_item("@entries", "[1, 2]")
            return await kv.get_item("@entries")

        assert asyncio.run(run()) == "[1, 2]"
        assert (tmp_path / "entries.json").read_text() == "[1, 2]"
        assert not list(tmp_path.glob("*.tmp"))

    def test_missing_key_is_none(self, tmp_path):
        assert asyncio.run(FileKeyValueStore(tmp_path).get_item("@nothing")) is None

    def test_multi_remove(self, tmp_path):
        kv = FileKeyValueStore(tmp_path)

        async def run():
            await kv.set_item("@a", "1")
            await kv.set_item("@b", "2")
            await kv.set_item("@c", "3")
            await kv.multi_remove(["@a", "@b", "@missing"])

        asyncio.run(run())
        assert sorted(p.name for p in tmp_path.iterdir()) == ["c.json"]

    def test_creates_data_dir(self, tmp_path):
        FileKeyValueStore(tmp_path / "nested" / "data")
        assert (tmp_path / "nested" / "data").is_dir()

    def test_draft_key_file_name(self, tmp_path):
        kv = FileKeyValueStore(tmp_path)
        asyncio.run(kv.set_item(DRAFT_KEY, "{}"))
        assert (tmp_path / "entry_draft.json").exists()

    def test_concurrent_writes_to_one_key(self, tmp_path):
        kv = FileKeyValueStore(tmp_path)

        async def run():
            await asyncio.gather(*(kv.set_item(DRAFT_KEY, json.dumps({"n": n})) for n in range(20)))
            return await kv.get_item(DRAFT_KEY)

        assert json.loads(asyncio.run(run()))["n"] in range(20)
        assert [p.name for p in tmp_path.iterdir()] == ["entry_draft.json"]
