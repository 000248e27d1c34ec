"""Tests for the unsynced-record outbox."""

import asyncio
from typing import get_type_hints

from dreamlog.adapters.memory_kv import MemoryKeyValueStore
from dreamlog.core.records import RecordKind
from dreamlog.local_store import LocalStore
from dreamlog.outbox import Outbox

from conftest import make_entry, make_interpretation


def make_outbox(kind=RecordKind.ENTRIES):
    kv = MemoryKeyValueStore()
    return kv, Outbox(LocalStore(kv), kind)


class TestOutbox:
    def test_add_is_idempotent_by_id(self):
        _, outbox = make_outbox()

        async def run():
            await outbox.add(make_entry("d1", content="first"))
            await outbox.add(make_entry("d1", content="second"))
            return await outbox.list()

        queued = asyncio.run(run())
        assert len(queued) == 1
        assert queued[0].content == "first"

    def test_put_replaces_payload(self):
        _, outbox = make_outbox()

        async def run():
            await outbox.put(make_entry("d1", content="first"))
            await outbox.put(make_entry("d2"))
            await outbox.put(make_entry("d1", content="second"))
            return await outbox.list()

        queued = asyncio.run(run())
        assert [r.id for r in queued] == ["d1", "d2"]
        assert queued[0].content == "second"

    def test_holds_full_payloads(self):
        _, outbox = make_outbox(RecordKind.INTERPRETATIONS)
        interp = make_interpretation("i1")
        asyncio.run(outbox.add(interp))
        assert asyncio.run(outbox.list()) == [interp]

    def test_remove(self):
        _, outbox = make_outbox()

        async def run():
            await outbox.add(make_entry("d1"))
            await outbox.add(make_entry("d2"))
            await outbox.remove("d1")
            return await outbox.ids()

        assert asyncio.run(run()) == ["d2"]

    def test_removing_last_record_drops_key(self):
        kv, outbox = make_outbox()

        async def run():
            await outbox.add(make_entry("d1"))
            await outbox.remove("d1")

        asyncio.run(run())
        assert "@unsynced_entries" not in kv.data

    def test_remove_unknown_id_is_noop(self):
        _, outbox = make_outbox()

        async def run():
            await outbox.add(make_entry("d1"))
            await outbox.remove("zzz")
            return await outbox.ids()

        assert asyncio.run(run()) == ["d1"]

    def test_discard_removes_matching_payload(self):
        _, outbox = make_outbox()
        entry = make_entry("d1")

        async def run():
            await outbox.put(entry)
            removed = await outbox.discard(entry)
            return removed, await outbox.ids()

        assert asyncio.run(run()) == (True, [])

    def test_discard_keeps_newer_payload(self):
        _, outbox = make_outbox()
        pushed = make_entry("d1", content="pushed")

        async def run():
            await outbox.put(pushed)
            await outbox.put(make_entry("d1", content="edited during push"))
            removed = await outbox.discard(pushed)
            return removed, await outbox.list()

        removed, queued = asyncio.run(run())
        assert removed is False
        assert queued[0].content == "edited during push"

    def test_clear(self):
        kv, outbox = make_outbox()

        async def run():
            await outbox.add(make_entry("d1"))
            await outbox.clear()
            return await outbox.list()

        assert asyncio.run(run()) == []
        assert kv.data == {}

    def test_kinds_are_independent(self):
        kv = MemoryKeyValueStore()
        store = LocalStore(kv)
        entries = Outbox(store, RecordKind.ENTRIES)
        interps = Outbox(store, RecordKind.INTERPRETATIONS)

        async def run():
            await entries.add(make_entry("d1"))
            await interps.add(make_interpretation("i1"))
            await entries.clear()
            return await interps.ids()

        assert asyncio.run(run()) == ["i1"]

    def test_ids_annotation_is_the_builtin_list(self):
        assert get_type_hints(Outbox.ids)["return"] == list[str]

    def test_ids_in_queue_order(self):
        _, outbox = make_outbox()

        async def run():
            for id in ["c", "a", "b"]:
                await outbox.add(make_entry(id))
            return await outbox.ids()

        assert asyncio.run(run()) == ["c", "a", "b"]
