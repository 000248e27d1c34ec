"""Outbox of records written locally but not yet confirmed remotely."""

from __future__ import annotations

import logging

from .core.records import Record, RecordKind
from .local_store import LocalStore

logger = logging.getLogger(__name__)


class Outbox:
    """
    Unsynced records of one kind, at most one per id.

    Holds full payloads so a later sync replays the last local value even
    after the object that triggered the save is gone.
    """

    def __init__(self, store: LocalStore, kind: RecordKind):
        self.store = store
        self.kind = kind
        self.key = kind.outbox_key

    async def _load(self, strict: bool = False) -> list:
        data = await self.store.read_json(self.key, [], strict)
        records = []
        for item in data if isinstance(data, list) else []:
            try:
                records.append(self.kind.from_dict(item))
            except (KeyError, TypeError, AttributeError):
                logger.warning(f"Dropping malformed {self.kind.value} outbox record")
        return records

    async def _persist(self, records: list) -> None:
        if records:
            await self.store.write_json(self.key, [r.to_dict() for r in records])
        else:
            await self.store.remove_key(self.key)

    async def list(self) -> list:
        return await self._load()

    async def ids(self) -> list[str]:
        return [r.id for r in await self._load()]

    async def add(self, record: Record) -> None:
        """Enqueue a record. No-op if its id is already queued."""
        async with self.store.lock(self.key):
            records = await self._load(strict=True)
            if any(r.id == record.id for r in records):
                return
            records.append(record)
            await self._persist(records)

    async def put(self, record: Record) -> None:
        """Enqueue a record, replacing the queued payload for its id."""
        async with self.store.lock(self.key):
            records = await self._load(strict=True)
            for i, existing in enumerate(records):
                if existing.id == record.id:
                    records[i] = record
                    break
            else:
                records.append(record)
            await self._persist(records)

    async def remove(self, record_id: str) -> None:
        async with self.store.lock(self.key):
            records = await self._load(strict=True)
            remaining = [r for r in records if r.id != record_id]
            if len(remaining) != len(records):
                await self._persist(remaining)

    async def discard(self, record: Record) -> bool:
        """
        Remove a record after it was pushed, unless a newer payload for the
        same id was queued in the meantime. Returns True if removed.
        """
        async with self.store.lock(self.key):
            records = await self._load(strict=True)
            remaining = [r for r in records if not (r.id == record.id and r == record)]
            if len(remaining) == len(records):
                return False
            await self._persist(remaining)
            return True

    async def clear(self) -> None:
        async with self.store.lock(self.key):
            await self.store.remove_key(self.key)
