"""Durable local store - the on-device copy of every collection."""

import asyncio
import json
import logging
from collections import defaultdict
from typing import Callable

from .core.merge import upsert
from .core.records import Draft, Record, RecordKind
from .ports.key_value_store import KeyValueStore

logger = logging.getLogger(__name__)

DRAFT_KEY = "@entry_draft"
SETTINGS_KEY = "@settings"


class LocalWriteError(Exception):
    """Raised when the device store cannot persist a write."""

    pass


class LocalStore:
    """
    CRUD over the local copy of each record collection.

    Reads degrade to an empty result when the backing store fails or holds
    unreadable data. Writes to one key are serialized with a lock, since each
    write rewrites the whole collection.
    """

    def __init__(self, kv: KeyValueStore):
        self._kv = kv
        self._locks: dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    def lock(self, key: str) -> asyncio.Lock:
        """The write lock for one storage key."""
        return self._locks[key]

    async def read_json(self, key: str, default, strict: bool = False):
        """
        Load a JSON value, falling back to `default` on any failure.

        With `strict`, a failing backing store raises LocalWriteError instead,
        so a write never replaces data it could not read.
        """
        try:
            raw = await self._kv.get_item(key)
        except Exception as e:
            if strict:
                raise LocalWriteError(f"Could not read {key}: {type(e).__name__}") from e
            logger.error(f"Local read of {key} failed: {type(e).__name__}")
            return default
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.error(f"Local data under {key} is not valid JSON; treating as empty")
            return default

    async def write_json(self, key: str, value) -> None:
        try:
            await self._kv.set_item(key, json.dumps(value))
        except Exception as e:
            raise LocalWriteError(f"Could not write {key}: {type(e).__name__}") from e

    async def remove_key(self, key: str) -> None:
        try:
            await self._kv.remove_item(key)
        except Exception as e:
            raise LocalWriteError(f"Could not remove {key}: {type(e).__name__}") from e

    async def _load(self, kind: RecordKind, strict: bool = False) -> list:
        data = await self.read_json(kind.storage_key, [], strict)
        records = []
        for item in data if isinstance(data, list) else []:
            try:
                records.append(kind.from_dict(item))
            except (KeyError, TypeError, AttributeError):
                logger.warning(f"Skipping malformed {kind.value} record in local store")
        return records

    async def _persist(self, kind: RecordKind, records: list) -> None:
        await self.write_json(kind.storage_key, [r.to_dict() for r in records])

    # Records

    async def get(self, kind: RecordKind) -> list:
        """All local records of a kind. Empty if the store is unavailable."""
        return await self._load(kind)

    async def get_by_id(self, kind: RecordKind, record_id: str) -> Record | None:
        for record in await self._load(kind):
            if record.id == record_id:
                return record
        return None

    async def update(self, kind: RecordKind, transform: Callable[[list], list]) -> list:
        """Read, transform and write back a collection under its write lock."""
        async with self.lock(kind.storage_key):
            records = kind.sort(transform(await self._load(kind, strict=True)))
            await self._persist(kind, records)
            return records

    async def save(self, kind: RecordKind, record: Record) -> None:
        """Insert or replace a record by id, keeping the kind's natural order."""
        await self.update(kind, lambda records: upsert(records, record))

    async def save_all(self, kind: RecordKind, records: list) -> None:
        """Replace the whole collection (used after a merge)."""
        await self.update(kind, lambda _: records)

    async def delete(self, kind: RecordKind, record_id: str) -> None:
        await self.update(kind, lambda records: [r for r in records if r.id != record_id])

    # Draft

    async def get_draft(self) -> Draft | None:
        data = await self.read_json(DRAFT_KEY, None)
        if not isinstance(data, dict):
            return None
        try:
            return Draft.from_dict(data)
        except KeyError:
            return None

    async def save_draft(self, draft: Draft) -> None:
        await self.write_json(DRAFT_KEY, draft.to_dict())

    async def clear_draft(self) -> None:
        await self.remove_key(DRAFT_KEY)

    # Settings

    async def get_setting(self, name: str) -> str | None:
        settings = await self.read_json(SETTINGS_KEY, {})
        return settings.get(name) if isinstance(settings, dict) else None

    async def set_setting(self, name: str, value: str) -> None:
        async with self.lock(SETTINGS_KEY):
            settings = await self.read_json(SETTINGS_KEY, {}, strict=True)
            if not isinstance(settings, dict):
                settings = {}
            settings[name] = value
            await self.write_json(SETTINGS_KEY, settings)

    # Wipe

    def known_keys(self) -> list[str]:
        keys = [DRAFT_KEY, SETTINGS_KEY]
        for kind in RecordKind:
            keys.extend([kind.storage_key, kind.outbox_key])
        return keys

    async def clear_all(self) -> None:
        """Remove every local collection, outboxes included, in one batch."""
        try:
            await self._kv.multi_remove(self.known_keys())
        except Exception as e:
            raise LocalWriteError(f"Could not clear local data: {type(e).__name__}") from e
        logger.info("Local store cleared")
