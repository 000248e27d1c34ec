"""Storage service - the offline-first entry point for journal data.

Writes land in the local store first and are queued for background sync;
reads serve the local copy immediately and refresh it in the background for
the next call. Nothing here raises because the network is unavailable; only
a failing local write (LocalWriteError) reaches the caller.
"""

import logging
from dataclasses import replace

from .core.merge import dates_with_entries, filter_by_date, search_entries, upsert
from .core.records import Draft, Interpretation, JournalEntry, Record, RecordKind
from .identity import IdentityBoundary
from .local_store import LocalStore, LocalWriteError
from .sync import DrainReport, SyncEngine
from .tasks import BackgroundTasks

logger = logging.getLogger(__name__)


class StorageService:
    """Facade over the local store, outboxes, identity boundary and sync engines."""

    def __init__(
        self,
        store: LocalStore,
        identity: IdentityBoundary,
        engines: dict[RecordKind, SyncEngine],
        tasks: BackgroundTasks,
    ):
        self.store = store
        self.identity = identity
        self.engines = engines
        self.tasks = tasks

    def outbox(self, kind: RecordKind):
        return self.engines[kind].outbox

    async def initialize(self) -> None:
        """Wipe local data if a different account signed in since last run."""
        if await self.identity.has_changed():
            await self.store.clear_all()
            current = await self.identity.current_principal()
            if current:
                await self.identity.store_principal(current)
            logger.info("Storage initialized after account change; local data cleared")
            return

        current = await self.identity.current_principal()
        if current:
            await self.identity.store_principal(current)

    # Records

    async def save(self, kind: RecordKind, record: Record) -> Record:
        """
        Save a record locally and queue it for sync.

        Returns once the local write is durable. The stored updated_at of an
        id never moves backwards; the record actually stored is returned.
        """
        stored = record

        def apply(records: list) -> list:
            nonlocal stored
            for existing in records:
                if existing.id == record.id and existing.updated_at > record.updated_at:
                    stored = replace(record, updated_at=existing.updated_at)
            return upsert(records, stored)

        await self.store.update(kind, apply)
        logger.debug(f"Saved {kind.value} {stored.id} locally")

        try:
            await self.outbox(kind).put(stored)
        except LocalWriteError as e:
            # Local copy is correct; the next edit re-queues it
            logger.warning(f"Could not queue {kind.value} {stored.id} for sync: {e}")

        self.tasks.spawn(self._push(kind), name=f"push-{kind.value}")
        return stored

    async def _push(self, kind: RecordKind) -> None:
        if not await self.identity.current_principal():
            # Stays queued until someone signs in
            return
        await self.engines[kind].drain_outbox()

    async def get_all(self, kind: RecordKind) -> list:
        """Local records now; a background merge refreshes them for next time."""
        records = await self.store.get(kind)
        self.tasks.spawn(self._refresh(kind), name=f"refresh-{kind.value}")
        return records

    async def _refresh(self, kind: RecordKind) -> None:
        if not await self.identity.current_principal():
            return
        engine = self.engines[kind]
        if not await engine.reachability.is_online():
            return
        await engine.fetch_and_merge()

    async def get_by_id(self, kind: RecordKind, record_id: str) -> Record | None:
        return await self.store.get_by_id(kind, record_id)

    async def delete(self, kind: RecordKind, record_id: str) -> None:
        """Delete locally, drop any queued write, and delete remotely best-effort."""
        await self.store.delete(kind, record_id)
        try:
            await self.outbox(kind).remove(record_id)
        except LocalWriteError as e:
            logger.warning(f"Could not dequeue {kind.value} {record_id}: {e}")

        if await self.identity.current_principal():
            engine = self.engines[kind]
            self.tasks.spawn(engine.delete_remote(record_id), name=f"delete-{kind.value}")

    # Entry and interpretation helpers

    async def save_entry(self, entry: JournalEntry) -> JournalEntry:
        return await self.save(RecordKind.ENTRIES, entry)

    async def get_entries(self) -> list[JournalEntry]:
        return await self.get_all(RecordKind.ENTRIES)

    async def get_entries_by_date(self, target_date: str) -> list[JournalEntry]:
        return filter_by_date(await self.get_entries(), target_date)

    async def search_entries(self, query: str) -> list[JournalEntry]:
        return search_entries(await self.get_entries(), query)

    async def get_dates_with_entries(self) -> list[str]:
        return dates_with_entries(await self.get_entries())

    async def save_interpretation(self, interpretation: Interpretation) -> Interpretation:
        return await self.save(RecordKind.INTERPRETATIONS, interpretation)

    async def get_interpretation_for_entry(self, entry_id: str) -> Interpretation | None:
        for interpretation in await self.store.get(RecordKind.INTERPRETATIONS):
            if interpretation.entry_id == entry_id:
                return interpretation
        return None

    # Drafts and settings (local only)

    async def save_draft(self, draft: Draft) -> None:
        await self.store.save_draft(draft)

    async def get_draft(self) -> Draft | None:
        return await self.store.get_draft()

    async def clear_draft(self) -> None:
        await self.store.clear_draft()

    async def get_setting(self, name: str) -> str | None:
        return await self.store.get_setting(name)

    async def set_setting(self, name: str, value: str) -> None:
        await self.store.set_setting(name, value)

    # Maintenance

    async def clear_all(self) -> None:
        """Wipe local data and forget the stored account (sign-out)."""
        await self.store.clear_all()
        await self.identity.clear()
        logger.info("Storage cleared")

    async def sync_now(self) -> list[DrainReport]:
        """Push every outbox, then merge every kind. Awaited end to end."""
        reports = [await engine.drain_outbox() for engine in self.engines.values()]
        for engine in self.engines.values():
            await engine.fetch_and_merge()
        return reports

    async def pending_counts(self) -> dict[str, int]:
        """Queued record count per kind."""
        return {kind.value: len(await self.outbox(kind).list()) for kind in self.engines}

    async def wait_for_background(self) -> None:
        """Wait for spawned sync work (shutdown, tests)."""
        await self.tasks.wait()
