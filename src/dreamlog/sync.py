"""Synchronization engine - drains the outbox and merges remote snapshots."""

import asyncio
import logging
from dataclasses import dataclass, field

from .core.merge import MergePolicy, merge_by_id
from .core.records import RecordKind
from .gateway import PushResult, RemoteGateway
from .identity import IdentityBoundary
from .local_store import LocalStore
from .outbox import Outbox
from .ports.reachability import ReachabilityProbe
from .tasks import BackgroundTasks

logger = logging.getLogger(__name__)


@dataclass
class DrainReport:
    """What one outbox drain did."""

    kind: RecordKind
    skipped: bool = False
    synced: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    rejected: list[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.synced) + len(self.failed) + len(self.rejected)


class SyncEngine:
    """
    Reconciles one record kind between the local store and the remote service.

    drain_outbox() pushes queued local writes; fetch_and_merge() pulls the
    remote snapshot and folds it into the local copy. Neither raises.
    """

    def __init__(
        self,
        kind: RecordKind,
        store: LocalStore,
        outbox: Outbox,
        gateway: RemoteGateway,
        identity: IdentityBoundary,
        reachability: ReachabilityProbe,
        tasks: BackgroundTasks,
        policy: MergePolicy = MergePolicy.REMOTE_WINS,
    ):
        self.kind = kind
        self.store = store
        self.outbox = outbox
        self.gateway = gateway
        self.identity = identity
        self.reachability = reachability
        self.tasks = tasks
        self.policy = policy
        self._drain_lock = asyncio.Lock()

    async def _skip_reason(self) -> str | None:
        """Why remote work cannot happen right now, or None if it can."""
        if not await self.identity.current_principal():
            return "no user"
        try:
            online = await self.reachability.is_online()
        except Exception as e:
            logger.warning(f"Reachability check failed: {type(e).__name__}")
            online = False
        if not online:
            return "offline"
        return None

    async def drain_outbox(self) -> DrainReport:
        """
        Push every queued record once.

        Confirmed writes leave the outbox; failures stay queued for the next
        drain and do not stop the remaining records.
        """
        report = DrainReport(self.kind)
        reason = await self._skip_reason()
        if reason:
            logger.debug(f"Skipping {self.kind.value} drain: {reason}")
            report.skipped = True
            return report

        async with self._drain_lock:
            # Snapshot: records queued during this pass wait for the next one
            pending = await self.outbox.list()
            if not pending:
                return report

            logger.info(f"Sync started: {len(pending)} {self.kind.value}")
            for record in pending:
                try:
                    result = await self.gateway.save(record)
                except Exception as e:
                    logger.warning(f"Push of {self.kind.value} {record.id} raised {type(e).__name__}")
                    result = PushResult.FAILED

                try:
                    if result is PushResult.SYNCED:
                        await self.outbox.discard(record)
                        report.synced.append(record.id)
                    elif result is PushResult.REJECTED:
                        # Retrying can never succeed; the violation is already logged
                        await self.outbox.discard(record)
                        report.rejected.append(record.id)
                    else:
                        report.failed.append(record.id)
                except Exception as e:
                    logger.warning(f"Outbox update for {record.id} failed: {type(e).__name__}")
                    report.failed.append(record.id)

            logger.info(
                f"Sync completed: {self.kind.value} total={report.total} "
                f"synced={len(report.synced)} failed={len(report.failed)} "
                f"rejected={len(report.rejected)}"
            )
        return report

    async def delete_remote(self, record_id: str) -> bool:
        """
        Delete the remote copy once no drain is in flight.

        A running drain may hold a snapshot that still contains the record;
        deleting after it finishes keeps its upsert from restoring the row.
        """
        async with self._drain_lock:
            return await self.gateway.delete(record_id)

    async def fetch_and_merge(self) -> list:
        """
        Merge the remote snapshot into the local store and return the result.

        Offline, signed out, or on any remote error, the local snapshot is
        returned untouched.
        """
        reason = await self._skip_reason()
        if reason:
            logger.debug(f"Skipping {self.kind.value} fetch: {reason}")
            return await self.store.get(self.kind)

        try:
            remote = await self.gateway.fetch_all()
            if remote is not None:
                result = None

                def merge(local: list) -> list:
                    nonlocal result
                    result = merge_by_id(self.kind, local, remote, self.policy)
                    return result.records

                merged = await self.store.update(self.kind, merge)
                logger.info(
                    f"Merged {self.kind.value}: local={result.local_count} "
                    f"remote={result.remote_count} merged={len(merged)} "
                    f"new_from_remote={result.new_from_remote} kept_local={result.kept_local}"
                )

                # Writes made while offline may be pushable now
                self.tasks.spawn(self.drain_outbox(), name=f"drain-{self.kind.value}")
                return merged
        except Exception as e:
            logger.warning(f"Fetch and merge of {self.kind.value} failed: {type(e).__name__}: {e}")

        return await self.store.get(self.kind)
