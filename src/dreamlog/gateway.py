"""Remote gateway - principal-scoped CRUD over one remote table."""

import logging
from enum import Enum

from .core.records import Record, RecordKind
from .ports.remote_backend import RemoteBackend
from .ports.session_provider import SessionProvider

logger = logging.getLogger(__name__)

# Local field name -> remote column name. Fields not listed stay on the device.
REMOTE_COLUMNS = {
    RecordKind.ENTRIES: {
        "id": "id",
        "date": "date",
        "title": "title",
        "content": "content",
        "symbol": "symbol",
        "archived": "archived",
        "created_at": "created_at",
        "updated_at": "updated_at",
    },
    RecordKind.INTERPRETATIONS: {
        "id": "id",
        "entry_id": "dream_id",
        "messages": "messages",
        "symbols": "symbols",
        "archetypes": "archetypes",
        "landscapes": "landscapes",
        "summary": "summary",
        "created_at": "created_at",
        "updated_at": "updated_at",
    },
}


class PushResult(Enum):
    """Outcome of pushing one record to the remote service."""

    SYNCED = "synced"
    SKIPPED = "skipped"  # no principal
    FAILED = "failed"  # network or server error, retry later
    REJECTED = "rejected"  # remote row belongs to another principal


def to_row(kind: RecordKind, record: Record, user_id: str) -> dict:
    """Serialize a record as a remote row owned by `user_id`."""
    columns = REMOTE_COLUMNS[kind]
    row = {columns[k]: v for k, v in record.to_dict().items() if k in columns}
    row["user_id"] = user_id
    return row


def from_row(kind: RecordKind, row: dict) -> Record:
    """Parse a remote row back into a record."""
    fields = {v: k for k, v in REMOTE_COLUMNS[kind].items()}
    data = {fields[k]: v for k, v in row.items() if k in fields}
    return kind.from_dict(data)


class RemoteGateway:
    """
    CRUD for one record kind against the remote backend.

    Every call is scoped to the server-confirmed principal and fails closed:
    no principal or any backend failure (transport, status, malformed
    response) yields "not available", never an exception.
    """

    def __init__(
        self,
        kind: RecordKind,
        backend: RemoteBackend,
        sessions: SessionProvider,
        table: str,
    ):
        self.kind = kind
        self.backend = backend
        self.sessions = sessions
        self.table = table

    async def _principal(self) -> str | None:
        try:
            return await self.sessions.get_user()
        except Exception as e:
            logger.warning(f"Could not resolve user for {self.table}: {type(e).__name__}")
            return None

    async def fetch_all(self) -> list | None:
        """All remote records of the current principal, or None if unavailable."""
        user_id = await self._principal()
        if not user_id:
            return None

        try:
            rows = await self.backend.list_rows(self.table, user_id)
        except Exception as e:
            logger.warning(f"Fetching {self.table} failed: {type(e).__name__}: {e}")
            return None
        if not isinstance(rows, list):
            logger.warning(f"Fetching {self.table} returned {type(rows).__name__}, expected a list")
            return None

        records = []
        for row in rows:
            if not isinstance(row, dict):
                logger.warning(f"Skipping non-object {self.table} row")
                continue
            try:
                records.append(from_row(self.kind, row))
            except (KeyError, TypeError, AttributeError) as e:
                logger.warning(f"Skipping malformed {self.table} row {row.get('id')}: {type(e).__name__}")
        logger.debug(f"Fetched {len(records)} {self.table} rows")
        return records

    async def save(self, record: Record) -> PushResult:
        """Upsert a record, refusing to overwrite another principal's row."""
        user_id = await self._principal()
        if not user_id:
            return PushResult.SKIPPED

        try:
            owner = await self.backend.get_owner(self.table, record.id)
        except Exception as e:
            logger.warning(f"Ownership check for {self.table} {record.id} failed: {type(e).__name__}: {e}")
            return PushResult.FAILED

        if owner is not None and owner != user_id:
            logger.error(f"Ownership violation: {self.table} {record.id} belongs to another user; write dropped")
            return PushResult.REJECTED

        try:
            await self.backend.upsert_row(self.table, to_row(self.kind, record, user_id))
        except Exception as e:
            logger.warning(f"Saving {self.table} {record.id} failed: {type(e).__name__}: {e}")
            return PushResult.FAILED

        logger.debug(f"Saved {self.table} {record.id}")
        return PushResult.SYNCED

    async def delete(self, record_id: str) -> bool:
        """Delete the principal's remote copy. Returns True if the call went through."""
        user_id = await self._principal()
        if not user_id:
            return False

        try:
            await self.backend.delete_row(self.table, record_id, user_id)
        except Exception as e:
            logger.warning(f"Deleting {self.table} {record_id} failed: {type(e).__name__}: {e}")
            return False

        logger.debug(f"Deleted {self.table} {record_id}")
        return True
