"""In-memory remote backend adapter."""

from dreamlog.ports.remote_backend import BackendError


class InMemoryBackend:
    """
    In-memory stand-in for the network service.

    Implements RemoteBackend protocol. Rows are kept per table, keyed by id.
    Ids listed in `fail_ids` make upserts fail; `offline` makes every call
    fail.
    """

    def __init__(self):
        self.tables: dict[str, dict[str, dict]] = {}
        self.fail_ids: set[str] = set()
        self.offline = False
        self.upserts: list[tuple[str, str]] = []

    def _table(self, table: str) -> dict[str, dict]:
        if self.offline:
            raise BackendError("backend unreachable")
        return self.tables.setdefault(table, {})

    async def list_rows(self, table: str, user_id: str) -> list[dict]:
        return [dict(r) for r in self._table(table).values() if r.get("user_id") == user_id]

    async def get_owner(self, table: str, record_id: str) -> str | None:
        row = self._table(table).get(record_id)
        return row.get("user_id") if row else None

    async def upsert_row(self, table: str, row: dict) -> None:
        rows = self._table(table)
        if row["id"] in self.fail_ids:
            raise BackendError(f"upsert {row['id']} rejected")
        self.upserts.append((table, row["id"]))
        rows[row["id"]] = {**rows.get(row["id"], {}), **row}

    async def delete_row(self, table: str, record_id: str, user_id: str) -> None:
        rows = self._table(table)
        row = rows.get(record_id)
        if row and row.get("user_id") == user_id:
            del rows[record_id]
