"""Remote backend interface."""

from typing import Protocol


class BackendError(Exception):
    """Raised when a remote backend call fails."""

    pass


class RemoteBackend(Protocol):
    """Four-verb, principal-scoped table API of the network service."""

    async def list_rows(self, table: str, user_id: str) -> list[dict]:
        """List all rows owned by a user."""
        ...

    async def get_owner(self, table: str, record_id: str) -> str | None:
        """Return the owning user id of a row, or None if it does not exist."""
        ...

    async def upsert_row(self, table: str, row: dict) -> None:
        """Insert a row or replace the row with the same id."""
        ...

    async def delete_row(self, table: str, record_id: str, user_id: str) -> None:
        """Delete a row owned by a user."""
        ...
