"""Supabase PostgREST adapter - HTTP client for journal tables."""

import asyncio
import logging

import requests

from dreamlog.config import Config, load_config
from dreamlog.ports.remote_backend import BackendError

from .supabase_auth import AuthenticationError, SupabaseSessionProvider

logger = logging.getLogger(__name__)


class SupabaseRestBackend:
    """
    Supabase REST adapter.

    Implements RemoteBackend protocol. Handles auth headers, timeouts and
    status checks. No business logic - just I/O.
    """

    def __init__(
        self,
        auth: SupabaseSessionProvider,
        config: Config | None = None,
        http: requests.Session | None = None,
    ):
        self.config = config or load_config()
        self.auth = auth
        self._http = http or requests.Session()

    def _request(
        self,
        method: str,
        table: str,
        params: dict,
        json: dict | None = None,
        prefer: str | None = None,
    ) -> requests.Response:
        """Make authenticated API request."""
        try:
            session = self.auth.ensure_valid_session()
        except AuthenticationError as e:
            raise BackendError(str(e)) from e

        headers = {
            "apikey": self.config.supabase_anon_key,
            "Authorization": f"Bearer {session.access_token}",
        }
        if prefer:
            headers["Prefer"] = prefer

        try:
            resp = self._http.request(
                method,
                f"{self.config.supabase_url}/rest/v1/{table}",
                params=params,
                json=json,
                headers=headers,
                timeout=self.config.request_timeout,
            )
        except requests.RequestException as e:
            raise BackendError(f"{method} {table} failed: {type(e).__name__}") from e

        if resp.status_code >= 400:
            raise BackendError(f"{method} {table} returned status {resp.status_code}")
        return resp

    def _rows(self, resp: requests.Response, table: str) -> list[dict]:
        """Decode a PostgREST row list, rejecting anything else."""
        try:
            rows = resp.json()
        except ValueError as e:
            raise BackendError(f"{table} response is not JSON") from e
        if not isinstance(rows, list) or not all(isinstance(r, dict) for r in rows):
            raise BackendError(f"{table} response is not a list of rows")
        return rows

    def _list_rows(self, table: str, user_id: str) -> list[dict]:
        resp = self._request("GET", table, {"select": "*", "user_id": f"eq.{user_id}"})
        return self._rows(resp, table)

    def _get_owner(self, table: str, record_id: str) -> str | None:
        resp = self._request("GET", table, {"select": "user_id", "id": f"eq.{record_id}"})
        rows = self._rows(resp, table)
        if not rows:
            return None
        return rows[0].get("user_id")

    def _upsert_row(self, table: str, row: dict) -> None:
        self._request(
            "POST",
            table,
            {"on_conflict": "id"},
            json=row,
            prefer="resolution=merge-duplicates,return=minimal",
        )

    def _delete_row(self, table: str, record_id: str, user_id: str) -> None:
        self._request("DELETE", table, {"id": f"eq.{record_id}", "user_id": f"eq.{user_id}"})

    async def list_rows(self, table: str, user_id: str) -> list[dict]:
        """List all rows owned by a user."""
        return await asyncio.to_thread(self._list_rows, table, user_id)

    async def get_owner(self, table: str, record_id: str) -> str | None:
        """Return the owning user id of a row, or None if it does not exist."""
        return await asyncio.to_thread(self._get_owner, table, record_id)

    async def upsert_row(self, table: str, row: dict) -> None:
        """Insert a row or replace the row with the same id."""
        await asyncio.to_thread(self._upsert_row, table, row)

    async def delete_row(self, table: str, record_id: str, user_id: str) -> None:
        """Delete a row owned by a user."""
        await asyncio.to_thread(self._delete_row, table, record_id, user_id)
