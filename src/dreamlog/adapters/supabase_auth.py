"""Supabase auth adapter - cached session and user lookup."""

import asyncio
import logging
import time
from pathlib import Path

import requests

from dreamlog.config import Config, Session, load_config

logger = logging.getLogger(__name__)


class AuthenticationError(Exception):
    """Raised when authentication fails."""

    pass


class SupabaseSessionProvider:
    """
    Supabase GoTrue session adapter.

    Implements SessionProvider protocol. The session is cached on disk so
    get_session() works offline; get_user() asks the server.
    """

    def __init__(
        self,
        config: Config | None = None,
        session_file: Path | None = None,
        http: requests.Session | None = None,
    ):
        self.config = config or load_config()
        self.session_file = session_file
        self._http = http or requests.Session()

    @property
    def _auth_url(self) -> str:
        return f"{self.config.supabase_url}/auth/v1"

    def _headers(self, access_token: str | None = None) -> dict:
        headers = {"apikey": self.config.supabase_anon_key}
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        return headers

    def _store(self, data: dict) -> Session:
        session = Session(
            access_token=data["access_token"],
            refresh_token=data.get("refresh_token", ""),
            expires_at=int(time.time()) + data.get("expires_in", 3600),
            user_id=data["user"]["id"],
        )
        session.save(self.session_file)
        return session

    def load_session(self) -> Session | None:
        """Read the cached session from disk."""
        return Session.load(self.session_file)

    def ensure_valid_session(self) -> Session:
        """Return the cached session, refreshing it if it expires soon."""
        session = self.load_session()
        if session is None:
            raise AuthenticationError("Not signed in. Run 'dreamlog login' first.")
        if session.is_expiring():
            session = self._refresh(session)
        return session

    def _refresh(self, session: Session) -> Session:
        """Refresh the access token."""
        if not session.refresh_token:
            raise AuthenticationError("No refresh token. Run 'dreamlog login' first.")

        resp = self._http.post(
            f"{self._auth_url}/token",
            params={"grant_type": "refresh_token"},
            json={"refresh_token": session.refresh_token},
            headers=self._headers(),
            timeout=self.config.request_timeout,
        )
        if resp.status_code != 200:
            raise AuthenticationError(f"Token refresh failed with status {resp.status_code}")

        logger.info("Refreshed access token")
        return self._store(resp.json())

    def sign_in(self, email: str, password: str) -> Session:
        """Sign in with email and password and cache the session."""
        if not self.config.supabase_url or not self.config.supabase_anon_key:
            raise AuthenticationError(
                "Missing Supabase settings. Add SUPABASE_URL and SUPABASE_ANON_KEY to dreamlog.conf"
            )

        try:
            resp = self._http.post(
                f"{self._auth_url}/token",
                params={"grant_type": "password"},
                json={"email": email, "password": password},
                headers=self._headers(),
                timeout=self.config.request_timeout,
            )
        except requests.RequestException as e:
            raise AuthenticationError(f"Sign-in request failed: {e}") from e

        if resp.status_code != 200:
            raise AuthenticationError(f"Sign-in failed with status {resp.status_code}")

        return self._store(resp.json())

    def sign_out(self) -> None:
        """Drop the cached session. Server-side revocation is best effort."""
        session = self.load_session()
        Session.clear(self.session_file)
        if session is None:
            return
        try:
            self._http.post(
                f"{self._auth_url}/logout",
                headers=self._headers(session.access_token),
                timeout=self.config.request_timeout,
            )
        except requests.RequestException as e:
            logger.warning(f"Server sign-out failed: {e}")

    def _fetch_user_id(self) -> str | None:
        try:
            session = self.ensure_valid_session()
            resp = self._http.get(
                f"{self._auth_url}/user",
                headers=self._headers(session.access_token),
                timeout=self.config.request_timeout,
            )
        except AuthenticationError as e:
            logger.debug(f"No user: {e}")
            return None
        except requests.RequestException as e:
            logger.warning(f"User lookup failed: {type(e).__name__}")
            return None

        if resp.status_code != 200:
            logger.warning(f"User lookup returned status {resp.status_code}")
            return None
        return resp.json().get("id")

    async def get_session(self) -> Session | None:
        """Return the cached session. Never touches the network."""
        return await asyncio.to_thread(self.load_session)

    async def get_user(self) -> str | None:
        """Return the current user id as confirmed by the server."""
        return await asyncio.to_thread(self._fetch_user_id)
