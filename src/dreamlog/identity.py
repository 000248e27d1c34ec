"""Identity boundary - detects when the signed-in account changes."""

import logging

from .local_store import LocalStore
from .ports.session_provider import SessionProvider

logger = logging.getLogger(__name__)

PRINCIPAL_KEY = "@current_user_id"


class IdentityBoundary:
    """
    Compares the signed-in principal against the last one seen on this device.

    Only a switch between two different signed-in principals counts as a
    change. Signing out, or signing in for the first time, does not.
    """

    def __init__(self, sessions: SessionProvider, store: LocalStore):
        self.sessions = sessions
        self.store = store

    async def current_principal(self) -> str | None:
        """Principal from the cached session. Offline-safe; None if anonymous."""
        try:
            session = await self.sessions.get_session()
        except Exception as e:
            logger.warning(f"Session lookup failed, treating as anonymous: {type(e).__name__}")
            return None
        if session is None or not session.user_id:
            return None
        return session.user_id

    async def stored_principal(self) -> str | None:
        value = await self.store.read_json(PRINCIPAL_KEY, None)
        return value if isinstance(value, str) and value else None

    async def store_principal(self, principal: str) -> None:
        await self.store.write_json(PRINCIPAL_KEY, principal)

    async def clear(self) -> None:
        await self.store.remove_key(PRINCIPAL_KEY)

    async def has_changed(self) -> bool:
        """True only when a different signed-in principal replaced the stored one."""
        current = await self.current_principal()
        stored = await self.stored_principal()

        if current is None:
            if stored is not None:
                await self.clear()
            return False

        if stored is None:
            await self.store_principal(current)
            return False

        if stored != current:
            logger.info("Signed-in principal changed")
            return True
        return False
