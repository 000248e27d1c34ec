"""Session provider interface."""

from typing import Protocol

from dreamlog.config import Session


class SessionProvider(Protocol):
    """Interface for the signed-in user's session."""

    async def get_session(self) -> Session | None:
        """Return the cached session. Never touches the network."""
        ...

    async def get_user(self) -> str | None:
        """Return the current user id as confirmed by the server."""
        ...
