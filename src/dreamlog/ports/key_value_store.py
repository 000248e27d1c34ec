"""Local persistence primitive interface."""

from typing import Protocol


class KeyValueStore(Protocol):
    """Async string-keyed storage for serialized collections."""

    async def get_item(self, key: str) -> str | None:
        """Read the value for a key. Returns None if not set."""
        ...

    async def set_item(self, key: str, value: str) -> None:
        """Write/overwrite the value for a key."""
        ...

    async def remove_item(self, key: str) -> None:
        """Remove a key. Missing keys are ignored."""
        ...

    async def multi_remove(self, keys: list[str]) -> None:
        """Remove several keys in one batch."""
        ...
