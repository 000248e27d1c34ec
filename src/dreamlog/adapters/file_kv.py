"""File-based key/value storage adapter."""

import asyncio
import os
import re
import tempfile
from pathlib import Path


class FileKeyValueStore:
    """
    File-based key/value storage.

    Implements KeyValueStore protocol. Each key gets a JSON file in the data
    directory; writes go through a temp file and an atomic rename.
    """

    def __init__(self, data_dir: Path | str):
        self.data_dir = Path(data_dir).expanduser()
        self.data_dir.mkdir(parents=True, exist_ok=True)

    def _path_for_key(self, key: str) -> Path:
        """Get the file path for a storage key."""
        name = re.sub(r"[^A-Za-z0-9_.-]", "_", key.lstrip("@"))
        return self.data_dir / f"{name}.json"

    def _read(self, key: str) -> str | None:
        path = self._path_for_key(key)
        if not path.exists():
            return None
        return path.read_text()

    def _write(self, key: str, value: str) -> None:
        path = self._path_for_key(key)
        # Unique temp file per write
        with tempfile.NamedTemporaryFile(
            "w", dir=self.data_dir, prefix=f".{path.stem}.", suffix=".tmp", delete=False
        ) as tmp:
            tmp.write(value)
        try:
            os.replace(tmp.name, path)
        except OSError:
            Path(tmp.name).unlink(missing_ok=True)
            raise

    def _remove(self, key: str) -> None:
        self._path_for_key(key).unlink(missing_ok=True)

    async def get_item(self, key: str) -> str | None:
        """Read the value for a key. Returns None if not set."""
        return await asyncio.to_thread(self._read, key)

    async def set_item(self, key: str, value: str) -> None:
        """Write/overwrite the value for a key."""
        await asyncio.to_thread(self._write, key, value)

    async def remove_item(self, key: str) -> None:
        """Remove a key. Missing keys are ignored."""
        await asyncio.to_thread(self._remove, key)

    async def multi_remove(self, keys: list[str]) -> None:
        """Remove several keys in one batch."""

        def remove_all() -> None:
            for key in keys:
                self._remove(key)

        await asyncio.to_thread(remove_all)
