"""In-memory key/value storage adapter."""


class MemoryKeyValueStore:
    """
    In-memory key/value storage.

    Implements KeyValueStore protocol. Nothing survives the process; used for
    tests and throwaway sessions.
    """

    def __init__(self, initial: dict[str, str] | None = None):
        self.data: dict[str, str] = dict(initial or {})

    async def get_item(self, key: str) -> str | None:
        return self.data.get(key)

    async def set_item(self, key: str, value: str) -> None:
        self.data[key] = value

    async def remove_item(self, key: str) -> None:
        self.data.pop(key, None)

    async def multi_remove(self, keys: list[str]) -> None:
        for key in keys:
            self.data.pop(key, None)
