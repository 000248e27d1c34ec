"""Adapters - I/O implementations of ports."""

from .file_kv import FileKeyValueStore
from .memory_kv import MemoryKeyValueStore
from .memory_backend import InMemoryBackend
from .reachability import HttpReachabilityProbe
from .supabase_auth import SupabaseSessionProvider, AuthenticationError
from .supabase_rest import SupabaseRestBackend

__all__ = [
    "FileKeyValueStore",
    "MemoryKeyValueStore",
    "InMemoryBackend",
    "HttpReachabilityProbe",
    "SupabaseSessionProvider",
    "AuthenticationError",
    "SupabaseRestBackend",
]
