"""Ports - interfaces/protocols for external dependencies."""

from .key_value_store import KeyValueStore
from .session_provider import SessionProvider
from .remote_backend import BackendError, RemoteBackend
from .reachability import ReachabilityProbe

__all__ = [
    "KeyValueStore",
    "SessionProvider",
    "BackendError",
    "RemoteBackend",
    "ReachabilityProbe",
]
