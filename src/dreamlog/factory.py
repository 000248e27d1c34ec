"""Builds the storage service from configuration. Shared by CLI and daemon."""

from .adapters.file_kv import FileKeyValueStore
from .adapters.reachability import HttpReachabilityProbe
from .adapters.supabase_auth import SupabaseSessionProvider
from .adapters.supabase_rest import SupabaseRestBackend
from .config import Config
from .core.merge import MergePolicy
from .core.records import RecordKind
from .gateway import RemoteGateway
from .identity import IdentityBoundary
from .local_store import LocalStore
from .outbox import Outbox
from .ports.key_value_store import KeyValueStore
from .ports.reachability import ReachabilityProbe
from .ports.remote_backend import RemoteBackend
from .ports.session_provider import SessionProvider
from .storage import StorageService
from .sync import SyncEngine
from .tasks import BackgroundTasks


def table_for(kind: RecordKind, config: Config) -> str:
    if kind is RecordKind.ENTRIES:
        return config.entries_table
    return config.interpretations_table


def build_service(
    config: Config,
    kv: KeyValueStore,
    sessions: SessionProvider,
    backend: RemoteBackend,
    reachability: ReachabilityProbe,
) -> StorageService:
    """Wire the reconciliation components around the given collaborators."""
    store = LocalStore(kv)
    identity = IdentityBoundary(sessions, store)
    tasks = BackgroundTasks()
    policy = MergePolicy.parse(config.merge_policy)

    engines = {}
    for kind in RecordKind:
        engines[kind] = SyncEngine(
            kind=kind,
            store=store,
            outbox=Outbox(store, kind),
            gateway=RemoteGateway(kind, backend, sessions, table_for(kind, config)),
            identity=identity,
            reachability=reachability,
            tasks=tasks,
            policy=policy,
        )
    return StorageService(store, identity, engines, tasks)


def create_storage_service(config: Config) -> StorageService:
    """Storage service backed by files on disk and the configured Supabase project."""
    auth = SupabaseSessionProvider(config)
    reachability = HttpReachabilityProbe(
        f"{config.supabase_url}/auth/v1/health" if config.supabase_url else "",
        cache_seconds=config.online_cache_seconds,
        timeout=min(config.request_timeout, 3.0),
        force_offline=config.force_offline,
    )
    return build_service(
        config,
        kv=FileKeyValueStore(config.resolved_data_dir()),
        sessions=auth,
        backend=SupabaseRestBackend(auth, config),
        reachability=reachability,
    )
