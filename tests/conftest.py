"""Shared fakes and fixtures."""

import pytest

from dreamlog.adapters.memory_backend import InMemoryBackend
from dreamlog.adapters.memory_kv import MemoryKeyValueStore
from dreamlog.config import Config, Session
from dreamlog.core.records import ChatMessage, Interpretation, JournalEntry
from dreamlog.factory import build_service


class FakeSessions:
    """Session provider whose signed-in user can be switched by tests."""

    def __init__(self, user_id: str | None = None):
        self.user_id = user_id

    async def get_session(self):
        if not self.user_id:
            return None
        return Session(access_token="token", user_id=self.user_id)

    async def get_user(self):
        return self.user_id


class FakeReachability:
    def __init__(self, online: bool = True):
        self.online = online

    async def is_online(self) -> bool:
        return self.online


def make_entry(id: str, date: str = "2024-01-15", content: str = "woke up flying", updated_at: str = "2024-01-15T07:00:00+00:00", **kwargs) -> JournalEntry:
    return JournalEntry(
        id=id,
        date=date,
        content=content,
        created_at=kwargs.pop("created_at", updated_at),
        updated_at=updated_at,
        **kwargs,
    )


def make_interpretation(id: str, entry_id: str = "d1", **kwargs) -> Interpretation:
    return Interpretation(
        id=id,
        entry_id=entry_id,
        messages=[
            ChatMessage(id="m1", role="user", content="what does flying mean?", timestamp="2024-01-15T07:05:00+00:00"),
            ChatMessage(id="m2", role="assistant", content="freedom", timestamp="2024-01-15T07:05:10+00:00"),
        ],
        symbols=["flight"],
        archetypes=["puer"],
        summary=kwargs.pop("summary", "a flying dream"),
        created_at="2024-01-15T07:06:00+00:00",
        updated_at=kwargs.pop("updated_at", "2024-01-15T07:06:00+00:00"),
        content_at_creation=kwargs.pop("content_at_creation", "woke up flying"),
        **kwargs,
    )


class Harness:
    """A storage service wired to in-memory collaborators."""

    def __init__(self, user_id: str | None = "u1", online: bool = True, config: Config | None = None):
        self.kv = MemoryKeyValueStore()
        self.sessions = FakeSessions(user_id)
        self.backend = InMemoryBackend()
        self.reachability = FakeReachability(online)
        self.config = config or Config()
        self.service = build_service(
            self.config,
            kv=self.kv,
            sessions=self.sessions,
            backend=self.backend,
            reachability=self.reachability,
        )

    @property
    def store(self):
        return self.service.store

    def engine(self, kind):
        return self.service.engines[kind]


@pytest.fixture
def harness():
    return Harness()


@pytest.fixture
def offline_harness():
    return Harness(online=False)
