"""Journal record types - no I/O dependencies."""

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum


def utc_now() -> str:
    """Current time as an ISO-8601 UTC timestamp."""
    return datetime.now(timezone.utc).isoformat()


@dataclass
class ChatMessage:
    """One turn of an interpretation conversation."""

    id: str
    role: str  # "user" or "assistant"
    content: str
    timestamp: str

    @classmethod
    def from_dict(cls, data: dict) -> "ChatMessage":
        return cls(
            id=data["id"],
            role=data["role"],
            content=data.get("content", ""),
            timestamp=data.get("timestamp", ""),
        )


@dataclass
class JournalEntry:
    """A dream journal entry. Several entries may share a date."""

    id: str
    date: str  # YYYY-MM-DD
    content: str
    title: str | None = None
    symbol: str | None = None
    archived: bool = False
    created_at: str = ""
    updated_at: str = ""
    symbols: list[str] | None = None
    archetypes: list[str] | None = None
    landscapes: list[str] | None = None

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "JournalEntry":
        return cls(
            id=data["id"],
            date=data["date"],
            content=data.get("content", ""),
            title=data.get("title"),
            symbol=data.get("symbol"),
            archived=bool(data.get("archived", False)),
            created_at=data.get("created_at", ""),
            updated_at=data.get("updated_at", ""),
            symbols=data.get("symbols"),
            archetypes=data.get("archetypes"),
            landscapes=data.get("landscapes"),
        )


@dataclass
class Interpretation:
    """An interpretation conversation attached to one journal entry."""

    id: str
    entry_id: str
    messages: list[ChatMessage] = field(default_factory=list)
    symbols: list[str] = field(default_factory=list)
    archetypes: list[str] = field(default_factory=list)
    landscapes: list[str] | None = None
    summary: str | None = None
    created_at: str = ""
    updated_at: str = ""
    content_at_creation: str | None = None

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "Interpretation":
        return cls(
            id=data["id"],
            entry_id=data["entry_id"],
            messages=[ChatMessage.from_dict(m) for m in data.get("messages") or []],
            symbols=list(data.get("symbols") or []),
            archetypes=list(data.get("archetypes") or []),
            landscapes=data.get("landscapes"),
            summary=data.get("summary"),
            created_at=data.get("created_at", ""),
            updated_at=data.get("updated_at", ""),
            content_at_creation=data.get("content_at_creation"),
        )

    def add_message(self, message: ChatMessage) -> None:
        """Append a message. Conversation order is append-only."""
        self.messages.append(message)


@dataclass
class Draft:
    """The single in-progress entry being composed."""

    date: str
    content: str
    last_saved: str
    title: str | None = None

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "Draft":
        return cls(
            date=data["date"],
            content=data.get("content", ""),
            last_saved=data.get("last_saved", ""),
            title=data.get("title"),
        )


Record = JournalEntry | Interpretation


class RecordKind(Enum):
    """The two synchronized record collections."""

    ENTRIES = "entries"
    INTERPRETATIONS = "interpretations"

    @property
    def storage_key(self) -> str:
        return f"@{self.value}"

    @property
    def outbox_key(self) -> str:
        return f"@unsynced_{self.value}"

    @property
    def record_type(self) -> type:
        if self is RecordKind.ENTRIES:
            return JournalEntry
        return Interpretation

    def from_dict(self, data: dict) -> Record:
        return self.record_type.from_dict(data)

    def sort(self, records: list) -> list:
        """Apply the kind's natural order. Entries are newest date first."""
        if self is RecordKind.ENTRIES:
            return sorted(records, key=lambda r: r.date, reverse=True)
        return list(records)


def kind_of(record: Record) -> RecordKind:
    """Return the collection a record belongs to."""
    if isinstance(record, JournalEntry):
        return RecordKind.ENTRIES
    if isinstance(record, Interpretation):
        return RecordKind.INTERPRETATIONS
    raise TypeError(f"Not a syncable record: {type(record).__name__}")
