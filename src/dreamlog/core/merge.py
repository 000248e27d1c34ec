"""Pure reconciliation logic - no I/O dependencies."""

from dataclasses import dataclass
from enum import Enum

from .records import Interpretation, JournalEntry, Record, RecordKind


class MergePolicy(Enum):
    """How a remote record replaces a local record with the same id."""

    REMOTE_WINS = "remote_wins"
    NEWEST_WINS = "newest_wins"

    @classmethod
    def parse(cls, value: str) -> "MergePolicy":
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise ValueError(f"Unknown merge policy: {value!r}") from None


@dataclass
class MergeResult:
    """Outcome of merging a remote snapshot into the local one."""

    records: list
    local_count: int
    remote_count: int
    new_from_remote: int
    kept_local: int = 0


def _remote_replaces(local: Record, remote: Record, policy: MergePolicy) -> bool:
    if policy is MergePolicy.REMOTE_WINS:
        return True
    # ISO-8601 timestamps in one zone compare correctly as strings.
    # Ties and missing timestamps go to the server copy.
    if not local.updated_at or not remote.updated_at:
        return True
    return remote.updated_at >= local.updated_at


def merge_by_id(
    kind: RecordKind,
    local: list,
    remote: list,
    policy: MergePolicy = MergePolicy.REMOTE_WINS,
) -> MergeResult:
    """
    Merge remote records into local ones, keyed by id.

    Local-only records are kept. On id collision the remote record replaces
    the local one verbatim (no field-level merge) unless the policy is
    NEWEST_WINS and the local copy carries a later updated_at.
    """
    merged: dict[str, Record] = {r.id: r for r in local}
    new_from_remote = 0
    kept_local = 0

    for record in remote:
        existing = merged.get(record.id)
        if existing is None:
            new_from_remote += 1
            merged[record.id] = record
        elif _remote_replaces(existing, record, policy):
            merged[record.id] = record
        else:
            kept_local += 1

    return MergeResult(
        records=kind.sort(list(merged.values())),
        local_count=len(local),
        remote_count=len(remote),
        new_from_remote=new_from_remote,
        kept_local=kept_local,
    )


def upsert(records: list, record: Record) -> list:
    """Replace the record with the same id, or append it."""
    out = list(records)
    for i, existing in enumerate(out):
        if existing.id == record.id:
            out[i] = record
            return out
    out.append(record)
    return out


def filter_by_date(entries: list[JournalEntry], target_date: str) -> list[JournalEntry]:
    """Entries written for one calendar date."""
    return [e for e in entries if e.date == target_date]


def search_entries(entries: list[JournalEntry], query: str) -> list[JournalEntry]:
    """Case-insensitive substring search over title and body."""
    needle = query.lower()
    return [
        e
        for e in entries
        if needle in e.content.lower() or (e.title and needle in e.title.lower())
    ]


def dates_with_entries(entries: list[JournalEntry]) -> list[str]:
    """Distinct entry dates, in first-seen order."""
    return list(dict.fromkeys(e.date for e in entries))


def needs_reinterpretation(entry: JournalEntry, interpretation: Interpretation) -> bool:
    """
    True when the entry was edited after the interpretation and its body no
    longer matches the snapshot taken at interpretation time.

    A title-only edit keeps the body equal and is not stale. A missing
    snapshot (e.g. an interpretation pulled from the server) counts as a
    different body.
    """
    if entry.updated_at <= interpretation.updated_at:
        return False
    return entry.content != interpretation.content_at_creation
