"""Functional core - record types and merge logic with no I/O."""

from .records import (
    ChatMessage,
    Draft,
    Interpretation,
    JournalEntry,
    Record,
    RecordKind,
    kind_of,
    utc_now,
)
from .merge import (
    MergePolicy,
    MergeResult,
    merge_by_id,
    upsert,
    filter_by_date,
    search_entries,
    dates_with_entries,
    needs_reinterpretation,
)

__all__ = [
    # Records
    "ChatMessage",
    "Draft",
    "Interpretation",
    "JournalEntry",
    "Record",
    "RecordKind",
    "kind_of",
    "utc_now",
    # Merge
    "MergePolicy",
    "MergeResult",
    "merge_by_id",
    "upsert",
    "filter_by_date",
    "search_entries",
    "dates_with_entries",
    "needs_reinterpretation",
]
