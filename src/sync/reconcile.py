"""
Pure list reconciliation for synchronized views.

Collections are tuples of DomainRecord ordered most-recent-first and keyed by
`id`: at most one entry per id. Every function returns a new tuple and never
mutates its input, which keeps re-applying an event a no-op in effect.
"""

from __future__ import annotations

from typing import Iterable, Optional, Tuple

from src.domain.events import ChangeEvent, ChangeType, RowFilter
from src.domain.models import DomainRecord

Rows = Tuple[DomainRecord, ...]


def dedupe_by_id(records: Iterable[DomainRecord]) -> Rows:
    """Keep the first occurrence of every id, preserving order."""
    seen = set()
    unique = []
    for record in records:
        if record.id in seen:
            continue
        seen.add(record.id)
        unique.append(record)
    return tuple(unique)


def replace_by_id(rows: Rows, record: DomainRecord) -> Rows:
    """Replace the entry whose id matches; unchanged when absent."""
    for index, row in enumerate(rows):
        if row.id == record.id:
            if row == record:
                return rows
            return rows[:index] + (record,) + rows[index + 1 :]
    return rows


def remove_by_id(rows: Rows, record_id: str) -> Rows:
    """Drop the entry whose id matches; unchanged when absent."""
    if not any(row.id == record_id for row in rows):
        return rows
    return tuple(row for row in rows if row.id != record_id)


def merge(rows: Rows, record: DomainRecord) -> Rows:
    """
    Replace in place when the id is present, otherwise prepend.

    Used for Inserted events and optimistic writes alike, so an optimistic
    insert followed by its echoed Inserted event leaves a single copy.
    """
    if any(row.id == record.id for row in rows):
        return replace_by_id(rows, record)
    return (record,) + rows


def scope_event(event: ChangeEvent, row_filter: Optional[RowFilter]) -> Optional[ChangeEvent]:
    """
    Restrict an event to a filtered view.

    Returns None for events outside the filter. An update whose new row left
    the filter while its old row matched, or was too trimmed to tell, becomes
    a delete so the row does not linger in the view with stale values.
    """
    if row_filter is None:
        return event
    if event.type is ChangeType.INSERTED:
        return event if row_filter.matches(event.record) else None
    if event.type is ChangeType.UPDATED:
        if row_filter.matches(event.record):
            return event
        if row_filter.may_match(event.old):
            return ChangeEvent.deleted(event.record.id, old=event.old)
        return None
    if row_filter.may_match(event.old):
        return event
    return None


def apply_change(rows: Rows, event: ChangeEvent, row_filter: Optional[RowFilter] = None) -> Rows:
    """Apply one change event to a collection."""
    scoped = scope_event(event, row_filter)
    if scoped is None:
        return rows
    if scoped.type is ChangeType.INSERTED:
        return merge(rows, scoped.record)
    if scoped.type is ChangeType.UPDATED:
        return replace_by_id(rows, scoped.record)
    return remove_by_id(rows, scoped.old_id)


__all__ = [
    "Rows",
    "dedupe_by_id",
    "replace_by_id",
    "remove_by_id",
    "merge",
    "scope_event",
    "apply_change",
]
