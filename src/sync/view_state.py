"""
Synchronized View State: a local, render-ready copy of one table's rows.

One bulk select (newest first) followed by an indefinite change feed keeps the
in-memory collection converged with the Record Store without re-fetching.
Each instance is owned by exactly one screen and lives on one event loop; no
locking is done.

Lifecycle:
    view = SynchronizedViewState(store, "community_posts")
    async with view.mounted(query_params={"topic": "Crops"}):
        ...  # view.rows stays current until the block exits
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Callable, Iterable, List, Mapping, Optional, Tuple

from src.domain.events import ChangeEvent, RowFilter
from src.domain.models import DomainRecord, schema_for
from src.errors import StoreError
from src.infrastructure.abstract import Order, RecordStore, Subscription, SubscriptionStatus
from src.sync.reconcile import Rows, apply_change, dedupe_by_id, merge
from src.utils.logging import get_logger

log = get_logger(__name__)

ChangeListener = Callable[["SynchronizedViewState"], None]
Identity = Tuple[Tuple[str, str], ...]


def query_identity(query_params: Optional[Mapping[str, Any]]) -> Identity:
    """Order-independent identity of a set of query parameters; blanks are ignored."""
    if not query_params:
        return ()
    return tuple(sorted((str(k), str(v)) for k, v in query_params.items() if v not in (None, "")))


class SynchronizedViewState:
    """
    In-memory cache plus change subscription for one table.

    The collection holds at most one record per id, most recent first.
    Bulk-load failures are recorded in `error` and never retried here; a
    failed or dropped change feed leaves the collection frozen until the
    next manual reload.
    """

    def __init__(self, store: RecordStore, table: str, order: Optional[Order] = None) -> None:
        schema_for(table)
        self.store = store
        self.table = table
        self.order = order or Order()

        self._rows: Rows = ()
        self._is_loading = False
        self._error: Optional[StoreError] = None
        self._status = SubscriptionStatus.CLOSED
        self._version = 0

        self._identity: Optional[Identity] = None
        self._generation = 0
        self._mounted = True
        self._subscription: Optional[Subscription] = None
        self._row_filter: Optional[RowFilter] = None
        self._listeners: List[ChangeListener] = []

    # ------------------------------------------------------------------ state

    @property
    def rows(self) -> Rows:
        return self._rows

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    @property
    def error(self) -> Optional[StoreError]:
        return self._error

    @property
    def status(self) -> SubscriptionStatus:
        return self._status

    @property
    def version(self) -> int:
        """Incremented on every collection change."""
        return self._version

    @property
    def is_mounted(self) -> bool:
        return self._mounted

    @property
    def row_filter(self) -> Optional[RowFilter]:
        return self._row_filter

    def get(self, record_id: str) -> Optional[DomainRecord]:
        for row in self._rows:
            if row.id == record_id:
                return row
        return None

    def on_change(self, listener: ChangeListener) -> Callable[[], None]:
        """Register a callback run after every collection change; returns its remover."""
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def _commit(self, rows: Rows) -> None:
        if rows is self._rows:
            return
        self._rows = rows
        self._version += 1
        for listener in list(self._listeners):
            listener(self)

    # -------------------------------------------------------------- bulk load

    async def initialize(self, query_params: Optional[Mapping[str, Any]] = None, force: bool = False) -> bool:
        """
        Bulk-load the table, newest first, filtered by equality on `query_params`.

        Runs once per query identity; repeating the same identity is a no-op
        unless `force` is set (manual refresh). Returns True when a load was
        applied. A response that arrives after teardown, or after a newer load
        started, is discarded.
        """
        if not self._mounted:
            return False
        identity = query_identity(query_params)
        if identity == self._identity and not force:
            return False
        identity_changed = identity != self._identity

        self._identity = identity
        self._generation += 1
        generation = self._generation
        self._is_loading = True

        result = await self.store.select(self.table, filters=dict(identity), order=self.order)

        if generation != self._generation or not self._mounted:
            log.debug(
                "Discarding stale bulk load",
                extra={"table": self.table, "query": dict(identity)},
            )
            return False

        self._is_loading = False
        if result.error is not None:
            self._error = result.error
            log.warning(
                "Bulk load failed",
                extra={"table": self.table, "query": dict(identity), "error": str(result.error)},
            )
            if identity_changed:
                self._commit(())
            return True

        self._error = None
        self._commit(dedupe_by_id(result.data))
        log.debug("Bulk load applied", extra={"table": self.table, "rows": len(self._rows)})
        return True

    # ------------------------------------------------------------ change feed

    async def subscribe(self, row_filter: Optional[RowFilter] = None) -> None:
        """
        Open the change feed, optionally restricted to `row_filter`.

        A second call while a feed is open is a no-op. Handshake failures are
        logged and leave the view non-realtime.
        """
        if not self._mounted or self._status is SubscriptionStatus.SUBSCRIBED:
            return
        self._row_filter = row_filter
        subscription = await self.store.subscribe(
            self.table, self.apply, row_filter=row_filter, on_status=self._on_status
        )
        if not self._mounted:
            await subscription.close()
            return
        self._subscription = subscription

    async def unsubscribe(self) -> None:
        """Close the current feed without unmounting (e.g. before changing filter)."""
        subscription, self._subscription = self._subscription, None
        if subscription is not None:
            await subscription.close()
        self._status = SubscriptionStatus.CLOSED

    def _on_status(self, status: SubscriptionStatus, exc: Optional[BaseException]) -> None:
        self._status = status
        if not self._mounted:
            return
        if status is SubscriptionStatus.CHANNEL_ERROR:
            log.warning(
                "Realtime updates unavailable",
                extra={"table": self.table, "error": str(exc) if exc else None},
            )
        elif status is SubscriptionStatus.CLOSED and self._subscription is not None:
            log.warning("Realtime updates stopped", extra={"table": self.table})

    def apply(self, event: ChangeEvent) -> None:
        """Apply one change event to the collection (feed callback)."""
        if not self._mounted:
            return
        self._commit(apply_change(self._rows, event, self._row_filter))

    # --------------------------------------------------------- local changes

    def merge(self, record: DomainRecord) -> None:
        """Optimistic merge: replace in place when present, else prepend."""
        if self._mounted:
            self._commit(merge(self._rows, record))

    def replace_all(self, records: Iterable[DomainRecord]) -> None:
        if self._mounted:
            self._commit(dedupe_by_id(records))

    # ------------------------------------------------------------- lifecycle

    async def teardown(self) -> None:
        """Unmount and release the change feed. Later calls are no-ops."""
        if not self._mounted:
            return
        self._mounted = False
        self._generation += 1
        self._is_loading = False
        await self.unsubscribe()
        log.debug("View torn down", extra={"table": self.table})

    @asynccontextmanager
    async def mounted(
        self,
        query_params: Optional[Mapping[str, Any]] = None,
        row_filter: Optional[RowFilter] = None,
    ) -> AsyncIterator["SynchronizedViewState"]:
        """Initialize and subscribe on enter; teardown on every exit path."""
        try:
            await self.initialize(query_params)
            await self.subscribe(row_filter)
            yield self
        finally:
            await self.teardown()


__all__ = ["SynchronizedViewState", "ChangeListener", "query_identity"]
