"""
Parameterized Domain Screen.

A screen pairs one SynchronizedViewState with one OptimisticMutator for its
table, turns failures into user-facing notices, and swaps in fallback content
while the table is empty. Fallback rows are a full substitute for live rows,
never merged with them, and are dropped as soon as any live row appears.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, ClassVar, Iterable, List, Mapping, Optional, Sequence, Tuple

from src.content.generator import ContentGenerator, ContentRequest
from src.domain.events import RowFilter
from src.domain.models import DomainRecord
from src.errors import MutationError
from src.infrastructure.abstract import Order, RecordStore
from src.sync.optimistic import OptimisticMutator
from src.sync.reconcile import Rows, dedupe_by_id
from src.sync.view_state import Identity, SynchronizedViewState, query_identity
from src.utils.logging import get_logger

log = get_logger(__name__)

DEFAULT = "default"
DESTRUCTIVE = "destructive"


@dataclass(frozen=True)
class Notice:
    """Dismissible user-facing message."""

    title: str
    description: str = ""
    variant: str = DEFAULT


class DomainScreen:
    table: ClassVar[str] = ""
    order: ClassVar[Optional[Order]] = None
    search_fields: ClassVar[Tuple[str, ...]] = ("title",)
    load_error_title: ClassVar[str] = "Error loading data"
    load_error_description: ClassVar[str] = "Could not load data. Please try again later."

    def __init__(
        self,
        store: RecordStore,
        generator: Optional[ContentGenerator] = None,
        table: Optional[str] = None,
    ) -> None:
        self.store = store
        self.table = table or self.table
        self.generator = generator or ContentGenerator([])
        self.view = SynchronizedViewState(store, self.table, order=self.order)
        self.mutator = OptimisticMutator(store, self.view)
        self.notices: List[Notice] = []
        self.query_params: Mapping[str, Any] = {}
        self.row_filter: Optional[RowFilter] = None
        self.fallback_loads = 0

        self._fallback_rows: Rows = ()
        self._fallback_identity: Optional[Identity] = None
        self.view.on_change(self._on_view_change)

    # --------------------------------------------------------------- notices

    def notify(self, title: str, description: str = "", variant: str = DEFAULT) -> Notice:
        notice = Notice(title, description, variant)
        self.notices.append(notice)
        return notice

    def dismiss(self, notice: Notice) -> None:
        if notice in self.notices:
            self.notices.remove(notice)

    # ------------------------------------------------------------------ rows

    @property
    def display_rows(self) -> Rows:
        """Live rows when there are any, else fallback rows."""
        return self.view.rows or self._fallback_rows

    @property
    def showing_fallback(self) -> bool:
        return not self.view.rows and bool(self._fallback_rows)

    @property
    def is_loading(self) -> bool:
        return self.view.is_loading

    def search(self, term: str, fields: Optional[Sequence[str]] = None) -> Rows:
        """Case-insensitive substring match on any of `fields`."""
        needle = (term or "").strip().lower()
        if not needle:
            return self.display_rows
        fields = fields or self.search_fields
        return tuple(row for row in self.display_rows if _contains(row, fields, needle))

    def _on_view_change(self, view: SynchronizedViewState) -> None:
        if view.rows and self._fallback_rows:
            log.debug("Live rows arrived, dropping fallback", extra={"table": self.table})
            self._fallback_rows = ()

    # ------------------------------------------------------------- lifecycle

    async def open(
        self,
        query_params: Optional[Mapping[str, Any]] = None,
        row_filter: Optional[RowFilter] = None,
    ) -> None:
        """Load, subscribe, then fall back if the table came back empty."""
        self.query_params = dict(query_params or {})
        self.row_filter = row_filter
        if await self.view.initialize(self.query_params):
            self._report_load()
        await self.view.subscribe(row_filter)
        await self._maybe_fallback()

    async def reload(
        self,
        query_params: Optional[Mapping[str, Any]] = None,
        row_filter: Optional[RowFilter] = None,
    ) -> None:
        """Switch to new query parameters (and feed filter) on an open screen."""
        if row_filter != self.row_filter:
            await self.view.unsubscribe()
        if query_identity(query_params) != query_identity(self.query_params):
            self._fallback_rows = ()
        await self.open(query_params, row_filter)

    async def refresh(self) -> None:
        """Manual retry: reload the current query and reopen a dropped feed."""
        if await self.view.initialize(self.query_params, force=True):
            self._report_load()
        await self.view.subscribe(self.row_filter)
        await self._maybe_fallback()

    async def close(self) -> None:
        await self.view.teardown()

    def _report_load(self) -> None:
        if self.view.error is not None:
            self.notify(self.load_error_title, self.load_error_description, DESTRUCTIVE)

    # -------------------------------------------------------------- fallback

    def fallback_request(self) -> Optional[ContentRequest]:
        """Generator request used when the table is empty; None for no fallback."""
        return None

    async def load_fallback(self) -> Iterable[DomainRecord]:
        request = self.fallback_request()
        if request is None:
            return ()
        return await self.generator.generate_many(request)

    async def _maybe_fallback(self) -> None:
        identity = query_identity(self.query_params)
        if self.view.rows or self.view.is_loading or not self.view.is_mounted:
            return
        if self._fallback_identity == identity:
            return
        self._fallback_identity = identity
        self.fallback_loads += 1
        records = dedupe_by_id(await self.load_fallback())
        if not self.view.rows:
            self._fallback_rows = records

    # ------------------------------------------------------------- mutations

    async def _mutate(self, action: Awaitable[DomainRecord], title: str, description: str) -> Optional[DomainRecord]:
        try:
            return await action
        except MutationError as exc:
            log.warning("Screen mutation failed", extra={"table": self.table, "error": str(exc)})
            self.notify(title, description, DESTRUCTIVE)
            return None


def _contains(row: DomainRecord, fields: Sequence[str], needle: str) -> bool:
    for field in fields:
        value = getattr(row, field, None)
        if value is not None and needle in str(value).lower():
            return True
    return False


__all__ = ["DomainScreen", "Notice", "DEFAULT", "DESTRUCTIVE"]
