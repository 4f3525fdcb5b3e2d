"""
Optimistic mutation path.

Mutations go straight to the Record Store; the canonical row it returns is
merged into the view immediately instead of waiting for the change-feed echo.
The echo is idempotent against the merged state because reconciliation keys
on id. A failed mutation leaves the view untouched and raises MutationError.

Concurrent writers are not coordinated: the Record Store's last write wins.
"""

from __future__ import annotations

from typing import Any, Mapping, Sequence

from src.domain.events import ChangeEvent
from src.domain.models import DomainRecord
from src.errors import MutationError
from src.infrastructure.abstract import RecordStore, StoreResult, Values
from src.sync.view_state import SynchronizedViewState
from src.utils.logging import get_logger

log = get_logger(__name__)


class OptimisticMutator:
    def __init__(self, store: RecordStore, view: SynchronizedViewState) -> None:
        self.store = store
        self.view = view

    @property
    def table(self) -> str:
        return self.view.table

    def _canonical(self, result: StoreResult, action: str) -> DomainRecord:
        if result.error is not None:
            log.warning(
                "Mutation failed",
                extra={"table": self.table, "action": action, "error": str(result.error)},
            )
            raise MutationError(f"{action} on {self.table} failed: {result.error}") from result.error
        if not result.data:
            log.warning("Mutation returned no row", extra={"table": self.table, "action": action})
            raise MutationError(f"{action} on {self.table} returned no row")
        return result.data[0]

    async def insert(self, values: Values) -> DomainRecord:
        record = self._canonical(await self.store.insert(self.table, values), "insert")
        self.view.merge(record)
        return record

    async def update(self, record_id: str, patch: Mapping[str, Any]) -> DomainRecord:
        result = await self.store.update(self.table, {"id": record_id}, patch)
        record = self._canonical(result, "update")
        self.view.merge(record)
        return record

    async def increment(self, record_id: str, field: str, by: int = 1) -> DomainRecord:
        """
        Write `current + by` where `current` is the value the view holds.

        Read-modify-write from the local copy: a concurrent increment by
        another client can be lost.
        """
        current = self.view.get(record_id)
        if current is None:
            raise MutationError(f"{self.table} row {record_id} is not in the view")
        value = getattr(current, field, None)
        if not isinstance(value, int) or isinstance(value, bool):
            raise MutationError(f"{self.table}.{field} is not an integer counter")
        return await self.update(record_id, {field: value + by})

    async def upsert(self, values: Values, on_conflict: Sequence[str]) -> DomainRecord:
        result = await self.store.upsert(self.table, values, on_conflict)
        record = self._canonical(result, "upsert")
        self.view.merge(record)
        return record

    async def delete(self, record_id: str) -> DomainRecord:
        result = await self.store.delete(self.table, {"id": record_id})
        record = self._canonical(result, "delete")
        self.view.apply(ChangeEvent.deleted(record.id))
        return record


__all__ = ["OptimisticMutator"]
