"""
Record Store interfaces and result contracts for Kisan Sync.

The Record Store is the hosted relational database: ordered select, insert,
update, delete, and a change-notification feed per table. Concrete stores
implement the RecordStore protocol; query methods report failures through
StoreResult.error instead of raising so callers decide how to surface them.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import (
    Any,
    Callable,
    List,
    Mapping,
    Optional,
    Protocol,
    Sequence,
    Union,
    runtime_checkable,
)

from src.domain.events import ChangeEvent, RowFilter
from src.domain.models import DomainRecord
from src.errors import StoreError


class SubscriptionStatus(str, enum.Enum):
    SUBSCRIBED = "SUBSCRIBED"
    CHANNEL_ERROR = "CHANNEL_ERROR"
    CLOSED = "CLOSED"


@dataclass(frozen=True)
class Order:
    column: str = "created_at"
    descending: bool = True


@dataclass(frozen=True)
class StoreResult:
    """
    `{data, error}` pair returned by every query and mutation.

    `data` is empty on error; an empty `data` with no error is a valid,
    distinct result (the table simply has no matching rows).
    """

    data: List[DomainRecord] = field(default_factory=list)
    error: Optional[StoreError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def first(self) -> Optional[DomainRecord]:
        return self.data[0] if self.data else None


Filters = Optional[Mapping[str, Any]]
Values = Union[DomainRecord, Mapping[str, Any]]
EventCallback = Callable[[ChangeEvent], None]
StatusCallback = Callable[[SubscriptionStatus, Optional[BaseException]], None]


@runtime_checkable
class Subscription(Protocol):
    """Handle on an open change feed. `close` is idempotent."""

    table: str
    status: SubscriptionStatus

    async def close(self) -> None:
        ...


@runtime_checkable
class RecordStore(Protocol):
    """
    Query, mutation and change-notification primitives for named tables.
    """

    async def select(
        self,
        table: str,
        filters: Filters = None,
        order: Optional[Order] = None,
        limit: Optional[int] = None,
    ) -> StoreResult:
        ...

    async def insert(self, table: str, record: Values) -> StoreResult:
        ...

    async def update(self, table: str, filters: Mapping[str, Any], patch: Mapping[str, Any]) -> StoreResult:
        ...

    async def delete(self, table: str, filters: Mapping[str, Any]) -> StoreResult:
        ...

    async def upsert(self, table: str, record: Values, on_conflict: Sequence[str]) -> StoreResult:
        """Insert, or update the row that collides on the `on_conflict` columns."""
        ...

    async def subscribe(
        self,
        table: str,
        on_event: EventCallback,
        row_filter: Optional[RowFilter] = None,
        on_status: Optional[StatusCallback] = None,
    ) -> Subscription:
        """
        Open a change feed for `table`. Never raises: a failed handshake is
        reported through `on_status` and yields a closed subscription.
        """
        ...


__all__ = [
    "SubscriptionStatus",
    "Order",
    "StoreResult",
    "Filters",
    "Values",
    "EventCallback",
    "StatusCallback",
    "Subscription",
    "RecordStore",
]
