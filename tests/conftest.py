"""
Pytest configuration for Kisan Sync.

Provides fixtures for:
- In-memory Record Store, content providers and clock fakes for unit tests
- Database connection management and schema bootstrap for integration tests
- Settings override for integration tests
"""

from __future__ import annotations

import asyncio
import itertools
import os
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, Generator, List, Mapping, Optional, Sequence, Union

import psycopg
import pytest

from src.config import Settings
from src.content.cache import TTLCache
from src.content.generator import ContentGenerator
from src.domain.events import ChangeEvent, RowFilter
from src.domain.models import DomainRecord, schema_for
from src.errors import ProviderError, StoreError
from src.infrastructure.abstract import Order, StoreResult, SubscriptionStatus
from src.sync.reconcile import scope_event

SCHEMA_PATH = Path(__file__).parent.parent / "db" / "init.sql"
TABLES = (
    "community_comments",
    "community_posts",
    "recipes",
    "traditional_practices",
    "fertilizer_recommendations",
    "crop_recommendations",
    "market_prices",
    "weather_data",
)


# --------------------------------------------------------------------- fakes


class FakeSubscription:
    def __init__(self, store: "FakeRecordStore", table: str, on_event, row_filter, on_status) -> None:
        self.store = store
        self.table = table
        self.on_event = on_event
        self.row_filter = row_filter
        self.on_status = on_status
        self.status = SubscriptionStatus.CLOSED
        self.close_calls = 0

    def report(self, status: SubscriptionStatus, exc: Optional[BaseException] = None) -> None:
        self.status = status
        if self.on_status is not None:
            self.on_status(status, exc)

    def deliver(self, event: ChangeEvent) -> None:
        if self.status is not SubscriptionStatus.SUBSCRIBED:
            return
        scoped = scope_event(event, self.row_filter)
        if scoped is not None:
            self.on_event(scoped)

    async def close(self) -> None:
        self.close_calls += 1
        if self.status is SubscriptionStatus.CLOSED:
            return
        self.status = SubscriptionStatus.CLOSED
        if self in self.store.subscriptions:
            self.store.subscriptions.remove(self)


class FakeRecordStore:
    """
    In-memory Record Store.

    Rows are kept as plain dicts per table. `fail` injects a StoreError into
    the next call of a method; `select_gate` holds selects until it is set;
    `echo` publishes a change event for every successful mutation, the way
    the database trigger does.
    """

    def __init__(self, echo: bool = False) -> None:
        self.tables: Dict[str, List[dict]] = {}
        self.subscriptions: List[FakeSubscription] = []
        self.calls: List[tuple] = []
        self.echo = echo
        self.failures: Dict[str, StoreError] = {}
        self.subscribe_fails = False
        self.select_gate: Optional[asyncio.Event] = None
        self._ids = itertools.count(1)
        self._clock = datetime(2024, 1, 1, tzinfo=timezone.utc)

    # -- helpers

    def fail(self, method: str, message: str = "boom", code: Optional[str] = None) -> None:
        self.failures[method] = StoreError(message, code=code)

    def _take_failure(self, method: str) -> Optional[StoreError]:
        return self.failures.pop(method, None)

    def _tick(self) -> datetime:
        self._clock += timedelta(seconds=1)
        return self._clock

    def seed(self, table: str, **values: Any) -> DomainRecord:
        row = self._new_row(table, values)
        self.tables.setdefault(table, []).append(row)
        return schema_for(table).model_validate(row)

    def _new_row(self, table: str, values: Mapping[str, Any]) -> dict:
        row = dict(values)
        row.setdefault("id", f"row-{next(self._ids)}")
        row.setdefault("created_at", self._tick())
        schema_for(table).model_validate(row)
        return row

    def emit(self, table: str, event: ChangeEvent) -> None:
        for subscription in list(self.subscriptions):
            if subscription.table == table:
                subscription.deliver(event)

    @staticmethod
    def _to_values(record: Union[DomainRecord, Mapping[str, Any]]) -> dict:
        if isinstance(record, DomainRecord):
            record = record.model_dump()
        return {key: value for key, value in dict(record).items() if value is not None}

    @staticmethod
    def _matches(row: Mapping[str, Any], filters: Optional[Mapping[str, Any]]) -> bool:
        return all(str(row.get(key)) == str(value) for key, value in (filters or {}).items())

    def _record(self, table: str, row: Mapping[str, Any]) -> DomainRecord:
        return schema_for(table).model_validate(row)

    # -- RecordStore protocol

    async def select(
        self,
        table: str,
        filters: Optional[Mapping[str, Any]] = None,
        order: Optional[Order] = None,
        limit: Optional[int] = None,
    ) -> StoreResult:
        self.calls.append(("select", table, dict(filters or {})))
        if self.select_gate is not None:
            await self.select_gate.wait()
        error = self._take_failure("select")
        if error is not None:
            return StoreResult(error=error)
        order = order or Order()
        rows = [row for row in self.tables.get(table, []) if self._matches(row, filters)]
        rows.sort(key=lambda row: str(row.get(order.column) or ""), reverse=order.descending)
        if limit is not None:
            rows = rows[:limit]
        return StoreResult(data=[self._record(table, row) for row in rows])

    async def insert(self, table: str, record) -> StoreResult:
        self.calls.append(("insert", table))
        error = self._take_failure("insert")
        if error is not None:
            return StoreResult(error=error)
        row = self._new_row(table, self._to_values(record))
        self.tables.setdefault(table, []).append(row)
        created = self._record(table, row)
        if self.echo:
            self.emit(table, ChangeEvent.inserted(created))
        return StoreResult(data=[created])

    async def update(self, table: str, filters: Mapping[str, Any], patch: Mapping[str, Any]) -> StoreResult:
        self.calls.append(("update", table, dict(filters), dict(patch)))
        error = self._take_failure("update")
        if error is not None:
            return StoreResult(error=error)
        updated = []
        for row in self.tables.get(table, []):
            if self._matches(row, filters):
                old = dict(row)
                row.update(patch)
                record = self._record(table, row)
                updated.append(record)
                if self.echo:
                    self.emit(table, ChangeEvent.updated(record, old=old))
        return StoreResult(data=updated)

    async def delete(self, table: str, filters: Mapping[str, Any]) -> StoreResult:
        self.calls.append(("delete", table, dict(filters)))
        error = self._take_failure("delete")
        if error is not None:
            return StoreResult(error=error)
        kept, removed = [], []
        for row in self.tables.get(table, []):
            (removed if self._matches(row, filters) else kept).append(row)
        self.tables[table] = kept
        records = [self._record(table, row) for row in removed]
        if self.echo:
            for row, record in zip(removed, records):
                self.emit(table, ChangeEvent.deleted(record.id, old=row))
        return StoreResult(data=records)

    async def upsert(self, table: str, record, on_conflict: Sequence[str]) -> StoreResult:
        self.calls.append(("upsert", table, tuple(on_conflict)))
        error = self._take_failure("upsert")
        if error is not None:
            return StoreResult(error=error)
        values = self._to_values(record)
        values.pop("id", None)
        key = {column: values.get(column) for column in on_conflict}
        for row in self.tables.get(table, []):
            if self._matches(row, key):
                old = dict(row)
                row.update(values)
                updated = self._record(table, row)
                if self.echo:
                    self.emit(table, ChangeEvent.updated(updated, old=old))
                return StoreResult(data=[updated])
        row = self._new_row(table, values)
        self.tables.setdefault(table, []).append(row)
        created = self._record(table, row)
        if self.echo:
            self.emit(table, ChangeEvent.inserted(created))
        return StoreResult(data=[created])

    async def subscribe(
        self,
        table: str,
        on_event,
        row_filter: Optional[RowFilter] = None,
        on_status=None,
    ) -> FakeSubscription:
        self.calls.append(("subscribe", table, str(row_filter) if row_filter else None))
        subscription = FakeSubscription(self, table, on_event, row_filter, on_status)
        if self.subscribe_fails:
            subscription.report(SubscriptionStatus.CHANNEL_ERROR, StoreError("handshake refused", table=table))
            return subscription
        self.subscriptions.append(subscription)
        subscription.report(SubscriptionStatus.SUBSCRIBED)
        return subscription


class ScriptedProvider:
    """Content provider replaying canned replies; an exception reply is raised."""

    def __init__(self, name: str, *replies: Union[str, BaseException]) -> None:
        self.name = name
        self.replies = list(replies)
        self.calls: List[dict] = []

    async def complete(self, prompt, system=None, max_tokens=None, temperature=None) -> str:
        self.calls.append(
            {"prompt": prompt, "system": system, "max_tokens": max_tokens, "temperature": temperature}
        )
        if not self.replies:
            raise ProviderError(self.name, "no scripted reply left")
        reply = self.replies.pop(0)
        if isinstance(reply, BaseException):
            raise reply
        return reply


class ManualClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# ------------------------------------------------------------ unit fixtures


@pytest.fixture()
def store() -> FakeRecordStore:
    return FakeRecordStore()


@pytest.fixture()
def echo_store() -> FakeRecordStore:
    return FakeRecordStore(echo=True)


@pytest.fixture()
def make_provider():
    """Factory for scripted providers: `make_provider("openai", reply, error, ...)`."""
    return ScriptedProvider


@pytest.fixture()
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture()
def offline_generator(clock: ManualClock) -> ContentGenerator:
    """Generator with no providers: every request is served by static fallbacks."""
    return ContentGenerator([], cache=TTLCache(clock=clock))


# ----------------------------------------------------- integration fixtures


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """
    Settings fixture with test-specific overrides.

    Can be overridden via environment variables in CI or local testing.
    """
    return Settings(
        db_host=os.getenv("DB_HOST", "localhost"),
        db_port=int(os.getenv("DB_PORT", "5432")),
        db_user=os.getenv("DB_USER", "postgres"),
        db_password=os.getenv("DB_PASSWORD", "postgres"),
        db_name=os.getenv("DB_NAME", "kisan_sync"),
        log_level="DEBUG",
    )


@pytest.fixture(scope="session")
def test_dsn(test_settings: Settings) -> str:
    return (
        f"postgresql://{test_settings.db_user}:{test_settings.db_password}"
        f"@{test_settings.db_host}:{test_settings.db_port}/{test_settings.db_name}"
    )


@pytest.fixture(scope="session")
def db_connection_available(test_dsn: str) -> bool:
    """
    Check if database is reachable.

    Used to conditionally skip integration tests when DB is not available.
    """
    try:
        with psycopg.connect(test_dsn, connect_timeout=5) as conn:
            conn.execute("SELECT 1;").fetchone()
        return True
    except psycopg.Error:
        return False


@pytest.fixture(scope="session")
def db_connection(test_dsn: str, db_connection_available: bool) -> Generator[psycopg.Connection, None, None]:
    """
    Session-scoped connection for integration tests; skips when the database
    is not reachable.
    """
    if not db_connection_available:
        pytest.skip("Database not available for integration tests")

    conn = psycopg.connect(test_dsn)
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture(scope="session")
def db_schema_initialized(db_connection: psycopg.Connection) -> bool:
    """Apply db/init.sql (idempotent: tables, triggers and the notify function)."""
    db_connection.execute(SCHEMA_PATH.read_text(encoding="utf-8"))
    db_connection.commit()
    return True


@pytest.fixture(scope="function")
def clean_tables(db_connection: psycopg.Connection, db_schema_initialized: bool):
    """Truncate every table before and after the test."""

    def truncate() -> None:
        db_connection.execute(f"TRUNCATE TABLE {', '.join('public.' + t for t in TABLES)} CASCADE;")
        db_connection.commit()

    truncate()
    yield
    truncate()
