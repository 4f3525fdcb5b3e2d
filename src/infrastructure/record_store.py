"""
Postgres-backed Record Store for Kisan Sync.

Query surface:
- psycopg async connections from a psycopg_pool AsyncConnectionPool.
- Statements composed with `psycopg.sql` so table/column names are quoted
  identifiers; column names are checked against the table's record schema.
- Rows validated into the table's DomainRecord schema before they leave the
  store.

Change feed:
- One dedicated asyncpg connection per subscription, `LISTEN realtime_<table>`.
- The `notify_record_change` trigger in `db/init.sql` publishes
  `{"type", "new", "old"}` JSON payloads on that channel.

asyncpg is used for the feed because its `add_listener` callback API delivers
notifications on the running event loop without a polling task.
"""

from __future__ import annotations

from typing import Any, List, Mapping, Optional, Sequence, Tuple, Type

import asyncpg
import psycopg
from psycopg import sql
from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool
from pydantic import ValidationError

from src.config import get_settings
from src.domain.events import ChangeEvent, RowFilter
from src.domain.models import DomainRecord, schema_for
from src.errors import StoreError
from src.infrastructure.abstract import (
    EventCallback,
    Filters,
    Order,
    StatusCallback,
    StoreResult,
    SubscriptionStatus,
    Values,
)
from src.infrastructure.db_factory import open_listener_connection, statement_timeout_sql
from src.sync.reconcile import scope_event
from src.utils.logging import get_logger

log = get_logger(__name__)


def channel_for(table: str) -> str:
    """Notification channel carrying row changes for `table`."""
    return f"realtime_{table}"


def _check_columns(schema: Type[DomainRecord], table: str, columns: Sequence[str]) -> None:
    unknown = [column for column in columns if column not in schema.model_fields]
    if unknown:
        raise StoreError(f"Unknown column(s) for {table}: {', '.join(unknown)}", table=table)


def _values_to_row(schema: Type[DomainRecord], table: str, record: Values) -> dict:
    """Database row for an insert: drop unset values so defaults apply."""
    if isinstance(record, DomainRecord):
        row = record.to_row()
    else:
        row = dict(record)
    row = {key: value for key, value in row.items() if value is not None}
    _check_columns(schema, table, list(row))
    return row


def _where(filters: Filters) -> Tuple[sql.Composable, List[Any]]:
    if not filters:
        return sql.SQL(""), []
    clauses = [sql.SQL("{} = %s").format(sql.Identifier(column)) for column in filters]
    return sql.SQL(" WHERE ") + sql.SQL(" AND ").join(clauses), list(filters.values())


class PostgresRecordStore:
    """
    RecordStore implementation over Postgres.

    Parameters
    ----------
    pool : AsyncConnectionPool
        Opened pool used for queries and mutations.
    listen_dsn : str, optional
        DSN for the change-feed connections (defaults to settings).
    statement_timeout_ms : int, optional
        Per-statement timeout (defaults to settings; 0 disables).
    """

    def __init__(
        self,
        pool: AsyncConnectionPool,
        listen_dsn: Optional[str] = None,
        statement_timeout_ms: Optional[int] = None,
    ) -> None:
        self._pool = pool
        self._listen_dsn = listen_dsn
        if statement_timeout_ms is None:
            statement_timeout_ms = get_settings().db_statement_timeout_ms
        self._timeout_sql = statement_timeout_sql(statement_timeout_ms)

    async def _run(self, table: str, query: sql.Composable, params: Sequence[Any]) -> StoreResult:
        try:
            schema = schema_for(table)
            async with self._pool.connection() as conn:
                async with conn.cursor(row_factory=dict_row) as cur:
                    if self._timeout_sql is not None:
                        await cur.execute(self._timeout_sql)
                    await cur.execute(query, params)
                    rows = await cur.fetchall() if cur.description else []
            return StoreResult(data=[schema.model_validate(row) for row in rows])
        except StoreError as exc:
            log.warning("Store request rejected", extra={"table": table, "error": str(exc)})
            return StoreResult(error=exc)
        except (psycopg.Error, ValidationError) as exc:
            log.warning("Store request failed", extra={"table": table, "error": str(exc)})
            code = getattr(exc, "sqlstate", None)
            return StoreResult(error=StoreError(str(exc), table=table, code=code))

    async def select(
        self,
        table: str,
        filters: Filters = None,
        order: Optional[Order] = None,
        limit: Optional[int] = None,
    ) -> StoreResult:
        try:
            schema = schema_for(table)
            _check_columns(schema, table, list(filters or {}) + ([order.column] if order else []))
        except StoreError as exc:
            return StoreResult(error=exc)

        where, params = _where(filters)
        query = sql.SQL("SELECT * FROM {}").format(sql.Identifier(table)) + where
        if order is not None:
            direction = sql.SQL("DESC") if order.descending else sql.SQL("ASC")
            query += sql.SQL(" ORDER BY {} {}").format(sql.Identifier(order.column), direction)
        if limit is not None:
            query += sql.SQL(" LIMIT %s")
            params.append(int(limit))
        return await self._run(table, query, params)

    async def insert(self, table: str, record: Values) -> StoreResult:
        try:
            row = _values_to_row(schema_for(table), table, record)
        except StoreError as exc:
            return StoreResult(error=exc)
        query = sql.SQL("INSERT INTO {} ({}) VALUES ({}) RETURNING *").format(
            sql.Identifier(table),
            sql.SQL(", ").join(map(sql.Identifier, row)),
            sql.SQL(", ").join(sql.Placeholder() * len(row)),
        )
        return await self._run(table, query, list(row.values()))

    async def update(self, table: str, filters: Mapping[str, Any], patch: Mapping[str, Any]) -> StoreResult:
        try:
            if not filters:
                raise StoreError("Refusing to update without filters", table=table)
            if not patch:
                raise StoreError("Empty update patch", table=table)
            _check_columns(schema_for(table), table, list(filters) + list(patch))
        except StoreError as exc:
            return StoreResult(error=exc)
        assignments = sql.SQL(", ").join(
            sql.SQL("{} = %s").format(sql.Identifier(column)) for column in patch
        )
        where, params = _where(filters)
        query = (
            sql.SQL("UPDATE {} SET ").format(sql.Identifier(table))
            + assignments
            + where
            + sql.SQL(" RETURNING *")
        )
        return await self._run(table, query, list(patch.values()) + params)

    async def delete(self, table: str, filters: Mapping[str, Any]) -> StoreResult:
        try:
            if not filters:
                raise StoreError("Refusing to delete without filters", table=table)
            _check_columns(schema_for(table), table, list(filters))
        except StoreError as exc:
            return StoreResult(error=exc)
        where, params = _where(filters)
        query = sql.SQL("DELETE FROM {}").format(sql.Identifier(table)) + where + sql.SQL(" RETURNING *")
        return await self._run(table, query, params)

    async def upsert(self, table: str, record: Values, on_conflict: Sequence[str]) -> StoreResult:
        try:
            schema = schema_for(table)
            row = _values_to_row(schema, table, record)
            row.pop("id", None)
            _check_columns(schema, table, list(on_conflict))
        except StoreError as exc:
            return StoreResult(error=exc)
        updates = [column for column in row if column not in on_conflict]
        query = sql.SQL("INSERT INTO {} ({}) VALUES ({}) ON CONFLICT ({}) ").format(
            sql.Identifier(table),
            sql.SQL(", ").join(map(sql.Identifier, row)),
            sql.SQL(", ").join(sql.Placeholder() * len(row)),
            sql.SQL(", ").join(map(sql.Identifier, on_conflict)),
        )
        if updates:
            query += sql.SQL("DO UPDATE SET ") + sql.SQL(", ").join(
                sql.SQL("{0} = EXCLUDED.{0}").format(sql.Identifier(column)) for column in updates
            )
        else:
            query += sql.SQL("DO NOTHING")
        query += sql.SQL(" RETURNING *")
        return await self._run(table, query, list(row.values()))

    async def subscribe(
        self,
        table: str,
        on_event: EventCallback,
        row_filter: Optional[RowFilter] = None,
        on_status: Optional[StatusCallback] = None,
    ) -> "PostgresSubscription":
        subscription = PostgresSubscription(table, on_event, row_filter=row_filter, on_status=on_status)
        await subscription.open(self._listen_dsn)
        return subscription


class PostgresSubscription:
    """
    LISTEN/NOTIFY change feed for one table.

    Delivery order is the order Postgres emits notifications on the channel.
    Events outside `row_filter` are dropped before `on_event` is called.
    """

    def __init__(
        self,
        table: str,
        on_event: EventCallback,
        row_filter: Optional[RowFilter] = None,
        on_status: Optional[StatusCallback] = None,
    ) -> None:
        self.table = table
        self.channel = channel_for(table)
        self.row_filter = row_filter
        self.status = SubscriptionStatus.CLOSED
        self._on_event = on_event
        self._on_status = on_status
        self._conn: Optional[asyncpg.Connection] = None

    def _set_status(self, status: SubscriptionStatus, exc: Optional[BaseException] = None) -> None:
        self.status = status
        if self._on_status is not None:
            self._on_status(status, exc)

    async def open(self, dsn: Optional[str] = None) -> None:
        """Connect and LISTEN. Failures are reported through the status callback."""
        try:
            schema_for(self.table)
            self._conn = await open_listener_connection(dsn)
            self._conn.add_termination_listener(self._on_terminated)
            await self._conn.add_listener(self.channel, self._on_notify)
        except (StoreError, OSError, asyncpg.PostgresError, asyncpg.InterfaceError) as exc:
            log.warning(
                "Change feed handshake failed; view continues without realtime updates",
                extra={"table": self.table, "channel": self.channel, "error": str(exc)},
            )
            await self._release()
            self._set_status(SubscriptionStatus.CHANNEL_ERROR, exc)
            return
        log.info("Change feed subscribed", extra={"table": self.table, "channel": self.channel})
        self._set_status(SubscriptionStatus.SUBSCRIBED)

    def _on_notify(self, connection: Any, pid: int, channel: str, payload: str) -> None:
        del connection, pid
        try:
            event = ChangeEvent.from_payload(self.table, payload)
        except (ValueError, ValidationError, StoreError) as exc:
            log.warning(
                "Dropping undecodable change payload",
                extra={"table": self.table, "channel": channel, "error": str(exc)},
            )
            return
        scoped = scope_event(event, self.row_filter)
        if scoped is not None:
            self._on_event(scoped)

    def _on_terminated(self, connection: Any) -> None:
        del connection
        if self.status is SubscriptionStatus.SUBSCRIBED:
            log.warning("Change feed connection lost", extra={"table": self.table})
            self._conn = None
            self._set_status(SubscriptionStatus.CLOSED)

    async def _release(self) -> None:
        conn, self._conn = self._conn, None
        if conn is None or conn.is_closed():
            return
        try:
            await conn.remove_listener(self.channel, self._on_notify)
        except (asyncpg.PostgresError, asyncpg.InterfaceError) as exc:
            log.debug("UNLISTEN failed during release", extra={"table": self.table, "error": str(exc)})
        finally:
            await conn.close()

    async def close(self) -> None:
        """Release the feed. Idempotent."""
        was_open = self.status is SubscriptionStatus.SUBSCRIBED
        await self._release()
        if was_open:
            self._set_status(SubscriptionStatus.CLOSED)
            log.info("Change feed closed", extra={"table": self.table})


async def create_record_store(dsn: Optional[str] = None) -> PostgresRecordStore:
    """Store bound to the process-wide pool (see PoolManager)."""
    from src.infrastructure.db_factory import get_async_pool

    pool = await get_async_pool(dsn=dsn)
    return PostgresRecordStore(pool, listen_dsn=dsn)


__all__ = ["PostgresRecordStore", "PostgresSubscription", "channel_for", "create_record_store"]
