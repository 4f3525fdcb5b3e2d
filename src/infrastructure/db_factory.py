"""
Database connection factory utilities for Kisan Sync.

Provides centralized management of the async psycopg pool that backs the
Record Store query surface, the dedicated asyncpg connections that carry the
change feed, and a plain sync connection for schema/seed scripts.

Includes retry logic for transient connection failures using tenacity. The
retry applies to connection establishment in scripts only; views never retry
a failed bulk load.
"""

from __future__ import annotations

import asyncio
from typing import Optional

import asyncpg
import psycopg
from psycopg import sql
from psycopg_pool import AsyncConnectionPool
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from src.config import get_settings
from src.utils.logging import get_logger

log = get_logger(__name__)


def build_dsn() -> str:
    """Compose a DSN string from settings."""
    settings = get_settings()
    return (
        f"postgresql://{settings.db_user}:{settings.db_password}"
        f"@{settings.db_host}:{settings.db_port}/{settings.db_name}"
    )


class PoolManager:
    """
    Per-process singleton owning the async connection pool.

    The pool is opened lazily on first use and must be closed explicitly with
    `close_all()` (coroutines cannot run from an atexit hook).
    """

    _instance: Optional["PoolManager"] = None

    def __new__(cls) -> "PoolManager":
        """Create or return the singleton instance."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._async_pool = None
            cls._instance._lock = asyncio.Lock()
        return cls._instance

    async def get_async_pool(
        self,
        min_size: Optional[int] = None,
        max_size: Optional[int] = None,
        dsn: Optional[str] = None,
    ) -> AsyncConnectionPool:
        """
        Get or create the asynchronous connection pool.

        Parameters
        ----------
        min_size : int, optional
            Minimum number of idle connections to keep (defaults from settings).
        max_size : int, optional
            Maximum total connections in the pool (defaults from settings).
        dsn : str, optional
            DSN override, mainly for tests.

        Returns
        -------
        AsyncConnectionPool
            The managed, opened pool instance.
        """
        async with self._lock:
            if self._async_pool is None:
                settings = get_settings()
                pool = AsyncConnectionPool(
                    conninfo=dsn or build_dsn(),
                    min_size=min_size or settings.db_pool_min_size,
                    max_size=max_size or settings.db_pool_max_size,
                    open=False,
                )
                await pool.open()
                self._async_pool = pool
                log.info("Async pool opened", extra={"min_size": pool.min_size, "max_size": pool.max_size})
            return self._async_pool

    async def close_all(self) -> None:
        """Close the managed pool and release its connections."""
        async with self._lock:
            if self._async_pool is not None:
                try:
                    await self._async_pool.close()
                finally:
                    self._async_pool = None
                    log.info("Async pool closed")


def statement_timeout_sql(timeout_ms: int) -> Optional[sql.Composed]:
    """
    `SET LOCAL statement_timeout` statement, or None when the timeout is
    disabled (0). Scoped to the current transaction so pooled connections are
    returned without session state.
    """
    if timeout_ms <= 0:
        return None
    return sql.SQL("SET LOCAL statement_timeout = {}").format(sql.Literal(int(timeout_ms)))


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type((psycopg.OperationalError, psycopg.InterfaceError)),
    reraise=True,
)
def get_sync_connection(dsn: Optional[str] = None) -> psycopg.Connection:
    """
    Acquire a dedicated synchronous connection with automatic retry.

    Retries up to 3 times with exponential backoff for transient connection errors.
    Used by the schema/seed scripts.

    Raises
    ------
    psycopg.OperationalError
        If connection fails after all retry attempts.
    """
    return psycopg.connect(dsn or build_dsn())


async def get_async_pool(dsn: Optional[str] = None) -> AsyncConnectionPool:
    """Get or create the async pool via PoolManager."""
    return await PoolManager().get_async_pool(dsn=dsn)


async def open_listener_connection(dsn: Optional[str] = None) -> asyncpg.Connection:
    """
    Open a dedicated asyncpg connection for LISTEN/NOTIFY.

    No retry: a failed change-feed handshake degrades the view to
    non-realtime, it is reported by the caller and never retried here.
    """
    return await asyncpg.connect(dsn or build_dsn())


__all__ = [
    "PoolManager",
    "statement_timeout_sql",
    "build_dsn",
    "get_sync_connection",
    "get_async_pool",
    "open_listener_connection",
]
