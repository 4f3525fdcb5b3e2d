"""
Infrastructure package for Kisan Sync.

Centralizes Record Store connectivity (pool management, the Postgres store
and its LISTEN/NOTIFY change feed). Keep this layer focused on I/O and
resource management, decoupled from view and screen logic.
"""

from src.infrastructure.abstract import (
    Order,
    RecordStore,
    StoreResult,
    Subscription,
    SubscriptionStatus,
)
from src.infrastructure.db_factory import (
    PoolManager,
    get_async_pool,
    get_sync_connection,
)
from src.infrastructure.record_store import (
    PostgresRecordStore,
    PostgresSubscription,
    create_record_store,
)

__all__ = [
    "Order",
    "RecordStore",
    "StoreResult",
    "Subscription",
    "SubscriptionStatus",
    "PoolManager",
    "get_async_pool",
    "get_sync_connection",
    "PostgresRecordStore",
    "PostgresSubscription",
    "create_record_store",
]
