"""
Kisan Sync - realtime-synchronized data views for a farmer-facing app.

This package keeps in-memory collections of Postgres rows converged with the
database through one bulk load plus a LISTEN/NOTIFY change feed, and backs
empty collections with LLM-generated content:

- Synchronized view state and pure list reconciliation
- Optimistic mutations merged ahead of their change-feed echo
- Content generation with ordered provider fallback and a TTL cache
- Parameterized domain screens (forum, recipes, practices, fertilizer,
  market prices, weather, crop recommendations)
- FastAPI endpoints and a typer CLI
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from src.config import Settings, get_settings
from src.domain import ChangeEvent, ChangeType, DomainRecord, RowFilter
from src.sync import OptimisticMutator, SynchronizedViewState
from src.utils.logging import configure_from_settings, configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Domain
    "ChangeEvent",
    "ChangeType",
    "DomainRecord",
    "RowFilter",
    # Synchronization
    "OptimisticMutator",
    "SynchronizedViewState",
    # Logging
    "configure_from_settings",
    "configure_logging",
    "get_logger",
]
