"""
Synchronization layer: pure reconciliation, the synchronized view state and
the optimistic mutation path.
"""

from src.sync.optimistic import OptimisticMutator
from src.sync.reconcile import apply_change, dedupe_by_id, merge, remove_by_id, replace_by_id, scope_event
from src.sync.view_state import SynchronizedViewState

__all__ = [
    "OptimisticMutator",
    "SynchronizedViewState",
    "apply_change",
    "dedupe_by_id",
    "merge",
    "remove_by_id",
    "replace_by_id",
    "scope_event",
]
