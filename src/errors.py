"""
Exception hierarchy for Kisan Sync.

Record Store query failures are returned inside a StoreResult rather than
raised; the classes below are raised where a caller has to react (mutations,
unknown tables) or caught at a provider boundary (content generation).
"""

from __future__ import annotations

from typing import Optional


class KisanSyncError(Exception):
    """Base class for all errors raised by this package."""


class StoreError(KisanSyncError):
    """A Record Store query, mutation or subscription failed."""

    def __init__(self, message: str, table: Optional[str] = None, code: Optional[str] = None) -> None:
        super().__init__(message)
        self.table = table
        self.code = code


class UnknownTableError(StoreError):
    """No record schema is registered for the requested table."""


class MutationError(KisanSyncError):
    """An insert/update issued from a screen did not produce a canonical row."""


class ProviderError(KisanSyncError):
    """A content provider request failed or returned an unusable body."""

    def __init__(self, provider: str, message: str) -> None:
        super().__init__(f"{provider}: {message}")
        self.provider = provider


class ContentParseError(KisanSyncError):
    """Provider text did not contain a well-formed JSON object or array."""


__all__ = [
    "KisanSyncError",
    "StoreError",
    "UnknownTableError",
    "MutationError",
    "ProviderError",
    "ContentParseError",
]
