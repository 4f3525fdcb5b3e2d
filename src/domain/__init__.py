"""
Domain package for Kisan Sync.

Exports the per-table record schemas and the change-feed event types used by
the Record Store, the synchronized views and the screens. Keep this package
focused on data definitions and validation concerns.
"""

from src.domain.events import ChangeEvent, ChangeType, RowFilter
from src.domain.models import (
    CropRecommendation,
    DomainRecord,
    FertilizerRecommendation,
    ForumComment,
    ForumPost,
    MarketPrice,
    Recipe,
    TraditionalPractice,
    WeatherReading,
    known_tables,
    schema_for,
)

__all__ = [
    "ChangeEvent",
    "ChangeType",
    "RowFilter",
    "DomainRecord",
    "ForumPost",
    "ForumComment",
    "Recipe",
    "TraditionalPractice",
    "FertilizerRecommendation",
    "CropRecommendation",
    "MarketPrice",
    "WeatherReading",
    "known_tables",
    "schema_for",
]
