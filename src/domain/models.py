"""
Domain models for Kisan Sync.

One frozen pydantic schema per Record Store table, aligned with `db/init.sql`.
Rows are validated into these models at the Record Store boundary so the
synchronized views never carry untyped field bags. Field names accept both the
database's snake_case and the camelCase produced by the content generator.
"""
from __future__ import annotations

from datetime import date, datetime
from typing import Any, ClassVar, Dict, List, Optional, Type

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from src.errors import UnknownTableError


def _as_text(value: Any) -> Any:
    # uuid columns arrive as uuid.UUID from the driver
    return value if value is None or isinstance(value, str) else str(value)


class DomainRecord(BaseModel):
    """
    Base for every table row. Identity is `id`; no other field is shared
    across domains except the optional creation timestamp.
    """

    __tablename__: ClassVar[str] = ""

    id: str = Field(..., description="Unique row identifier (uuid in the database).")
    created_at: Optional[datetime] = Field(None, description="Row creation timestamp.")

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
        coerce_numbers_to_str=True,
        extra="ignore",
    )

    @field_validator("id", mode="before")
    @classmethod
    def id_as_text(cls, value: Any) -> Any:
        return _as_text(value)

    def to_row(self) -> dict:
        """Database-shaped mapping (snake_case, JSON-safe values)."""
        return self.model_dump(mode="json", by_alias=False)


class ForumPost(DomainRecord):
    __tablename__ = "community_posts"

    title: str
    content: str
    topic: str
    user_id: str
    likes: int = 0
    image_url: Optional[str] = None
    updated_at: Optional[datetime] = None


class ForumComment(DomainRecord):
    __tablename__ = "community_comments"

    post_id: str
    user_id: str
    content: str
    updated_at: Optional[datetime] = None

    @field_validator("post_id", mode="before")
    @classmethod
    def post_id_as_text(cls, value: Any) -> Any:
        return _as_text(value)


class Recipe(DomainRecord):
    __tablename__ = "recipes"

    title: str
    ingredients: List[str] = Field(default_factory=list)
    description: Optional[str] = None
    cooking_time: Optional[str] = None


class TraditionalPractice(DomainRecord):
    __tablename__ = "traditional_practices"

    title: str
    description: str = ""
    category: Optional[str] = None
    season: Optional[str] = None
    benefits: Optional[str] = None
    regions: List[str] = Field(default_factory=list)


class FertilizerRecommendation(DomainRecord):
    __tablename__ = "fertilizer_recommendations"

    crop_name: str
    organic_fertilizers: List[str] = Field(default_factory=list)
    chemical_fertilizers: List[str] = Field(default_factory=list)
    application_timing: str = ""
    dosage_per_acre: str = ""
    special_notes: Optional[str] = None


class CropRecommendation(DomainRecord):
    __tablename__ = "crop_recommendations"

    crop_name: str
    state: str = ""
    soil_type: str = ""
    climate_zone: str = ""
    season: str = ""
    growing_duration: Optional[int] = None
    water_requirement: Optional[str] = None
    yield_potential: Optional[str] = None
    min_temperature: Optional[float] = None
    max_temperature: Optional[float] = None
    min_rainfall: Optional[float] = None
    max_rainfall: Optional[float] = None
    special_instructions: Optional[str] = None


class MarketPrice(DomainRecord):
    __tablename__ = "market_prices"

    crop_name: str
    state: str
    district: str
    market_name: str
    min_price: float
    max_price: float
    modal_price: float
    price_unit: str = "Quintal"
    updated_at: Optional[datetime] = None


class WeatherReading(DomainRecord):
    __tablename__ = "weather_data"

    state: str
    district: str
    forecast_date: date
    temperature: Optional[float] = None
    humidity: Optional[float] = None
    rainfall: Optional[float] = None
    forecast: Optional[str] = None
    updated_at: Optional[datetime] = None


_SCHEMAS: Dict[str, Type[DomainRecord]] = {
    model.__tablename__: model
    for model in (
        ForumPost,
        ForumComment,
        Recipe,
        TraditionalPractice,
        FertilizerRecommendation,
        CropRecommendation,
        MarketPrice,
        WeatherReading,
    )
}


def schema_for(table: str) -> Type[DomainRecord]:
    """Resolve a table name to its registered record schema."""
    try:
        return _SCHEMAS[table]
    except KeyError:
        raise UnknownTableError(
            f"No schema registered for table '{table}'. Known: {', '.join(sorted(_SCHEMAS))}",
            table=table,
        ) from None


def known_tables() -> List[str]:
    """List registered table names."""
    return sorted(_SCHEMAS)


__all__ = [
    "DomainRecord",
    "ForumPost",
    "ForumComment",
    "Recipe",
    "TraditionalPractice",
    "FertilizerRecommendation",
    "CropRecommendation",
    "MarketPrice",
    "WeatherReading",
    "schema_for",
    "known_tables",
]
