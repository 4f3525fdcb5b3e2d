"""
Weather for a state/district.

The view is loaded and subscribed with a `state` (+ `district`) filter. When
no readings are stored a five-day forecast is generated and upserted, after
which the rows arrive as live data and the generated fallback is dropped.
"""

from __future__ import annotations

from datetime import date
from typing import Iterable, Optional, Tuple

from src.content.generator import FALLBACK_SOURCE
from src.content.prompts import weather_request
from src.domain.events import RowFilter
from src.domain.models import DomainRecord, WeatherReading
from src.errors import MutationError
from src.screens.base import DomainScreen
from src.utils.logging import get_logger

log = get_logger(__name__)

CONFLICT_COLUMNS = ("state", "district", "forecast_date")

ADVISORIES = (
    ("monsoon", "Ensure proper drainage in your fields to prevent waterlogging during heavy rainfall.", ("Rice", "Vegetables")),
    ("summer", "Mulch your soil to retain moisture and protect plant roots from extreme heat.", ("Vegetables", "Fruits")),
    ("winter", "Cover sensitive crops at night to protect from frost damage during cold waves.", ("Vegetables", "Pulses")),
    (
        "monsoon",
        "Monitor for increased pest activity during humid conditions and apply appropriate organic remedies.",
        ("All Crops",),
    ),
)


def current_season(today: Optional[date] = None) -> str:
    """Indian agricultural season for a date (approximate month ranges)."""
    month = (today or date.today()).month
    if 6 <= month <= 9:
        return "monsoon"
    if 10 <= month <= 11:
        return "post-monsoon"
    if month == 12 or month <= 2:
        return "winter"
    return "summer"


def advisories_for(season: str) -> Tuple[Tuple[str, Tuple[str, ...]], ...]:
    """`(tip, crops)` pairs for a season."""
    return tuple((tip, crops) for tip_season, tip, crops in ADVISORIES if tip_season == season)


class WeatherScreen(DomainScreen):
    table = "weather_data"
    search_fields = ("forecast",)
    load_error_title = "Error loading weather data"

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.state: Optional[str] = None
        self.district: Optional[str] = None

    async def select(self, state: str, district: Optional[str] = None) -> None:
        if not state:
            raise ValueError("State is required")
        self.state = state
        self.district = district or None
        row_filter = RowFilter.eq("state", state)
        if self.district:
            row_filter = row_filter.and_eq("district", self.district)
        await self.reload(row_filter.as_dict(), row_filter)

    @property
    def current(self) -> Optional[WeatherReading]:
        """Reading for today, else the nearest upcoming one, else the latest past one."""
        readings = self.display_rows
        if not readings:
            return None
        today = date.today()
        upcoming = [reading for reading in readings if reading.forecast_date >= today]
        if upcoming:
            return min(upcoming, key=lambda reading: reading.forecast_date)
        return max(readings, key=lambda reading: reading.forecast_date)

    def advisories(self, today: Optional[date] = None) -> Tuple[Tuple[str, Tuple[str, ...]], ...]:
        return advisories_for(current_season(today))

    async def load_fallback(self) -> Iterable[DomainRecord]:
        if not self.state:
            return ()
        district = self.district or "General"
        readings = await self.generator.generate_many(weather_request(self.state, self.district))
        if self.generator.last_source == FALLBACK_SOURCE:
            return readings

        for reading in readings:
            values = {**reading.to_row(), "state": self.state, "district": district}
            try:
                await self.mutator.upsert(values, CONFLICT_COLUMNS)
            except MutationError as exc:
                log.warning(
                    "Could not store generated forecast",
                    extra={"state": self.state, "district": district, "error": str(exc)},
                )
        return readings


__all__ = ["WeatherScreen", "CONFLICT_COLUMNS", "ADVISORIES", "advisories_for", "current_season"]
