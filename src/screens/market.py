"""Mandi prices filtered by state and crop."""

from __future__ import annotations

from typing import Optional

from src.domain.events import RowFilter
from src.screens.base import DomainScreen

STATES = ("Maharashtra", "Punjab", "Karnataka")
CROPS = ("Rice", "Wheat", "Cotton")


class MarketPricesScreen(DomainScreen):
    table = "market_prices"
    search_fields = ("crop_name", "market_name", "district")
    load_error_title = "Error loading market prices"

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.state: Optional[str] = None
        self.crop: Optional[str] = None

    async def select(self, state: Optional[str] = None, crop: Optional[str] = None) -> None:
        """Reload for a state/crop selection; blanks mean "all"."""
        self.state = state or None
        self.crop = crop or None
        params = {"state": self.state, "crop_name": self.crop}
        await self.reload(params, RowFilter.from_params(params))


__all__ = ["MarketPricesScreen", "STATES", "CROPS"]
