"""Crop recommendations for a farm's location, soil, climate and season."""

from __future__ import annotations

from typing import Optional

from src.content.generator import ContentRequest
from src.content.prompts import crop_recommendations_request
from src.domain.events import RowFilter
from src.screens.base import DESTRUCTIVE, DomainScreen
from src.sync.reconcile import Rows

STATES = (
    "Andhra Pradesh", "Assam", "Bihar", "Gujarat", "Haryana",
    "Karnataka", "Kerala", "Madhya Pradesh", "Maharashtra", "Punjab",
    "Rajasthan", "Tamil Nadu", "Telangana", "Uttar Pradesh", "West Bengal",
)
SOIL_TYPES = (
    "Alluvial Soil", "Black Soil", "Red Soil", "Laterite Soil",
    "Desert Soil", "Mountain Soil", "Loamy", "Clay", "Sandy",
)
CLIMATES = (
    "Tropical Wet", "Tropical Dry", "Subtropical Humid", "Semi-Arid",
    "Arid", "Humid Continental", "Highland",
)
SEASONS = ("Kharif (Monsoon)", "Rabi (Winter)", "Zaid (Summer)", "Year-round")


class CropRecommendationScreen(DomainScreen):
    table = "crop_recommendations"
    search_fields = ("crop_name",)
    load_error_title = "Error loading crop recommendations"

    def fallback_request(self) -> Optional[ContentRequest]:
        params = self.query_params
        if not params:
            return None
        return crop_recommendations_request(
            params["state"], params["soil_type"], params["climate_zone"], params["season"]
        )

    async def recommend(self, state: str, soil_type: str, climate: str, season: str) -> Rows:
        if not (state and soil_type and climate and season):
            self.notify(
                "Please fill all fields",
                "All fields are required for accurate crop recommendations",
                DESTRUCTIVE,
            )
            return ()
        params = {"state": state, "soil_type": soil_type, "climate_zone": climate, "season": season}
        await self.reload(params, RowFilter.from_params(params))
        recommendations = self.display_rows
        if recommendations:
            self.notify("Recommendations ready", "We've analyzed your conditions and found the best crop matches.")
        return recommendations


__all__ = ["CropRecommendationScreen", "STATES", "SOIL_TYPES", "CLIMATES", "SEASONS"]
