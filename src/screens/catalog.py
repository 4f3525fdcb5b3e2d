"""
Reference catalogues: recipes, traditional practices and fertilizer
recommendations. Each falls back to generated content while its table is
empty.
"""

from __future__ import annotations

from typing import Optional

from src.content.generator import ContentRequest
from src.content.prompts import fertilizer_request, practices_request, recipes_request
from src.domain.models import FertilizerRecommendation
from src.screens.base import DESTRUCTIVE, DomainScreen


class RecipesScreen(DomainScreen):
    table = "recipes"
    search_fields = ("title",)
    load_error_title = "Error loading recipes"

    def fallback_request(self) -> Optional[ContentRequest]:
        return recipes_request()


class PracticesScreen(DomainScreen):
    table = "traditional_practices"
    search_fields = ("title", "category", "description")
    load_error_title = "Error loading traditional practices"

    def fallback_request(self) -> Optional[ContentRequest]:
        return practices_request()


class FertilizerScreen(DomainScreen):
    table = "fertilizer_recommendations"
    search_fields = ("crop_name",)
    load_error_title = "Error loading fertilizer recommendations"

    def fallback_request(self) -> Optional[ContentRequest]:
        return fertilizer_request()

    async def lookup(self, crop_name: str) -> Optional[FertilizerRecommendation]:
        """
        Recommendation for one crop: a stored row when there is one, otherwise
        generated (with a crop-specific static fallback).
        """
        crop = (crop_name or "").strip()
        if not crop:
            self.notify("Enter a crop", "Please enter a crop name to get recommendations.", DESTRUCTIVE)
            return None
        for row in self.view.rows:
            if row.crop_name.lower() == crop.lower():
                return row
        return await self.generator.generate_one(fertilizer_request(crop))


__all__ = ["RecipesScreen", "PracticesScreen", "FertilizerScreen"]
