"""
Domain screens: one parameterized screen per table, each owning a
synchronized view and an optimistic mutator.
"""

from src.screens.base import DomainScreen, Notice
from src.screens.catalog import FertilizerScreen, PracticesScreen, RecipesScreen
from src.screens.crops import CropRecommendationScreen
from src.screens.forum import ForumScreen
from src.screens.market import MarketPricesScreen
from src.screens.weather import WeatherScreen

SCREENS = {
    screen.table: screen
    for screen in (
        ForumScreen,
        RecipesScreen,
        PracticesScreen,
        FertilizerScreen,
        MarketPricesScreen,
        WeatherScreen,
        CropRecommendationScreen,
    )
}

__all__ = [
    "DomainScreen",
    "Notice",
    "ForumScreen",
    "RecipesScreen",
    "PracticesScreen",
    "FertilizerScreen",
    "MarketPricesScreen",
    "WeatherScreen",
    "CropRecommendationScreen",
    "SCREENS",
]
