"""
Static fallback content, returned when every provider has failed.

Values are raw JSON-shaped dicts, validated by the generator exactly like
provider output.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Any, Callable, Dict, List

from src.content.generator import ContentRequest

FERTILIZERS: List[Dict[str, Any]] = [
    {
        "cropName": "Rice",
        "organicFertilizers": ["Farmyard Manure", "Green Manure", "Compost"],
        "chemicalFertilizers": ["NPK 10:26:26", "Urea", "DAP"],
        "applicationTiming": "Basal application during land preparation, top dressing at tillering and panicle initiation",
        "dosagePerAcre": "Organic: 5-8 tonnes/acre, Chemical: 100-150 kg/acre",
        "specialNotes": "Split nitrogen application recommended. Zinc sulfate application beneficial.",
    },
    {
        "cropName": "Wheat",
        "organicFertilizers": ["Farmyard Manure", "Compost", "Vermicompost"],
        "chemicalFertilizers": ["NPK 12:32:16", "Urea"],
        "applicationTiming": "50% at sowing, 25% at first irrigation, 25% at second irrigation",
        "dosagePerAcre": "Organic: 4-6 tonnes/acre, Chemical: 100-120 kg/acre",
        "specialNotes": "Sulfur application improves grain quality and yield.",
    },
    {
        "cropName": "Cotton",
        "organicFertilizers": ["Farmyard Manure", "Compost", "Neem Cake"],
        "chemicalFertilizers": ["NPK 20:10:10", "Ammonium Sulfate"],
        "applicationTiming": "Basal application before sowing, top dressing at flowering and boll formation",
        "dosagePerAcre": "Organic: 5-10 tonnes/acre, Chemical: 80-100 kg/acre",
        "specialNotes": "Foliar sprays of micronutrients during square formation increase yield.",
    },
]


def crop_fertilizer(crop_name: str) -> Dict[str, Any]:
    """Generic recommendation for a crop with no specific entry."""
    return {
        "cropName": crop_name,
        "organicFertilizers": ["Farmyard Manure", "Compost", "Vermicompost"],
        "chemicalFertilizers": ["NPK 10-26-26", "Urea"],
        "applicationTiming": "Apply base fertilizer 2 weeks before sowing, top dressing during vegetative growth",
        "dosagePerAcre": "Organic: 5-10 tonnes/acre, Chemical: 100-150 kg/acre",
        "specialNotes": "Adjust based on soil test results. Foliar application of micronutrients may be needed.",
    }


RECIPES: List[Dict[str, Any]] = [
    {
        "id": index + 1,
        "title": f"Demo Dish {index + 1}",
        "ingredients": ["Rice", "Dal", "Spices", "Vegetables", "Salt"],
        "description": f"Sample recipe description for demo recipe {index + 1}.",
        "cookingTime": "30 mins",
    }
    for index in range(20)
]

_PRACTICE_CATEGORIES = ("Technique", "Irrigation", "Pest control", "Soil care", "Crop")
_PRACTICE_SEASONS = ("Winter", "Summer", "Monsoon", "Year-round")

PRACTICES: List[Dict[str, Any]] = [
    {
        "id": index + 1,
        "title": f"Traditional Practice {index + 1}",
        "description": f"Description for traditional practice {index + 1}.",
        "category": _PRACTICE_CATEGORIES[index % len(_PRACTICE_CATEGORIES)],
        "season": _PRACTICE_SEASONS[index % len(_PRACTICE_SEASONS)],
        "benefits": "Sample practice benefits.",
        "regions": ["India"],
    }
    for index in range(20)
]

CROP_RECOMMENDATIONS: List[Dict[str, Any]] = [
    {
        "cropName": "Rice (Dhan)",
        "growingDuration": 135,
        "waterRequirement": "High - requires standing water during most growing phases",
        "yieldPotential": "High",
        "specialInstructions": (
            "The SRI (System of Rice Intensification) technique reduces water usage while increasing yield."
        ),
    },
    {
        "cropName": "Moong Dal (Green Gram)",
        "growingDuration": 75,
        "waterRequirement": "Low to Medium - drought resistant once established",
        "yieldPotential": "Medium",
        "specialInstructions": "Traditionally interplanted with cereals or grown as a catch crop between seasons.",
    },
    {
        "cropName": "Cotton",
        "growingDuration": 170,
        "waterRequirement": "Medium - sensitive to both waterlogging and drought",
        "yieldPotential": "Medium",
        "specialInstructions": "Indigenous varieties resist pests better; neem-based sprays are the traditional remedy.",
    },
]


def _fertilizer(request: ContentRequest) -> Any:
    crop_name = request.context.get("crop_name")
    if not crop_name:
        return FERTILIZERS
    for entry in FERTILIZERS:
        if entry["cropName"].lower() == str(crop_name).strip().lower():
            return entry
    return crop_fertilizer(str(crop_name))


def _weather(request: ContentRequest) -> Any:
    start = request.context.get("today") or date.today()
    return [
        {
            "state": request.context.get("state", ""),
            "district": request.context.get("district", "General"),
            "forecast_date": (start + timedelta(days=offset)).isoformat(),
            "forecast": "Forecast unavailable",
        }
        for offset in range(5)
    ]


def _crops(request: ContentRequest) -> Any:
    context = {
        "state": request.context.get("state", ""),
        "soilType": request.context.get("soil_type", ""),
        "climateZone": request.context.get("climate_zone", ""),
        "season": request.context.get("season", ""),
    }
    return [{**entry, **context} for entry in CROP_RECOMMENDATIONS]


_FALLBACKS: Dict[str, Callable[[ContentRequest], Any]] = {
    "fertilizer": _fertilizer,
    "recipes": lambda request: RECIPES,
    "practices": lambda request: PRACTICES,
    "weather": _weather,
    "crops": _crops,
}


def static_fallback(request: ContentRequest) -> Any:
    """Built-in content for the request's domain."""
    try:
        builder = _FALLBACKS[request.domain]
    except KeyError:
        raise ValueError(f"No static fallback for content domain '{request.domain}'") from None
    return builder(request)


__all__ = ["static_fallback", "crop_fertilizer", "FERTILIZERS", "RECIPES", "PRACTICES", "CROP_RECOMMENDATIONS"]
