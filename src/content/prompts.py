"""
Prompt builders for each content domain.

Every prompt spells out the exact JSON shape and record count expected, since
the reply is parsed and validated against the domain's record schema.
"""

from __future__ import annotations

from datetime import date
from typing import Optional

from src.content.generator import ContentRequest
from src.domain.models import CropRecommendation, FertilizerRecommendation, Recipe, TraditionalPractice, WeatherReading

FERTILIZER_FIELDS = (
    "cropName, organicFertilizers (array), chemicalFertilizers (array), "
    "applicationTiming, dosagePerAcre, specialNotes"
)

AGRICULTURE_SYSTEM_PROMPT = (
    "You are an agricultural expert with deep knowledge of both traditional and modern farming practices. "
    "Focus on providing practical, actionable advice for farmers, particularly in the Indian context. "
    "Include traditional knowledge when relevant, especially sustainable practices passed down through generations. "
    "When discussing crops, mention their growing conditions, common issues, and traditional remedies. "
    "If you don't know something specific, acknowledge it rather than providing incorrect information. "
    "Keep responses concise, informative, and directly addressing the farmer's question."
)


def fertilizer_request(crop_name: Optional[str] = None) -> ContentRequest:
    """Single-crop recommendation when `crop_name` is given, else a list of 50 crops."""
    system = "You are a helpful assistant that generates structured data about agricultural fertilizers."
    if crop_name:
        prompt = (
            f"Give me detailed fertilizer recommendations for {crop_name} cultivation. "
            "Include information about NPK ratios, organic options, application timing, and dosage. "
            f"Return as a JSON object with these fields: {FERTILIZER_FIELDS}. "
            "Return ONLY valid JSON, no explanations or markdown."
        )
        return ContentRequest(
            domain="fertilizer",
            prompt=prompt,
            system=system,
            schema=FertilizerRecommendation,
            cache_key=f"fertilizer:{crop_name.strip().lower()}",
            context={"crop_name": crop_name},
        )
    prompt = (
        "Give me a JSON array of 50 objects, each representing fertilizer recommendations for a different crop. "
        f"Each object should have these fields: {FERTILIZER_FIELDS}. Only include major Indian crops. "
        "Return ONLY valid JSON array, no explanations or markdown."
    )
    return ContentRequest(
        domain="fertilizer",
        prompt=prompt,
        system=system,
        schema=FertilizerRecommendation,
        expect_list=True,
        max_items=50,
        cache_key="fertilizer:all",
    )


def recipes_request(count: int = 200) -> ContentRequest:
    prompt = (
        f"Give me a JSON array of {count} unique Indian traditional recipes. Each object must have: "
        f"id (1-{count}), title, ingredients (array of 4-8 items), description (one sentence), "
        'and cookingTime (e.g., "35 min"). No explanations, just raw JSON.'
    )
    return ContentRequest(
        domain="recipes",
        prompt=prompt,
        system="You generate India's traditional recipes (for a database).",
        schema=Recipe,
        expect_list=True,
        max_items=count,
        cache_key="recipes:all",
    )


def practices_request(count: int = 200) -> ContentRequest:
    prompt = (
        f"Give me a JSON array of {count} unique traditional Indian crops/practices. Each object must have: "
        f"id (1-{count}), title, description (one line), category (one of: technique, irrigation, "
        'pest control, soil care, crop), and season ("Winter", "Summer", "Monsoon", or "Year-round"). '
        "No explanations, just JSON."
    )
    return ContentRequest(
        domain="practices",
        prompt=prompt,
        system="You generate India's traditional farming practices (for a database).",
        schema=TraditionalPractice,
        expect_list=True,
        max_items=count,
        cache_key="practices:all",
    )


def weather_request(state: str, district: Optional[str] = None, today: Optional[date] = None) -> ContentRequest:
    """Five-day agricultural forecast for a state (and optionally a district)."""
    today = today or date.today()
    place = f"{district}, {state}" if district else state
    prompt = (
        f"Generate realistic weather forecast data for agricultural purposes for {place}, India "
        "for the next 5 days.\n\n"
        "The response should be in this exact JSON format:\n"
        '{"weatherData": [{"state": "%s", "district": "%s", "temperature": <Celsius>, '
        '"humidity": <percent>, "rainfall": <mm>, "forecast": <short description like "Partly Cloudy">, '
        '"forecast_date": <YYYY-MM-DD>}, ... 4 more entries for consecutive days]}\n\n'
        "Dates start from %s. Make the data as realistic as possible based on the typical weather "
        "patterns for this region at this time of year. ONLY return the JSON, no other text."
    ) % (state, district or "General", today.isoformat())
    return ContentRequest(
        domain="weather",
        prompt=prompt,
        schema=WeatherReading,
        expect_list=True,
        max_items=5,
        envelope="weatherData",
        cache_key=f"weather:{state}:{district or 'General'}:{today.isoformat()}",
        context={"state": state, "district": district or "General", "today": today},
    )


def crop_recommendations_request(state: str, soil_type: str, climate: str, season: str) -> ContentRequest:
    prompt = (
        f"Recommend the 5 most suitable crops for a farm in {state}, India with {soil_type}, "
        f"a {climate} climate, during the {season} season. Return a JSON array of objects with: "
        "cropName, state, soilType, climateZone, season, growingDuration (days, integer), "
        "waterRequirement, yieldPotential, minTemperature, maxTemperature (Celsius), "
        "minRainfall, maxRainfall (mm), specialInstructions (mention traditional practices). "
        "Return ONLY valid JSON, no explanations or markdown."
    )
    return ContentRequest(
        domain="crops",
        prompt=prompt,
        system=AGRICULTURE_SYSTEM_PROMPT,
        schema=CropRecommendation,
        expect_list=True,
        max_items=5,
        cache_key=f"crops:{state}:{soil_type}:{climate}:{season}".lower(),
        context={"state": state, "soil_type": soil_type, "climate_zone": climate, "season": season},
    )


__all__ = [
    "AGRICULTURE_SYSTEM_PROMPT",
    "fertilizer_request",
    "recipes_request",
    "practices_request",
    "weather_request",
    "crop_recommendations_request",
]
