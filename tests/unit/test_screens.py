from __future__ import annotations

import json
from datetime import date, timedelta

import pytest

from src.content.cache import TTLCache
from src.content.generator import ContentGenerator
from src.domain.events import ChangeEvent, RowFilter
from src.domain.models import ForumPost
from src.screens import SCREENS
from src.screens.base import DESTRUCTIVE, DomainScreen
from src.screens.catalog import FertilizerScreen, PracticesScreen, RecipesScreen
from src.screens.crops import CropRecommendationScreen
from src.screens.forum import ForumScreen, mock_posts
from src.screens.market import MarketPricesScreen
from src.screens.weather import CONFLICT_COLUMNS, WeatherScreen, advisories_for, current_season


def _seed_post(store, post_id: str, likes: int = 0, title: str = "t", topic: str = "Seeds") -> ForumPost:
    return store.seed(
        "community_posts", id=post_id, title=title, content="body", topic=topic, user_id="u", likes=likes
    )


def test_screen_registry_maps_tables() -> None:
    assert SCREENS["community_posts"] is ForumScreen
    assert SCREENS["weather_data"] is WeatherScreen
    assert len(SCREENS) == 7


# ------------------------------------------------------------------- forum


@pytest.mark.asyncio
async def test_forum_like_scenario(store) -> None:
    _seed_post(store, "p1", likes=3)
    screen = ForumScreen(store)
    await screen.open()

    await screen.like_post("p1")
    assert [(row.id, row.likes) for row in screen.display_rows] == [("p1", 4)]

    store.emit("community_posts", ChangeEvent.updated(screen.view.get("p1")))
    assert [(row.id, row.likes) for row in screen.display_rows] == [("p1", 4)]
    assert screen.notices == []


@pytest.mark.asyncio
async def test_forum_like_failure_shows_notice(store) -> None:
    _seed_post(store, "p1", likes=3)
    screen = ForumScreen(store)
    await screen.open()

    store.fail("update")
    assert await screen.like_post("p1") is None

    assert screen.view.get("p1").likes == 3
    assert screen.notices[-1].title == "Error"
    assert screen.notices[-1].variant == DESTRUCTIVE


@pytest.mark.asyncio
async def test_forum_shows_mock_posts_until_live_post_arrives(store) -> None:
    screen = ForumScreen(store)
    await screen.open()

    assert screen.showing_fallback
    assert [row.id for row in screen.display_rows] == [post.id for post in mock_posts()]

    post = await screen.create_post("Drip kits", "Where to buy?", "Equipment")

    assert post is not None
    assert not screen.showing_fallback
    assert [row.id for row in screen.display_rows] == [post.id]
    assert screen.notices[-1].title == "Post created"


@pytest.mark.asyncio
async def test_forum_create_post_validates_fields(store) -> None:
    screen = ForumScreen(store)
    await screen.open()

    assert await screen.create_post("  ", "content", "Seeds") is None

    assert screen.notices[-1].title == "Incomplete form"
    assert [call for call in store.calls if call[0] == "insert"] == []


@pytest.mark.asyncio
async def test_forum_create_post_failure_shows_notice(store) -> None:
    screen = ForumScreen(store)
    await screen.open()
    store.fail("insert")

    assert await screen.create_post("Title", "Body", "Seeds") is None
    assert screen.notices[-1].title == "Error creating post"


@pytest.mark.asyncio
async def test_forum_filter_by_term_and_topic(store) -> None:
    _seed_post(store, "p1", title="Aphids on okra", topic="Pest Control")
    _seed_post(store, "p2", title="Drip irrigation", topic="Water Management")
    screen = ForumScreen(store)
    await screen.open()

    assert [row.id for row in screen.filter_posts("APHID")] == ["p1"]
    assert [row.id for row in screen.filter_posts("", "Water Management")] == ["p2"]
    assert screen.filter_posts("aphid", "Water Management") == ()


@pytest.mark.asyncio
async def test_load_error_becomes_destructive_notice(store) -> None:
    store.fail("select")
    screen = ForumScreen(store)

    await screen.open()

    assert screen.notices[0].title == "Error loading forum posts"
    assert screen.notices[0].variant == DESTRUCTIVE
    screen.dismiss(screen.notices[0])
    assert screen.notices == []


# ---------------------------------------------------------------- fallback


@pytest.mark.asyncio
async def test_empty_load_triggers_fallback_exactly_once(store, offline_generator) -> None:
    screen = RecipesScreen(store, offline_generator)

    await screen.open()
    await screen.open()
    await screen.refresh()

    assert screen.fallback_loads == 1
    assert screen.display_rows[0].title == "Demo Dish 1"
    assert screen.view.rows == ()


@pytest.mark.asyncio
async def test_populated_table_never_falls_back(store, offline_generator) -> None:
    store.seed("recipes", title="Poha", ingredients=["Rice flakes"])
    screen = RecipesScreen(store, offline_generator)

    await screen.open()

    assert screen.fallback_loads == 0
    assert [row.title for row in screen.display_rows] == ["Poha"]


@pytest.mark.asyncio
async def test_practices_search_covers_category(store, offline_generator) -> None:
    screen = PracticesScreen(store, offline_generator)
    await screen.open()

    matches = screen.search("irrigation")

    assert matches
    assert all(row.category == "Irrigation" for row in matches)


@pytest.mark.asyncio
async def test_plain_screen_has_no_fallback(store) -> None:
    screen = DomainScreen(store, table="community_comments")

    await screen.open()

    assert screen.fallback_loads == 1
    assert screen.display_rows == ()


# -------------------------------------------------------------- fertilizer


@pytest.mark.asyncio
async def test_fertilizer_lookup_prefers_stored_row(store, offline_generator) -> None:
    store.seed("fertilizer_recommendations", id="f1", crop_name="Maize", dosage_per_acre="stored")
    screen = FertilizerScreen(store, offline_generator)
    await screen.open()

    stored = await screen.lookup("maize")
    generated = await screen.lookup("Sugarcane")

    assert stored.id == "f1"
    assert generated.crop_name == "Sugarcane"
    assert offline_generator.last_source == "fallback"


@pytest.mark.asyncio
async def test_fertilizer_lookup_requires_crop(store, offline_generator) -> None:
    screen = FertilizerScreen(store, offline_generator)

    assert await screen.lookup("  ") is None
    assert screen.notices[-1].variant == DESTRUCTIVE


# ------------------------------------------------------------------ market


@pytest.mark.asyncio
async def test_market_select_reloads_and_filters_feed(store) -> None:
    base = dict(district="Pune", market_name="APMC", min_price=1, max_price=3, modal_price=2)
    store.seed("market_prices", id="m1", crop_name="Rice", state="Punjab", **base)
    store.seed("market_prices", id="m2", crop_name="Wheat", state="Punjab", **base)
    store.seed("market_prices", id="m3", crop_name="Rice", state="Karnataka", **base)
    screen = MarketPricesScreen(store)
    await screen.open()
    assert len(screen.display_rows) == 3

    await screen.select("Punjab", "Rice")

    assert [row.id for row in screen.display_rows] == ["m1"]
    assert store.subscriptions[-1].row_filter == RowFilter.from_params({"state": "Punjab", "crop_name": "Rice"})
    assert len(store.subscriptions) == 1

    await screen.select("Punjab", "")
    assert sorted(row.id for row in screen.display_rows) == ["m1", "m2"]


# ----------------------------------------------------------------- weather


@pytest.mark.asyncio
async def test_weather_view_ignores_other_states(store, offline_generator) -> None:
    today = date.today().isoformat()
    store.seed("weather_data", id="w1", state="Punjab", district="General", forecast_date=today)
    screen = WeatherScreen(store, offline_generator)
    await screen.select("Punjab")

    kerala = store.seed("weather_data", id="w2", state="Kerala", district="General", forecast_date=today)
    store.emit("weather_data", ChangeEvent.inserted(kerala))

    assert [row.id for row in screen.display_rows] == ["w1"]
    assert screen.current.id == "w1"


@pytest.mark.asyncio
async def test_weather_generated_forecast_is_upserted(echo_store, clock, make_provider) -> None:
    start = date.today()
    readings = [
        {"state": "Punjab", "district": "Ludhiana", "forecast_date": (start + timedelta(days=d)).isoformat(),
         "temperature": 30 + d, "forecast": "Sunny"}
        for d in range(5)
    ]
    provider = make_provider("openai", json.dumps({"weatherData": readings}))
    generator = ContentGenerator([provider], cache=TTLCache(clock=clock))
    screen = WeatherScreen(echo_store, generator)

    await screen.select("Punjab", "Ludhiana")

    upserts = [call for call in echo_store.calls if call[0] == "upsert"]
    assert len(upserts) == 5
    assert upserts[0][2] == CONFLICT_COLUMNS
    assert len(screen.view.rows) == 5
    assert not screen.showing_fallback
    assert screen.current.forecast_date == start


@pytest.mark.asyncio
async def test_weather_static_fallback_is_not_persisted(store, offline_generator) -> None:
    screen = WeatherScreen(store, offline_generator)

    await screen.select("Kerala")

    assert [call for call in store.calls if call[0] == "upsert"] == []
    assert screen.showing_fallback
    assert len(screen.display_rows) == 5


@pytest.mark.asyncio
async def test_weather_requires_state(store) -> None:
    with pytest.raises(ValueError):
        await WeatherScreen(store).select("")


def test_seasons_and_advisories() -> None:
    assert current_season(date(2024, 7, 1)) == "monsoon"
    assert current_season(date(2024, 1, 15)) == "winter"
    assert current_season(date(2024, 4, 1)) == "summer"
    assert current_season(date(2024, 10, 20)) == "post-monsoon"
    assert len(advisories_for("monsoon")) == 2
    assert advisories_for("post-monsoon") == ()


# ------------------------------------------------------------------- crops


@pytest.mark.asyncio
async def test_crop_recommendations_fall_back_with_context(store, offline_generator) -> None:
    screen = CropRecommendationScreen(store, offline_generator)

    rows = await screen.recommend("Punjab", "Loamy", "Semi-Arid", "Rabi (Winter)")

    assert rows
    assert {row.state for row in rows} == {"Punjab"}
    assert screen.notices[-1].title == "Recommendations ready"


@pytest.mark.asyncio
async def test_crop_recommendations_use_stored_rows(store, offline_generator) -> None:
    store.seed(
        "crop_recommendations",
        id="c1",
        crop_name="Wheat",
        state="Punjab",
        soil_type="Loamy",
        climate_zone="Semi-Arid",
        season="Rabi (Winter)",
    )
    screen = CropRecommendationScreen(store, offline_generator)

    rows = await screen.recommend("Punjab", "Loamy", "Semi-Arid", "Rabi (Winter)")

    assert [row.id for row in rows] == ["c1"]
    assert screen.fallback_loads == 0


@pytest.mark.asyncio
async def test_crop_recommendations_require_all_fields(store, offline_generator) -> None:
    screen = CropRecommendationScreen(store, offline_generator)

    assert await screen.recommend("Punjab", "", "Arid", "Zaid (Summer)") == ()
    assert screen.notices[-1].title == "Please fill all fields"
    assert store.calls == []
