"""
HTTP endpoints for the Content Generator and the chatbot.

Generated records are returned as camelCase JSON. Validation problems answer
400 `{"error": ...}`; anything unexpected is logged and answered 500
`{"error": ...}`.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Dict, Iterable, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src import __version__
from src.content import create_chatbot, create_generator
from src.content.chat import Chatbot
from src.content.generator import ContentGenerator
from src.content.prompts import (
    crop_recommendations_request,
    fertilizer_request,
    practices_request,
    recipes_request,
    weather_request,
)
from src.domain.models import DomainRecord
from src.utils.logging import get_logger

log = get_logger(__name__)


def to_json(record: DomainRecord) -> Dict[str, Any]:
    return record.model_dump(mode="json", by_alias=True, exclude_none=True)


def to_json_list(records: Iterable[DomainRecord]) -> list:
    return [to_json(record) for record in records]


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


async def _json_body(request: Request) -> Dict[str, Any]:
    """Request body as a dict; missing or malformed bodies read as empty."""
    try:
        body = await request.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


async def _guarded(endpoint: str, produce: Callable[[], Awaitable[Any]]) -> JSONResponse:
    try:
        return JSONResponse(await produce())
    except Exception as exc:  # noqa: BLE001 - error boundary of the HTTP surface
        log.exception("Endpoint failed", extra={"endpoint": endpoint})
        return _error(str(exc), 500)


def create_app(
    generator: Optional[ContentGenerator] = None,
    chatbot: Optional[Chatbot] = None,
) -> FastAPI:
    app = FastAPI(title="Kisan Sync content API", version=__version__)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
    )
    app.state.generator = generator or create_generator()
    app.state.chatbot = chatbot or create_chatbot()

    def gen() -> ContentGenerator:
        return app.state.generator

    @app.api_route("/generate-fertilizer-recommendations", methods=["GET", "POST"])
    async def generate_fertilizer_recommendations(request: Request) -> JSONResponse:
        crop_name = (await _json_body(request)).get("cropName")

        async def produce() -> Any:
            if crop_name:
                return to_json(await gen().generate_one(fertilizer_request(str(crop_name))))
            return to_json_list(await gen().generate_many(fertilizer_request()))

        return await _guarded("generate-fertilizer-recommendations", produce)

    @app.api_route("/generate-recipes", methods=["GET", "POST"])
    async def generate_recipes() -> JSONResponse:
        async def produce() -> Any:
            return to_json_list(await gen().generate_many(recipes_request()))

        return await _guarded("generate-recipes", produce)

    @app.api_route("/generate-traditional-practices", methods=["GET", "POST"])
    async def generate_traditional_practices() -> JSONResponse:
        async def produce() -> Any:
            return to_json_list(await gen().generate_many(practices_request()))

        return await _guarded("generate-traditional-practices", produce)

    @app.post("/generate-weather")
    async def generate_weather(request: Request) -> JSONResponse:
        body = await _json_body(request)
        state = body.get("state")
        if not state:
            return _error("State is required", 400)
        district = body.get("district") or None

        async def produce() -> Any:
            readings = await gen().generate_many(weather_request(str(state), district))
            return {"weatherData": to_json_list(readings)}

        return await _guarded("generate-weather", produce)

    @app.post("/generate-crop-recommendations")
    async def generate_crop_recommendations(request: Request) -> JSONResponse:
        body = await _json_body(request)
        fields = [body.get(key) for key in ("state", "soilType", "climate", "season")]
        if not all(fields):
            return _error("state, soilType, climate and season are required", 400)

        async def produce() -> Any:
            records = await gen().generate_many(crop_recommendations_request(*map(str, fields)))
            return to_json_list(records)

        return await _guarded("generate-crop-recommendations", produce)

    @app.post("/agriculture-chatbot")
    async def agriculture_chatbot(request: Request) -> JSONResponse:
        message = (await _json_body(request)).get("message")
        if not isinstance(message, str) or not message.strip():
            return _error("Invalid message format", 400)

        async def produce() -> Any:
            return {"response": await app.state.chatbot.ask(message)}

        return await _guarded("agriculture-chatbot", produce)

    return app


__all__ = ["create_app", "to_json", "to_json_list"]
