from __future__ import annotations

import json

import httpx
import pytest

from src.config import Settings
from src.content.chat import APOLOGY, Chatbot
from src.content.providers import GeminiProvider, OpenAIProvider, build_providers
from src.errors import ProviderError


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_openai_request_shape_and_reply() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers["authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"choices": [{"message": {"content": '{"ok": true}'}}]})

    async with _client(handler) as client:
        provider = OpenAIProvider("sk-test", client=client)
        text = await provider.complete("prompt", system="be brief", temperature=0.2)

    assert text == '{"ok": true}'
    assert seen["auth"] == "Bearer sk-test"
    assert seen["body"]["model"] == "gpt-4o-mini"
    assert seen["body"]["max_tokens"] == 4096
    assert seen["body"]["temperature"] == 0.2
    assert [m["role"] for m in seen["body"]["messages"]] == ["system", "user"]


@pytest.mark.asyncio
async def test_gemini_request_shape_and_reply() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = request.url
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"candidates": [{"content": {"parts": [{"text": "[1]"}]}}]})

    async with _client(handler) as client:
        provider = GeminiProvider("g-key", client=client)
        text = await provider.complete("prompt", system="sys")

    assert text == "[1]"
    assert seen["url"].path.endswith("/gemini-pro:generateContent")
    assert seen["url"].params["key"] == "g-key"
    assert [part["text"] for part in seen["body"]["contents"][0]["parts"]] == ["sys", "prompt"]
    assert seen["body"]["generationConfig"]["maxOutputTokens"] == 2048


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500, json={"error": "overloaded"}),
        httpx.Response(200, text="<html>not json</html>"),
        httpx.Response(200, json={"choices": []}),
        httpx.Response(200, json={"choices": [{"message": {"content": "   "}}]}),
    ],
)
async def test_openai_failures_raise_provider_error(response: httpx.Response) -> None:
    async with _client(lambda request: response) as client:
        with pytest.raises(ProviderError) as excinfo:
            await OpenAIProvider("sk-test", client=client).complete("prompt")

    assert excinfo.value.provider == "openai"


@pytest.mark.asyncio
async def test_transport_error_raises_provider_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with _client(handler) as client:
        with pytest.raises(ProviderError):
            await GeminiProvider("g-key", client=client).complete("prompt")


def test_build_providers_orders_by_configured_keys() -> None:
    both = build_providers(Settings(OPENAI_API_KEY="sk", GEMINI_API_KEY="g"))
    gemini_only = build_providers(Settings(OPENAI_API_KEY=None, GEMINI_API_KEY="g"))
    none = build_providers(Settings(OPENAI_API_KEY=None, GEMINI_API_KEY=None))

    assert [provider.name for provider in both] == ["openai", "gemini"]
    assert [provider.name for provider in gemini_only] == ["gemini"]
    assert none == []


@pytest.mark.asyncio
async def test_chatbot_falls_through_to_next_provider(make_provider) -> None:
    primary = make_provider("openai", ProviderError("openai", "HTTP 429"))
    secondary = make_provider("gemini", "  Use neem oil spray.  ")
    bot = Chatbot([primary, secondary])

    answer = await bot.ask("How do I control aphids?")

    assert answer == "Use neem oil spray."
    assert bot.last_source == "gemini"
    assert secondary.calls[0]["max_tokens"] == 800
    assert secondary.calls[0]["system"] == bot.system_prompt


@pytest.mark.asyncio
async def test_chatbot_apologises_when_all_providers_fail(make_provider) -> None:
    bot = Chatbot([make_provider("openai", ProviderError("openai", "down"))])

    assert await bot.ask("When to sow wheat?") == APOLOGY
    assert bot.last_source == "fallback"


@pytest.mark.asyncio
@pytest.mark.parametrize("message", ["", "   ", None, 42])
async def test_chatbot_rejects_invalid_messages(message) -> None:
    with pytest.raises(ValueError):
        await Chatbot([]).ask(message)
