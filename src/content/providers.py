"""
LLM content providers over httpx.

Each provider sends exactly one request per `complete` call and raises
ProviderError for any failure (transport, non-2xx, or unexpected body), so
the caller can move on to the next provider. There is no retry here.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Protocol, runtime_checkable

import httpx

from src.config import Settings, get_settings
from src.errors import ProviderError
from src.utils.logging import get_logger

log = get_logger(__name__)


@runtime_checkable
class ContentProvider(Protocol):
    """Text completion backend."""

    name: str

    async def complete(
        self,
        prompt: str,
        system: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> str:
        ...


class _HttpProvider:
    name: str = "http"

    def __init__(self, timeout: float = 60.0, client: Optional[httpx.AsyncClient] = None) -> None:
        self.timeout = timeout
        self._client = client

    async def _post_json(
        self,
        url: str,
        body: Mapping[str, Any],
        headers: Optional[Mapping[str, str]] = None,
        params: Optional[Mapping[str, str]] = None,
    ) -> Any:
        try:
            if self._client is not None:
                response = await self._client.post(url, json=body, headers=headers, params=params)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(url, json=body, headers=headers, params=params)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as exc:
            raise ProviderError(self.name, f"HTTP {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            raise ProviderError(self.name, f"transport error: {exc}") from exc
        except ValueError as exc:
            raise ProviderError(self.name, "response body is not JSON") from exc

    def _require_text(self, text: Any) -> str:
        if not isinstance(text, str) or not text.strip():
            raise ProviderError(self.name, "empty completion")
        return text


class OpenAIProvider(_HttpProvider):
    """OpenAI chat completions."""

    name = "openai"
    url = "https://api.openai.com/v1/chat/completions"

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        max_tokens: int = 4096,
        timeout: float = 60.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        super().__init__(timeout=timeout, client=client)
        self.api_key = api_key
        self.model = model
        self.max_tokens = max_tokens

    async def complete(
        self,
        prompt: str,
        system: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> str:
        messages: List[Dict[str, str]] = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})
        body: Dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "max_tokens": max_tokens or self.max_tokens,
        }
        if temperature is not None:
            body["temperature"] = temperature

        data = await self._post_json(self.url, body, headers={"Authorization": f"Bearer {self.api_key}"})
        try:
            text = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise ProviderError(self.name, "unexpected response shape") from exc
        return self._require_text(text)


class GeminiProvider(_HttpProvider):
    """Google Gemini `generateContent`."""

    name = "gemini"
    base_url = "https://generativelanguage.googleapis.com/v1beta/models"

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-pro",
        max_tokens: int = 2048,
        timeout: float = 60.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        super().__init__(timeout=timeout, client=client)
        self.api_key = api_key
        self.model = model
        self.max_tokens = max_tokens

    @property
    def url(self) -> str:
        return f"{self.base_url}/{self.model}:generateContent"

    async def complete(
        self,
        prompt: str,
        system: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> str:
        parts = [{"text": system}] if system else []
        parts.append({"text": prompt})
        generation_config: Dict[str, Any] = {
            "topK": 40,
            "topP": 0.95,
            "maxOutputTokens": max_tokens or self.max_tokens,
        }
        if temperature is not None:
            generation_config["temperature"] = temperature
        body = {
            "contents": [{"role": "user", "parts": parts}],
            "generationConfig": generation_config,
        }

        data = await self._post_json(self.url, body, params={"key": self.api_key})
        try:
            text = data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError) as exc:
            raise ProviderError(self.name, "unexpected response shape") from exc
        return self._require_text(text)


def build_providers(
    settings: Optional[Settings] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> List[ContentProvider]:
    """
    Providers in priority order (OpenAI, then Gemini), only those whose API
    key is configured.
    """
    settings = settings or get_settings()
    providers: List[ContentProvider] = []
    if settings.openai_api_key:
        providers.append(
            OpenAIProvider(
                settings.openai_api_key,
                model=settings.openai_model,
                timeout=settings.llm_timeout_seconds,
                client=client,
            )
        )
    if settings.gemini_api_key:
        providers.append(
            GeminiProvider(
                settings.gemini_api_key,
                model=settings.gemini_model,
                timeout=settings.llm_timeout_seconds,
                client=client,
            )
        )
    if not providers:
        log.info("No content provider keys configured; static fallbacks only")
    return providers


__all__ = ["ContentProvider", "OpenAIProvider", "GeminiProvider", "build_providers"]
