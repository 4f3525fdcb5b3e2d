"""
Content Generator: ordered provider fallback with a TTL cache.

For each request the providers are tried in priority order. A transport
error, an unparseable reply or a reply of the wrong shape all count as that
provider failing; the failure is logged and the next provider is tried. When
every provider has failed the domain's static fallback is returned. Only
provider output is cached.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Type

from pydantic import ValidationError

from src.content.cache import TTLCache
from src.content.extract import extract_json
from src.content.providers import ContentProvider
from src.domain.models import DomainRecord
from src.errors import ContentParseError, ProviderError
from src.sync.reconcile import dedupe_by_id
from src.utils.logging import get_logger

log = get_logger(__name__)

CACHE_SOURCE = "cache"
FALLBACK_SOURCE = "fallback"


@dataclass(frozen=True)
class ContentRequest:
    """
    One generation request.

    Attributes
    ----------
    domain : str
        Content domain (`fertilizer`, `recipes`, `practices`, `weather`, `crops`).
    prompt : str
        User prompt describing the exact JSON shape wanted.
    schema : type[DomainRecord]
        Record schema each generated item is validated against.
    expect_list : bool
        True when the reply must be an array of records.
    max_items : int, optional
        Arrays are truncated to this many records.
    envelope : str, optional
        Key under which the array may be wrapped (`{"weatherData": [...]}`).
    context : mapping
        Request parameters the static fallback can use (crop, state, ...).
    """

    domain: str
    prompt: str
    schema: Type[DomainRecord]
    system: Optional[str] = None
    expect_list: bool = False
    max_items: Optional[int] = None
    cache_key: Optional[str] = None
    envelope: Optional[str] = None
    context: Mapping[str, Any] = field(default_factory=dict)

    @property
    def key(self) -> str:
        return self.cache_key or f"{self.domain}:{self.prompt}"


Records = Tuple[DomainRecord, ...]
FallbackSource = Callable[[ContentRequest], Any]


class ContentGenerator:
    def __init__(
        self,
        providers: Sequence[ContentProvider],
        cache: Optional[TTLCache] = None,
        fallbacks: Optional[FallbackSource] = None,
    ) -> None:
        if fallbacks is None:
            from src.content.fallbacks import static_fallback

            fallbacks = static_fallback
        self.providers: List[ContentProvider] = list(providers)
        self.cache = cache if cache is not None else TTLCache()
        self.fallbacks = fallbacks
        self.last_source: Optional[str] = None

    async def generate_many(self, request: ContentRequest) -> Records:
        """Bounded array of records for `request` (never raises for provider failures)."""
        return await self._generate(request)

    async def generate_one(self, request: ContentRequest) -> DomainRecord:
        """Single record for `request` (never raises for provider failures)."""
        return (await self._generate(request))[0]

    async def _generate(self, request: ContentRequest) -> Records:
        cached = self.cache.get(request.key)
        if cached is not None:
            self.last_source = CACHE_SOURCE
            log.debug("Content served from cache", extra={"domain": request.domain})
            return cached

        for provider in self.providers:
            try:
                text = await provider.complete(request.prompt, system=request.system)
                records = self._shape(request, extract_json(text))
            except (ProviderError, ContentParseError, ValidationError) as exc:
                log.warning(
                    "Content provider failed, trying next",
                    extra={"domain": request.domain, "provider": provider.name, "error": str(exc)},
                )
                continue
            self.cache.set(request.key, records)
            self.last_source = provider.name
            log.info(
                "Content generated",
                extra={"domain": request.domain, "provider": provider.name, "records": len(records)},
            )
            return records

        self.last_source = FALLBACK_SOURCE
        log.info("Content providers exhausted, using static fallback", extra={"domain": request.domain})
        return self._shape(request, self.fallbacks(request))

    def _shape(self, request: ContentRequest, value: Any) -> Records:
        """Validate a decoded reply into records of the requested shape."""
        if request.envelope and isinstance(value, Mapping) and request.envelope in value:
            value = value[request.envelope]

        if request.expect_list:
            if not isinstance(value, list):
                raise ContentParseError(f"{request.domain}: expected a JSON array")
            items = value[: request.max_items] if request.max_items else value
        else:
            if not isinstance(value, Mapping):
                raise ContentParseError(f"{request.domain}: expected a JSON object")
            items = [value]

        if not items:
            raise ContentParseError(f"{request.domain}: no records in reply")

        records = []
        for index, item in enumerate(items, start=1):
            if not isinstance(item, Mapping):
                raise ContentParseError(f"{request.domain}: item {index} is not an object")
            data: Dict[str, Any] = dict(item)
            if data.get("id") in (None, ""):
                data["id"] = f"generated-{request.domain}-{index}"
            records.append(request.schema.model_validate(data))
        return dedupe_by_id(records)


__all__ = ["ContentRequest", "ContentGenerator", "CACHE_SOURCE", "FALLBACK_SOURCE"]
