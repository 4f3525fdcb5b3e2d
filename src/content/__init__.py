"""
Content generation: LLM providers, JSON extraction, the TTL cache, static
fallbacks and the agricultural chatbot.
"""

from typing import Optional

from src.config import Settings, get_settings
from src.content.cache import TTLCache
from src.content.chat import Chatbot
from src.content.extract import extract_json
from src.content.generator import ContentGenerator, ContentRequest
from src.content.providers import ContentProvider, GeminiProvider, OpenAIProvider, build_providers


def create_generator(settings: Optional[Settings] = None) -> ContentGenerator:
    """Generator wired from settings: configured providers and the default TTL."""
    settings = settings or get_settings()
    cache = TTLCache(settings.content_cache_ttl_seconds, maxsize=settings.content_cache_max_entries)
    return ContentGenerator(build_providers(settings), cache=cache)


def create_chatbot(settings: Optional[Settings] = None) -> Chatbot:
    return Chatbot(build_providers(settings or get_settings()))


__all__ = [
    "Chatbot",
    "ContentGenerator",
    "ContentProvider",
    "ContentRequest",
    "GeminiProvider",
    "OpenAIProvider",
    "TTLCache",
    "build_providers",
    "create_chatbot",
    "create_generator",
    "extract_json",
]
