"""Agricultural Q&A assistant on top of the content providers."""

from __future__ import annotations

from typing import Optional, Sequence

from src.content.prompts import AGRICULTURE_SYSTEM_PROMPT
from src.content.providers import ContentProvider
from src.errors import ProviderError
from src.utils.logging import get_logger

log = get_logger(__name__)

APOLOGY = "I'm sorry, I couldn't process your agricultural question at the moment."


class Chatbot:
    def __init__(
        self,
        providers: Sequence[ContentProvider],
        system_prompt: str = AGRICULTURE_SYSTEM_PROMPT,
        max_tokens: int = 800,
        temperature: float = 0.2,
    ) -> None:
        self.providers = list(providers)
        self.system_prompt = system_prompt
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.last_source: Optional[str] = None

    async def ask(self, message: str) -> str:
        """
        Answer a farmer's question.

        Raises ValueError for a blank or non-string message. Provider
        failures fall through to the next provider, then to a fixed apology.
        """
        if not isinstance(message, str) or not message.strip():
            raise ValueError("Invalid message format")

        for provider in self.providers:
            try:
                answer = await provider.complete(
                    message.strip(),
                    system=self.system_prompt,
                    max_tokens=self.max_tokens,
                    temperature=self.temperature,
                )
            except ProviderError as exc:
                log.warning("Chat provider failed, trying next", extra={"provider": provider.name, "error": str(exc)})
                continue
            self.last_source = provider.name
            return answer.strip()

        self.last_source = "fallback"
        return APOLOGY


__all__ = ["Chatbot", "APOLOGY"]
