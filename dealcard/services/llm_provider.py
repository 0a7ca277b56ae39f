from __future__ import annotations

from typing import Protocol

from dealcard.core.config import settings
from dealcard.services.providers.noop import NoopLLMProvider
from dealcard.services.providers.openai_provider import OpenAIProvider

ChatTurn = dict[str, str]


class LLMProvider(Protocol):
    key: str

    def complete(
        self,
        messages: list[ChatTurn],
        *,
        system_prompt: str,
        max_tokens: int,
        temperature: float = 1.0,
    ) -> str | None: ...

    def close(self) -> None: ...


def get_llm_provider(provider_key: str | None) -> LLMProvider:
    normalized = (provider_key or settings.llm_provider_key or "noop").strip().lower()
    if normalized == "openai":
        if not settings.llm_api_key or not settings.llm_model:
            return NoopLLMProvider(reason="openai_misconfigured")
        return OpenAIProvider(
            api_key=settings.llm_api_key,
            model=settings.llm_model,
            timeout_seconds=settings.llm_timeout_seconds,
        )
    return NoopLLMProvider()
