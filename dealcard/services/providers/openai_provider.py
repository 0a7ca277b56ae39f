from __future__ import annotations

import logging

import openai

from dealcard.core.exceptions import LLMProviderError

logger = logging.getLogger("dealcard.api.llm")


class OpenAIProvider:
    key = "openai"

    def __init__(self, *, api_key: str, model: str, timeout_seconds: float = 30.0) -> None:
        self.model = model
        self._client = openai.OpenAI(api_key=api_key, timeout=timeout_seconds, max_retries=0)

    def complete(
        self,
        messages: list[dict[str, str]],
        *,
        system_prompt: str,
        max_tokens: int,
        temperature: float = 1.0,
    ) -> str | None:
        try:
            response = self._client.chat.completions.create(
                model=self.model,
                max_tokens=max_tokens,
                temperature=temperature,
                messages=[{"role": "system", "content": system_prompt}, *messages],
            )
        except openai.OpenAIError as exc:
            logger.error("llm.request.failed", extra={"provider": self.key, "reason": type(exc).__name__})
            raise LLMProviderError("Language model request failed") from exc

        choices = getattr(response, "choices", None) or []
        content = choices[0].message.content if choices else None
        if not isinstance(content, str) or not content.strip():
            raise LLMProviderError("Unexpected response shape from language model")
        return content

    def close(self) -> None:
        self._client.close()
