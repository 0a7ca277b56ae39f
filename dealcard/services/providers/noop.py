from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class NoopLLMProvider:
    key: str = "noop"
    reason: str | None = None

    def complete(
        self,
        messages: list[dict[str, str]],
        *,
        system_prompt: str,
        max_tokens: int,
        temperature: float = 1.0,
    ) -> str | None:
        _ = (messages, system_prompt, max_tokens, temperature)
        return None

    def close(self) -> None:
        return None
