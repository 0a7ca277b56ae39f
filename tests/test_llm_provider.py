from __future__ import annotations

import asyncio
from types import SimpleNamespace
from typing import Any

import openai
import pytest

from dealcard import main
from dealcard.api.deps import get_llm
from dealcard.core.exceptions import LLMProviderError
from dealcard.services.providers.openai_provider import OpenAIProvider


class _FakeCompletions:
    def __init__(self, outcome: Any) -> None:
        self.outcome = outcome
        self.kwargs: dict[str, Any] = {}

    def create(self, **kwargs: Any) -> Any:
        self.kwargs = kwargs
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return self.outcome


def _provider(outcome: Any) -> tuple[OpenAIProvider, _FakeCompletions]:
    provider = OpenAIProvider(api_key="sk-test", model="gpt-test", timeout_seconds=5)
    completions = _FakeCompletions(outcome)
    provider._client = SimpleNamespace(chat=SimpleNamespace(completions=completions))  # type: ignore[assignment]
    return provider, completions


def _completion(content: str | None) -> Any:
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


def test_system_prompt_leads_the_conversation() -> None:
    provider, completions = _provider(_completion("Save a little every week."))

    reply = provider.complete(
        [{"role": "user", "content": "How do I save?"}],
        system_prompt="Be kind.",
        max_tokens=123,
    )

    assert reply == "Save a little every week."
    assert completions.kwargs["model"] == "gpt-test"
    assert completions.kwargs["max_tokens"] == 123
    assert completions.kwargs["messages"] == [
        {"role": "system", "content": "Be kind."},
        {"role": "user", "content": "How do I save?"},
    ]


def test_vendor_failure_is_wrapped() -> None:
    provider, _ = _provider(openai.OpenAIError("quota exceeded"))
    with pytest.raises(LLMProviderError):
        provider.complete([], system_prompt="s", max_tokens=1)


@pytest.mark.parametrize("content", [None, "   "])
def test_empty_answer_is_an_error(content: str | None) -> None:
    provider, _ = _provider(_completion(content))
    with pytest.raises(LLMProviderError):
        provider.complete([], system_prompt="s", max_tokens=1)


def test_close_releases_the_http_client() -> None:
    provider = OpenAIProvider(api_key="sk-test", model="gpt-test", timeout_seconds=5)
    closed: list[bool] = []
    provider._client = SimpleNamespace(close=lambda: closed.append(True))  # type: ignore[assignment]

    provider.close()

    assert closed == [True]


class _TrackedLLM:
    key = "tracked"

    def __init__(self) -> None:
        self.closed = False

    def complete(self, messages: list[dict[str, str]], **kwargs: Any) -> str | None:
        return None

    def close(self) -> None:
        self.closed = True


def test_lifespan_shares_one_provider_and_closes_it(monkeypatch: pytest.MonkeyPatch) -> None:
    built: list[_TrackedLLM] = []

    def _build(provider_key: str | None) -> _TrackedLLM:
        built.append(_TrackedLLM())
        return built[-1]

    monkeypatch.setattr(main, "get_llm_provider", _build)
    request = SimpleNamespace(app=main.app)
    seen: list[Any] = []

    async def _serve() -> None:
        async with main.lifespan(main.app):
            seen.extend([get_llm(request), get_llm(request)])  # type: ignore[arg-type]

    try:
        asyncio.run(_serve())
    finally:
        for name in ("redis", "llm", "session_factory"):
            if hasattr(main.app.state, name):
                delattr(main.app.state, name)

    assert len(built) == 1
    assert seen == [built[0], built[0]]
    assert built[0].closed is True
