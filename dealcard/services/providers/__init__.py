from dealcard.services.providers.noop import NoopLLMProvider
from dealcard.services.providers.openai_provider import OpenAIProvider

__all__ = ["NoopLLMProvider", "OpenAIProvider"]
