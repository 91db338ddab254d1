from relay.services.llm.base import LLMProvider, LLMProviderError, LLMResponse
from relay.services.llm.gemini_provider import GeminiProvider

__all__ = ["LLMProvider", "LLMProviderError", "LLMResponse", "GeminiProvider"]
