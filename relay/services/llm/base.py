from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional


@dataclass
class LLMResponse:
    content: str
    model: str
    usage: Optional[dict] = None
    finish_reason: Optional[str] = None


class LLMProviderError(Exception):
    """Transport or API failure while calling a generation backend."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class LLMProvider(ABC):
    """Abstract base class for text-generation backends."""

    @abstractmethod
    def generate(
        self,
        system_instruction: str,
        turns: List[dict],
        max_output_tokens: int = 300,
    ) -> LLMResponse:
        """Generate a reply.

        turns is an ordered list of {"role": "user"|"assistant", "text": str}.
        Raises LLMProviderError on failure; empty content is not an error here.
        """
        pass
