from typing import List, Optional

import httpx

from relay.logging_config import get_logger
from relay.services.llm.base import LLMProvider, LLMProviderError, LLMResponse

logger = get_logger("llm.gemini")

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/models"

# Gemini names the assistant side "model".
ROLE_MAP = {"user": "user", "assistant": "model"}


class GeminiProvider(LLMProvider):
    """Google Gemini generateContent provider."""

    def __init__(
        self,
        api_key: str,
        default_model: str = "gemini-2.5-flash",
        temperature: float = 0.9,
        top_p: float = 0.95,
        timeout_seconds: float = 30.0,
    ):
        self.api_key = api_key
        self.default_model = default_model
        self.temperature = temperature
        self.top_p = top_p
        self.timeout_seconds = timeout_seconds

    def build_payload(self, system_instruction: str, turns: List[dict], max_output_tokens: int) -> dict:
        contents = [
            {"role": ROLE_MAP.get(turn["role"], "user"), "parts": [{"text": turn["text"]}]}
            for turn in turns
            if turn.get("text")
        ]
        return {
            "systemInstruction": {"role": "system", "parts": [{"text": system_instruction}]},
            "contents": contents,
            "generationConfig": {
                "temperature": self.temperature,
                "topP": self.top_p,
                "maxOutputTokens": max_output_tokens,
            },
        }

    def generate(
        self,
        system_instruction: str,
        turns: List[dict],
        max_output_tokens: int = 300,
        model: Optional[str] = None,
    ) -> LLMResponse:
        """Generate response from Gemini."""
        model = model or self.default_model
        url = f"{GEMINI_BASE_URL}/{model}:generateContent"
        payload = self.build_payload(system_instruction, turns, max_output_tokens)
        logger.debug(f"Gemini request: model={model}, turns_count={len(payload['contents'])}")

        try:
            with httpx.Client(timeout=self.timeout_seconds) as client:
                response = client.post(
                    url,
                    params={"key": self.api_key},
                    headers={"Content-Type": "application/json"},
                    json=payload,
                )
        except httpx.HTTPError as e:
            raise LLMProviderError(f"Gemini request failed: {e}") from e

        try:
            data = response.json()
        except ValueError:
            data = {}

        if response.status_code != 200:
            message = (data.get("error") or {}).get("message") or f"Gemini HTTP {response.status_code}"
            logger.error(f"Gemini error: {message}")
            raise LLMProviderError(message, status_code=response.status_code)

        return LLMResponse(
            content=extract_text(data),
            model=data.get("modelVersion", model),
            usage=data.get("usageMetadata"),
            finish_reason=_first_candidate(data).get("finishReason"),
        )


def _first_candidate(data: dict) -> dict:
    candidates = data.get("candidates") or []
    return candidates[0] if candidates else {}


def extract_text(data: dict) -> str:
    """Join every text part of the first candidate."""
    content = _first_candidate(data).get("content") or {}
    parts = content.get("parts") or []
    return "".join(part.get("text") or "" for part in parts).strip()
