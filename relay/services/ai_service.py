from typing import List, Optional

from relay.config import settings
from relay.logging_config import get_logger
from relay.services.llm import GeminiProvider, LLMProvider, LLMProviderError
from relay.services.mode_service import Mode
from relay.services.result import GENERATION_EMPTY, GENERATION_ERROR, Result
from relay.services.session_store import ROLE_USER, ChatTurn

logger = get_logger("ai_service")

FALLBACK_REPLY = "你再說一次，我在聽。"

SYSTEM_PROMPT = """你是一位真人感極強的LINE聊天對象，名字叫「情緒價值大師」。
你住在台灣，說話自然、有溫度、有同理心，像真人在用LINE聊天。

【硬性規則】
- 絕對不要提到自己是AI、模型、系統或任何產品名稱。
- 不要像客服，不要條列式教科書口吻。
- 優先「理解情緒」>「給建議」。先陪伴、再討論解法。
- 允許口語：嗯、欸、我懂、辛苦了、真的假的、先抱一下。

【互動風格】
- 若使用者情緒低落：先安撫 + 共感 + 一句小問題。
- 若使用者只是聊天：輕鬆自然，不要上價值課。
- 若使用者問明確問題：先簡短回答，再溫柔補一句關心。"""

MODE_STYLES = {
    Mode.DEFAULT: "語氣溫暖、穩定，像可靠的好朋友。",
    Mode.LIGHT: "語氣輕鬆俏皮，多一點玩笑和生活感，但不要敷衍。",
    Mode.FLIRTY: "語氣帶一點曖昧和撒嬌，甜但有分寸，不低俗。",
}

_llm_provider: Optional[LLMProvider] = None


def get_llm_provider() -> LLMProvider:
    """Get or create the configured generation provider."""
    global _llm_provider
    if _llm_provider is None:
        _llm_provider = GeminiProvider(
            api_key=settings.gemini_api_key or "",
            default_model=settings.gemini_model,
            temperature=settings.gemini_temperature,
            top_p=settings.gemini_top_p,
            timeout_seconds=settings.gemini_timeout_seconds,
        )
    return _llm_provider


def build_system_instruction(mode: Mode, budget: int) -> str:
    return (
        f"{SYSTEM_PROMPT}\n\n"
        f"【目前風格】\n- {MODE_STYLES.get(mode, MODE_STYLES[Mode.DEFAULT])}\n\n"
        f"【長度】\n- 整則回覆控制在{budget}個字以內，用完整的句子結尾。"
    )


def build_turns(history: List[ChatTurn], user_text: str) -> List[dict]:
    turns = [{"role": turn.role, "text": turn.text} for turn in history]
    turns.append({"role": ROLE_USER, "text": user_text})
    return turns


def generate_reply(
    user_text: str,
    *,
    mode: Mode,
    history: List[ChatTurn],
    budget: int,
    provider: Optional[LLMProvider] = None,
    max_output_tokens: Optional[int] = None,
) -> Result[str]:
    """Ask the generation backend for a raw reply. Failures come back as Result.failure."""
    provider = provider or get_llm_provider()
    max_output_tokens = max_output_tokens or settings.gemini_max_output_tokens

    try:
        response = provider.generate(
            build_system_instruction(mode, budget),
            build_turns(history, user_text),
            max_output_tokens=max_output_tokens,
        )
    except LLMProviderError as e:
        logger.warning("Generation failed", extra={"context": {"error": str(e), "status": e.status_code}})
        return Result.failure(str(e), GENERATION_ERROR)

    content = (response.content or "").strip()
    if not content:
        logger.warning(
            "Generation returned no text",
            extra={"context": {"model": response.model, "finish_reason": response.finish_reason}},
        )
        return Result.failure("empty generation", GENERATION_EMPTY)

    return Result.success(content)
