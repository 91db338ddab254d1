from typing import Optional

from pydantic_settings import BaseSettings

DEFAULT_BANNED_TERMS = [
    "ChatGPT",
    "Gemini",
    "人工智慧",
    "語言模型",
    "AI",
]


class Settings(BaseSettings):
    line_channel_secret: Optional[str] = None
    line_channel_access_token: Optional[str] = None
    line_timeout_seconds: float = 10.0

    gemini_api_key: Optional[str] = None
    gemini_model: str = "gemini-2.5-flash"
    gemini_temperature: float = 0.9
    gemini_top_p: float = 0.95
    gemini_max_output_tokens: int = 300
    gemini_timeout_seconds: float = 30.0

    cooldown_seconds: float = 2.5
    max_per_sender: int = 30
    max_global: int = 1000
    reset_interval_seconds: float = 86400
    history_max_entries: int = 10
    dedup_capacity: int = 1000
    session_idle_seconds: float = 3 * 86400

    short_input_chars: int = 12
    short_budget: int = 20
    long_budget: int = 50
    complex_input_chars: int = 30
    banned_terms: list[str] = DEFAULT_BANNED_TERMS

    log_level: str = "INFO"
    alert_bot_token: Optional[str] = None
    alert_chat_id: Optional[str] = None

    class Config:
        env_file = ".env"
        extra = "ignore"

    def has_credentials(self) -> bool:
        return bool(self.line_channel_secret and self.line_channel_access_token and self.gemini_api_key)


settings = Settings()
