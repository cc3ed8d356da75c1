from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: str = "postgresql+asyncpg://localhost:5432/habitboard"
    default_tz: str | None = None  # IANA zone, e.g. "America/Santiago"; None = host default
    api_key: str | None = None
    log_level: str = "INFO"

    # Tracking
    max_instances_per_day: int = 7  # Advisory only, shown next to the counters
    note_max_chars: int = 2000  # Enforced by the HTTP layer, not by scoring
    note_chars_per_point: int = 20
    streak_max_lookback_days: int = 3650
    trend_days: int = 21
    auto_create_schema: bool = False

    # Chat proxy (simulated replies when no key is configured)
    openai_api_key: str | None = None
    openai_base_url: str = "https://api.openai.com/v1"
    openai_model: str = "gpt-3.5-turbo"
    chat_max_tokens: int = 500
    chat_temperature: float = 0.7
    chat_timeout_seconds: float = 30.0

    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()
