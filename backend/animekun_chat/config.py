from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings
from functools import lru_cache

_BACKEND_DIR = Path(__file__).resolve().parents[1]
_ENV_FILES = (
    _BACKEND_DIR / ".env",
    ".env",
)

LimiterPolicy = Literal["allow", "deny"]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    app_title: str = "Anime-Kun AI Chat"
    app_version: str = "0.1.0"
    app_env: str = "production"
    # First entry doubles as the default Access-Control-Allow-Origin
    cors_origins: list[str] = ["http://localhost:3000", "http://localhost:3001"]

    # OpenRouter configuration
    openrouter_api_key: str = ""
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    openrouter_app_name: str = "Anime-Kun AI Chat"

    # Generation loop
    chat_model: str = "google/gemini-2.5-flash"
    chat_temperature: float = 0.7
    chat_max_steps: int = 5
    chat_max_duration_s: float = 30.0
    chat_max_tokens: int = 4096

    # NestJS admin backend
    backend_api_base: str = "http://localhost:3002"
    backend_timeout_s: float = 10.0

    # Rate limiting (fixed window, Redis-backed)
    redis_url: str | None = None
    rate_limit_max: int = 500
    rate_limit_window_minutes: int = 1440
    rate_limit_prefix: str = "anime-ai-chat"
    on_limiter_unavailable: LimiterPolicy = "allow"
    on_limiter_error: LimiterPolicy = "allow"

    # Third-party web search
    tavily_api_key: str = ""
    tavily_base_url: str = "https://api.tavily.com"

    # Logging — per-category log levels (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    log_level: str = "INFO"                  # Root / app-wide
    log_level_http: str = "WARNING"          # httpx / httpcore — outbound HTTP
    log_level_uvicorn: str = "INFO"          # uvicorn.access / uvicorn.error
    log_level_openrouter: str = "INFO"       # OpenRouter chat provider
    log_level_tools: str = "INFO"            # Tool catalog / backend calls
    log_level_ratelimit: str = "INFO"        # Rate limiter

    model_config = {
        "env_file": _ENV_FILES,
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @property
    def is_development(self) -> bool:
        return self.app_env.lower() == "development"

    @property
    def rate_limit_window_s(self) -> int:
        return self.rate_limit_window_minutes * 60


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance — reads .env once."""
    return Settings()
