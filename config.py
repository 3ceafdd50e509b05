"""Gateway settings loaded from environment variables."""
import os
from functools import lru_cache
from typing import List, Mapping, Optional

from dotenv import load_dotenv


load_dotenv()

SERVICE_NAME = "bo-gateway"
SERVICE_VERSION = "1.0.0"
API_KEY_HEADER = "X-BOCHAT-API-KEY"

DEFAULT_LLM_API_URL = "https://api.anthropic.com/v1/messages"
DEFAULT_LLM_MODEL = "claude-sonnet-4-20250514"
DEFAULT_ALLOWED_ORIGINS = "https://bochat.taptico.com,https://bochat.manus.space"
# Anchored so only real subdomains of the two hosting platforms match.
DEFAULT_ALLOWED_ORIGIN_REGEX = r"^https://([a-z0-9-]+\.)+manus\.(computer|space)$"


class Settings:
    """
    Application settings loaded from environment variables.

    Keep all credentials and config centralized here. Pass `environ` to
    build settings from an explicit mapping instead of the process
    environment.
    """

    def __init__(self, environ: Optional[Mapping[str, str]] = None):
        env = os.environ if environ is None else environ

        self.environment: str = env.get("ENVIRONMENT", "development")
        self.log_level: str = env.get("LOG_LEVEL", "INFO").upper()
        self.host: str = env.get("HOST", "0.0.0.0")
        self.port: int = int(env.get("PORT", "3000"))

        # Shared secret expected in the X-BOCHAT-API-KEY header
        self.api_key: Optional[str] = env.get("BOCHAT_API_KEY") or None

        # LLM provider
        self.llm_api_key: Optional[str] = env.get("LLM_API_KEY") or env.get("ANTHROPIC_API_KEY") or None
        self.llm_api_url: str = env.get("LLM_API_URL") or DEFAULT_LLM_API_URL
        self.llm_model: str = env.get("LLM_MODEL") or DEFAULT_LLM_MODEL
        self.llm_timeout_seconds: float = float(env.get("LLM_TIMEOUT_SECONDS", "60"))

        # Relational store; unset means no persistence
        self.database_url: Optional[str] = env.get("DATABASE_URL") or None

        # CORS
        self.allowed_origins: str = env.get("ALLOWED_ORIGINS") or DEFAULT_ALLOWED_ORIGINS
        self.allowed_origin_regex: Optional[str] = env.get("ALLOWED_ORIGIN_REGEX", DEFAULT_ALLOWED_ORIGIN_REGEX) or None

        # Rate limiting for /v1
        self.rate_limit_window_seconds: float = float(env.get("RATE_LIMIT_WINDOW_SECONDS", "60"))
        self.rate_limit_max_requests: int = int(env.get("RATE_LIMIT_MAX_REQUESTS", "30"))

    @property
    def allowed_origins_list(self) -> List[str]:
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
