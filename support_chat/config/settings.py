"""Application settings loaded from environment variables."""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Supabase
    SUPABASE_URL: str
    SUPABASE_SERVICE_ROLE_KEY: str

    # LLM
    LLM_PROVIDER: str = "google"
    GEMINI_API_KEY: str = ""
    GEMINI_MODEL: str = "gemini-2.5-flash-lite"
    GROQ_API_KEY: str = ""
    GROQ_MODEL: str = "llama-3.1-8b-instant"
    SYSTEM_INSTRUCTION: str = ""
    MAX_OUTPUT_TOKENS: int = 1000

    # Context window
    HISTORY_WINDOW_SIZE: int = 20
    CONTEXT_TOKEN_BUDGET: int = 200
    TOKEN_ESTIMATOR: str = "chars"

    # Messages
    MAX_MESSAGE_LENGTH: int = 1000
    HISTORY_PAGE_SIZE: int = 20
    HISTORY_MAX_PAGE_SIZE: int = 100

    # CORS
    ALLOWED_ORIGINS: str = "*"

    # Rate limiting (per client address)
    # X-Forwarded-For is honoured only when the socket peer is one of these
    TRUSTED_PROXIES: str = ""
    RATE_LIMIT_REQUESTS: int = 100
    RATE_LIMIT_WINDOW_SECONDS: int = 15 * 60

    LOG_LEVEL: str = "INFO"

    @property
    def allowed_origins_list(self) -> list[str]:
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",") if o.strip()]

    @property
    def trusted_proxies_set(self) -> set[str]:
        return {p.strip() for p in self.TRUSTED_PROXIES.split(",") if p.strip()}

    @property
    def active_model(self) -> str:
        return self.GROQ_MODEL if self.LLM_PROVIDER == "groq" else self.GEMINI_MODEL

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


@lru_cache()
def get_settings() -> Settings:
    return Settings()
