"""Application configuration loaded from environment variables."""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid."""


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


@dataclass(frozen=True)
class Config:
    """Application configuration."""

    # Server settings
    host: str
    port: int
    database_url: str
    log_level: str
    session_secret: str
    frontend_url: str
    dev_login_enabled: bool

    # Google sign-in
    google_client_id: str | None
    google_client_secret: str | None
    google_redirect_uri: str

    # TMDB settings
    tmdb_bearer_token: str | None
    tmdb_language: str
    tmdb_region: str

    # OpenAI / LLM settings
    llm_enabled: bool
    llm_provider: str  # "openai" or "anthropic"
    openai_api_key: str | None
    openai_model: str
    anthropic_api_key: str | None
    anthropic_model: str
    search_result_count: int

    # Mail settings
    smtp_host: str | None
    smtp_port: int
    smtp_username: str | None
    smtp_password: str | None
    smtp_use_tls: bool
    mail_from: str | None

    # Session core client
    api_base_url: str

    @property
    def mail_enabled(self) -> bool:
        return bool(self.smtp_host and self.mail_from)

    @property
    def google_enabled(self) -> bool:
        return bool(self.google_client_id and self.google_client_secret)

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        session_secret = os.getenv("SESSION_SECRET")
        if not session_secret:
            raise ConfigurationError("SESSION_SECRET environment variable is required")

        host = os.getenv("HOST", "0.0.0.0")
        port_str = os.getenv("PORT", "8000")
        try:
            port = int(port_str)
        except ValueError:
            raise ConfigurationError(f"PORT must be an integer, got: {port_str}")

        database_url = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./reelswipe.db")
        log_level = os.getenv("LOG_LEVEL", "INFO").upper()
        frontend_url = os.getenv("FRONTEND_URL", "http://localhost:5173").rstrip("/")
        dev_login_enabled = _env_bool("DEV_LOGIN_ENABLED", "false")

        google_client_id = os.getenv("GOOGLE_CLIENT_ID") or None
        google_client_secret = os.getenv("GOOGLE_CLIENT_SECRET") or None
        google_redirect_uri = os.getenv(
            "GOOGLE_REDIRECT_URI", f"http://localhost:{port}/auth/google/callback"
        )

        # TMDB settings
        tmdb_bearer_token = os.getenv("TMDB_BEARER_TOKEN") or None
        tmdb_language = os.getenv("TMDB_LANGUAGE", "en-US")
        tmdb_region = os.getenv("TMDB_REGION", "")

        # OpenAI / LLM settings
        llm_enabled = _env_bool("LLM_ENABLED", "true")
        openai_api_key = os.getenv("OPENAI_API_KEY") or None
        openai_model = os.getenv("OPENAI_MODEL", "gpt-4.1-mini")
        anthropic_api_key = os.getenv("ANTHROPIC_API_KEY") or None
        anthropic_model = os.getenv("ANTHROPIC_MODEL", "claude-haiku-4-5-20251001")
        llm_provider = os.getenv("LLM_PROVIDER", "anthropic" if anthropic_api_key else "openai")

        search_result_count = _env_int("SEARCH_RESULT_COUNT", 10)
        if search_result_count < 1:
            search_result_count = 10

        # Mail settings
        smtp_host = os.getenv("SMTP_HOST") or None
        smtp_port = _env_int("SMTP_PORT", 587)
        smtp_username = os.getenv("SMTP_USERNAME") or None
        smtp_password = os.getenv("SMTP_PASSWORD") or None
        smtp_use_tls = _env_bool("SMTP_USE_TLS", "true")
        mail_from = os.getenv("MAIL_FROM") or None

        api_base_url = os.getenv("API_BASE_URL", "http://localhost:8000").rstrip("/")

        return cls(
            host=host,
            port=port,
            database_url=database_url,
            log_level=log_level,
            session_secret=session_secret,
            frontend_url=frontend_url,
            dev_login_enabled=dev_login_enabled,
            google_client_id=google_client_id,
            google_client_secret=google_client_secret,
            google_redirect_uri=google_redirect_uri,
            tmdb_bearer_token=tmdb_bearer_token,
            tmdb_language=tmdb_language,
            tmdb_region=tmdb_region,
            llm_enabled=llm_enabled,
            llm_provider=llm_provider,
            openai_api_key=openai_api_key,
            openai_model=openai_model,
            anthropic_api_key=anthropic_api_key,
            anthropic_model=anthropic_model,
            search_result_count=search_result_count,
            smtp_host=smtp_host,
            smtp_port=smtp_port,
            smtp_username=smtp_username,
            smtp_password=smtp_password,
            smtp_use_tls=smtp_use_tls,
            mail_from=mail_from,
            api_base_url=api_base_url,
        )


config = Config.from_env()
