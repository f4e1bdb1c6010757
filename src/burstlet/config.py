"""Application configuration via environment variables."""

from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_ALLOWED_ORIGINS = [
    "https://burstlet.vercel.app",
    "https://burstlet.com",
    "https://www.burstlet.com",
    "http://localhost:3000",
]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    environment: str = Field(
        default="development",
        validation_alias=AliasChoices("environment", "node_env"),
        description="Deployment environment (development, production, test)",
    )

    # Database
    database_url: str | None = Field(
        default=None,
        description="Database connection string (PostgreSQL in production)",
    )

    # Redis
    redis_url: str | None = Field(
        default=None,
        description="Redis connection string",
    )
    supabase_url: str | None = Field(default=None, description="Supabase project URL")

    # Celery
    celery_broker_url: str = Field(
        default="redis://localhost:6379/0",
        description="Celery broker URL",
    )
    celery_result_backend: str = Field(
        default="redis://localhost:6379/0",
        description="Celery result backend URL",
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: Literal["json", "console"] = Field(
        default="console",
        description="Log output format",
    )

    # API Server
    api_host: str = Field(default="0.0.0.0", description="API server host")
    api_port: int = Field(
        default=3001,
        validation_alias=AliasChoices("api_port", "port"),
        description="API server port",
    )
    api_reload: bool = Field(default=False, description="Enable auto-reload for development")
    frontend_url: str | None = Field(default=None, description="Dashboard origin for CORS")
    allowed_origins: list[str] = Field(
        default_factory=lambda: list(DEFAULT_ALLOWED_ORIGINS),
        description="Origins echoed back in CORS responses",
    )

    # Providers
    video_provider: str = Field(
        default="stub",
        description="Video generation provider (stub, hailuoai)",
    )
    text_provider: str = Field(
        default="stub",
        description="Text generation provider for blogs and social posts (stub, openai)",
    )
    audio_provider: str = Field(
        default="stub",
        description="Audio generation provider (stub, minimax)",
    )

    # API Keys (optional, for real providers)
    openai_api_key: str | None = Field(default=None, description="OpenAI API key")
    openai_model: str = Field(
        default="gpt-4o-mini",
        description="OpenAI model for text generation",
    )
    hailuoai_api_key: str | None = Field(default=None, description="HailuoAI API key")
    hailuoai_base_url: str = Field(
        default="https://api.hailuoai.com/v1",
        description="HailuoAI API base URL",
    )
    hailuoai_model: str = Field(default="hailuo-02", description="HailuoAI video model")
    hailuoai_webhook_url: str | None = Field(
        default=None, description="Webhook URL HailuoAI calls on completion"
    )
    minimax_api_key: str | None = Field(default=None, description="MiniMax API key")
    stripe_secret_key: str | None = Field(default=None, description="Stripe secret key")
    stripe_price_id_starter: str | None = Field(default=None, description="Stripe price for STARTER")
    stripe_price_id_professional: str | None = Field(
        default=None, description="Stripe price for PROFESSIONAL"
    )
    stripe_price_id_enterprise: str | None = Field(
        default=None, description="Stripe price for ENTERPRISE"
    )

    # Job polling (client side)
    api_base_url: str = Field(
        default="http://localhost:3001/api/v1",
        description="Base URL the Python client talks to",
    )
    job_poll_interval_seconds: float = Field(
        default=2.0,
        description="Seconds between job status fetches while a job is active",
    )
    poll_max_consecutive_failures: int | None = Field(
        default=None,
        description="Abort polling after this many failed fetches in a row (unset = never)",
    )
    poll_backoff_factor: float = Field(
        default=1.0,
        ge=1.0,
        description="Delay multiplier applied per consecutive failed fetch (1.0 = fixed)",
    )
    poll_max_interval_seconds: float = Field(
        default=30.0,
        description="Upper bound for the delay between failed fetches",
    )

    # Job execution (worker side)
    provider_poll_interval_seconds: float = Field(
        default=5.0,
        description="Seconds between vendor status checks for video jobs",
    )
    provider_max_poll_attempts: int = Field(
        default=120,
        description="Vendor status checks before a video job is failed as timed out",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()


# Convenience alias
settings = get_settings()
