"""Application settings using pydantic-settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """CryptoTracker configuration from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore extra env vars
    )

    # Application
    app_name: str = Field(default="CryptoTracker", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", description="Minimum log level"
    )

    # Server
    host: str = Field(default="127.0.0.1", description="Server host")
    port: int = Field(default=8080, ge=1, le=65535, description="Server port")
    cors_origins: list[str] = Field(
        default=["*"], description="Origins allowed by the CORS middleware"
    )

    # Database - Supabase
    supabase_url: str = Field(description="Supabase project URL")
    supabase_key: SecretStr = Field(description="Supabase API key")
    postgres_schema: str = Field(
        default="public", description="PostgreSQL schema for the cache tables"
    )
    supabase_connect_attempts: int = Field(
        default=3, ge=1, le=10, description="Connection attempts at startup"
    )

    # Upstream market data - CoinGecko
    coingecko_api_url: str = Field(
        default="https://api.coingecko.com/api/v3",
        description="CoinGecko API base URL",
    )
    coingecko_api_key: SecretStr = Field(
        default=SecretStr(""), description="Optional CoinGecko demo API key"
    )
    coingecko_timeout: float = Field(
        default=10.0, gt=0, description="Per-call upstream timeout in seconds"
    )
    coingecko_max_retries: int = Field(
        default=1, ge=1, le=5, description="Attempts per upstream call (1 = no retry)"
    )

    # Rate gate
    min_request_interval_seconds: float = Field(
        default=2.0, ge=0, description="Minimum spacing between upstream calls"
    )
    rate_limit_backoff_seconds: float = Field(
        default=60.0, ge=0, description="Backoff after the provider throttles us"
    )
    top_tokens_limit: int = Field(
        default=100, ge=1, le=250, description="Tokens requested per list refresh"
    )

    # Circuit Breaker
    circuit_breaker_threshold: int = Field(
        default=5, ge=1, description="Failures before circuit opens"
    )
    circuit_breaker_cooldown: int = Field(
        default=30, ge=1, description="Seconds before half-open"
    )

    @field_validator("supabase_url", "coingecko_api_url")
    @classmethod
    def validate_http_url(cls, v: str) -> str:
        """Validate URL format."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("URL must start with http:// or https://")
        return v.rstrip("/")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()  # type: ignore[call-arg]  # Values from env
