"""
Configuration Management

Uses Pydantic BaseSettings to load configuration from environment variables.
All settings can be overridden via .env file or environment variables.

Environment Variables:
    REDIS_URL: Redis connection string (chat history store)
    GROQ_API_KEY: Primary inference provider credential
    MISTRAL_API_KEY: Secondary inference provider credential (optional)
    ANTHROPIC_API_KEY: Secondary provider credential when Mistral is unset (optional)
    CAL_API_KEY: Cal.com credential for availability/booking
    APP_ENV: Environment name (development/staging/production)
    DEBUG: Enable debug mode (default: False)
"""

from functools import lru_cache
from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Redis Configuration
    redis_url: str = "redis://localhost:6379/0"
    """Redis connection URL.

    Format: redis://host:port/db
    Example: redis://localhost:6379/0

    Used as the chat history store.
    """

    # Chat History
    history_key_prefix: str = "chat:"
    """Key prefix for stored histories. A session lives at chat:<sessionId>."""

    history_ttl_seconds: int = 86400
    """History TTL in seconds (default: 24 hours from the last write)."""

    history_window_messages: int = 0
    """Maximum history messages sent to the model per turn.

    0 means unbounded: every stored turn is replayed. The stored history
    itself is never trimmed; it only expires with the TTL.
    """

    default_session_id: str = "default"
    """Session used when the caller does not supply one."""

    default_timezone: str = "UTC"
    """Time zone used when the caller does not supply one."""

    # Primary inference provider (Groq, OpenAI-compatible)
    groq_api_key: Optional[str] = None
    groq_model: str = "llama3-70b-8192"
    groq_base_url: str = "https://api.groq.com/openai/v1"

    # Secondary inference provider (Mistral, OpenAI-compatible)
    mistral_api_key: Optional[str] = None
    mistral_model: str = "mistral-small-latest"
    mistral_base_url: str = "https://api.mistral.ai/v1"

    # Alternate secondary inference provider (Anthropic), used when Mistral is unset
    anthropic_api_key: Optional[str] = None
    anthropic_model: str = "claude-3-5-haiku-latest"

    # Model parameters shared by every provider
    inference_temperature: float = 0.7
    """Sampling temperature. Moderate, so replies stay on-schema."""

    inference_max_tokens: int = 1024
    """Maximum output tokens. Large enough to carry an action payload."""

    inference_timeout_seconds: float = 30.0
    """Per-provider timeout. A timeout counts as a provider failure."""

    # Calendar provider (Cal.com)
    cal_api_key: Optional[str] = None
    cal_base_url: str = "https://api.cal.com/v1"
    cal_event_type_id: Optional[int] = None
    """Cal.com event type that bookings and availability lookups target."""

    # Application Environment
    app_env: Literal["development", "staging", "production"] = "development"
    """Current application environment.

    Options:
    - development: Local development, verbose errors, docs enabled
    - staging: Pre-production testing environment
    - production: Live production environment, minimal logging
    """

    debug: bool = False
    """Enable debug mode (DEBUG log level, request timings)."""

    # Application Configuration
    app_name: str = "zero-cost-ai-scheduler"
    """Application name."""

    host: str = "0.0.0.0"
    """Host to bind the application server."""

    port: int = 8000
    """Port to bind the application server."""

    # CORS Configuration
    cors_origins: str = "http://localhost:3000"
    """Comma-separated list of allowed CORS origins."""

    # Pydantic configuration
    model_config = SettingsConfigDict(
        env_file=".env",  # Load from .env file if it exists
        env_file_encoding="utf-8",
        case_sensitive=False,  # Allow GROQ_API_KEY or groq_api_key
        extra="ignore",  # Ignore extra environment variables
        env_ignore_empty=True,  # Treat KEY= as unset
    )

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.app_env == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.app_env == "development"

    @property
    def cors_origins_list(self) -> list[str]:
        """Split cors_origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",")]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Uses lru_cache to ensure settings are loaded only once and reused
    across the application.

    Returns:
        Settings: Cached settings instance

    Example:
        >>> from scheduler.config import get_settings
        >>> settings = get_settings()
        >>> print(settings.history_ttl_seconds)
        86400
    """
    return Settings()


# Module-level settings instance for easy imports
settings = get_settings()
