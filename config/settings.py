"""
Application settings loaded from environment variables.

Uses pydantic-settings for validation and type safety.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from functools import lru_cache


class Settings(BaseSettings):
    """
    Application settings.

    All values loaded from .env file or environment variables.
    Validation happens automatically on startup.
    """

    model_config = SettingsConfigDict(
        env_file=(".env", "../.env"),  # Check current dir, then parent
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"  # Ignore extra env vars
    )

    # ===================
    # SUPABASE
    # ===================
    supabase_url: str = Field(
        ...,
        description="Supabase project URL"
    )
    supabase_key: str = Field(
        ...,
        description="Supabase anon/public key"
    )

    # ===================
    # PRODUCTION RATES
    # ===================
    default_daily_rate: float = Field(
        default=100,
        gt=0,
        le=10000,
        description="kg/day used when neither fabric nor machine has a usable rate"
    )

    # ===================
    # CHANGEOVER (QALB) DURATIONS
    # ===================
    changeover_days_single: int = Field(
        default=2,
        ge=1,
        le=30,
        description="Changeover days for single jersey machines"
    )
    changeover_days_double: int = Field(
        default=4,
        ge=1,
        le=30,
        description="Changeover days for double jersey machines"
    )
    changeover_days_jacquard: int = Field(
        default=4,
        ge=1,
        le=30,
        description="Changeover days for jacquard machines"
    )
    changeover_days_default: int = Field(
        default=2,
        ge=1,
        le=30,
        description="Changeover days when machine type is not recognized"
    )

    # ===================
    # DYEHOUSE QUEUE
    # ===================
    dyeing_reference_stage: str = Field(
        default="DYEING",
        pattern="^(STORE_RAW|DYEING|FINISHING|STORE_FINISHED|RECEIVED)$",
        description="Batches past this stage no longer count as ahead in the queue"
    )

    # ===================
    # APP SETTINGS
    # ===================
    environment: str = Field(
        default="development",
        pattern="^(development|staging|production)$",
        description="Application environment"
    )
    debug: bool = Field(
        default=True,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Logging level"
    )
    api_host: str = Field(
        default="0.0.0.0",
        description="API host"
    )
    api_port: int = Field(
        default=8000,
        ge=1000,
        le=65535,
        description="API port"
    )
    cors_origins: list[str] = Field(
        default=["http://localhost:5173"],
        description="Planning board origins allowed to call the API (JSON list in env)"
    )

    # ===================
    # COMPUTED PROPERTIES
    # ===================
    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == "production"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload.

    Returns:
        Settings: Application settings

    Raises:
        ValidationError: If required env vars are missing or invalid
    """
    return Settings()


# For convenient imports: from config.settings import settings
settings = get_settings()
