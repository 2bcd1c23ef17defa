"""
Configuration Management for SpendWise

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Each external service gets its own settings group with an env prefix,
so a missing key shows up as a validation error naming the service.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class SupabaseSettings(BaseSettings):
    """Supabase (managed auth/database/storage backend) configuration."""

    model_config = SettingsConfigDict(
        env_prefix="SUPABASE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    url: str = Field(
        ...,
        description="Supabase project URL (https://<project>.supabase.co)"
    )
    service_key: str = Field(
        ...,
        description="Supabase service role key"
    )
    timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        le=60,
        description="Timeout for calls to the auth endpoint"
    )

    @field_validator("url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize the project URL so endpoint paths can be appended."""
        return v.rstrip("/")

    @property
    def auth_user_endpoint(self) -> str:
        """Endpoint that resolves an access token to a user."""
        return f"{self.url}/auth/v1/user"


class GeminiSettings(BaseSettings):
    """Gemini LLM configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GEMINI_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    api_key: str = Field(
        ...,
        description="Gemini API key"
    )
    model_name: str = Field(
        default="gemini-1.5-flash",
        description="Gemini model to use"
    )
    max_tokens: int = Field(
        default=1024,
        ge=100,
        le=8192,
        description="Maximum tokens in response"
    )
    temperature: float = Field(
        default=0.4,
        ge=0.0,
        le=1.0,
        description="Model temperature"
    )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    # HTTP server
    host: str = Field(
        default="0.0.0.0",
        description="Interface the server binds to"
    )
    port: int = Field(
        default=5000,
        ge=1,
        le=65535,
        description="Listening port"
    )
    allowed_origin: str = Field(
        default="http://localhost:3000",
        description="Origin allowed to make cross-origin requests"
    )

    # Insight tuning
    insight_top_categories: int = Field(
        default=3,
        ge=1,
        le=10,
        description="How many categories the insight ranking keeps"
    )
    max_prompt_transactions: int = Field(
        default=50,
        ge=0,
        le=500,
        description="Maximum raw transaction lines embedded in a prompt"
    )

    @property
    def is_production(self) -> bool:
        """Internal error detail is only exposed outside production."""
        return self.app_environment.lower() in ("production", "prod")


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Sub-settings are loaded lazily so a missing Gemini key
    # does not prevent the rest of the app from starting.

    @property
    def supabase(self) -> SupabaseSettings:
        return SupabaseSettings()

    @property
    def gemini(self) -> GeminiSettings:
        return GeminiSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def load_gemini_settings(settings: Optional[Settings] = None) -> Optional[GeminiSettings]:
    """Return Gemini settings, or None when no API key is configured."""
    try:
        return (settings or get_settings()).gemini
    except ValueError:
        return None


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    for name in ("supabase", "gemini", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except ValueError as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
