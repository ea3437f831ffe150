"""Configuration system for landvalue.

Uses pydantic-settings to load configuration from environment variables
and .env files with defaults matching the land-listing backend.
"""

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings can be overridden via environment variables or .env file.
    Environment variables are prefixed with LANDVALUE_ (e.g., LANDVALUE_RETRY_DELAY).
    The backend URL is also read from a bare API_BASE_URL entry.
    """

    model_config = SettingsConfigDict(
        env_prefix="LANDVALUE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Backend
    api_base_url: str = Field(
        default="http://192.168.1.119:5000/api",
        validation_alias=AliasChoices("LANDVALUE_API_BASE_URL", "API_BASE_URL"),
        description="Base URL of the land listing backend",
    )
    request_timeout: float = Field(
        default=30.0,
        gt=0,
        description="HTTP request timeout in seconds",
    )

    # Nearby search
    default_radius: float = Field(
        default=5000,
        gt=0,
        description="Initial search radius in meters",
    )
    min_radius: float = Field(
        default=1000,
        gt=0,
        description="Smallest radius a caller may request",
    )
    max_radius: float = Field(
        default=10000,
        gt=0,
        description="Largest radius a caller may request",
    )
    default_limit: int = Field(
        default=20,
        ge=1,
        description="Maximum listings requested per nearby fetch",
    )

    # Empty-result retry
    max_fetch_attempts: int = Field(
        default=3,
        ge=1,
        description="Total nearby fetch attempts per query while results are empty",
    )
    retry_delay: float = Field(
        default=2.0,
        ge=0,
        description="Seconds to wait before retrying an empty nearby fetch",
    )

    # Fixed device position (used by StaticLocationProvider)
    latitude: float | None = Field(
        default=None,
        ge=-90,
        le=90,
        description="Fixed latitude when no device location is available",
    )
    longitude: float | None = Field(
        default=None,
        ge=-180,
        le=180,
        description="Fixed longitude when no device location is available",
    )


# Singleton instance for easy import
config = Settings()
