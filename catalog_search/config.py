"""Application configuration using Pydantic Settings."""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Settings(BaseSettings):
    """Catalog search settings loaded from environment variables.

    All settings are validated when first accessed. Invalid values fail
    fast with clear error messages.
    """

    # Stub API Settings
    api_title: str = Field(default="Data Catalog Search API", description="API title")
    api_version: str = Field(default="1.0.0", description="API version")

    # Catalog Backend Settings
    api_base_url: str = Field(
        default="http://localhost:8000",
        min_length=1,
        description="Base URL of the catalog backend",
    )
    request_timeout: float = Field(
        default=10.0,
        gt=0.0,
        description="Transport timeout in seconds for catalog requests",
    )

    # Search Settings
    search_page_size: int = Field(
        default=50,
        ge=1,
        le=500,
        description="Number of results per search page",
    )

    # Suggestion Settings
    suggestion_debounce_ms: int = Field(
        default=300,
        ge=0,
        le=5000,
        description="Debounce window for suggestion lookups in milliseconds",
    )
    suggestion_min_length: int = Field(
        default=2,
        ge=0,
        description="Suggestions are fetched only when trimmed input is longer than this",
    )
    suggestion_limit: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Maximum number of suggestions requested",
    )

    # Query Execution Settings
    query_timeout_ms: int = Field(
        default=30_000,
        ge=1,
        description="Timeout budget for ad-hoc query execution in milliseconds",
    )
    slow_query_threshold_ms: int = Field(
        default=5_000,
        ge=0,
        description="Query executions slower than this are logged as slow",
    )

    # Logging
    log_level: str = Field(default="INFO", description="Root log level name")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {list(LOG_LEVELS)}, got '{v}'")
        return level

    @field_validator("api_base_url")
    @classmethod
    def validate_api_base_url(cls, v: str) -> str:
        """Ensure the base URL is absolute and has no trailing slash."""
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError(
                f"api_base_url must start with http:// or https://, got '{v}'"
            )
        return v.rstrip("/")

    @property
    def suggestion_debounce(self) -> float:
        """Debounce window in seconds."""
        return self.suggestion_debounce_ms / 1000

    @property
    def query_timeout(self) -> float:
        """Query execution budget in seconds."""
        return self.query_timeout_ms / 1000


_settings: Settings | None = None


def get_settings() -> Settings:
    """Return the process-wide settings, loading them on first use.

    Raises:
        pydantic.ValidationError: If the environment holds invalid values
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reload_settings() -> Settings:
    """Re-read the environment and replace the cached settings."""
    global _settings
    _settings = Settings()
    return _settings
