"""
Application settings and configuration management.

This module handles environment variables, backend endpoints and the timing
constants of the wizard (debounce, auto-correction, progress sampling) using
Pydantic settings management for type safety and validation.

All durations are expressed in milliseconds.
"""

from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field, SecretStr, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from storewizard.utils.errors import ConfigurationError


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Sensitive values are stored as SecretStr to prevent accidental logging.
    Settings are validated on load and cached for performance.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
        populate_by_name=True,
    )

    # Application Configuration
    app_env: Literal["development", "staging", "production"] = Field(
        default="development",
        alias="APP_ENV"
    )
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        alias="LOG_LEVEL"
    )

    # Backend collaborators
    api_base_url: str = Field(default="http://localhost:3000", alias="API_BASE_URL")
    api_token: Optional[SecretStr] = Field(default=None, alias="API_TOKEN")
    request_timeout_seconds: int = Field(default=30, alias="REQUEST_TIMEOUT_SECONDS")
    preview_timeout_seconds: int = Field(default=15, alias="PREVIEW_TIMEOUT_SECONDS")
    generation_timeout_seconds: int = Field(default=180, alias="GENERATION_TIMEOUT_SECONDS")

    # Input timing
    validate_debounce_ms: float = Field(default=500, alias="VALIDATE_DEBOUNCE_MS")
    autocorrect_delay_ms: float = Field(default=2500, alias="AUTOCORRECT_DELAY_MS")

    # Progress timing
    progress_sample_interval_ms: float = Field(default=100, alias="PROGRESS_SAMPLE_INTERVAL_MS")
    completion_settle_ms: float = Field(default=1500, alias="COMPLETION_SETTLE_MS")

    # Generation
    default_language: str = Field(default="en", alias="DEFAULT_LANGUAGE")

    @field_validator("api_base_url")
    @classmethod
    def validate_api_base_url(cls, v: str) -> str:
        """Require an absolute http(s) base URL without trailing slash."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("API_BASE_URL must start with http:// or https://")
        return v.rstrip("/")

    @field_validator("default_language")
    @classmethod
    def validate_language(cls, v: str) -> str:
        """Validate ISO 639-1 language code."""
        v = v.strip().lower()
        if len(v) != 2 or not v.isalpha():
            raise ValueError(f"Invalid language code: {v!r}")
        return v

    @field_validator(
        "validate_debounce_ms",
        "autocorrect_delay_ms",
        "progress_sample_interval_ms",
        "completion_settle_ms",
    )
    @classmethod
    def validate_positive_duration(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("Durations must be positive")
        return v

    @model_validator(mode="after")
    def validate_timing_order(self) -> "Settings":
        """The user must see the pasted text before it gets cleaned up."""
        if self.autocorrect_delay_ms <= self.validate_debounce_ms:
            raise ValueError(
                "AUTOCORRECT_DELAY_MS must be longer than VALIDATE_DEBOUNCE_MS"
            )
        return self

    def get_auth_headers(self) -> dict[str, str]:
        """Headers sent to the backend collaborators."""
        if self.api_token:
            return {"Authorization": f"Bearer {self.api_token.get_secret_value()}"}
        return {}


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    try:
        return Settings()
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e
