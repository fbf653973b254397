"""
Configuration settings for ElProfessor.

This module provides configuration management using Pydantic settings
with support for environment variables and .env files.
"""

from typing import Any, Dict, Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..core.client.retry import RetryConfig
from .runtime import RuntimeEnvironment


class ElProfessorSettings(BaseSettings):
    """
    Main configuration settings for ElProfessor.

    Settings are loaded from multiple sources in order of preference:
    1. Environment variables (GEMINI_API_KEY, GEMINI_MODEL, LOG_LEVEL, ...)
    2. .env file in the working directory
    3. Default values
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # API Configuration
    gemini_api_key: Optional[str] = Field(
        default=None,
        description="Gemini API key"
    )

    gemini_model: str = Field(
        default="gemini-2.5-pro",
        description="Gemini model to use"
    )

    request_timeout_ms: int = Field(
        default=120000,
        description="Deadline for a single generation request in milliseconds",
        ge=0
    )

    # Retry Configuration
    retry_max_attempts: int = Field(
        default=3,
        description="Maximum attempts per network call",
        ge=1
    )

    retry_base_delay_ms: int = Field(
        default=1000,
        description="Delay before the first retry in milliseconds",
        ge=0
    )

    retry_max_delay_ms: int = Field(
        default=10000,
        description="Upper bound for a single retry delay in milliseconds",
        ge=0
    )

    # Runtime Configuration
    runtime_environment: Optional[RuntimeEnvironment] = Field(
        default=None,
        alias="el_professor_runtime",
        description="Force the runtime environment instead of detecting it"
    )

    # Memory Configuration
    history_limit: int = Field(
        default=20,
        description="Maximum number of conversation messages to keep",
        gt=0
    )

    # Logging Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level"
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper == "WARN":
            v_upper = "WARNING"
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level '{v}'. Valid levels: {', '.join(sorted(valid_levels))}")
        return v_upper

    @model_validator(mode="after")
    def validate_retry_delays(self) -> "ElProfessorSettings":
        """Retry delay cap must not be below the base delay."""
        if self.retry_max_delay_ms < self.retry_base_delay_ms:
            raise ValueError("retry_max_delay_ms must be >= retry_base_delay_ms")
        return self

    @property
    def is_configured(self) -> bool:
        """Check if an API key is available."""
        return bool(self.gemini_api_key)

    def retry_config(self) -> RetryConfig:
        """Retry configuration derived from these settings."""
        return RetryConfig(
            max_attempts=self.retry_max_attempts,
            base_delay_ms=self.retry_base_delay_ms,
            max_delay_ms=self.retry_max_delay_ms,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert settings to dictionary, excluding sensitive data."""
        data = self.model_dump()
        if data.get("gemini_api_key"):
            data["gemini_api_key"] = "***masked***"
        if data.get("runtime_environment"):
            data["runtime_environment"] = data["runtime_environment"].value
        return data


def get_settings(**overrides: Any) -> ElProfessorSettings:
    """Get the current ElProfessor settings."""
    return ElProfessorSettings(**overrides)
