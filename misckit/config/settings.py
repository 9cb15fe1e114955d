"""
Library settings and configuration management.

This module defines the package settings using Pydantic Settings for type-safe
configuration management with environment variable support.
"""

from typing import Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Library settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_prefix="MISCKIT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # ============================================================================
    # LOGGING CONFIGURATION
    # ============================================================================

    log_level: str = Field(
        default="INFO",
        description="Logging level"
    )

    log_format: str = Field(
        default="text",
        description="Log format (json or text)"
    )

    log_file: Optional[str] = Field(
        default=None,
        description="Log file path (optional)"
    )

    # ============================================================================
    # RETRY CONFIGURATION
    # ============================================================================

    retry_init_delay: float = Field(
        default=0.5,
        ge=0.0,
        description="Delay in seconds before the first retry"
    )

    retry_max_delay: Optional[float] = Field(
        default=30.0,
        ge=0.0,
        description="Upper bound for a single retry delay in seconds"
    )

    retry_multiplier: float = Field(
        default=2.0,
        ge=1.0,
        description="Growth factor between consecutive retry delays"
    )

    retry_max_attempts: int = Field(
        default=3,
        ge=1,
        le=100,
        description="Maximum number of attempts for AsyncRetry"
    )

    # ============================================================================
    # RATE LIMIT CONFIGURATION
    # ============================================================================

    rate_limit_duration: float = Field(
        default=1.0,
        ge=0.0,
        description="Default minimum spacing in seconds between rate limited calls"
    )

    # ============================================================================
    # DEVELOPMENT SETTINGS
    # ============================================================================

    environment: str = Field(
        default="development",
        description="Environment (development, staging, production)"
    )

    debug: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    # ============================================================================
    # COMPUTED PROPERTIES
    # ============================================================================

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    # ============================================================================
    # VALIDATORS
    # ============================================================================

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v.upper()

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v):
        """Validate log format."""
        valid_formats = ["json", "text"]
        if v.lower() not in valid_formats:
            raise ValueError(f"Log format must be one of: {valid_formats}")
        return v.lower()

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v):
        """Validate environment."""
        valid_envs = ["development", "staging", "production"]
        if v.lower() not in valid_envs:
            raise ValueError(f"Environment must be one of: {valid_envs}")
        return v.lower()


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Get the shared settings instance."""
    return settings
