"""Application settings using Pydantic Settings.

Centralized configuration for the quote pricing portal. Every value can be
set through a ``QUOTE_``-prefixed environment variable or a ``.env`` file.
Pricing constants themselves are not settings; they live in the versioned
YAML tables under ``config/pricing_parameters``.
"""

import logging
from functools import lru_cache
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_prefix="QUOTE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application info
    name: str = Field(default="Quote Pricing Portal", description="Application name")
    version: str = Field(default="1.0.0", description="Application version")
    debug: bool = Field(default=False, description="Debug mode")
    environment: str = Field(default="development", description="Environment name")

    # Pricing
    pricing_table_version: str = Field(
        default="v1",
        description="Version of the pricing tables file to load",
    )

    # Override approval workflow
    approval_code_ttl_minutes: int = Field(
        default=60, ge=1, description="Minutes before an approval code expires"
    )
    approval_code_length: int = Field(
        default=4, ge=4, le=8, description="Digits in a generated approval code"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Root log level")
    log_json: bool = Field(default=False, description="Emit JSON log lines")

    # CORS
    cors_origins: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:5000"],
        description="Allowed CORS origins",
    )

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        level = value.upper().strip()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {value}")
        return level

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment in ("production", "prod", "staging")


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings instance.

    Returns:
        Settings: Cached settings loaded from environment.
    """
    return Settings()
