# src/jsonrates/config/settings.py
"""
Settings - Pydantic-based Configuration Management

Provides centralized configuration management using Pydantic Settings.
Every field has a default, so importing the package never requires an
environment; a blank API key is only reported when a rate is fetched.

Files that USE this module:
- jsonrates.app (builds the rate cache from settings)
- jsonrates.adapters.providers.jsonrates (service URL and HTTP timeout defaults)

Files that this module USES:
- jsonrates.shared.validators (validate_api_key for logging a blank key)
"""

from __future__ import annotations  # Enable postponed evaluation of annotations

import logging
from typing import Optional  # Type hints for optional values

from pydantic import Field, field_validator  # Data validation and field configuration
from pydantic_settings import BaseSettings, SettingsConfigDict  # Settings management with Pydantic

from jsonrates.shared.validators import validate_api_key

log = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Rate cache settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # --- jsonrates.com API ---
    api_key: str = Field(default="", alias="JSONRATES_API_KEY")
    service_url: str = Field(default="http://jsonrates.com/get", alias="JSONRATES_URL")

    # --- HTTP Settings ---
    http_timeout_seconds: int = Field(default=10, alias="HTTP_TIMEOUT_SECONDS", ge=1, le=60)

    # --- Cache Settings ---
    # None disables the table-wide expiry of the straight policy
    ttl_in_seconds: Optional[int] = Field(default=None, alias="RATES_TTL_SECONDS", ge=0)
    rates_careful: bool = Field(default=False, alias="RATES_CAREFUL")

    # --- Logging ---
    log_file: Optional[str] = Field(default=None, alias="LOG_FILE")
    log_dir: Optional[str] = Field(default=None, alias="LOG_DIR")
    log_stdout: bool = Field(default=True, alias="JSONRATES_LOG_STDOUT")
    log_max_bytes: int = Field(default=10 * 1024 * 1024, alias="LOG_MAX_BYTES")  # 10MB
    log_backup_count: int = Field(default=5, alias="LOG_BACKUP_COUNT")

    @field_validator("api_key")
    @classmethod
    def strip_api_key(cls, v: str) -> str:
        """Strip surrounding whitespace; a blank key is allowed until first use."""
        v = (v or "").strip()
        if not validate_api_key(v):
            log.debug("JSONRATES_API_KEY is blank; rate fetches will fail")
        return v


# Global settings instance
settings = Settings()
