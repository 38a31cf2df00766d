"""
UniHTML Service Configuration Module

Centralized configuration with Pydantic validation.
All environment variables are validated at startup to catch misconfigurations early.
"""

import logging
from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_TIMEOUT_MS = 30000


class ServiceSettings(BaseSettings):
    """
    Service configuration with validation.

    All settings can be overridden via environment variables
    (PORT, DEFAULT_TIMEOUT_MS, BROWSER_SOURCE, ...).
    """

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=False)

    # === Server ===
    host: str = Field(default="0.0.0.0", description="Interface to bind")
    port: int = Field(default=8080, ge=1, le=65535, description="HTTP port")

    # === Conversion ===
    default_timeout_ms: int = Field(
        default=DEFAULT_TIMEOUT_MS,
        ge=1,
        description="Deadline used when a request carries no positive timeoutDuration"
    )

    # === Browser ===
    browser_headless: bool = Field(default=True, description="Run Chromium headless")
    browser_source: str = Field(
        default="bundled",
        description="'bundled' uses a Chromium shipped next to the service, "
                    "'playwright' uses the Playwright-managed Chromium"
    )
    browser_dir: Optional[str] = Field(
        default=None,
        description="Base directory holding bin/chrome; defaults to the interpreter directory"
    )

    # === Logging ===
    log_level: str = Field(default="INFO", description="Root log level")

    @field_validator("browser_source")
    @classmethod
    def validate_browser_source(cls, v: str) -> str:
        """Validate browser source is a known value."""
        allowed = {"bundled", "playwright"}
        v_lower = v.lower()
        if v_lower not in allowed:
            raise ValueError(f"browser_source must be one of: {', '.join(sorted(allowed))}")
        return v_lower

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is one the logging module knows."""
        v_upper = v.upper()
        if v_upper not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log level: {v}")
        return v_upper


@lru_cache()
def get_settings() -> ServiceSettings:
    """
    Get cached settings instance.

    Settings are loaded once and cached. Use this function to access
    configuration throughout the app.
    """
    return ServiceSettings()
