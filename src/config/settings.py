# src/config/settings.py — v1
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for all deployment-specific settings.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Remote document service ===
    ecfr_base_url: str = "https://www.ecfr.gov"
    request_timeout_s: float = 30.0
    request_delay_s: float = 1.0

    # === Processing ===
    sample_text_chars: int = 200
    agency_scope: Literal["title", "chapter"] = "title"
    fingerprint_algorithm: Literal["rolling", "sha256"] = "rolling"

    # === Cache ===
    cache_file: Path = Path("~/.ecfrcount/cache/word-counts.json")
    cache_ttl_hours: float = 24.0
    cache_flush_policy: Literal["every_n_writes", "interval", "on_close"] = (
        "every_n_writes"
    )
    cache_flush_every: int = 10
    cache_flush_interval_s: float = 300.0

    # === Organization directory ===
    directory_file: Path = Path("agencies.json")

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "text"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 5

    # --- Validators ---

    @field_validator("request_timeout_s", "cache_ttl_hours")
    @classmethod
    def validate_positive(cls, v: float) -> float:  # noqa: N805
        if v <= 0:
            raise ValueError("must be > 0")
        return v

    @field_validator("request_delay_s")
    @classmethod
    def validate_delay(cls, v: float) -> float:  # noqa: N805
        if v < 0:
            raise ValueError("request_delay_s must be >= 0")
        return v

    @field_validator("cache_flush_every", "sample_text_chars")
    @classmethod
    def validate_positive_int(cls, v: int) -> int:  # noqa: N805
        if v < 1:
            raise ValueError("must be >= 1")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        if self.cache_flush_policy == "interval" and self.cache_flush_interval_s <= 0:
            errors.append(
                "CACHE_FLUSH_POLICY=interval requires CACHE_FLUSH_INTERVAL_S > 0"
            )

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    @property
    def cache_ttl_seconds(self) -> float:
        return self.cache_ttl_hours * 3600.0


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or one-off runs).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
