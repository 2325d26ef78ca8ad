"""
avrocheck.tier0_core.config
────────────────────────────
Typed configuration with env layering. Reads from .env → environment
variables. All fields are typed via Pydantic.

Minimal stack: pydantic-settings + python-dotenv

Every component takes a ``ValidatorConfig`` in its constructor; ``get_config()``
is only the environment-derived default, so tests and production can run
independently configured instances side by side.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_REGISTRY_URL = "http://localhost:8081/schemas/ids"


class ValidatorConfig(BaseSettings):
    """
    Typed avrocheck configuration.
    All env vars are prefixed with AVROCHECK_.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
        frozen=True,
    )

    # ── Registry ──────────────────────────────────────────────────────────────
    registry_url: str = Field(
        default=DEFAULT_REGISTRY_URL, alias="AVROCHECK_REGISTRY_URL"
    )
    fetch_timeout: float = Field(default=10.0, gt=0, alias="AVROCHECK_FETCH_TIMEOUT")

    # ── Retry (applied by the cache around a single shared fetch) ────────────
    fetch_attempts: int = Field(default=1, ge=1, alias="AVROCHECK_FETCH_ATTEMPTS")
    retry_min_wait: float = Field(default=0.1, ge=0, alias="AVROCHECK_RETRY_MIN_WAIT")
    retry_max_wait: float = Field(default=2.0, ge=0, alias="AVROCHECK_RETRY_MAX_WAIT")

    # ── Cache ─────────────────────────────────────────────────────────────────
    cache_max_entries: int | None = Field(
        default=None, ge=1, alias="AVROCHECK_CACHE_MAX_ENTRIES"
    )

    # ── Validation ────────────────────────────────────────────────────────────
    extra_fields: Literal["forbid", "ignore"] = Field(
        default="forbid", alias="AVROCHECK_EXTRA_FIELDS"
    )

    # ── Logging ───────────────────────────────────────────────────────────────
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", alias="AVROCHECK_LOG_LEVEL"
    )
    log_format: Literal["json", "console"] = Field(
        default="json", alias="AVROCHECK_LOG_FORMAT"
    )

    @field_validator("registry_url")
    @classmethod
    def validate_registry_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"registry_url must be an http(s) URL, got {v!r}")
        return v.rstrip("/")

    @field_validator("extra_fields", "log_format", mode="before")
    @classmethod
    def lowercase(cls, v: object) -> object:
        return v.lower() if isinstance(v, str) else v

    @field_validator("log_level", mode="before")
    @classmethod
    def uppercase(cls, v: object) -> object:
        return v.upper() if isinstance(v, str) else v

    @model_validator(mode="after")
    def check_retry_window(self) -> "ValidatorConfig":
        if self.retry_max_wait < self.retry_min_wait:
            raise ValueError("retry_max_wait must be >= retry_min_wait")
        return self


@lru_cache(maxsize=1)
def get_config() -> ValidatorConfig:
    """
    Return the environment-derived default config. Cached after first call.
    Call _reset_config() in tests to pick up new env vars.
    """
    return ValidatorConfig()


def _reset_config() -> None:
    """For tests — clear the config cache."""
    get_config.cache_clear()
