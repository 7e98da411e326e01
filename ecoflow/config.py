"""Application configuration utilities."""
from __future__ import annotations

from functools import lru_cache

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import ECOFLOW_BASE


class Settings(BaseSettings):
    """EcoFlow client settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    access_key: SecretStr = Field(..., alias="ECOFLOW_ACCESS_KEY")
    secret_key: SecretStr = Field(..., alias="ECOFLOW_SECRET_KEY")
    base_url: str = Field(ECOFLOW_BASE, alias="ECOFLOW_BASE_URL")
    timeout: float = Field(10.0, alias="ECOFLOW_TIMEOUT", gt=0)
    max_retries: int = Field(3, alias="ECOFLOW_MAX_RETRIES", ge=0)
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    @field_validator("base_url")
    @classmethod
    def _normalise_base_url(cls, value: str) -> str:
        candidate = value.strip().rstrip("/")
        if not candidate.startswith("https://"):
            raise ValueError("ECOFLOW_BASE_URL must be an https:// URL")
        return candidate

    @field_validator("log_level")
    @classmethod
    def _normalise_log_level(cls, value: str) -> str:
        return value.strip().upper() or "INFO"


@lru_cache
def get_settings() -> Settings:
    """Return cached Settings instance."""

    return Settings()  # type: ignore[call-arg]


__all__ = ["Settings", "get_settings"]
