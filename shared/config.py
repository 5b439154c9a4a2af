"""
Shared configuration management for the CRPT document client.
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


CRPT_DOCUMENTS_CREATE_URL = "https://ismp.crpt.ru/api/v3/lk/documents/create"


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="CRPT_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure log level is one the logging module understands."""
        valid = {"debug", "info", "warning", "error", "critical"}
        lower = v.lower()
        if lower not in valid:
            raise ValueError(f"log_level must be one of {sorted(valid)}")
        return lower


class CrptConfig(BaseConfig):
    """Settings for the document API client and its rate gate."""

    service_name: str = Field(default="crpt")

    # Endpoint
    api_url: str = Field(default=CRPT_DOCUMENTS_CREATE_URL)
    timeout_seconds: float = Field(default=10.0, gt=0)

    # TLS verification is on unless explicitly disabled
    verify_tls: bool = Field(default=True)

    # Rate limiting
    request_limit: int = Field(default=10, ge=1)
    window_seconds: float = Field(default=1.0, gt=0)


@lru_cache
def get_config() -> CrptConfig:
    """Get cached client configuration."""
    return CrptConfig()
