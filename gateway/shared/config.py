"""Configuration management using pydantic-settings."""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Gateway settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        case_sensitive=False,
        extra="ignore",
    )

    upstream_host: str = Field(
        "https://httpbin.org",
        description="Scheme and host every request is forwarded to",
    )
    read_timeout: float = Field(5.0, description="Upstream read timeout in seconds", gt=0)
    write_timeout: float = Field(5.0, description="Upstream write timeout in seconds", gt=0)
    host: str = Field("0.0.0.0", description="Address the gateway binds to")
    port: int = Field(8000, description="Port the gateway binds to", ge=1, le=65535)
    log_level: str = Field("INFO", description="Logging level")

    @field_validator("upstream_host")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")


@lru_cache
def get_settings() -> Settings:
    """Get the application settings instance."""
    return Settings()
