"""Application configuration using Pydantic Settings."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
    )

    # Local metadata store (data sources + cache rows)
    DATABASE_URL: str = "sqlite:///metadata_explorer.db"

    # Metadata cache
    CACHE_TTL_HOURS: int = Field(24, ge=1)
    CACHE_PROPAGATE_WRITE_ERRORS: bool = True

    # Backend connectors
    CONNECT_TIMEOUT_SECONDS: int = 10
    KAFKA_REQUEST_TIMEOUT_SECONDS: float = 10.0
    KAFKA_CLIENT_ID: str = "metadata-explorer"
    REGISTRY_TIMEOUT_SECONDS: float = 10.0

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"
    LOG_MAX_BYTES: int = 10 * 1024 * 1024
    LOG_BACKUP_COUNT: int = 5

    # Application
    APP_NAME: str = "Metadata Explorer"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
