"""Application configuration module.

This module contains settings for the shortlink service,
loaded from environment variables with appropriate defaults.
"""

from __future__ import annotations

from typing import Optional, List, Union, Any
from enum import Enum
import logging

from pydantic import Field, field_validator, computed_field, ValidationInfo
from pydantic_settings import BaseSettings, SettingsConfigDict

# Set up basic logger for config module
logger = logging.getLogger(__name__)


class EnvironmentType(str, Enum):
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TESTING = "testing"


class ShortlinkPolicy(str, Enum):
    """How many times a token may be resolved."""
    MULTI_USE = "multi_use"
    SINGLE_USE = "single_use"


class Settings(BaseSettings):
    """Application settings loaded from environment variables with defaults.

    Settings are loaded from environment variables, with fallback to
    values in .env file if present, and finally to the default values
    specified here.
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Environment setting
    ENVIRONMENT: EnvironmentType = EnvironmentType.DEVELOPMENT

    # App Information
    APP_NAME: str = "Newsletter Shortlinks"
    APP_VERSION: str = "0.1.0"
    APP_DESCRIPTION: str = "Tiered shortlink tokens and click relay for newsletter analytics"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8080
    DEBUG: bool = False

    # CORS settings (the newsletter front-end runs as a Google Apps Script)
    CORS_ORIGINS: Union[List[str], str] = ["https://script.google.com"]

    # Shortlink configuration
    SHORTLINK_POLICY: ShortlinkPolicy = ShortlinkPolicy.MULTI_USE
    SHORTLINK_TOKEN_BYTES: int = 6  # 12 hex characters
    SHORTLINK_TOKEN_ATTEMPTS: int = 3  # Regenerations allowed on token conflict
    SHORTLINK_MIN_TTL_SECONDS: int = 5
    SHORTLINK_MAX_TTL_SECONDS: int = 3600
    SHORTLINK_DEFAULT_TTL_SECONDS: Optional[int] = None  # None means never expire
    SHORTLINK_PATH_PREFIX: str = "/s"

    # Volatile tier (Redis). Absent URL means the tier is skipped entirely.
    REDIS_URL: Optional[str] = None
    REDIS_KEY_PREFIX: str = "shortlink"
    REDIS_MAX_CONNECTIONS: int = 20
    VOLATILE_TIMEOUT_SECONDS: float = 0.5
    VOLATILE_EXPIRY_GRACE_SECONDS: int = 300  # Keys outlive expires_at so reads can report Expired

    # Durable tier and analytics sink (SQL database)
    DURABLE_TIER_ENABLED: bool = True
    DURABLE_TIMEOUT_SECONDS: float = 2.0
    DATABASE_URL: Optional[str] = None
    DB_CREATE_TABLES: bool = True  # Create tables on startup
    DB_ECHO: bool = False
    POSTGRES_SERVER: str = Field(default="localhost")
    POSTGRES_PORT: int = Field(default=5432)
    POSTGRES_USER: str = Field(default="postgres")
    POSTGRES_PASSWORD: str = Field(default="postgres")
    POSTGRES_DB: str = Field(default="newsletter_analytics")
    POSTGRES_POOL_SIZE: int = 20
    POSTGRES_POOL_MAX_OVERFLOW: int = 10
    POSTGRES_POOL_TIMEOUT: int = 30
    POSTGRES_POOL_RECYCLE: int = 300

    # Click relay
    RELAY_SOURCE_TAG: str = "shortlink"
    RELAY_TIMEOUT_SECONDS: float = 5.0

    # Identity mapping signature secret. Absent means /map refuses all writes.
    MAP_SHARED_SECRET: Optional[str] = None
    MAP_SIGNATURE_HEADER: str = "X-Signature"

    # Memory tier sweep
    SWEEP_INTERVAL_SECONDS: int = 30
    SWEEP_BATCH_SIZE: int = 500  # Entries inspected between event loop yields
    SWEEP_ON_STARTUP: bool = False

    # Scheduler settings
    SCHEDULER_JOB_COALESCE: bool = True  # Combine multiple pending executions of a job into a single execution
    SCHEDULER_JOB_MAX_INSTANCES: int = 1  # Maximum instances of the same job to run concurrently
    SCHEDULER_MISFIRE_GRACE_TIME: int = 60  # Seconds to still run misfired job after scheduled time

    # Logging configuration
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"
    LOG_FILENAME: str = "app.log"
    LOG_TO_FILE: bool = True
    LOG_ROTATION: str = "10 MB"
    LOG_RETENTION: str = "7 days"
    LOG_FORMAT: str = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level} | {message}"
    LOG_JSON: bool = True
    REQUEST_LOGGING_ENABLED: bool = True  # Enable request logging middleware

    # Validators
    @field_validator("SHORTLINK_DEFAULT_TTL_SECONDS", mode="before")
    def validate_default_ttl(cls, v: Any) -> Optional[int]:
        """Convert empty string to None for SHORTLINK_DEFAULT_TTL_SECONDS."""
        if v == "" or v is None:
            return None
        try:
            return int(v)
        except (ValueError, TypeError):
            return None

    @field_validator("REDIS_URL", "DATABASE_URL", "MAP_SHARED_SECRET", mode="before")
    def validate_optional_string(cls, v: Any) -> Optional[str]:
        """Treat blank values as unset."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("SHORTLINK_MAX_TTL_SECONDS")
    def validate_ttl_bounds(cls, v: int, info: ValidationInfo) -> int:
        minimum = info.data.get("SHORTLINK_MIN_TTL_SECONDS", 0)
        if v < minimum:
            raise ValueError("SHORTLINK_MAX_TTL_SECONDS must not be below SHORTLINK_MIN_TTL_SECONDS")
        return v

    @field_validator("MAP_SHARED_SECRET")
    def warn_missing_secret(cls, v: Optional[str], info: ValidationInfo) -> Optional[str]:
        env_value = info.data.get("ENVIRONMENT", EnvironmentType.DEVELOPMENT)
        if v is None and env_value == EnvironmentType.PRODUCTION:
            # Only warn, the mapping endpoint refuses writes on its own
            logger.warning("MAP_SHARED_SECRET is not set; /map will refuse all writes.")
        return v

    @field_validator("CORS_ORIGINS")
    def validate_list_or_string(cls, v: Union[List[str], str]) -> List[str]:
        """Convert comma-separated string to list if needed."""
        if isinstance(v, str):
            if not v.strip():
                return []
            if v == "*":
                return ["*"]
            return [item.strip() for item in v.split(",")]
        return v

    # Computed fields
    @computed_field
    def SQLALCHEMY_DATABASE_URI(self) -> str:
        """Use DATABASE_URL if given, otherwise build the PostgreSQL URI."""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

    @property
    def volatile_tier_enabled(self) -> bool:
        return self.REDIS_URL is not None


# Create a singleton instance of the settings
settings = Settings()
