from functools import lru_cache
from threading import Lock
from typing import Optional
import structlog
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import model_validator

# Environment Constants
ENV_PRODUCTION = "production"
ENV_STAGING = "staging"
ENV_DEVELOPMENT = "development"

DEFAULT_ARM_BASE_URL = "https://management.azure.com"


@lru_cache
def get_settings() -> "Settings":
    """Returns a singleton instance of the client settings."""
    return Settings()


_settings_reload_lock = Lock()


def reload_settings_from_environment() -> "Settings":
    """
    Atomically rebuild and replace cached settings from environment values.

    This avoids mutating the cached singleton instance in-place.
    """
    logger = structlog.get_logger()
    with _settings_reload_lock:
        logger.info("settings_reload_started")
        get_settings.cache_clear()
        refreshed = get_settings()
        logger.info("settings_reload_completed")
        return refreshed


class Settings(BaseSettings):
    """
    Configuration for the resource manager client.
    Uses Pydantic-Settings for environment variable parsing from .env.
    """

    APP_NAME: str = "armclient"
    VERSION: str = "0.1.0"
    DEBUG: bool = False
    # ENVIRONMENT options: development, staging, production
    ENVIRONMENT: str = ENV_DEVELOPMENT
    TESTING: bool = False
    LOG_LEVEL: str = "INFO"
    OTEL_EXPORTER_OTLP_ENDPOINT: Optional[str] = None
    OTEL_EXPORTER_OTLP_INSECURE: bool = False

    # Azure Resource Manager
    ARM_BASE_URL: str = DEFAULT_ARM_BASE_URL
    ARM_CREDENTIAL_SCOPE: str = f"{DEFAULT_ARM_BASE_URL}/.default"
    ARM_DEPENDENCY_NAME: str = "ARM"
    # Hard stop for resource / resource group enumerations
    ARM_MAX_RESOURCES_TO_ENUMERATE: int = 100
    # Hard stop for raw ARM queries following nextLink
    ARM_QUERY_MAX_ITEMS: int = 5000
    ARM_HTTP_TIMEOUT_SECONDS: float = 300.0
    # Provider namespace -> API version used instead of the latest one
    ARM_PROVIDER_DEFAULT_API_VERSIONS: dict[str, str] = {}

    # Retry policy for ARM calls (retries after the first attempt)
    ARM_RETRY_COUNT: int = 3
    ARM_RETRY_BACKOFF_MULTIPLIER: float = 2.0
    ARM_RETRY_MAX_BACKOFF_SECONDS: float = 30.0

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    @model_validator(mode="after")
    def validate_all_config(self) -> "Settings":
        """Centralized validation of bounds and retry settings."""
        if self.TESTING and self.ENVIRONMENT in {ENV_PRODUCTION, ENV_STAGING}:
            raise ValueError(
                "TESTING must be false in staging/production runtime environments."
            )

        self._validate_enumeration_bounds()
        self._validate_retry_config()
        self.ARM_BASE_URL = self.ARM_BASE_URL.rstrip("/")
        return self

    def _validate_enumeration_bounds(self) -> None:
        if self.ARM_MAX_RESOURCES_TO_ENUMERATE <= 0:
            raise ValueError("ARM_MAX_RESOURCES_TO_ENUMERATE must be > 0.")
        if self.ARM_QUERY_MAX_ITEMS <= 0:
            raise ValueError("ARM_QUERY_MAX_ITEMS must be > 0.")
        if self.ARM_HTTP_TIMEOUT_SECONDS <= 0:
            raise ValueError("ARM_HTTP_TIMEOUT_SECONDS must be > 0.")

    def _validate_retry_config(self) -> None:
        if self.ARM_RETRY_COUNT < 0:
            raise ValueError("ARM_RETRY_COUNT must be >= 0.")
        if self.ARM_RETRY_BACKOFF_MULTIPLIER < 0:
            raise ValueError("ARM_RETRY_BACKOFF_MULTIPLIER must be >= 0.")
        if self.ARM_RETRY_MAX_BACKOFF_SECONDS < 0:
            raise ValueError("ARM_RETRY_MAX_BACKOFF_SECONDS must be >= 0.")
