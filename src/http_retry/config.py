"""
Configuration settings for the HTTP retry layer.

All settings are loaded from environment variables with sensible defaults.
Use .env file for local development. The HTTP_RETRY_* values are the
defaults the policy resolver falls back to for every field a caller
does not set explicitly.
"""

from typing import Any, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from http_retry.models.enums import BackoffStrategy, JitterMode


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === Application ===
    APP_NAME: str = "http-retry"
    APP_VERSION: str = "0.1.0"
    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: str = "development"

    # === HTTP Transport ===
    HTTP_BASE_URL: str = ""
    HTTP_TIMEOUT: float = 30.0  # seconds, enforced by httpx
    HTTP_MAX_CONNECTIONS: int = 10
    HTTP_MAX_KEEPALIVE_CONNECTIONS: int = 5

    # === Retry Policy Defaults ===
    HTTP_RETRY_MAX_RETRIES: int = 3
    HTTP_RETRY_BASE_DELAY_MS: float = 100
    HTTP_RETRY_BACKOFF_STRATEGY: BackoffStrategy = BackoffStrategy.EXPONENTIAL
    HTTP_RETRY_JITTER: JitterMode = JitterMode.NONE
    HTTP_RETRY_MAX_DELAY_MS: Optional[float] = None
    HTTP_RETRY_METHODS: list[str] = ["GET", "HEAD", "PUT", "OPTIONS", "DELETE"]
    # 1xx: still processing, 429: too many requests, 5xx: server errors
    HTTP_RETRY_STATUS_RANGES: list[tuple[int, int]] = [(100, 199), (429, 429), (500, 599)]
    HTTP_RETRY_CHECK_RETRY_AFTER: bool = True
    HTTP_RETRY_MAX_RETRY_AFTER_MS: float = 60_000 * 5

    # === Monitoring ===
    PROMETHEUS_ENABLED: bool = True

    @field_validator("HTTP_RETRY_BACKOFF_STRATEGY", "HTTP_RETRY_JITTER", mode="before")
    @classmethod
    def _lowercase_enum(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    def policy_defaults(self) -> dict[str, Any]:
        """Map the HTTP_RETRY_* settings onto RetryPolicy field names."""
        return {
            "max_retries": self.HTTP_RETRY_MAX_RETRIES,
            "base_delay": self.HTTP_RETRY_BASE_DELAY_MS,
            "backoff_strategy": self.HTTP_RETRY_BACKOFF_STRATEGY,
            "jitter": self.HTTP_RETRY_JITTER,
            "max_delay": self.HTTP_RETRY_MAX_DELAY_MS,
            "retryable_methods": list(self.HTTP_RETRY_METHODS),
            "retryable_status_ranges": list(self.HTTP_RETRY_STATUS_RANGES),
            "check_retry_after_header": self.HTTP_RETRY_CHECK_RETRY_AFTER,
            "max_retry_after": self.HTTP_RETRY_MAX_RETRY_AFTER_MS,
        }


# Global settings instance
settings = Settings()
