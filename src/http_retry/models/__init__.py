"""Data models for the HTTP retry layer."""

from http_retry.models.enums import BackoffStrategy, JitterMode, RetryState
from http_retry.models.policy import (
    DEFAULT_MAX_RETRY_AFTER_MS,
    DEFAULT_RETRYABLE_METHODS,
    DEFAULT_RETRYABLE_STATUS_RANGES,
    RetryPolicy,
)
from http_retry.models.request import CancelToken, RequestConfig, default_validate_status

__all__ = [
    "BackoffStrategy",
    "JitterMode",
    "RetryState",
    "RetryPolicy",
    "DEFAULT_RETRYABLE_METHODS",
    "DEFAULT_RETRYABLE_STATUS_RANGES",
    "DEFAULT_MAX_RETRY_AFTER_MS",
    "CancelToken",
    "RequestConfig",
    "default_validate_status",
]
