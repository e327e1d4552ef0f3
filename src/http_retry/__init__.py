"""
HTTP retry layer for httpx.

Retries failed HTTP requests according to a per-request RetryPolicy:
- Retryable methods and status ranges, network failures
- Static, linear or exponential backoff with optional jitter and a ceiling
- Retry-After header support with an upper bound
- on_error / on_retry_attempt / should_retry hooks
- Full error history and attempt counters on the final failure

Logging: the library only emits structlog events. Call configure_logging()
once at application startup to render them (JSON when ENVIRONMENT is
production); LOG_LEVEL, ENVIRONMENT and APP_NAME come from Settings.

Architecture: HttpClient (httpx.AsyncClient + interceptor chain) + RetryEngine
"""

__version__ = "0.1.0"

from http_retry.logging_config import configure_logging
from http_retry.models import (
    BackoffStrategy,
    CancelToken,
    JitterMode,
    RequestConfig,
    RetryPolicy,
)
from http_retry.retry import (
    RetryClient,
    RetryEngine,
    attach,
    default_eligibility,
    detach,
    get_policy,
)
from http_retry.transport import (
    CancelledFailure,
    HttpClient,
    NetworkFailure,
    RequestFailure,
    ResponseFailure,
    get_default_client,
)

__all__ = [
    "BackoffStrategy",
    "JitterMode",
    "RetryPolicy",
    "RequestConfig",
    "CancelToken",
    "HttpClient",
    "RetryClient",
    "RetryEngine",
    "get_default_client",
    "attach",
    "detach",
    "get_policy",
    "default_eligibility",
    "configure_logging",
    "RequestFailure",
    "NetworkFailure",
    "ResponseFailure",
    "CancelledFailure",
]
