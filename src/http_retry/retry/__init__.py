"""
Retry engine for HTTP requests.

This package decides whether a failed request is retried, how long to wait
before the retry, and resubmits it:

1. **Resolver**: merges per-request options with defaults into a RetryPolicy
2. **Eligibility**: ceiling, method and status checks, or a custom should_retry
3. **Backoff**: static, linear or exponential delay (with jitter), or Retry-After
4. **Engine**: the attempt loop with on_error / on_retry_attempt callbacks

Main Components:
    - RetryEngine: Attempt loop attached to an HttpClient's interceptors
    - attach / detach: Register and remove the engine on a client
    - get_policy: Inspect the policy attached to a failure
    - default_eligibility: Built-in rules, for use inside custom should_retry

Usage:
    >>> from http_retry.retry import attach
    >>> handle = attach(client)
    >>> response = await client.get("/items", retry={"max_retries": 5})
"""

from http_retry.retry.eligibility import default_eligibility, get_policy, should_retry_failure
from http_retry.retry.engine import RetryEngine
from http_retry.retry.interceptor import RetryClient, attach, detach
from http_retry.retry.resolver import resolve_policy
from http_retry.retry.strategies import (
    Backoff,
    ExponentialBackoff,
    LinearBackoff,
    StaticBackoff,
    backoff_for,
    compute_backoff_delay,
    parse_retry_after,
)

__all__ = [
    "RetryEngine",
    "RetryClient",
    "attach",
    "detach",
    "get_policy",
    "default_eligibility",
    "should_retry_failure",
    "resolve_policy",
    "Backoff",
    "StaticBackoff",
    "LinearBackoff",
    "ExponentialBackoff",
    "backoff_for",
    "compute_backoff_delay",
    "parse_retry_after",
]
