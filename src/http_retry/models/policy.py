"""
Retry policy model.

A RetryPolicy holds both the configuration of a logical request chain
(ceilings, backoff, retryable methods/statuses, callbacks) and its mutable
progress (current_attempt, error_history). One instance lives for exactly
one chain: the resolver copies whatever the caller supplied, the engine
mutates the copy, and the copy is dropped when the chain terminates.

All durations are milliseconds.
"""

from typing import Any, Callable, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from http_retry.models.enums import BackoffStrategy, JitterMode

DEFAULT_RETRYABLE_METHODS: tuple[str, ...] = ("GET", "HEAD", "PUT", "OPTIONS", "DELETE")

# https://en.wikipedia.org/wiki/List_of_HTTP_status_codes
# 1xx retry (still processing), 2xx/3xx/4xx no, 429 retry (too many requests), 5xx retry
DEFAULT_RETRYABLE_STATUS_RANGES: tuple[tuple[int, int], ...] = (
    (100, 199),
    (429, 429),
    (500, 599),
)

DEFAULT_MAX_RETRY_AFTER_MS: float = 60_000 * 5


def normalize_keyed_sequence(value: Any) -> Any:
    """
    Turn an index-keyed mapping back into a list.

    Some transports serialize arrays as objects during retries, so
    ``["GET", "POST"]`` comes back as ``{"0": "GET", "1": "POST"}``.
    Items are ordered by numeric key; non-numeric keys are dropped.
    Anything that is not a mapping is returned unchanged.
    """
    if not isinstance(value, dict):
        return value

    indexed: list[tuple[int, Any]] = []
    for key, item in value.items():
        try:
            indexed.append((int(key), item))
        except (TypeError, ValueError):
            continue
    return [item for _, item in sorted(indexed, key=lambda pair: pair[0])]


class RetryPolicy(BaseModel):
    """
    Complete retry policy for one logical request chain.

    Attributes:
        max_retries: Ceiling on retries for every failure kind
        current_attempt: Retries already committed to
        base_delay: Base delay (ms); meaning depends on backoff_strategy
        backoff_strategy: static, linear or exponential
        jitter: Randomization of exponential delays
        max_delay: Hard ceiling (ms) applied after strategy and jitter
        retryable_methods: Uppercase HTTP methods eligible for retry
        retryable_status_ranges: Inclusive (min, max) status ranges eligible for retry
        check_retry_after_header: Honour the Retry-After response header
        max_retry_after: Largest acceptable Retry-After (ms); larger aborts the chain
        on_error: Called once per failure that is about to be retried, after
            current_attempt is incremented and before the delay. Not called
            for the failure that ends the chain (ineligible, exhausted or
            rejected Retry-After); that one reaches the caller instead.
        on_retry_attempt: Called after the delay, before resubmission
        should_retry: Replaces the default eligibility check (ceiling still enforced)
        error_history: Every failure of the chain, oldest first
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, extra="ignore")

    max_retries: int = Field(default=3, ge=0)
    current_attempt: int = Field(default=0, ge=0)
    base_delay: float = Field(default=100, ge=0)
    backoff_strategy: BackoffStrategy = BackoffStrategy.EXPONENTIAL
    jitter: JitterMode = JitterMode.NONE
    max_delay: Optional[float] = Field(default=None, ge=0)
    retryable_methods: list[str] = Field(
        default_factory=lambda: list(DEFAULT_RETRYABLE_METHODS)
    )
    retryable_status_ranges: list[tuple[int, int]] = Field(
        default_factory=lambda: list(DEFAULT_RETRYABLE_STATUS_RANGES)
    )
    check_retry_after_header: bool = True
    max_retry_after: float = Field(default=DEFAULT_MAX_RETRY_AFTER_MS, ge=0)
    on_error: Optional[Callable[[Any], Any]] = None
    on_retry_attempt: Optional[Callable[[Any], Any]] = None
    should_retry: Optional[Callable[[Any], Any]] = None
    error_history: list[Any] = Field(default_factory=list)

    @field_validator("backoff_strategy", "jitter", mode="before")
    @classmethod
    def _lowercase_enum(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.lower()
        return value

    @field_validator("retryable_methods", mode="before")
    @classmethod
    def _normalize_methods(cls, value: Any) -> Any:
        value = normalize_keyed_sequence(value)
        if isinstance(value, (list, tuple, set, frozenset)):
            return [item.upper() if isinstance(item, str) else item for item in value]
        return value

    @field_validator("retryable_status_ranges", mode="before")
    @classmethod
    def _normalize_status_ranges(cls, value: Any) -> Any:
        value = normalize_keyed_sequence(value)
        if isinstance(value, (list, tuple)):
            return [normalize_keyed_sequence(item) for item in value]
        return value

    @property
    def retries_remaining(self) -> int:
        """Retries still available to this chain."""
        return max(0, self.max_retries - self.current_attempt)

    def allows_method(self, method: Optional[str]) -> bool:
        """Case-insensitive membership test against retryable_methods."""
        if not method:
            return False
        return method.upper() in self.retryable_methods

    def allows_status(self, status_code: int) -> bool:
        """True if the status falls inside any retryable range (inclusive)."""
        return any(low <= status_code <= high for low, high in self.retryable_status_ranges)
