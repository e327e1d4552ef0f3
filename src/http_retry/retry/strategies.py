"""
Backoff strategies for computing the delay before a retry.

This module implements the Strategy Pattern for delay calculation. Each
strategy maps the number of the retry about to happen (1-indexed: the
first retry is attempt 1) to a delay in milliseconds:

    StaticBackoff:      base_delay
    LinearBackoff:      attempt * 1000
    ExponentialBackoff: ((2^attempt - 1) / 2) * base_delay, then jitter

A Retry-After header, when honoured, replaces the strategy entirely
(see parse_retry_after).
"""

import random
import re
import time
from datetime import timezone
from email.utils import parsedate_to_datetime
from typing import Callable, Optional, Protocol

import structlog

from http_retry.models.enums import BackoffStrategy, JitterMode
from http_retry.models.policy import RetryPolicy

logger = structlog.get_logger(__name__)

LINEAR_STEP_MS = 1000

# delay-seconds: plain decimal digits, optionally with a fraction
DELAY_SECONDS = re.compile(r"[0-9]+(\.[0-9]+)?")


class Backoff(Protocol):
    """
    Protocol for backoff strategies.

    Strategies are stateless: the same attempt always yields the same
    delay, except for the random component of jittered strategies.
    """

    def delay(self, attempt: int) -> float:
        """
        Delay in milliseconds before the given retry.

        Args:
            attempt: Number of the retry about to happen (1-indexed)
        """
        ...


class StaticBackoff:
    """Constant delay, independent of the attempt number."""

    def __init__(self, base_delay: float):
        self.base_delay = base_delay

    def delay(self, attempt: int) -> float:
        return self.base_delay


class LinearBackoff:
    """
    One second per attempt.

    Ignores base_delay: retry n waits n * 1000 ms.
    """

    def __init__(self, step: float = LINEAR_STEP_MS):
        self.step = step

    def delay(self, attempt: int) -> float:
        return attempt * self.step


class ExponentialBackoff:
    """
    Exponential backoff with optional jitter.

    Delay = ((2^attempt - 1) / 2) * base_delay, so with base_delay=100 the
    first retries wait 50, 150, 350, 750 ms. Jitter then randomizes it:

    - NONE: unchanged
    - FULL: uniform in [0, delay)
    - EQUAL: uniform in [delay/2, delay)
    """

    def __init__(
        self,
        base_delay: float,
        jitter: JitterMode = JitterMode.NONE,
        rng: Callable[[], float] = random.random,
    ):
        self.base_delay = base_delay
        self.jitter = jitter
        self.rng = rng

    def delay(self, attempt: int) -> float:
        delay = ((2 ** attempt - 1) / 2) * self.base_delay

        if self.jitter == JitterMode.FULL:
            return self.rng() * delay
        if self.jitter == JitterMode.EQUAL:
            half = delay / 2
            return half + self.rng() * half
        return delay


def backoff_for(
    policy: RetryPolicy, rng: Callable[[], float] = random.random
) -> Backoff:
    """Select the strategy configured by the policy."""
    if policy.backoff_strategy == BackoffStrategy.STATIC:
        return StaticBackoff(policy.base_delay)
    if policy.backoff_strategy == BackoffStrategy.LINEAR:
        return LinearBackoff()
    return ExponentialBackoff(policy.base_delay, policy.jitter, rng=rng)


def compute_backoff_delay(
    policy: RetryPolicy, rng: Callable[[], float] = random.random
) -> float:
    """
    Delay in milliseconds before the next retry of the policy's chain.

    Uses the eventual attempt number (current_attempt + 1) and clamps the
    result to max_delay when one is configured. Does not touch the policy.
    """
    attempt = policy.current_attempt + 1
    delay = backoff_for(policy, rng=rng).delay(attempt)

    if policy.max_delay is not None and delay > policy.max_delay:
        logger.debug(
            "Clamping backoff delay",
            computed_delay_ms=delay,
            max_delay_ms=policy.max_delay,
        )
        delay = policy.max_delay
    return delay


def parse_retry_after(value: str, now: Optional[float] = None) -> Optional[float]:
    """
    Parse a Retry-After header value.

    https://developer.mozilla.org/en-US/docs/Web/HTTP/Headers/Retry-After

    Args:
        value: Header value, either delay-seconds or an HTTP date
        now: Current POSIX time in seconds (time.time() if None)

    Returns:
        Delay in milliseconds (may be zero or negative for dates in the
        past), or None if the value is neither a number nor a date
    """
    value = value.strip()
    if not value:
        return None

    if DELAY_SECONDS.fullmatch(value):
        return float(value) * 1000

    try:
        retry_at = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        return None
    if retry_at is None:
        return None

    if retry_at.tzinfo is None:
        retry_at = retry_at.replace(tzinfo=timezone.utc)

    current = time.time() if now is None else now
    return (retry_at.timestamp() - current) * 1000
