"""
Enumerations for retry policy data models.

All enums are closed taxonomies - no values outside these sets are permitted.
"""

from enum import Enum


class BackoffStrategy(str, Enum):
    """
    How the delay before a retry grows with the attempt number.

    STATIC and LINEAR ignore jitter; only EXPONENTIAL applies it.
    """

    STATIC = "static"
    LINEAR = "linear"
    EXPONENTIAL = "exponential"


class JitterMode(str, Enum):
    """
    Randomization applied to an exponential delay.

    NONE keeps the computed delay, FULL draws from [0, delay),
    EQUAL draws from [delay/2, delay).
    """

    NONE = "none"
    FULL = "full"
    EQUAL = "equal"


class RetryState(str, Enum):
    """States of one logical request chain, as reported in logs."""

    IDLE = "idle"
    EVALUATING = "evaluating"
    RETRYING = "retrying"
    EXHAUSTED = "exhausted"
    ABORTED = "aborted"
