"""
Retry eligibility decisions.

default_eligibility() is the built-in rule set and is exported so custom
should_retry callbacks can delegate to it. should_retry_failure() is what
the engine actually evaluates: a configured should_retry callback replaces
the rule set, but the attempt ceiling is always checked first.
"""

from typing import Optional

import structlog

from http_retry.models.policy import RetryPolicy
from http_retry.transport.exceptions import RequestFailure, ResponseFailure
from http_retry.transport.interceptors import resolve_maybe_awaitable

logger = structlog.get_logger(__name__)


def get_policy(failure: BaseException) -> Optional[RetryPolicy]:
    """
    Retry policy attached to a failure by the retry engine.

    Exposes current_attempt, retries_remaining, error_history and the
    resolved configuration, e.g. from inside callbacks or after the final
    failure has been raised. None for failures the engine never saw.
    """
    policy = getattr(failure, "policy", None)
    if isinstance(policy, RetryPolicy):
        return policy
    return None


def default_eligibility(failure: BaseException) -> bool:
    """
    Built-in retry rules.

    In order: retries disabled, ceiling reached, method not retryable,
    response status outside every retryable range. A failure without a
    response (network error) always passes the status check.
    """
    policy = get_policy(failure)
    if policy is None or not isinstance(failure, RequestFailure):
        return False

    if policy.max_retries == 0:
        return False

    if policy.current_attempt >= policy.max_retries:
        return False

    if not policy.allows_method(failure.method):
        return False

    if isinstance(failure, ResponseFailure) and not policy.allows_status(failure.status_code):
        return False

    return True


async def should_retry_failure(failure: RequestFailure, policy: RetryPolicy) -> bool:
    """
    Decide whether the chain retries after this failure.

    Raises:
        Exception: Whatever a custom should_retry callback raises
    """
    if policy.should_retry is None:
        decision = default_eligibility(failure)
        logger.debug(
            "Default eligibility evaluated",
            method=failure.method,
            current_attempt=policy.current_attempt,
            max_retries=policy.max_retries,
            retry=decision,
        )
        return decision

    # Ceiling always wins over custom logic
    if policy.current_attempt >= policy.max_retries:
        return False

    decision = bool(await resolve_maybe_awaitable(policy.should_retry(failure)))
    logger.debug(
        "Custom should_retry evaluated",
        method=failure.method,
        current_attempt=policy.current_attempt,
        retry=decision,
    )
    return decision
