"""
Unit tests for retry eligibility.

Tests default_eligibility rules, get_policy, and how a custom should_retry
interacts with the attempt ceiling.
"""

from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from http_retry.models.policy import RetryPolicy
from http_retry.models.request import RequestConfig
from http_retry.retry.eligibility import default_eligibility, get_policy, should_retry_failure
from http_retry.transport.exceptions import NetworkFailure, ResponseFailure


# Test fixtures
def create_response_failure(
    status: int = 500, method: str = "GET", policy: RetryPolicy | None = None
) -> ResponseFailure:
    """Helper to create a ResponseFailure with an attached policy."""
    config = RequestConfig(method=method, url="http://test.local/")
    failure = ResponseFailure(f"status {status}", config, httpx.Response(status))
    failure.policy = policy if policy is not None else RetryPolicy()
    return failure


def create_network_failure(
    method: str = "GET", policy: RetryPolicy | None = None
) -> NetworkFailure:
    """Helper to create a NetworkFailure with an attached policy."""
    config = RequestConfig(method=method, url="http://test.local/")
    failure = NetworkFailure("ConnectError: refused", config)
    failure.policy = policy if policy is not None else RetryPolicy()
    return failure


# ============================================================================
# get_policy
# ============================================================================


def test_get_policy_returns_attached_policy():
    policy = RetryPolicy(max_retries=1)
    failure = create_response_failure(policy=policy)
    assert get_policy(failure) is policy


def test_get_policy_absent():
    config = RequestConfig(url="/")
    assert get_policy(NetworkFailure("boom", config)) is None
    assert get_policy(ValueError("unrelated")) is None


# ============================================================================
# default_eligibility
# ============================================================================


def test_retries_5xx_get():
    assert default_eligibility(create_response_failure(503)) is True


def test_retries_429_and_1xx():
    assert default_eligibility(create_response_failure(429)) is True
    assert default_eligibility(create_response_failure(102)) is True


@pytest.mark.parametrize("status", [400, 401, 404, 409, 302])
def test_does_not_retry_other_statuses(status):
    assert default_eligibility(create_response_failure(status)) is False


def test_network_failure_passes_status_check():
    assert default_eligibility(create_network_failure()) is True


def test_post_not_retried_by_default():
    assert default_eligibility(create_response_failure(500, method="POST")) is False
    assert default_eligibility(create_network_failure(method="POST")) is False


def test_post_retried_when_configured():
    policy = RetryPolicy(retryable_methods=["GET", "POST"])
    assert default_eligibility(create_response_failure(500, method="post", policy=policy)) is True


def test_zero_max_retries_never_retries():
    policy = RetryPolicy(max_retries=0)
    assert default_eligibility(create_network_failure(policy=policy)) is False


def test_ceiling_reached():
    policy = RetryPolicy(max_retries=2, current_attempt=2)
    assert default_eligibility(create_response_failure(500, policy=policy)) is False

    policy.current_attempt = 1
    assert default_eligibility(create_response_failure(500, policy=policy)) is True


def test_without_policy_not_eligible():
    config = RequestConfig(url="/")
    assert default_eligibility(NetworkFailure("boom", config)) is False


def test_custom_status_ranges():
    policy = RetryPolicy(retryable_status_ranges=[(404, 404)])
    assert default_eligibility(create_response_failure(404, policy=policy)) is True
    assert default_eligibility(create_response_failure(500, policy=policy)) is False


# ============================================================================
# should_retry_failure
# ============================================================================


@pytest.mark.asyncio
async def test_uses_default_rules_without_callback():
    assert await should_retry_failure(create_response_failure(500), RetryPolicy()) is True
    assert await should_retry_failure(create_response_failure(404), RetryPolicy()) is False


@pytest.mark.asyncio
async def test_custom_should_retry_is_authoritative():
    """Test a custom callback overrides method and status rules."""
    policy = RetryPolicy(should_retry=MagicMock(return_value=True))
    failure = create_response_failure(404, method="POST", policy=policy)

    assert await should_retry_failure(failure, policy) is True
    policy.should_retry.assert_called_once_with(failure)


@pytest.mark.asyncio
async def test_custom_should_retry_may_refuse():
    policy = RetryPolicy(should_retry=MagicMock(return_value=False))
    failure = create_response_failure(500, policy=policy)
    assert await should_retry_failure(failure, policy) is False


@pytest.mark.asyncio
async def test_async_should_retry_is_awaited():
    policy = RetryPolicy(should_retry=AsyncMock(return_value=True))
    failure = create_network_failure(policy=policy)

    assert await should_retry_failure(failure, policy) is True
    policy.should_retry.assert_awaited_once_with(failure)


@pytest.mark.asyncio
async def test_ceiling_checked_before_custom_should_retry():
    """Test the callback is not even called once the ceiling is reached."""
    callback = MagicMock(return_value=True)
    policy = RetryPolicy(max_retries=2, current_attempt=2, should_retry=callback)
    failure = create_response_failure(500, policy=policy)

    assert await should_retry_failure(failure, policy) is False
    callback.assert_not_called()


@pytest.mark.asyncio
async def test_custom_should_retry_can_delegate_to_default():
    policy = RetryPolicy(should_retry=lambda failure: default_eligibility(failure))
    assert await should_retry_failure(create_response_failure(500, policy=policy), policy) is True
    assert await should_retry_failure(create_response_failure(400, policy=policy), policy) is False


@pytest.mark.asyncio
async def test_should_retry_exception_propagates():
    policy = RetryPolicy(should_retry=MagicMock(side_effect=RuntimeError("decide failed")))
    with pytest.raises(RuntimeError, match="decide failed"):
        await should_retry_failure(create_network_failure(policy=policy), policy)
