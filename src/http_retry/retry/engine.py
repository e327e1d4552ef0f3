"""
Retry engine for failed HTTP requests.

This module implements the RetryEngine that sits on an HttpClient's
interceptor chain. For every failed request it runs one logical retry
chain until the request succeeds or the chain terminates:

    failure -> resolve policy -> eligible? -> delay -> on_error
            -> wait -> on_retry_attempt -> resubmit -> (success | failure ...)

Chain states (RetryState): idle -> evaluating -> retrying -> idle, or
evaluating -> exhausted / aborted. Whatever stops the chain, the caller
receives the most recent failure with the policy attached, except when a
callback raises: that exception is raised instead.

Usage:
    engine = RetryEngine(client)
    handle = client.interceptors.use(engine.on_failure)
"""

import asyncio
import random
from typing import TYPE_CHECKING, Any, Callable, Optional

import httpx
import structlog

from http_retry.config import Settings, settings as default_settings
from http_retry.models.enums import RetryState
from http_retry.models.policy import RetryPolicy
from http_retry.models.request import CancelToken, RequestConfig
from http_retry.monitoring.metrics import (
    retries_total,
    retry_delay_seconds,
    retry_outcomes_total,
)
from http_retry.retry.eligibility import should_retry_failure
from http_retry.retry.resolver import resolve_policy
from http_retry.retry.strategies import compute_backoff_delay, parse_retry_after
from http_retry.transport.exceptions import (
    CancelledFailure,
    NetworkFailure,
    RequestFailure,
    ResponseFailure,
)
from http_retry.transport.interceptors import resolve_maybe_awaitable

if TYPE_CHECKING:
    from http_retry.transport.client import HttpClient

logger = structlog.get_logger(__name__)


def _failure_reason(failure: RequestFailure) -> str:
    if isinstance(failure, ResponseFailure):
        if failure.status_code == 429:
            return "429"
        return f"{failure.status_code // 100}xx"
    if isinstance(failure, NetworkFailure):
        return "network"
    return "other"


class RetryEngine:
    """
    Decision, backoff and resubmission loop for one HttpClient.

    The engine holds no per-request state: every chain gets its own
    RetryPolicy from the resolver, so concurrent chains on the same client
    never share counters.

    Attributes:
        client: Client used to resubmit requests
        settings: Source of policy defaults and feature flags
        rng: Random source for jitter, returns floats in [0, 1)
    """

    def __init__(
        self,
        client: "HttpClient",
        settings: Optional[Settings] = None,
        rng: Callable[[], float] = random.random,
    ):
        self.client = client
        self.settings = settings or default_settings
        self.rng = rng

    async def on_failure(self, failure: Exception) -> httpx.Response:
        """
        Interceptor entry point for a failed request.

        Returns:
            The response of a successful retry

        Raises:
            CancelledFailure: Cancellation, always passed through untouched
            RequestFailure: The most recent failure when the chain stops
            Exception: Whatever on_error, on_retry_attempt or should_retry raised
        """
        if isinstance(failure, CancelledFailure) or not isinstance(failure, RequestFailure):
            raise failure

        policy = resolve_policy(failure.config.retry, self.settings)
        config = failure.config.model_copy(update={"retry": policy})
        return await self.execute_with_retry(failure, config, policy)

    async def execute_with_retry(
        self, failure: RequestFailure, config: RequestConfig, policy: RetryPolicy
    ) -> httpx.Response:
        """
        Run the retry chain that starts with ``failure``.

        Args:
            failure: First failure of the chain
            config: Request to resubmit, carrying ``policy`` under ``retry``
            policy: Resolved policy owned by this chain

        Returns:
            Response of the first successful resubmission
        """
        while True:
            failure.config = config
            failure.policy = policy
            policy.error_history.append(failure)

            logger.debug(
                "Evaluating failed request",
                state=RetryState.EVALUATING.value,
                method=config.method,
                url=config.url,
                reason=_failure_reason(failure),
                current_attempt=policy.current_attempt,
                max_retries=policy.max_retries,
            )

            try:
                eligible = await should_retry_failure(failure, policy)
            except Exception:
                self._record_outcome("callback_aborted")
                logger.warning(
                    "should_retry callback raised, aborting retries",
                    state=RetryState.ABORTED.value,
                    method=config.method,
                    url=config.url,
                )
                raise

            if not eligible:
                exhausted = policy.current_attempt >= policy.max_retries
                self._record_outcome("exhausted" if exhausted else "ineligible")
                if exhausted and policy.current_attempt > 0:
                    logger.warning(
                        "Retries exhausted",
                        state=RetryState.EXHAUSTED.value,
                        method=config.method,
                        url=config.url,
                        attempts=policy.current_attempt,
                        errors=len(policy.error_history),
                    )
                raise failure

            delay_ms = self._retry_delay(failure, policy)
            if delay_ms is None:
                self._record_outcome("retry_after_rejected")
                raise failure

            # Increment after the delay math: the first retry uses attempt 1
            policy.current_attempt += 1

            logger.info(
                "Scheduling retry",
                state=RetryState.RETRYING.value,
                method=config.method,
                url=config.url,
                reason=_failure_reason(failure),
                attempt=policy.current_attempt,
                max_retries=policy.max_retries,
                delay_ms=round(delay_ms, 2),
            )
            if self.settings.PROMETHEUS_ENABLED:
                retries_total.labels(method=config.method, reason=_failure_reason(failure)).inc()
                retry_delay_seconds.observe(delay_ms / 1000)

            await self._run_callback("on_error", policy.on_error, failure)
            await self._wait(delay_ms, config)
            await self._run_callback("on_retry_attempt", policy.on_retry_attempt, failure)

            try:
                response = await self.client.send(config)
            except CancelledFailure:
                self._record_outcome("cancelled")
                raise
            except RequestFailure as exc:
                failure = exc
                continue

            self._record_outcome("recovered")
            logger.info(
                "Retry succeeded",
                state=RetryState.IDLE.value,
                method=config.method,
                url=config.url,
                attempt=policy.current_attempt,
                status_code=response.status_code,
            )
            return response

    def _retry_delay(self, failure: RequestFailure, policy: RetryPolicy) -> Optional[float]:
        """
        Delay before the next retry, in milliseconds.

        Returns None when a Retry-After header is present but unusable
        (unparseable, not positive, or above max_retry_after); the chain
        must then stop without consuming an attempt.
        """
        if policy.check_retry_after_header and isinstance(failure, ResponseFailure):
            header = failure.headers.get("retry-after")
            if header:
                retry_after = parse_retry_after(header)
                if retry_after is None or not 0 < retry_after <= policy.max_retry_after:
                    logger.warning(
                        "Retry-After not acceptable, aborting retries",
                        state=RetryState.ABORTED.value,
                        method=failure.method,
                        url=failure.config.url,
                        retry_after=header,
                        retry_after_ms=retry_after,
                        max_retry_after_ms=policy.max_retry_after,
                    )
                    return None
                return retry_after

        return compute_backoff_delay(policy, rng=self.rng)

    async def _run_callback(
        self, name: str, callback: Optional[Callable[[Any], Any]], failure: RequestFailure
    ) -> None:
        if callback is None:
            return
        try:
            await resolve_maybe_awaitable(callback(failure))
        except Exception as e:
            self._record_outcome("callback_aborted")
            logger.warning(
                f"{name} callback raised, aborting retries",
                state=RetryState.ABORTED.value,
                callback=name,
                error_type=type(e).__name__,
                error=str(e),
            )
            raise

    async def _wait(self, delay_ms: float, config: RequestConfig) -> None:
        """Sleep for the backoff delay, waking early if the request is cancelled."""
        token: Optional[CancelToken] = config.cancel_token
        seconds = max(0.0, delay_ms / 1000)

        if token is None:
            await asyncio.sleep(seconds)
            return

        if not token.cancelled:
            try:
                await asyncio.wait_for(token.wait(), timeout=seconds)
            except asyncio.TimeoutError:
                return

        self._record_outcome("cancelled")
        logger.info(
            "Request cancelled during retry delay",
            state=RetryState.ABORTED.value,
            method=config.method,
            url=config.url,
        )
        raise CancelledFailure(token.reason or "Request cancelled", config)

    def _record_outcome(self, outcome: str) -> None:
        if self.settings.PROMETHEUS_ENABLED:
            retry_outcomes_total.labels(outcome=outcome).inc()
