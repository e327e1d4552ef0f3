"""
Failure types surfaced by the HTTP transport.

Every failed attempt is reported as exactly one RequestFailure subclass,
which lets the retry engine tell the three cases apart without poking at
attributes:

- NetworkFailure: no response at all (connect error, DNS, timeout)
- ResponseFailure: a response arrived but its status was rejected
- CancelledFailure: the request's CancelToken fired

Each failure carries the RequestConfig that produced it and, once the
retry engine has seen it, the chain's RetryPolicy.
"""

from typing import TYPE_CHECKING, Any, Optional

import httpx

if TYPE_CHECKING:
    from http_retry.models.policy import RetryPolicy
    from http_retry.models.request import RequestConfig


class RequestFailure(Exception):
    """
    Base exception for all failed request attempts.

    Attributes:
        message: Human readable summary
        config: Configuration of the failed request
        request: The httpx request that was sent (None if never built)
        policy: Retry policy of the chain, set by the retry engine
        details: Extra structured context for logs
    """

    def __init__(
        self,
        message: str,
        config: "RequestConfig",
        request: Optional[httpx.Request] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.config = config
        self.request = request
        self.details = details or {}
        self.policy: Optional["RetryPolicy"] = None

    @property
    def method(self) -> str:
        return self.config.method


class NetworkFailure(RequestFailure):
    """
    Raised when no response was received.

    Includes connection errors, DNS failures and timeouts enforced by httpx.
    The originating httpx.TransportError is chained as __cause__.
    """
    pass


class ResponseFailure(RequestFailure):
    """
    Raised when the server answered with a status the request rejects.

    By default any non-2xx status is rejected (see RequestConfig.validate_status).
    """

    def __init__(
        self,
        message: str,
        config: "RequestConfig",
        response: httpx.Response,
        request: Optional[httpx.Request] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, config, request=request, details=details)
        self.response = response

    @property
    def status_code(self) -> int:
        return self.response.status_code

    @property
    def headers(self) -> httpx.Headers:
        return self.response.headers


class CancelledFailure(RequestFailure):
    """
    Raised when the request's CancelToken fires.

    Never retried: the retry engine re-raises it before looking at the policy.
    """
    pass
