"""Shared test fixtures and configuration for all tests.

This conftest.py provides common fixtures used across unit and integration tests.
Transport behaviour is scripted with httpx.MockTransport, so no test needs
network access.
"""

from typing import Any, Callable, Union

import httpx
import pytest

from http_retry.config import Settings
from http_retry.models.enums import BackoffStrategy, JitterMode
from http_retry.transport import client as client_module
from http_retry.transport.client import HttpClient

TEST_URL = "http://test.local"

Outcome = Union[int, tuple[int, dict[str, str]], httpx.Response, Exception]


class ScriptedHandler:
    """MockTransport handler replaying a fixed sequence of outcomes.

    Each outcome is a status code, a (status, headers) tuple, a ready
    httpx.Response or an exception to raise. The last outcome repeats
    once the script runs out.
    """

    def __init__(self, outcomes: list[Outcome]):
        assert outcomes, "at least one outcome required"
        self.outcomes = outcomes
        self.requests: list[httpx.Request] = []

    @property
    def calls(self) -> int:
        return len(self.requests)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        outcome = self.outcomes[min(len(self.requests), len(self.outcomes)) - 1]

        if isinstance(outcome, Exception):
            raise outcome
        if isinstance(outcome, httpx.Response):
            return outcome
        if isinstance(outcome, tuple):
            status, headers = outcome
            return httpx.Response(status, headers=headers, text=f"status {status}")
        return httpx.Response(outcome, text=f"status {outcome}")


@pytest.fixture
def test_settings() -> Settings:
    """Test settings with the documented retry defaults and metrics off.

    Override specific settings in individual tests as needed:
        def test_something(test_settings):
            test_settings.HTTP_RETRY_MAX_RETRIES = 5
    """
    return Settings(
        APP_NAME="http-retry (Test)",
        LOG_LEVEL="DEBUG",
        ENVIRONMENT="development",
        HTTP_BASE_URL="",
        HTTP_TIMEOUT=5.0,
        HTTP_RETRY_MAX_RETRIES=3,
        HTTP_RETRY_BASE_DELAY_MS=100,
        HTTP_RETRY_BACKOFF_STRATEGY=BackoffStrategy.EXPONENTIAL,
        HTTP_RETRY_JITTER=JitterMode.NONE,
        HTTP_RETRY_MAX_DELAY_MS=None,
        HTTP_RETRY_METHODS=["GET", "HEAD", "PUT", "OPTIONS", "DELETE"],
        HTTP_RETRY_STATUS_RANGES=[(100, 199), (429, 429), (500, 599)],
        HTTP_RETRY_CHECK_RETRY_AFTER=True,
        HTTP_RETRY_MAX_RETRY_AFTER_MS=300_000,
        PROMETHEUS_ENABLED=False,  # Disable metrics in tests unless explicitly needed
    )


@pytest.fixture
def scripted_client(
    test_settings: Settings,
) -> Callable[..., tuple[HttpClient, ScriptedHandler]]:
    """Factory fixture building an HttpClient over a scripted MockTransport.

    Usage:
        def test_something(scripted_client):
            client, handler = scripted_client(500, 500, 200)
    """

    def _create(*outcomes: Outcome, **client_kwargs: Any) -> tuple[HttpClient, ScriptedHandler]:
        handler = ScriptedHandler(list(outcomes))
        client = HttpClient(
            base_url=TEST_URL,
            transport=httpx.MockTransport(handler),
            settings=test_settings,
            **client_kwargs,
        )
        return client, handler

    return _create


@pytest.fixture
def default_client(
    monkeypatch: pytest.MonkeyPatch, scripted_client: Callable[..., tuple[HttpClient, ScriptedHandler]]
) -> Callable[..., tuple[HttpClient, ScriptedHandler]]:
    """Factory fixture installing a scripted client as the process-wide default.

    The previous default client is restored after the test, so attachments
    made through attach() without a client never leak between tests.

    Usage:
        def test_something(default_client):
            client, handler = default_client(500, 200)
    """

    def _install(*outcomes: Outcome) -> tuple[HttpClient, ScriptedHandler]:
        client, handler = scripted_client(*outcomes)
        monkeypatch.setattr(client_module, "_default_client", client)
        return client, handler

    return _install
