"""
Attaching the retry engine to HTTP clients.

attach() registers a RetryEngine on a client's interceptor chain and
returns the handle detach() needs to remove it again. Without an explicit
client both act on the process-wide default client.
"""

from typing import Any, Optional

import structlog

from http_retry.config import Settings
from http_retry.retry.engine import RetryEngine
from http_retry.transport.client import HttpClient, get_default_client

logger = structlog.get_logger(__name__)


def attach(client: Optional[HttpClient] = None, settings: Optional[Settings] = None) -> int:
    """
    Attach the retry interceptor to a client.

    Args:
        client: Client to attach to (the default client if None)
        settings: Source of policy defaults for this attachment

    Returns:
        Interceptor handle, to be passed to detach()
    """
    client = client or get_default_client()
    engine = RetryEngine(client, settings=settings)
    handle = client.interceptors.use(engine.on_failure)
    logger.info("Retry interceptor attached", handle=handle, client=repr(client))
    return handle


def detach(handle: int, client: Optional[HttpClient] = None) -> None:
    """
    Remove a retry interceptor previously returned by attach().

    Detaching twice, or detaching an unknown handle, does nothing.
    """
    client = client or get_default_client()
    client.interceptors.eject(handle)
    logger.info("Retry interceptor detached", handle=handle, client=repr(client))


class RetryClient(HttpClient):
    """
    HttpClient with the retry interceptor attached on construction.

    Usage:
        async with RetryClient(base_url="https://api.example.com") as client:
            response = await client.get("/items", retry={"max_retries": 5})
    """

    def __init__(self, *args: Any, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.retry_handle = attach(self, settings=self.settings)
