"""
HTTP client used by the retry engine.

Wraps httpx.AsyncClient and adds the two things the retry engine needs
from a transport:

- send(): issue one request and map every failure onto a RequestFailure
  subclass (NetworkFailure, ResponseFailure, CancelledFailure)
- request(): send() plus the response interceptor chain, which is where
  the retry engine attaches itself

Timeouts, connection pooling and TLS stay with httpx.
"""

import asyncio
import time
from typing import Any, Optional

import httpx
import structlog

from http_retry.config import Settings, settings as default_settings
from http_retry.models.request import CancelToken, RequestConfig
from http_retry.transport.exceptions import (
    CancelledFailure,
    NetworkFailure,
    RequestFailure,
    ResponseFailure,
)
from http_retry.transport.interceptors import InterceptorManager

logger = structlog.get_logger(__name__)


class HttpClient:
    """
    Async HTTP client with a response interceptor chain.

    Features:
    - Connection pooling via a persistent, lazily created AsyncClient
    - Uniform failure objects carrying the originating RequestConfig
    - Cooperative cancellation through RequestConfig.cancel_token
    - Interceptors (see InterceptorManager) run by request()

    An existing httpx.AsyncClient can be injected; it is then not closed
    by aclose().
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        connection_limits: Optional[httpx.Limits] = None,
        client: Optional[httpx.AsyncClient] = None,
        settings: Optional[Settings] = None,
    ):
        """
        Initialize HTTP client.

        Args:
            base_url: Prefix for relative request URLs (settings.HTTP_BASE_URL if None)
            timeout: Default timeout in seconds (settings.HTTP_TIMEOUT if None)
            transport: Custom httpx transport (e.g. httpx.MockTransport in tests)
            connection_limits: httpx connection pool limits
            client: Pre-built httpx.AsyncClient to use instead of creating one
            settings: Application settings
        """
        self.settings = settings or default_settings
        self.base_url = (
            base_url if base_url is not None else self.settings.HTTP_BASE_URL
        ).rstrip("/")
        self.timeout = timeout if timeout is not None else self.settings.HTTP_TIMEOUT
        self.interceptors = InterceptorManager()

        if connection_limits is None:
            connection_limits = httpx.Limits(
                max_keepalive_connections=self.settings.HTTP_MAX_KEEPALIVE_CONNECTIONS,
                max_connections=self.settings.HTTP_MAX_CONNECTIONS,
            )

        self._client: Optional[httpx.AsyncClient] = client
        self._owns_client = client is None
        self._transport = transport
        self._connection_limits = connection_limits

        logger.debug(
            "HTTP client initialized",
            base_url=self.base_url,
            timeout=self.timeout,
            injected_client=client is not None,
        )

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the async HTTP client."""
        if self._client is None or (self._owns_client and self._client.is_closed):
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout),
                limits=self._connection_limits,
                transport=self._transport,
            )
            logger.debug("Created new httpx AsyncClient")
        return self._client

    def _build_request(self, client: httpx.AsyncClient, config: RequestConfig) -> httpx.Request:
        return client.build_request(
            config.method,
            config.url,
            params=config.params,
            headers=config.headers,
            json=config.json_body,
            content=config.content,
            timeout=(
                httpx.Timeout(config.timeout)
                if config.timeout is not None
                else httpx.USE_CLIENT_DEFAULT
            ),
        )

    async def send(self, config: RequestConfig) -> httpx.Response:
        """
        Issue one request, without running interceptors.

        Args:
            config: Request to send

        Returns:
            Response whose status passed config.validate_status

        Raises:
            CancelledFailure: config.cancel_token fired before or during the send
            NetworkFailure: No response was received (includes httpx timeouts)
            ResponseFailure: The response status was rejected
        """
        token = config.cancel_token
        if token is not None and token.cancelled:
            raise CancelledFailure(token.reason or "Request cancelled", config)

        client = await self._get_client()
        request = self._build_request(client, config)
        start_time = time.time()

        try:
            if token is None:
                response = await client.send(request)
            else:
                response = await self._send_cancellable(client, request, config, token)
        except httpx.TransportError as e:
            logger.warning(
                "Request failed without response",
                method=config.method,
                url=str(request.url),
                error_type=type(e).__name__,
                error=str(e),
            )
            raise NetworkFailure(
                f"{type(e).__name__}: {e}",
                config,
                request=request,
                details={"error_type": type(e).__name__},
            ) from e

        latency_ms = int((time.time() - start_time) * 1000)

        if not config.validate_status(response.status_code):
            logger.debug(
                "Request failed with rejected status",
                method=config.method,
                url=str(request.url),
                status_code=response.status_code,
                latency_ms=latency_ms,
            )
            raise ResponseFailure(
                f"Request failed with status code {response.status_code}",
                config,
                response,
                request=request,
                details={"status_code": response.status_code, "latency_ms": latency_ms},
            )

        logger.debug(
            "Request succeeded",
            method=config.method,
            url=str(request.url),
            status_code=response.status_code,
            latency_ms=latency_ms,
        )
        return response

    async def _send_cancellable(
        self,
        client: httpx.AsyncClient,
        request: httpx.Request,
        config: RequestConfig,
        token: CancelToken,
    ) -> httpx.Response:
        """Race the send against the cancel token; the token wins ties."""
        send_task = asyncio.ensure_future(client.send(request))
        cancel_task = asyncio.ensure_future(token.wait())
        try:
            await asyncio.wait({send_task, cancel_task}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (send_task, cancel_task):
                if not task.done():
                    task.cancel()

        if cancel_task.done() and not cancel_task.cancelled():
            if send_task.done() and not send_task.cancelled():
                # Mark the result as retrieved; it is discarded
                send_task.exception()
            raise CancelledFailure(token.reason or "Request cancelled", config, request=request)

        return send_task.result()

    async def request(self, config: Optional[RequestConfig] = None, **fields: Any) -> httpx.Response:
        """
        Send a request and pass the outcome through the interceptor chain.

        Args:
            config: Request to send; built from ``fields`` when omitted
            **fields: RequestConfig fields (method, url, json, retry, ...)

        Returns:
            The response, possibly produced by an interceptor (e.g. a retry)

        Raises:
            RequestFailure: Or whatever the last interceptor raised
        """
        if config is None:
            config = RequestConfig(**fields)

        try:
            response = await self.send(config)
        except RequestFailure as failure:
            return await self.interceptors.run(None, failure)
        return await self.interceptors.run(response, None)

    async def get(self, url: str, **fields: Any) -> httpx.Response:
        return await self.request(method="GET", url=url, **fields)

    async def head(self, url: str, **fields: Any) -> httpx.Response:
        return await self.request(method="HEAD", url=url, **fields)

    async def options(self, url: str, **fields: Any) -> httpx.Response:
        return await self.request(method="OPTIONS", url=url, **fields)

    async def post(self, url: str, **fields: Any) -> httpx.Response:
        return await self.request(method="POST", url=url, **fields)

    async def put(self, url: str, **fields: Any) -> httpx.Response:
        return await self.request(method="PUT", url=url, **fields)

    async def patch(self, url: str, **fields: Any) -> httpx.Response:
        return await self.request(method="PATCH", url=url, **fields)

    async def delete(self, url: str, **fields: Any) -> httpx.Response:
        return await self.request(method="DELETE", url=url, **fields)

    async def aclose(self) -> None:
        """Close the underlying AsyncClient if this instance created it."""
        if self._client is not None and self._owns_client and not self._client.is_closed:
            await self._client.aclose()
            logger.debug("Closed httpx AsyncClient")

    async def __aenter__(self) -> "HttpClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"base_url={self.base_url!r}, "
            f"timeout={self.timeout}s, "
            f"interceptors={len(self.interceptors)})"
        )


_default_client: Optional[HttpClient] = None


def get_default_client() -> HttpClient:
    """Process-wide client used by attach()/detach() when none is given."""
    global _default_client
    if _default_client is None:
        _default_client = HttpClient()
    return _default_client
