"""
Response interceptor chain.

Interceptors observe the outcome of every request issued through
HttpClient.request(). Handlers run in registration order:

- on_fulfilled(response) sees a successful response and returns the
  response passed on to the next handler.
- on_rejected(failure) sees a failure. Returning a response recovers
  the request; raising replaces the failure passed on to the next handler.

Handlers may be plain or async callables.
"""

import inspect
import itertools
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Iterator, Optional, Union

import httpx
import structlog

logger = structlog.get_logger(__name__)

FulfilledHandler = Callable[[httpx.Response], Union[httpx.Response, Awaitable[httpx.Response]]]
RejectedHandler = Callable[[Exception], Union[httpx.Response, Awaitable[httpx.Response]]]


async def resolve_maybe_awaitable(value: Any) -> Any:
    """Await value if it is awaitable, otherwise return it as-is."""
    if inspect.isawaitable(value):
        return await value
    return value


@dataclass(frozen=True)
class Interceptor:
    """A registered pair of response handlers."""

    handle: int
    on_fulfilled: Optional[FulfilledHandler] = None
    on_rejected: Optional[RejectedHandler] = None


class InterceptorManager:
    """
    Ordered registry of response interceptors for one client.

    Handles are unique per manager and never reused.
    """

    def __init__(self) -> None:
        self._interceptors: dict[int, Interceptor] = {}
        self._handles = itertools.count()

    def use(
        self,
        on_rejected: Optional[RejectedHandler] = None,
        on_fulfilled: Optional[FulfilledHandler] = None,
    ) -> int:
        """Register handlers and return the handle used to eject them."""
        handle = next(self._handles)
        self._interceptors[handle] = Interceptor(
            handle=handle, on_fulfilled=on_fulfilled, on_rejected=on_rejected
        )
        logger.debug("Interceptor registered", handle=handle)
        return handle

    def eject(self, handle: int) -> None:
        """Remove an interceptor. Unknown or already ejected handles are ignored."""
        if self._interceptors.pop(handle, None) is not None:
            logger.debug("Interceptor ejected", handle=handle)

    def __iter__(self) -> Iterator[Interceptor]:
        # Snapshot so handlers may eject themselves mid-chain
        return iter(list(self._interceptors.values()))

    def __len__(self) -> int:
        return len(self._interceptors)

    def __contains__(self, handle: object) -> bool:
        return handle in self._interceptors

    async def run(
        self, response: Optional[httpx.Response], error: Optional[Exception]
    ) -> httpx.Response:
        """
        Pass an outcome through every interceptor.

        Args:
            response: The response, if the attempt succeeded
            error: The failure, if the attempt failed

        Returns:
            The final response

        Raises:
            Exception: The final error if no handler recovered
        """
        for interceptor in self:
            if error is None:
                if interceptor.on_fulfilled is not None:
                    response = await resolve_maybe_awaitable(interceptor.on_fulfilled(response))
                continue

            if interceptor.on_rejected is None:
                continue

            try:
                response = await resolve_maybe_awaitable(interceptor.on_rejected(error))
            except Exception as exc:
                error = exc
            else:
                error = None

        if error is not None:
            raise error
        return response
