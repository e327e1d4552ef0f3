"""
Request configuration models.

RequestConfig is everything needed to (re)issue one HTTP request. It is
immutable in spirit: the retry engine never edits the caller's instance,
it resubmits a copy carrying the live RetryPolicy under ``retry``.
"""

import asyncio
from typing import Any, Callable, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from http_retry.models.policy import RetryPolicy


def default_validate_status(status_code: int) -> bool:
    """Accept 2xx responses only."""
    return 200 <= status_code < 300


class CancelToken:
    """
    Cooperative cancellation primitive shared by a caller and its request.

    Cancelling the token aborts an in-flight send and any pending retry
    delay of the request chain that carries it.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self.reason: Optional[str] = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: Optional[str] = None) -> None:
        if not self._event.is_set():
            self.reason = reason or "Request cancelled"
            self._event.set()

    async def wait(self) -> None:
        await self._event.wait()

    def __repr__(self) -> str:
        return f"CancelToken(cancelled={self.cancelled})"


class RequestConfig(BaseModel):
    """
    One HTTP request as issued through HttpClient.

    ``retry`` is the dedicated key for per-request retry configuration:
    either a (partial) RetryPolicy or a plain mapping of its field names.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, populate_by_name=True)

    method: str = Field(default="GET", description="HTTP method, stored uppercase")
    url: str = Field(..., description="Absolute URL or path relative to the client's base_url")
    params: Optional[dict[str, Any]] = Field(default=None, description="Query parameters")
    headers: Optional[dict[str, str]] = Field(default=None, description="Request headers")
    json_body: Any = Field(default=None, alias="json", description="JSON-serializable body")
    content: Optional[Union[bytes, str]] = Field(default=None, description="Raw body")
    timeout: Optional[float] = Field(
        default=None, ge=0, description="Per-request timeout in seconds (client default if None)"
    )
    validate_status: Callable[[int], bool] = Field(
        default=default_validate_status,
        description="Returns True for status codes that count as success",
    )
    cancel_token: Optional[CancelToken] = Field(default=None, description="Cancellation handle")
    retry: Optional[Union[dict[str, Any], RetryPolicy]] = Field(
        default=None, description="Retry policy for this request"
    )

    @field_validator("method", mode="before")
    @classmethod
    def _uppercase_method(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.upper()
        return value
