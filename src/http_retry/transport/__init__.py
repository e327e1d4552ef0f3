"""
HTTP transport for the retry layer.

Thin wrapper around httpx.AsyncClient exposing a uniform failure type and
a response interceptor chain the retry engine attaches to.
"""

from http_retry.transport.client import HttpClient, get_default_client
from http_retry.transport.exceptions import (
    CancelledFailure,
    NetworkFailure,
    RequestFailure,
    ResponseFailure,
)
from http_retry.transport.interceptors import Interceptor, InterceptorManager

__all__ = [
    "HttpClient",
    "get_default_client",
    "RequestFailure",
    "NetworkFailure",
    "ResponseFailure",
    "CancelledFailure",
    "Interceptor",
    "InterceptorManager",
]
