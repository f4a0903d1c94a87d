"""Public shared HTTP API for Urchin packages."""

from .client import AsyncHttpClient, HttpClient
from .errors import (
    HttpBodyReadError,
    HttpClientError,
    HttpError,
    HttpRequestError,
    HttpStatusError,
)

__all__ = [
    "AsyncHttpClient",
    "HttpBodyReadError",
    "HttpClient",
    "HttpClientError",
    "HttpError",
    "HttpRequestError",
    "HttpStatusError",
]
