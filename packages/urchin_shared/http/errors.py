"""Typed errors for the shared HTTP client wrappers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping


@dataclass(eq=False)
class HttpError(Exception):
    """Base error type for shared HTTP helper failures.

    Not frozen, so ``__traceback__`` stays assignable.
    """

    message: str

    def __str__(self) -> str:
        """Return the human-readable error message."""
        return self.message


@dataclass(eq=False)
class HttpClientError(HttpError):
    """Base error for outbound HTTP client call failures."""

    method: str
    url: str
    retryable: bool = False


@dataclass(eq=False)
class HttpRequestError(HttpClientError):
    """HTTP client transport-level failure (connect, timeout, protocol)."""

    cause: Exception | None = None


@dataclass(eq=False)
class HttpStatusError(HttpClientError):
    """HTTP client non-success status code failure."""

    status_code: int = 0
    reason_phrase: str = ""
    response_body: str = ""
    response_headers: Mapping[str, str] = field(default_factory=dict)


@dataclass(eq=False)
class HttpBodyReadError(HttpClientError):
    """Response body could not be read after a successful status line."""

    status_code: int = 0
    cause: Exception | None = None
