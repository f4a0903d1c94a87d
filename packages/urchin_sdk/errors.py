"""Error models and HTTP-to-SDK error mapping for Urchin SDK calls."""

from __future__ import annotations

from dataclasses import dataclass

from packages.urchin_shared.http import (
    HttpBodyReadError,
    HttpClientError,
    HttpRequestError,
    HttpStatusError,
)


@dataclass(eq=False)
class UrchinSdkError(Exception):
    """Base error type for Urchin SDK failures.

    Errors are not frozen: ``contextlib`` assigns ``__traceback__`` when an
    error leaves a generator-based context manager.
    """

    message: str

    def __str__(self) -> str:
        """Return human-readable error message."""
        return self.message


@dataclass(eq=False)
class UrchinDomainError(UrchinSdkError):
    """Failure that did not originate in the network round trip."""

    operation: str = ""


@dataclass(eq=False)
class UrchinValidationError(UrchinDomainError):
    """Caller input failed validation before any request was sent."""

    field: str = ""


@dataclass(eq=False)
class UrchinLocatorError(UrchinValidationError):
    """Source URL is not a well-formed ``urfs://endpoint/bucket/key`` locator."""

    raw_url: str = ""


@dataclass(eq=False)
class UrchinConfigError(UrchinValidationError):
    """Client configuration is invalid."""


@dataclass(eq=False)
class UrchinDecodeError(UrchinDomainError):
    """Peer response body could not be deserialized into a result."""

    response_body: str = ""


@dataclass(eq=False)
class UrchinConsistencyError(UrchinDomainError):
    """Peer-reported content length disagrees with object metadata."""

    expected_length: int = 0
    actual_length: int = 0


@dataclass(eq=False)
class UrchinTransportError(UrchinSdkError):
    """Network-level failure talking to the peer."""

    operation: str = ""
    method: str = ""
    url: str = ""
    retryable: bool = False


@dataclass(eq=False)
class UrchinStatusError(UrchinTransportError):
    """Peer answered with a status outside the 2xx class."""

    status_code: int = 0
    reason_phrase: str = ""
    response_body: str = ""


@dataclass(eq=False)
class UrchinBodyReadError(UrchinTransportError):
    """Peer response body could not be read to completion."""


def map_http_error(*, operation: str, error: HttpClientError) -> UrchinSdkError:
    """Map one shared HTTP client error into a typed SDK error."""
    if isinstance(error, HttpStatusError):
        status = f"{error.status_code} {error.reason_phrase}".strip()
        return UrchinStatusError(
            message=f"{operation} failed: bad response status {status}",
            operation=operation,
            method=error.method,
            url=error.url,
            retryable=error.retryable,
            status_code=error.status_code,
            reason_phrase=error.reason_phrase,
            response_body=error.response_body,
        )
    if isinstance(error, HttpBodyReadError):
        return UrchinBodyReadError(
            message=f"{operation} failed reading response body: {error.message}",
            operation=operation,
            method=error.method,
            url=error.url,
            retryable=error.retryable,
        )
    if isinstance(error, HttpRequestError):
        return UrchinTransportError(
            message=f"{operation} transport failure: {error.message}",
            operation=operation,
            method=error.method,
            url=error.url,
            retryable=error.retryable,
        )
    return UrchinTransportError(
        message=f"{operation} failed: {error.message}",
        operation=operation,
        method=error.method,
        url=error.url,
        retryable=error.retryable,
    )
