"""Minimal shared HTTP client wrappers over httpx."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import httpx

from .errors import (
    HttpBodyReadError,
    HttpRequestError,
    HttpStatusError,
)


def _response_text(response: httpx.Response) -> str:
    """Return response text without raising secondary decode errors."""
    try:
        return response.text
    except Exception:
        return ""


def _status_error(response: httpx.Response) -> HttpStatusError:
    """Build a typed status error from one HTTP response."""
    status_code = response.status_code
    retryable = status_code >= 500 or status_code == 429
    reason = response.reason_phrase
    status = f"{status_code} {reason}" if reason else str(status_code)
    return HttpStatusError(
        message=f"HTTP {status} for {response.request.method} {response.request.url}",
        method=response.request.method,
        url=str(response.request.url),
        retryable=retryable,
        status_code=status_code,
        reason_phrase=reason,
        response_body=_response_text(response),
        response_headers=dict(response.headers.items()),
    )


def _request_error(exc: httpx.RequestError, method: str, url: str) -> HttpRequestError:
    """Build a typed transport error from one httpx request failure."""
    try:
        request = exc.request
    except RuntimeError:
        request = None
    request_url = str(request.url) if request is not None else url
    request_method = request.method if request is not None else method.upper()
    return HttpRequestError(
        message=f"HTTP request failed for {request_method} {request_url}: {exc}",
        method=request_method,
        url=request_url,
        retryable=True,
        cause=exc,
    )


def _body_read_error(response: httpx.Response, exc: Exception) -> HttpBodyReadError:
    """Build a typed body-read error for one response."""
    return HttpBodyReadError(
        message=(
            f"Failed reading response body for "
            f"{response.request.method} {response.request.url}: {exc}"
        ),
        method=response.request.method,
        url=str(response.request.url),
        retryable=True,
        status_code=response.status_code,
        cause=exc,
    )


class HttpClient:
    """Thin synchronous wrapper over ``httpx.Client``."""

    def __init__(
        self,
        *,
        base_url: str = "",
        timeout_seconds: float | None = 10.0,
        headers: Mapping[str, str] | None = None,
        follow_redirects: bool = False,
        transport: httpx.BaseTransport | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        """Create a new shared HTTP client wrapper."""
        self._owns_client = client is None
        self._client = client or httpx.Client(
            base_url=base_url,
            timeout=timeout_seconds,
            headers=dict(headers or {}),
            follow_redirects=follow_redirects,
            transport=transport,
        )

    def close(self) -> None:
        """Close underlying transport resources when owned."""
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> HttpClient:
        """Enter context manager scope."""
        return self

    def __exit__(self, *_: object) -> None:
        """Exit context manager scope and close client."""
        self.close()

    def open_stream(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Send one request without reading its body; the caller must close it."""
        try:
            request = self._client.build_request(method=method, url=url, **kwargs)
            return self._client.send(request, stream=True)
        except httpx.RequestError as exc:
            raise _request_error(exc, method, url) from exc

    def read_body(self, response: httpx.Response) -> bytes:
        """Read one streamed body fully, mapping read failures to typed errors."""
        try:
            return response.read()
        except (httpx.RequestError, httpx.StreamError) as exc:
            raise _body_read_error(response, exc) from exc

    def request_read(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Issue one streamed request and return it with its body fully read.

        Only 2xx answers succeed. The response is closed on every path.
        """
        response = self.open_stream(method, url, **kwargs)
        try:
            if not response.is_success:
                try:
                    self.read_body(response)
                except HttpBodyReadError as exc:
                    raise _status_error(response) from exc
                raise _status_error(response)
            self.read_body(response)
        finally:
            response.close()
        return response


class AsyncHttpClient:
    """Thin asynchronous wrapper over ``httpx.AsyncClient``."""

    def __init__(
        self,
        *,
        base_url: str = "",
        timeout_seconds: float | None = 10.0,
        headers: Mapping[str, str] | None = None,
        follow_redirects: bool = False,
        transport: httpx.AsyncBaseTransport | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Create a new shared asynchronous HTTP client wrapper."""
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout_seconds,
            headers=dict(headers or {}),
            follow_redirects=follow_redirects,
            transport=transport,
        )

    async def aclose(self) -> None:
        """Close underlying transport resources when owned."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> AsyncHttpClient:
        """Enter async context manager scope."""
        return self

    async def __aexit__(self, *_: object) -> None:
        """Exit async context manager scope and close client."""
        await self.aclose()

    async def open_stream(
        self, method: str, url: str, **kwargs: Any
    ) -> httpx.Response:
        """Send one request without reading its body; the caller must close it."""
        try:
            request = self._client.build_request(method=method, url=url, **kwargs)
            return await self._client.send(request, stream=True)
        except httpx.RequestError as exc:
            raise _request_error(exc, method, url) from exc

    async def read_body(self, response: httpx.Response) -> bytes:
        """Read one streamed body fully, mapping read failures to typed errors."""
        try:
            return await response.aread()
        except (httpx.RequestError, httpx.StreamError) as exc:
            raise _body_read_error(response, exc) from exc

    async def request_read(
        self, method: str, url: str, **kwargs: Any
    ) -> httpx.Response:
        """Issue one streamed request and return it with its body fully read.

        Only 2xx answers succeed. The response is closed on every path,
        including task cancellation.
        """
        response = await self.open_stream(method, url, **kwargs)
        try:
            if not response.is_success:
                try:
                    await self.read_body(response)
                except HttpBodyReadError as exc:
                    raise _status_error(response) from exc
                raise _status_error(response)
            await self.read_body(response)
        finally:
            await response.aclose()
        return response
