"""Request execution and response mapping for Urchin SDK operations."""

from __future__ import annotations

import time
from typing import Any

import httpx

from packages.urchin_sdk.builder import RequestKind, UrfsRequest
from packages.urchin_sdk.errors import UrchinDomainError, map_http_error
from packages.urchin_sdk.locator import parse_urfs_url
from packages.urchin_sdk.results import (
    ObjectMetadata,
    PeerResult,
    metadata_from_headers,
    parse_peer_result,
)
from packages.urchin_shared.http import AsyncHttpClient, HttpClient, HttpClientError
from packages.urchin_shared.logging import fields, get_logger

logger = get_logger(__name__)

OPERATION_NAMES: dict[RequestKind, str] = {
    RequestKind.METADATA: "urfs.metadata",
    RequestKind.FETCH: "urfs.schedule",
    RequestKind.FETCH_DIR: "urfs.schedule_dir",
    RequestKind.STATUS: "urfs.status",
    RequestKind.STATUS_DIR: "urfs.status_dir",
}


def call_object_metadata(
    *,
    http: HttpClient,
    request: UrfsRequest,
    key: str,
    timeout_seconds: float | None = None,
) -> ObjectMetadata:
    """Execute one metadata HEAD request and map headers to ``ObjectMetadata``."""
    operation = OPERATION_NAMES[request.kind]
    response = _send(
        http=http,
        request=request,
        operation=operation,
        timeout_seconds=timeout_seconds,
    )
    return _decode_metadata(request, operation, key, response)


def call_peer_result(
    *,
    http: HttpClient,
    request: UrfsRequest,
    timeout_seconds: float | None = None,
) -> PeerResult:
    """Execute one schedule/status request and decode the peer result."""
    operation = OPERATION_NAMES[request.kind]
    response = _send(
        http=http,
        request=request,
        operation=operation,
        timeout_seconds=timeout_seconds,
    )
    result = _decode_peer_result(request, operation, response)
    logger.debug(
        "peer result decoded",
        extra={
            fields.STATUS_CODE: result.status_code,
            fields.TASK_ID: result.task_id or None,
        },
    )
    return result


async def acall_object_metadata(
    *,
    http: AsyncHttpClient,
    request: UrfsRequest,
    key: str,
    timeout_seconds: float | None = None,
) -> ObjectMetadata:
    """Async variant of ``call_object_metadata``."""
    operation = OPERATION_NAMES[request.kind]
    response = await _asend(
        http=http,
        request=request,
        operation=operation,
        timeout_seconds=timeout_seconds,
    )
    return _decode_metadata(request, operation, key, response)


async def acall_peer_result(
    *,
    http: AsyncHttpClient,
    request: UrfsRequest,
    timeout_seconds: float | None = None,
) -> PeerResult:
    """Async variant of ``call_peer_result``."""
    operation = OPERATION_NAMES[request.kind]
    response = await _asend(
        http=http,
        request=request,
        operation=operation,
        timeout_seconds=timeout_seconds,
    )
    return _decode_peer_result(request, operation, response)


def _send(
    *,
    http: HttpClient,
    request: UrfsRequest,
    operation: str,
    timeout_seconds: float | None,
) -> httpx.Response:
    """Send one request, read its full body and normalize HTTP failures."""
    started = time.monotonic()
    _log_request(request)
    try:
        response = http.request_read(
            request.method, request.url, **_request_kwargs(request, timeout_seconds)
        )
    except HttpClientError as error:
        _log_failure(request, error)
        raise map_http_error(operation=operation, error=error) from error
    _log_response(request, response, started)
    return response


async def _asend(
    *,
    http: AsyncHttpClient,
    request: UrfsRequest,
    operation: str,
    timeout_seconds: float | None,
) -> httpx.Response:
    """Async variant of ``_send``."""
    started = time.monotonic()
    _log_request(request)
    try:
        response = await http.request_read(
            request.method, request.url, **_request_kwargs(request, timeout_seconds)
        )
    except HttpClientError as error:
        _log_failure(request, error)
        raise map_http_error(operation=operation, error=error) from error
    _log_response(request, response, started)
    return response


def _decode_metadata(
    request: UrfsRequest, operation: str, key: str, response: httpx.Response
) -> ObjectMetadata:
    try:
        return metadata_from_headers(
            operation=operation, key=key, headers=response.headers
        )
    except UrchinDomainError as error:
        _log_failure(request, error)
        raise


def _decode_peer_result(
    request: UrfsRequest, operation: str, response: httpx.Response
) -> PeerResult:
    try:
        return parse_peer_result(operation=operation, body=response.content)
    except UrchinDomainError as error:
        _log_failure(request, error)
        raise


def _request_kwargs(
    request: UrfsRequest, timeout_seconds: float | None
) -> dict[str, Any]:
    """Build httpx keyword arguments; a per-call timeout overrides the client's."""
    kwargs: dict[str, Any] = {"headers": dict(request.headers)}
    if timeout_seconds is not None:
        kwargs["timeout"] = timeout_seconds
    return kwargs


def _log_request(request: UrfsRequest) -> None:
    logger.debug(
        "peer request",
        extra={
            fields.REQUEST_KIND: request.kind.value,
            fields.METHOD: request.method,
            fields.URL: request.url,
        },
    )


def _log_response(
    request: UrfsRequest, response: httpx.Response, started: float
) -> None:
    logger.debug(
        "peer response",
        extra={
            fields.REQUEST_KIND: request.kind.value,
            fields.STATUS_CODE: response.status_code,
            fields.DURATION_MS: round((time.monotonic() - started) * 1000, 2),
        },
    )


def _log_failure(request: UrfsRequest, error: Exception) -> None:
    logger.warning(
        "peer request failed: %s",
        error,
        extra={
            fields.REQUEST_KIND: request.kind.value,
            fields.METHOD: request.method,
            fields.URL: request.url,
            fields.ERROR_TYPE: type(error).__name__,
        },
    )


def schedule(
    *,
    client: Any,
    source_url: str,
    peer: str,
    directory: bool = False,
    overwrite: bool = False,
    url_filter: str | None = None,
    byte_range: str = "",
) -> PeerResult:
    """High-level wrapper: ask ``peer`` to cache the object or directory at ``source_url``."""
    locator = parse_urfs_url(source_url)
    if directory:
        return client.schedule_dir_to_peer_by_key(
            locator.endpoint,
            locator.bucket,
            locator.key,
            peer,
            url_filter=url_filter,
            byte_range=byte_range,
        )
    return client.schedule_data_to_peer_by_key(
        locator.endpoint,
        locator.bucket,
        locator.key,
        peer,
        overwrite=overwrite,
        url_filter=url_filter,
        byte_range=byte_range,
    )


def check_status(
    *,
    client: Any,
    source_url: str,
    peer: str,
    directory: bool = False,
    url_filter: str | None = None,
    byte_range: str = "",
) -> PeerResult:
    """High-level wrapper: report the peer's task status for ``source_url``."""
    locator = parse_urfs_url(source_url)
    if directory:
        return client.check_schedule_dir_task_status_by_key(
            locator.endpoint,
            locator.bucket,
            locator.key,
            peer,
            url_filter=url_filter,
            byte_range=byte_range,
        )
    return client.check_schedule_task_status_by_key(
        locator.endpoint,
        locator.bucket,
        locator.key,
        peer,
        url_filter=url_filter,
        byte_range=byte_range,
    )


def object_metadata(*, client: Any, source_url: str, peer: str) -> ObjectMetadata:
    """High-level wrapper: fetch object metadata for ``source_url`` through ``peer``."""
    locator = parse_urfs_url(source_url)
    return client.get_object_metadata(
        locator.endpoint, locator.bucket, locator.key, peer
    )
