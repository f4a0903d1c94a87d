"""Urchin SDK clients: ask peers to cache objects and report task status."""

from __future__ import annotations

from dataclasses import dataclass
import time

import httpx

from packages.urchin_sdk.builder import RequestKind, UrfsRequest, build_request
from packages.urchin_sdk.calls import (
    OPERATION_NAMES,
    acall_object_metadata,
    acall_peer_result,
    call_object_metadata,
    call_peer_result,
)
from packages.urchin_sdk.config import UrchinSdkConfig
from packages.urchin_sdk.errors import (
    UrchinDomainError,
    UrchinLocatorError,
    UrchinTransportError,
)
from packages.urchin_sdk.locator import ObjectLocator, is_urfs_url, parse_urfs_url
from packages.urchin_sdk.results import ObjectMetadata, PeerResult, verify_content_length
from packages.urchin_shared.http import AsyncHttpClient, HttpClient
from packages.urchin_shared.logging import (
    fields,
    get_logger,
    log_context,
    operation_context,
)

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class _Plan:
    """Requests for one operation, built before anything is sent."""

    operation: str
    peer: str
    locator: ObjectLocator
    metadata_request: UrfsRequest | None
    request: UrfsRequest


@dataclass(frozen=True, slots=True)
class _Deadline:
    """Time budget shared by the sequential calls of one operation."""

    operation: str
    expires_at: float | None

    @classmethod
    def start(cls, operation: str, timeout_seconds: float | None) -> _Deadline:
        if timeout_seconds is None:
            return cls(operation=operation, expires_at=None)
        return cls(operation=operation, expires_at=time.monotonic() + timeout_seconds)

    def remaining(self) -> float | None:
        """Return seconds left, raising once the budget is spent."""
        if self.expires_at is None:
            return None
        left = self.expires_at - time.monotonic()
        if left <= 0:
            error = UrchinTransportError(
                message=f"{self.operation} deadline exceeded",
                operation=self.operation,
                retryable=True,
            )
            _log_failure(self.operation, error)
            raise error
        return left


def _log_failure(operation: str, error: Exception) -> None:
    logger.warning(
        "%s failed: %s",
        operation,
        error,
        extra={fields.ERROR_TYPE: type(error).__name__},
    )


def _source_locator(source_url: str) -> ObjectLocator:
    """Validate and parse one ``urfs://`` source URL."""
    if not is_urfs_url(source_url):
        raise UrchinLocatorError(
            message="source url should be urfs:// protocol",
            field="source_url",
            raw_url=source_url,
        )
    return parse_urfs_url(source_url)


class _ClientBase:
    """Request planning shared by the sync and async clients."""

    def __init__(self, config: UrchinSdkConfig | None) -> None:
        self._config = UrchinSdkConfig() if config is None else config
        self._config.validate()

    @property
    def config(self) -> UrchinSdkConfig:
        """Return the validated client configuration."""
        return self._config

    def _plan(
        self,
        kind: RequestKind,
        locator: ObjectLocator,
        dest_peer: str,
        *,
        overwrite: bool = False,
        url_filter: str | None = None,
        byte_range: str = "",
    ) -> _Plan:
        """Build every request for one operation; file kinds get a metadata HEAD first."""
        scheme = self._config.peer_scheme
        request = build_request(
            locator,
            peer=dest_peer,
            kind=kind,
            url_filter=self._config.filter if url_filter is None else url_filter,
            byte_range=byte_range,
            overwrite=overwrite,
            scheme=scheme,
        )
        metadata_request = None
        if kind in (RequestKind.FETCH, RequestKind.STATUS):
            metadata_request = build_request(
                locator, peer=dest_peer, kind=RequestKind.METADATA, scheme=scheme
            )
        return _Plan(
            operation=OPERATION_NAMES[kind],
            peer=dest_peer,
            locator=locator,
            metadata_request=metadata_request,
            request=request,
        )

    @staticmethod
    def _context(plan: _Plan) -> dict[str, object]:
        return dict(
            operation_context(
                plan.operation,
                peer=plan.peer,
                endpoint=plan.locator.endpoint,
                bucket=plan.locator.bucket,
                object_key=plan.locator.key,
            )
        )

    @staticmethod
    def _finish(plan: _Plan, result: PeerResult, metadata: ObjectMetadata | None) -> PeerResult:
        if metadata is not None:
            try:
                verify_content_length(
                    operation=plan.operation, result=result, metadata=metadata
                )
            except UrchinDomainError as exc:
                _log_failure(plan.operation, exc)
                raise
        logger.info(
            "%s finished",
            plan.operation,
            extra={
                fields.STATUS_CODE: result.status_code,
                fields.TASK_ID: result.task_id or None,
            },
        )
        return result


class UrchinClient(_ClientBase):
    """Synchronous Urchin client.

    Each operation issues at most two sequential requests on the calling
    thread: a metadata HEAD (file operations only) and the schedule or status
    request. Nothing is retried. ``timeout_seconds`` is a budget shared by
    those requests: each one gets what is left as its httpx timeout, which
    limits every connect, read, write and pool wait separately, and the budget
    is checked again before the next request. It is not a hard wall-clock cap
    on a body that keeps trickling in. When omitted the configured transport
    timeout applies.
    """

    def __init__(
        self,
        *,
        config: UrchinSdkConfig | None = None,
        http_client: HttpClient | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Create one client with an injected or config-built HTTP client."""
        super().__init__(config)
        self._owns_http = http_client is None
        self._http = http_client or HttpClient(
            timeout_seconds=self._config.timeout_seconds,
            transport=transport,
        )

    def close(self) -> None:
        """Release the HTTP client when this instance created it."""
        if self._owns_http:
            self._http.close()

    def __enter__(self) -> UrchinClient:
        """Enter context manager scope."""
        return self

    def __exit__(self, *_: object) -> None:
        """Exit context manager scope and close HTTP resources."""
        self.close()

    def schedule_data_to_peer(
        self,
        source_url: str,
        dest_peer: str,
        *,
        url_filter: str | None = None,
        byte_range: str = "",
        timeout_seconds: float | None = None,
    ) -> PeerResult:
        """Ask ``dest_peer`` to cache the object named by a ``urfs://`` URL."""
        return self._run(
            self._plan(
                RequestKind.FETCH,
                _source_locator(source_url),
                dest_peer,
                url_filter=url_filter,
                byte_range=byte_range,
            ),
            timeout_seconds,
        )

    def check_schedule_task_status(
        self,
        source_url: str,
        dest_peer: str,
        *,
        url_filter: str | None = None,
        byte_range: str = "",
        timeout_seconds: float | None = None,
    ) -> PeerResult:
        """Report ``dest_peer``'s task status for a ``urfs://`` object URL."""
        return self._run(
            self._plan(
                RequestKind.STATUS,
                _source_locator(source_url),
                dest_peer,
                url_filter=url_filter,
                byte_range=byte_range,
            ),
            timeout_seconds,
        )

    def schedule_data_to_peer_by_key(
        self,
        endpoint: str,
        bucket: str,
        object_key: str,
        dest_peer: str,
        *,
        overwrite: bool = False,
        url_filter: str | None = None,
        byte_range: str = "",
        timeout_seconds: float | None = None,
    ) -> PeerResult:
        """Ask ``dest_peer`` to cache one object, optionally overwriting its copy."""
        return self._run(
            self._plan(
                RequestKind.FETCH,
                ObjectLocator(endpoint, bucket, object_key),
                dest_peer,
                overwrite=overwrite,
                url_filter=url_filter,
                byte_range=byte_range,
            ),
            timeout_seconds,
        )

    def check_schedule_task_status_by_key(
        self,
        endpoint: str,
        bucket: str,
        object_key: str,
        dest_peer: str,
        *,
        url_filter: str | None = None,
        byte_range: str = "",
        timeout_seconds: float | None = None,
    ) -> PeerResult:
        """Report ``dest_peer``'s task status for one object."""
        return self._run(
            self._plan(
                RequestKind.STATUS,
                ObjectLocator(endpoint, bucket, object_key),
                dest_peer,
                url_filter=url_filter,
                byte_range=byte_range,
            ),
            timeout_seconds,
        )

    def schedule_dir_to_peer_by_key(
        self,
        endpoint: str,
        bucket: str,
        object_key: str,
        dest_peer: str,
        *,
        url_filter: str | None = None,
        byte_range: str = "",
        timeout_seconds: float | None = None,
    ) -> PeerResult:
        """Ask ``dest_peer`` to cache every object under a directory prefix."""
        return self._run(
            self._plan(
                RequestKind.FETCH_DIR,
                ObjectLocator(endpoint, bucket, object_key),
                dest_peer,
                url_filter=url_filter,
                byte_range=byte_range,
            ),
            timeout_seconds,
        )

    def check_schedule_dir_task_status_by_key(
        self,
        endpoint: str,
        bucket: str,
        object_key: str,
        dest_peer: str,
        *,
        url_filter: str | None = None,
        byte_range: str = "",
        timeout_seconds: float | None = None,
    ) -> PeerResult:
        """Report ``dest_peer``'s task status for a directory prefix."""
        return self._run(
            self._plan(
                RequestKind.STATUS_DIR,
                ObjectLocator(endpoint, bucket, object_key),
                dest_peer,
                url_filter=url_filter,
                byte_range=byte_range,
            ),
            timeout_seconds,
        )

    def get_object_metadata(
        self,
        endpoint: str,
        bucket: str,
        object_key: str,
        dest_peer: str,
        *,
        timeout_seconds: float | None = None,
    ) -> ObjectMetadata:
        """Return object metadata as reported by ``dest_peer``."""
        plan = self._plan(
            RequestKind.METADATA, ObjectLocator(endpoint, bucket, object_key), dest_peer
        )
        with log_context(self._context(plan)):
            return call_object_metadata(
                http=self._http,
                request=plan.request,
                key=plan.locator.key,
                timeout_seconds=timeout_seconds,
            )

    def _run(self, plan: _Plan, timeout_seconds: float | None) -> PeerResult:
        """Execute one planned operation: metadata (file kinds), then the main request."""
        deadline = _Deadline.start(plan.operation, timeout_seconds)
        with log_context(self._context(plan)):
            metadata = None
            if plan.metadata_request is not None:
                metadata = call_object_metadata(
                    http=self._http,
                    request=plan.metadata_request,
                    key=plan.locator.key,
                    timeout_seconds=deadline.remaining(),
                )
            result = call_peer_result(
                http=self._http,
                request=plan.request,
                timeout_seconds=deadline.remaining(),
            )
            return self._finish(plan, result, metadata)


class AsyncUrchinClient(_ClientBase):
    """Asynchronous Urchin client.

    Same operations as ``UrchinClient``. Cancelling the awaiting task aborts
    the in-flight request and any pending body read.
    """

    def __init__(
        self,
        *,
        config: UrchinSdkConfig | None = None,
        http_client: AsyncHttpClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Create one async client with an injected or config-built HTTP client."""
        super().__init__(config)
        self._owns_http = http_client is None
        self._http = http_client or AsyncHttpClient(
            timeout_seconds=self._config.timeout_seconds,
            transport=transport,
        )

    async def aclose(self) -> None:
        """Release the HTTP client when this instance created it."""
        if self._owns_http:
            await self._http.aclose()

    async def __aenter__(self) -> AsyncUrchinClient:
        """Enter async context manager scope."""
        return self

    async def __aexit__(self, *_: object) -> None:
        """Exit async context manager scope and close HTTP resources."""
        await self.aclose()

    async def schedule_data_to_peer(
        self,
        source_url: str,
        dest_peer: str,
        *,
        url_filter: str | None = None,
        byte_range: str = "",
        timeout_seconds: float | None = None,
    ) -> PeerResult:
        """Ask ``dest_peer`` to cache the object named by a ``urfs://`` URL."""
        return await self._run(
            self._plan(
                RequestKind.FETCH,
                _source_locator(source_url),
                dest_peer,
                url_filter=url_filter,
                byte_range=byte_range,
            ),
            timeout_seconds,
        )

    async def check_schedule_task_status(
        self,
        source_url: str,
        dest_peer: str,
        *,
        url_filter: str | None = None,
        byte_range: str = "",
        timeout_seconds: float | None = None,
    ) -> PeerResult:
        """Report ``dest_peer``'s task status for a ``urfs://`` object URL."""
        return await self._run(
            self._plan(
                RequestKind.STATUS,
                _source_locator(source_url),
                dest_peer,
                url_filter=url_filter,
                byte_range=byte_range,
            ),
            timeout_seconds,
        )

    async def schedule_data_to_peer_by_key(
        self,
        endpoint: str,
        bucket: str,
        object_key: str,
        dest_peer: str,
        *,
        overwrite: bool = False,
        url_filter: str | None = None,
        byte_range: str = "",
        timeout_seconds: float | None = None,
    ) -> PeerResult:
        """Ask ``dest_peer`` to cache one object, optionally overwriting its copy."""
        return await self._run(
            self._plan(
                RequestKind.FETCH,
                ObjectLocator(endpoint, bucket, object_key),
                dest_peer,
                overwrite=overwrite,
                url_filter=url_filter,
                byte_range=byte_range,
            ),
            timeout_seconds,
        )

    async def check_schedule_task_status_by_key(
        self,
        endpoint: str,
        bucket: str,
        object_key: str,
        dest_peer: str,
        *,
        url_filter: str | None = None,
        byte_range: str = "",
        timeout_seconds: float | None = None,
    ) -> PeerResult:
        """Report ``dest_peer``'s task status for one object."""
        return await self._run(
            self._plan(
                RequestKind.STATUS,
                ObjectLocator(endpoint, bucket, object_key),
                dest_peer,
                url_filter=url_filter,
                byte_range=byte_range,
            ),
            timeout_seconds,
        )

    async def schedule_dir_to_peer_by_key(
        self,
        endpoint: str,
        bucket: str,
        object_key: str,
        dest_peer: str,
        *,
        url_filter: str | None = None,
        byte_range: str = "",
        timeout_seconds: float | None = None,
    ) -> PeerResult:
        """Ask ``dest_peer`` to cache every object under a directory prefix."""
        return await self._run(
            self._plan(
                RequestKind.FETCH_DIR,
                ObjectLocator(endpoint, bucket, object_key),
                dest_peer,
                url_filter=url_filter,
                byte_range=byte_range,
            ),
            timeout_seconds,
        )

    async def check_schedule_dir_task_status_by_key(
        self,
        endpoint: str,
        bucket: str,
        object_key: str,
        dest_peer: str,
        *,
        url_filter: str | None = None,
        byte_range: str = "",
        timeout_seconds: float | None = None,
    ) -> PeerResult:
        """Report ``dest_peer``'s task status for a directory prefix."""
        return await self._run(
            self._plan(
                RequestKind.STATUS_DIR,
                ObjectLocator(endpoint, bucket, object_key),
                dest_peer,
                url_filter=url_filter,
                byte_range=byte_range,
            ),
            timeout_seconds,
        )

    async def get_object_metadata(
        self,
        endpoint: str,
        bucket: str,
        object_key: str,
        dest_peer: str,
        *,
        timeout_seconds: float | None = None,
    ) -> ObjectMetadata:
        """Return object metadata as reported by ``dest_peer``."""
        plan = self._plan(
            RequestKind.METADATA, ObjectLocator(endpoint, bucket, object_key), dest_peer
        )
        with log_context(self._context(plan)):
            return await acall_object_metadata(
                http=self._http,
                request=plan.request,
                key=plan.locator.key,
                timeout_seconds=timeout_seconds,
            )

    async def _run(self, plan: _Plan, timeout_seconds: float | None) -> PeerResult:
        """Async variant of ``UrchinClient._run``."""
        deadline = _Deadline.start(plan.operation, timeout_seconds)
        with log_context(self._context(plan)):
            metadata = None
            if plan.metadata_request is not None:
                metadata = await acall_object_metadata(
                    http=self._http,
                    request=plan.metadata_request,
                    key=plan.locator.key,
                    timeout_seconds=deadline.remaining(),
                )
            result = await acall_peer_result(
                http=self._http,
                request=plan.request,
                timeout_seconds=deadline.remaining(),
            )
            return self._finish(plan, result, metadata)
