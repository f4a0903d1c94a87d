"""Runtime configuration primitives for Urchin SDK clients."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from urllib.parse import urlsplit

from packages.urchin_sdk.errors import UrchinConfigError
from packages.urchin_shared.config import ClientSettings
from packages.urchin_shared.config.defaults import (
    DEFAULT_OBJECT_MAX_REPLICAS,
    DEFAULT_OBJECT_STORAGE_PORT,
)

DEFAULT_ENDPOINT = f"http://127.0.0.1:{DEFAULT_OBJECT_STORAGE_PORT}"


class WriteMode(IntEnum):
    """How the backend writes cached objects back to object storage."""

    WRITE_BACK = 0
    ASYNC_WRITE_BACK = 1


@dataclass(frozen=True, slots=True)
class UrchinSdkConfig:
    """Connection defaults for one Urchin SDK client."""

    endpoint: str = DEFAULT_ENDPOINT
    filter: str = ""
    mode: WriteMode = WriteMode.WRITE_BACK
    max_replicas: int = DEFAULT_OBJECT_MAX_REPLICAS
    timeout_seconds: float | None = None
    peer_scheme: str = "http"

    def validate(self) -> None:
        """Raise ``UrchinConfigError`` unless the endpoint is an absolute URL."""
        if self.endpoint.strip() == "":
            raise UrchinConfigError(
                message="urchin client requires parameter endpoint",
                field="endpoint",
            )
        try:
            parts = urlsplit(self.endpoint)
        except ValueError as exc:
            raise UrchinConfigError(
                message=f"invalid endpoint: {exc}",
                field="endpoint",
            ) from exc
        if parts.scheme == "" or parts.netloc == "":
            raise UrchinConfigError(
                message=f"invalid endpoint: {self.endpoint!r} is not an absolute URL",
                field="endpoint",
            )
        if self.peer_scheme not in {"http", "https"}:
            raise UrchinConfigError(
                message=f"invalid peer scheme: {self.peer_scheme!r}",
                field="peer_scheme",
            )

    @property
    def endpoint_host(self) -> str:
        """Return the ``host[:port]`` part of the configured endpoint."""
        return urlsplit(self.endpoint).netloc

    @classmethod
    def from_settings(cls, settings: ClientSettings) -> UrchinSdkConfig:
        """Build SDK config from the shared ``client`` settings section."""
        return cls(
            endpoint=settings.endpoint,
            filter=settings.filter,
            mode=WriteMode(settings.mode),
            max_replicas=settings.max_replicas,
            timeout_seconds=settings.timeout_seconds,
            peer_scheme=settings.peer_scheme,
        )
