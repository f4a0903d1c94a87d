"""Public Urchin SDK interface for CLI and library callers."""

from packages.urchin_sdk.builder import RequestKind, UrfsRequest, build_request
from packages.urchin_sdk.calls import check_status, object_metadata, schedule
from packages.urchin_sdk.client import AsyncUrchinClient, UrchinClient
from packages.urchin_sdk.config import UrchinSdkConfig, WriteMode
from packages.urchin_sdk.errors import (
    UrchinBodyReadError,
    UrchinConfigError,
    UrchinConsistencyError,
    UrchinDecodeError,
    UrchinDomainError,
    UrchinLocatorError,
    UrchinSdkError,
    UrchinStatusError,
    UrchinTransportError,
    UrchinValidationError,
)
from packages.urchin_sdk.locator import ObjectLocator, is_urfs_url, parse_urfs_url
from packages.urchin_sdk.results import ObjectMetadata, PeerResult

DomainError = UrchinDomainError
TransportError = UrchinTransportError

__all__ = [
    "AsyncUrchinClient",
    "DomainError",
    "ObjectLocator",
    "ObjectMetadata",
    "PeerResult",
    "RequestKind",
    "TransportError",
    "UrchinBodyReadError",
    "UrchinClient",
    "UrchinConfigError",
    "UrchinConsistencyError",
    "UrchinDecodeError",
    "UrchinDomainError",
    "UrchinLocatorError",
    "UrchinSdkConfig",
    "UrchinSdkError",
    "UrchinStatusError",
    "UrchinTransportError",
    "UrchinValidationError",
    "UrfsRequest",
    "WriteMode",
    "build_request",
    "check_status",
    "is_urfs_url",
    "object_metadata",
    "parse_urfs_url",
    "schedule",
]
