"""Result payloads returned by Urchin SDK operations."""

from __future__ import annotations

from dataclasses import dataclass
import re
from typing import Any, Mapping

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidationInfo,
    field_validator,
)

from packages.urchin_sdk.errors import UrchinConsistencyError, UrchinDecodeError

DIGEST_HEADER = "X-Dragonfly-Object-Meta-Digest"

# Peers double-escape ampersands in signed URLs; the JSON string then decodes
# to this literal six-character sequence instead of ``&``.
_ESCAPED_AMPERSAND = "\\u0026"
_DECIMAL = re.compile(r"[+-]?[0-9]+")


@dataclass(frozen=True, slots=True)
class ObjectMetadata:
    """Object headers reported by a peer for one HEAD request."""

    key: str
    content_length: int
    content_type: str = ""
    content_encoding: str = ""
    content_language: str = ""
    content_disposition: str = ""
    etag: str = ""
    digest: str = ""


class PeerResult(BaseModel):
    """Transfer or status payload reported by a peer."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    content_type: str = Field(default="", alias="Content-Type")
    content_length: str = Field(default="", alias="Content-Length")
    signed_url: str = Field(default="", alias="SignedUrl")
    data_root: str = Field(default="", alias="DataRoot")
    data_path: str = Field(default="", alias="DataPath")
    data_endpoint: str = Field(default="", alias="DataEndpoint")
    status_code: int = Field(default=0, alias="StatusCode")
    status_msg: str = Field(default="", alias="StatusMsg")
    task_id: str = Field(default="", alias="TaskID")

    @field_validator("*", mode="before")
    @classmethod
    def _null_as_default(cls, value: Any, info: ValidationInfo) -> Any:
        """Treat JSON ``null`` like a missing field."""
        if value is None and info.field_name is not None:
            return cls.model_fields[info.field_name].default
        return value

    @field_validator("signed_url")
    @classmethod
    def _unescape_ampersands(cls, value: str) -> str:
        """Replace literal escaped ampersands with ``&``."""
        return value.replace(_ESCAPED_AMPERSAND, "&")


def metadata_from_headers(
    *, operation: str, key: str, headers: Mapping[str, str]
) -> ObjectMetadata:
    """Build ``ObjectMetadata`` from HEAD response headers."""
    raw_length = headers.get("Content-Length", "")
    try:
        content_length = int(raw_length)
    except ValueError as exc:
        raise UrchinDecodeError(
            message=f"{operation}: invalid Content-Length header {raw_length!r}",
            operation=operation,
        ) from exc

    return ObjectMetadata(
        key=key,
        content_length=content_length,
        content_type=headers.get("Content-Type", ""),
        content_encoding=headers.get("Content-Encoding", ""),
        content_language=headers.get("Content-Language", ""),
        content_disposition=headers.get("Content-Disposition", ""),
        etag=headers.get("ETag", ""),
        digest=headers.get(DIGEST_HEADER, ""),
    )


def parse_peer_result(*, operation: str, body: bytes) -> PeerResult:
    """Deserialize one peer JSON body; malformed bodies raise ``UrchinDecodeError``."""
    try:
        return PeerResult.model_validate_json(body)
    except ValidationError as exc:
        raise UrchinDecodeError(
            message=f"{operation}: cannot decode peer response: {exc.error_count()} error(s)",
            operation=operation,
            response_body=body.decode("utf-8", errors="replace"),
        ) from exc


def declared_content_length(*, operation: str, result: PeerResult) -> int:
    """Parse the decimal ``Content-Length`` string from a peer result."""
    if _DECIMAL.fullmatch(result.content_length) is None:
        raise UrchinDecodeError(
            message=(
                f"{operation}: invalid Content-Length {result.content_length!r} "
                "in peer response"
            ),
            operation=operation,
        )
    return int(result.content_length)


def verify_content_length(
    *, operation: str, result: PeerResult, metadata: ObjectMetadata
) -> None:
    """Raise ``UrchinConsistencyError`` unless peer and metadata lengths match."""
    declared = declared_content_length(operation=operation, result=result)
    if declared != metadata.content_length:
        raise UrchinConsistencyError(
            message=(
                f"{operation}: content length inconsistent with meta "
                f"(meta={metadata.content_length}, peer={declared})"
            ),
            operation=operation,
            expected_length=metadata.content_length,
            actual_length=declared,
        )
