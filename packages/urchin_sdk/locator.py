"""Object locators and the ``urfs://endpoint/bucket/key`` URL scheme."""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import SplitResult, unquote, urlsplit

from packages.urchin_sdk.errors import UrchinLocatorError, UrchinValidationError

URFS_SCHEME = "urfs"

_FIELD_LABELS = (
    ("endpoint", "Endpoint"),
    ("bucket", "BucketName"),
    ("key", "ObjectKey"),
)


@dataclass(frozen=True, slots=True)
class ObjectLocator:
    """One object (or directory prefix) in a remote object-storage endpoint."""

    endpoint: str
    bucket: str
    key: str

    def __post_init__(self) -> None:
        """Reject locators with any empty component."""
        for name, label in _FIELD_LABELS:
            if getattr(self, name) == "":
                raise UrchinValidationError(message=f"invalid {label}", field=name)


def is_urfs_url(raw_url: str) -> bool:
    """Return True when ``raw_url`` has the urfs scheme, a host and a path."""
    parts = _split(raw_url)
    return (
        parts is not None
        and parts.scheme == URFS_SCHEME
        and _host(parts) != ""
        and parts.path != ""
    )


def parse_urfs_url(raw_url: str) -> ObjectLocator:
    """Parse ``urfs://endpoint/bucket/key...`` into an ``ObjectLocator``.

    The first path segment is the bucket and the remainder, re-joined, is the
    object key. Leading and trailing slashes on the path are ignored.
    """
    parts = _split(raw_url)
    if parts is None:
        raise _locator_error(raw_url, f"malformed source url {raw_url!r}")
    if parts.scheme != URFS_SCHEME:
        raise _locator_error(
            raw_url,
            f"invalid scheme, e.g. {URFS_SCHEME}://endpoint/bucket_name/object_key",
        )

    endpoint = _host(parts)
    if endpoint == "":
        raise _locator_error(raw_url, "empty endpoint name")

    path = unquote(parts.path)
    if path == "":
        raise _locator_error(raw_url, "empty object path")

    bucket, separator, key = path.strip("/").partition("/")
    if separator == "":
        raise _locator_error(raw_url, f"invalid bucket and object key {path}")
    return ObjectLocator(endpoint=endpoint, bucket=bucket, key=key)


def _split(raw_url: str) -> SplitResult | None:
    """Split a URL the way request URIs are parsed (no fragment handling)."""
    try:
        return urlsplit(raw_url, allow_fragments=False)
    except ValueError:
        return None


def _host(parts: SplitResult) -> str:
    """Return ``host[:port]`` with any userinfo removed."""
    return parts.netloc.rpartition("@")[2]


def _locator_error(raw_url: str, message: str) -> UrchinLocatorError:
    """Build one locator parse error."""
    return UrchinLocatorError(message=message, field="source_url", raw_url=raw_url)
