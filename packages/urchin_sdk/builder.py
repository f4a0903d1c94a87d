"""Build peer-service HTTP requests for Urchin operations.

Every request targets the destination peer. The object-storage endpoint and
bucket are folded into the path as ``buckets/{bucket}.{endpoint}/...``:

================  ======  ==============================================
kind              method  path
================  ======  ==============================================
``metadata``      HEAD    ``buckets/{bucket}.{endpoint}/objects/{key}``
``fetch``         POST    ``buckets/{bucket}.{endpoint}/cache_object/{key}``
``fetch_dir``     POST    ``buckets/{bucket}.{endpoint}/cache_folder/{key}``
``status``        GET     ``buckets/{bucket}.{endpoint}/check_object/{key}``
``status_dir``    GET     ``buckets/{bucket}.{endpoint}/check_folder/{key}``
================  ======  ==============================================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
import posixpath
from typing import Mapping
from urllib.parse import quote, urlencode, urlunsplit

from packages.urchin_sdk.errors import UrchinValidationError
from packages.urchin_sdk.locator import ObjectLocator

RANGE_HEADER = "Range"
FILTER_PARAM = "filter"
OVERWRITE_PARAM = "overwrite"

# Characters left unescaped in the request path, besides unreserved ones.
_PATH_SAFE = "/$&+,:;=@"


class RequestKind(str, Enum):
    """Logical request kinds sent to a peer."""

    METADATA = "metadata"
    FETCH = "fetch"
    FETCH_DIR = "fetch_dir"
    STATUS = "status"
    STATUS_DIR = "status_dir"

    @property
    def is_dir(self) -> bool:
        """Return True for directory-scoped kinds."""
        return self in (RequestKind.FETCH_DIR, RequestKind.STATUS_DIR)


_ROUTES: dict[RequestKind, tuple[str, str]] = {
    RequestKind.METADATA: ("HEAD", "objects"),
    RequestKind.FETCH: ("POST", "cache_object"),
    RequestKind.FETCH_DIR: ("POST", "cache_folder"),
    RequestKind.STATUS: ("GET", "check_object"),
    RequestKind.STATUS_DIR: ("GET", "check_folder"),
}


@dataclass(frozen=True, slots=True)
class UrfsRequest:
    """Fully-formed description of one outbound peer request."""

    kind: RequestKind
    method: str
    url: str
    headers: Mapping[str, str] = field(default_factory=dict)


def build_request(
    locator: ObjectLocator,
    *,
    peer: str,
    kind: RequestKind,
    url_filter: str = "",
    byte_range: str = "",
    overwrite: bool = False,
    scheme: str = "http",
) -> UrfsRequest:
    """Translate one logical operation into a peer HTTP request.

    ``url_filter`` and ``byte_range`` apply to every kind except ``metadata``.
    ``overwrite`` only applies to ``fetch``; directory fetches never overwrite.
    """
    if peer.strip() == "":
        raise UrchinValidationError(message="invalid DstPeer", field="peer")

    method, segment = _ROUTES[kind]
    path = _join_path(
        "buckets",
        f"{locator.bucket}.{locator.endpoint}",
        segment,
        locator.key,
    )

    query: dict[str, str] = {}
    headers: dict[str, str] = {}
    if kind is not RequestKind.METADATA:
        if url_filter != "":
            query[FILTER_PARAM] = url_filter
        if byte_range != "":
            headers[RANGE_HEADER] = byte_range
    if kind is RequestKind.FETCH and overwrite:
        query[OVERWRITE_PARAM] = "1"

    url = urlunsplit(
        (
            scheme,
            peer,
            quote(path, safe=_PATH_SAFE),
            urlencode(sorted(query.items())),
            "",
        )
    )
    return UrfsRequest(kind=kind, method=method, url=url, headers=headers)


def _join_path(*segments: str) -> str:
    """Join segments into one cleaned absolute path.

    Repeated slashes collapse, ``.``/``..`` resolve and trailing slashes drop,
    so ``output/`` and ``/output`` address the same key.
    """
    return posixpath.normpath("/" + "/".join(segments))
