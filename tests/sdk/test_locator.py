"""Unit tests for urfs:// locator parsing."""

from __future__ import annotations

import pytest

from packages.urchin_sdk.errors import UrchinLocatorError, UrchinValidationError
from packages.urchin_sdk.locator import ObjectLocator, is_urfs_url, parse_urfs_url


def test_parse_urfs_url_splits_endpoint_bucket_and_key() -> None:
    """The first path segment is the bucket; the rest is the key."""
    locator = parse_urfs_url("urfs://obs.example.com/cache/K1/K2")

    assert locator == ObjectLocator(endpoint="obs.example.com", bucket="cache", key="K1/K2")


def test_parse_urfs_url_keeps_port_and_ignores_outer_slashes() -> None:
    """Ports stay on the endpoint; trailing slashes on the path are dropped."""
    locator = parse_urfs_url("urfs://10.0.0.8:9000//bucket/dir/sub/")

    assert locator.endpoint == "10.0.0.8:9000"
    assert locator.bucket == "bucket"
    assert locator.key == "dir/sub"


def test_parse_urfs_url_unescapes_percent_encoded_path() -> None:
    """Percent-encoded characters in the path are decoded."""
    locator = parse_urfs_url("urfs://e/b/dir%20name/file%231.txt")

    assert locator.key == "dir name/file#1.txt"


@pytest.mark.parametrize(
    ("raw_url", "message"),
    [
        ("http://e/b/k", "invalid scheme"),
        ("e/b/k", "invalid scheme"),
        ("urfs:///b/k", "empty endpoint name"),
        ("urfs://e", "empty object path"),
        ("urfs://e/bucket-only", "invalid bucket and object key"),
        ("urfs://e/bucket/", "invalid bucket and object key"),
    ],
)
def test_parse_urfs_url_rejects_malformed_urls(raw_url: str, message: str) -> None:
    """Missing scheme, host, bucket or key fails with a locator error."""
    with pytest.raises(UrchinLocatorError, match=message) as exc_info:
        parse_urfs_url(raw_url)

    assert exc_info.value.raw_url == raw_url
    assert exc_info.value.field == "source_url"
    assert isinstance(exc_info.value, UrchinValidationError)


def test_is_urfs_url_checks_scheme_host_and_path() -> None:
    """is_urfs_url is a boolean check that never raises."""
    assert is_urfs_url("urfs://e/b/k") is True
    assert is_urfs_url("urfs://e") is False
    assert is_urfs_url("s3://e/b/k") is False
    assert is_urfs_url("urfs://[::1/b/k") is False


@pytest.mark.parametrize(
    ("endpoint", "bucket", "key", "message"),
    [
        ("", "b", "k", "invalid Endpoint"),
        ("e", "", "k", "invalid BucketName"),
        ("e", "b", "", "invalid ObjectKey"),
    ],
)
def test_object_locator_rejects_empty_components(
    endpoint: str, bucket: str, key: str, message: str
) -> None:
    """Every locator component must be non-empty."""
    with pytest.raises(UrchinValidationError, match=message):
        ObjectLocator(endpoint=endpoint, bucket=bucket, key=key)
