"""Unit tests for S3 URI parsing."""

from __future__ import annotations

import pytest

from core.errors import TabstoreFetchError
from core.s3_uri import is_s3_uri, parse_s3_uri


def test_parse_s3_uri_splits_bucket_and_key() -> None:
    """Parser should keep nested object keys intact."""
    location = parse_s3_uri("s3://reports/2024/sales.csv")

    assert (location.bucket, location.key) == ("reports", "2024/sales.csv")


def test_parse_s3_uri_rejects_missing_key() -> None:
    """A bucket without an object key is not a dataset."""
    with pytest.raises(TabstoreFetchError):
        parse_s3_uri("s3://reports")


def test_is_s3_uri_ignores_local_paths() -> None:
    """Local paths should not be treated as S3 keys."""
    assert not is_s3_uri("data/s3-export.csv")
