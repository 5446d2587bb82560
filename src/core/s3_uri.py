"""S3 URI parsing helpers.

This module centralizes S3 URI parsing for row-source keys.
"""

from __future__ import annotations

from dataclasses import dataclass

from core.errors import TabstoreFetchError


@dataclass(frozen=True)
class S3Location:
    """Parsed S3 object location."""

    bucket: str
    key: str


def is_s3_uri(uri: str) -> bool:
    """Return whether a dataset key points at S3."""
    return uri.startswith("s3://")


def parse_s3_uri(uri: str) -> S3Location:
    """Parse and validate an S3 object URI.

    Args:
        uri: URI in format ``s3://bucket/key``.

    Returns:
        Parsed bucket and object key pair.

    Raises:
        TabstoreFetchError: If bucket or key is missing.
    """
    stripped_uri = uri.removeprefix("s3://")
    bucket, _, key = stripped_uri.partition("/")
    if not bucket or not key:
        raise TabstoreFetchError(
            f"Invalid S3 URI '{uri}': expected s3://bucket/key. "
            "Provide both bucket and object key.",
            key=uri,
        )
    return S3Location(bucket=bucket, key=key)
