"""Default row source for dataset keys.

This module loads raw rows from delimited text or JSONL, either from the
local file system or from S3. Blocking reads run in a worker thread so
concurrent loads do not block the event loop.
"""

from __future__ import annotations

import asyncio
import csv
import io
import json
from pathlib import Path
from typing import Any

from core.config import TabstoreConfig
from core.constants import JSONL_EXTENSIONS, SUPPORTED_ROW_EXTENSIONS, TSV_EXTENSIONS
from core.errors import TabstoreDependencyError, TabstoreFetchError
from core.s3_uri import S3Location, is_s3_uri, parse_s3_uri
from core.types import Row


class FileRowSource:
    """Async row source reading local files and S3 objects."""

    def __init__(self, config: TabstoreConfig) -> None:
        self._config = config

    async def __call__(self, key: str) -> list[Row]:
        """Fetch raw rows for a dataset key.

        Args:
            key: Local path (relative to ``data_root``) or ``s3://`` URI.

        Returns:
            Ordered raw rows.

        Raises:
            TabstoreFetchError: If the source cannot be read or parsed.
        """
        return await asyncio.to_thread(self.read, key)

    def read(self, key: str) -> list[Row]:
        """Read rows synchronously."""
        if is_s3_uri(key):
            return self._read_s3_rows(key)
        return self._read_local_rows(key)

    def resolve_path(self, key: str) -> Path:
        """Resolve a local key against the configured data root."""
        path = Path(key).expanduser()
        if path.is_absolute():
            return path
        return self._config.data_root / path

    def _read_local_rows(self, key: str) -> list[Row]:
        path = self.resolve_path(key)
        _require_supported(key, path.suffix)
        if not path.is_file():
            raise TabstoreFetchError(
                f"Failed to read rows for '{key}': {path} does not exist. "
                "Provide an existing file or set TABSTORE_DATA_ROOT.",
                key=key,
            )
        text = path.read_text(encoding=self._config.encoding)
        return parse_rows(key, path.suffix, text)

    def _read_s3_rows(self, key: str) -> list[Row]:
        location = parse_s3_uri(key)
        _require_supported(key, Path(location.key).suffix)
        s3_client = _create_s3_client(self._config)
        body = _download_s3_text(s3_client, location, self._config.encoding)
        return parse_rows(key, Path(location.key).suffix, body)


def parse_rows(key: str, suffix: str, text: str) -> list[Row]:
    """Parse file content into rows based on its extension.

    Args:
        key: Dataset key, for error context.
        suffix: File extension including the dot.
        text: Decoded file content.

    Returns:
        Parsed rows.

    Raises:
        TabstoreFetchError: If JSONL content is invalid.
    """
    suffix = suffix.lower()
    if suffix in JSONL_EXTENSIONS:
        return _parse_jsonl_rows(key, text)
    delimiter = "\t" if suffix in TSV_EXTENSIONS else ","
    reader = csv.DictReader(io.StringIO(text, newline=""), delimiter=delimiter)
    return [dict(row) for row in reader]


def _parse_jsonl_rows(key: str, text: str) -> list[Row]:
    """Parse one JSON object per non-blank line."""
    rows: list[Row] = []
    for line_number, line in enumerate(text.splitlines(), 1):
        if not line.strip():
            continue
        try:
            payload = json.loads(line)
        except json.JSONDecodeError as error:
            raise TabstoreFetchError(
                f"Failed to parse JSONL row at {key}:{line_number}: "
                f"{error.msg}. Fix the JSON syntax and reload.",
                key=key,
            ) from error
        if not isinstance(payload, dict):
            raise TabstoreFetchError(
                f"Invalid JSONL row at {key}:{line_number}: expected a JSON object.",
                key=key,
            )
        rows.append(payload)
    return rows


def _require_supported(key: str, suffix: str) -> None:
    if suffix.lower() not in SUPPORTED_ROW_EXTENSIONS:
        raise TabstoreFetchError(
            f"Unsupported row file '{key}'. "
            f"Supported extensions: {SUPPORTED_ROW_EXTENSIONS}.",
            key=key,
        )


def _create_s3_client(config: TabstoreConfig) -> Any:
    """Create a boto3 S3 client.

    Raises:
        TabstoreDependencyError: If boto3 is missing.
    """
    try:
        import boto3
    except ImportError as error:
        raise TabstoreDependencyError(
            "S3 support requires boto3, but it is not installed. "
            "Install tabstore[s3] to load s3:// datasets."
        ) from error
    session_kwargs: dict[str, str] = {}
    if config.s3_profile:
        session_kwargs["profile_name"] = config.s3_profile
    if config.s3_region:
        session_kwargs["region_name"] = config.s3_region
    session = boto3.session.Session(**session_kwargs)
    return session.client("s3")


def _download_s3_text(s3_client: Any, location: S3Location, encoding: str) -> str:
    response = s3_client.get_object(Bucket=location.bucket, Key=location.key)
    return response["Body"].read().decode(encoding)
