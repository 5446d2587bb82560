"""Runtime configuration model for tabstore.

This module owns all environment variable parsing and validation.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

import codecs
from dataclasses import dataclass
import logging
import os
from pathlib import Path

from core.constants import DEFAULT_DATA_ROOT, DEFAULT_ENCODING, DEFAULT_LOG_LEVEL
from core.errors import TabstoreConfigError


@dataclass(frozen=True)
class TabstoreConfig:
    """Validated runtime configuration.

    Attributes:
        data_root: Base directory for relative row-source paths.
        encoding: Text encoding used for local row files.
        s3_region: Optional default AWS region for S3 reads.
        s3_profile: Optional AWS profile for boto3 session initialization.
        log_level: Minimum level emitted by structured loggers.
    """

    data_root: Path
    encoding: str
    s3_region: str | None
    s3_profile: str | None
    log_level: str

    @classmethod
    def from_env(cls) -> "TabstoreConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            TabstoreConfigError: If environment values are invalid.
        """
        data_root_value = os.getenv("TABSTORE_DATA_ROOT", str(DEFAULT_DATA_ROOT))
        encoding = _parse_encoding(os.getenv("TABSTORE_ENCODING", DEFAULT_ENCODING))
        log_level = _parse_log_level(os.getenv("TABSTORE_LOG_LEVEL", DEFAULT_LOG_LEVEL))
        return cls(
            data_root=Path(data_root_value).expanduser().resolve(),
            encoding=encoding,
            s3_region=os.getenv("TABSTORE_S3_REGION"),
            s3_profile=os.getenv("TABSTORE_S3_PROFILE"),
            log_level=log_level,
        )


def _parse_encoding(raw_value: str) -> str:
    """Validate the text encoding environment value.

    Args:
        raw_value: Raw string from environment.

    Returns:
        Canonical codec name.

    Raises:
        TabstoreConfigError: If the codec is unknown.
    """
    try:
        return codecs.lookup(raw_value).name
    except LookupError as error:
        raise TabstoreConfigError(
            "Invalid TABSTORE_ENCODING value: "
            f"unknown codec '{raw_value}'. "
            "Set TABSTORE_ENCODING to a Python codec name such as utf-8."
        ) from error


def _parse_log_level(raw_value: str) -> str:
    """Validate the log level environment value.

    Args:
        raw_value: Raw string from environment.

    Returns:
        Upper-cased level name.

    Raises:
        TabstoreConfigError: If the level name is not a stdlib level.
    """
    level_name = raw_value.strip().upper()
    if not isinstance(logging.getLevelName(level_name), int):
        raise TabstoreConfigError(
            "Invalid TABSTORE_LOG_LEVEL value: "
            f"expected DEBUG, INFO, WARNING or ERROR, got '{raw_value}'."
        )
    return level_name
