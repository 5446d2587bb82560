"""Core constants used across tabstore modules.

This module centralizes non-domain-specific constants.
Keeping values here avoids magic literals in business logic.
"""

from __future__ import annotations

from pathlib import Path

DEFAULT_DATA_ROOT = Path(".")
DEFAULT_ENCODING = "utf-8"
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_X_FIELD = "x"
DEFAULT_Y_FIELD = "y"
DEFAULT_CATEGORY_FIELD = "__yColumn"
OPERATOR_PREFIX = "$"
LOAD_EVENT = "load"
SERIES_EVENT = "series"
FILTER_EVENT = "filter"
CSV_EXTENSIONS = (".csv",)
TSV_EXTENSIONS = (".tsv", ".tab")
JSONL_EXTENSIONS = (".jsonl",)
SUPPORTED_ROW_EXTENSIONS = CSV_EXTENSIONS + TSV_EXTENSIONS + JSONL_EXTENSIONS
