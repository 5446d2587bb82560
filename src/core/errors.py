"""Tabstore exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Each subsystem raises a specific error type for debuggability.
"""

from __future__ import annotations


class TabstoreError(Exception):
    """Base exception for all tabstore failures."""


class TabstoreConfigError(TabstoreError):
    """Raised for invalid runtime configuration."""


class TabstoreFetchError(TabstoreError):
    """Raised when the row source cannot provide rows for a key."""

    def __init__(self, message: str, key: str | None = None) -> None:
        super().__init__(message)
        self.key = key


class TabstoreTransformError(TabstoreError):
    """Raised when a cast or map stage fails while processing rows."""


class TabstoreQueryError(TabstoreError):
    """Raised for malformed query specifications."""


class TabstoreDependencyError(TabstoreError):
    """Raised when an optional runtime dependency is missing."""
