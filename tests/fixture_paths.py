"""Shared fixture path helpers for tests."""

from __future__ import annotations

from pathlib import Path


def fixture_path(relative_path: str) -> Path:
    """Resolve a fixture path relative to tests/fixtures.

    Args:
        relative_path: Path under fixtures root.

    Returns:
        Absolute fixture path.
    """
    return fixtures_root() / relative_path


def fixtures_root() -> Path:
    """Return the tests/fixtures directory."""
    return Path(__file__).resolve().parent / "fixtures"
