"""Unit tests for structured logging setup."""

from __future__ import annotations

import json

import pytest

from core.logging_config import get_logger


def test_logger_writes_json_events_to_stderr(capsys: pytest.CaptureFixture[str]) -> None:
    """Log events should render as JSON on stderr and leave stdout clean."""
    get_logger("tests.logging").warning("load_failed", event_name="load", keys=["k"])
    captured = capsys.readouterr()
    payload = json.loads(captured.err.strip().splitlines()[-1])

    assert captured.out == "" and (
        payload["event"],
        payload["event_name"],
        payload["keys"],
        payload["level"],
    ) == ("load_failed", "load", ["k"], "warning")


def test_filtered_debug_calls_accept_event_fields() -> None:
    """Debug events below the configured level should still take keyword fields."""
    logger = get_logger("tests.logging")

    assert logger.debug("query_notified", event_name="load", series_count=0) is None
