"""Built-in field type converters for the cast stage.

Raw rows usually arrive as strings from delimited text. These converters
coerce them into typed values with lenient, never-raising rules except
for dates, where an unparsable value is a configuration error.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
import math
from typing import Any

from core.errors import TabstoreTransformError
from core.types import TypeConverter


def to_number(value: Any) -> float:
    """Convert a value to float; unparsable input becomes NaN."""
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            return 0.0
        try:
            return float(stripped)
        except ValueError:
            return math.nan
    return math.nan


def to_integer(value: Any) -> float | int:
    """Convert a value to int by truncation.

    Missing values stay NaN so they remain distinguishable from zero.
    """
    if value is None:
        return math.nan
    number = to_number(value)
    if not math.isfinite(number):
        return 0
    return int(number)


def to_boolean(value: Any) -> bool:
    """Convert ``"true"`` (any case), ``1`` and ``True`` to True."""
    if isinstance(value, str):
        return value.strip().upper() == "TRUE"
    return value is True or (not isinstance(value, bool) and value == 1)


def to_string(value: Any) -> str:
    """Convert a value to str with an empty string for missing values."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def to_date(value: Any) -> datetime:
    """Convert ISO-8601 strings or epoch milliseconds to a UTC datetime.

    Every result is timezone-aware UTC so casted dates stay comparable.
    Naive inputs are read as UTC; a trailing ``Z`` is accepted.

    Raises:
        TabstoreTransformError: If the value cannot be interpreted as a date.
    """
    if isinstance(value, datetime):
        return _as_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError) as error:
            raise TabstoreTransformError(
                f"Cannot cast {value!r} to Date: not a valid epoch millisecond value."
            ) from error
    if isinstance(value, str):
        text = value.strip()
        if text[-1:] in ("Z", "z"):
            text = f"{text[:-1]}+00:00"
        try:
            return _as_utc(datetime.fromisoformat(text))
        except ValueError as error:
            raise TabstoreTransformError(
                f"Cannot cast '{value}' to Date: expected an ISO-8601 string."
            ) from error
    raise TabstoreTransformError(
        f"Cannot cast value of type {type(value).__name__} to Date."
    )


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


DEFAULT_TYPES: dict[str, TypeConverter] = {
    "Number": to_number,
    "Integer": to_integer,
    "Boolean": to_boolean,
    "String": to_string,
    "Date": to_date,
}
