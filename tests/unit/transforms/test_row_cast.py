"""Unit tests for cast stage compilation."""

from __future__ import annotations

from transforms.row_cast import compile_cast
from transforms.type_converters import DEFAULT_TYPES


def test_compile_cast_converts_named_fields() -> None:
    """Mapped fields should be converted by their type name."""
    cast = compile_cast({"price": "Number", "active": "Boolean"}, DEFAULT_TYPES)

    row = cast({"price": "9.5", "active": "true", "name": "widget"})

    assert row == {"price": 9.5, "active": True, "name": "widget"}


def test_compile_cast_skips_unknown_type_names() -> None:
    """Unknown type names should leave the field untouched."""
    cast = compile_cast({"price": "Currency"}, DEFAULT_TYPES)

    assert cast({"price": "$5"}) == {"price": "$5"}


def test_compile_cast_accepts_converter_functions() -> None:
    """Callables in the mapping should be used as converters."""
    cast = compile_cast({"name": str.upper}, DEFAULT_TYPES)

    assert cast({"name": "west"}) == {"name": "WEST"}


def test_compile_cast_does_not_mutate_input_row() -> None:
    """Raw rows must survive casting unchanged."""
    raw = {"price": "3"}
    cast = compile_cast({"price": "Number"}, DEFAULT_TYPES)

    cast(raw)

    assert raw == {"price": "3"}


def test_compile_cast_returns_functions_unchanged() -> None:
    """A function spec should be used as the stage directly."""

    def _stage(row: dict) -> dict:
        return row

    assert compile_cast(_stage, DEFAULT_TYPES) is _stage
