"""Cast stage compilation.

This module turns a ``{field: type}`` mapping into a per-row function.
It is the first stage of the row pipeline, applied before mapping.
"""

from __future__ import annotations

from typing import Any, Callable, Mapping, Union

from core.types import Row, RowFunction, TypeConverter

CastSpec = Union[Mapping[str, Any], Callable[..., Any]]


def compile_cast(spec: CastSpec, types: Mapping[str, TypeConverter]) -> RowFunction:
    """Compile cast options into a row function.

    Args:
        spec: Row function used as-is, or mapping of field name to a type
            name from ``types`` or a converter callable.
        types: Named type converters available to the mapping form.

    Returns:
        Row function returning a converted copy of each row. Fields whose
        type name is unknown are left untouched.
    """
    if callable(spec):
        return spec
    converters = _resolve_converters(spec, types)

    def _cast(row: Row) -> Row:
        cast_row = dict(row)
        for field_name, converter in converters.items():
            cast_row[field_name] = converter(cast_row.get(field_name))
        return cast_row

    return _cast


def _resolve_converters(
    spec: Mapping[str, Any],
    types: Mapping[str, TypeConverter],
) -> dict[str, TypeConverter]:
    """Resolve type names to converter callables, dropping unknown names."""
    converters: dict[str, TypeConverter] = {}
    for field_name, type_spec in spec.items():
        converter = type_spec if callable(type_spec) else types.get(type_spec)
        if converter is not None:
            converters[field_name] = converter
    return converters
