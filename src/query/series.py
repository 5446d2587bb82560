"""Series grouping for query results.

A series mapping derives a group key (and optional metadata) per row.
Rows are grouped by key in first-seen order.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping, Sequence, Union

from core.constants import DEFAULT_CATEGORY_FIELD
from core.errors import TabstoreQueryError
from core.types import Row, Series
from query.predicate import values_equal

KeySpec = Union[str, Callable[[Row], Any]]
SeriesSpec = Union[KeySpec, Mapping[str, Any], None]


@dataclass(frozen=True)
class SeriesMapping:
    """Compiled series mapping.

    Attributes:
        key: Derives the group key of a row.
        meta: Derives group metadata from the first row of a group.
    """

    key: Callable[[Row], Any]
    meta: Callable[[Row], Mapping[str, Any]]


def compile_series_mapping(spec: SeriesSpec) -> SeriesMapping:
    """Compile a series mapping specification.

    Args:
        spec: Field name or callable deriving the key, or a mapping with
            ``key`` (field name or callable) and ``meta`` (list of field
            names or callable). ``None`` groups by the y-column category.

    Returns:
        Compiled mapping.

    Raises:
        TabstoreQueryError: If the specification has an unsupported shape.
    """
    if spec is None:
        return SeriesMapping(key=_key_getter(DEFAULT_CATEGORY_FIELD), meta=_empty_meta)
    if isinstance(spec, str) or callable(spec):
        return SeriesMapping(key=_key_getter(spec), meta=_empty_meta)
    if isinstance(spec, Mapping):
        return SeriesMapping(
            key=_key_getter(spec.get("key") or DEFAULT_CATEGORY_FIELD),
            meta=_meta_getter(spec.get("meta")),
        )
    raise TabstoreQueryError(
        f"Series mapping must be a field name, callable, or mapping, got {type(spec).__name__}."
    )


def group_series(rows: Iterable[Row], mapping: SeriesMapping) -> list[Series]:
    """Group rows into series, preserving first-seen key order.

    Args:
        rows: Filtered rows in original order.
        mapping: Compiled series mapping.

    Returns:
        One series per distinct key.
    """
    # Keys may be unhashable or NaN, so groups are matched by value.
    groups: list[tuple[Any, list[Row]]] = []
    for row in rows:
        key = mapping.key(row)
        for group_key, members in groups:
            if values_equal(group_key, key):
                members.append(row)
                break
        else:
            groups.append((key, [row]))
    return [
        Series(key=key, meta=mapping.meta(group[0]), values=tuple(group))
        for key, group in groups
    ]


def _key_getter(spec: KeySpec) -> Callable[[Row], Any]:
    if callable(spec):
        return spec

    def _field_key(row: Row) -> Any:
        return row.get(spec)

    return _field_key


def _meta_getter(spec: Any) -> Callable[[Row], Mapping[str, Any]]:
    if spec is None:
        return _empty_meta
    if callable(spec):
        return spec
    if isinstance(spec, Sequence) and not isinstance(spec, str):
        fields = tuple(spec)

        def _field_meta(row: Row) -> Mapping[str, Any]:
            return {name: row.get(name) for name in fields}

        return _field_meta
    raise TabstoreQueryError(
        f"Series meta must be a list of field names or a callable, got {type(spec).__name__}."
    )


def _empty_meta(row: Row) -> Mapping[str, Any]:
    return {}
