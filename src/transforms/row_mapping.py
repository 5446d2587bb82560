"""Map stage compilation (denormalization).

This module turns ``{x, y}`` options into a function that flattens one
wide row into one narrow ``(x, y, category)`` row per y-column.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Mapping, Sequence, Union

from core.constants import DEFAULT_CATEGORY_FIELD, DEFAULT_X_FIELD, DEFAULT_Y_FIELD
from core.types import Row, RowFunction

MapSpec = Union[Mapping[str, Any], Callable[..., Any]]


@dataclass(frozen=True)
class YColumns:
    """Normalized y-column options.

    Attributes:
        columns: Source fields that each produce one output row.
        category: Field receiving the source column name.
        categories: Optional per-column fields merged into output rows.
    """

    columns: tuple[str, ...]
    category: str | None = None
    categories: Mapping[str, Mapping[str, Any]] | None = None


def compile_map(spec: MapSpec) -> RowFunction:
    """Compile map options into a denormalizing row function.

    Args:
        spec: Row function used as-is, or mapping with ``x`` (field name,
            default ``"x"``) and ``y`` (field name, list of field names, or
            mapping with ``columns`` plus ``category``/``categories``).

    Returns:
        Row function producing one output row per y-column.
    """
    if callable(spec):
        return spec
    x_field = spec.get("x") or DEFAULT_X_FIELD
    y_columns = normalize_y(spec.get("y"))
    excluded = {x_field, *y_columns.columns}

    def _denormalize(row: Row) -> list[Row]:
        return [_narrow_row(row, x_field, y_column, y_columns, excluded) for y_column in y_columns.columns]

    return _denormalize


def normalize_y(y_spec: Any) -> YColumns:
    """Normalize the ``y`` option into explicit columns and category.

    Args:
        y_spec: Field name, sequence of field names, or mapping with
            ``columns``.

    Returns:
        Normalized y-column options.
    """
    if isinstance(y_spec, Mapping):
        return YColumns(
            columns=tuple(y_spec.get("columns") or ()),
            category=y_spec.get("category"),
            categories=y_spec.get("categories"),
        )
    if isinstance(y_spec, Sequence) and not isinstance(y_spec, str):
        columns = tuple(y_spec)
    else:
        columns = (y_spec or DEFAULT_Y_FIELD,)
    return YColumns(columns=columns, category=DEFAULT_CATEGORY_FIELD)


def _narrow_row(
    row: Row,
    x_field: str,
    y_column: str,
    y_columns: YColumns,
    excluded: set[str],
) -> Row:
    """Build the output row for a single y-column."""
    narrow = {key: value for key, value in row.items() if key not in excluded}
    narrow["x"] = row.get(x_field)
    narrow["y"] = row.get(y_column)
    if y_columns.categories:
        narrow.update(y_columns.categories.get(y_column) or {})
    elif y_columns.category:
        narrow[y_columns.category] = y_column
    return narrow
