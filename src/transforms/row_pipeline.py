"""Two-stage row pipeline.

The transformer is an immutable value object holding the cast and map
stages. Stores swap whole transformers and reprocess every cached entry.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Iterable, Mapping, Sequence

from core.errors import TabstoreError, TabstoreTransformError
from core.types import Row, RowFunction


def identity_row(row: Row) -> Row:
    """Return the row unchanged."""
    return row


@dataclass(frozen=True)
class RowTransformer:
    """Cast and map stages applied to raw rows."""

    cast: RowFunction = identity_row
    map: RowFunction = identity_row

    def with_cast(self, cast: RowFunction) -> "RowTransformer":
        """Return a transformer with the cast stage replaced."""
        return replace(self, cast=cast)

    def with_map(self, map_function: RowFunction) -> "RowTransformer":
        """Return a transformer with the map stage replaced."""
        return replace(self, map=map_function)

    def process(self, rows: Iterable[Row]) -> list[Row]:
        """Cast every row, then map every cast row.

        Args:
            rows: Raw rows.

        Returns:
            Flattened transformed rows.

        Raises:
            TabstoreTransformError: If a stage raises.
        """
        cast_rows = _apply_stage(self.cast, rows, "cast")
        return _apply_stage(self.map, cast_rows, "map")


def _apply_stage(stage: RowFunction, rows: Iterable[Row], stage_name: str) -> list[Row]:
    """Apply one stage and flatten its results by one level."""
    output: list[Row] = []
    for row in rows:
        try:
            result = stage(row)
        except TabstoreError:
            raise
        except Exception as error:
            raise TabstoreTransformError(
                f"Row {stage_name} stage failed: {error}. "
                f"Fix the {stage_name} configuration and reprocess."
            ) from error
        output.extend(_flatten_result(result))
    return output


def _flatten_result(result: Any) -> list[Row]:
    """Normalize a stage result to a list of rows."""
    if isinstance(result, Mapping):
        return [result]  # type: ignore[list-item]
    if isinstance(result, Sequence) and not isinstance(result, (str, bytes)):
        return list(result)
    raise TabstoreTransformError(
        f"Row stage returned {type(result).__name__}; expected a row mapping or a list of rows."
    )
