"""Shared typed models.

This module defines the row aliases, cache entries, and event payloads
shared by the transforms, store, and query layers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Mapping, Sequence, Union

Row = dict[str, Any]
RowFunctionResult = Union[Mapping[str, Any], Sequence[Mapping[str, Any]]]
RowFunction = Callable[[Row], RowFunctionResult]
TypeConverter = Callable[[Any], Any]
RowSource = Callable[[str], Awaitable[Sequence[Mapping[str, Any]]]]


@dataclass
class DatasetCache:
    """Cached dataset for one key.

    Attributes:
        meta: Lifecycle markers (``loaded``, ``loading``) and load options.
        raw: Rows exactly as returned by the row source.
        values: Rows after the cast and map stages.
    """

    meta: dict[str, Any] = field(default_factory=dict)
    raw: list[Row] = field(default_factory=list)
    values: list[Row] = field(default_factory=list)


@dataclass(frozen=True)
class LoadFailure:
    """Recorded failure of one ``load`` call.

    Attributes:
        keys: Keys requested by the failed call.
        options: Options passed to the failed call.
        error: First error raised while fetching.
    """

    keys: tuple[str, ...]
    options: Mapping[str, Any]
    error: BaseException


@dataclass(frozen=True)
class StoreEvent:
    """Notification payload sent by a data store."""

    name: str
    store: Any


@dataclass(frozen=True)
class QueryEvent:
    """Notification payload sent by a query."""

    name: str
    query: Any
    store: Any


@dataclass(frozen=True)
class Series:
    """Labeled group of query rows.

    Attributes:
        key: Group key derived from the series mapping.
        meta: Extra fields describing the group.
        values: Rows in original order.
    """

    key: Any
    meta: Mapping[str, Any]
    values: tuple[Row, ...]

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serializable mapping for the series."""
        return {"key": self.key, "meta": dict(self.meta), "values": list(self.values)}
