"""Queries bound to a data store.

A query filters the rows of one or more datasets through a predicate and
groups the matches into labeled series. Results are always recomputed
from the store's cache; the query keeps no row data of its own.
"""

from __future__ import annotations

from typing import Any, Callable, Mapping, Sequence

from core.constants import FILTER_EVENT, LOAD_EVENT, SERIES_EVENT
from core.errors import TabstoreQueryError
from core.logging_config import get_logger
from core.types import QueryEvent, Row, Series, StoreEvent
from query.predicate import evaluate, parse_predicate
from query.series import SeriesSpec, compile_series_mapping, group_series
from store.subscription import Subscription, SubscriptionRegistry

_LOGGER = get_logger(__name__)


class Query:
    """Filtered, grouped view over a store.

    Example::

        query = store.query({
            "from": "sales.csv",
            "filter": {"region": "west", "y": {"gt": 10, "lt": 100}},
        })
        rows = await query.values()
        series = await query.series("__yColumn").result()
    """

    def __init__(self, store: Any, options: Mapping[str, Any]) -> None:
        """Bind a query specification to a store.

        Args:
            store: Data store providing ``data``, ``ready`` and ``subscribe``.
            options: Mapping with ``from`` (key or keys), optional
                ``filter`` (predicate mapping) and optional ``series``.

        Raises:
            TabstoreQueryError: If ``from`` is missing or the filter is
                malformed.
        """
        self.store = store
        self._keys = _as_keys(options.get("from"))
        self._filter: Mapping[str, Any] = options.get("filter") or {}
        self._predicate = parse_predicate(self._filter)
        self._mapping = compile_series_mapping(options.get("series"))
        self.subscriptions = SubscriptionRegistry()
        self._store_subscription: Subscription | None = None

    @property
    def keys(self) -> tuple[str, ...]:
        return self._keys

    @property
    def filter_spec(self) -> Mapping[str, Any]:
        return self._filter

    async def values(self) -> list[Row]:
        """Return matching rows once the store's loads settle."""
        await self.store.ready()
        return self.rows()

    async def result(self) -> list[Series]:
        """Return grouped series once the store's loads settle."""
        await self.store.ready()
        return self.current()

    def rows(self) -> list[Row]:
        """Return matching rows from the current cache, in key then row order."""
        return [
            row
            for key in self._keys
            for row in self.store.data(key).values
            if evaluate(self._predicate, row)
        ]

    def current(self) -> list[Series]:
        """Group the current matching rows into series."""
        return group_series(self.rows(), self._mapping)

    def series(self, mapping: SeriesSpec) -> "Query":
        """Set how matching rows are grouped into series.

        Args:
            mapping: Field name, callable, or ``{"key", "meta"}`` mapping.

        Returns:
            This query, for chaining.
        """
        self._mapping = compile_series_mapping(mapping)
        self._notify(SERIES_EVENT)
        return self

    def filter(self, predicate: Mapping[str, Any]) -> "Query":
        """Replace the filter predicate.

        Returns:
            This query, for chaining.
        """
        parsed = parse_predicate(predicate)
        self._filter = predicate
        self._predicate = parsed
        self._notify(FILTER_EVENT)
        return self

    def subscribe(self, callback: Callable[..., Any], context: Any = None) -> Subscription:
        """Subscribe to recomputed results.

        The query listens to its store only while it has active
        subscribers; the store subscription is released on the first store
        notification after the last query subscription is disposed.

        Args:
            callback: Called with ``(series, QueryEvent)`` after store loads
                and after ``series``/``filter`` changes.
            context: Optional first positional argument for ``callback``.

        Returns:
            Disposable subscription.
        """
        subscription = self.subscriptions.add(callback, context)
        if self._store_subscription is None or self._store_subscription.disposed:
            self._store_subscription = self.store.subscribe(self._on_store_change)
        return subscription

    def dispose(self) -> None:
        """Stop listening to the store and drop all query subscriptions."""
        self._release_store()
        self.subscriptions.dispose_all()

    def _on_store_change(self, data: Mapping[str, Any], event: StoreEvent) -> None:
        if not len(self.subscriptions):
            self._release_store()
            return
        if event.name == LOAD_EVENT:
            self._notify(event.name)

    def _release_store(self) -> None:
        if self._store_subscription is not None:
            self._store_subscription.dispose()
            self._store_subscription = None

    def _notify(self, name: str) -> None:
        if not len(self.subscriptions):
            return
        results = self.current()
        _LOGGER.debug(
            "query_notified",
            event_name=name,
            keys=list(self._keys),
            series_count=len(results),
        )
        self.subscriptions.notify(results, QueryEvent(name=name, query=self, store=self.store))


def _as_keys(from_spec: str | Sequence[str] | None) -> tuple[str, ...]:
    """Normalize the ``from`` option into a tuple of keys."""
    if isinstance(from_spec, str) and from_spec:
        return (from_spec,)
    if isinstance(from_spec, Sequence) and not isinstance(from_spec, str) and from_spec:
        return tuple(from_spec)
    raise TabstoreQueryError(
        "Query requires a 'from' key or list of keys naming loaded datasets."
    )
