"""Keyed, load-once dataset store.

The store fetches rows through an injected row source, shares in-flight
fetches between concurrent callers of the same key, caches raw rows, and
keeps transformed values in sync with the current row pipeline.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Mapping, Sequence

from core.config import TabstoreConfig
from core.constants import LOAD_EVENT
from core.errors import TabstoreFetchError, TabstoreTransformError
from core.logging_config import get_logger
from core.types import DatasetCache, LoadFailure, Row, RowSource, StoreEvent
from ingest.row_source import FileRowSource
from query.query import Query
from store.subscription import Subscription, SubscriptionRegistry
from transforms.row_cast import CastSpec, compile_cast
from transforms.row_mapping import MapSpec, compile_map
from transforms.row_pipeline import RowTransformer
from transforms.type_converters import DEFAULT_TYPES

_LOGGER = get_logger(__name__)

# Entry meta keys owned by the load lifecycle; never taken from load options.
_LIFECYCLE_KEYS = frozenset({"loaded", "loading"})


class DataStore:
    """Generic data store with a keyed collection of row datasets."""

    def __init__(
        self,
        row_source: RowSource | None = None,
        config: TabstoreConfig | None = None,
    ) -> None:
        """Create an empty store.

        Args:
            row_source: Async callable returning raw rows for a key.
                Defaults to reading local or S3 files.
            config: Optional runtime configuration for the default source.
        """
        self._config = config or TabstoreConfig.from_env()
        self._row_source = row_source or FileRowSource(self._config)
        self._data: dict[str, DatasetCache] = {}
        self._transformer = RowTransformer()
        self.loading: list[asyncio.Task[list[list[Row]]]] = []
        self.errors: list[LoadFailure] = []
        self.subscriptions = SubscriptionRegistry()
        self.types = dict(DEFAULT_TYPES)

    @property
    def transformer(self) -> RowTransformer:
        return self._transformer

    @property
    def is_loading(self) -> bool:
        """Whether any load is still outstanding."""
        return bool(self.loading)

    def data(self, key: str | None = None) -> Any:
        """Return one cache entry (created lazily) or the whole collection.

        Args:
            key: Optional dataset key.

        Returns:
            The ``DatasetCache`` for ``key``, or the key-to-cache mapping.
        """
        if key is None:
            return self._data
        cache = self._data.get(key)
        if cache is None:
            cache = self._data[key] = DatasetCache()
        return cache

    def load(
        self,
        key_or_keys: str | Sequence[str],
        options: Mapping[str, Any] | None = None,
    ) -> asyncio.Task[list[list[Row]]]:
        """Load one or more keys into the store.

        Must be called while an event loop is running. Keys already loaded
        resolve from cache; keys with a fetch in flight share that fetch.

        Args:
            key_or_keys: Dataset key or ordered sequence of keys.
            options: Optional ``cast``/``map`` overrides plus arbitrary
                metadata merged into each entry's ``meta``.

        Returns:
            Task resolving to the raw rows of every key, in key order.
            The task raises the first fetch error if any key failed, or
            the transform error if fetched rows could not be processed.
        """
        loop = asyncio.get_running_loop()
        keys = _as_keys(key_or_keys)
        raw_options = {
            name: value for name, value in (options or {}).items() if name not in _LIFECYCLE_KEYS
        }
        load_options = self._compile_options(raw_options)
        handles = [self._load_key(key, loop) for key in keys]
        task = loop.create_task(self._settle_load(keys, raw_options, load_options, handles))
        self.loading = [*self.loading, task]
        return task

    async def values(self) -> dict[str, DatasetCache]:
        """Return all datasets once outstanding loads settle."""
        store = await self.ready()
        return store.data()

    async def ready(self) -> "DataStore":
        """Wait for currently outstanding loads to settle, then return self."""
        pending = list(self.loading)
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        return self

    def subscribe(self, callback: Callable[..., Any], context: Any = None) -> Subscription:
        """Subscribe to store changes.

        Args:
            callback: Called with ``(data, StoreEvent)``.
            context: Optional first positional argument for ``callback``.

        Returns:
            Disposable subscription.
        """
        return self.subscriptions.add(callback, context)

    def cast(self, spec: CastSpec) -> "DataStore":
        """Replace the store-wide cast stage and reprocess cached rows."""
        self._swap_transformer(self._transformer.with_cast(compile_cast(spec, self.types)))
        return self

    def map(self, spec: MapSpec) -> "DataStore":
        """Replace the store-wide map stage and reprocess cached rows."""
        self._swap_transformer(self._transformer.with_map(compile_map(spec)))
        return self

    def reprocess_all(self) -> "DataStore":
        """Recompute every entry's values from its raw rows."""
        self._swap_transformer(self._transformer)
        return self

    def query(self, options: Mapping[str, Any]) -> Query:
        """Create a query bound to this store."""
        return Query(self, options)

    def _compile_options(self, options: dict[str, Any]) -> dict[str, Any]:
        """Attach compiled per-entry stage overrides to load options."""
        compiled = dict(options)
        if options.get("cast"):
            compiled["_cast"] = compile_cast(options["cast"], self.types)
        if options.get("map"):
            compiled["_map"] = compile_map(options["map"])
        return compiled

    def _load_key(self, key: str, loop: asyncio.AbstractEventLoop) -> Awaitable[list[Row]]:
        """Return a handle for one key, reusing cache or an in-flight fetch."""
        cache = self.data(key)
        if cache.meta.get("loaded"):
            cached: asyncio.Future[list[Row]] = loop.create_future()
            cached.set_result(cache.raw)
            return cached
        in_flight = cache.meta.get("loading")
        if in_flight is not None:
            return in_flight
        fetch = loop.create_task(self._fetch(key, cache))
        cache.meta["loading"] = fetch
        return fetch

    async def _fetch(self, key: str, cache: DatasetCache) -> list[Row]:
        """Fetch rows for one key and mark the entry loaded on success."""
        _LOGGER.debug("fetch_started", key=key)
        try:
            rows = await self._row_source(key)
        except TabstoreFetchError:
            raise
        except Exception as error:
            raise TabstoreFetchError(
                f"Failed to fetch rows for '{key}': {error}", key=key
            ) from error
        finally:
            cache.meta.pop("loading", None)
        cache.meta["loaded"] = datetime.now(timezone.utc)
        _LOGGER.debug("fetch_completed", key=key, row_count=len(rows))
        return [dict(row) for row in rows]

    async def _settle_load(
        self,
        keys: tuple[str, ...],
        raw_options: dict[str, Any],
        load_options: dict[str, Any],
        handles: list[Awaitable[list[Row]]],
    ) -> list[list[Row]]:
        """Join per-key fetches, update caches, then notify or record failure.

        Fetched rows are transformed for every key before any entry is
        touched, so a transform error leaves every entry as it was.
        """
        try:
            results = await asyncio.gather(*handles, return_exceptions=True)
            failures = [result for result in results if isinstance(result, BaseException)]
            fetched = {
                key: result
                for key, result in zip(keys, results)
                if not isinstance(result, BaseException)
            }
            try:
                processed = {
                    key: self._process_rows(
                        rows, {**self.data(key).meta, **load_options}, self._transformer
                    )
                    for key, rows in fetched.items()
                }
            except TabstoreTransformError as error:
                self._unmark_uncommitted(fetched)
                self._record_failure(keys, raw_options, error, len(fetched))
                raise
            for key, values in processed.items():
                self._commit_rows(key, load_options, fetched[key], values)
            if failures:
                self._record_failure(keys, raw_options, failures[0], len(failures))
                raise failures[0]
            self._notify(LOAD_EVENT)
            _LOGGER.info(
                "load_completed",
                keys=list(keys),
                row_count=sum(len(self.data(key).values) for key in keys),
            )
            return [self.data(key).raw for key in keys]
        finally:
            current = asyncio.current_task()
            self.loading = [handle for handle in self.loading if handle is not current]

    def _commit_rows(
        self,
        key: str,
        options: Mapping[str, Any],
        rows: list[Row],
        values: list[Row],
    ) -> None:
        """Store raw rows and their processed values for a key."""
        cache = self.data(key)
        cache.meta.update(options)
        cache.meta.setdefault("loaded", datetime.now(timezone.utc))
        cache.raw = rows
        cache.values = values

    def _unmark_uncommitted(self, fetched: Mapping[str, list[Row]]) -> None:
        """Clear the loaded marker of entries whose fetched rows were discarded."""
        for key, rows in fetched.items():
            cache = self.data(key)
            # Cache hits resolve to the committed raw list itself.
            if cache.raw is not rows:
                cache.meta.pop("loaded", None)

    def _record_failure(
        self,
        keys: tuple[str, ...],
        options: dict[str, Any],
        error: BaseException,
        failed_count: int,
    ) -> None:
        self.errors.append(LoadFailure(keys=keys, options=options, error=error))
        _LOGGER.warning(
            "load_failed",
            keys=list(keys),
            failed_count=failed_count,
            error=str(error),
        )

    def _process_rows(
        self,
        rows: list[Row],
        meta: Mapping[str, Any],
        transformer: RowTransformer,
    ) -> list[Row]:
        """Apply the transformer, honoring per-entry stage overrides."""
        if meta.get("_cast"):
            transformer = transformer.with_cast(meta["_cast"])
        if meta.get("_map"):
            transformer = transformer.with_map(meta["_map"])
        return transformer.process(rows)

    def _swap_transformer(self, transformer: RowTransformer) -> None:
        """Reprocess every entry with ``transformer``, then commit it.

        Values are only replaced once every entry processed successfully.
        """
        processed = {
            key: self._process_rows(cache.raw, cache.meta, transformer)
            for key, cache in self._data.items()
        }
        self._transformer = transformer
        for key, values in processed.items():
            self._data[key].values = values
        _LOGGER.debug("store_reprocessed", dataset_count=len(processed))

    def _notify(self, name: str) -> None:
        """Notify subscribers with the current data."""
        self.subscriptions.notify(self.data(), StoreEvent(name=name, store=self))


def _as_keys(key_or_keys: str | Sequence[str]) -> tuple[str, ...]:
    """Normalize a key or key sequence to a tuple of keys."""
    if isinstance(key_or_keys, str):
        return (key_or_keys,)
    return tuple(key_or_keys)
