"""Public SDK surface for tabstore.

This module provides a stable import path for library users.
It re-exports the store, query, and typed models.
"""

from __future__ import annotations

from core.config import TabstoreConfig
from core.errors import (
    TabstoreConfigError,
    TabstoreDependencyError,
    TabstoreError,
    TabstoreFetchError,
    TabstoreQueryError,
    TabstoreTransformError,
)
from core.types import DatasetCache, LoadFailure, QueryEvent, Series, StoreEvent
from ingest.row_source import FileRowSource
from query.predicate import Operator, matches, parse_predicate
from query.query import Query
from store.data_store import DataStore
from store.subscription import Subscription
from transforms.row_pipeline import RowTransformer

__all__ = [
    "DataStore",
    "DatasetCache",
    "FileRowSource",
    "LoadFailure",
    "Operator",
    "Query",
    "QueryEvent",
    "RowTransformer",
    "Series",
    "StoreEvent",
    "Subscription",
    "TabstoreConfig",
    "TabstoreConfigError",
    "TabstoreDependencyError",
    "TabstoreError",
    "TabstoreFetchError",
    "TabstoreQueryError",
    "TabstoreTransformError",
    "matches",
    "parse_predicate",
]
