"""CLI handler for the ``query`` command."""

from __future__ import annotations

import argparse
import json
from typing import Any

from core.errors import TabstoreError
from store.data_store import DataStore


def add_query_command(subparsers: Any) -> None:
    """Register query subcommand."""
    parser = subparsers.add_parser("query", help="Load datasets and print matching series")
    parser.add_argument("paths", nargs="+", help="Dataset paths or s3:// URIs")
    parser.add_argument("--filter", type=json_mapping, default={}, help="Predicate as JSON")
    parser.add_argument("--cast", type=json_mapping, help='Field types as JSON, e.g. {"price": "Number"}')
    parser.add_argument("--map", type=json_mapping, help='Denormalization as JSON, e.g. {"x": "year", "y": ["a", "b"]}')
    parser.add_argument("--series", help="Field used to group rows into series")
    parser.add_argument("--rows", action="store_true", help="Print matching rows instead of series")


async def run_query_command(store: DataStore, args: argparse.Namespace) -> int:
    """Load requested paths, run the query, and print JSON results."""
    options = {name: value for name, value in (("cast", args.cast), ("map", args.map)) if value}
    try:
        await store.load(args.paths, options)
        query = store.query({"from": args.paths, "filter": args.filter, "series": args.series})
        if args.rows:
            payload: Any = await query.values()
        else:
            payload = [series.to_dict() for series in await query.result()]
    except TabstoreError as error:
        print(f"query_error={error}")
        return 1
    print(json.dumps(payload, default=str, indent=2))
    return 0


def json_mapping(raw_value: str) -> dict[str, Any]:
    """Parse a JSON object argument."""
    try:
        value = json.loads(raw_value)
    except json.JSONDecodeError as error:
        raise argparse.ArgumentTypeError(f"invalid JSON: {error.msg}") from error
    if not isinstance(value, dict):
        raise argparse.ArgumentTypeError("expected a JSON object")
    return value
