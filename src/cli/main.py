"""Tabstore CLI entry points.
This module exposes dataset query and inspection commands.
It maps argparse commands onto store and query calls.
"""

from __future__ import annotations

import argparse
import asyncio
from dataclasses import replace
from pathlib import Path
from typing import Any, Sequence

from cli.query_command import add_query_command, run_query_command
from core.config import TabstoreConfig
from core.errors import TabstoreError
from store.data_store import DataStore


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(prog="tabstore", description="Tabular data store CLI")
    parser.add_argument("--data-root", help="Override TABSTORE_DATA_ROOT for this command")
    subparsers = parser.add_subparsers(dest="command", required=True)
    add_query_command(subparsers)
    _add_show_command(subparsers)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the tabstore CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    store = _build_store(args.data_root)
    if args.command == "query":
        return asyncio.run(run_query_command(store, args))
    if args.command == "show":
        return asyncio.run(_run_show_command(store, args))
    parser.error(f"Unsupported command: {args.command}")
    return 2


def _build_store(data_root: str | None) -> DataStore:
    """Build a store with optional data-root override.

    Args:
        data_root: Optional override path.

    Returns:
        Store reading from the configured data root.
    """
    config = TabstoreConfig.from_env()
    if data_root:
        config = replace(config, data_root=Path(data_root).expanduser().resolve())
    return DataStore(config=config)


async def _run_show_command(store: DataStore, args: argparse.Namespace) -> int:
    """Handle show command.

    Args:
        store: Data store.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    try:
        await store.load(args.path)
    except TabstoreError as error:
        print(f"load_error={error}")
        return 1
    cache = store.data(args.path)
    fields = list(cache.raw[0]) if cache.raw else []
    print(f"{args.path}\t{len(cache.raw)}\t{','.join(fields) or '-'}")
    return 0


def _add_show_command(subparsers: Any) -> None:
    """Register show subcommand."""
    parser = subparsers.add_parser("show", help="Print row count and fields of a dataset")
    parser.add_argument("path", help="Dataset path or s3:// URI")
