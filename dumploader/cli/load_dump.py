# =============================================================================
# dumploader/cli/load_dump.py -- Dump Loader CLI
# =============================================================================
#
# Command-line entry point that loads one or more catalog dumps into a
# SQLite database.  Each dump is named with an explicit per-kind option;
# the loader never guesses the kind from a file name.
#
# Locations may be local paths or http(s) URLs, and may be gzip-compressed
# (".gz").  Dumps are loaded in kind order (artists, releases, masters,
# labels) unless --concurrency allows several at once.  A failing dump is
# reported and the remaining dumps still load.
#
# Exit codes:
#   0 -- every dump loaded
#   1 -- at least one dump failed (rows committed before the failure stay)
#   2 -- usage or configuration error
# =============================================================================

"""CLI for loading catalog XML dumps into a relational store.

Usage::

    # Load artists and labels from local gzipped dumps
    python -m dumploader.cli.load_dump \\
        --artists ~/dumps/discogs_20260101_artists.xml.gz \\
        --labels ~/dumps/discogs_20260101_labels.xml.gz

    # Stream releases straight from a URL with larger batches
    python -m dumploader.cli.load_dump \\
        --releases https://example.org/discogs_20260101_releases.xml.gz \\
        --db data/discogs.db --batch-size 500
"""

from __future__ import annotations

import argparse
import asyncio
import sys

import httpx

from dumploader.config.loader import load_config
from dumploader.models.dump import EntityKind
from dumploader.providers.storage.sqlite_row_store import SQLiteRowStore
from dumploader.services.dump_load_service import DumpLoadService, LoadJob, LoadSummary
from dumploader.utils.errors import DumpLoaderError
from dumploader.utils.logging import configure_logging


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dumploader",
        description="Load catalog XML dumps (artists, releases, masters, labels) into SQLite.",
    )
    for kind in EntityKind:
        parser.add_argument(
            f"--{kind.value}",
            metavar="LOCATION",
            action="append",
            default=[],
            help=f"{kind.value} dump: local path or URL, optionally .gz (repeatable)",
        )
    parser.add_argument("--db", metavar="PATH", help="SQLite database path")
    parser.add_argument("--batch-size", type=int, help="Row inserts per commit (default 100)")
    parser.add_argument("--concurrency", type=int, help="Dumps loaded at the same time")
    parser.add_argument(
        "--no-create-schema",
        action="store_true",
        help="Do not create the reference tables; they must already exist",
    )
    parser.add_argument(
        "--config",
        default="config/config.yaml",
        help="YAML configuration file (default: config/config.yaml)",
    )
    parser.add_argument("--log-level", help="DEBUG, INFO, WARNING or ERROR")
    parser.add_argument("--json-logs", action="store_true", help="Emit JSON log lines")
    return parser


def _collect_jobs(args: argparse.Namespace) -> list[LoadJob]:
    return [
        LoadJob(kind=kind, location=location)
        for kind in EntityKind
        for location in getattr(args, kind.value)
    ]


async def _run(
    jobs: list[LoadJob],
    db_path: str,
    create_schema: bool,
    batch_capacity: int,
    concurrency: int,
    http_timeout: float,
) -> list[LoadSummary]:
    async with SQLiteRowStore(db_path, create_schema=create_schema) as store:
        with httpx.Client(timeout=http_timeout, follow_redirects=True) as client:
            service = DumpLoadService(
                store,
                batch_capacity=batch_capacity,
                http_client=client,
                http_timeout=http_timeout,
            )
            return await service.load_dumps(jobs, concurrency=concurrency)


def _print_summary(summaries: list[LoadSummary]) -> None:
    print()
    for s in summaries:
        status = "ok" if s.ok else "FAILED"
        print(
            f"  [{status:>6}] {s.kind.value:<9} {s.records:>10,} records "
            f"{s.rows:>12,} rows {s.batches:>9,} batches {s.elapsed_s:>8.1f}s  {s.source}"
        )
        if s.error:
            print(f"           {s.error}")


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    jobs = _collect_jobs(args)
    if not jobs:
        parser.error("name at least one dump with --artists, --releases, --masters or --labels")

    try:
        config = load_config(args.config)
    except DumpLoaderError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2
    storage_cfg = config.get("storage", {})
    load_cfg = config.get("load", {})

    batch_capacity = args.batch_size if args.batch_size is not None else load_cfg["batch_capacity"]
    concurrency = args.concurrency if args.concurrency is not None else load_cfg["concurrency"]
    if batch_capacity < 1:
        parser.error(f"--batch-size must be at least 1, got {batch_capacity}")
    if concurrency < 1:
        parser.error(f"--concurrency must be at least 1, got {concurrency}")

    configure_logging(
        log_level=args.log_level or config.get("logging", {}).get("level", "INFO"),
        json_output=args.json_logs,
        app_env=config.get("app", {}).get("env"),
    )

    try:
        summaries = asyncio.run(
            _run(
                jobs,
                db_path=args.db or storage_cfg["database_path"],
                create_schema=storage_cfg["create_schema"] and not args.no_create_schema,
                batch_capacity=batch_capacity,
                concurrency=concurrency,
                http_timeout=load_cfg["http_timeout"],
            )
        )
    except DumpLoaderError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2

    _print_summary(summaries)
    return 0 if all(s.ok for s in summaries) else 1


if __name__ == "__main__":
    sys.exit(main())
