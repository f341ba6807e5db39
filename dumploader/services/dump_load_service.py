# =============================================================================
# dumploader/services/dump_load_service.py -- Decode → Flatten → Load Driver
# =============================================================================
#
# Wires the three pipeline stages together for one dump stream, and runs a
# list of dump jobs with per-stream failure isolation.
#
# Data flow (one stream):
#   XML bytes → decode_records() → record → flatten() → RowIntent
#             → LoadExecutor.submit() → IRowStore.execute_batch()
#
# Design decisions:
#   - One LoadExecutor per stream.  Streams never share a batch buffer, so
#     a failure in the releases dump cannot touch rows of the labels dump.
#   - The executor is entered with ``async with`` so a DecodeError halfway
#     through a file still flushes the intents submitted before it.
#   - Decoding runs in worker threads (asyncio.to_thread), one record per
#     hop, so concurrent streams and aiosqlite callbacks keep running while
#     a slow disk, gzip member or HTTP body is being read.
#   - An optional cancel event is only checked between records, never in
#     the middle of one, so a record's rows are never split by a stop.
#   - load_dumps() logs and records a failed stream, then moves on to the
#     next one.  Rows committed before the failure stay in the database.
# =============================================================================

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import IO

import httpx
import structlog

from dumploader.interfaces.row_store import IRowStore
from dumploader.models.dump import EntityKind
from dumploader.services.dump_source import open_dump_async
from dumploader.services.load_executor import DEFAULT_BATCH_CAPACITY, LoadExecutor
from dumploader.services.record_decoder import decode_records
from dumploader.services.record_flattener import flatten
from dumploader.utils.concurrency import throttled_gather
from dumploader.utils.errors import DumpLoaderError
from dumploader.utils.logging import get_logger


@dataclass(frozen=True)
class LoadJob:
    """One dump to load: its kind and where to read it from."""

    kind: EntityKind
    location: str


@dataclass
class LoadSummary:
    """Outcome of loading one dump stream.

    ``rows`` and ``batches`` count only what was actually committed.  When
    ``error`` is set the stream stopped early; earlier batches are still
    persisted.
    """

    kind: EntityKind
    source: str | None = None
    records: int = 0
    rows: int = 0
    batches: int = 0
    elapsed_s: float = 0.0
    cancelled: bool = False
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class DumpLoadService:
    """Loads catalog dumps into an :class:`IRowStore`.

    Parameters
    ----------
    store:
        Initialized row store shared by all streams.
    batch_capacity:
        Intents per commit group for every executor this service creates.
    http_client:
        Optional ``httpx.Client`` used for remote dump locations.
    http_timeout:
        Timeout for a client created on demand.
    progress_every:
        Log a progress line every N records.
    """

    def __init__(
        self,
        store: IRowStore,
        batch_capacity: int = DEFAULT_BATCH_CAPACITY,
        http_client: httpx.Client | None = None,
        http_timeout: float = 60.0,
        progress_every: int = 10000,
    ) -> None:
        self._store = store
        self._batch_capacity = batch_capacity
        self._http_client = http_client
        self._http_timeout = http_timeout
        self._progress_every = progress_every
        self._logger: structlog.BoundLogger = get_logger(__name__)

    async def load_stream(
        self,
        kind: EntityKind,
        stream: IO[bytes],
        source_name: str | None = None,
        cancel: asyncio.Event | None = None,
    ) -> LoadSummary:
        """Decode, flatten and load every record of one dump stream.

        Raises
        ------
        DecodeError
            The stream is malformed.  Intents submitted before the error are
            still committed.
        LoadError
            A batch commit failed.  Nothing after the failing batch is loaded.
        """
        summary = LoadSummary(kind=EntityKind(kind), source=source_name)
        await self._load(summary, stream, cancel)
        return summary

    async def load_dump(self, job: LoadJob, cancel: asyncio.Event | None = None) -> LoadSummary:
        """Open ``job.location`` and load it as ``job.kind``."""
        summary = LoadSummary(kind=EntityKind(job.kind), source=job.location)
        async with open_dump_async(job.location, self._http_client, self._http_timeout) as stream:
            await self._load(summary, stream, cancel)
        return summary

    async def load_dumps(
        self,
        jobs: list[LoadJob],
        concurrency: int = 1,
        cancel: asyncio.Event | None = None,
    ) -> list[LoadSummary]:
        """Load several dumps, isolating failures per stream.

        With ``concurrency=1`` jobs run one after another in list order.
        Higher values run up to that many jobs at once, each with its own
        decoder and executor.

        Returns one :class:`LoadSummary` per job, in job order.  A failed job
        has ``error`` set; the remaining jobs still run.
        """
        coros = [self._load_isolated(job, cancel) for job in jobs]
        results = await throttled_gather(coros, limit=concurrency, return_exceptions=False)
        return list(results)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _load_isolated(self, job: LoadJob, cancel: asyncio.Event | None) -> LoadSummary:
        summary = LoadSummary(kind=EntityKind(job.kind), source=job.location)
        try:
            async with open_dump_async(job.location, self._http_client, self._http_timeout) as stream:
                await self._load(summary, stream, cancel)
        except DumpLoaderError as exc:
            summary.error = str(exc)
            self._logger.error(
                "load_stream_failed",
                kind=summary.kind.value,
                source=job.location,
                error_type=type(exc).__name__,
                error=str(exc),
                records=summary.records,
                rows=summary.rows,
            )
        return summary

    async def _load(
        self,
        summary: LoadSummary,
        stream: IO[bytes],
        cancel: asyncio.Event | None,
    ) -> None:
        kind = summary.kind
        source = summary.source
        start = time.monotonic()
        self._logger.info(
            "load_stream_start",
            kind=kind.value,
            source=source,
            batch_capacity=self._batch_capacity,
        )

        executor = LoadExecutor(self._store, self._batch_capacity, source_name=source)
        try:
            async with executor:
                records = decode_records(kind, stream, source_name=source)
                while True:
                    if cancel is not None and cancel.is_set():
                        summary.cancelled = True
                        break
                    # Reading, decompressing and parsing all block, so each
                    # record is pulled in a worker thread.
                    record = await asyncio.to_thread(next, records, None)
                    if record is None:
                        break
                    for intent in flatten(record):
                        await executor.submit(intent)
                    summary.records += 1

                    if summary.records % self._progress_every == 0:
                        self._logger.info(
                            "load_stream_progress",
                            kind=kind.value,
                            records=summary.records,
                            rows=executor.rows_committed,
                        )
        finally:
            summary.rows = executor.rows_committed
            summary.batches = executor.batches_committed
            summary.elapsed_s = round(time.monotonic() - start, 1)

        self._logger.info(
            "load_stream_complete",
            kind=kind.value,
            source=source,
            records=summary.records,
            rows=summary.rows,
            batches=summary.batches,
            cancelled=summary.cancelled,
            elapsed_s=summary.elapsed_s,
        )
