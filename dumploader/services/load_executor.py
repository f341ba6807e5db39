"""Batched load executor -- the only component that writes to storage.

Accepts row intents in submission order, buffers them, and commits every
full buffer to the injected :class:`IRowStore` as one atomic batch.  Closing
the executor commits whatever is left (a possibly partial final batch).

State machine::

    OPEN → ACCUMULATING → COMMITTING → ACCUMULATING → … → CLOSING → CLOSED

``CLOSED`` is terminal.  Submitting to a closed executor is a programming
error and raises :class:`RuntimeError`, not a domain error.

Batch boundaries ignore record boundaries: a release's children may span two
batches and two releases may share one.  Each intent carries its own keys,
so that is harmless.  There is no transaction spanning batches; rows from
batches committed before a failure stay persisted.
"""

from __future__ import annotations

from enum import Enum

import structlog

from dumploader.interfaces.row_store import IRowStore
from dumploader.models.rows import RowIntent
from dumploader.utils.errors import ConfigurationError, LoadError
from dumploader.utils.logging import get_logger

DEFAULT_BATCH_CAPACITY = 100


class ExecutorState(str, Enum):  # noqa: UP042 -- StrEnum requires Python 3.11+
    OPEN = "OPEN"
    ACCUMULATING = "ACCUMULATING"
    COMMITTING = "COMMITTING"
    CLOSING = "CLOSING"
    CLOSED = "CLOSED"


class LoadExecutor:
    """Buffers row intents and commits them in fixed-size atomic batches.

    Parameters
    ----------
    store:
        Storage capability used to build and execute insert statements.
    capacity:
        Number of intents per commit group.  Must be at least 1.
    source_name:
        Optional dump label attached to logs and raised errors.

    Use as an async context manager so the final flush happens on every
    exit path::

        async with LoadExecutor(store, capacity=100) as executor:
            for intent in intents:
                await executor.submit(intent)
    """

    def __init__(
        self,
        store: IRowStore,
        capacity: int = DEFAULT_BATCH_CAPACITY,
        source_name: str | None = None,
    ) -> None:
        if capacity < 1:
            msg = f"Batch capacity must be at least 1, got {capacity}"
            raise ConfigurationError(msg)
        self._store = store
        self._capacity = capacity
        self._source_name = source_name
        self._pending: list[RowIntent] = []
        self._state = ExecutorState.OPEN
        self._batches_committed = 0
        self._rows_committed = 0
        self._logger: structlog.BoundLogger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def state(self) -> ExecutorState:
        return self._state

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def pending(self) -> int:
        """Number of submitted intents not yet committed."""
        return len(self._pending)

    @property
    def batches_committed(self) -> int:
        return self._batches_committed

    @property
    def rows_committed(self) -> int:
        return self._rows_committed

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def submit(self, intent: RowIntent) -> None:
        """Buffer *intent*; commit the buffer once it reaches capacity.

        Raises
        ------
        LoadError
            If committing the full buffer fails.  The executor is closed
            and the failed batch is discarded.
        RuntimeError
            If the executor is already closed.
        """
        if self._state in (ExecutorState.CLOSING, ExecutorState.CLOSED):
            msg = f"Cannot submit to a {self._state.value.lower()} LoadExecutor"
            raise RuntimeError(msg)

        self._pending.append(intent)
        self._state = ExecutorState.ACCUMULATING
        if len(self._pending) >= self._capacity:
            await self._commit_pending()

    async def close(self) -> None:
        """Commit any remaining intents, then mark the executor closed.

        Closing with nothing pending makes no storage call.  Calling
        ``close()`` on an already closed executor does nothing.

        Raises
        ------
        LoadError
            If the final batch cannot be committed.  The executor is closed
            regardless.
        """
        if self._state in (ExecutorState.CLOSING, ExecutorState.CLOSED):
            return

        self._state = ExecutorState.CLOSING
        try:
            if self._pending:
                await self._commit_pending()
        finally:
            self._pending.clear()
            self._state = ExecutorState.CLOSED
            self._logger.debug(
                "executor_closed",
                source=self._source_name,
                batches=self._batches_committed,
                rows=self._rows_committed,
            )

    async def __aenter__(self) -> LoadExecutor:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        if exc is None:
            await self.close()
            return False

        # The body already failed.  Still flush what was submitted, but a
        # flush failure must not replace the original error.
        try:
            await self.close()
        except LoadError as flush_error:
            self._logger.error(
                "final_flush_failed",
                source=self._source_name,
                error=str(flush_error),
                original_error=str(exc),
            )
        return False

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _commit_pending(self) -> None:
        batch = self._pending
        self._pending = []
        closing = self._state == ExecutorState.CLOSING
        self._state = ExecutorState.COMMITTING

        try:
            statements = [self._store.build_insert(i.relation, i.values) for i in batch]
            await self._store.execute_batch(statements)
        except Exception as exc:
            self._state = ExecutorState.CLOSED
            keys = [(intent.relation.value, intent.key) for intent in batch]
            self._logger.error(
                "batch_failed",
                source=self._source_name,
                batch_number=self._batches_committed + 1,
                size=len(batch),
                first_key=keys[0],
                last_key=keys[-1],
                error=str(exc),
            )
            msg = (
                f"Commit of batch {self._batches_committed + 1} "
                f"({len(batch)} rows) failed: {exc}"
            )
            raise LoadError(msg, keys=keys, source_name=self._source_name) from exc

        self._batches_committed += 1
        self._rows_committed += len(batch)
        self._state = ExecutorState.CLOSING if closing else ExecutorState.ACCUMULATING
        self._logger.debug(
            "batch_committed",
            source=self._source_name,
            batch_number=self._batches_committed,
            size=len(batch),
        )
