"""Custom exception hierarchy for dumploader.

All application exceptions inherit from :class:`DumpLoaderError`, which
carries an optional ``source_name`` so error handlers can identify which
dump (e.g. "discogs_20260101_releases.xml.gz") caused the failure.

The hierarchy is organized by pipeline stage:

    DumpLoaderError  (base -- catch-all for any dumploader error)
    +-- DecodeError         (malformed or mismatched XML, bad integers)
    +-- LoadError           (a batch commit against storage failed)
    +-- SourceError         (the dump could not be opened or fetched)
    +-- ConfigurationError  (startup / invalid settings)

Only :class:`DecodeError` and :class:`LoadError` cross the core pipeline
boundary.  Both are terminal for the stream they occur in.
"""

from __future__ import annotations

from typing import Any


class DumpLoaderError(Exception):
    """Base exception for all dumploader errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``source_name`` identifying the dump that triggered the error.  The
    ``__str__`` method prefixes the source name in brackets for structured
    log output, e.g. ``[labels.xml] Unexpected element <artist>``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        source_name: str | None = None,
    ) -> None:
        self._message = message
        self._source_name = source_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def source_name(self) -> str | None:
        return self._source_name

    def __str__(self) -> str:
        if self._source_name:
            return f"[{self._source_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Core pipeline errors
# ---------------------------------------------------------------------------

class DecodeError(DumpLoaderError):
    """Raised when the input stream is not a well-formed dump of the expected kind.

    ``offset`` is the approximate number of bytes consumed from the input
    when the problem was detected.  ``line`` and ``column`` come from the
    XML parser when it reports them.
    """

    def __init__(
        self,
        message: str = "Dump decoding failed",
        offset: int | None = None,
        line: int | None = None,
        column: int | None = None,
        source_name: str | None = None,
    ) -> None:
        self._offset = offset
        self._line = line
        self._column = column
        super().__init__(message=message, source_name=source_name)

    @property
    def offset(self) -> int | None:
        return self._offset

    @property
    def line(self) -> int | None:
        return self._line

    @property
    def column(self) -> int | None:
        return self._column

    def __str__(self) -> str:
        text = super().__str__()
        if self._offset is not None:
            text = f"{text} (near byte {self._offset})"
        return text


class LoadError(DumpLoaderError):
    """Raised when a batch of row inserts could not be committed.

    ``keys`` lists the identifying key of every intent in the failed batch
    as ``(relation, key_tuple)`` pairs, in submission order.
    """

    def __init__(
        self,
        message: str = "Batch commit failed",
        keys: list[tuple[str, tuple[Any, ...]]] | None = None,
        source_name: str | None = None,
    ) -> None:
        self._keys = list(keys or [])
        super().__init__(message=message, source_name=source_name)

    @property
    def keys(self) -> list[tuple[str, tuple[Any, ...]]]:
        return list(self._keys)


# ---------------------------------------------------------------------------
# Supporting errors (outside the core boundary)
# ---------------------------------------------------------------------------

class SourceError(DumpLoaderError):
    """Raised when a dump location cannot be opened (missing file, HTTP error)."""

    def __init__(
        self,
        message: str = "Dump source could not be opened",
        source_name: str | None = None,
    ) -> None:
        super().__init__(message=message, source_name=source_name)


class ConfigurationError(DumpLoaderError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        source_name: str | None = None,
    ) -> None:
        super().__init__(message=message, source_name=source_name)
