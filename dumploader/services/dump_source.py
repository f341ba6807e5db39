"""Opening dump files from disk or over HTTP.

``open_dump()`` turns a location string into a binary stream positioned at
the start of the XML document:

    - ``http://`` / ``https://`` locations are streamed with httpx; the body
      is never buffered whole, the decoder pulls it chunk by chunk
    - anything else is opened as a local file
    - a ``.gz`` suffix (on the path, ignoring any query string) wraps the
      stream in a gzip decompressor, so monthly dumps can be read without
      unpacking them first

Errors while opening or reading the source surface as :class:`SourceError`.

The returned streams are blocking file objects.  Async callers use
``open_dump_async()``, which opens and closes the source in a worker thread;
reads belong in a worker thread as well (see DumpLoadService).
"""

from __future__ import annotations

import asyncio
import gzip
import io
from contextlib import asynccontextmanager, contextmanager
from pathlib import Path
from typing import IO, AsyncIterator, Iterator
from urllib.parse import urlparse

import httpx
import structlog

from dumploader.utils.errors import SourceError

logger = structlog.get_logger(logger_name=__name__)

_CHUNK_SIZE = 1 << 16


class _ResponseReader(io.RawIOBase):
    """Raw, read-only file object over an iterator of byte chunks."""

    def __init__(self, chunks: Iterator[bytes]) -> None:
        self._chunks = chunks
        self._buffer = b""

    def readable(self) -> bool:
        return True

    def readinto(self, b) -> int:  # noqa: ANN001
        while not self._buffer:
            try:
                self._buffer = next(self._chunks)
            except StopIteration:
                return 0
        size = min(len(b), len(self._buffer))
        b[:size] = self._buffer[:size]
        self._buffer = self._buffer[size:]
        return size


def is_remote(location: str) -> bool:
    return urlparse(location).scheme in ("http", "https")


def _is_gzipped(location: str) -> bool:
    path = urlparse(location).path if is_remote(location) else location
    return path.endswith(".gz")


def _maybe_gunzip(stream: IO[bytes], location: str) -> IO[bytes]:
    if _is_gzipped(location):
        return gzip.GzipFile(fileobj=stream, mode="rb")
    return stream


@contextmanager
def _open_remote(
    location: str,
    http_client: httpx.Client | None,
    timeout: float,
) -> Iterator[IO[bytes]]:
    owns_client = http_client is None
    client = http_client or httpx.Client(timeout=timeout, follow_redirects=True)
    try:
        with client.stream("GET", location) as response:
            if response.is_error:
                msg = f"HTTP {response.status_code} fetching dump"
                raise SourceError(msg, source_name=location)
            logger.info(
                "dump_opened",
                location=location,
                remote=True,
                content_length=response.headers.get("content-length"),
            )
            raw = io.BufferedReader(
                _ResponseReader(response.iter_bytes(_CHUNK_SIZE)),
                buffer_size=_CHUNK_SIZE,
            )
            yield _maybe_gunzip(raw, location)
    except httpx.HTTPError as exc:
        raise SourceError(f"Download failed: {exc}", source_name=location) from exc
    finally:
        if owns_client:
            client.close()


@contextmanager
def _open_local(location: str) -> Iterator[IO[bytes]]:
    path = Path(location)
    try:
        fh = open(path, "rb")  # noqa: SIM115
    except OSError as exc:
        raise SourceError(f"Cannot open dump: {exc.strerror}", source_name=location) from exc
    logger.info("dump_opened", location=location, remote=False, size=path.stat().st_size)
    with fh:
        yield _maybe_gunzip(fh, location)


@contextmanager
def open_dump(
    location: str,
    http_client: httpx.Client | None = None,
    timeout: float = 60.0,
) -> Iterator[IO[bytes]]:
    """Open *location* as a decompressed binary stream.

    Parameters
    ----------
    location:
        Local path or ``http(s)`` URL.  A ``.gz`` suffix enables gzip
        decompression.
    http_client:
        Optional pre-configured ``httpx.Client``; one is created (and closed
        afterwards) when omitted.
    timeout:
        Timeout in seconds for a client created here.

    Raises
    ------
    SourceError
        If the file cannot be opened or the HTTP request fails.
    """
    if is_remote(location):
        with _open_remote(location, http_client, timeout) as stream:
            yield stream
    else:
        with _open_local(location) as stream:
            yield stream


@asynccontextmanager
async def open_dump_async(
    location: str,
    http_client: httpx.Client | None = None,
    timeout: float = 60.0,
) -> AsyncIterator[IO[bytes]]:
    """Async variant of :func:`open_dump` that keeps the event loop free.

    Connecting, the first response bytes and closing all happen in a worker
    thread.  An exception raised by the body is handed to the underlying
    context manager, so transport errors hit while reading still surface as
    :class:`SourceError`.
    """
    opener = open_dump(location, http_client, timeout)
    stream = await asyncio.to_thread(opener.__enter__)
    try:
        yield stream
    except BaseException as exc:
        suppressed = await asyncio.to_thread(opener.__exit__, type(exc), exc, exc.__traceback__)
        if not suppressed:
            raise
    else:
        await asyncio.to_thread(opener.__exit__, None, None, None)
