"""Utility modules for dumploader.

- **errors** -- Exception hierarchy rooted at DumpLoaderError; the core
  pipeline raises only DecodeError and LoadError.
- **concurrency** -- asyncio semaphore throttling for running several dump
  loads on one event loop.
- **logging** -- structlog setup with a dual-renderer pattern: coloured
  console output in development, structured JSON in production.
"""

from dumploader.utils.concurrency import throttled_gather
from dumploader.utils.errors import (
    ConfigurationError,
    DecodeError,
    DumpLoaderError,
    LoadError,
    SourceError,
)
from dumploader.utils.logging import configure_logging, get_logger

__all__ = [
    "ConfigurationError",
    "DecodeError",
    "DumpLoaderError",
    "LoadError",
    "SourceError",
    "configure_logging",
    "get_logger",
    "throttled_gather",
]
