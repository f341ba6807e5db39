"""Row-store providers."""

from dumploader.providers.storage.sqlite_row_store import SQLiteRowStore

__all__ = ["SQLiteRowStore"]
