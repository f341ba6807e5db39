"""Public interface definitions for external collaborators.

The load pipeline talks to storage exclusively through :class:`IRowStore`.
Concrete adapters live in ``dumploader/providers/`` and are injected by the
caller, so tests can substitute an in-memory fake and production can point
at any relational store.

CONCRETE PROVIDER MAP:
    Interface    ->  Concrete implementations (in dumploader/providers/)
    ---------------------------------------------------------------
    IRowStore    ->  SQLiteRowStore
"""

from dumploader.interfaces.row_store import InsertStatement, IRowStore

__all__ = [
    "IRowStore",
    "InsertStatement",
]
