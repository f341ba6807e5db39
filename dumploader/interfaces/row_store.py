"""Abstract base class for row-store providers.

Defines the storage capability the load executor needs: build one insert
statement for a named relation, and execute a list of statements as one
atomic unit.  The concrete schema (tables, column types, constraints) is
owned by the implementation; the pipeline only relies on one relation per
entity kind / child collection, an integer ``ofst`` column on every child
relation, and ``track_ofst`` / ``artist_ofst`` on per-track credit relations.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Mapping, Sequence


@dataclass(frozen=True)
class InsertStatement:
    """A single prepared insert.

    Attributes
    ----------
    relation:
        Name of the target relation.
    sql:
        Parameterized statement text in the provider's dialect.
    params:
        Positional parameters, in the order the statement expects.
    """

    relation: str
    sql: str
    params: tuple[Any, ...]


class IRowStore(ABC):
    """Contract for relational stores the loader writes into."""

    @abstractmethod
    def build_insert(self, relation: str, values: Mapping[str, Any]) -> InsertStatement:
        """Build an insert of *values* (column name to value) into *relation*.

        Pure: nothing is sent to storage until :meth:`execute_batch`.
        """

    @abstractmethod
    async def execute_batch(self, statements: Sequence[InsertStatement]) -> None:
        """Execute *statements* in order as one transaction.

        Either every statement is persisted or none is.  Implementations
        raise their native error on failure after rolling back.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a short identifier for logs (e.g. ``"sqlite"``)."""
