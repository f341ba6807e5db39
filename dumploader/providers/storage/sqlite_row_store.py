"""SQLite-backed row store.

Writes dump rows into a local SQLite database (``data/discogs.db`` by
default).  Uses ``aiosqlite`` for async I/O and one long-lived connection per
store, since a dump load issues many thousands of small transactions.

# ─── ARCHITECTURE ────────────────────────────────────────────────────
#
#   - aiosqlite for async I/O
#   - WAL mode so readers are not blocked while a load is running
#   - Parameterized statements throughout (column names are validated,
#     values are always bound)
#   - idempotent initialize() with CREATE TABLE IF NOT EXISTS for the
#     reference schema; skip it when the schema is managed elsewhere
#
# Layer: Providers (implements IRowStore interface)
# Depends on: aiosqlite, structlog
# ─────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import asyncio
import re
import sqlite3
from itertools import groupby
from pathlib import Path
from typing import Any, Mapping, Sequence

import aiosqlite
import structlog

from dumploader.interfaces.row_store import InsertStatement, IRowStore
from dumploader.models.rows import Relation
from dumploader.utils.errors import ConfigurationError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/discogs.db")

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

# Reference schema.  Identifying columns (dump id, parent id, ordinals) are
# NOT NULL, but nothing is unique: a record that appears twice in a dump is
# simply inserted twice.  To reject repeats, manage the schema externally
# with the keys you want and pass create_schema=False.
_CREATE_TABLES_SQL = [
    """\
CREATE TABLE IF NOT EXISTS artists (
    id            INTEGER NOT NULL,
    name          TEXT,
    real_name     TEXT,
    data_quality  TEXT,
    profile       TEXT,
    status        TEXT
);""",
    """\
CREATE TABLE IF NOT EXISTS artist_namevariations (
    artist_id      INTEGER NOT NULL,
    ofst           INTEGER NOT NULL,
    namevariation  TEXT
);""",
    *(
        f"""\
CREATE TABLE IF NOT EXISTS {table} (
    artist_id   INTEGER NOT NULL,
    ofst        INTEGER NOT NULL,
    artist2_id  INTEGER,
    name        TEXT
);"""
        for table in ("artist_aliases", "artist_groups", "artist_members")
    ),
    """\
CREATE TABLE IF NOT EXISTS artist_urls (
    artist_id  INTEGER NOT NULL,
    ofst       INTEGER NOT NULL,
    url        TEXT
);""",
    """\
CREATE TABLE IF NOT EXISTS releases (
    id            INTEGER NOT NULL,
    title         TEXT,
    country       TEXT,
    notes         TEXT,
    released      TEXT,
    status        TEXT,
    data_quality  TEXT,
    master_id     INTEGER
);""",
    """\
CREATE TABLE IF NOT EXISTS release_genres (
    release_id  INTEGER NOT NULL,
    ofst        INTEGER NOT NULL,
    genre       TEXT
);""",
    """\
CREATE TABLE IF NOT EXISTS release_styles (
    release_id  INTEGER NOT NULL,
    ofst        INTEGER NOT NULL,
    style       TEXT
);""",
    """\
CREATE TABLE IF NOT EXISTS release_artist_maps (
    release_id     INTEGER NOT NULL,
    ofst           INTEGER NOT NULL,
    artist_id      INTEGER,
    name           TEXT,
    anv            TEXT,
    join_relation  TEXT,
    tracks         TEXT
);""",
    """\
CREATE TABLE IF NOT EXISTS release_extra_artist_maps (
    release_id     INTEGER NOT NULL,
    ofst           INTEGER NOT NULL,
    artist_id      INTEGER,
    name           TEXT,
    anv            TEXT,
    join_relation  TEXT,
    tracks         TEXT,
    role           TEXT
);""",
    """\
CREATE TABLE IF NOT EXISTS release_formats (
    release_id  INTEGER NOT NULL,
    ofst        INTEGER NOT NULL,
    name        TEXT,
    qty         INTEGER,
    text        TEXT
);""",
    """\
CREATE TABLE IF NOT EXISTS release_videos (
    release_id   INTEGER NOT NULL,
    ofst         INTEGER NOT NULL,
    src          TEXT,
    duration     INTEGER,
    embed        INTEGER,
    title        TEXT,
    description  TEXT
);""",
    """\
CREATE TABLE IF NOT EXISTS release_companies (
    release_id        INTEGER NOT NULL,
    ofst              INTEGER NOT NULL,
    company_id        INTEGER,
    name              TEXT,
    catno             TEXT,
    entity_type       INTEGER,
    entity_type_name  TEXT
);""",
    """\
CREATE TABLE IF NOT EXISTS release_labels (
    release_id  INTEGER NOT NULL,
    ofst        INTEGER NOT NULL,
    label_id    INTEGER,
    name        TEXT,
    catno       TEXT
);""",
    """\
CREATE TABLE IF NOT EXISTS tracks (
    release_id  INTEGER NOT NULL,
    ofst        INTEGER NOT NULL,
    title       TEXT,
    duration    TEXT,
    position    TEXT
);""",
    """\
CREATE TABLE IF NOT EXISTS track_artist_maps (
    release_id     INTEGER NOT NULL,
    track_ofst     INTEGER NOT NULL,
    artist_ofst    INTEGER NOT NULL,
    artist_id      INTEGER,
    name           TEXT,
    anv            TEXT,
    join_relation  TEXT
);""",
    """\
CREATE TABLE IF NOT EXISTS track_extra_artist_maps (
    release_id     INTEGER NOT NULL,
    track_ofst     INTEGER NOT NULL,
    artist_ofst    INTEGER NOT NULL,
    artist_id      INTEGER,
    name           TEXT,
    anv            TEXT,
    join_relation  TEXT,
    role           TEXT
);""",
    """\
CREATE TABLE IF NOT EXISTS masters (
    id               INTEGER NOT NULL,
    main_release_id  INTEGER
);""",
    """\
CREATE TABLE IF NOT EXISTS labels (
    id            INTEGER NOT NULL,
    name          TEXT,
    contact_info  TEXT,
    profile       TEXT,
    data_quality  TEXT
);""",
    """\
CREATE TABLE IF NOT EXISTS label_sublabels (
    label_id   INTEGER NOT NULL,
    ofst       INTEGER NOT NULL,
    label2_id  INTEGER,
    name       TEXT
);""",
    """\
CREATE TABLE IF NOT EXISTS label_urls (
    label_id  INTEGER NOT NULL,
    ofst      INTEGER NOT NULL,
    url       TEXT
);""",
]


class SQLiteRowStore(IRowStore):
    """SQLite-backed row store.

    Use as an async context manager, or call :meth:`initialize` and
    :meth:`close` explicitly::

        async with SQLiteRowStore("data/discogs.db") as store:
            async with LoadExecutor(store) as executor:
                ...
    """

    def __init__(
        self,
        db_path: str | Path = _DEFAULT_DB_PATH,
        create_schema: bool = True,
    ) -> None:
        self._db_path = Path(db_path)
        self._create_schema = create_schema
        self._db: aiosqlite.Connection | None = None
        self._sql_cache: dict[tuple[str, tuple[str, ...]], str] = {}
        # One connection is shared by every executor writing through this
        # store; batches must not interleave inside one transaction.
        self._write_lock = asyncio.Lock()

    @property
    def db_path(self) -> Path:
        return self._db_path

    def get_provider_name(self) -> str:
        return "sqlite"

    async def initialize(self) -> None:
        """Open the connection and create the reference tables (idempotent).

        Raises
        ------
        ConfigurationError
            If the database file cannot be opened or the schema cannot be
            applied.
        """
        if self._db is not None:
            return
        db: aiosqlite.Connection | None = None
        try:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            db = await aiosqlite.connect(str(self._db_path))
            # WAL mode allows concurrent reads during writes.
            await db.execute("PRAGMA journal_mode=WAL;")
            if self._create_schema:
                for ddl in _CREATE_TABLES_SQL:
                    await db.execute(ddl)
                await db.commit()
        except (OSError, sqlite3.Error) as exc:
            if db is not None:
                await db.close()
            msg = f"Cannot open database: {exc}"
            raise ConfigurationError(msg, source_name=str(self._db_path)) from exc
        self._db = db
        logger.info(
            "row_store_initialized",
            path=str(self._db_path),
            create_schema=self._create_schema,
        )

    async def close(self) -> None:
        if self._db is None:
            return
        await self._db.close()
        self._db = None

    async def __aenter__(self) -> SQLiteRowStore:
        await self.initialize()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    def build_insert(self, relation: str, values: Mapping[str, Any]) -> InsertStatement:
        table = Relation(relation).value
        columns = tuple(values)
        key = (table, columns)
        sql = self._sql_cache.get(key)
        if sql is None:
            for column in columns:
                if not _IDENTIFIER_RE.match(column):
                    msg = f"Invalid column name {column!r} for {table}"
                    raise ValueError(msg)
            column_list = ", ".join(f'"{c}"' for c in columns)
            placeholders = ", ".join("?" for _ in columns)
            sql = f'INSERT INTO "{table}" ({column_list}) VALUES ({placeholders})'
            self._sql_cache[key] = sql
        return InsertStatement(relation=table, sql=sql, params=tuple(values.values()))

    async def execute_batch(self, statements: Sequence[InsertStatement]) -> None:
        if self._db is None:
            msg = "SQLiteRowStore is not initialized; call initialize() first"
            raise RuntimeError(msg)
        if not statements:
            return
        db = self._db
        async with self._write_lock:
            try:
                # Consecutive statements with identical SQL go through one
                # executemany call; overall statement order is unchanged.
                for sql, group in groupby(statements, key=lambda s: s.sql):
                    await db.executemany(sql, [s.params for s in group])
                await db.commit()
            except Exception:
                await db.rollback()
                raise

