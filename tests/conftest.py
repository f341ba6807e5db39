"""Shared pytest fixtures for the dumploader test suite."""

from __future__ import annotations

import gzip
from pathlib import Path
from typing import Any, Mapping, Sequence

import aiosqlite
import pytest
import pytest_asyncio

from dumploader.interfaces.row_store import InsertStatement, IRowStore
from dumploader.models.rows import Relation
from dumploader.providers.storage.sqlite_row_store import SQLiteRowStore

# ---------------------------------------------------------------------------
# Sample dumps
# ---------------------------------------------------------------------------

ARTISTS_XML = """<?xml version="1.0" encoding="UTF-8"?>
<artists>
<artist>
  <id>1</id>
  <name>The Persuader</name>
  <realname>Jesper Dahlbäck</realname>
  <profile></profile>
  <data_quality>Needs Votes</data_quality>
  <urls><url>https://persuader.example</url></urls>
  <namevariations><name>Persuader</name><name>The Presuader</name></namevariations>
  <aliases><name id="239">Dick Track</name><name id="16055">Faxid</name></aliases>
</artist>
<artist>
  <id>2</id>
  <name>Mr. James Barth &amp; A.D.</name>
  <groups/>
  <members><name id="26">Alexi Delano</name><name id="27">Cari Lekebusch</name></members>
</artist>
</artists>
"""

RELEASES_XML = """<?xml version="1.0" encoding="UTF-8"?>
<releases>
<release id="1" status="Accepted">
  <artists>
    <artist><id>1</id><name>The Persuader</name><anv></anv><join>&amp;</join><role></role><tracks></tracks></artist>
    <artist><id>5</id><name>Second Artist</name></artist>
  </artists>
  <title>Stockholm</title>
  <labels><label name="Svek" catno="SK032" id="5"/></labels>
  <extraartists>
    <artist><id>239</id><name>Jesper Dahlback</name><anv/><join/><role>Music By</role><tracks/></artist>
  </extraartists>
  <formats><format name="Vinyl" qty="2" text=""><descriptions><description>12"</description></descriptions></format></formats>
  <genres><genre>Electronic</genre></genres>
  <styles><style>Deep House</style><style>Techno</style></styles>
  <country>Sweden</country>
  <released>1999-03-00</released>
  <notes>Recorded at the Globe Studios.</notes>
  <data_quality>Complete and Correct</data_quality>
  <master_id is_main_release="true">5427</master_id>
  <tracklist>
    <track><position>A</position><title>Östermalm</title><duration>4:45</duration></track>
    <track>
      <position>B1</position><title>Vasastaden</title><duration>6:11</duration>
      <artists><artist><id>7</id><name>Guest</name><join>,</join></artist></artists>
      <extraartists>
        <artist><id>8</id><name>Engineer</name><role>Mixed By</role></artist>
        <artist><id>9</id><name>Writer</name><role>Written-By</role></artist>
      </extraartists>
    </track>
  </tracklist>
  <videos>
    <video src="https://video.example/watch?v=abc" duration="290" embed="true">
      <title>Stockholm</title><description>Side A</description>
    </video>
  </videos>
  <companies>
    <company>
      <id>271046</id><name>The Globe Studios</name><catno></catno>
      <entity_type>23</entity_type><entity_type_name>Recorded At</entity_type_name>
    </company>
  </companies>
</release>
</releases>
"""

MASTERS_XML = """<?xml version="1.0" encoding="UTF-8"?>
<masters>
<master id="18500"><main_release>155102</main_release><title>New Soil</title></master>
<master id="18512"><main_release></main_release></master>
</masters>
"""

LABELS_XML = """<?xml version="1.0" encoding="UTF-8"?>
<labels>
<label>
  <id>5</id>
  <name>Acme</name>
  <contactinfo></contactinfo>
  <profile>Est. 1990</profile>
  <data_quality>Correct</data_quality>
  <urls><url>http://acme.example</url></urls>
  <sublabels><label id="10">Acme Jazz</label><label id="11">Acme Pop</label></sublabels>
</label>
</labels>
"""


@pytest.fixture
def artists_xml() -> bytes:
    return ARTISTS_XML.encode("utf-8")


@pytest.fixture
def releases_xml() -> bytes:
    return RELEASES_XML.encode("utf-8")


@pytest.fixture
def masters_xml() -> bytes:
    return MASTERS_XML.encode("utf-8")


@pytest.fixture
def labels_xml() -> bytes:
    return LABELS_XML.encode("utf-8")


@pytest.fixture
def write_dump(tmp_path: Path):
    """Return a helper that writes dump bytes to a file (gzipped for .gz names)."""

    def _write(name: str, data: bytes) -> str:
        path = tmp_path / name
        if name.endswith(".gz"):
            data = gzip.compress(data)
        path.write_bytes(data)
        return str(path)

    return _write


# ---------------------------------------------------------------------------
# Row stores
# ---------------------------------------------------------------------------


class FakeRowStore(IRowStore):
    """In-memory IRowStore that records every executed batch.

    Set ``fail_on_batch`` to the 1-based number of the ``execute_batch``
    call that should raise.
    """

    def __init__(self) -> None:
        self.batches: list[list[InsertStatement]] = []
        self.calls = 0
        self.fail_on_batch: int | None = None

    def build_insert(self, relation: str, values: Mapping[str, Any]) -> InsertStatement:
        table = Relation(relation).value
        return InsertStatement(
            relation=table,
            sql=f"INSERT INTO {table} ({', '.join(values)})",
            params=tuple(values.values()),
        )

    async def execute_batch(self, statements: Sequence[InsertStatement]) -> None:
        self.calls += 1
        if self.fail_on_batch == self.calls:
            raise RuntimeError("UNIQUE constraint failed")
        self.batches.append(list(statements))

    def get_provider_name(self) -> str:
        return "fake"

    @property
    def batch_sizes(self) -> list[int]:
        return [len(batch) for batch in self.batches]

    @property
    def statements(self) -> list[InsertStatement]:
        return [stmt for batch in self.batches for stmt in batch]


@pytest.fixture
def fake_store() -> FakeRowStore:
    return FakeRowStore()


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "dumps.db"


@pytest_asyncio.fixture
async def sqlite_store(db_path: Path):
    """Initialized SQLiteRowStore on a temp database with the reference schema."""
    store = SQLiteRowStore(db_path=db_path)
    await store.initialize()
    yield store
    await store.close()


@pytest.fixture
def query(db_path: Path):
    """Return a coroutine helper that runs a SELECT on a separate connection."""

    async def _query(sql: str, params: tuple = ()) -> list[tuple]:
        async with aiosqlite.connect(str(db_path)) as db:
            async with db.execute(sql, params) as cursor:
                return list(await cursor.fetchall())

    return _query
