"""dumploader domain models -- re-exports all public model classes.

The models are organized by pipeline stage:
    - dump.py     -- EntityKind, the closed set of dump types
    - records.py  -- decoded records (Artist, Release, Master, Label) and
                     their nested children
    - rows.py     -- RowIntent and Relation, the flattener's output
"""

from __future__ import annotations

from dumploader.models.dump import EntityKind
from dumploader.models.records import (
    Artist,
    ArtistRef,
    Company,
    DumpRecord,
    Label,
    Master,
    Release,
    ReleaseArtist,
    ReleaseExtraArtist,
    ReleaseFormat,
    ReleaseLabel,
    ReleaseVideo,
    SubLabel,
    Track,
    TrackArtist,
    TrackExtraArtist,
)
from dumploader.models.rows import KEY_COLUMNS, Relation, RowIntent

__all__ = [
    "KEY_COLUMNS",
    "Artist",
    "ArtistRef",
    "Company",
    "DumpRecord",
    "EntityKind",
    "Label",
    "Master",
    "Relation",
    "Release",
    "ReleaseArtist",
    "ReleaseExtraArtist",
    "ReleaseFormat",
    "ReleaseLabel",
    "ReleaseVideo",
    "RowIntent",
    "SubLabel",
    "Track",
    "TrackArtist",
    "TrackExtraArtist",
]
