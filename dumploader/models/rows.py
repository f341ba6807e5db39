"""Row-insert intents emitted by the record flattener.

A :class:`RowIntent` names one target relation and the column values of one
row.  Intents are self-contained: every child row carries the parent id and
its own ordinal column(s), so a batch can be committed without knowing
which record it came from.

Column naming follows the reference schema:
    - ``ofst`` is the zero-based position within the parent collection
    - ``track_ofst`` / ``artist_ofst`` form the compound position of a
      per-track credit (track within release, credit within track)
    - ``artist2_id`` / ``label2_id`` point at the *other* entity of a
      self-referencing relation (alias target, group, member, sub-label)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Relation(str, Enum):  # noqa: UP042 -- StrEnum requires Python 3.11+
    """Target relations, one per entity kind and per child collection."""

    ARTISTS = "artists"
    ARTIST_NAMEVARIATIONS = "artist_namevariations"
    ARTIST_ALIASES = "artist_aliases"
    ARTIST_GROUPS = "artist_groups"
    ARTIST_MEMBERS = "artist_members"
    ARTIST_URLS = "artist_urls"

    RELEASES = "releases"
    RELEASE_GENRES = "release_genres"
    RELEASE_STYLES = "release_styles"
    RELEASE_ARTIST_MAPS = "release_artist_maps"
    RELEASE_EXTRA_ARTIST_MAPS = "release_extra_artist_maps"
    RELEASE_FORMATS = "release_formats"
    RELEASE_VIDEOS = "release_videos"
    RELEASE_COMPANIES = "release_companies"
    RELEASE_LABELS = "release_labels"
    TRACKS = "tracks"
    TRACK_ARTIST_MAPS = "track_artist_maps"
    TRACK_EXTRA_ARTIST_MAPS = "track_extra_artist_maps"

    MASTERS = "masters"

    LABELS = "labels"
    LABEL_SUBLABELS = "label_sublabels"
    LABEL_URLS = "label_urls"


# Columns that identify a row within its relation.  Used to describe a
# failed batch without dumping every column value into the error.
_ARTIST_CHILD_KEY = ("artist_id", "ofst")
_RELEASE_CHILD_KEY = ("release_id", "ofst")
_TRACK_CHILD_KEY = ("release_id", "track_ofst", "artist_ofst")
_LABEL_CHILD_KEY = ("label_id", "ofst")

KEY_COLUMNS: dict[Relation, tuple[str, ...]] = {
    Relation.ARTISTS: ("id",),
    Relation.ARTIST_NAMEVARIATIONS: _ARTIST_CHILD_KEY,
    Relation.ARTIST_ALIASES: _ARTIST_CHILD_KEY,
    Relation.ARTIST_GROUPS: _ARTIST_CHILD_KEY,
    Relation.ARTIST_MEMBERS: _ARTIST_CHILD_KEY,
    Relation.ARTIST_URLS: _ARTIST_CHILD_KEY,
    Relation.RELEASES: ("id",),
    Relation.RELEASE_GENRES: _RELEASE_CHILD_KEY,
    Relation.RELEASE_STYLES: _RELEASE_CHILD_KEY,
    Relation.RELEASE_ARTIST_MAPS: _RELEASE_CHILD_KEY,
    Relation.RELEASE_EXTRA_ARTIST_MAPS: _RELEASE_CHILD_KEY,
    Relation.RELEASE_FORMATS: _RELEASE_CHILD_KEY,
    Relation.RELEASE_VIDEOS: _RELEASE_CHILD_KEY,
    Relation.RELEASE_COMPANIES: _RELEASE_CHILD_KEY,
    Relation.RELEASE_LABELS: _RELEASE_CHILD_KEY,
    Relation.TRACKS: _RELEASE_CHILD_KEY,
    Relation.TRACK_ARTIST_MAPS: _TRACK_CHILD_KEY,
    Relation.TRACK_EXTRA_ARTIST_MAPS: _TRACK_CHILD_KEY,
    Relation.MASTERS: ("id",),
    Relation.LABELS: ("id",),
    Relation.LABEL_SUBLABELS: _LABEL_CHILD_KEY,
    Relation.LABEL_URLS: _LABEL_CHILD_KEY,
}


@dataclass(frozen=True)
class RowIntent:
    """One row to be inserted into *relation*.

    Attributes
    ----------
    relation:
        Target relation.
    values:
        Column name to value mapping, in column order.
    """

    relation: Relation
    values: dict[str, Any] = field(default_factory=dict)

    @property
    def key(self) -> tuple[Any, ...]:
        """Identifying column values (parent id plus ordinals)."""
        return tuple(self.values.get(col) for col in KEY_COLUMNS[self.relation])
