"""Decoded dump records -- the four top-level entity kinds and their children.

Defines Pydantic v2 models for artists, releases, masters and labels as they
appear in the catalog XML dumps.  All models use frozen config so a record
is immutable once decoded; it lives only as the argument to the flattener
and is discarded after its rows have been handed to the load executor.

Conventions shared by every model:
    - Optional scalars are ``None`` when the element or attribute is absent
      and ``""`` when it is present but empty.  Storage keeps the two apart.
    - Repeated collections are lists in source order and default to empty.
      An absent wrapper element never decodes to ``None``.
    - Cross-entity ids (alias ids, label ids, company ids, ...) are carried
      exactly as given; nothing checks that the target exists.

Key relationships:
    - Release owns Track objects; Track owns its own artist credit lists
    - Artist owns ArtistRef lists for aliases, groups and members
    - Label owns SubLabel references
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class _Record(BaseModel):
    model_config = ConfigDict(frozen=True)


# ---------------------------------------------------------------------------
# Artist
# ---------------------------------------------------------------------------

class ArtistRef(_Record):
    """Reference to another artist from an alias, group or member list."""

    id: int | None = None
    name: str | None = None


class Artist(_Record):
    """A record from the artists dump."""

    id: int
    name: str | None = None
    real_name: str | None = None
    profile: str | None = None
    data_quality: str | None = None
    status: str | None = None
    name_variations: list[str] = Field(default_factory=list)
    aliases: list[ArtistRef] = Field(default_factory=list)
    groups: list[ArtistRef] = Field(default_factory=list)
    members: list[ArtistRef] = Field(default_factory=list)
    urls: list[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Release and its nested credits
# ---------------------------------------------------------------------------

class ReleaseArtist(_Record):
    """Primary-artist credit on a release.

    ``anv`` is the artist name variation used on this release, ``join`` the
    phrase joining it to the next credit (e.g. ``"&"``, ``"feat."``) and
    ``tracks`` the free-text track scope of the credit.
    """

    id: int | None = None
    name: str | None = None
    anv: str | None = None
    join: str | None = None
    tracks: str | None = None


class ReleaseExtraArtist(ReleaseArtist):
    """Extra-artist credit on a release, with the credited role."""

    role: str | None = None


class ReleaseFormat(_Record):
    name: str | None = None
    qty: int | None = None
    text: str | None = None


class ReleaseVideo(_Record):
    src: str | None = None
    duration: int | None = None
    embed: bool | None = None
    title: str | None = None
    description: str | None = None


class Company(_Record):
    """Company credit on a release (pressing plant, studio, publisher...)."""

    id: int | None = None
    name: str | None = None
    catno: str | None = None
    entity_type: int | None = None
    entity_type_name: str | None = None


class ReleaseLabel(_Record):
    id: int | None = None
    name: str | None = None
    catno: str | None = None


class TrackArtist(_Record):
    id: int | None = None
    name: str | None = None
    anv: str | None = None
    join: str | None = None


class TrackExtraArtist(TrackArtist):
    role: str | None = None


class Track(_Record):
    """One tracklist entry.

    Tracks have no identifier of their own; they are keyed by the owning
    release id plus their position in the tracklist.  ``duration`` and
    ``position`` are kept as the free-form labels the dump uses
    (``"4:45"``, ``"A1"``).
    """

    title: str | None = None
    duration: str | None = None
    position: str | None = None
    artists: list[TrackArtist] = Field(default_factory=list)
    extra_artists: list[TrackExtraArtist] = Field(default_factory=list)


class Release(_Record):
    """A record from the releases dump."""

    id: int
    title: str | None = None
    country: str | None = None
    notes: str | None = None
    released: str | None = None
    status: str | None = None
    data_quality: str | None = None
    master_id: int | None = None
    genres: list[str] = Field(default_factory=list)
    styles: list[str] = Field(default_factory=list)
    artists: list[ReleaseArtist] = Field(default_factory=list)
    extra_artists: list[ReleaseExtraArtist] = Field(default_factory=list)
    formats: list[ReleaseFormat] = Field(default_factory=list)
    videos: list[ReleaseVideo] = Field(default_factory=list)
    companies: list[Company] = Field(default_factory=list)
    labels: list[ReleaseLabel] = Field(default_factory=list)
    tracks: list[Track] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Master
# ---------------------------------------------------------------------------

class Master(_Record):
    id: int
    main_release_id: int | None = None


# ---------------------------------------------------------------------------
# Label
# ---------------------------------------------------------------------------

class SubLabel(_Record):
    id: int | None = None
    name: str | None = None


class Label(_Record):
    """A record from the labels dump."""

    id: int
    name: str | None = None
    contact_info: str | None = None
    profile: str | None = None
    data_quality: str | None = None
    sub_labels: list[SubLabel] = Field(default_factory=list)
    urls: list[str] = Field(default_factory=list)


DumpRecord = Artist | Release | Master | Label
