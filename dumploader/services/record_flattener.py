"""Record flattener -- projects one decoded record onto normalized rows.

Every function here is a pure generator: no I/O, no shared state, the same
record always yields the same intents in the same order.

Emission order for every record:
    1. the header row for the record's own scalar fields
    2. each child collection in a fixed order, one row per element, with
       ``ofst`` taken from enumeration order starting at zero

Duplicated children keep distinct ordinals; nothing is merged, renumbered or
sorted.  Tracks are the one doubly-nested collection: each track row is
followed by its artist rows and then its extra-artist rows, all keyed by
``(release_id, track_ofst, artist_ofst)``.
"""

from __future__ import annotations

from typing import Iterator

from dumploader.models.records import (
    Artist,
    ArtistRef,
    DumpRecord,
    Label,
    Master,
    Release,
    Track,
)
from dumploader.models.rows import Relation, RowIntent


def _artist_refs(
    relation: Relation, artist_id: int, refs: list[ArtistRef]
) -> Iterator[RowIntent]:
    for ofst, ref in enumerate(refs):
        yield RowIntent(relation, {
            "artist_id": artist_id,
            "ofst": ofst,
            "artist2_id": ref.id,
            "name": ref.name,
        })


def flatten_artist(artist: Artist) -> Iterator[RowIntent]:
    yield RowIntent(Relation.ARTISTS, {
        "id": artist.id,
        "name": artist.name,
        "real_name": artist.real_name,
        "data_quality": artist.data_quality,
        "profile": artist.profile,
        "status": artist.status,
    })

    for ofst, variation in enumerate(artist.name_variations):
        yield RowIntent(Relation.ARTIST_NAMEVARIATIONS, {
            "artist_id": artist.id,
            "ofst": ofst,
            "namevariation": variation,
        })

    yield from _artist_refs(Relation.ARTIST_ALIASES, artist.id, artist.aliases)
    yield from _artist_refs(Relation.ARTIST_GROUPS, artist.id, artist.groups)
    yield from _artist_refs(Relation.ARTIST_MEMBERS, artist.id, artist.members)

    for ofst, url in enumerate(artist.urls):
        yield RowIntent(Relation.ARTIST_URLS, {
            "artist_id": artist.id,
            "ofst": ofst,
            "url": url,
        })


def _flatten_track(release_id: int, track_ofst: int, track: Track) -> Iterator[RowIntent]:
    yield RowIntent(Relation.TRACKS, {
        "release_id": release_id,
        "ofst": track_ofst,
        "title": track.title,
        "duration": track.duration,
        "position": track.position,
    })

    for artist_ofst, credit in enumerate(track.artists):
        yield RowIntent(Relation.TRACK_ARTIST_MAPS, {
            "release_id": release_id,
            "track_ofst": track_ofst,
            "artist_ofst": artist_ofst,
            "artist_id": credit.id,
            "name": credit.name,
            "anv": credit.anv,
            "join_relation": credit.join,
        })

    for artist_ofst, credit in enumerate(track.extra_artists):
        yield RowIntent(Relation.TRACK_EXTRA_ARTIST_MAPS, {
            "release_id": release_id,
            "track_ofst": track_ofst,
            "artist_ofst": artist_ofst,
            "artist_id": credit.id,
            "name": credit.name,
            "anv": credit.anv,
            "join_relation": credit.join,
            "role": credit.role,
        })


def flatten_release(release: Release) -> Iterator[RowIntent]:
    rid = release.id
    yield RowIntent(Relation.RELEASES, {
        "id": rid,
        "title": release.title,
        "country": release.country,
        "notes": release.notes,
        "released": release.released,
        "status": release.status,
        "data_quality": release.data_quality,
        "master_id": release.master_id,
    })

    for ofst, genre in enumerate(release.genres):
        yield RowIntent(Relation.RELEASE_GENRES, {"release_id": rid, "ofst": ofst, "genre": genre})

    for ofst, style in enumerate(release.styles):
        yield RowIntent(Relation.RELEASE_STYLES, {"release_id": rid, "ofst": ofst, "style": style})

    for ofst, credit in enumerate(release.artists):
        yield RowIntent(Relation.RELEASE_ARTIST_MAPS, {
            "release_id": rid,
            "ofst": ofst,
            "artist_id": credit.id,
            "name": credit.name,
            "anv": credit.anv,
            "join_relation": credit.join,
            "tracks": credit.tracks,
        })

    for ofst, credit in enumerate(release.extra_artists):
        yield RowIntent(Relation.RELEASE_EXTRA_ARTIST_MAPS, {
            "release_id": rid,
            "ofst": ofst,
            "artist_id": credit.id,
            "name": credit.name,
            "anv": credit.anv,
            "join_relation": credit.join,
            "tracks": credit.tracks,
            "role": credit.role,
        })

    for ofst, fmt in enumerate(release.formats):
        yield RowIntent(Relation.RELEASE_FORMATS, {
            "release_id": rid,
            "ofst": ofst,
            "name": fmt.name,
            "qty": fmt.qty,
            "text": fmt.text,
        })

    for ofst, video in enumerate(release.videos):
        yield RowIntent(Relation.RELEASE_VIDEOS, {
            "release_id": rid,
            "ofst": ofst,
            "src": video.src,
            "duration": video.duration,
            "embed": video.embed,
            "title": video.title,
            "description": video.description,
        })

    for ofst, company in enumerate(release.companies):
        yield RowIntent(Relation.RELEASE_COMPANIES, {
            "release_id": rid,
            "ofst": ofst,
            "company_id": company.id,
            "name": company.name,
            "catno": company.catno,
            "entity_type": company.entity_type,
            "entity_type_name": company.entity_type_name,
        })

    for ofst, label in enumerate(release.labels):
        yield RowIntent(Relation.RELEASE_LABELS, {
            "release_id": rid,
            "ofst": ofst,
            "label_id": label.id,
            "name": label.name,
            "catno": label.catno,
        })

    for track_ofst, track in enumerate(release.tracks):
        yield from _flatten_track(rid, track_ofst, track)


def flatten_master(master: Master) -> Iterator[RowIntent]:
    yield RowIntent(Relation.MASTERS, {
        "id": master.id,
        "main_release_id": master.main_release_id,
    })


def flatten_label(label: Label) -> Iterator[RowIntent]:
    yield RowIntent(Relation.LABELS, {
        "id": label.id,
        "name": label.name,
        "contact_info": label.contact_info,
        "profile": label.profile,
        "data_quality": label.data_quality,
    })

    for ofst, sub in enumerate(label.sub_labels):
        yield RowIntent(Relation.LABEL_SUBLABELS, {
            "label_id": label.id,
            "ofst": ofst,
            "label2_id": sub.id,
            "name": sub.name,
        })

    for ofst, url in enumerate(label.urls):
        yield RowIntent(Relation.LABEL_URLS, {"label_id": label.id, "ofst": ofst, "url": url})


def flatten(record: DumpRecord) -> Iterator[RowIntent]:
    """Dispatch *record* to the flattener for its kind."""
    if isinstance(record, Artist):
        return flatten_artist(record)
    if isinstance(record, Release):
        return flatten_release(record)
    if isinstance(record, Master):
        return flatten_master(record)
    if isinstance(record, Label):
        return flatten_label(record)
    msg = f"Cannot flatten {type(record).__name__}"
    raise TypeError(msg)
