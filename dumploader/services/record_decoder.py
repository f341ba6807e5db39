# =============================================================================
# dumploader/services/record_decoder.py -- Streaming Dump Record Decoder
# =============================================================================
#
# Turns an XML dump stream (artists, releases, masters or labels) into a lazy
# sequence of typed records without ever holding more than one record's
# subtree in memory.
#
# Design decisions:
#   - Uses xml.etree.ElementTree.iterparse with "start" and "end" events and
#     tracks nesting depth.  A record is a DIRECT child of the container
#     root, so <label> elements nested inside a label's <sublabels> or a
#     release's <labels> are never mistaken for records.
#   - After each record is decoded the root element is cleared.  Without
#     this, iterparse keeps every parsed record attached to the root and
#     memory grows with the file.
#   - Child collections are looked up with direct paths ("artists/artist"),
#     never ".//", so per-track credits don't leak into release credits.
#   - The input is wrapped in a byte-counting reader so a DecodeError can
#     report roughly where in the stream decoding stopped.
#
# The returned iterators are plain generators: forward-only, single-pass and
# not restartable.  Iterating one again after exhaustion (or after a
# DecodeError) yields nothing.
# =============================================================================

from __future__ import annotations

import re
import xml.etree.ElementTree as ET
import zlib
from typing import IO, Callable, Iterator

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
from dumploader.utils.errors import DecodeError

# Integers must fit a signed 64-bit column (SQLite INTEGER, SQL BIGINT).
INT_MIN = -(2**63)
INT_MAX = 2**63 - 1

_INT_RE = re.compile(r"^[+-]?\d+$")


class _InvalidValue(Exception):
    """A field value that cannot be decoded; converted to DecodeError by the caller."""


class _CountingReader:
    """File-like wrapper that counts the bytes handed to the parser."""

    def __init__(self, raw: IO[bytes]) -> None:
        self._raw = raw
        self.bytes_read = 0

    def read(self, size: int = -1) -> bytes:
        data = self._raw.read(size)
        self.bytes_read += len(data)
        return data


# ---------------------------------------------------------------------------
# Field helpers
# ---------------------------------------------------------------------------

def _text(elem: ET.Element, path: str) -> str | None:
    """Text of the child at *path*: None when absent, "" when empty."""
    child = elem.find(path)
    if child is None:
        return None
    return child.text or ""


def _int(raw: str | None, field: str) -> int | None:
    """Parse an integer field; empty or absent values decode to None."""
    if raw is None:
        return None
    text = raw.strip()
    if not text:
        return None
    if not _INT_RE.match(text):
        raise _InvalidValue(f"{field}: {raw!r} is not an integer")
    value = int(text)
    if value < INT_MIN or value > INT_MAX:
        raise _InvalidValue(f"{field}: {text} is outside the supported integer range")
    return value


def _bool(raw: str | None, field: str) -> bool | None:
    if raw is None or not raw.strip():
        return None
    lowered = raw.strip().lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    raise _InvalidValue(f"{field}: {raw!r} is not a boolean")


def _strings(elem: ET.Element, path: str) -> list[str]:
    return [child.text or "" for child in elem.findall(path)]


def _record_id(elem: ET.Element) -> int:
    # Artists and labels carry <id> as a child; releases and masters as an
    # attribute.  Accept either so both dump generations decode.
    raw = _text(elem, "id")
    if raw is None:
        raw = elem.get("id")
    record_id = _int(raw, "id")
    if record_id is None:
        raise _InvalidValue(f"<{elem.tag}> has no id")
    return record_id


def _status(elem: ET.Element) -> str | None:
    status = elem.get("status")
    if status is None:
        status = _text(elem, "status")
    return status


# ---------------------------------------------------------------------------
# Per-kind extractors
# ---------------------------------------------------------------------------

def _artist_ref(elem: ET.Element) -> ArtistRef:
    return ArtistRef(id=_int(elem.get("id"), "artist ref id"), name=elem.text or "")


def _extract_artist(elem: ET.Element) -> Artist:
    return Artist(
        id=_record_id(elem),
        name=_text(elem, "name"),
        real_name=_text(elem, "realname"),
        profile=_text(elem, "profile"),
        data_quality=_text(elem, "data_quality"),
        status=_status(elem),
        name_variations=_strings(elem, "namevariations/name"),
        aliases=[_artist_ref(e) for e in elem.findall("aliases/name")],
        groups=[_artist_ref(e) for e in elem.findall("groups/name")],
        members=[_artist_ref(e) for e in elem.findall("members/name")],
        urls=_strings(elem, "urls/url"),
    )


def _credit_fields(elem: ET.Element) -> dict:
    return {
        "id": _int(_text(elem, "id"), "artist id"),
        "name": _text(elem, "name"),
        "anv": _text(elem, "anv"),
        "join": _text(elem, "join"),
    }


def _track(elem: ET.Element) -> Track:
    return Track(
        title=_text(elem, "title"),
        duration=_text(elem, "duration"),
        position=_text(elem, "position"),
        artists=[TrackArtist(**_credit_fields(e)) for e in elem.findall("artists/artist")],
        extra_artists=[
            TrackExtraArtist(**_credit_fields(e), role=_text(e, "role"))
            for e in elem.findall("extraartists/artist")
        ],
    )


def _extract_release(elem: ET.Element) -> Release:
    return Release(
        id=_record_id(elem),
        title=_text(elem, "title"),
        country=_text(elem, "country"),
        notes=_text(elem, "notes"),
        released=_text(elem, "released"),
        status=_status(elem),
        data_quality=_text(elem, "data_quality"),
        master_id=_int(_text(elem, "master_id"), "master_id"),
        genres=_strings(elem, "genres/genre"),
        styles=_strings(elem, "styles/style"),
        artists=[
            ReleaseArtist(**_credit_fields(e), tracks=_text(e, "tracks"))
            for e in elem.findall("artists/artist")
        ],
        extra_artists=[
            ReleaseExtraArtist(**_credit_fields(e), tracks=_text(e, "tracks"), role=_text(e, "role"))
            for e in elem.findall("extraartists/artist")
        ],
        formats=[
            ReleaseFormat(
                name=e.get("name"),
                qty=_int(e.get("qty"), "format qty"),
                text=e.get("text"),
            )
            for e in elem.findall("formats/format")
        ],
        videos=[
            ReleaseVideo(
                src=e.get("src"),
                duration=_int(e.get("duration"), "video duration"),
                embed=_bool(e.get("embed"), "video embed"),
                title=_text(e, "title"),
                description=_text(e, "description"),
            )
            for e in elem.findall("videos/video")
        ],
        companies=[
            Company(
                id=_int(_text(e, "id"), "company id"),
                name=_text(e, "name"),
                catno=_text(e, "catno"),
                entity_type=_int(_text(e, "entity_type"), "company entity_type"),
                entity_type_name=_text(e, "entity_type_name"),
            )
            for e in elem.findall("companies/company")
        ],
        labels=[
            ReleaseLabel(
                id=_int(e.get("id"), "label id"),
                name=e.get("name"),
                catno=e.get("catno"),
            )
            for e in elem.findall("labels/label")
        ],
        tracks=[_track(e) for e in elem.findall("tracklist/track")],
    )


def _extract_master(elem: ET.Element) -> Master:
    return Master(
        id=_record_id(elem),
        main_release_id=_int(_text(elem, "main_release"), "main_release"),
    )


def _extract_label(elem: ET.Element) -> Label:
    return Label(
        id=_record_id(elem),
        name=_text(elem, "name"),
        contact_info=_text(elem, "contactinfo"),
        profile=_text(elem, "profile"),
        data_quality=_text(elem, "data_quality"),
        sub_labels=[
            SubLabel(id=_int(e.get("id"), "sublabel id"), name=e.text or "")
            for e in elem.findall("sublabels/label")
        ],
        urls=_strings(elem, "urls/url"),
    )


_EXTRACTORS: dict[EntityKind, Callable[[ET.Element], DumpRecord]] = {
    EntityKind.ARTISTS: _extract_artist,
    EntityKind.RELEASES: _extract_release,
    EntityKind.MASTERS: _extract_master,
    EntityKind.LABELS: _extract_label,
}


# ---------------------------------------------------------------------------
# Streaming driver
# ---------------------------------------------------------------------------

def _iter_records(
    kind: EntityKind,
    stream: IO[bytes],
    source_name: str | None,
) -> Iterator[DumpRecord]:
    reader = _CountingReader(stream)
    extract = _EXTRACTORS[kind]
    root: ET.Element | None = None
    depth = 0

    def _fail(message: str, line: int | None = None, column: int | None = None) -> DecodeError:
        return DecodeError(
            message,
            offset=reader.bytes_read,
            line=line,
            column=column,
            source_name=source_name,
        )

    try:
        for event, elem in ET.iterparse(reader, events=("start", "end")):
            if event == "start":
                depth += 1
                if depth == 1:
                    root = elem
                    if elem.tag != kind.container_tag:
                        raise _fail(
                            f"Expected <{kind.container_tag}> container, found <{elem.tag}>"
                        )
                elif depth == 2 and elem.tag != kind.record_tag:
                    raise _fail(
                        f"Expected <{kind.record_tag}> record, found <{elem.tag}>"
                    )
                continue

            depth -= 1
            if depth != 1:
                continue

            try:
                record = extract(elem)
            except _InvalidValue as exc:
                raise _fail(f"Invalid <{kind.record_tag}>: {exc}") from exc

            # Drop the finished record (and anything before it) from the tree.
            root.clear()
            yield record
    except ET.ParseError as exc:
        line, column = exc.position
        raise _fail(f"Malformed XML: {exc}", line=line, column=column) from exc
    except (OSError, EOFError, zlib.error) as exc:
        # Corrupt or truncated compressed input surfaces here from gzip.
        raise _fail(f"Unreadable input: {exc}") from exc


def decode_records(
    kind: EntityKind,
    stream: IO[bytes],
    source_name: str | None = None,
) -> Iterator[DumpRecord]:
    """Decode a dump stream of the given *kind* into a lazy record iterator.

    Parameters
    ----------
    kind:
        Which entity kind the stream holds.  The container and record tags
        must match it or a :class:`DecodeError` is raised.
    stream:
        Binary stream positioned at the start of the XML document, already
        decompressed.
    source_name:
        Optional label (file name, URL) attached to raised errors.

    Returns
    -------
    Iterator[DumpRecord]
        Single-pass iterator; nothing is read until the first ``next()``.

    Raises
    ------
    DecodeError
        On malformed markup, mismatched tags, a record without an id, or a
        numeric field that does not parse or does not fit 64 bits.  No
        further records are produced after the error.
    """
    return _iter_records(EntityKind(kind), stream, source_name)


def decode_artists(stream: IO[bytes], source_name: str | None = None) -> Iterator[Artist]:
    return decode_records(EntityKind.ARTISTS, stream, source_name)  # type: ignore[return-value]


def decode_releases(stream: IO[bytes], source_name: str | None = None) -> Iterator[Release]:
    return decode_records(EntityKind.RELEASES, stream, source_name)  # type: ignore[return-value]


def decode_masters(stream: IO[bytes], source_name: str | None = None) -> Iterator[Master]:
    return decode_records(EntityKind.MASTERS, stream, source_name)  # type: ignore[return-value]


def decode_labels(stream: IO[bytes], source_name: str | None = None) -> Iterator[Label]:
    return decode_records(EntityKind.LABELS, stream, source_name)  # type: ignore[return-value]
