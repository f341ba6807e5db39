"""Entity kinds -- the closed set of dump types the loader understands.

The caller always names the kind of a dump explicitly; nothing in the
pipeline guesses it from a file name or from the content.  Each kind knows
the XML tags that wrap its records:

    <artists><artist>...</artist>...</artists>
    <releases><release id="..">...</release>...</releases>
    <masters><master id="..">...</master>...</masters>
    <labels><label>...</label>...</labels>
"""

from __future__ import annotations

from enum import Enum


class EntityKind(str, Enum):  # noqa: UP042 -- StrEnum requires Python 3.11+
    """Top-level dump kinds."""

    ARTISTS = "artists"
    RELEASES = "releases"
    MASTERS = "masters"
    LABELS = "labels"

    @property
    def container_tag(self) -> str:
        """Root element wrapping every record of the dump."""
        return self.value

    @property
    def record_tag(self) -> str:
        """Element name of one record (the singular of the container)."""
        return self.value[:-1]
