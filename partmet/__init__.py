"""partmet: read eDonkey2000/eMule .part.met partial-download files.

Decode the header, the ED2K content hash and the tag stream of a
.part.met file (format 14.0 or 14.1), classify every tag, and rebuild the
map of byte ranges that are still missing.

Quick start:
    >>> from partmet import read_part_met, summarize
    >>> part = read_part_met("001.part.met")
    >>> s = summarize(part)
    >>> s.file_size, s.downloaded_bytes, s.progress_percentage
    (1048576, 524288, 50.0)

Decoding is strict: a short read or an unknown tag kind raises
PartMetError.  Classification and gap pairing never raise.
"""

from __future__ import annotations

from typing import List

from ._classify import (
    CATEGORY_LABELS,
    Gap,
    GapMarker,
    Special,
    Standard,
    TagCategory,
    Unknown,
    classify,
    describe,
    gap_meaning,
    special_meaning,
    standard_meaning,
)
from ._core import (
    FileSummary,
    decode_bytes,
    decode_stream,
    decode_tag,
    read_header_only,
    read_part_met,
    resolve_header,
    summarize,
)
from ._errors import (
    ERR_FORMAT,
    ERR_IO,
    ERR_TAG_KIND,
    PartialDecode,
    PartMetError,
)
from ._gaps import (
    gap_coverage_percentage,
    progress_percentage,
    reconcile_gaps,
    render_occupancy,
    total_gap_size,
)
from ._model import (
    FileHeaderInfo,
    GapInterval,
    IntegerValue,
    PartMetFile,
    StringValue,
    Tag,
    TagKind,
)
from ._reader import ByteReader

__version__ = "1.0.0"

__all__ = [
    # Decoding
    "ByteReader",
    "decode_tag",
    "resolve_header",
    "decode_stream",
    "decode_bytes",
    "read_part_met",
    "read_header_only",
    "summarize",
    "missing_ranges",
    # Model
    "Tag",
    "TagKind",
    "StringValue",
    "IntegerValue",
    "FileHeaderInfo",
    "PartMetFile",
    "FileSummary",
    "GapInterval",
    # Classification
    "classify",
    "describe",
    "special_meaning",
    "gap_meaning",
    "standard_meaning",
    "TagCategory",
    "Special",
    "Gap",
    "GapMarker",
    "Standard",
    "Unknown",
    "CATEGORY_LABELS",
    # Gaps
    "reconcile_gaps",
    "render_occupancy",
    "progress_percentage",
    "gap_coverage_percentage",
    "total_gap_size",
    # Errors
    "PartMetError",
    "PartialDecode",
    "ERR_IO",
    "ERR_FORMAT",
    "ERR_TAG_KIND",
]


def missing_ranges(path: str) -> List[GapInterval]:
    """Return the still-missing byte ranges of a .part.met file."""
    return reconcile_gaps(read_part_met(path).tags)
