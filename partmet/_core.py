""".part.met core: header resolution and tag decoding.

File layout (offsets from the start of the file):

    0                   marker      0xE0 (14.0) or 0xE1 (14.1)
    5  / 6              hash        16 bytes, 14.0 / 14.1
    21                  blocks      u16le, 14.0 only
    23 + 16*blocks      tag count   u32le, 14.0
    22                  tag count   u32le, 14.1
    (after tag count)   tags        tag_count tag records

The two revisions disagree on where the tag count lives, and in 14.0 it
depends on the block count.  An off-by-one here silently corrupts every
tag after it, so the offsets are spelled out per version below rather
than derived from each other.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from ._classify import Special, classify
from ._constants import (
    FORMAT_VERSIONS,
    HASH_SIZE,
    KIND_INTEGER,
    KIND_STRING,
    MARKER_V14_0,
    SPECIAL_FILENAME,
    SPECIAL_FILESIZE,
    SPECIAL_LAST_SEEN,
    SPECIAL_TRANSFERRED,
    V14_0_BLOCK_COUNT_OFFSET,
    V14_0_BLOCK_SIZE,
    V14_0_BLOCKS_START,
    V14_0_HASH_OFFSET,
    V14_1_HASH_OFFSET,
    V14_1_TAG_COUNT_OFFSET,
)
from ._errors import ERR_FORMAT, ERR_TAG_KIND, PartialDecode, PartMetError
from ._gaps import gap_coverage_percentage, progress_percentage, reconcile_gaps
from ._model import (
    FileHeaderInfo,
    GapInterval,
    IntegerValue,
    PartMetFile,
    StringValue,
    Tag,
    TagKind,
)
from ._reader import ByteReader, Source

logger = logging.getLogger(__name__)


# ── Header ───────────────────────────────────────────────────

def resolve_header(reader: ByteReader) -> FileHeaderInfo:
    """Read the marker byte and work out where the hash and tag count are."""
    reader.seek(0)
    marker = reader.read_u8()
    version = FORMAT_VERSIONS.get(marker)
    if version is None:
        raise PartMetError(
            ERR_FORMAT,
            "unrecognized format marker 0x{:02x}".format(marker),
            marker=marker,
        )

    if marker == MARKER_V14_0:
        reader.seek(V14_0_BLOCK_COUNT_OFFSET)
        blocks = reader.read_u16le()
        info = FileHeaderInfo(
            format_version=version,
            hash_offset=V14_0_HASH_OFFSET,
            tag_count_offset=V14_0_BLOCKS_START + V14_0_BLOCK_SIZE * blocks,
            block_count=blocks,
        )
    else:
        info = FileHeaderInfo(
            format_version=version,
            hash_offset=V14_1_HASH_OFFSET,
            tag_count_offset=V14_1_TAG_COUNT_OFFSET,
        )

    logger.debug("format %s: hash at %d, tag count at %d",
                 info.format_version, info.hash_offset, info.tag_count_offset)
    return info


# ── Tags ─────────────────────────────────────────────────────

def decode_tag(reader: ByteReader) -> Tag:
    """Decode one tag record at the reader's current position."""
    offset = reader.tell()
    kind = reader.read_u8()
    if kind not in (KIND_STRING, KIND_INTEGER):
        # Nothing past the kind byte is consumed.
        raise PartMetError(
            ERR_TAG_KIND,
            "unrecognized tag kind {} at offset {}".format(kind, offset),
            kind=kind,
            offset=offset,
        )

    name = reader.read_bytes(reader.read_u16le())
    if kind == KIND_STRING:
        value = StringValue(reader.read_bytes(reader.read_u16le()))
        return Tag(TagKind.STRING, name, value)
    return Tag(TagKind.INTEGER, name, IntegerValue(reader.read_u32le()))


def _read_prologue(reader: ByteReader) -> Tuple[FileHeaderInfo, bytes, int]:
    info = resolve_header(reader)
    reader.seek(info.hash_offset)
    content_hash = reader.read_bytes(HASH_SIZE)
    reader.seek(info.tag_count_offset)
    tag_count = reader.read_u32le()
    logger.debug("%d tags declared", tag_count)
    return info, content_hash, tag_count


def read_header_only(source: Source) -> Tuple[FileHeaderInfo, bytes, int]:
    """Return (header, content_hash, tag_count) without decoding any tag."""
    return _read_prologue(ByteReader(source))


def decode_stream(source: Source) -> PartMetFile:
    """Decode a whole .part.met image.

    All-or-nothing: any short read or unknown tag kind raises PartMetError.
    On ERR_TAG_KIND the exception's ``.partial`` holds the tags decoded
    before the bad one, for callers that want to show what was recovered.
    """
    reader = ByteReader(source)
    info, content_hash, tag_count = _read_prologue(reader)

    tags: List[Tag] = []
    for _ in range(tag_count):
        try:
            tags.append(decode_tag(reader))
        except PartMetError as e:
            if e.code == ERR_TAG_KIND:
                e.partial = PartialDecode(info, content_hash, tag_count, tuple(tags))
            raise

    return PartMetFile(info, content_hash, tag_count, tuple(tags))


def decode_bytes(data: bytes) -> PartMetFile:
    return decode_stream(data)


def read_part_met(path: str) -> PartMetFile:
    """Open, decode and close a .part.met file."""
    with open(path, "rb") as f:
        return decode_stream(f)


# ── Summary ──────────────────────────────────────────────────

@dataclass(frozen=True)
class FileSummary:
    """Headline values derived from a decoded file."""

    format_version: str
    content_hash: str
    tag_count: int
    filename: Optional[str]
    file_size: int
    downloaded_bytes: int
    last_seen_complete: Optional[int]
    gaps: Tuple[GapInterval, ...]

    @property
    def progress_percentage(self) -> float:
        return progress_percentage(self.file_size, self.downloaded_bytes)

    @property
    def gap_coverage_percentage(self) -> float:
        return gap_coverage_percentage(self.gaps, self.file_size)


def find_special(tags, tag_id: int, kind: TagKind) -> Optional[Tag]:
    """First tag with a 1-byte name equal to tag_id and the given kind."""
    for tag in tags:
        cat = classify(tag)
        if isinstance(cat, Special) and cat.id == tag_id and tag.kind == kind:
            return tag
    return None


def summarize(part: PartMetFile) -> FileSummary:
    """Derive the headline values from the tag sequence.

    Sizes take the last integer occurrence of their id, the filename the
    first string occurrence.
    """
    file_size = 0
    downloaded = 0
    for tag in part.tags:
        cat = classify(tag)
        if not isinstance(cat, Special) or not tag.is_integer:
            continue
        if cat.id == SPECIAL_FILESIZE:
            file_size = tag.raw_value
        elif cat.id == SPECIAL_TRANSFERRED:
            downloaded = tag.raw_value

    name_tag = find_special(part.tags, SPECIAL_FILENAME, TagKind.STRING)
    seen_tag = find_special(part.tags, SPECIAL_LAST_SEEN, TagKind.INTEGER)

    return FileSummary(
        format_version=part.format_version,
        content_hash=part.hash_hex,
        tag_count=part.tag_count,
        filename=name_tag.raw_value.decode("utf-8", "replace") if name_tag else None,
        file_size=file_size,
        downloaded_bytes=downloaded,
        last_seen_complete=seen_tag.raw_value if seen_tag else None,
        gaps=tuple(reconcile_gaps(part.tags)),
    )
