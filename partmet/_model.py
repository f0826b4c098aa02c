"""Decoded .part.met data model.

A tag record on disk is

    kind:u8 · name_len:u16le · name · (value_len:u16le · value | value:u32le)

where kind 2 carries a length-prefixed byte string and kind 3 a 32-bit
unsigned integer.  The value variant is modelled as two small classes so
a Tag can never hold the wrong branch for its kind.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Optional, Tuple, Union

from ._constants import KIND_INTEGER, KIND_STRING


class TagKind(IntEnum):
    STRING = KIND_STRING
    INTEGER = KIND_INTEGER


@dataclass(frozen=True)
class StringValue:
    data: bytes


@dataclass(frozen=True)
class IntegerValue:
    value: int


TagValue = Union[StringValue, IntegerValue]


@dataclass(frozen=True)
class Tag:
    """One self-describing key/value record.  Name bytes are opaque."""

    kind: TagKind
    name: bytes
    value: TagValue

    def __post_init__(self) -> None:
        # TagKind() rejects anything but 2 / 3 with ValueError.
        kind = TagKind(self.kind)
        object.__setattr__(self, "kind", kind)
        want = StringValue if kind == TagKind.STRING else IntegerValue
        if not isinstance(self.value, want):
            raise ValueError("tag kind {} cannot hold {}".format(
                kind.name, type(self.value).__name__))

    @property
    def is_integer(self) -> bool:
        return self.kind == TagKind.INTEGER

    @property
    def is_string(self) -> bool:
        return self.kind == TagKind.STRING

    @property
    def raw_value(self) -> Union[int, bytes]:
        if isinstance(self.value, IntegerValue):
            return self.value.value
        return self.value.data


@dataclass(frozen=True)
class GapInterval:
    """Closed-open byte range [start, end) not yet downloaded.

    ``end <= start`` is representable and kept as decoded; such an interval
    covers nothing, so its size is 0 and it adds nothing to the gap totals.
    """

    start: int
    end: int

    @property
    def size(self) -> int:
        return max(0, self.end - self.start)


@dataclass(frozen=True)
class FileHeaderInfo:
    format_version: str
    hash_offset: int
    tag_count_offset: int
    block_count: Optional[int] = None


@dataclass(frozen=True)
class PartMetFile:
    """A fully decoded file: header layout, 16-byte hash and every tag."""

    header: FileHeaderInfo
    content_hash: bytes
    tag_count: int
    tags: Tuple[Tag, ...]

    @property
    def format_version(self) -> str:
        return self.header.format_version

    @property
    def hash_hex(self) -> str:
        return self.content_hash.hex().upper()
