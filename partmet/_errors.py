""".part.met error codes and exception class.

Every failure in the decoder is fatal for the file being read: the tag
stream has no resynchronization marker, so once a read comes up short or a
tag kind is not recognized there is no safe place to continue from.
Classification and gap reconciliation never raise; they degrade to
"unknown" labels and dropped intervals instead.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Tuple

if TYPE_CHECKING:
    from ._model import FileHeaderInfo, Tag

# ── Error codes ──────────────────────────────────────────────

ERR_IO: str = "ERR_IO"              # short read anywhere in the file
ERR_FORMAT: str = "ERR_FORMAT"      # marker byte is not 0xE0 / 0xE1
ERR_TAG_KIND: str = "ERR_TAG_KIND"  # tag kind byte is not 2 / 3

ERROR_CODES: Tuple[str, ...] = (ERR_IO, ERR_FORMAT, ERR_TAG_KIND)


class PartialDecode:
    """What was recovered before a tag-kind failure stopped the decode.

    Always incomplete: ``len(tags) < tag_count``.
    """

    __slots__ = ("header", "content_hash", "tag_count", "tags")

    def __init__(self, header: "FileHeaderInfo", content_hash: bytes,
                 tag_count: int, tags: Tuple["Tag", ...]) -> None:
        self.header = header
        self.content_hash = content_hash
        self.tag_count = tag_count
        self.tags = tags

    def __repr__(self) -> str:
        return "PartialDecode(version={!r}, tags={}/{})".format(
            self.header.format_version, len(self.tags), self.tag_count)


class PartMetError(Exception):
    """Exception for .part.met decoding errors.

    ``.code`` is one of the ERR_* strings above.  Extra context is attached
    as attributes depending on the code:

      - ERR_FORMAT:   ``.marker``  the offending first byte
      - ERR_TAG_KIND: ``.kind`` and ``.offset`` of the bad kind byte, and
                      ``.partial`` once the whole-file decoder has seen it
    """

    def __init__(self, code: str, msg: str = "", *,
                 marker: Optional[int] = None,
                 kind: Optional[int] = None,
                 offset: Optional[int] = None) -> None:
        super().__init__(msg or code)
        self.code = code
        self.marker = marker
        self.kind = kind
        self.offset = offset
        self.partial: Optional[PartialDecode] = None
