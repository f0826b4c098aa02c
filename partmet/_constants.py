""".part.met constants: format markers, header offsets, tag kinds and label tables.

Covers the two on-disk revisions written by eDonkey2000/eMule clients:
14.0 (marker 0xE0) and 14.1 (marker 0xE1).
"""

from __future__ import annotations

from typing import Dict

# ── Format markers (byte 0 of the file) ──────────────────────
MARKER_V14_0: int = 0xE0  # 224
MARKER_V14_1: int = 0xE1  # 225

FORMAT_VERSIONS: Dict[int, str] = {
    MARKER_V14_0: "14.0",
    MARKER_V14_1: "14.1",
}

# ── Header layout ────────────────────────────────────────────
# 14.0 carries a table of 16-byte part hashes between the file hash and
# the tag count, so the tag count moves with the block count.  14.1
# dropped the table from this position.  Do not fold these together.
HASH_SIZE: int = 16

V14_0_HASH_OFFSET: int = 5
V14_0_BLOCK_COUNT_OFFSET: int = 21
V14_0_BLOCKS_START: int = 23
V14_0_BLOCK_SIZE: int = 16

V14_1_HASH_OFFSET: int = 6
V14_1_TAG_COUNT_OFFSET: int = 22

# ── Tag kinds (first byte of every tag record) ───────────────
KIND_STRING: int = 2
KIND_INTEGER: int = 3

# ── Gap markers (first name byte of a gap tag) ───────────────
GAP_START: int = 9
GAP_END: int = 10

# ── Special tag ids (single-byte names) ──────────────────────
SPECIAL_FILENAME: int = 1
SPECIAL_FILESIZE: int = 2
SPECIAL_FILETYPE: int = 3
SPECIAL_FILEFORMAT: int = 4
SPECIAL_LAST_SEEN: int = 5
SPECIAL_TRANSFERRED: int = 8
SPECIAL_PART_FILENAME: int = 18
SPECIAL_OLD_PRIORITY: int = 19
SPECIAL_STATUS: int = 20
SPECIAL_DL_PRIORITY: int = 24
SPECIAL_UL_PRIORITY: int = 25

SPECIAL_DESCRIPTIONS: Dict[int, str] = {
    SPECIAL_FILENAME: "Filename",
    SPECIAL_FILESIZE: "File size in bytes",
    SPECIAL_FILETYPE: "File type",
    SPECIAL_FILEFORMAT: "File format",
    SPECIAL_LAST_SEEN: "Last time file was seen complete on network",
    SPECIAL_TRANSFERRED: "Number of bytes downloaded so far",
    SPECIAL_PART_FILENAME: "Temporary (.part) filename",
    SPECIAL_OLD_PRIORITY: "Download priority (eDonkey/Overnet <0.49)",
}

# Ids whose description depends on the integer value.  Value 5 is
# missing from the status table on purpose; clients never wrote it.
STATUS_LABELS: Dict[int, str] = {
    0: "Ready",
    1: "Empty",
    2: "Waiting for hash",
    3: "Hashing",
    4: "Error",
    6: "Unknown",
    7: "Paused",
    8: "Completing",
    9: "Completed",
}

DL_PRIORITY_LABELS: Dict[int, str] = {
    0: "Low",
    1: "Normal",
    2: "High",
    3: "Very high (eMule) / Highest/Horde (eDonkey/Overnet)",
    4: "Very low (eMule)",
    5: "Auto (eMule)",
}

UL_PRIORITY_LABELS: Dict[int, str] = {
    0: "Low",
    1: "Normal",
    2: "High",
    3: "Very high",
    4: "Very low",
    5: "Auto",
}

ENUMERATED_SPECIALS: Dict[int, tuple] = {
    SPECIAL_STATUS: ("Download status", STATUS_LABELS),
    SPECIAL_DL_PRIORITY: ("Download priority", DL_PRIORITY_LABELS),
    SPECIAL_UL_PRIORITY: ("Upload priority", UL_PRIORITY_LABELS),
}

# Extra text shown for a few status values in verbose mode.
STATUS_NOTES: Dict[int, str] = {
    0: "File is ready for download",
    7: "Download is manually paused",
    9: "Download is fully completed",
}

GAP_DESCRIPTIONS: Dict[int, str] = {
    GAP_START: "Start of gap (undownloaded area)",
    GAP_END: "End of gap (undownloaded area)",
}

# ── Standard (named) tags ────────────────────────────────────
# Keys are lowercase; lookup is case-insensitive.
STANDARD_DESCRIPTIONS: Dict[str, str] = {
    "artist": "Media file artist",
    "album": "Media file album",
    "title": "Media file title",
    "length": "Media file duration",
    "bitrate": "Media file bitrate",
    "codec": "Media file codec",
}

# ── Rendering ────────────────────────────────────────────────
BAR_WIDTH: int = 70
MEBIBYTE: float = 1048576.0
DATE_FORMAT: str = "%Y-%m-%d %H:%M:%S"
