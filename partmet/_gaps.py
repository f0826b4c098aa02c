"""Gap reconciliation and the download occupancy bar.

Gap tags come in pairs: a START tag (name 0x09 + ref) holding the first
missing byte and an END tag (name 0x0A + ref) holding one past the last.
Pairing is by exact byte equality of the reference.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Sequence

from ._classify import Gap, GapMarker, classify
from ._constants import BAR_WIDTH
from ._model import GapInterval, Tag

logger = logging.getLogger(__name__)


def reconcile_gaps(tags: Iterable[Tag]) -> List[GapInterval]:
    """Pair START/END gap tags into intervals.

    Intervals come out in the order of their START tags.  Each START takes
    the first END with the same reference in sequence order, wherever that
    END sits, so repeated references all map to the same END.  A START
    with no END is dropped.  String-valued gap tags are ignored.
    """
    starts = []
    first_end: Dict[bytes, int] = {}
    for tag in tags:
        if not tag.is_integer:
            continue
        cat = classify(tag)
        if not isinstance(cat, Gap):
            continue
        if cat.marker == GapMarker.START:
            starts.append((cat.reference, tag.raw_value))
        elif cat.reference not in first_end:
            first_end[cat.reference] = tag.raw_value

    out: List[GapInterval] = []
    for ref, start in starts:
        end = first_end.get(ref)
        if end is None:
            logger.debug("gap start %r at %d has no matching end; dropped", ref, start)
            continue
        out.append(GapInterval(start, end))
    return out


# ── Occupancy ────────────────────────────────────────────────

def render_occupancy(intervals: Sequence[GapInterval], file_size: int,
                     bucket_count: int = BAR_WIDTH) -> List[bool]:
    """Split [0, file_size) into buckets; True where nothing is missing.

    A bucket is missing when it overlaps any interval under half-open
    bounds.  With file_size 0 every bucket is [0, 0) and no interval of
    unsigned offsets can overlap it, so the whole bar reads present.
    """
    if bucket_count <= 0:
        raise ValueError("bucket_count must be positive, got {}".format(bucket_count))
    cells: List[bool] = []
    for i in range(bucket_count):
        pos_start = int((i / bucket_count) * file_size)
        pos_end = int(((i + 1) / bucket_count) * file_size)
        missing = False
        for gap in intervals:
            if not (pos_end <= gap.start or pos_start >= gap.end):
                missing = True
                break
        cells.append(not missing)
    return cells


def progress_percentage(file_size: int, downloaded: int) -> float:
    if file_size > 0:
        return downloaded * 100.0 / file_size
    return 0.0


def total_gap_size(intervals: Iterable[GapInterval]) -> int:
    return sum(gap.size for gap in intervals)


def gap_coverage_percentage(intervals: Iterable[GapInterval], file_size: int) -> float:
    """Share of the file covered by gaps, as a percentage of file_size."""
    if file_size > 0:
        return total_gap_size(intervals) * 100.0 / file_size
    return 0.0
