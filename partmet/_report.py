"""Text and JSON presentation of a decoded .part.met file.

Nothing in here reads bytes.  It takes a PartMetFile, classifies and
summarizes it through the core, and formats the result.  JSON output is
built as plain dicts and handed to json.dumps, which owns all escaping.
"""

from __future__ import annotations

import json
import time
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Optional, Sequence

from ._classify import (
    CATEGORY_LABELS,
    Gap,
    GapMarker,
    Special,
    Standard,
    TagCategory,
    classify,
    describe,
    gap_meaning,
    special_meaning,
    standard_meaning,
    status_note,
)
from ._constants import (
    BAR_WIDTH,
    DATE_FORMAT,
    MEBIBYTE,
    SPECIAL_FILENAME,
    SPECIAL_FILESIZE,
    SPECIAL_LAST_SEEN,
    SPECIAL_STATUS,
    SPECIAL_TRANSFERRED,
)
from ._core import FileSummary, find_special, summarize
from ._gaps import render_occupancy, total_gap_size
from ._model import PartMetFile, Tag, TagKind

# Fields that only need the header, and fields that need the tags.
HEADER_FIELDS = ("version", "hash", "tagcount")
TAG_FIELDS = ("filename", "size", "date", "progress")


@dataclass
class ReportOptions:
    categories: FrozenSet[str] = field(default_factory=lambda: frozenset(CATEGORY_LABELS))
    verbose: bool = False
    visualize: bool = False
    width: int = BAR_WIDTH


# ── Formatting helpers ───────────────────────────────────────

def _text(raw: bytes) -> str:
    return raw.decode("utf-8", "replace")


def _mb(n: int) -> float:
    return n / MEBIBYTE


def format_timestamp(ts: int) -> str:
    return time.strftime(DATE_FORMAT, time.localtime(ts))


def _value_text(tag: Tag) -> str:
    if tag.is_integer:
        return str(tag.raw_value)
    return '"{}"'.format(_text(tag.raw_value))


def _round2(x: float) -> float:
    return round(x, 2)


def _round1(x: float) -> float:
    return round(x, 1)


# ── Per-tag lines ────────────────────────────────────────────

def tag_line(tag: Tag, verbose: bool = False,
             category: Optional[TagCategory] = None) -> str:
    """One human-readable line for a tag."""
    if category is None:
        category = classify(tag)

    if isinstance(category, Special):
        tid = category.id
        head = "Tag: (Special, {}) ".format(tid)
        value = tag.raw_value if tag.is_integer else 0
        desc = special_meaning(tid, value)
        if desc is None:
            return head + "Name: {}, Value: {}".format(tid, _value_text(tag))
        line = head + "{} = {}".format(desc, _value_text(tag))
        if verbose and tag.is_integer:
            if tid in (SPECIAL_FILESIZE, SPECIAL_TRANSFERRED):
                line += " ({:.2f} MB)".format(_mb(value))
            elif tid == SPECIAL_LAST_SEEN:
                line += " ({})".format(format_timestamp(value))
            elif tid == SPECIAL_STATUS and status_note(value):
                line += " - " + status_note(value)
        return line

    if isinstance(category, Gap):
        line = "Tag: (Gap) {}, Reference: {}, Value: {}".format(
            gap_meaning(category.marker), _text(category.reference), _value_text(tag))
        if verbose and tag.is_integer:
            line += " ({:.2f} MB)".format(_mb(tag.raw_value))
        return line

    if isinstance(category, Standard):
        line = "Tag: (Standard) {} = {}".format(category.name, _value_text(tag))
        if verbose:
            line += " - " + standard_meaning(category.name)
        return line

    return 'Tag: (Unknown) Name: "{}", Value: {}'.format(_text(tag.name), _value_text(tag))


def tag_object(tag: Tag, category: Optional[TagCategory] = None) -> Dict[str, Any]:
    """JSON-ready dict for a tag."""
    if category is None:
        category = classify(tag)
    obj: Dict[str, Any] = {"type": category.label}

    if isinstance(category, Special):
        obj["id"] = category.id
    elif isinstance(category, Gap):
        obj["gap_type"] = "start" if category.marker == GapMarker.START else "end"
        obj["reference"] = _text(category.reference)
    else:
        obj["name"] = _text(tag.name)

    desc = describe(tag, category)
    if desc is not None:
        obj["description"] = desc

    if tag.is_integer:
        obj["value"] = tag.raw_value
        if isinstance(category, Special):
            if category.id in (SPECIAL_FILESIZE, SPECIAL_TRANSFERRED):
                obj["value_mb"] = _round2(_mb(tag.raw_value))
            elif category.id == SPECIAL_LAST_SEEN:
                obj["value_date"] = format_timestamp(tag.raw_value)
    else:
        obj["value"] = _text(tag.raw_value)
    return obj


def _selected(part: PartMetFile, categories: FrozenSet[str]):
    for tag in part.tags:
        cat = classify(tag)
        if cat.label in categories:
            yield tag, cat


# ── Visualization ────────────────────────────────────────────

def bar_string(cells: Sequence[bool]) -> str:
    return "[" + "".join("#" if c else " " for c in cells) + "]"


def visualization_lines(summary: FileSummary, width: int = BAR_WIDTH) -> List[str]:
    size = summary.file_size
    done = summary.downloaded_bytes
    lines = [
        "",
        "=== FILE DOWNLOAD VISUALIZATION ===",
        "Total size: {} bytes ({:.2f} MB)".format(size, _mb(size)),
        "Downloaded: {} bytes ({:.2f} MB, {:.1f}%)".format(
            done, _mb(done), summary.progress_percentage),
        bar_string(render_occupancy(summary.gaps, size, width)),
        "",
    ]
    if summary.gaps:
        total = total_gap_size(summary.gaps)
        lines.append("Gaps: {}".format(len(summary.gaps)))
        lines.append("Total gap size: {:.2f} MB ({:.1f}% of file)".format(
            _mb(total), summary.gap_coverage_percentage))
        lines.append("")
    return lines


def visualization_object(summary: FileSummary, width: int = BAR_WIDTH) -> Dict[str, Any]:
    size = summary.file_size
    done = summary.downloaded_bytes
    total = total_gap_size(summary.gaps)
    return {
        "total_size": size,
        "total_size_mb": _round2(_mb(size)),
        "downloaded": done,
        "downloaded_mb": _round2(_mb(done)),
        "percentage": _round1(summary.progress_percentage),
        "gaps": {
            "count": len(summary.gaps),
            "total_size": total,
            "total_size_mb": _round2(_mb(total)),
            "percentage": _round1(summary.gap_coverage_percentage),
            "details": [
                {
                    "start": g.start,
                    "end": g.end,
                    "size": g.size,
                    "size_mb": _round2(_mb(g.size)),
                }
                for g in summary.gaps
            ],
        },
        "bar": [1 if c else 0 for c in render_occupancy(summary.gaps, size, width)],
    }


# ── Full reports ─────────────────────────────────────────────

def render_text(part: PartMetFile, options: Optional[ReportOptions] = None) -> str:
    if options is None:
        options = ReportOptions()
    lines = [
        ".part.met file version: {}".format(part.format_version),
        "ED2K Hash: {}".format(part.hash_hex),
        "Number of meta tags: {}".format(part.tag_count),
    ]
    if options.categories:
        lines.append("")
        lines.append("=== META TAGS ===")
        for tag, cat in _selected(part, options.categories):
            lines.append(tag_line(tag, options.verbose, cat))
    if options.visualize:
        lines.extend(visualization_lines(summarize(part), options.width))
    return "\n".join(lines) + "\n"


def build_document(part: PartMetFile, options: Optional[ReportOptions] = None) -> Dict[str, Any]:
    if options is None:
        options = ReportOptions()
    doc: Dict[str, Any] = {
        "format_version": part.format_version,
        "ed2k_hash": part.hash_hex,
        "num_tags": part.tag_count,
    }
    if options.categories:
        doc["tags"] = [tag_object(tag, cat) for tag, cat in _selected(part, options.categories)]
    if options.visualize:
        doc["visualization"] = visualization_object(summarize(part), options.width)
    return doc


def render_json(part: PartMetFile, options: Optional[ReportOptions] = None) -> str:
    return json.dumps(build_document(part, options), ensure_ascii=False)


# ── Single fields (script-friendly) ──────────────────────────

def field_object(part: PartMetFile, name: str, verbose: bool = False) -> Dict[str, Any]:
    """JSON fragment for one field; missing values come out as None."""
    if name == "version":
        return {"format_version": part.format_version}
    if name == "hash":
        return {"ed2k_hash": part.hash_hex}
    if name == "tagcount":
        return {"num_tags": part.tag_count}

    if name == "filename":
        tag = find_special(part.tags, SPECIAL_FILENAME, TagKind.STRING)
        return {"filename": _text(tag.raw_value) if tag else None}

    if name == "size":
        # Same value summarize() reports, so -S agrees with -p and -z.
        if find_special(part.tags, SPECIAL_FILESIZE, TagKind.INTEGER) is None:
            return {"filesize": None}
        size = summarize(part).file_size
        out: Dict[str, Any] = {"filesize": size}
        if verbose:
            out["filesize_mb"] = _round2(_mb(size))
        return out

    if name == "date":
        tag = find_special(part.tags, SPECIAL_LAST_SEEN, TagKind.INTEGER)
        if tag is None:
            return {"last_seen": None}
        out = {"last_seen": tag.raw_value}
        if verbose:
            out["last_seen_date"] = format_timestamp(tag.raw_value)
        return out

    if name == "progress":
        s = summarize(part)
        return {"progress": {
            "total_bytes": s.file_size,
            "downloaded_bytes": s.downloaded_bytes,
            "total_mb": _round2(_mb(s.file_size)),
            "downloaded_mb": _round2(_mb(s.downloaded_bytes)),
            "percentage": _round1(s.progress_percentage),
        }}

    raise ValueError("unknown field {!r}".format(name))


def field_text(part: PartMetFile, name: str, verbose: bool = False) -> str:
    """Raw value for one field; empty string when the file lacks it."""
    if name == "version":
        return part.format_version
    if name == "hash":
        return part.hash_hex
    if name == "tagcount":
        return str(part.tag_count)
    if name == "progress":
        return "{:.1f}".format(summarize(part).progress_percentage)

    obj = field_object(part, name)
    value = next(iter(obj.values()))
    if value is None:
        return ""
    if name == "date" and verbose:
        return format_timestamp(value)
    return str(value)


def render_fields(part: PartMetFile, names: Sequence[str], json_output: bool = False,
                  verbose: bool = False) -> str:
    """Output for the single-field modes.

    Text mode prints only the first requested field.  JSON mode prints a
    header field as its own object and merges tag fields under "fields".
    """
    first = names[0]
    if not json_output:
        return field_text(part, first, verbose)
    if first in HEADER_FIELDS:
        return json.dumps(field_object(part, first, verbose), ensure_ascii=False)
    merged: Dict[str, Any] = {}
    for name in names:
        merged.update(field_object(part, name, verbose))
    return json.dumps({"fields": merged}, ensure_ascii=False)
